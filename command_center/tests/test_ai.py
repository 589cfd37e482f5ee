import pytest
from unittest.mock import MagicMock, patch
from command_center.models import Idea, AIArtifact
from command_center.services.ai import run_task

OUTLINE = {
    "title": "Remote Work Productivity",
    "sections": [{"heading": "Intro", "subheadings": [], "key_points": ["Why it matters"]}],
    "estimated_word_count": 1500,
}

def test_run_task_completes_with_model_output():
    mock_response = MagicMock()
    mock_response.choices = [MagicMock(message=MagicMock(content='{"title": "T", "sections": []}'))]
    mock_client = MagicMock()
    mock_client.chat.completions.create.return_value = mock_response

    with patch("command_center.services.ai.get_client", return_value=mock_client):
        task = run_task("generate-outline", {"topic": "Remote work"})

    assert task["status"] == "completed"
    assert task["type"] == "generate-outline"
    assert task["output"] == {"title": "T", "sections": []}
    assert task["error"] is None
    assert task["updated_at"] >= task["created_at"]
    kwargs = mock_client.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "Remote work" in kwargs["messages"][1]["content"]

def test_run_task_reports_failure_on_record():
    with patch("command_center.services.ai._complete", side_effect=RuntimeError("rate limited")):
        task = run_task("generate-facts", {"topic": "Remote work"})

    assert task["status"] == "failed"
    assert task["output"] is None
    assert task["error"] == "rate limited"

def test_run_task_unknown_type():
    with pytest.raises(ValueError):
        run_task("generate-poem", {})

def test_facts_output_is_normalized():
    raw = {"facts": [
        {"statement": "Most teams use chat", "confidence": 1.4},
        {"statement": "", "confidence": 0.5},
        {"statement": "Meetings cost time", "confidence": None, "category": "statistic"},
    ]}
    with patch("command_center.services.ai._complete", return_value=raw):
        task = run_task("generate-facts", {"topic": "Remote work", "fact_count": 3})

    facts = task["output"]["facts"]
    assert [f["statement"] for f in facts] == ["Most teams use chat", "Meetings cost time"]
    assert facts[0]["confidence"] == 1.0
    assert facts[0]["category"] == "general"
    assert facts[1]["confidence"] == 0.0
    assert task["output"]["total_count"] == 2

def test_generate_idea_creates_draft_idea_and_pending_outline(client, db, editor, auth_headers):
    with patch("command_center.services.ai._complete", return_value=dict(OUTLINE)):
        r = client.post(
            "/api/ideas/generate",
            json={"topic": "Remote work productivity", "keywords": ["remote", "focus"], "targetAudience": "managers"},
            headers=auth_headers(editor),
        )

    assert r.status_code == 200
    body = r.json()
    assert body["idea"]["status"] == "DRAFT"
    assert body["idea"]["tags"] == ["remote", "focus"]
    assert body["artifact"]["type"] == "OUTLINE"
    assert body["artifact"]["status"] == "PENDING_REVIEW"
    assert body["artifact"]["idea_id"] == body["idea"]["id"]
    assert body["task"]["status"] == "completed"
    assert db.query(Idea).count() == 1
    assert db.query(AIArtifact).count() == 1

def test_generate_idea_failure_creates_nothing(client, db, editor, auth_headers):
    with patch("command_center.services.ai._complete", side_effect=RuntimeError("boom")):
        r = client.post("/api/ideas/generate", json={"topic": "Remote work"}, headers=auth_headers(editor))

    assert r.status_code == 500
    assert r.json()["detail"] == "Failed to generate idea"
    assert db.query(Idea).count() == 0

def test_generate_idea_validates_topic(client, editor, auth_headers):
    r = client.post("/api/ideas/generate", json={"topic": ""}, headers=auth_headers(editor))
    assert r.status_code == 400

def test_list_ideas_includes_artifacts(client, editor, auth_headers, make_idea, make_artifact):
    idea = make_idea(editor)
    make_artifact(editor, "OUTLINE", idea=idea)

    r = client.get("/api/ideas", headers=auth_headers(editor))
    assert r.status_code == 200
    body = r.json()
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    assert len(body["ideas"][0]["artifacts"]) == 1

def test_generate_facts_links_owned_idea(client, editor, auth_headers, make_idea):
    idea = make_idea(editor)
    output = {"facts": [{"statement": "Remote work grew", "confidence": 0.8, "category": "statistic"}]}
    with patch("command_center.services.ai._complete", return_value=output):
        r = client.post(
            "/api/ai/facts",
            json={"topic": "Remote work", "factCount": 5, "ideaId": idea.id},
            headers=auth_headers(editor),
        )

    assert r.status_code == 200
    artifact = r.json()["artifact"]
    assert artifact["type"] == "FACTS"
    assert artifact["idea_id"] == idea.id
    assert artifact["meta"]["input"]["fact_count"] == 5

def test_generate_facts_rejects_foreign_idea(client, editor, make_user, auth_headers, make_idea):
    idea = make_idea(make_user("editor-2", "EDITOR"))
    r = client.post("/api/ai/facts", json={"topic": "Remote work", "ideaId": idea.id}, headers=auth_headers(editor))
    assert r.status_code == 404

def test_fact_count_bounds(client, editor, auth_headers):
    r = client.post("/api/ai/facts", json={"topic": "Remote work", "factCount": 50}, headers=auth_headers(editor))
    assert r.status_code == 400

def test_draft_requires_approved_outline(client, editor, auth_headers, make_idea, make_artifact):
    idea = make_idea(editor)
    make_artifact(editor, "OUTLINE", idea=idea)

    r = client.post("/api/ai/draft", json={"ideaId": idea.id}, headers=auth_headers(editor))
    assert r.status_code == 400
    assert r.json()["detail"] == "Idea has no approved outline"

def test_draft_uses_only_approved_facts(client, editor, auth_headers, make_idea, make_artifact):
    idea = make_idea(editor, status="ACTIVE")
    make_artifact(editor, "OUTLINE", status="APPROVED", idea=idea, content=OUTLINE)
    make_artifact(editor, "FACTS", status="APPROVED", idea=idea, content={
        "original_facts": {},
        "reviewed_facts": [
            {"statement": "Kept fact", "approved": True},
            {"statement": "Dropped fact", "approved": False},
        ],
    })

    with patch("command_center.services.ai._complete", return_value={"content": "# Draft", "word_count": 2}) as complete:
        r = client.post("/api/ai/draft", json={"ideaId": idea.id, "length": 800}, headers=auth_headers(editor))

    assert r.status_code == 200
    assert r.json()["artifact"]["type"] == "DRAFT"
    assert r.json()["artifact"]["status"] == "PENDING_REVIEW"
    prompt = complete.call_args.args[0]
    assert "Kept fact" in prompt
    assert "Dropped fact" not in prompt

def test_artifact_detail_access(client, editor, make_user, admin, auth_headers, make_artifact):
    artifact = make_artifact(editor, "OUTLINE")

    assert client.get(f"/api/ai/artifacts/{artifact.id}", headers=auth_headers(editor)).status_code == 200
    assert client.get(f"/api/ai/artifacts/{artifact.id}", headers=auth_headers(admin)).status_code == 200
    other = make_user("editor-2", "EDITOR")
    assert client.get(f"/api/ai/artifacts/{artifact.id}", headers=auth_headers(other)).status_code == 403
    assert client.get("/api/ai/artifacts/9999", headers=auth_headers(editor)).status_code == 404

def test_list_artifacts_filters(client, editor, auth_headers, make_artifact):
    make_artifact(editor, "OUTLINE")
    make_artifact(editor, "FACTS", status="APPROVED", content={})

    r = client.get("/api/ai/artifacts", params={"type": "FACTS"}, headers=auth_headers(editor))
    assert [a["type"] for a in r.json()["artifacts"]] == ["FACTS"]
    r = client.get("/api/ai/artifacts", params={"status": "PENDING_REVIEW"}, headers=auth_headers(editor))
    assert [a["type"] for a in r.json()["artifacts"]] == ["OUTLINE"]

def test_seo_output_fills_social_fields():
    raw = {
        "title": "Remote Teams That Ship",
        "description": "How remote teams keep shipping without burning out.",
        "keywords": ["remote teams", "async work"],
        "og_title": "Remote teams, shipped",
    }
    with patch("command_center.services.ai._complete", return_value=raw) as complete:
        task = run_task("generate-seo", {"title": "Remote teams", "content": "Body text", "target_keyword": "remote teams"})

    seo = task["output"]
    assert task["status"] == "completed"
    assert seo["og_title"] == "Remote teams, shipped"
    assert seo["og_description"] == raw["description"]
    assert seo["twitter_title"] == "Remote Teams That Ship"
    assert seo["twitter_description"] == raw["description"]
    assert seo["canonical_url"] is None
    assert "Target keyword: remote teams" in complete.call_args.args[0]

def test_summarize_counts_summary_words():
    raw = {"summary": "Remote teams ship when they write things down.", "word_count": 999}
    with patch("command_center.services.ai._complete", return_value=raw) as complete:
        task = run_task("summarize", {"content": "A long article body", "length": "short", "format": "bullets"})

    assert task["status"] == "completed"
    assert task["output"]["word_count"] == 8
    assert task["output"]["key_points"] == []
    assert "a bulleted list" in complete.call_args.args[0]
