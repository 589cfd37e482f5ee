import pytest
from command_center.services import review
from command_center.services.review import ReviewConflict, transition

def _fact(statement, approved, confidence=0.9):
    return {"statement": statement, "source": None, "confidence": confidence, "category": "statistic", "approved": approved}

def test_transition_from_pending():
    assert transition("PENDING_REVIEW", True) == "APPROVED"
    assert transition("PENDING_REVIEW", False) == "REJECTED"

@pytest.mark.parametrize("current", ["APPROVED", "REJECTED"])
def test_transition_is_terminal(current):
    with pytest.raises(ReviewConflict):
        transition(current, True)

def test_approve_outline_activates_idea(client, editor, auth_headers, make_idea, make_artifact):
    idea = make_idea(editor)
    artifact = make_artifact(editor, "OUTLINE", idea=idea)

    r = client.post(
        "/api/ai/outline/choose",
        json={"artifactId": artifact.id, "approved": True, "feedback": "Looks good"},
        headers=auth_headers(editor),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["artifact"]["status"] == "APPROVED"
    assert body["artifact"]["approved"] is True
    assert body["artifact"]["approved_at"] is not None
    assert body["artifact"]["meta"]["feedback"] == "Looks good"
    assert body["artifact"]["meta"]["reviewed_by"] == editor.id
    assert body["idea"]["status"] == "ACTIVE"
    assert body["message"] == "Outline approved successfully"

def test_reject_outline_leaves_idea_unchanged(client, editor, auth_headers, make_idea, make_artifact):
    idea = make_idea(editor)
    artifact = make_artifact(editor, "OUTLINE", idea=idea)

    r = client.post("/api/ai/outline/choose", json={"artifactId": artifact.id, "approved": False}, headers=auth_headers(editor))
    assert r.status_code == 200
    body = r.json()
    assert body["artifact"]["status"] == "REJECTED"
    assert body["artifact"]["approved_at"] is None
    assert body["idea"]["status"] == "DRAFT"
    assert body["message"] == "Outline rejected"

def test_second_review_is_rejected(client, editor, auth_headers, make_artifact):
    """A decided artifact cannot be reviewed again, in either direction."""
    artifact = make_artifact(editor, "OUTLINE")
    headers = auth_headers(editor)

    first = client.post("/api/ai/outline/choose", json={"artifactId": artifact.id, "approved": True}, headers=headers)
    assert first.status_code == 200

    second = client.post("/api/ai/outline/choose", json={"artifactId": artifact.id, "approved": False}, headers=headers)
    assert second.status_code == 409

    detail = client.get(f"/api/ai/artifacts/{artifact.id}", headers=headers).json()
    assert detail["artifact"]["status"] == "APPROVED"

def test_review_of_another_users_artifact_is_not_found(client, editor, make_user, auth_headers, make_artifact):
    other = make_user("editor-2", "EDITOR")
    artifact = make_artifact(editor, "OUTLINE")

    r = client.post("/api/ai/outline/choose", json={"artifactId": artifact.id, "approved": True}, headers=auth_headers(other))
    assert r.status_code == 404
    assert r.json()["detail"] == "Outline not found or unauthorized"

def test_admin_can_review_any_artifact(client, editor, admin, auth_headers, make_artifact):
    artifact = make_artifact(editor, "OUTLINE")

    r = client.post("/api/ai/outline/choose", json={"artifactId": artifact.id, "approved": True}, headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["artifact"]["meta"]["reviewed_by"] == admin.id

def test_outline_review_rejects_facts_artifact(client, editor, auth_headers, make_artifact):
    artifact = make_artifact(editor, "FACTS", content={"facts": []})

    r = client.post("/api/ai/outline/choose", json={"artifactId": artifact.id, "approved": True}, headers=auth_headers(editor))
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid artifact type"

def test_missing_artifact_is_not_found(client, editor, auth_headers):
    r = client.post("/api/ai/outline/choose", json={"artifactId": 9999, "approved": True}, headers=auth_headers(editor))
    assert r.status_code == 404

def test_review_requires_token(client, editor, make_artifact):
    artifact = make_artifact(editor, "OUTLINE")
    r = client.post("/api/ai/outline/choose", json={"artifactId": artifact.id, "approved": True})
    assert r.status_code == 401

def test_missing_artifact_id_is_bad_request(client, editor, auth_headers):
    r = client.post("/api/ai/outline/choose", json={"approved": True}, headers=auth_headers(editor))
    assert r.status_code == 400

def test_facts_with_one_approved_are_approved(client, editor, auth_headers, make_idea, make_artifact):
    idea = make_idea(editor)
    original = {"facts": [{"statement": "A"}, {"statement": "B"}], "total_count": 2}
    artifact = make_artifact(editor, "FACTS", idea=idea, content=original)

    r = client.post(
        "/api/ai/facts/approve",
        json={"artifactId": artifact.id, "approvedFacts": [_fact("A", True), _fact("B", False)]},
        headers=auth_headers(editor),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["artifact"]["status"] == "APPROVED"
    assert body["approved_count"] == 1
    assert body["total_count"] == 2
    assert body["message"] == "1 facts approved successfully"
    assert body["idea"]["status"] == "ACTIVE"

    content = body["artifact"]["content"]
    assert content["original_facts"] == original
    assert content["approved_facts_count"] == 1
    assert content["total_facts_count"] == 2
    assert [f["statement"] for f in content["reviewed_facts"]] == ["A", "B"]
    assert body["artifact"]["meta"]["approval_stats"] == {"approved": 1, "rejected": 1, "total": 2}

def test_facts_with_none_approved_are_rejected(client, editor, auth_headers, make_artifact):
    artifact = make_artifact(editor, "FACTS_final", content={"facts": []})

    r = client.post(
        "/api/ai/facts/approve",
        json={"artifactId": artifact.id, "approvedFacts": [_fact("A", False), _fact("B", False)]},
        headers=auth_headers(editor),
    )
    assert r.status_code == 200
    body = r.json()
    assert body["artifact"]["status"] == "REJECTED"
    assert body["approved_count"] == 0
    assert body["message"] == "All facts rejected"

def test_facts_confidence_out_of_range_is_bad_request(client, editor, auth_headers, make_artifact):
    artifact = make_artifact(editor, "FACTS", content={"facts": []})
    r = client.post(
        "/api/ai/facts/approve",
        json={"artifactId": artifact.id, "approvedFacts": [_fact("A", True, confidence=1.5)]},
        headers=auth_headers(editor),
    )
    assert r.status_code == 400

def test_pending_queues_list_oldest_first(client, editor, auth_headers, make_artifact):
    first = make_artifact(editor, "OUTLINE")
    second = make_artifact(editor, "OUTLINE")
    make_artifact(editor, "OUTLINE", status="APPROVED")
    make_artifact(editor, "FACTS", content={"facts": []})

    r = client.get("/api/ai/outline/choose", headers=auth_headers(editor))
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert [a["id"] for a in body["items"]] == [first.id, second.id]

    facts = client.get("/api/ai/facts/approve", headers=auth_headers(editor)).json()
    assert facts["count"] == 1

def test_has_approved_artifacts_through_idea(db, editor, make_idea, make_artifact):
    idea = make_idea(editor)
    make_artifact(editor, "OUTLINE", status="APPROVED", idea=idea)
    assert review.has_approved_artifacts(db, post_id=1, idea_id=idea.id) == {
        "hasApprovedOutline": True,
        "hasApprovedFacts": False,
    }

    make_artifact(editor, "FACTS_final", status="APPROVED", idea=idea, content={})
    assert review.has_approved_artifacts(db, post_id=1, idea_id=idea.id)["hasApprovedFacts"] is True
