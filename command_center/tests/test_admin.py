import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from command_center.main import app
from command_center.models import Post, Lead, Media

@pytest.fixture(autouse=True)
def no_ai_check():
    with patch("command_center.services.health.check_ai", return_value=False) as check_ai:
        yield check_ai

def test_dashboard_metrics(client, db, admin, editor, auth_headers, make_idea, make_artifact):
    idea = make_idea(editor)
    make_artifact(editor, "OUTLINE", idea=idea)
    make_artifact(editor, "OUTLINE", status="APPROVED", idea=idea)
    make_artifact(editor, "FACTS", content={})
    make_artifact(editor, "FACTS_final", content={})
    db.add(Post(author_id=editor.id, title="Published", slug="published", status="PUBLISHED"))
    db.add(Post(author_id=editor.id, title="Draft", slug="draft"))
    db.add(Lead(email="jane@example.com"))
    db.add(Media(url="http://testserver/uploads/a.png", filename="a.png", mimetype="image/png", size=10, provider="LOCAL"))
    db.commit()

    r = client.get("/api/admin/dashboard", headers=auth_headers(admin))
    assert r.status_code == 200
    body = r.json()
    assert body["metrics"] == {
        "total_ideas": 1,
        "pending_outlines": 1,
        "pending_facts": 2,
        "published_posts": 1,
        "total_leads": 1,
        "media_files": 1,
    }
    kinds = {item["kind"] for item in body["recent_activity"]}
    assert kinds == {"artifact", "idea", "lead"}
    assert body["system_health"]["database"] is True

def test_admin_health(client, admin, auth_headers):
    r = client.get("/api/admin/health", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json() == {"database": True, "storage": {"LOCAL": True}, "ai": False, "overall": True}

def test_admin_health_reports_failing_storage(client, admin, auth_headers, media_manager):
    local = media_manager.adapters[next(iter(media_manager.adapters))]
    with patch.object(local, "is_healthy", return_value=False):
        body = client.get("/api/admin/health", headers=auth_headers(admin)).json()
    assert body["storage"] == {"LOCAL": False}
    assert body["overall"] is False

def test_liveness_and_readiness(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/ready").status_code == 200

def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]

def test_unhandled_errors_are_masked(db, admin, auth_headers, client):
    safe_client = TestClient(app, raise_server_exceptions=False)
    with patch("command_center.routes.admin.system_health", side_effect=RuntimeError("secret detail")):
        r = safe_client.get("/api/admin/health", headers=auth_headers(admin))
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal Server Error"}
