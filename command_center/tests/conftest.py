import os
import tempfile

# Must be set before command_center modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["UPLOADS_DIR"] = tempfile.mkdtemp(prefix="command-center-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from command_center.db import get_db
from command_center.main import app
from command_center.models import Base, User, Idea, AIArtifact
from command_center.security.auth import create_access_token
from command_center.services.media.local import LocalMediaAdapter
from command_center.services.media.manager import MediaManager, get_media_manager

@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()

@pytest.fixture
def media_manager(tmp_path):
    return MediaManager([LocalMediaAdapter(uploads_dir=str(tmp_path / "uploads"), public_base_url="http://testserver")])

@pytest.fixture
def client(db, media_manager):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_manager] = lambda: media_manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

@pytest.fixture
def make_user(db):
    def _make(sub="user-1", role="EDITOR", email=None):
        user = User(auth_subject=sub, email=email or f"{sub}@example.com", name=sub, role=role, is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make

@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        token = create_access_token({
            "sub": user.auth_subject,
            "email": user.email,
            "app_metadata": {"role": user.role},
        })
        return {"Authorization": f"Bearer {token}"}
    return _headers

@pytest.fixture
def editor(make_user):
    return make_user("editor-1", "EDITOR")

@pytest.fixture
def admin(make_user):
    return make_user("admin-1", "ADMIN")

@pytest.fixture
def make_artifact(db):
    def _make(user, type="OUTLINE", status="PENDING_REVIEW", idea=None, post_id=None, content=None):
        artifact = AIArtifact(
            user_id=user.id,
            idea_id=idea.id if idea else None,
            post_id=post_id,
            type=type,
            title=f"{type} artifact",
            content=content if content is not None else {"title": "Sample", "sections": []},
            status=status,
            meta={},
        )
        db.add(artifact)
        db.commit()
        db.refresh(artifact)
        return artifact
    return _make

@pytest.fixture
def make_idea(db):
    def _make(user, title="Remote work productivity", status="DRAFT"):
        idea = Idea(user_id=user.id, title=title, status=status, priority="MEDIUM", tags=[])
        db.add(idea)
        db.commit()
        db.refresh(idea)
        return idea
    return _make
