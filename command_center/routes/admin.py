from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import AIArtifact, Idea, Post, Media, Lead, User, ArtifactType, ArtifactStatus, PostStatus, FACTS_TYPES
from ..security.rbac import require_admin
from ..services.health import system_health
from ..services.media.manager import MediaManager, get_media_manager

router = APIRouter(prefix="/api/admin", tags=["admin"])

RECENT_LIMIT = 10

def _recent_activity(db: Session) -> list[dict]:
    artifacts = db.query(AIArtifact).order_by(AIArtifact.created_at.desc(), AIArtifact.id.desc()).limit(RECENT_LIMIT).all()
    ideas = db.query(Idea).order_by(Idea.created_at.desc(), Idea.id.desc()).limit(RECENT_LIMIT).all()
    leads = db.query(Lead).order_by(Lead.created_at.desc(), Lead.id.desc()).limit(RECENT_LIMIT).all()

    activity = [
        {
            "kind": "artifact",
            "id": a.id,
            "title": a.title,
            "type": a.type,
            "status": a.status,
            "created_at": a.created_at,
        }
        for a in artifacts
    ]
    activity += [
        {"kind": "idea", "id": i.id, "title": i.title, "status": i.status, "created_at": i.created_at}
        for i in ideas
    ]
    activity += [
        {"kind": "lead", "id": l.id, "title": l.email, "status": l.status, "created_at": l.created_at}
        for l in leads
    ]
    activity.sort(key=lambda item: item["created_at"], reverse=True)
    return activity[:RECENT_LIMIT]

@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
    media_manager: MediaManager = Depends(get_media_manager),
):
    pending = AIArtifact.status == ArtifactStatus.PENDING_REVIEW.value
    metrics = {
        "total_ideas": db.query(Idea).count(),
        "pending_outlines": db.query(AIArtifact).filter(pending, AIArtifact.type == ArtifactType.OUTLINE.value).count(),
        "pending_facts": db.query(AIArtifact).filter(pending, AIArtifact.type.in_(FACTS_TYPES)).count(),
        "published_posts": db.query(Post).filter(Post.status == PostStatus.PUBLISHED.value).count(),
        "total_leads": db.query(Lead).count(),
        "media_files": db.query(Media).count(),
    }
    return {
        "metrics": metrics,
        "recent_activity": _recent_activity(db),
        "system_health": system_health(db, media_manager),
    }

@router.get("/health")
def admin_health(
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
    media_manager: MediaManager = Depends(get_media_manager),
):
    return system_health(db, media_manager)
