from datetime import datetime, timezone
from typing import Any
from sqlalchemy.orm import Session

from command_center.models import AIArtifact, Idea, User, ArtifactType, ArtifactStatus, IdeaStatus, FACTS_TYPES
from command_center.security.rbac import can_access
from command_center.logging_setup import log_event

class ReviewError(Exception):
    pass

class ArtifactNotFound(ReviewError):
    pass

class InvalidArtifactType(ReviewError):
    pass

class ReviewConflict(ReviewError):
    """The artifact has already been approved or rejected."""

def _utcnow():
    return datetime.now(timezone.utc)

def transition(current: str, approved: bool) -> str:
    """PENDING_REVIEW -> APPROVED | REJECTED. Decided artifacts stay decided."""
    if current != ArtifactStatus.PENDING_REVIEW.value:
        raise ReviewConflict(f"Artifact already reviewed (status {current})")
    return ArtifactStatus.APPROVED.value if approved else ArtifactStatus.REJECTED.value

def load_for_review(db: Session, artifact_id: int, user: User, allowed_types: tuple[str, ...]) -> AIArtifact:
    artifact = (
        db.query(AIArtifact)
        .filter(AIArtifact.id == artifact_id)
        .with_for_update()
        .first()
    )
    if not artifact or not can_access(user, artifact.user_id):
        raise ArtifactNotFound(artifact_id)
    if artifact.type not in allowed_types:
        raise InvalidArtifactType(artifact.type)
    return artifact

def _apply_decision(artifact: AIArtifact, approved: bool, reviewer: User, feedback: str | None, extra_meta: dict[str, Any] | None = None):
    artifact.status = transition(artifact.status, approved)
    artifact.approved = approved
    artifact.approved_at = _utcnow() if approved else None
    # Reassign so the JSON column is flagged dirty
    artifact.meta = {
        **(artifact.meta or {}),
        "feedback": feedback,
        "reviewed_at": _utcnow().isoformat(),
        "reviewed_by": reviewer.id,
        **(extra_meta or {}),
    }

def _cascade_to_idea(db: Session, artifact: AIArtifact, approved: bool) -> Idea | None:
    if not artifact.idea_id:
        return None
    idea = db.query(Idea).filter(Idea.id == artifact.idea_id).first()
    if idea and approved:
        idea.status = IdeaStatus.ACTIVE.value
    return idea

def review_outline(db: Session, user: User, artifact_id: int, approved: bool, feedback: str | None = None) -> tuple[AIArtifact, Idea | None]:
    artifact = load_for_review(db, artifact_id, user, (ArtifactType.OUTLINE.value,))
    _apply_decision(artifact, approved, user, feedback)
    idea = _cascade_to_idea(db, artifact, approved)

    db.commit()
    db.refresh(artifact)
    if idea:
        db.refresh(idea)

    log_event("outline_reviewed", artifact_id=artifact.id, idea_id=artifact.idea_id, status=artifact.status, reviewer_id=user.id)
    return artifact, idea

def review_facts(db: Session, user: User, artifact_id: int, reviewed_facts: list[dict[str, Any]], feedback: str | None = None) -> tuple[AIArtifact, Idea | None, int]:
    """
    Approves the artifact when at least one fact survived review, rejects it otherwise.
    The content keeps the originally generated facts next to the reviewed set.
    """
    artifact = load_for_review(db, artifact_id, user, FACTS_TYPES)

    approved_count = sum(1 for f in reviewed_facts if f.get("approved"))
    total = len(reviewed_facts)
    approved = approved_count > 0

    _apply_decision(
        artifact,
        approved,
        user,
        feedback,
        extra_meta={
            "approval_stats": {
                "approved": approved_count,
                "rejected": total - approved_count,
                "total": total,
            }
        },
    )
    artifact.content = {
        "original_facts": artifact.content,
        "reviewed_facts": reviewed_facts,
        "approved_facts_count": approved_count,
        "total_facts_count": total,
    }
    idea = _cascade_to_idea(db, artifact, approved)

    db.commit()
    db.refresh(artifact)
    if idea:
        db.refresh(idea)

    log_event("facts_reviewed", artifact_id=artifact.id, idea_id=artifact.idea_id, status=artifact.status, approved_count=approved_count, total_count=total, reviewer_id=user.id)
    return artifact, idea, approved_count

def pending_queue(db: Session, user: User, types: tuple[str, ...]) -> list[AIArtifact]:
    """Oldest first so the review queue drains in arrival order."""
    return (
        db.query(AIArtifact)
        .filter(
            AIArtifact.type.in_(types),
            AIArtifact.status == ArtifactStatus.PENDING_REVIEW.value,
            AIArtifact.user_id == user.id,
        )
        .order_by(AIArtifact.created_at.asc(), AIArtifact.id.asc())
        .all()
    )

def has_approved_artifacts(db: Session, post_id: int, idea_id: int | None) -> dict[str, bool]:
    """Approved outline/facts linked to a post directly or through its idea."""
    link = AIArtifact.post_id == post_id
    if idea_id:
        link = link | (AIArtifact.idea_id == idea_id)

    approved_types = {
        t for (t,) in db.query(AIArtifact.type)
        .filter(link, AIArtifact.status == ArtifactStatus.APPROVED.value)
        .distinct()
        .all()
    }
    return {
        "hasApprovedOutline": ArtifactType.OUTLINE.value in approved_types,
        "hasApprovedFacts": any(t in approved_types for t in FACTS_TYPES),
    }
