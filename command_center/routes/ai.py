from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, selectinload
from ..db import get_db
from ..models import AIArtifact, Idea, User, ArtifactType, ArtifactStatus, FACTS_TYPES
from ..schemas import (
    GenerateOutlineIn,
    GenerateFactsIn,
    GenerateDraftIn,
    GenerateArtifactOut,
    ChooseOutlineIn,
    ApproveFactsIn,
    ReviewOut,
    FactsReviewOut,
    ReviewQueueOut,
    ArtifactOut,
    ArtifactDetailOut,
)
from ..security.auth import require_user
from ..security.rbac import can_access
from ..services.ai import run_task
from ..services import review
from ..logging_setup import log_event

router = APIRouter(prefix="/api/ai", tags=["ai"])

def _owned_idea(db: Session, user: User, idea_id: int | None) -> Idea | None:
    if idea_id is None:
        return None
    idea = db.query(Idea).filter(Idea.id == idea_id).first()
    if not idea or not can_access(user, idea.user_id):
        raise HTTPException(status_code=404, detail="Idea not found or unauthorized")
    return idea

def _create_artifact(db: Session, user: User, artifact_type: ArtifactType, title: str, task: dict, payload: dict, idea: Idea | None) -> AIArtifact:
    artifact = AIArtifact(
        user_id=user.id,
        idea_id=idea.id if idea else None,
        type=artifact_type.value,
        title=title,
        content=task["output"],
        status=ArtifactStatus.PENDING_REVIEW.value,
        meta={"task_id": task["id"], "input": payload},
    )
    db.add(artifact)
    db.commit()
    db.refresh(artifact)
    log_event("artifact_created", artifact_id=artifact.id, artifact_type=artifact.type, idea_id=artifact.idea_id, user_id=user.id)
    return artifact

def _list_artifacts(db: Session, user: User, types: tuple[str, ...], status_filter: str | None, topic: str | None = None):
    query = (
        db.query(AIArtifact)
        .options(selectinload(AIArtifact.user), selectinload(AIArtifact.idea))
        .filter(AIArtifact.type.in_(types), AIArtifact.user_id == user.id)
    )
    if status_filter:
        query = query.filter(AIArtifact.status == status_filter)
    if topic:
        query = query.filter(AIArtifact.title.ilike(f"%{topic}%"))
    return query.order_by(AIArtifact.created_at.desc(), AIArtifact.id.desc()).all()

def _review_http_error(e: review.ReviewError, not_found_detail: str) -> HTTPException:
    if isinstance(e, review.ArtifactNotFound):
        return HTTPException(status_code=404, detail=not_found_detail)
    if isinstance(e, review.ReviewConflict):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail="Invalid artifact type")

# --- Outline ---

@router.post("/outline", response_model=GenerateArtifactOut)
def generate_outline(
    body: GenerateOutlineIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    idea = _owned_idea(db, user, body.idea_id)
    payload = body.model_dump(exclude={"idea_id"})
    task = run_task("generate-outline", payload)
    if task["status"] != "completed":
        raise HTTPException(status_code=500, detail="Failed to generate outline")

    artifact = _create_artifact(db, user, ArtifactType.OUTLINE, f"Outline: {body.topic}", task, payload, idea)
    return {"success": True, "task": task, "artifact": artifact}

@router.get("/outline")
def list_outlines(
    status: str = ArtifactStatus.PENDING_REVIEW.value,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    outlines = _list_artifacts(db, user, (ArtifactType.OUTLINE.value,), status)
    return {"outlines": [ArtifactDetailOut.model_validate(a) for a in outlines]}

@router.post("/outline/choose", response_model=ReviewOut)
def choose_outline(
    body: ChooseOutlineIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    try:
        artifact, idea = review.review_outline(db, user, body.artifact_id, body.approved, body.feedback)
    except review.ReviewError as e:
        db.rollback()
        raise _review_http_error(e, "Outline not found or unauthorized") from e

    return {
        "success": True,
        "artifact": artifact,
        "idea": idea,
        "message": "Outline approved successfully" if body.approved else "Outline rejected",
    }

@router.get("/outline/choose", response_model=ReviewQueueOut)
def pending_outlines(
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    items = review.pending_queue(db, user, (ArtifactType.OUTLINE.value,))
    return {"items": items, "count": len(items)}

# --- Facts ---

@router.post("/facts", response_model=GenerateArtifactOut)
def generate_facts(
    body: GenerateFactsIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    idea = _owned_idea(db, user, body.idea_id)
    payload = body.model_dump(exclude={"idea_id"})
    task = run_task("generate-facts", payload)
    if task["status"] != "completed":
        raise HTTPException(status_code=500, detail="Failed to generate facts")

    artifact = _create_artifact(db, user, ArtifactType.FACTS, f"Facts: {body.topic}", task, payload, idea)
    return {"success": True, "task": task, "artifact": artifact}

@router.get("/facts")
def list_facts(
    status: str | None = ArtifactStatus.PENDING_REVIEW.value,
    topic: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    facts = _list_artifacts(db, user, FACTS_TYPES, status, topic)
    return {"facts": [ArtifactDetailOut.model_validate(a) for a in facts]}

@router.post("/facts/approve", response_model=FactsReviewOut)
def approve_facts(
    body: ApproveFactsIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    reviewed = [f.model_dump() for f in body.approved_facts]
    try:
        artifact, idea, approved_count = review.review_facts(db, user, body.artifact_id, reviewed, body.feedback)
    except review.ReviewError as e:
        db.rollback()
        raise _review_http_error(e, "Facts artifact not found or unauthorized") from e

    return {
        "success": True,
        "artifact": artifact,
        "idea": idea,
        "approved_count": approved_count,
        "total_count": len(reviewed),
        "message": f"{approved_count} facts approved successfully" if approved_count else "All facts rejected",
    }

@router.get("/facts/approve", response_model=ReviewQueueOut)
def pending_facts(
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    items = review.pending_queue(db, user, FACTS_TYPES)
    return {"items": items, "count": len(items)}

# --- Draft ---

@router.post("/draft", response_model=GenerateArtifactOut)
def generate_draft(
    body: GenerateDraftIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    idea = _owned_idea(db, user, body.idea_id)
    approved = (
        db.query(AIArtifact)
        .filter(AIArtifact.idea_id == idea.id, AIArtifact.status == ArtifactStatus.APPROVED.value)
        .order_by(AIArtifact.approved_at.desc())
        .all()
    )
    outline = next((a for a in approved if a.type == ArtifactType.OUTLINE.value), None)
    if not outline:
        raise HTTPException(status_code=400, detail="Idea has no approved outline")

    facts = []
    for artifact in approved:
        if artifact.type in FACTS_TYPES and isinstance(artifact.content, dict):
            facts.extend(
                f["statement"] for f in artifact.content.get("reviewed_facts", []) if f.get("approved")
            )

    payload = {
        "outline": outline.content,
        "facts": facts,
        "tone": body.tone,
        "length": body.length,
    }
    task = run_task("generate-content", payload)
    if task["status"] != "completed":
        raise HTTPException(status_code=500, detail="Failed to generate draft")

    artifact = _create_artifact(
        db, user, ArtifactType.DRAFT, f"Draft: {idea.title}", task,
        {"idea_id": idea.id, "outline_id": outline.id, "tone": body.tone, "length": body.length},
        idea,
    )
    return {"success": True, "task": task, "artifact": artifact}

# --- Artifacts ---

@router.get("/artifacts")
def list_artifacts(
    type: str | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    query = db.query(AIArtifact).filter(AIArtifact.user_id == user.id)
    if type:
        query = query.filter(AIArtifact.type == type)
    if status:
        query = query.filter(AIArtifact.status == status)
    artifacts = query.order_by(AIArtifact.created_at.desc(), AIArtifact.id.desc()).all()
    return {"artifacts": [ArtifactOut.model_validate(a) for a in artifacts]}

@router.get("/artifacts/{artifact_id}")
def get_artifact(
    artifact_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    artifact = (
        db.query(AIArtifact)
        .options(selectinload(AIArtifact.user), selectinload(AIArtifact.idea))
        .filter(AIArtifact.id == artifact_id)
        .first()
    )
    if not artifact:
        raise HTTPException(status_code=404, detail="Artifact not found")
    if not can_access(user, artifact.user_id):
        raise HTTPException(status_code=403, detail="Access denied")
    return {"artifact": ArtifactDetailOut.model_validate(artifact)}
