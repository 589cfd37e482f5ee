import math
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, selectinload
from ..db import get_db
from ..models import Idea, AIArtifact, User, ArtifactType, ArtifactStatus, IdeaStatus
from ..schemas import GenerateOutlineIn, GenerateIdeaOut, IdeaWithArtifactsOut, Pagination
from ..security.auth import require_user
from ..services.ai import run_task
from ..logging_setup import log_event

router = APIRouter(prefix="/api/ideas", tags=["ideas"])

@router.post("/generate", response_model=GenerateIdeaOut)
def generate_idea(
    body: GenerateOutlineIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    payload = body.model_dump(exclude={"idea_id"})
    task = run_task("generate-outline", payload)
    if task["status"] != "completed":
        raise HTTPException(status_code=500, detail="Failed to generate idea")

    # DRAFT until its outline is approved
    idea = Idea(
        user_id=user.id,
        title=body.topic,
        description=f"Generated idea for: {body.topic}",
        status=IdeaStatus.DRAFT.value,
        priority="MEDIUM",
        tags=body.keywords or [],
    )
    db.add(idea)
    db.flush()

    artifact = AIArtifact(
        user_id=user.id,
        idea_id=idea.id,
        type=ArtifactType.OUTLINE.value,
        title=f"Outline for: {body.topic}",
        content=task["output"],
        status=ArtifactStatus.PENDING_REVIEW.value,
        meta={"task_id": task["id"], "input": payload},
    )
    db.add(artifact)
    db.commit()
    db.refresh(idea)
    db.refresh(artifact)

    log_event("idea_generated", idea_id=idea.id, artifact_id=artifact.id, user_id=user.id)
    return {"success": True, "idea": idea, "task": task, "artifact": artifact}

@router.get("")
@router.get("/generate")
def list_ideas(
    page: int = 1,
    limit: int = 10,
    status: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    page = max(1, page)
    limit = max(1, min(limit, 100))

    query = db.query(Idea).filter(Idea.user_id == user.id)
    if status:
        query = query.filter(Idea.status == status)

    total = query.count()
    ideas = (
        query.options(selectinload(Idea.artifacts))
        .order_by(Idea.created_at.desc(), Idea.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "ideas": [IdeaWithArtifactsOut.model_validate(i) for i in ideas],
        "pagination": Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    }
