from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import Post, Idea, User, PostStatus, RiskLevel
from ..schemas import PostCreate, PostUpdate, PostOut, PostEnvelope, PostSeoOut
from ..security.rbac import require_editor, require_admin
from ..services.guardrails import slugify, seo_flags, word_count, MIN_WORDS, SLUG_RE
from ..services.ai import run_task
from ..services.review import has_approved_artifacts
from ..logging_setup import log_event

router = APIRouter(prefix="/api/admin/posts", tags=["posts"])

# A HIGH risk post in any of these needs an approved outline and approved facts
REVIEW_GATED_STATUSES = (PostStatus.READY.value, PostStatus.SCHEDULED.value, PostStatus.PUBLISHED.value)

def _utcnow():
    return datetime.now(timezone.utc)

def _check_slug(db: Session, slug: str, post_id: int | None = None):
    if not SLUG_RE.match(slug):
        raise HTTPException(status_code=400, detail="Slug may only contain lowercase letters, numbers and hyphens")
    query = db.query(Post.id).filter(Post.slug == slug)
    if post_id is not None:
        query = query.filter(Post.id != post_id)
    if query.first():
        raise HTTPException(status_code=409, detail="A post with this slug already exists")

def _check_idea(db: Session, idea_id: int | None):
    if idea_id is not None and not db.query(Idea.id).filter(Idea.id == idea_id).first():
        raise HTTPException(status_code=404, detail="Idea not found")

def _refresh_flags(post: Post):
    post.flags = seo_flags(post.title, post.slug, post.content, post.meta_description, post.focus_keyword)

@router.get("")
def list_posts(
    status: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_editor),
):
    query = db.query(Post)
    if status:
        query = query.filter(Post.status == status)
    posts = query.order_by(Post.created_at.desc(), Post.id.desc()).all()
    return {"posts": [PostOut.model_validate(p) for p in posts]}

@router.get("/{post_id}", response_model=PostEnvelope)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_editor),
):
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"post": post}

@router.post("", response_model=PostEnvelope, status_code=201)
def create_post(
    body: PostCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_editor),
):
    slug = body.slug or slugify(body.title)
    _check_slug(db, slug)
    _check_idea(db, body.idea_id)

    post = Post(
        author_id=user.id,
        idea_id=body.idea_id,
        title=body.title,
        slug=slug,
        content=body.content,
        status=PostStatus.DRAFT.value,
        risk_level=body.risk_level,
        meta_description=body.meta_description,
        focus_keyword=body.focus_keyword,
    )
    _refresh_flags(post)
    db.add(post)
    db.commit()
    db.refresh(post)

    log_event("post_created", post_id=post.id, slug=post.slug, risk_level=post.risk_level, user_id=user.id)
    return {"post": post, "message": "Post created"}

@router.put("/{post_id}", response_model=PostEnvelope)
def update_post(
    post_id: int,
    body: PostUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_editor),
):
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    changes = body.model_dump(exclude_unset=True, exclude={"status"})
    if "slug" in changes and changes["slug"] and changes["slug"] != post.slug:
        _check_slug(db, changes["slug"], post.id)
    if "idea_id" in changes:
        _check_idea(db, changes["idea_id"])

    for field, value in changes.items():
        if field in ("title", "slug") and not value:
            continue
        setattr(post, field, value)

    target_status = body.status or post.status
    if post.risk_level == RiskLevel.HIGH.value and target_status in REVIEW_GATED_STATUSES:
        checks = has_approved_artifacts(db, post.id, post.idea_id)
        if not all(checks.values()):
            db.rollback()
            log_event("post_high_risk_blocked", level="warning", post_id=post.id, to_status=target_status, user_id=user.id, **checks)
            raise HTTPException(
                status_code=400,
                detail={
                    "error": f"Cannot move high-risk post to {target_status} status without approved outline and facts",
                    "details": checks,
                },
            )

    if body.status and body.status != post.status:
        if body.status == PostStatus.PUBLISHED.value:
            if word_count(post.content) < MIN_WORDS:
                db.rollback()
                raise HTTPException(status_code=400, detail=f"Content must be at least {MIN_WORDS} words")
            post.published_at = _utcnow()

        log_event("post_status_changed", post_id=post.id, from_status=post.status, to_status=body.status, user_id=user.id)
        post.status = body.status

    _refresh_flags(post)
    db.commit()
    db.refresh(post)
    return {"post": post, "message": "Post updated"}

@router.post("/{post_id}/seo", response_model=PostSeoOut)
def generate_post_seo(
    post_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_editor),
):
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if not post.content:
        raise HTTPException(status_code=400, detail="Post has no content to describe")

    payload = {
        "title": post.title,
        "content": post.content,
        "target_keyword": post.focus_keyword,
    }
    task = run_task("generate-seo", payload)
    if task["status"] != "completed":
        raise HTTPException(status_code=502, detail=task["error"] or "SEO generation failed")

    seo = task["output"]
    if seo.get("description"):
        post.meta_description = seo["description"]
    if not post.focus_keyword and seo["keywords"]:
        post.focus_keyword = seo["keywords"][0]
    _refresh_flags(post)
    db.commit()
    db.refresh(post)

    log_event("post_seo_generated", post_id=post.id, task_id=task["id"], user_id=user.id)
    return {"post": post, "seo": seo, "message": "SEO metadata generated"}

@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    # Detach artifacts instead of deleting review history
    for artifact in post.artifacts:
        artifact.post_id = None
    db.delete(post)
    db.commit()

    log_event("post_deleted", post_id=post_id, user_id=user.id)
    return {"success": True, "message": "Post deleted"}
