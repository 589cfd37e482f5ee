import math
from typing import Literal
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException, Query
from sqlalchemy.orm import Session
from ..config import settings
from ..db import get_db
from ..models import Media, User
from ..schemas import MediaOut, MediaListOut, Pagination
from ..security.auth import require_user
from ..services.guardrails import media_issues
from ..services.media.manager import MediaManager, get_media_manager, validate_upload
from ..services.media.types import (
    MediaUploadOptions,
    MediaDeleteOptions,
    MediaTransformOptions,
    MediaValidationError,
    MediaAdapterNotFound,
    MediaProviderError,
)
from ..logging_setup import log_event

router = APIRouter(prefix="/api/media", tags=["media"])

def _utcnow():
    return datetime.now(timezone.utc)

def _media_out(media: Media) -> MediaOut:
    out = MediaOut.model_validate(media)
    out.issues = media_issues(media.mimetype, media.size, media.alt_text)
    return out

@router.post("")
def upload_media(
    file: UploadFile | None = File(None),
    provider: str | None = Form(None),
    alt_text: str | None = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    media_manager: MediaManager = Depends(get_media_manager),
):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    mimetype = file.content_type or "application/octet-stream"
    max_bytes = settings.media_max_upload_mb * 1024 * 1024
    try:
        validate_upload(mimetype, file.size or 0)
        # Never buffer more than one byte past the limit
        data = file.file.read(max_bytes + 1)
        validate_upload(mimetype, len(data))
    except MediaValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    provider = provider.upper() if provider else None
    if provider and not media_manager.has_provider(provider):
        raise HTTPException(status_code=400, detail=f"Media provider not available: {provider}")

    options = MediaUploadOptions(
        filename=file.filename,
        mimetype=mimetype,
        size=len(data),
        data=data,
        metadata={"uploaded_by": user.id, "uploaded_at": _utcnow().isoformat()},
    )
    try:
        result = media_manager.upload(options, provider or None)
    except MediaAdapterNotFound as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except MediaProviderError as e:
        log_event("media_upload_error", level="error", provider=provider, error=str(e), user_id=user.id)
        raise HTTPException(status_code=500, detail="Failed to upload media") from e

    media = Media(
        uploaded_by_id=user.id,
        url=result.url,
        key=result.key,
        filename=file.filename,
        mimetype=mimetype,
        size=result.size,
        width=result.width,
        height=result.height,
        provider=result.provider.value,
        alt_text=alt_text,
        meta=result.metadata,
    )
    db.add(media)
    db.commit()
    db.refresh(media)

    log_event("media_record_created", media_id=media.id, provider=media.provider, user_id=user.id)
    return {"success": True, "media": _media_out(media), "upload_result": result.model_dump(mode="json")}

@router.get("", response_model=MediaListOut)
def list_media(
    page: int = 1,
    limit: int = 20,
    provider: str | None = None,
    mimetype: str | None = None,
    issues_only: bool = False,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    page = max(1, page)
    limit = max(1, min(limit, 100))

    query = db.query(Media)
    if provider:
        query = query.filter(Media.provider == provider)
    if mimetype:
        query = query.filter(Media.mimetype.startswith(mimetype))

    if issues_only:
        # Issues are derived, not stored; filter after load
        items = [_media_out(m) for m in query.order_by(Media.created_at.desc(), Media.id.desc()).all()]
        items = [m for m in items if m.issues]
        total = len(items)
        items = items[(page - 1) * limit: page * limit]
    else:
        total = query.count()
        rows = query.order_by(Media.created_at.desc(), Media.id.desc()).offset((page - 1) * limit).limit(limit).all()
        items = [_media_out(m) for m in rows]

    return {
        "media": items,
        "pagination": Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    }

@router.get("/providers")
def list_providers(
    user: User = Depends(require_user),
    media_manager: MediaManager = Depends(get_media_manager),
):
    providers = media_manager.available_providers()
    default = media_manager.default_adapter.name.value if media_manager.default_adapter else None
    return {"providers": [p.value for p in providers], "default": default}

@router.get("/{media_id}/url")
def media_url(
    media_id: int,
    width: int | None = Query(None, gt=0),
    height: int | None = Query(None, gt=0),
    quality: int | None = Query(None, ge=1, le=100),
    format: Literal["jpg", "png", "webp", "avif"] | None = None,
    fit: Literal["cover", "contain", "fill", "inside", "outside"] | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    media_manager: MediaManager = Depends(get_media_manager),
):
    media = db.query(Media).filter(Media.id == media_id).first()
    if not media:
        raise HTTPException(status_code=404, detail="Media not found")
    if not media.key:
        return {"url": media.url}

    transforms = MediaTransformOptions(width=width, height=height, quality=quality, format=format, fit=fit)
    try:
        return {"url": media_manager.get_url(media.key, media.provider, transforms)}
    except MediaAdapterNotFound as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

@router.delete("")
def delete_media(
    id: int | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
    media_manager: MediaManager = Depends(get_media_manager),
):
    if id is None:
        raise HTTPException(status_code=400, detail="Media ID required")

    media = db.query(Media).filter(Media.id == id).first()
    if not media:
        raise HTTPException(status_code=404, detail="Media not found")

    # Storage first, then the record; nothing compensates if the second step fails
    if media.key:
        try:
            media_manager.delete(MediaDeleteOptions(key=media.key, url=media.url), media.provider)
        except MediaAdapterNotFound as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except MediaProviderError as e:
            log_event("media_delete_error", level="error", media_id=media.id, provider=media.provider, error=str(e))
            raise HTTPException(status_code=500, detail="Failed to delete media") from e

    db.delete(media)
    db.commit()
    log_event("media_record_deleted", media_id=id, user_id=user.id)
    return {"success": True, "message": "Media deleted successfully"}
