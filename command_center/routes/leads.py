import csv
import io
import math
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import Lead, User, LeadStatus
from ..schemas import LeadCreate, LeadUpdate, LeadOut, LeadCaptureOut, Pagination
from ..security.rbac import require_admin
from ..logging_setup import log_event

router = APIRouter(tags=["leads"])

EXPORT_COLUMNS = ("id", "email", "name", "company", "message", "source", "status", "notes", "created_at")

def _find_lead(db: Session, email: str) -> Lead | None:
    return db.query(Lead).filter(Lead.email == email).first()

def _already_subscribed(lead: Lead) -> dict:
    return {
        "success": True,
        "already_subscribed": True,
        "lead": lead,
        "message": "You are already subscribed",
    }

@router.post("/api/leads", response_model=LeadCaptureOut)
def capture_lead(body: LeadCreate, db: Session = Depends(get_db)):
    existing = _find_lead(db, body.email)
    if existing:
        return _already_subscribed(existing)

    lead = Lead(
        email=body.email,
        name=body.name,
        company=body.company,
        message=body.message,
        source=body.source or body.utm_source or "website",
        status=LeadStatus.NEW.value,
    )
    db.add(lead)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race to a concurrent capture of the same email
        db.rollback()
        existing = _find_lead(db, body.email)
        if not existing:
            raise
        return _already_subscribed(existing)
    db.refresh(lead)

    log_event("lead_captured", lead_id=lead.id, source=lead.source)
    return {
        "success": True,
        "already_subscribed": False,
        "lead": lead,
        "message": "Thanks for subscribing",
    }

@router.get("/api/admin/leads")
def list_leads(
    page: int = 1,
    limit: int = 20,
    status: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    page = max(1, page)
    limit = max(1, min(limit, 100))

    query = db.query(Lead)
    if status:
        query = query.filter(Lead.status == status)
    total = query.count()
    leads = query.order_by(Lead.created_at.desc(), Lead.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "leads": [LeadOut.model_validate(l) for l in leads],
        "pagination": Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    }

@router.get("/api/admin/leads/export")
def export_leads(
    status: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    query = db.query(Lead)
    if status:
        query = query.filter(Lead.status == status)
    leads = query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    for lead in leads:
        row = [getattr(lead, col) for col in EXPORT_COLUMNS]
        writer.writerow(["" if v is None else (v.isoformat() if isinstance(v, datetime) else v) for v in row])

    filename = f"leads-export-{datetime.now(timezone.utc).date().isoformat()}.csv"
    log_event("leads_exported", count=len(leads), user_id=user.id)
    return Response(
        content=buf.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.put("/api/admin/leads/{lead_id}", response_model=LeadOut)
def update_lead(
    lead_id: int,
    body: LeadUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")

    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "status" and value is None:
            continue
        setattr(lead, field, value)
    db.commit()
    db.refresh(lead)

    log_event("lead_updated", lead_id=lead.id, status=lead.status, user_id=user.id)
    return lead
