from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import ADMIN, User, require_role
from app.core.database import as_utc, utcnow
from app.models.audit_log import AuditLog
from app.schemas.audit_log import AuditLogOut

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


@router.get("", response_model=List[AuditLogOut])
def list_audit_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
    start_date: Optional[datetime] = Query(None, description="ISO date-time"),
    end_date: Optional[datetime] = Query(None, description="ISO date-time"),
    actor: Optional[str] = Query(None, description="Filter by actor email"),
    entity_type: Optional[str] = Query(None, description="rental|payment|refund|invoice|review"),
    action: Optional[str] = Query(None),
    rental_id: Optional[int] = Query(None),
    risk_level: Optional[str] = Query(None, description="low|high"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    q = db.query(AuditLog)

    if start_date:
        q = q.filter(AuditLog.created_at >= as_utc(start_date))
    if end_date:
        q = q.filter(AuditLog.created_at <= as_utc(end_date))
    if actor:
        q = q.filter(AuditLog.actor_email == actor)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if action:
        q = q.filter(AuditLog.action == action)
    if rental_id is not None:
        q = q.filter(AuditLog.rental_id == rental_id)
    if risk_level:
        q = q.filter(AuditLog.risk_level == risk_level)

    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()


@router.get("/stats")
def audit_log_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    start_today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)

    total = db.query(AuditLog).count()
    today = db.query(AuditLog).filter(AuditLog.created_at >= start_today).count()
    last_week = db.query(AuditLog).filter(AuditLog.created_at >= start_today - timedelta(days=7)).count()
    high_risk = db.query(AuditLog).filter(AuditLog.risk_level == "high").count()
    refunds = db.query(AuditLog).filter(AuditLog.action == "refunded").count()

    return {
        "total": total,
        "today": today,
        "last_7_days": last_week,
        "high_risk": high_risk,
        "refunds": refunds,
    }
