from typing import Optional

from app.core.auth import User
from app.models.audit_log import AuditLog
from sqlalchemy.orm import Session

# Actions that move money back out or tear down a confirmed booking
HIGH_RISK_ACTIONS = {"refunded"}


def _compute_risk_level(
    action: str,
    previous_status: Optional[str],
    explicit: Optional[str] = None,
) -> str:
    if explicit:
        return explicit
    if action in HIGH_RISK_ACTIONS:
        return "high"
    if action == "cancelled" and (previous_status or "").upper() == "CONFIRMED":
        return "high"
    return "low"


def log_audit(
    db: Session,
    *,
    actor: Optional[User],
    action: str,
    entity_type: str,
    entity_id: str,
    source: str = "api",
    status: Optional[str] = None,
    previous_status: Optional[str] = None,
    rental_id: Optional[int] = None,
    description: Optional[str] = None,
    risk_level: Optional[str] = None,
) -> AuditLog:
    """
    Stage an audit row in the caller's transaction.

    Not committed here: the row lands together with the change it describes,
    or not at all.
    """
    log = AuditLog(
        actor_id=actor.id if actor else "system",
        actor_email=actor.email if actor else None,
        actor_role=actor.role if actor else "system",
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        source=source if actor else "system",
        status=status,
        rental_id=rental_id,
        description=description,
        risk_level=_compute_risk_level(action, previous_status, risk_level),
    )
    db.add(log)
    return log
