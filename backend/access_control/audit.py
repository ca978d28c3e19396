import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import AuditLog


logger = logging.getLogger(__name__)

HIDDEN = "[HIDDEN]"


def _dump(values: dict[str, Any] | None) -> str | None:
    if not values:
        return None
    return json.dumps(values, default=str, sort_keys=True)


def log_audit_event(
    db: Session,
    *,
    user_id: int | None,
    action: str,
    resource_type: str,
    resource_id: str | int | None = None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Persist an audit record. Failures are logged and never reach the caller."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        old_values=_dump(old_values),
        new_values=_dump(new_values),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Failed to log audit event {action} on {resource_type}: {exc}")


def list_audit_logs(
    db: Session,
    *,
    page: int = 1,
    limit: int = 50,
    action: str | None = None,
    resource_type: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> tuple[list[AuditLog], int]:
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if resource_type:
        query = query.filter(AuditLog.resource_type == resource_type)
    if start:
        query = query.filter(AuditLog.created_at >= start)
    if end:
        query = query.filter(AuditLog.created_at <= end)

    total = query.count()
    logs = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return logs, total
