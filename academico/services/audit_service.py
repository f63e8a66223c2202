"""Audit service — append-only trail of logins, CRUD mutations and reviews."""

import json
from typing import Any, Dict, Iterable, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from academico.core.principal import DisplaySession
from academico.models.audit_log import AuditLog


def resource_key(record: Any, columns: Iterable[str]) -> Optional[str]:
    """Comma-joined primary-key values of ``record``, or None when none are present."""
    if not isinstance(record, dict):
        return None
    values = [str(record[c]) for c in columns if record.get(c) is not None]
    return ",".join(values) or None


def _actor_tipo(session: DisplaySession) -> str:
    # "Admin>Coordenador" while an Admin acts with a lower role
    if session.is_impersonating:
        return f"{session.tipo.value}>{session.tipo_login.value}"
    return session.tipo_login.value


class AuditService:
    """Writes audit entries. Nothing here updates or deletes them."""

    @staticmethod
    def log(
        db: Session,
        actor_cpf: Optional[str],
        actor_tipo: Optional[str],
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        new_value: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Write a single audit entry and commit it.

        Args:
            action: e.g. "auth.login", "crud.update", "atestado.avaliar"
            resource_type: canonical collection name, or the workflow's table
        """
        entry = AuditLog(
            actor_cpf=actor_cpf,
            actor_tipo=actor_tipo,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            new_value_json=json.dumps(new_value, default=str) if new_value else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(entry)
        db.commit()
        return entry

    @staticmethod
    def log_from_request(
        db: Session,
        request: Request,
        session: Optional[DisplaySession],
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        new_value: Optional[Any] = None,
    ) -> AuditLog:
        """Audit an API call; the actor comes from the session (None for public routes)."""
        return AuditService.log(
            db=db,
            actor_cpf=session.cpf if session else None,
            actor_tipo=_actor_tipo(session) if session else None,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            new_value=new_value,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent", "")[:500],
        )

    @staticmethod
    def query_logs(
        db: Session,
        actor_cpf: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Dict[str, Any]:
        """Newest entries first. ``action`` matches as a substring."""
        query = db.query(AuditLog)
        if actor_cpf:
            query = query.filter(AuditLog.actor_cpf == actor_cpf)
        if action:
            query = query.filter(AuditLog.action.ilike(f"%{action}%"))
        if resource_type:
            query = query.filter(AuditLog.resource_type == resource_type)

        total = query.count()
        logs = (
            query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"logs": logs, "total": total, "page": page, "page_size": page_size}


audit_service = AuditService()
