"""Admin / Audit API router."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import AuditLogOut
from academico.services.audit_service import audit_service
from academico.services.crud_service import crud_registry
from academico.models import Aluno, Professor, Turma, Usuario, AuditLog
from academico.core.principal import DisplaySession
from academico.core.security import require_admin, require_coordenador

logger = logging.getLogger("academico")

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/audit")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    actor_cpf: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_coordenador),
):
    """Query audit logs (coordenador or admin)."""
    result = audit_service.query_logs(db, actor_cpf, action, resource_type, page, page_size)
    return {
        "logs": [AuditLogOut.model_validate(log) for log in result["logs"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """System health check — database."""
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)

    return {
        "database": "ok" if db_ok else "error",
        "status": "healthy" if db_ok else "degraded",
    }


@router.get("/stats")
async def system_stats(
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_admin),
):
    """Record counts and the collections exposed by the CRUD endpoint."""
    return {
        "total_usuarios": db.query(Usuario).count(),
        "total_alunos": db.query(Aluno).count(),
        "total_professores": db.query(Professor).count(),
        "total_turmas": db.query(Turma).count(),
        "total_audit_events": db.query(AuditLog).count(),
        "crud_tables": crud_registry.names(),
    }
