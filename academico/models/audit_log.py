"""Audit log model — append-only."""

from sqlalchemy import Column, Integer, String, Text, DateTime, func
from academico.db.base import Base


class AuditLog(Base):
    """Immutable audit trail for logins and data mutations.

    This table is APPEND-ONLY: the CRUD registry exposes it read-only and no
    service updates or deletes its rows.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_cpf = Column(String(14), nullable=True, index=True)
    actor_tipo = Column(String(20), nullable=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. "crud.update"
    resource_type = Column(String(50), nullable=False, index=True)  # alunos, aulas, usuario, etc.
    resource_id = Column(String(100), nullable=True)
    new_value_json = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
