"""User account model."""

from sqlalchemy import Column, String, DateTime, Enum, func
from academico.db.base import Base
from academico.core.roles import TipoUsuario


class Usuario(Base):
    """Login account keyed by CPF, holding the stored (highest) role."""
    __tablename__ = "usuarios"

    cpf = Column(String(14), primary_key=True)
    senha_hash = Column(String(255), nullable=False)
    tipo = Column(Enum(TipoUsuario), nullable=False, default=TipoUsuario.Aluno)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
