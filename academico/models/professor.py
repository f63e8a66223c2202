"""Staff model shared by professors and coordinators."""

from sqlalchemy import Column, String, Text, Date, DateTime, func
from sqlalchemy.orm import relationship
from academico.db.base import Base


class Professor(Base):
    """Staff record keyed by the same CPF as the login account."""
    __tablename__ = "professores"

    id_professor = Column(String(14), primary_key=True)
    nome = Column(String(100), nullable=False)
    sobrenome = Column(String(150), nullable=False)
    rg = Column(String(12), nullable=False)
    data_nasc = Column(Date, nullable=False)
    cargo = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    tel = Column(String(20), nullable=True)
    foto_path = Column(String(255), nullable=True)
    docs_path = Column(String(255), nullable=True)
    descricao = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    notas = relationship("Nota", back_populates="professor")
