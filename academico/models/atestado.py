"""Medical certificate models."""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, Enum, func,
)
from sqlalchemy.orm import relationship
from academico.db.base import Base


class StatusAtestado(str, enum.Enum):
    Pendente = "Pendente"
    Analisando = "Analisando"
    Aprovado = "Aprovado"
    Rejeitado = "Rejeitado"


class AtestadoMedico(Base):
    """Medical certificate submitted by a student to justify absences."""
    __tablename__ = "atestados_medicos"

    id_atestado = Column(Integer, primary_key=True, autoincrement=True)
    id_aluno = Column(Integer, ForeignKey("alunos.id_aluno"), nullable=False, index=True)
    data_inicio = Column(Date, nullable=False)
    data_fim = Column(Date, nullable=False)
    motivo = Column(String(255), nullable=False)
    arquivo_path = Column(String(500), nullable=False)
    data_envio = Column(DateTime, server_default=func.now(), nullable=False)
    status = Column(Enum(StatusAtestado), default=StatusAtestado.Pendente, nullable=False)
    observacoes = Column(Text, nullable=True)
    avaliado_por = Column(String(14), nullable=True)
    data_avaliacao = Column(DateTime, nullable=True)
    justificativa_rejeicao = Column(Text, nullable=True)

    aluno = relationship("Aluno", back_populates="atestados")
    aulas_justificadas = relationship(
        "AtestadoAula", back_populates="atestado", cascade="all, delete-orphan",
    )


class AtestadoAula(Base):
    """Aula covered by a certificate (composite key)."""
    __tablename__ = "atestado_aulas"

    id_atestado = Column(
        Integer, ForeignKey("atestados_medicos.id_atestado", ondelete="CASCADE"), primary_key=True,
    )
    id_aula = Column(Integer, ForeignKey("aulas.id_aula", ondelete="CASCADE"), primary_key=True)
    aplicado = Column(Boolean, default=False, nullable=False)
    data_aplicacao = Column(DateTime, nullable=True)

    atestado = relationship("AtestadoMedico", back_populates="aulas_justificadas")
    aula = relationship("Aula")
