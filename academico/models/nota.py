"""Grade model."""

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, DateTime, ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from academico.db.base import Base


class Nota(Base):
    """One assessment grade; a student has at most one per assessment type."""
    __tablename__ = "notas"
    __table_args__ = (
        UniqueConstraint(
            "id_aluno", "id_materia", "id_turma", "tipo_avaliacao",
            name="uc_aluno_materia_turma_tipo",
        ),
    )

    id_nota = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(100), nullable=False)
    id_aluno = Column(Integer, ForeignKey("alunos.id_aluno"), nullable=False)
    id_materia = Column(Integer, ForeignKey("materias.id_materia"), nullable=False)
    id_turma = Column(Integer, ForeignKey("turmas.id_turma"), nullable=False)
    id_professor = Column(String(14), ForeignKey("professores.id_professor"), nullable=False)
    valor_nota = Column(Numeric(4, 2), nullable=False)
    tipo_avaliacao = Column(String(50), nullable=False)
    observacoes = Column(Text, nullable=True)
    data_lancamento = Column(DateTime, server_default=func.now(), nullable=False)

    aluno = relationship("Aluno", back_populates="notas")
    professor = relationship("Professor", back_populates="notas")
