"""Class session, attachments, attendance and non-school-day models."""

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, func,
)
from sqlalchemy.orm import relationship
from academico.db.base import Base


class Aula(Base):
    """A scheduled class session of a subject for a class group."""
    __tablename__ = "aulas"

    id_aula = Column(Integer, primary_key=True, autoincrement=True)
    id_turma = Column(Integer, ForeignKey("turmas.id_turma"), nullable=False, index=True)
    id_materia = Column(Integer, ForeignKey("materias.id_materia"), nullable=False, index=True)
    data_aula = Column(DateTime, nullable=False)
    horario = Column(String(5), nullable=True)  # HH:MM
    duracao_minutos = Column(Integer, nullable=True)
    aula_concluida = Column(Boolean, default=False, nullable=False)
    presencas_aplicadas = Column(Boolean, default=False, nullable=False)
    observacoes = Column(Text, nullable=True)
    descricao = Column(Text, nullable=True)
    planejamento = Column(Text, nullable=True)
    metodologia = Column(Text, nullable=True)
    conteudo_ministrado = Column(Text, nullable=True)
    metodologia_aplicada = Column(Text, nullable=True)
    observacoes_aula = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    turma = relationship("Turma", back_populates="aulas")
    materia = relationship("Materia", back_populates="aulas")
    presencas = relationship("Presenca", back_populates="aula", cascade="all, delete-orphan")
    docs = relationship("DocAula", back_populates="aula", cascade="all, delete-orphan")


class DocAula(Base):
    __tablename__ = "docs_aulas"

    id_doc_aula = Column(Integer, primary_key=True, autoincrement=True)
    id_aula = Column(Integer, ForeignKey("aulas.id_aula", ondelete="CASCADE"), nullable=False)
    src = Column(String(500), nullable=False)  # object key in storage
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    aula = relationship("Aula", back_populates="docs")


class Presenca(Base):
    """Attendance of one student in one aula."""
    __tablename__ = "presencas"

    id_presenca = Column(Integer, primary_key=True, autoincrement=True)
    id_aula = Column(Integer, ForeignKey("aulas.id_aula", ondelete="CASCADE"), nullable=False, index=True)
    id_aluno = Column(Integer, ForeignKey("alunos.id_aluno"), nullable=False, index=True)
    id_professor = Column(String(14), ForeignKey("professores.id_professor"), nullable=True)
    presente = Column(Boolean, nullable=False, default=False)
    justificativa = Column(Text, nullable=True)
    data_registro = Column(DateTime, server_default=func.now(), nullable=False)

    aula = relationship("Aula", back_populates="presencas")
    aluno = relationship("Aluno", back_populates="presencas")


class DiaNaoLetivo(Base):
    __tablename__ = "dias_nao_letivos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    data = Column(Date, nullable=False, unique=True)
    descricao = Column(String(255), nullable=True)
