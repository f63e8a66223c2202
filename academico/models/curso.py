"""Course, subject, class group and enrollment models."""

import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from academico.db.base import Base


class StatusMatricula(str, enum.Enum):
    Ativa = "Ativa"
    Trancada = "Trancada"
    Cancelada = "Cancelada"


class Curso(Base):
    __tablename__ = "cursos"

    id_curso = Column(Integer, primary_key=True, autoincrement=True)
    nome_curso = Column(String(255), nullable=False)
    carga_horaria_total = Column(Integer, nullable=False)
    descricao = Column(Text, nullable=True)
    docs_path = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    materias = relationship("CursoMateria", back_populates="curso", cascade="all, delete-orphan")
    turmas = relationship("Turma", back_populates="curso")


class Materia(Base):
    __tablename__ = "materias"

    id_materia = Column(Integer, primary_key=True, autoincrement=True)
    nome_materia = Column(String(180), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    cursos = relationship("CursoMateria", back_populates="materia")
    aulas = relationship("Aula", back_populates="materia")


class CursoMateria(Base):
    __tablename__ = "curso_materias"

    id_curso = Column(Integer, ForeignKey("cursos.id_curso", ondelete="CASCADE"), primary_key=True)
    id_materia = Column(Integer, ForeignKey("materias.id_materia", ondelete="CASCADE"), primary_key=True)
    carga_horaria = Column(Integer, nullable=False)

    curso = relationship("Curso", back_populates="materias")
    materia = relationship("Materia", back_populates="cursos")


class Turma(Base):
    __tablename__ = "turmas"

    id_turma = Column(Integer, primary_key=True, autoincrement=True)
    id_curso = Column(Integer, ForeignKey("cursos.id_curso"), nullable=False)
    nome_turma = Column(String(100), nullable=False)
    ano_letivo = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    curso = relationship("Curso", back_populates="turmas")
    alunos = relationship("TurmaAluno", back_populates="turma", cascade="all, delete-orphan")
    aulas = relationship("Aula", back_populates="turma")


class TurmaAluno(Base):
    """Enrollment of a student in a class group (composite key)."""
    __tablename__ = "turma_aluno"

    id_turma = Column(Integer, ForeignKey("turmas.id_turma", ondelete="CASCADE"), primary_key=True)
    id_aluno = Column(Integer, ForeignKey("alunos.id_aluno", ondelete="CASCADE"), primary_key=True)
    status_matricula = Column(Enum(StatusMatricula), default=StatusMatricula.Ativa, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    turma = relationship("Turma", back_populates="alunos")
    aluno = relationship("Aluno", back_populates="turmas")
