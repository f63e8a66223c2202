"""Student, address and contact models."""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from academico.db.base import Base


class Aluno(Base):
    """Enrolled student."""
    __tablename__ = "alunos"

    id_aluno = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(100), nullable=False)
    sobrenome = Column(String(150), nullable=False)
    cpf = Column(String(14), unique=True, nullable=False, index=True)
    rg = Column(String(12), nullable=False)
    nome_mae = Column(String(160), nullable=False)
    nome_pai = Column(String(160), nullable=True)
    data_nasc = Column(Date, nullable=False)
    email = Column(String(255), nullable=True)
    foto_path = Column(String(255), nullable=True)
    descricao = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    enderecos = relationship("Endereco", back_populates="aluno", cascade="all, delete-orphan")
    contatos = relationship("ContatoAluno", back_populates="aluno", cascade="all, delete-orphan")
    turmas = relationship("TurmaAluno", back_populates="aluno", cascade="all, delete-orphan")
    presencas = relationship("Presenca", back_populates="aluno")
    notas = relationship("Nota", back_populates="aluno")
    atestados = relationship("AtestadoMedico", back_populates="aluno")


class Endereco(Base):
    __tablename__ = "enderecos"

    id_endereco = Column(Integer, primary_key=True, autoincrement=True)
    id_aluno = Column(Integer, ForeignKey("alunos.id_aluno", ondelete="CASCADE"), nullable=False)
    cep = Column(String(9), nullable=False)
    rua = Column(String(255), nullable=False)
    cidade = Column(String(100), nullable=False)
    uf = Column(String(2), nullable=False)
    numero = Column(String(10), nullable=False)
    complemento = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    aluno = relationship("Aluno", back_populates="enderecos")


class ContatoAluno(Base):
    __tablename__ = "contato_aluno"

    id_contato = Column(Integer, primary_key=True, autoincrement=True)
    id_aluno = Column(Integer, ForeignKey("alunos.id_aluno", ondelete="CASCADE"), nullable=False)
    nome_tel1 = Column(String(45), nullable=False)
    tel1 = Column(String(20), nullable=False)
    nome_tel2 = Column(String(45), nullable=True)
    tel2 = Column(String(20), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    aluno = relationship("Aluno", back_populates="contatos")
