"""Pre-enrollment models."""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum, func,
)
from sqlalchemy.orm import relationship
from academico.db.base import Base


class StatusPreCadastro(str, enum.Enum):
    Pendente = "Pendente"
    EmAnalise = "EmAnalise"
    Aprovado = "Aprovado"
    Rejeitado = "Rejeitado"
    DocumentacaoIncompleta = "DocumentacaoIncompleta"


class TipoDocumento(str, enum.Enum):
    Foto3x4 = "Foto3x4"
    RG = "RG"
    CPF = "CPF"
    ComprovanteResidencia = "ComprovanteResidencia"
    HistoricoEscolar = "HistoricoEscolar"
    CertidaoNascimento = "CertidaoNascimento"
    CertidaoCasamento = "CertidaoCasamento"
    ComprovanteRenda = "ComprovanteRenda"
    Outros = "Outros"


class PreCadastro(Base):
    """Application submitted by a prospective student, pending review."""
    __tablename__ = "pre_cadastros"

    id_pre_cadastro = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String(100), nullable=False)
    sobrenome = Column(String(150), nullable=False)
    cpf = Column(String(11), nullable=False, index=True)
    rg = Column(String(12), nullable=False)
    nome_mae = Column(String(160), nullable=False)
    nome_pai = Column(String(160), nullable=True)
    data_nasc = Column(Date, nullable=False)
    email = Column(String(255), nullable=False)
    telefone = Column(String(15), nullable=False)
    telefone_responsavel = Column(String(15), nullable=True)
    nome_responsavel = Column(String(100), nullable=True)
    cep = Column(String(8), nullable=False)
    rua = Column(String(255), nullable=False)
    cidade = Column(String(100), nullable=False)
    uf = Column(String(2), nullable=False)
    numero = Column(String(10), nullable=False)
    complemento = Column(String(100), nullable=True)
    id_curso_desejado = Column(Integer, ForeignKey("cursos.id_curso"), nullable=False)
    status = Column(Enum(StatusPreCadastro), default=StatusPreCadastro.Pendente, nullable=False)
    data_envio = Column(DateTime, server_default=func.now(), nullable=False)
    data_avaliacao = Column(DateTime, nullable=True)
    avaliado_por = Column(String(14), nullable=True)
    observacoes = Column(Text, nullable=True)
    motivo_rejeicao = Column(Text, nullable=True)

    curso = relationship("Curso")
    documentos = relationship(
        "DocumentoPreCadastro", back_populates="pre_cadastro", cascade="all, delete-orphan",
    )


class DocumentoPreCadastro(Base):
    __tablename__ = "documentos_pre_cadastro"

    id_documento = Column(Integer, primary_key=True, autoincrement=True)
    id_pre_cadastro = Column(
        Integer, ForeignKey("pre_cadastros.id_pre_cadastro", ondelete="CASCADE"), nullable=False,
    )
    tipo_documento = Column(Enum(TipoDocumento), nullable=False)
    nome_arquivo = Column(String(255), nullable=False)
    caminho_arquivo = Column(String(500), nullable=False)
    tamanho_arquivo = Column(Integer, nullable=False)
    data_upload = Column(DateTime, server_default=func.now(), nullable=False)

    pre_cadastro = relationship("PreCadastro", back_populates="documentos")
