"""Document service — class material and pre-enrollment papers kept in MinIO."""

import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from sqlalchemy.orm import Session

from academico.core.exceptions import ResourceNotFoundError, ValidationError
from academico.models.aula import Aula, DocAula
from academico.models.pre_cadastro import (
    DocumentoPreCadastro, PreCadastro, StatusPreCadastro, TipoDocumento,
)
from academico.services.crud_service import to_dict
from academico.services.file_service import file_service

logger = logging.getLogger("academico")

TIPOS_MATERIAL = ("planejamento", "materiais")
RECEBE_DOCUMENTOS = (StatusPreCadastro.Pendente, StatusPreCadastro.EmAnalise)


class Arquivo(NamedTuple):
    """An uploaded file already read into memory."""
    nome: str
    conteudo: bytes
    content_type: Optional[str] = None


def _armazenar(arquivos: Sequence[Arquivo], category: str) -> List[str]:
    """Validate every file, then store them all; returns the object keys."""
    if not arquivos:
        raise ValidationError("Nenhum arquivo enviado")
    for arquivo in arquivos:
        file_service.validate(arquivo.nome, len(arquivo.conteudo))
    keys = []
    try:
        for arquivo in arquivos:
            keys.append(file_service.put_bytes(arquivo.conteudo, arquivo.nome, category, arquivo.content_type))
    except Exception:
        _descartar(keys)
        raise
    return keys


def _descartar(keys: Sequence[str]) -> None:
    for key in keys:
        file_service.delete_object(key)


class DocumentoService:
    """Attachments of aulas and pré-cadastros: upload, list and delete."""

    @staticmethod
    def anexar_aula(db: Session, id_aula: int, arquivos: Sequence[Arquivo], tipo: str) -> List[DocAula]:
        """Store files under the aula's turma and register them as DocAula."""
        if tipo not in TIPOS_MATERIAL:
            raise ValidationError(f"Tipo de material inválido: {tipo}")
        aula = db.query(Aula).filter(Aula.id_aula == id_aula).first()
        if not aula:
            raise ResourceNotFoundError("Aula não encontrada")

        keys = _armazenar(arquivos, f"turmas/{aula.id_turma}/aulas/{id_aula}/{tipo}")
        try:
            docs = [DocAula(id_aula=id_aula, src=key) for key in keys]
            db.add_all(docs)
            db.commit()
        except Exception:
            db.rollback()
            _descartar(keys)
            raise
        for doc in docs:
            db.refresh(doc)
        logger.info("%d arquivo(s) anexado(s) à aula %s", len(docs), id_aula)
        return docs

    @staticmethod
    def listar_aula(db: Session, id_aula: int) -> List[DocAula]:
        if not db.query(Aula).filter(Aula.id_aula == id_aula).first():
            raise ResourceNotFoundError("Aula não encontrada")
        return db.query(DocAula).filter(DocAula.id_aula == id_aula).order_by(DocAula.id_doc_aula).all()

    @staticmethod
    def listar_turma(db: Session, id_turma: int) -> List[DocAula]:
        return (
            db.query(DocAula)
            .join(Aula, Aula.id_aula == DocAula.id_aula)
            .filter(Aula.id_turma == id_turma)
            .order_by(Aula.data_aula, DocAula.id_doc_aula)
            .all()
        )

    @staticmethod
    def remover_doc_aula(db: Session, id_doc_aula: int) -> Dict[str, Any]:
        doc = db.query(DocAula).filter(DocAula.id_doc_aula == id_doc_aula).first()
        if not doc:
            raise ResourceNotFoundError("Documento não encontrado")
        removido = to_dict(doc)
        db.delete(doc)
        db.commit()
        file_service.delete_object(removido["src"])
        return removido

    @staticmethod
    def anexar_pre_cadastro(
        db: Session,
        id_pre_cadastro: int,
        arquivos: Sequence[Arquivo],
        tipos: Sequence[str],
    ) -> List[DocumentoPreCadastro]:
        """Attach one typed document per file and move the application to EmAnalise."""
        if len(arquivos) != len(tipos):
            raise ValidationError("Número de documentos e tipos não coincidem")
        try:
            tipos_doc = [TipoDocumento(tipo) for tipo in tipos]
        except ValueError:
            raise ValidationError("Tipo de documento inválido")
        pre = db.query(PreCadastro).filter(PreCadastro.id_pre_cadastro == id_pre_cadastro).first()
        if not pre:
            raise ResourceNotFoundError("Pré-cadastro não encontrado")
        if pre.status not in RECEBE_DOCUMENTOS:
            raise ValidationError("Este pré-cadastro não aceita mais documentos")

        keys = _armazenar(arquivos, f"pre-cadastros/{id_pre_cadastro}")
        try:
            docs = [
                DocumentoPreCadastro(
                    id_pre_cadastro=id_pre_cadastro,
                    tipo_documento=tipo,
                    nome_arquivo=arquivo.nome,
                    caminho_arquivo=key,
                    tamanho_arquivo=len(arquivo.conteudo),
                )
                for arquivo, tipo, key in zip(arquivos, tipos_doc, keys)
            ]
            db.add_all(docs)
            pre.status = StatusPreCadastro.EmAnalise
            db.commit()
        except Exception:
            db.rollback()
            _descartar(keys)
            raise
        for doc in docs:
            db.refresh(doc)
        logger.info("%d documento(s) anexado(s) ao pré-cadastro %s", len(docs), id_pre_cadastro)
        return docs

    @staticmethod
    def listar_pre_cadastro(db: Session, id_pre_cadastro: int) -> List[DocumentoPreCadastro]:
        if not db.query(PreCadastro).filter(PreCadastro.id_pre_cadastro == id_pre_cadastro).first():
            raise ResourceNotFoundError("Pré-cadastro não encontrado")
        return (
            db.query(DocumentoPreCadastro)
            .filter(DocumentoPreCadastro.id_pre_cadastro == id_pre_cadastro)
            .order_by(DocumentoPreCadastro.id_documento)
            .all()
        )

    @staticmethod
    def remover_documento(db: Session, id_documento: int) -> Dict[str, Any]:
        doc = db.query(DocumentoPreCadastro).filter(DocumentoPreCadastro.id_documento == id_documento).first()
        if not doc:
            raise ResourceNotFoundError("Documento não encontrado")
        removido = to_dict(doc)
        db.delete(doc)
        db.commit()
        file_service.delete_object(removido["caminho_arquivo"])
        return removido


documento_service = DocumentoService()
