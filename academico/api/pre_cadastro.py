"""Pré-cadastro API router — public applications and their review."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import PreCadastroCreate, PreCadastroOut, PreCadastroAvaliacao
from academico.services.pre_cadastro_service import pre_cadastro_service
from academico.services.crud_service import to_dict
from academico.services.documento_service import Arquivo, documento_service
from academico.services.audit_service import audit_service
from academico.models.pre_cadastro import StatusPreCadastro
from academico.core.principal import DisplaySession
from academico.core.security import require_coordenador

router = APIRouter(prefix="/pre-cadastro", tags=["pre-cadastro"])


@router.post("", status_code=201)
async def submeter(body: PreCadastroCreate, request: Request, db: Session = Depends(get_db)):
    """Submit an application. No account needed."""
    pre = pre_cadastro_service.submeter(db, body.model_dump())
    audit_service.log_from_request(
        db, request, None,
        action="pre_cadastro.submeter",
        resource_type="pre_cadastros",
        resource_id=str(pre.id_pre_cadastro),
    )
    return {
        "success": True,
        "message": "Pré-cadastro criado com sucesso",
        "id_pre_cadastro": pre.id_pre_cadastro,
    }


@router.get("")
async def listar(
    status: Optional[StatusPreCadastro] = Query(None),
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_coordenador),
):
    items = pre_cadastro_service.listar(db, status)
    return {"success": True, "data": [PreCadastroOut.model_validate(p) for p in items]}


@router.post("/{id_pre_cadastro}/avaliar")
async def avaliar(
    id_pre_cadastro: int,
    body: PreCadastroAvaliacao,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_coordenador),
):
    """Record the review decision for an application."""
    pre = pre_cadastro_service.avaliar(
        db,
        id_pre_cadastro,
        body.status,
        avaliado_por=session.cpf,
        observacoes=body.observacoes,
        motivo_rejeicao=body.motivo_rejeicao,
    )
    audit_service.log_from_request(
        db, request, session,
        action="pre_cadastro.avaliar",
        resource_type="pre_cadastros",
        resource_id=str(id_pre_cadastro),
        new_value={"status": pre.status.value},
    )
    return {
        "success": True,
        "message": "Avaliação registrada com sucesso",
        "data": PreCadastroOut.model_validate(pre),
    }


@router.post("/{id_pre_cadastro}/converter", status_code=201)
async def converter(
    id_pre_cadastro: int,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_coordenador),
):
    """Enroll an approved applicant as an Aluno."""
    result = pre_cadastro_service.converter(db, id_pre_cadastro)
    audit_service.log_from_request(
        db, request, session,
        action="pre_cadastro.converter",
        resource_type="alunos",
        resource_id=str(result["aluno"]["id_aluno"]),
        new_value={"conta_criada": result["senha_temporaria"] is not None},
    )
    return {"success": True, **result}


@router.post("/{id_pre_cadastro}/documentos", status_code=201)
async def enviar_documentos(
    id_pre_cadastro: int,
    request: Request,
    documentos: List[UploadFile] = File(...),
    tipos: List[str] = Form(...),
    db: Session = Depends(get_db),
):
    """Attach the applicant's documents, one ``tipos`` entry per file. No account needed."""
    lidos = [Arquivo(d.filename or "documento", await d.read(), d.content_type) for d in documentos]
    docs = documento_service.anexar_pre_cadastro(db, id_pre_cadastro, lidos, tipos)
    audit_service.log_from_request(
        db, request, None,
        action="pre_cadastro.documentos",
        resource_type="documentos_pre_cadastro",
        resource_id=str(id_pre_cadastro),
        new_value={"tipos": tipos},
    )
    return {
        "success": True,
        "message": "Documentos enviados com sucesso",
        "documentos": [to_dict(d) for d in docs],
    }


@router.get("/{id_pre_cadastro}/documentos")
async def listar_documentos(
    id_pre_cadastro: int,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_coordenador),
):
    docs = documento_service.listar_pre_cadastro(db, id_pre_cadastro)
    return {"success": True, "data": [to_dict(d) for d in docs]}


@router.delete("/documentos/{id_documento}")
async def remover_documento(
    id_documento: int,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_coordenador),
):
    doc = documento_service.remover_documento(db, id_documento)
    audit_service.log_from_request(
        db, request, session,
        action="pre_cadastro.documento_remover",
        resource_type="documentos_pre_cadastro",
        resource_id=str(id_documento),
        new_value={"removido": doc["caminho_arquivo"]},
    )
    return {"success": True, "message": "Documento excluído com sucesso"}
