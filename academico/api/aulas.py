"""Aulas API router — class registration, attendance and scheduling."""

from typing import List

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import (
    RegistroAulaRequest, PresencaRequest, CancelarAulaRequest,
    MultiremoveRequest, AulasRecorrentesRequest,
)
from academico.services.aula_service import aula_service
from academico.services.auth_service import auth_service
from academico.services.crud_service import to_dict
from academico.services.documento_service import Arquivo, documento_service
from academico.services.audit_service import audit_service
from academico.core.principal import DisplaySession
from academico.core.security import require_aluno, require_professor

router = APIRouter(prefix="/aulas", tags=["aulas"])


@router.get("/{id_aula}")
async def get_aula(
    id_aula: int,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_aluno),
):
    """Aula with materia, turma and attendance."""
    return {"success": True, "data": aula_service.get_aula(db, id_aula)}


@router.post("/registro")
async def registrar_aula(
    body: RegistroAulaRequest,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Save taught content and the full attendance list of an aula."""
    staff = auth_service.find_staff(db, session.cpf)
    aula = aula_service.registrar_aula(
        db,
        body.id_aula,
        [p.model_dump() for p in body.presencas],
        conteudo_ministrado=body.conteudo_ministrado,
        observacoes_aula=body.observacoes_aula,
        id_professor=staff.id_professor if staff else None,
    )
    audit_service.log_from_request(
        db, request, session,
        action="aula.registro",
        resource_type="aulas",
        resource_id=str(body.id_aula),
        new_value={"presencas": len(body.presencas)},
    )
    return {"success": True, "data": aula, "message": "Registro da aula salvo com sucesso"}


@router.post("/presencas")
async def registrar_presenca(
    body: PresencaRequest,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Create or update a single attendance record."""
    result = aula_service.registrar_presenca(
        db, body.id_aula, body.id_aluno, body.id_professor, body.presente,
    )
    return {"success": True, "data": result["presenca"], "is_update": result["is_update"]}


@router.patch("/cancelar")
async def cancelar_aula(
    body: CancelarAulaRequest,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    aula = aula_service.cancelar_aula(db, body.id_aula)
    audit_service.log_from_request(
        db, request, session,
        action="aula.cancelar",
        resource_type="aulas",
        resource_id=str(body.id_aula),
    )
    return {"success": True, "aula": aula}


@router.delete("/multiremove")
async def remover_aulas(
    body: MultiremoveRequest,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Delete a matéria's aulas within a date range."""
    removidas = aula_service.remover_aulas(db, body.id_materia, body.data_inicial, body.data_final)
    audit_service.log_from_request(
        db, request, session,
        action="aula.multiremove",
        resource_type="aulas",
        new_value=body.model_dump(mode="json"),
    )
    return {"removidas": removidas}


@router.post("/recorrentes", status_code=201)
async def agendar_recorrentes(
    body: AulasRecorrentesRequest,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Schedule weekly aulas; returns what was created and what was skipped."""
    result = aula_service.agendar_recorrentes(
        db,
        id_materia=body.id_materia,
        id_turma=body.id_turma,
        dia_semana=body.dia_semana,
        hora_inicio=body.hora_inicio,
        duracao_minutos=body.duracao_minutos,
        data_inicial=body.data_inicial,
        data_final=body.data_final,
        excecoes=body.lista_excecoes,
    )
    audit_service.log_from_request(
        db, request, session,
        action="aula.recorrentes",
        resource_type="aulas",
        new_value={"criadas": len(result["criadas"]), "puladas": len(result["puladas"])},
    )
    return result


@router.post("/{id_aula}/arquivos", status_code=201)
async def anexar_arquivos(
    id_aula: int,
    request: Request,
    arquivos: List[UploadFile] = File(...),
    tipo: str = Form(...),
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Upload planning or teaching material (``tipo``) for an aula."""
    lidos = [Arquivo(a.filename or "arquivo", await a.read(), a.content_type) for a in arquivos]
    docs = documento_service.anexar_aula(db, id_aula, lidos, tipo)
    audit_service.log_from_request(
        db, request, session,
        action="aula.arquivos",
        resource_type="docs_aulas",
        resource_id=str(id_aula),
        new_value={"tipo": tipo, "arquivos": [d.src for d in docs]},
    )
    return {
        "success": True,
        "arquivos": [to_dict(d) for d in docs],
        "message": f"{len(docs)} arquivo(s) enviado(s) com sucesso",
    }


@router.get("/{id_aula}/arquivos")
async def listar_arquivos(
    id_aula: int,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_aluno),
):
    docs = documento_service.listar_aula(db, id_aula)
    return {"success": True, "data": [to_dict(d) for d in docs]}


@router.get("/turma/{id_turma}/arquivos")
async def listar_arquivos_turma(
    id_turma: int,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """All material attached to a turma's aulas."""
    docs = documento_service.listar_turma(db, id_turma)
    return {"success": True, "data": [to_dict(d) for d in docs]}


@router.delete("/arquivos/{id_doc_aula}")
async def remover_arquivo(
    id_doc_aula: int,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Delete an attachment and its stored file."""
    doc = documento_service.remover_doc_aula(db, id_doc_aula)
    audit_service.log_from_request(
        db, request, session,
        action="aula.arquivo_remover",
        resource_type="docs_aulas",
        resource_id=str(id_doc_aula),
        new_value={"removido": doc["src"]},
    )
    return {"success": True, "message": "Arquivo excluído com sucesso"}
