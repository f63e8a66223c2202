"""Atestados API router — medical certificate submission and review."""

import json
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import AtestadoEnvio, AtestadoAvaliacao
from academico.services.atestado_service import atestado_service
from academico.services.auth_service import auth_service
from academico.services.audit_service import audit_service
from academico.models.atestado import StatusAtestado
from academico.core.exceptions import bad_request, forbidden
from academico.core.principal import DisplaySession
from academico.core.roles import TipoUsuario, has_permission
from academico.core.security import require_aluno, require_professor

router = APIRouter(prefix="/atestados", tags=["atestados"])


def _own_aluno_id(db: Session, session: DisplaySession) -> Optional[int]:
    aluno = auth_service.find_student(db, session.cpf)
    return aluno.id_aluno if aluno else None


@router.post("")
async def enviar_atestado(
    request: Request,
    arquivo: UploadFile = File(...),
    dados: str = Form(...),
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_aluno),
):
    """Submit a certificate: the file plus a JSON ``dados`` form field."""
    try:
        envio = AtestadoEnvio.model_validate(json.loads(dados))
    except json.JSONDecodeError:
        raise bad_request("Dados inválidos: JSON malformado")
    except SchemaValidationError as e:
        msgs = ", ".join(err["msg"] for err in e.errors())
        raise bad_request(f"Dados inválidos: {msgs}")

    if not has_permission(session.tipo_login, TipoUsuario.Professor):
        if _own_aluno_id(db, session) != envio.id_aluno:
            raise forbidden("Alunos só podem enviar os próprios atestados")

    atestado = await atestado_service.enviar(
        db,
        arquivo,
        id_aluno=envio.id_aluno,
        data_inicio=envio.data_inicio,
        data_fim=envio.data_fim,
        motivo=envio.motivo,
        aulas_afetadas=envio.aulas_afetadas,
        observacoes=envio.observacoes,
        id_turma=envio.id_turma,
    )
    audit_service.log_from_request(
        db, request, session,
        action="atestado.enviar",
        resource_type="atestados_medicos",
        resource_id=str(atestado.id_atestado),
    )
    return {
        "success": True,
        "data": {"id_atestado": atestado.id_atestado},
        "message": "Atestado enviado com sucesso",
    }


@router.get("")
async def listar_atestados(
    id_aluno: Optional[int] = Query(None),
    status: Optional[StatusAtestado] = Query(None),
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_aluno),
):
    """Certificates. Students only ever see their own."""
    if not has_permission(session.tipo_login, TipoUsuario.Professor):
        id_aluno = _own_aluno_id(db, session)
        if id_aluno is None:
            return {"success": True, "data": []}
    elif id_aluno is None and status is None:
        status = StatusAtestado.Pendente
    return {"success": True, "data": atestado_service.listar(db, id_aluno, status)}


@router.post("/avaliar")
async def avaliar_atestado(
    body: AtestadoAvaliacao,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Approve or reject a pending certificate."""
    atestado = atestado_service.avaliar(
        db,
        body.id_atestado,
        body.status,
        avaliado_por=session.cpf,
        justificativa_rejeicao=body.justificativa_rejeicao,
    )
    audit_service.log_from_request(
        db, request, session,
        action="atestado.avaliar",
        resource_type="atestados_medicos",
        resource_id=str(atestado.id_atestado),
        new_value={"status": atestado.status.value},
    )
    return {
        "success": True,
        "data": {"id_atestado": atestado.id_atestado, "status": atestado.status.value},
        "message": f"Atestado {atestado.status.value.lower()} com sucesso",
    }
