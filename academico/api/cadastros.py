"""Cadastros API router — Admin registration of students and staff with their accounts."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import AlunoCadastro, ProfessorCadastro
from academico.services.cadastro_service import cadastro_service
from academico.services.audit_service import audit_service
from academico.core.principal import DisplaySession
from academico.core.security import require_admin

router = APIRouter(prefix="/cadastros", tags=["cadastros"])


@router.post("/alunos", status_code=201)
async def cadastrar_aluno(
    body: AlunoCadastro,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_admin),
):
    """Register a student; a new account's initial password is the CPF digits."""
    result = cadastro_service.cadastrar_aluno(db, body.model_dump())
    audit_service.log_from_request(
        db, request, session,
        action="cadastro.aluno",
        resource_type="alunos",
        resource_id=str(result["aluno"]["id_aluno"]),
        new_value={"conta_criada": result["conta_criada"]},
    )
    return {"success": True, **result}


@router.post("/professores", status_code=201)
async def cadastrar_professor(
    body: ProfessorCadastro,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_admin),
):
    """Register a staff member with a Professor, Coordenador or Admin account."""
    result = cadastro_service.cadastrar_professor(db, body.model_dump())
    audit_service.log_from_request(
        db, request, session,
        action="cadastro.professor",
        resource_type="professores",
        resource_id=result["professor"]["id_professor"],
        new_value={"tipo": body.tipo.value, "conta_criada": result["conta_criada"]},
    )
    return {"success": True, **result}
