"""Notas API router — grade launching."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import NotaLancamento
from academico.services.crud_service import crud_service
from academico.services.auth_service import auth_service
from academico.services.audit_service import audit_service
from academico.core.exceptions import bad_request
from academico.core.principal import DisplaySession
from academico.core.security import require_professor

router = APIRouter(prefix="/notas", tags=["notas"])

NOTA_UNIQUE = "uc_aluno_materia_turma_tipo"


@router.post("/lancar")
async def lancar_nota(
    body: NotaLancamento,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_professor),
):
    """Launch or correct a grade.

    A student has one grade per (matéria, turma, tipo de avaliação); launching
    again for the same combination replaces it. The grading professor is the
    signed-in staff member.
    """
    staff = auth_service.find_staff(db, session.cpf)
    if staff is None:
        raise bad_request("Professor não encontrado para o usuário atual")

    data = body.model_dump()
    data["id_professor"] = staff.id_professor
    nota = crud_service.handle(
        db,
        "upsert",
        "notas",
        data=data,
        where={
            NOTA_UNIQUE: {
                "id_aluno": body.id_aluno,
                "id_materia": body.id_materia,
                "id_turma": body.id_turma,
                "tipo_avaliacao": body.tipo_avaliacao,
            }
        },
    )
    audit_service.log_from_request(
        db, request, session,
        action="nota.lancar",
        resource_type="notas",
        resource_id=str(nota["id_nota"]),
        new_value={"valor_nota": body.valor_nota, "tipo_avaliacao": body.tipo_avaliacao},
    )
    return {"success": True, "data": nota}
