"""Arquivos API router — download links for stored documents."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.models.curso import TurmaAluno
from academico.services.auth_service import auth_service
from academico.services.file_service import file_service
from academico.core.exceptions import AuthorizationError
from academico.core.principal import DisplaySession
from academico.core.roles import TipoUsuario, has_permission
from academico.core.security import require_aluno

router = APIRouter(prefix="/arquivos", tags=["arquivos"])


def _can_read(db: Session, session: DisplaySession, key: str) -> bool:
    """Who may download ``key``, by the area it was stored under.

    uploads/atestados/<id_aluno>/   owner or Professor+
    uploads/turmas/<id_turma>/      enrolled students or Professor+
    anything else                   Coordenador+
    """
    parts = key.split("/")
    area = parts[1] if len(parts) > 2 and parts[0] == "uploads" else None
    if area in ("atestados", "turmas"):
        if has_permission(session.tipo_login, TipoUsuario.Professor):
            return True
        aluno = auth_service.find_student(db, session.cpf)
        if aluno is None or not parts[2].isdigit():
            return False
        if area == "atestados":
            return aluno.id_aluno == int(parts[2])
        matricula = (
            db.query(TurmaAluno)
            .filter(TurmaAluno.id_turma == int(parts[2]), TurmaAluno.id_aluno == aluno.id_aluno)
            .first()
        )
        return matricula is not None
    return has_permission(session.tipo_login, TipoUsuario.Coordenador)


@router.get("/{key:path}")
async def get_download_url(
    key: str,
    expires_minutes: int = Query(15, ge=1, le=24 * 60),
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_aluno),
):
    """Presigned URL for a stored object the signed-in user may read."""
    if ".." in key.split("/") or not _can_read(db, session, key):
        raise AuthorizationError("Acesso negado a este arquivo")
    url = file_service.get_presigned_url(key, expires_minutes)
    return {"url": url, "expires_in": expires_minutes * 60}
