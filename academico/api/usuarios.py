"""Usuários API router — login accounts and passwords."""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import (
    UsuarioCreate, UsuarioOut, CheckPasswordRequest, UpdatePasswordRequest, MessageResponse,
)
from academico.services.auth_service import auth_service
from academico.services.audit_service import audit_service
from academico.core.principal import DisplaySession
from academico.core.roles import TipoUsuario
from academico.core.security import get_current_session, require_admin
from academico.core.validators import only_digits
from academico.core.exceptions import (
    ResourceConflictError, ResourceNotFoundError, bad_request, forbidden, not_found,
)

router = APIRouter(prefix="/usuarios", tags=["usuarios"])


def _is_self(session: DisplaySession, cpf: str) -> bool:
    return only_digits(session.cpf) == only_digits(cpf)


@router.get("")
async def list_usuarios(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_admin),
):
    """List login accounts (admin only). Password hashes are never returned."""
    result = auth_service.list_users(db, page, page_size)
    return {
        "users": [UsuarioOut.model_validate(u) for u in result["users"]],
        "total": result["total"],
        "page": result["page"],
    }


@router.post("", response_model=UsuarioOut, status_code=201)
async def create_usuario(
    body: UsuarioCreate,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(require_admin),
):
    """Create a login account (admin only)."""
    try:
        usuario = auth_service.create_user(db, body.cpf, body.senha, body.tipo)
    except ResourceConflictError as e:
        raise bad_request(str(e))
    audit_service.log_from_request(
        db, request, session,
        action="usuario.create",
        resource_type="usuario",
        resource_id=usuario.cpf,
        new_value={"tipo": usuario.tipo.value},
    )
    return usuario


@router.post("/check-password")
async def check_password(
    body: CheckPasswordRequest,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(get_current_session),
):
    """Check a password for the signed-in account (or any account, for admins)."""
    if not _is_self(session, body.cpf) and session.tipo_login != TipoUsuario.Admin:
        raise forbidden("Acesso negado")
    try:
        valid = auth_service.check_password(db, body.cpf, body.senha)
    except ResourceNotFoundError as e:
        raise not_found(str(e))
    return {"valid": valid}


@router.put("/password", response_model=MessageResponse)
async def update_password(
    body: UpdatePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(get_current_session),
):
    """Change a password.

    Users change their own password and must confirm the current one; an
    acting Admin may reset any account's password.
    """
    is_admin = session.tipo_login == TipoUsuario.Admin
    if not _is_self(session, body.cpf) and not is_admin:
        raise forbidden("Acesso negado")
    try:
        if not is_admin:
            if not body.senha_atual or not auth_service.check_password(db, body.cpf, body.senha_atual):
                raise bad_request("Senha atual incorreta")
        auth_service.update_password(db, body.cpf, body.nova_senha)
    except ResourceNotFoundError as e:
        raise not_found(str(e))
    audit_service.log_from_request(
        db, request, session,
        action="usuario.update_password",
        resource_type="usuario",
        resource_id=only_digits(body.cpf),
    )
    return MessageResponse(message="Senha atualizada com sucesso")
