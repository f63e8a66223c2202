"""Auth API router — login with acting role, logout, session, refresh."""

from fastapi import APIRouter, Depends, Form, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import LoginRequest, TokenResponse, SessionOut, MessageResponse
from academico.services.auth_service import auth_service
from academico.services.audit_service import audit_service
from academico.core.config import settings
from academico.core.exceptions import AuthenticationError
from academico.core.principal import DisplaySession
from academico.core.roles import TipoUsuario
from academico.core.security import get_current_session, set_session_cookie

router = APIRouter(prefix="/auth", tags=["auth"])

DASHBOARDS = {
    TipoUsuario.Aluno: "/pages/aluno",
    TipoUsuario.Professor: "/pages/professor",
    TipoUsuario.Coordenador: "/pages/coordenador",
    TipoUsuario.Admin: "/pages/admin",
}


def _session_out(session: DisplaySession) -> SessionOut:
    return SessionOut(
        cpf=session.cpf,
        tipo=session.tipo,
        tipo_login=session.tipo_login,
        nome=session.nome,
        sobrenome=session.sobrenome,
        email=session.email,
        telefone=session.telefone,
        foto_path=session.foto_path,
        is_impersonating=session.is_impersonating,
    )


def _audit_login(db: Session, request: Request, session: DisplaySession) -> None:
    audit_service.log_from_request(
        db, request, session,
        action="auth.login",
        resource_type="usuario",
        resource_id=session.cpf,
        new_value={"tipo_login": session.tipo_login.value},
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Authenticate acting as ``tipo_login`` and start a session."""
    result = auth_service.authenticate(db, body.cpf, body.senha, body.tipo_login)
    if result is None:
        raise AuthenticationError("Falha na autenticação")

    session = result["session"]
    set_session_cookie(response, result["access_token"])
    _audit_login(db, request, session)
    return TokenResponse(access_token=result["access_token"], session=_session_out(session))


@router.post("/login/form", response_class=RedirectResponse)
async def login_form(
    request: Request,
    cpf: str = Form(...),
    senha: str = Form(...),
    tipo_login: TipoUsuario = Form(...),
    db: Session = Depends(get_db),
):
    """Browser login from the HTML form: sets the cookie and opens the dashboard."""
    result = auth_service.authenticate(db, cpf, senha, tipo_login)
    if result is None:
        return RedirectResponse(f"{settings.LOGIN_URL}?erro=1", status_code=303)

    session = result["session"]
    response = RedirectResponse(DASHBOARDS[session.tipo_login], status_code=303)
    set_session_cookie(response, result["access_token"])
    _audit_login(db, request, session)
    return response


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Sessão encerrada")


@router.get("/session", response_model=SessionOut)
async def get_session(session: DisplaySession = Depends(get_current_session)):
    """Current signed-in user as seen by handlers and guards."""
    return _session_out(session)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    response: Response,
    session: DisplaySession = Depends(get_current_session),
):
    """Issue a fresh token for the current session."""
    token = auth_service.refresh(session)
    set_session_cookie(response, token)
    return TokenResponse(access_token=token, session=_session_out(session))
