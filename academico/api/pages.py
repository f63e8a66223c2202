"""Guarded HTML pages — one dashboard shell per role plus the login form."""

from html import escape
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from academico.core.config import settings
from academico.core.guards import AdminGuard, AlunoGuard, CoordenadorGuard, ProfessorGuard
from academico.core.principal import DisplaySession
from academico.core.roles import accessible_levels
from academico.core.security import get_optional_session

router = APIRouter(prefix="/pages", tags=["pages"])

_LOGIN_HTML = """<!doctype html>
<html><head><meta charset="utf-8"><title>{app} - Login</title></head>
<body>
  <h1>Entrar</h1>
  {erro}
  <form id="login" method="post" action="/api/auth/login/form">
    <label>CPF <input name="cpf" required/></label>
    <label>Senha <input name="senha" type="password" required/></label>
    <label>Entrar como
      <select name="tipo_login">
        <option>Aluno</option><option>Professor</option>
        <option>Coordenador</option><option>Admin</option>
      </select>
    </label>
    <button type="submit">Entrar</button>
  </form>
</body></html>"""


def _dashboard(title: str, session: Optional[DisplaySession]) -> str:
    if session is None:
        return ""
    niveis = ", ".join(r.value for r in accessible_levels(session.tipo_login))
    aviso = ""
    if session.is_impersonating:
        aviso = f"<p class=\"impersonating\">Conta {escape(session.tipo.value)} atuando como {escape(session.tipo_login.value)}</p>"
    return (
        f"<h1>{escape(title)}</h1>"
        f"<p>Olá, {escape(session.nome)} {escape(session.sobrenome or '')}</p>"
        f"{aviso}"
        f"<p>Áreas acessíveis: {escape(niveis)}</p>"
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(erro: Optional[int] = None):
    aviso = "<p class=\"erro\">CPF, senha ou perfil inválidos.</p>" if erro else ""
    return HTMLResponse(_LOGIN_HTML.format(app=escape(settings.APP_NAME), erro=aviso))


@router.get("/aluno", response_class=HTMLResponse)
async def aluno_page(session: Optional[DisplaySession] = Depends(get_optional_session)):
    return AlunoGuard().render(session, _dashboard("Área do Aluno", session))


@router.get("/professor", response_class=HTMLResponse)
async def professor_page(session: Optional[DisplaySession] = Depends(get_optional_session)):
    return ProfessorGuard().render(session, _dashboard("Painel de Aulas", session))


@router.get("/coordenador", response_class=HTMLResponse)
async def coordenador_page(session: Optional[DisplaySession] = Depends(get_optional_session)):
    return CoordenadorGuard().render(session, _dashboard("Coordenação", session))


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(session: Optional[DisplaySession] = Depends(get_optional_session)):
    return AdminGuard().render(session, _dashboard("Administração", session))
