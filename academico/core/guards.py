"""Page guards: block rendering until the acting role meets a minimum role.

A guard never redirects. Without a session it renders an in-place
"Acesso Negado" page with a login link; with an insufficient acting role it
renders "Permissão Insuficiente" showing both roles. Either page can be
replaced by a caller-supplied fallback.
"""

import enum
from dataclasses import dataclass
from html import escape
from typing import Optional

from fastapi.responses import HTMLResponse

from academico.core.config import settings
from academico.core.principal import DisplaySession
from academico.core.roles import TipoUsuario, has_permission, rank


class GuardState(str, enum.Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    required_role: TipoUsuario
    acting_role: Optional[TipoUsuario] = None
    login_url: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.state == GuardState.AUTHORIZED


_LOADING_HTML = "<div class=\"guard guard-loading\"><span>Verificando permissões...</span></div>"

_UNAUTHENTICATED_HTML = """<div class="guard guard-unauthenticated">
  <h2>Acesso Negado</h2>
  <p>Você precisa estar logado para acessar esta página.</p>
  <a href="{login_url}">Fazer Login</a>
</div>"""

_UNAUTHORIZED_HTML = """<div class="guard guard-unauthorized">
  <h2>Permissão Insuficiente</h2>
  <p>Você não tem permissão para acessar esta funcionalidade.</p>
  <p><strong>Seu nível:</strong> {acting}<br/>
     <strong>Nível necessário:</strong> {required} ou superior</p>
</div>"""

_STATUS = {
    GuardState.LOADING: 200,
    GuardState.UNAUTHENTICATED: 401,
    GuardState.UNAUTHORIZED: 403,
    GuardState.AUTHORIZED: 200,
}


class RoleGuard:
    """Guard for ``required_role`` or any higher role."""

    def __init__(
        self,
        required_role: TipoUsuario,
        fallback: Optional[str] = None,
        redirect_to: Optional[str] = None,
    ):
        rank(required_role)
        self.required_role = TipoUsuario(required_role)
        self.fallback = fallback
        self.redirect_to = redirect_to or settings.LOGIN_URL

    def evaluate(self, session: Optional[DisplaySession], pending: bool = False) -> GuardDecision:
        if pending:
            return GuardDecision(GuardState.LOADING, self.required_role)
        if session is None:
            return GuardDecision(
                GuardState.UNAUTHENTICATED,
                self.required_role,
                login_url=self.redirect_to,
            )
        # Guards check the acting role, never the stored one.
        if not has_permission(session.tipo_login, self.required_role):
            return GuardDecision(
                GuardState.UNAUTHORIZED,
                self.required_role,
                acting_role=session.tipo_login,
            )
        return GuardDecision(
            GuardState.AUTHORIZED,
            self.required_role,
            acting_role=session.tipo_login,
        )

    def fallback_html(self, decision: GuardDecision) -> str:
        if decision.state == GuardState.LOADING:
            return _LOADING_HTML
        if self.fallback is not None:
            return self.fallback
        if decision.state == GuardState.UNAUTHENTICATED:
            return _UNAUTHENTICATED_HTML.format(login_url=escape(decision.login_url or ""))
        return _UNAUTHORIZED_HTML.format(
            acting=escape(decision.acting_role.value),
            required=escape(decision.required_role.value),
        )

    def render(self, session: Optional[DisplaySession], content: str) -> HTMLResponse:
        decision = self.evaluate(session)
        body = content if decision.allowed else self.fallback_html(decision)
        return HTMLResponse(
            body,
            status_code=_STATUS[decision.state],
            headers={"X-Guard-State": decision.state.value},
        )


def AdminGuard(fallback: Optional[str] = None) -> RoleGuard:
    return RoleGuard(TipoUsuario.Admin, fallback)


def CoordenadorGuard(fallback: Optional[str] = None) -> RoleGuard:
    return RoleGuard(TipoUsuario.Coordenador, fallback)


def ProfessorGuard(fallback: Optional[str] = None) -> RoleGuard:
    return RoleGuard(TipoUsuario.Professor, fallback)


def AlunoGuard(fallback: Optional[str] = None) -> RoleGuard:
    return RoleGuard(TipoUsuario.Aluno, fallback)
