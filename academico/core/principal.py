"""Authenticated identity and the claims carried by a session token.

``build_claims`` and ``claims_to_session`` are pure: they do not know about
JWT, cookies or headers, so the authorization rules can be exercised without
any transport.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from academico.core.roles import TipoUsuario, rank, to_role


@dataclass(frozen=True)
class Principal:
    """Result of a successful authentication.

    ``tipo`` is the role stored for the account, ``tipo_login`` the role the
    session acts as. A principal may act as an equal or lower role only.
    """

    cpf: str
    tipo: TipoUsuario
    tipo_login: TipoUsuario

    def __post_init__(self):
        if rank(self.tipo) < rank(self.tipo_login):
            raise ValueError(
                f"Role '{self.tipo.value}' cannot act as '{self.tipo_login.value}'"
            )


@dataclass(frozen=True)
class Profile:
    nome: str
    sobrenome: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    foto_path: Optional[str] = None


@dataclass(frozen=True)
class DisplaySession:
    """What request handlers and page guards see of the signed-in user."""

    cpf: str
    tipo: TipoUsuario
    tipo_login: TipoUsuario
    nome: str
    sobrenome: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    foto_path: Optional[str] = None

    @property
    def is_impersonating(self) -> bool:
        return self.tipo != self.tipo_login

    @property
    def is_real_admin(self) -> bool:
        return self.tipo == TipoUsuario.Admin


def build_claims(principal: Principal, profile: Profile) -> Dict[str, Any]:
    """Session claims for a principal and its resolved display profile."""
    return {
        "sub": principal.cpf,
        "tipo": principal.tipo.value,
        "tipo_login": principal.tipo_login.value,
        "nome": profile.nome,
        "sobrenome": profile.sobrenome,
        "email": profile.email,
        "telefone": profile.telefone,
        "foto_path": profile.foto_path,
    }


def claims_to_session(claims: Dict[str, Any]) -> Optional[DisplaySession]:
    """Rebuild the display session from decoded claims.

    Returns None for claims that do not describe a valid principal, including
    a token whose acting role outranks the stored one.
    """
    cpf = claims.get("sub")
    tipo = to_role(claims.get("tipo"))
    tipo_login = to_role(claims.get("tipo_login"))
    if not cpf or tipo is None or tipo_login is None:
        return None
    if rank(tipo) < rank(tipo_login):
        return None
    return DisplaySession(
        cpf=cpf,
        tipo=tipo,
        tipo_login=tipo_login,
        nome=claims.get("nome") or "",
        sobrenome=claims.get("sobrenome"),
        email=claims.get("email"),
        telefone=claims.get("telefone"),
        foto_path=claims.get("foto_path"),
    )
