"""Password hashing, session tokens and role-based route dependencies."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from academico.core.config import settings
from academico.core.exceptions import forbidden, unauthorized
from academico.core.principal import DisplaySession, claims_to_session
from academico.core.roles import TipoUsuario, has_permission, rank

logger = logging.getLogger("academico")

# JWT bearer scheme; browsers send the session cookie instead
security_scheme = HTTPBearer(auto_error=False)

_TIMING_CLAIMS = ("exp", "iat")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=10)
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


def create_session_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Sign session claims into a JWT with a fixed TTL."""
    to_encode = {k: v for k, v in claims.items() if k not in _TIMING_CLAIMS}
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.SESSION_MAX_AGE_DAYS))
    to_encode.update({"iat": int(now.timestamp()), "exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 3600,
        httponly=True,
        samesite="lax",
    )


def _read_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def _maybe_refresh(claims: dict, response: Response) -> None:
    """Re-issue the token once it is older than the update age."""
    issued_at = claims.get("iat")
    if issued_at is None:
        return
    age = datetime.now(timezone.utc) - datetime.fromtimestamp(issued_at, tz=timezone.utc)
    if age < timedelta(hours=settings.SESSION_UPDATE_AGE_HOURS):
        return
    token = create_session_token(claims)
    response.headers["X-Session-Token"] = token
    set_session_cookie(response, token)


async def get_optional_session(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Optional[DisplaySession]:
    """Current session, or None when absent or unreadable."""
    token = _read_token(request, credentials)
    if not token:
        return None
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        logger.debug("Ignoring invalid session token")
        return None
    session = claims_to_session(claims)
    if session is not None:
        _maybe_refresh(claims, response)
    return session


async def get_current_session(
    session: Optional[DisplaySession] = Depends(get_optional_session),
) -> DisplaySession:
    """Current session; 401 when not signed in."""
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


class RequireRole:
    """Dependency that checks the session's acting role against a minimum role."""

    def __init__(self, min_role: TipoUsuario):
        self.min_role = min_role
        self.min_level = rank(min_role)

    async def __call__(
        self,
        session: Optional[DisplaySession] = Depends(get_optional_session),
    ) -> DisplaySession:
        if session is None:
            raise unauthorized()
        if not has_permission(session.tipo_login, self.min_role):
            raise forbidden(
                f"Role '{session.tipo_login.value}' insufficient. "
                f"Requires '{self.min_role.value}' or higher."
            )
        return session


# Convenience dependency factories
require_aluno = RequireRole(TipoUsuario.Aluno)
require_professor = RequireRole(TipoUsuario.Professor)
require_coordenador = RequireRole(TipoUsuario.Coordenador)
require_admin = RequireRole(TipoUsuario.Admin)
