"""Auth service — credential login with acting-role selection, user management."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from academico.core.config import settings
from academico.core.exceptions import ResourceConflictError, ResourceNotFoundError
from academico.core.principal import (
    DisplaySession, Principal, Profile, build_claims, claims_to_session,
)
from academico.core.roles import TipoUsuario, has_permission, to_role
from academico.core.security import create_session_token, hash_password, verify_password
from academico.core.validators import format_cpf, only_digits
from academico.models.aluno import Aluno
from academico.models.professor import Professor
from academico.models.usuario import Usuario

logger = logging.getLogger("academico")

STAFF_ROLES = (TipoUsuario.Professor, TipoUsuario.Coordenador, TipoUsuario.Admin)


def _cpf_variants(cpf: str) -> List[str]:
    digits = only_digits(cpf)
    return list(dict.fromkeys([cpf, digits, format_cpf(digits)]))


def _staff_profile(staff: Professor) -> Profile:
    return Profile(
        nome=staff.nome,
        sobrenome=staff.sobrenome,
        email=staff.email,
        telefone=staff.tel,
        foto_path=staff.foto_path,
    )


class AuthService:
    """Handles authentication and account management."""

    @staticmethod
    def find_user(db: Session, cpf: str) -> Optional[Usuario]:
        return db.query(Usuario).filter(Usuario.cpf.in_(_cpf_variants(cpf))).first()

    @staticmethod
    def find_staff(db: Session, cpf: str) -> Optional[Professor]:
        return db.query(Professor).filter(Professor.id_professor.in_(_cpf_variants(cpf))).first()

    @staticmethod
    def find_student(db: Session, cpf: str) -> Optional[Aluno]:
        return db.query(Aluno).filter(Aluno.cpf.in_(_cpf_variants(cpf))).first()

    @staticmethod
    def resolve_profile(db: Session, usuario: Usuario, tipo_login: TipoUsuario) -> Optional[Profile]:
        """Display profile for acting as ``tipo_login``.

        Professor/Coordenador read the staff record, Aluno the student record.
        Admin has no profile table: the configured admin profile is used,
        taking name and photo from the staff record when the account has one.
        """
        if tipo_login in (TipoUsuario.Professor, TipoUsuario.Coordenador):
            staff = AuthService.find_staff(db, usuario.cpf)
            return _staff_profile(staff) if staff else None

        if tipo_login == TipoUsuario.Aluno:
            aluno = AuthService.find_student(db, usuario.cpf)
            if aluno is None:
                return None
            return Profile(
                nome=aluno.nome,
                sobrenome=aluno.sobrenome,
                email=aluno.email,
                foto_path=aluno.foto_path,
            )

        profile = Profile(
            nome=settings.ADMIN_PROFILE_NOME,
            sobrenome=settings.ADMIN_PROFILE_SOBRENOME,
            email=settings.ADMIN_PROFILE_EMAIL,
        )
        if to_role(usuario.tipo) in STAFF_ROLES:
            staff = AuthService.find_staff(db, usuario.cpf)
            if staff is not None:
                staff_profile = _staff_profile(staff)
                profile = Profile(
                    nome=staff_profile.nome,
                    sobrenome=staff_profile.sobrenome,
                    email=staff_profile.email or profile.email,
                    telefone=staff_profile.telefone,
                    foto_path=staff_profile.foto_path,
                )
        return profile

    @staticmethod
    def authenticate(
        db: Session,
        cpf: str,
        senha: str,
        tipo_login: TipoUsuario,
    ) -> Optional[Dict[str, Any]]:
        """Log in acting as ``tipo_login``.

        Returns the session token and display session, or None. Callers only
        learn that authentication failed; the reason is logged here.
        """
        usuario = AuthService.find_user(db, cpf)
        if usuario is None:
            logger.info("Login failed for %s: unknown account", cpf)
            return None

        if not verify_password(senha, usuario.senha_hash):
            logger.info("Login failed for %s: wrong password", cpf)
            return None

        if not has_permission(usuario.tipo, tipo_login):
            logger.info(
                "Login failed for %s: role %s cannot act as %s",
                cpf, usuario.tipo.value, tipo_login.value,
            )
            return None

        profile = AuthService.resolve_profile(db, usuario, tipo_login)
        if profile is None:
            logger.info("Login failed for %s: no %s profile", cpf, tipo_login.value)
            return None

        principal = Principal(cpf=usuario.cpf, tipo=usuario.tipo, tipo_login=tipo_login)
        claims = build_claims(principal, profile)
        return {
            "access_token": create_session_token(claims),
            "token_type": "bearer",
            "session": claims_to_session(claims),
        }

    @staticmethod
    def refresh(session: DisplaySession) -> str:
        """New token carrying the same identity and profile."""
        principal = Principal(cpf=session.cpf, tipo=session.tipo, tipo_login=session.tipo_login)
        profile = Profile(
            nome=session.nome,
            sobrenome=session.sobrenome,
            email=session.email,
            telefone=session.telefone,
            foto_path=session.foto_path,
        )
        return create_session_token(build_claims(principal, profile))

    @staticmethod
    def add_account(db: Session, cpf: str, senha: str, tipo: TipoUsuario) -> Optional[Usuario]:
        """Stage a login account in the caller's transaction.

        Returns None when the CPF already has an account.
        """
        cpf = only_digits(cpf)
        if AuthService.find_user(db, cpf):
            return None
        usuario = Usuario(cpf=cpf, senha_hash=hash_password(senha), tipo=tipo)
        db.add(usuario)
        db.flush()
        return usuario

    @staticmethod
    def create_user(db: Session, cpf: str, senha: str, tipo: TipoUsuario) -> Usuario:
        """Create a login account."""
        usuario = AuthService.add_account(db, cpf, senha, tipo)
        if usuario is None:
            raise ResourceConflictError("Usuário já cadastrado.")
        db.commit()
        db.refresh(usuario)
        return usuario

    @staticmethod
    def get_user(db: Session, cpf: str) -> Usuario:
        usuario = AuthService.find_user(db, cpf)
        if not usuario:
            raise ResourceNotFoundError("Usuário não encontrado")
        return usuario

    @staticmethod
    def check_password(db: Session, cpf: str, senha: str) -> bool:
        return verify_password(senha, AuthService.get_user(db, cpf).senha_hash)

    @staticmethod
    def update_password(db: Session, cpf: str, nova_senha: str) -> None:
        usuario = AuthService.get_user(db, cpf)
        usuario.senha_hash = hash_password(nova_senha)
        db.commit()

    @staticmethod
    def list_users(db: Session, page: int = 1, page_size: int = 20):
        total = db.query(Usuario).count()
        users = (
            db.query(Usuario)
            .order_by(Usuario.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"users": users, "total": total, "page": page}


auth_service = AuthService()
