"""Seed the admin account from env vars."""

from sqlalchemy.orm import Session
from academico.models.usuario import Usuario
from academico.core.roles import TipoUsuario
from academico.core.security import hash_password
from academico.core.config import settings
from academico.core.validators import only_digits


def seed_admin(db: Session) -> None:
    """Create the admin login account if not already present."""
    cpf = only_digits(settings.ADMIN_SEED_CPF)
    existing = db.query(Usuario).filter(Usuario.cpf == cpf).first()
    if existing:
        print(f"ℹ️  Admin '{cpf}' already exists, skipping.")
        return

    admin = Usuario(
        cpf=cpf,
        senha_hash=hash_password(settings.ADMIN_SEED_PASSWORD),
        tipo=TipoUsuario.Admin,
    )
    db.add(admin)
    db.commit()
    print(f"✅ Created admin: {cpf}")
