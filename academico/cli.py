"""Acadêmico CLI tool (academico)."""

import json
import os
from typing import Optional

import typer

app = typer.Typer(name="academico", help="Acadêmico CLI")
db_app = typer.Typer(help="Database management commands")
user_app = typer.Typer(help="Login account commands")
app.add_typer(db_app, name="db")
app.add_typer(user_app, name="user")

API_URL = os.getenv("ACADEMICO_API_URL", "http://localhost:8000")


def _mysql_connect():
    """Server-level PyMySQL connection and the database name from DATABASE_URL."""
    import pymysql
    from sqlalchemy.engine import make_url
    from academico.core.config import settings

    url = make_url(settings.DATABASE_URL)
    if not url.drivername.startswith("mysql"):
        raise typer.BadParameter(f"DATABASE_URL is not MySQL: {url.drivername}")
    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    return conn, url.database


def _auth_headers(token: Optional[str]) -> dict:
    token = token or os.getenv("ACADEMICO_TOKEN")
    if not token:
        raise typer.BadParameter("Pass --token or set ACADEMICO_TOKEN (see `academico login`)")
    return {"Authorization": f"Bearer {token}"}


@db_app.command("create")
def db_create():
    """Create the MySQL database if it doesn't exist."""
    conn, db_name = _mysql_connect()
    try:
        cursor = conn.cursor()
        cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{db_name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
        typer.echo(f"✅ Database '{db_name}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("init")
def db_init():
    """Create all tables."""
    from academico.db.base import Base
    from academico.db.session import engine
    import academico.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    typer.echo(f"✅ {len(Base.metadata.tables)} tables ready")


@db_app.command("seed")
def db_seed(sample: bool = typer.Option(True, help="Also seed sample courses and holidays")):
    """Seed the admin account and sample data."""
    from academico.db.session import SessionLocal
    from academico.db.seeds.seed_admin import seed_admin
    from academico.db.seeds.seed_sample_data import seed_sample_data

    db = SessionLocal()
    try:
        seed_admin(db)
        if sample:
            seed_sample_data(db)
    finally:
        db.close()
    typer.echo("✅ All seeds applied")


@db_app.command("reset")
def db_reset():
    """Drop and recreate the database (DANGER)."""
    confirm = typer.confirm("⚠️  This will DROP the entire database. Continue?")
    if not confirm:
        raise typer.Abort()
    conn, db_name = _mysql_connect()
    try:
        cursor = conn.cursor()
        cursor.execute(f"DROP DATABASE IF EXISTS `{db_name}`")
        cursor.execute(f"CREATE DATABASE `{db_name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
        typer.echo(f"✅ Database '{db_name}' reset")
    finally:
        conn.close()


@user_app.command("create")
def user_create(
    cpf: str = typer.Argument(..., help="CPF of the account"),
    tipo: str = typer.Option("Aluno", help="Aluno, Professor, Coordenador or Admin"),
    senha: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create a login account directly in the database."""
    from academico.core.roles import to_role
    from academico.core.exceptions import ResourceConflictError
    from academico.db.session import SessionLocal
    from academico.services.auth_service import auth_service

    role = to_role(tipo)
    if role is None:
        raise typer.BadParameter(f"Unknown role: {tipo}")
    db = SessionLocal()
    try:
        usuario = auth_service.create_user(db, cpf, senha, role)
    except ResourceConflictError as e:
        typer.echo(f"❌ {e.message}")
        raise typer.Exit(1)
    finally:
        db.close()
    typer.echo(f"✅ Created {role.value} account {usuario.cpf}")


@app.command("login")
def login(
    cpf: str = typer.Argument(...),
    tipo_login: str = typer.Option("Aluno", "--como", help="Acting role"),
    senha: str = typer.Option(..., prompt=True, hide_input=True),
):
    """Log in via the API and print the session token."""
    import httpx
    resp = httpx.post(
        f"{API_URL}/api/auth/login",
        json={"cpf": cpf, "senha": senha, "tipo_login": tipo_login},
    )
    if resp.status_code != 200:
        typer.echo(f"❌ {resp.json().get('detail')}")
        raise typer.Exit(1)
    typer.echo(resp.json()["access_token"])


@app.command("crud")
def crud(
    operation: str = typer.Argument(..., help="insert, get, update, delete or upsert"),
    table: str = typer.Argument(..., help="Table name or alias"),
    data: Optional[str] = typer.Option(None, help="JSON object"),
    primary_key: Optional[str] = typer.Option(None, "--pk", help="Primary key field(s), comma separated"),
    where: Optional[str] = typer.Option(None, help="JSON object with unique criteria"),
    token: Optional[str] = typer.Option(None, help="Session token"),
):
    """Send a request to the generic CRUD endpoint."""
    import httpx
    body = {"operation": operation, "table": table}
    if data:
        body["data"] = json.loads(data)
    if where:
        body["where"] = json.loads(where)
    if primary_key:
        keys = [k.strip() for k in primary_key.split(",")]
        body["primaryKey"] = keys[0] if len(keys) == 1 else keys
    resp = httpx.post(f"{API_URL}/api/crud", json=body, headers=_auth_headers(token))
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("academico.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
