from datetime import timedelta

import pytest
from jose import jwt

from academico.core.config import settings
from academico.core.exceptions import ResourceConflictError
from academico.core.principal import Principal, Profile, build_claims
from academico.core.roles import TipoUsuario
from academico.core.security import create_session_token, decode_token
from academico.models import AuditLog
from academico.services.auth_service import auth_service

from conftest import PASSWORD, make_aluno, make_professor, make_user


def _login(client, cpf, tipo_login, senha=PASSWORD):
    return client.post(
        "/api/auth/login", json={"cpf": cpf, "senha": senha, "tipo_login": tipo_login},
    )


def test_professor_cannot_log_in_as_admin(client, professor):
    resp = _login(client, professor.cpf, "Admin")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Falha na autenticação"


def test_professor_can_act_as_aluno_with_student_record(client, db, professor):
    make_aluno(db, professor.cpf, nome="Pedro")
    resp = _login(client, professor.cpf, "Aluno")
    assert resp.status_code == 200
    session = resp.json()["session"]
    assert session["tipo"] == "Professor"
    assert session["tipo_login"] == "Aluno"
    assert session["nome"] == "Pedro"
    assert session["is_impersonating"] is True


def test_acting_role_without_profile_fails(client, professor):
    # no student record for this CPF
    assert _login(client, professor.cpf, "Aluno").status_code == 401


def test_failures_are_indistinguishable(client, professor):
    wrong_password = _login(client, professor.cpf, "Professor", senha="errada")
    unknown = _login(client, "12312312312", "Professor")
    too_high = _login(client, professor.cpf, "Coordenador")
    assert wrong_password.status_code == unknown.status_code == too_high.status_code == 401
    assert wrong_password.json() == unknown.json() == too_high.json()


def test_admin_profile_comes_from_settings(client, admin):
    resp = _login(client, admin.cpf, "Admin")
    assert resp.status_code == 200
    session = resp.json()["session"]
    assert session["nome"] == settings.ADMIN_PROFILE_NOME
    assert session["email"] == settings.ADMIN_PROFILE_EMAIL
    assert session["is_impersonating"] is False


def test_admin_profile_enriched_from_staff_record(client, db, admin):
    make_professor(db, admin.cpf, nome="Helena", cargo="Diretora")
    session = _login(client, admin.cpf, "Admin").json()["session"]
    assert session["nome"] == "Helena"


def test_login_accepts_formatted_cpf_and_sets_cookie(client, professor):
    cpf = professor.cpf
    formatted = f"{cpf[:3]}.{cpf[3:6]}.{cpf[6:9]}-{cpf[9:]}"
    resp = _login(client, formatted, "Professor")
    assert resp.status_code == 200
    assert settings.SESSION_COOKIE_NAME in resp.cookies

    # cookie alone identifies the session
    me = client.get("/api/auth/session")
    assert me.status_code == 200
    assert me.json()["tipo_login"] == "Professor"


def test_login_is_audited(client, db, professor):
    _login(client, professor.cpf, "Professor")
    entry = db.query(AuditLog).filter(AuditLog.action == "auth.login").one()
    assert entry.actor_cpf == professor.cpf
    assert entry.actor_tipo == "Professor"


def test_session_requires_token(client):
    assert client.get("/api/auth/session").status_code == 401


def test_logout_clears_cookie(client, professor):
    _login(client, professor.cpf, "Professor")
    client.post("/api/auth/logout")
    assert client.get("/api/auth/session").status_code == 401


def test_old_token_is_refreshed(client, db):
    make_user(db, "90000000009", TipoUsuario.Professor)
    make_professor(db, "90000000009")
    claims = build_claims(
        Principal("90000000009", TipoUsuario.Professor, TipoUsuario.Professor),
        Profile(nome="Maria"),
    )
    old = decode_token(create_session_token(claims))
    old["iat"] -= int(timedelta(hours=settings.SESSION_UPDATE_AGE_HOURS + 1).total_seconds())
    stale = jwt.encode(old, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    resp = client.get("/api/auth/session", headers={"Authorization": f"Bearer {stale}"})
    assert resp.status_code == 200
    fresh = resp.headers["X-Session-Token"]
    assert decode_token(fresh)["iat"] > old["iat"]


def test_tampered_acting_role_is_ignored(client):
    token = jwt.encode(
        {"sub": "1", "tipo": "Aluno", "tipo_login": "Admin", "nome": "X"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    resp = client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_refresh_endpoint_keeps_identity(client, professor_headers):
    resp = client.post("/api/auth/refresh", headers=professor_headers)
    assert resp.status_code == 200
    assert decode_token(resp.json()["access_token"])["tipo_login"] == "Professor"


def test_create_user_rejects_duplicates(db, professor):
    with pytest.raises(ResourceConflictError):
        auth_service.create_user(db, professor.cpf, "outra123", TipoUsuario.Aluno)


def test_login_form_sets_cookie_and_opens_dashboard(client, professor):
    resp = client.post(
        "/api/auth/login/form",
        data={"cpf": professor.cpf, "senha": PASSWORD, "tipo_login": "Professor"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/pages/professor"
    assert settings.SESSION_COOKIE_NAME in resp.cookies

    page = client.get("/pages/professor")
    assert page.status_code == 200
    assert "Painel de Aulas" in page.text


def test_login_form_failure_returns_to_login_page(client, professor):
    resp = client.post(
        "/api/auth/login/form",
        data={"cpf": professor.cpf, "senha": "errada", "tipo_login": "Professor"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/pages/login?erro=1"
    page = client.get(resp.headers["location"])
    assert "inválidos" in page.text


def test_login_page_posts_to_form_route(client):
    page = client.get("/pages/login")
    assert 'action="/api/auth/login/form"' in page.text
    assert "inválidos" not in page.text
