from academico.models import AuditLog, Usuario

from conftest import PASSWORD, login


def test_create_and_list_are_admin_only(client, db, admin_headers, professor):
    resp = client.post(
        "/api/usuarios", json={"cpf": "10000000009", "senha": "abcdef", "tipo": "Professor"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    assert resp.json() == {"cpf": "10000000009", "tipo": "Professor", "created_at": resp.json()["created_at"]}
    assert "senha_hash" not in resp.json()

    dup = client.post(
        "/api/usuarios", json={"cpf": "10000000009", "senha": "abcdef"}, headers=admin_headers,
    )
    assert dup.status_code == 400

    listed = client.get("/api/usuarios", headers=admin_headers).json()
    assert listed["total"] == 3

    prof = login(client, professor.cpf, "Professor")
    assert client.get("/api/usuarios", headers=prof).status_code == 403
    assert db.query(AuditLog).filter(AuditLog.action == "usuario.create").count() == 1


def test_check_password_self_or_admin(client, professor_headers, aluno):
    ok = client.post(
        "/api/usuarios/check-password",
        json={"cpf": "90000000002", "senha": PASSWORD}, headers=professor_headers,
    )
    assert ok.json() == {"valid": True}

    other = client.post(
        "/api/usuarios/check-password",
        json={"cpf": aluno.cpf, "senha": PASSWORD}, headers=professor_headers,
    )
    assert other.status_code == 403


def test_change_own_password(client, db, aluno, aluno_headers):
    wrong = client.put(
        "/api/usuarios/password",
        json={"cpf": aluno.cpf, "senha_atual": "errada", "nova_senha": "novasenha"},
        headers=aluno_headers,
    )
    assert wrong.status_code == 400

    resp = client.put(
        "/api/usuarios/password",
        json={"cpf": aluno.cpf, "senha_atual": PASSWORD, "nova_senha": "novasenha"},
        headers=aluno_headers,
    )
    assert resp.status_code == 200
    login(client, aluno.cpf, "Aluno", senha="novasenha")


def test_admin_resets_any_password(client, admin_headers, professor):
    resp = client.put(
        "/api/usuarios/password",
        json={"cpf": professor.cpf, "nova_senha": "resetada"}, headers=admin_headers,
    )
    assert resp.status_code == 200
    login(client, professor.cpf, "Professor", senha="resetada")

    missing = client.put(
        "/api/usuarios/password",
        json={"cpf": "10000000000", "nova_senha": "resetada"}, headers=admin_headers,
    )
    assert missing.status_code == 404


def test_professor_cannot_reset_others(client, db, professor_headers, aluno):
    resp = client.put(
        "/api/usuarios/password",
        json={"cpf": aluno.cpf, "nova_senha": "resetada"}, headers=professor_headers,
    )
    assert resp.status_code == 403
    assert db.get(Usuario, aluno.cpf) is not None


def test_role_routes_answer_401_without_session(client):
    resp = client.get("/api/usuarios")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"
