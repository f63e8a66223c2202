from datetime import date

import pytest

from academico.core.exceptions import ResourceConflictError, ValidationError
from academico.core.roles import TipoUsuario
from academico.core.security import verify_password
from academico.models import Aluno, ContatoAluno, Endereco, PreCadastro, StatusPreCadastro, Usuario
from academico.services.pre_cadastro_service import pre_cadastro_service

from conftest import CPF_VALIDO, CPF_VALIDO_2, login, make_aluno, make_user


def _form(turma, **overrides):
    hoje = date.today()
    body = {
        "nome": "Lucas",
        "sobrenome": "Pereira",
        "cpf": "529.982.247-25",
        "rg": "123456789",
        "nome_mae": "Helena Pereira",
        "data_nasc": date(hoje.year - 20, 1, 15).isoformat(),
        "email": "lucas.pereira@gmail.com",
        "telefone": "(11) 98888-7777",
        "cep": "01001-000",
        "rua": "Praça da Sé",
        "cidade": "São Paulo",
        "uf": "SP",
        "numero": "100",
        "id_curso_desejado": turma["curso"].id_curso,
    }
    body.update(overrides)
    return body


def _submeter(client, turma, **overrides):
    return client.post("/api/pre-cadastro", json=_form(turma, **overrides))


def test_submission_is_public_and_normalized(client, db, turma):
    resp = _submeter(client, turma)
    assert resp.status_code == 201, resp.text
    pre = db.get(PreCadastro, resp.json()["id_pre_cadastro"])
    assert pre.cpf == CPF_VALIDO
    assert pre.cep == "01001000"
    assert pre.status == StatusPreCadastro.Pendente


@pytest.mark.parametrize("overrides", [
    {"cpf": "111.111.111-11"},
    {"cpf": "52998224724"},
    {"uf": "XX"},
    {"cep": "1001-000"},
    {"rg": "12AB"},
    {"nome": "Lucas 2"},
    {"telefone": "11-abc-0000"},
    {"data_nasc": date(date.today().year - 10, 1, 1).isoformat()},
    {"data_nasc": date(date.today().year - 101, 1, 1).isoformat()},
])
def test_invalid_forms_are_rejected(client, db, turma, overrides):
    assert _submeter(client, turma, **overrides).status_code == 422
    assert db.query(PreCadastro).count() == 0


def test_minor_needs_guardian_phone(client, turma):
    menor = date(date.today().year - 16, 1, 1).isoformat()
    assert _submeter(client, turma, data_nasc=menor).status_code == 422
    resp = _submeter(
        client, turma, data_nasc=menor,
        telefone_responsavel="11977776666", nome_responsavel="Helena Pereira",
    )
    assert resp.status_code == 201


def test_unknown_course(client, turma):
    resp = _submeter(client, turma, id_curso_desejado=999)
    assert resp.status_code == 400


def test_duplicate_submission_conflicts(client, db, turma):
    assert _submeter(client, turma).status_code == 201
    assert _submeter(client, turma, cpf=CPF_VALIDO).status_code == 409


def test_resubmission_after_rejection(db, turma, coordenador):
    pre = pre_cadastro_service.submeter(db, _dados(turma))
    pre_cadastro_service.avaliar(
        db, pre.id_pre_cadastro, StatusPreCadastro.Rejeitado, coordenador.cpf,
        motivo_rejeicao="Documentação ilegível",
    )
    again = pre_cadastro_service.submeter(db, _dados(turma))
    assert again.id_pre_cadastro != pre.id_pre_cadastro


def test_existing_student_conflicts(client, db, turma):
    make_aluno(db, "529.982.247-25")
    assert _submeter(client, turma).status_code == 409


def _dados(turma, **overrides):
    dados = _form(turma, **{"cpf": CPF_VALIDO, "cep": "01001000", **overrides})
    dados["data_nasc"] = date.fromisoformat(dados["data_nasc"])
    return dados


def test_avaliar_rules(db, turma, coordenador):
    pre = pre_cadastro_service.submeter(db, _dados(turma))

    with pytest.raises(ValidationError):
        pre_cadastro_service.avaliar(db, pre.id_pre_cadastro, StatusPreCadastro.Rejeitado, coordenador.cpf)

    em_analise = pre_cadastro_service.avaliar(
        db, pre.id_pre_cadastro, StatusPreCadastro.EmAnalise, coordenador.cpf,
    )
    assert em_analise.status == StatusPreCadastro.EmAnalise

    aprovado = pre_cadastro_service.avaliar(
        db, pre.id_pre_cadastro, StatusPreCadastro.Aprovado, coordenador.cpf, observacoes="Ok",
    )
    assert aprovado.avaliado_por == coordenador.cpf
    assert aprovado.data_avaliacao is not None

    with pytest.raises(ValidationError):
        pre_cadastro_service.avaliar(db, pre.id_pre_cadastro, StatusPreCadastro.Rejeitado, coordenador.cpf,
                                     motivo_rejeicao="Tarde demais")


def test_converter_creates_student_records(db, turma, coordenador):
    pre = pre_cadastro_service.submeter(db, _dados(turma))

    with pytest.raises(ValidationError):
        pre_cadastro_service.converter(db, pre.id_pre_cadastro)

    pre_cadastro_service.avaliar(db, pre.id_pre_cadastro, StatusPreCadastro.Aprovado, coordenador.cpf)
    result = pre_cadastro_service.converter(db, pre.id_pre_cadastro)
    aluno = result["aluno"]
    assert aluno["cpf"] == "529.982.247-25"
    assert aluno["rg"] == "12.345.678-9"
    assert aluno["descricao"] == "Criado automaticamente a partir do pré-cadastro"

    contato = db.query(ContatoAluno).filter(ContatoAluno.id_aluno == aluno["id_aluno"]).one()
    assert contato.tel1 == "(11) 98888-7777"
    assert contato.nome_tel1 == "Helena Pereira"
    endereco = db.query(Endereco).filter(Endereco.id_aluno == aluno["id_aluno"]).one()
    assert (endereco.cep, endereco.uf) == ("01001000", "SP")

    conta = db.get(Usuario, CPF_VALIDO)
    assert conta.tipo == TipoUsuario.Aluno
    assert verify_password(result["senha_temporaria"], conta.senha_hash)

    with pytest.raises(ResourceConflictError):
        pre_cadastro_service.converter(db, pre.id_pre_cadastro)
    assert db.query(Aluno).count() == 1


def test_pre_cadastro_api_requires_coordenador(client, db, turma, professor_headers, coordenador_headers):
    pre = pre_cadastro_service.submeter(db, _dados(turma, cpf=CPF_VALIDO_2))

    assert client.get("/api/pre-cadastro", headers=professor_headers).status_code == 403

    listed = client.get("/api/pre-cadastro?status=Pendente", headers=coordenador_headers)
    assert listed.status_code == 200
    assert [p["id_pre_cadastro"] for p in listed.json()["data"]] == [pre.id_pre_cadastro]

    rejected = client.post(
        f"/api/pre-cadastro/{pre.id_pre_cadastro}/avaliar",
        json={"status": "Rejeitado"}, headers=coordenador_headers,
    )
    assert rejected.status_code == 422

    approved = client.post(
        f"/api/pre-cadastro/{pre.id_pre_cadastro}/avaliar",
        json={"status": "Aprovado"}, headers=coordenador_headers,
    )
    assert approved.json()["data"]["status"] == "Aprovado"

    converted = client.post(f"/api/pre-cadastro/{pre.id_pre_cadastro}/converter", headers=coordenador_headers)
    assert converted.status_code == 201
    assert converted.json()["aluno"]["cpf"] == "111.444.777-35"

    missing = client.post("/api/pre-cadastro/999/converter", headers=coordenador_headers)
    assert missing.status_code == 404


def test_converted_student_can_log_in(client, db, turma, coordenador_headers):
    pre = pre_cadastro_service.submeter(db, _dados(turma))
    client.post(f"/api/pre-cadastro/{pre.id_pre_cadastro}/avaliar",
                json={"status": "Aprovado"}, headers=coordenador_headers)

    converted = client.post(f"/api/pre-cadastro/{pre.id_pre_cadastro}/converter", headers=coordenador_headers)
    senha = converted.json()["senha_temporaria"]
    assert senha

    headers = login(client, CPF_VALIDO, "Aluno", senha=senha)
    session = client.get("/api/auth/session", headers=headers).json()
    assert session["nome"] == "Lucas"
    assert session["tipo"] == "Aluno"


def test_converter_keeps_existing_account(db, turma, coordenador):
    make_user(db, CPF_VALIDO, TipoUsuario.Professor)
    pre = pre_cadastro_service.submeter(db, _dados(turma))
    pre_cadastro_service.avaliar(db, pre.id_pre_cadastro, StatusPreCadastro.Aprovado, coordenador.cpf)

    result = pre_cadastro_service.converter(db, pre.id_pre_cadastro)
    assert result["senha_temporaria"] is None
    assert db.get(Usuario, CPF_VALIDO).tipo == TipoUsuario.Professor
