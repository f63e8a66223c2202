from datetime import date

import pytest

from academico.core.exceptions import ValidationError
from academico.models import DocAula, DocumentoPreCadastro, PreCadastro, StatusPreCadastro
from academico.services.documento_service import Arquivo, documento_service
from academico.services.pre_cadastro_service import pre_cadastro_service

from conftest import CPF_VALIDO, make_aula

PDF = ("plano.pdf", b"%PDF-1.4 plano", "application/pdf")
PNG = ("quadro.png", b"\x89PNG fake", "image/png")


def _dados(turma):
    return {
        "nome": "Lucas", "sobrenome": "Pereira", "cpf": CPF_VALIDO, "rg": "123456789",
        "nome_mae": "Helena Pereira", "data_nasc": date(2000, 1, 15),
        "email": "lucas.pereira@gmail.com", "telefone": "11988887777",
        "cep": "01001000", "rua": "Praça da Sé", "cidade": "São Paulo", "uf": "SP",
        "numero": "100", "id_curso_desejado": turma["curso"].id_curso,
    }


def test_professor_uploads_and_lists_material(client, db, turma, professor_headers, aluno_headers, storage):
    aula = make_aula(db, turma)
    resp = client.post(
        f"/api/aulas/{aula.id_aula}/arquivos",
        files=[("arquivos", PDF), ("arquivos", PNG)],
        data={"tipo": "materiais"},
        headers=professor_headers,
    )
    assert resp.status_code == 201, resp.text
    srcs = [a["src"] for a in resp.json()["arquivos"]]
    prefix = f"uploads/turmas/{turma['turma'].id_turma}/aulas/{aula.id_aula}/materiais/"
    assert all(src.startswith(prefix) for src in srcs)
    assert set(storage.objects) == set(srcs)

    listed = client.get(f"/api/aulas/{aula.id_aula}/arquivos", headers=aluno_headers)
    assert [d["src"] for d in listed.json()["data"]] == srcs

    por_turma = client.get(f"/api/aulas/turma/{turma['turma'].id_turma}/arquivos", headers=professor_headers)
    assert len(por_turma.json()["data"]) == 2


def test_material_upload_rules(client, db, turma, professor_headers, aluno_headers, storage):
    aula = make_aula(db, turma)
    url = f"/api/aulas/{aula.id_aula}/arquivos"

    forbidden = client.post(url, files=[("arquivos", PDF)], data={"tipo": "materiais"}, headers=aluno_headers)
    assert forbidden.status_code == 403

    bad_tipo = client.post(url, files=[("arquivos", PDF)], data={"tipo": "provas"}, headers=professor_headers)
    assert bad_tipo.status_code == 400

    one_bad_file = client.post(
        url,
        files=[("arquivos", PDF), ("arquivos", ("virus.exe", b"MZ", "application/octet-stream"))],
        data={"tipo": "planejamento"},
        headers=professor_headers,
    )
    assert one_bad_file.status_code == 400
    assert storage.objects == {}
    assert db.query(DocAula).count() == 0

    missing = client.post("/api/aulas/999/arquivos", files=[("arquivos", PDF)],
                          data={"tipo": "materiais"}, headers=professor_headers)
    assert missing.status_code == 404


def test_delete_material_removes_object(client, db, turma, professor_headers, storage):
    aula = make_aula(db, turma)
    doc = documento_service.anexar_aula(db, aula.id_aula, [Arquivo(*PDF)], "planejamento")[0]
    key = doc.src

    resp = client.delete(f"/api/aulas/arquivos/{doc.id_doc_aula}", headers=professor_headers)
    assert resp.status_code == 200
    assert key not in storage.objects
    assert db.query(DocAula).count() == 0

    again = client.delete(f"/api/aulas/arquivos/{doc.id_doc_aula}", headers=professor_headers)
    assert again.status_code == 404


def test_stored_files_are_dropped_when_rows_fail(db, turma, storage, monkeypatch):
    aula = make_aula(db, turma)

    def broken_commit():
        raise RuntimeError("database down")

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(RuntimeError):
        documento_service.anexar_aula(db, aula.id_aula, [Arquivo(*PDF), Arquivo(*PNG)], "materiais")
    assert storage.objects == {}


def test_applicant_sends_typed_documents(client, db, turma, coordenador_headers, storage):
    pre = pre_cadastro_service.submeter(db, _dados(turma))
    resp = client.post(
        f"/api/pre-cadastro/{pre.id_pre_cadastro}/documentos",
        files=[("documentos", ("rg.pdf", b"%PDF rg", "application/pdf")),
               ("documentos", ("foto.jpg", b"\xff\xd8 foto", "image/jpeg"))],
        data={"tipos": ["RG", "Foto3x4"]},
    )
    assert resp.status_code == 201, resp.text
    docs = resp.json()["documentos"]
    assert [d["tipo_documento"] for d in docs] == ["RG", "Foto3x4"]
    assert docs[0]["nome_arquivo"] == "rg.pdf"
    assert docs[0]["tamanho_arquivo"] == len(b"%PDF rg")
    assert docs[0]["caminho_arquivo"].startswith(f"uploads/pre-cadastros/{pre.id_pre_cadastro}/")
    db.refresh(pre)
    assert pre.status == StatusPreCadastro.EmAnalise

    listed = client.get(f"/api/pre-cadastro/{pre.id_pre_cadastro}/documentos", headers=coordenador_headers)
    assert len(listed.json()["data"]) == 2

    removed = client.delete(f"/api/pre-cadastro/documentos/{docs[0]['id_documento']}", headers=coordenador_headers)
    assert removed.status_code == 200
    assert docs[0]["caminho_arquivo"] not in storage.objects
    assert db.query(DocumentoPreCadastro).count() == 1


def test_document_count_and_type_checks(client, db, turma, storage):
    pre = pre_cadastro_service.submeter(db, _dados(turma))
    url = f"/api/pre-cadastro/{pre.id_pre_cadastro}/documentos"
    arquivo = ("documentos", ("rg.pdf", b"%PDF rg", "application/pdf"))

    mismatch = client.post(url, files=[arquivo], data={"tipos": ["RG", "CPF"]})
    assert mismatch.status_code == 400
    assert "não coincidem" in mismatch.json()["detail"]

    unknown = client.post(url, files=[arquivo], data={"tipos": ["Passaporte"]})
    assert unknown.status_code == 400

    missing = client.post("/api/pre-cadastro/999/documentos", files=[arquivo], data={"tipos": ["RG"]})
    assert missing.status_code == 404
    assert storage.objects == {}


def test_reviewed_application_takes_no_documents(db, turma, coordenador, storage):
    pre = pre_cadastro_service.submeter(db, _dados(turma))
    pre_cadastro_service.avaliar(db, pre.id_pre_cadastro, StatusPreCadastro.Aprovado, coordenador.cpf)

    with pytest.raises(ValidationError):
        documento_service.anexar_pre_cadastro(db, pre.id_pre_cadastro, [Arquivo("rg.pdf", b"%PDF")], ["RG"])
    assert db.get(PreCadastro, pre.id_pre_cadastro).status == StatusPreCadastro.Aprovado


def test_document_review_needs_coordenador(client, db, turma, professor_headers, storage):
    pre = pre_cadastro_service.submeter(db, _dados(turma))
    resp = client.get(f"/api/pre-cadastro/{pre.id_pre_cadastro}/documentos", headers=professor_headers)
    assert resp.status_code == 403
