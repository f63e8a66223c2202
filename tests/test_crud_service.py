from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from academico.core.exceptions import (
    MethodUnavailableError, MissingDataError, MissingPrimaryKeyError, ModelNotFoundError,
    RecordNotFoundError, UnsupportedOperationError, ValidationError,
)
from academico.models import Curso, Materia, TurmaAluno
from academico.services.crud_service import (
    CrudRegistry, CrudService, Repository, build_registry, crud_registry, crud_service,
)

from conftest import make_aluno


class ExplodingSession:
    """Fails on any storage access."""

    def __getattr__(self, name):
        raise AssertionError(f"storage touched: {name}")


@pytest.mark.parametrize("table", ["alunos", "Alunos", "aluno", "contatoAluno", "contato-aluno", "LOGS"])
def test_aliases_resolve(table):
    name, _ = crud_registry.resolve(table)
    assert name in crud_registry.names()


def test_unknown_table_never_touches_storage():
    with pytest.raises(ModelNotFoundError):
        crud_service.handle(ExplodingSession(), "get", "nao_existe")


def test_usuarios_are_not_exposed():
    with pytest.raises(ModelNotFoundError):
        crud_registry.resolve("usuarios")


def test_registry_rejects_alias_to_unregistered_name():
    registry = CrudRegistry()
    with pytest.raises(ValueError):
        registry.alias("curso", "cursos")
    registry.register("cursos", Repository(Curso))
    registry.register("materias", Repository(Materia))
    with pytest.raises(ValueError):
        registry.alias("cursos", "materias")


def test_build_registry_validates():
    assert "audit_logs" in build_registry().validate()


def test_update_without_primary_key(db):
    with pytest.raises(MissingPrimaryKeyError):
        crud_service.handle(db, "update", "cursos", data={"nome_curso": "X"})


def test_update_without_data(db):
    with pytest.raises(MissingDataError):
        crud_service.handle(db, "update", "cursos", primary_key="id_curso")


def test_key_value_missing_from_data(db):
    with pytest.raises(MissingPrimaryKeyError):
        crud_service.handle(db, "delete", "cursos", primary_key="id_curso", data={"nome_curso": "X"})


def test_insert_then_get(db):
    created = crud_service.handle(
        db, "insert", "cursos", data={"nome_curso": "Informática", "carga_horaria_total": 1200},
    )
    assert created["id_curso"] > 0
    assert created["created_at"] is not None

    rows = crud_service.handle(db, "get", "curso")
    assert [r["nome_curso"] for r in rows] == ["Informática"]


def test_insert_requires_data(db):
    with pytest.raises(MissingDataError):
        crud_service.handle(db, "insert", "cursos")


def test_update_applies_remaining_fields(db):
    curso = crud_service.handle(db, "insert", "cursos", data={"nome_curso": "A", "carga_horaria_total": 10})
    updated = crud_service.handle(
        db, "update", "cursos", primary_key="id_curso",
        data={"id_curso": curso["id_curso"], "nome_curso": "B"},
    )
    assert updated["nome_curso"] == "B"
    assert updated["carga_horaria_total"] == 10


def test_update_missing_record(db):
    with pytest.raises(RecordNotFoundError):
        crud_service.handle(
            db, "update", "cursos", primary_key="id_curso", data={"id_curso": 999, "nome_curso": "X"},
        )


def test_delete_returns_confirmation(db):
    curso = crud_service.handle(db, "insert", "cursos", data={"nome_curso": "A", "carga_horaria_total": 10})
    result = crud_service.handle(
        db, "delete", "cursos", primary_key="id_curso", data={"id_curso": curso["id_curso"]},
    )
    assert result == {"deleted": True, "id_curso": curso["id_curso"]}
    assert db.query(Curso).count() == 0


def test_composite_key_delete(db, turma):
    aluno = make_aluno(db, "12345678900")
    crud_service.handle(
        db, "insert", "turma_aluno",
        data={"id_turma": turma["turma"].id_turma, "id_aluno": aluno.id_aluno},
    )
    crud_service.handle(
        db, "delete", "turmaAluno", primary_key=["id_turma", "id_aluno"],
        data={"id_turma": turma["turma"].id_turma, "id_aluno": aluno.id_aluno},
    )
    assert db.query(TurmaAluno).count() == 0


def test_upsert_with_nested_unique_constraint(db, turma, professor):
    aluno = make_aluno(db, "12345678900")
    criterio = {
        "id_aluno": aluno.id_aluno,
        "id_materia": turma["materia"].id_materia,
        "id_turma": turma["turma"].id_turma,
        "tipo_avaliacao": "Prova",
    }
    data = {**criterio, "nome": "P1", "valor_nota": "7.5", "id_professor": professor.cpf}
    first = crud_service.handle(db, "upsert", "notas", data=data, where={"uc_aluno_materia_turma_tipo": criterio})
    second = crud_service.handle(
        db, "upsert", "notas", data={**data, "valor_nota": 9}, where={"uc_aluno_materia_turma_tipo": criterio},
    )
    assert first["id_nota"] == second["id_nota"]
    assert second["valor_nota"] == Decimal("9")


def test_upsert_falls_back_to_primary_key(db):
    created = crud_service.handle(
        db, "upsert", "dias_nao_letivos", primary_key="data",
        data={"data": "2025-04-21", "descricao": "Tiradentes"},
    )
    assert created["data"] == date(2025, 4, 21)
    updated = crud_service.handle(
        db, "upsert", "dias_nao_letivos", primary_key="data",
        data={"data": "2025-04-21", "descricao": "Feriado"},
    )
    assert updated["id"] == created["id"]
    assert updated["descricao"] == "Feriado"


def test_read_only_collection(db):
    assert crud_service.handle(db, "get", "audit_logs") == []
    with pytest.raises(MethodUnavailableError):
        crud_service.handle(db, "insert", "audit_logs", data={"action": "x", "resource_type": "y"})


def test_unsupported_operation(db):
    with pytest.raises(UnsupportedOperationError):
        crud_service.handle(db, "truncate", "cursos")


def test_unknown_fields_rejected(db):
    with pytest.raises(ValidationError):
        crud_service.handle(db, "insert", "cursos", data={"nome_curso": "A", "inexistente": 1})


def test_get_with_relations(db, turma):
    rows = crud_service.handle(db, "get", "turmas", relations={"curso": True, "alunos": False})
    assert rows[0]["curso"]["nome_curso"] == "Informática"
    assert "alunos" not in rows[0]
    with pytest.raises(ValidationError):
        crud_service.handle(db, "get", "turmas", relations={"nada": True})


def test_storage_errors_propagate_and_roll_back(db):
    with pytest.raises(IntegrityError):
        crud_service.handle(db, "insert", "cursos", data={"nome_curso": "Sem carga"})
    # session still usable after the rollback
    assert crud_service.handle(db, "get", "cursos") == []


def test_repository_rejects_unknown_operations():
    with pytest.raises(ValueError):
        Repository(Curso, {"get", "merge"})


def test_service_uses_its_own_registry(db):
    registry = CrudRegistry()
    registry.register("materias", Repository(Materia, {"get"}))
    service = CrudService(registry)
    with pytest.raises(ModelNotFoundError):
        service.handle(db, "get", "cursos")
    with pytest.raises(MethodUnavailableError):
        service.handle(db, "delete", "materias", primary_key="id_materia", data={"id_materia": 1})
