import pytest

from academico.core.roles import (
    USER_HIERARCHY, TipoUsuario, accessible_levels, has_permission, is_exactly, rank, to_role,
)


ROLES = list(TipoUsuario)


def test_hierarchy_ranks():
    assert [rank(r) for r in ROLES] == [1, 2, 3, 4]
    assert rank("Coordenador") == 3


def test_hierarchy_is_read_only():
    with pytest.raises(TypeError):
        USER_HIERARCHY[TipoUsuario.Aluno] = 9


@pytest.mark.parametrize("held", ROLES)
@pytest.mark.parametrize("required", ROLES)
def test_has_permission_matches_rank_order(held, required):
    assert has_permission(held, required) == (rank(held) >= rank(required))


def test_has_permission_is_monotonic():
    for required in ROLES:
        allowed = [has_permission(held, required) for held in ROLES]
        # once granted, every higher role is granted too
        assert allowed == sorted(allowed)


def test_missing_or_unknown_held_role_is_denied():
    assert has_permission(None, TipoUsuario.Aluno) is False
    assert has_permission("Diretor", TipoUsuario.Aluno) is False


def test_unknown_required_role_raises():
    with pytest.raises(ValueError):
        has_permission(TipoUsuario.Admin, "Diretor")
    with pytest.raises(ValueError):
        rank("Diretor")


def test_accessible_levels():
    assert accessible_levels(TipoUsuario.Coordenador) == [
        TipoUsuario.Aluno, TipoUsuario.Professor, TipoUsuario.Coordenador,
    ]
    assert accessible_levels("Aluno") == [TipoUsuario.Aluno]
    assert accessible_levels(TipoUsuario.Admin) == ROLES
    assert accessible_levels(None) == []


def test_is_exactly_and_to_role():
    assert is_exactly("Admin", TipoUsuario.Admin)
    assert not is_exactly(TipoUsuario.Admin, TipoUsuario.Coordenador)
    assert not is_exactly(None, TipoUsuario.Aluno)
    assert to_role("Professor") is TipoUsuario.Professor
    assert to_role("professor") is None
