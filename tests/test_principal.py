import pytest

from academico.core.principal import (
    DisplaySession, Principal, Profile, build_claims, claims_to_session,
)
from academico.core.roles import TipoUsuario


def test_principal_cannot_act_above_stored_role():
    with pytest.raises(ValueError):
        Principal("123", TipoUsuario.Professor, TipoUsuario.Admin)
    Principal("123", TipoUsuario.Professor, TipoUsuario.Aluno)


def test_claims_round_trip_to_session():
    principal = Principal("123", TipoUsuario.Admin, TipoUsuario.Coordenador)
    profile = Profile(nome="Carla", sobrenome="Lima", email="carla@escola.test")
    claims = build_claims(principal, profile)

    assert claims["sub"] == "123"
    assert claims["tipo"] == "Admin"
    assert claims["tipo_login"] == "Coordenador"

    session = claims_to_session(claims)
    assert isinstance(session, DisplaySession)
    assert session.tipo is TipoUsuario.Admin
    assert session.tipo_login is TipoUsuario.Coordenador
    assert session.nome == "Carla"
    assert session.is_impersonating
    assert session.is_real_admin


def test_claims_with_escalated_acting_role_are_rejected():
    claims = {"sub": "123", "tipo": "Aluno", "tipo_login": "Admin", "nome": "X"}
    assert claims_to_session(claims) is None


def test_incomplete_claims_are_rejected():
    assert claims_to_session({"tipo": "Aluno", "tipo_login": "Aluno"}) is None
    assert claims_to_session({"sub": "1", "tipo": "Reitor", "tipo_login": "Aluno"}) is None
