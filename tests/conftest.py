import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DEBUG"] = "false"

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import academico.models  # noqa: F401
from academico.core.roles import TipoUsuario
from academico.core.security import hash_password
from academico.db.base import Base
from academico.db.session import get_db
from academico.main import app
from academico.models import (
    Aluno, Aula, Curso, Materia, Professor, Turma, TurmaAluno, Usuario,
)
from academico.services.file_service import file_service

PASSWORD = "segredo123"

# Valid check digits
CPF_VALIDO = "52998224725"
CPF_VALIDO_2 = "11144477735"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeMinio:
    """In-memory stand-in for the MinIO client."""

    def __init__(self):
        self.objects = {}

    def bucket_exists(self, bucket):
        return True

    def make_bucket(self, bucket):
        pass

    def put_object(self, bucket, key, data, length, content_type=None):
        self.objects[key] = data.read()

    def presigned_get_object(self, bucket, key, expires=None):
        return f"http://minio.test/{bucket}/{key}?expires={int(expires.total_seconds())}"

    def remove_object(self, bucket, key):
        self.objects.pop(key, None)


@pytest.fixture
def storage(monkeypatch):
    fake = FakeMinio()
    monkeypatch.setattr(file_service, "_client", fake)
    return fake


# ---- factories ----

def make_user(db, cpf, tipo, senha=PASSWORD):
    usuario = Usuario(cpf=cpf, senha_hash=hash_password(senha), tipo=tipo)
    db.add(usuario)
    db.commit()
    return usuario


def make_professor(db, cpf, nome="Maria", cargo="Professor"):
    professor = Professor(
        id_professor=cpf,
        nome=nome,
        sobrenome="Souza",
        rg="123456789",
        data_nasc=date(1980, 5, 10),
        cargo=cargo,
        email=f"{nome.lower()}@escola.test",
        tel="11999990000",
    )
    db.add(professor)
    db.commit()
    return professor


def make_aluno(db, cpf, nome="João"):
    aluno = Aluno(
        nome=nome,
        sobrenome="Silva",
        cpf=cpf,
        rg="987654321",
        nome_mae="Ana Silva",
        data_nasc=date(2005, 3, 1),
        email=f"{cpf}@aluno.test",
    )
    db.add(aluno)
    db.commit()
    return aluno


@pytest.fixture
def turma(db):
    curso = Curso(nome_curso="Informática", carga_horaria_total=1200)
    db.add(curso)
    db.flush()
    materia = Materia(nome_materia="Banco de Dados")
    db.add(materia)
    db.flush()
    turma = Turma(id_curso=curso.id_curso, nome_turma="INF-A", ano_letivo=2025)
    db.add(turma)
    db.commit()
    return {"curso": curso, "materia": materia, "turma": turma}


def make_aula(db, turma, data_aula=datetime(2025, 3, 3, 19, 0), horario="19:00", duracao=50):
    aula = Aula(
        id_turma=turma["turma"].id_turma,
        id_materia=turma["materia"].id_materia,
        data_aula=data_aula,
        horario=horario,
        duracao_minutos=duracao,
    )
    db.add(aula)
    db.commit()
    return aula


def enroll(db, turma, aluno):
    db.add(TurmaAluno(id_turma=turma["turma"].id_turma, id_aluno=aluno.id_aluno))
    db.commit()


def login(client, cpf, tipo_login, senha=PASSWORD):
    resp = client.post(
        "/api/auth/login",
        json={"cpf": cpf, "senha": senha, "tipo_login": tipo_login},
    )
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


# ---- ready-made accounts ----

@pytest.fixture
def admin(db):
    return make_user(db, "90000000001", TipoUsuario.Admin)


@pytest.fixture
def professor(db):
    usuario = make_user(db, "90000000002", TipoUsuario.Professor)
    make_professor(db, usuario.cpf)
    return usuario


@pytest.fixture
def coordenador(db):
    usuario = make_user(db, "90000000003", TipoUsuario.Coordenador)
    make_professor(db, usuario.cpf, nome="Carla", cargo="Coordenadora")
    return usuario


@pytest.fixture
def aluno(db):
    usuario = make_user(db, "90000000004", TipoUsuario.Aluno)
    return make_aluno(db, usuario.cpf)


@pytest.fixture
def admin_headers(client, admin):
    return login(client, admin.cpf, "Admin")


@pytest.fixture
def professor_headers(client, professor):
    return login(client, professor.cpf, "Professor")


@pytest.fixture
def coordenador_headers(client, coordenador):
    return login(client, coordenador.cpf, "Coordenador")


@pytest.fixture
def aluno_headers(client, aluno):
    return login(client, aluno.cpf, "Aluno")
