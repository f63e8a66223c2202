"""Pydantic schemas for API request/response serialization."""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any, Union

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from academico.core.roles import TipoUsuario
from academico.core.validators import is_valid_cpf, is_valid_rg, only_digits
from academico.models.atestado import StatusAtestado
from academico.models.pre_cadastro import StatusPreCadastro


UFS = frozenset({
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA", "MT", "MS", "MG", "PA",
    "PB", "PR", "PE", "PI", "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
})
_LETRAS = re.compile(r"^[a-zA-ZÀ-ÿ\s]*$")
_TELEFONE = re.compile(r"^[\d\s()\-+]*$")
_CEP = re.compile(r"^\d{5}-?\d{3}$")


def _anos_atras(hoje: date, anos: int) -> date:
    try:
        return hoje.replace(year=hoje.year - anos)
    except ValueError:  # 29/02
        return hoje.replace(year=hoje.year - anos, day=28)


def _nome(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return None
    if not _LETRAS.match(value):
        raise ValueError(f"{label} deve conter apenas letras")
    return " ".join(value.split())


# ---- Auth ----
class LoginRequest(BaseModel):
    cpf: str = Field(..., min_length=11, max_length=14)
    senha: str = Field(..., min_length=1)
    tipo_login: TipoUsuario

class SessionOut(BaseModel):
    cpf: str
    tipo: TipoUsuario
    tipo_login: TipoUsuario
    nome: str
    sobrenome: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    foto_path: Optional[str] = None
    is_impersonating: bool = False

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session: SessionOut


# ---- Usuários ----
class UsuarioCreate(BaseModel):
    cpf: str = Field(..., min_length=11, max_length=14)
    senha: str = Field(..., min_length=6)
    tipo: TipoUsuario = TipoUsuario.Aluno

class UsuarioOut(BaseModel):
    cpf: str
    tipo: TipoUsuario
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CheckPasswordRequest(BaseModel):
    cpf: str
    senha: str

class UpdatePasswordRequest(BaseModel):
    cpf: str
    senha_atual: Optional[str] = None
    nova_senha: str = Field(..., min_length=6)


# ---- Cadastros ----
class _Pessoa(BaseModel):
    nome: str = Field(..., min_length=2, max_length=100)
    sobrenome: str = Field(..., min_length=2, max_length=150)
    cpf: str
    rg: str
    data_nasc: date
    descricao: Optional[str] = None

    @field_validator("nome", "sobrenome")
    @classmethod
    def check_letras(cls, v, info):
        return _nome(v, info.field_name)

    @field_validator("cpf")
    @classmethod
    def check_cpf(cls, v):
        if not is_valid_cpf(v):
            raise ValueError("CPF inválido")
        return only_digits(v)

    @field_validator("rg")
    @classmethod
    def check_rg(cls, v):
        if not is_valid_rg(v):
            raise ValueError("RG deve conter de 7 a 12 dígitos")
        return only_digits(v)

class ContatoCadastro(BaseModel):
    nome_tel1: str = Field(..., min_length=2, max_length=45)
    tel1: str = Field(..., min_length=10, max_length=20)
    nome_tel2: Optional[str] = Field(None, max_length=45)
    tel2: Optional[str] = Field(None, min_length=10, max_length=20)

class EnderecoCadastro(BaseModel):
    cep: str
    rua: str = Field(..., min_length=5, max_length=255)
    cidade: str = Field(..., min_length=2, max_length=100)
    uf: str
    numero: str = Field(..., min_length=1, max_length=10)
    complemento: Optional[str] = Field(None, max_length=100)

    @field_validator("cep")
    @classmethod
    def check_cep(cls, v):
        if not _CEP.match(v):
            raise ValueError("CEP deve ter formato 00000-000 ou 00000000")
        return only_digits(v)

    @field_validator("uf")
    @classmethod
    def check_uf(cls, v):
        if v not in UFS:
            raise ValueError("UF inválida")
        return v

class AlunoCadastro(_Pessoa):
    nome_mae: str = Field(..., min_length=5, max_length=160)
    nome_pai: Optional[str] = Field(None, max_length=160)
    email: Optional[EmailStr] = None
    contato: Optional[ContatoCadastro] = None
    endereco: Optional[EnderecoCadastro] = None

class ProfessorCadastro(_Pessoa):
    cargo: str = Field("Professor", min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    tel: Optional[str] = Field(None, min_length=10, max_length=20)
    tipo: TipoUsuario = TipoUsuario.Professor

    @field_validator("tipo")
    @classmethod
    def check_tipo(cls, v):
        if v == TipoUsuario.Aluno:
            raise ValueError("Use o cadastro de alunos para contas do tipo Aluno")
        return v


# ---- CRUD ----
class CrudRequest(BaseModel):
    """Body of ``POST /api/crud``. ``primaryKey`` is accepted as an alias."""
    operation: str = Field(..., min_length=1)
    table: str = Field(..., min_length=1)
    primary_key: Optional[Union[str, List[str]]] = Field(None, alias="primaryKey")
    data: Optional[Dict[str, Any]] = None
    where: Optional[Dict[str, Any]] = None
    relations: Optional[Dict[str, bool]] = None

    class Config:
        populate_by_name = True


# ---- Aulas ----
class PresencaItem(BaseModel):
    id_aluno: int
    presente: bool

class RegistroAulaRequest(BaseModel):
    id_aula: int
    presencas: List[PresencaItem] = []
    conteudo_ministrado: Optional[str] = None
    observacoes_aula: Optional[str] = None

class PresencaRequest(BaseModel):
    id_aula: int
    id_aluno: int
    id_professor: Optional[str] = None
    presente: bool

class CancelarAulaRequest(BaseModel):
    id_aula: int

class MultiremoveRequest(BaseModel):
    id_materia: int
    data_inicial: date
    data_final: date

class AulasRecorrentesRequest(BaseModel):
    id_materia: int
    id_turma: int
    dia_semana: Union[int, str]
    hora_inicio: str
    duracao_minutos: int = Field(..., gt=0)
    data_inicial: date
    data_final: date
    lista_excecoes: List[date] = []


# ---- Notas ----
class NotaLancamento(BaseModel):
    id_aluno: int
    id_turma: int
    id_materia: int
    nome: str = Field(..., min_length=1, max_length=100)
    valor_nota: Decimal = Field(..., ge=0, le=10)
    tipo_avaliacao: str = Field(..., min_length=1, max_length=50)
    observacoes: Optional[str] = None


# ---- Atestados ----
class AtestadoEnvio(BaseModel):
    id_aluno: int = Field(..., gt=0)
    id_turma: Optional[int] = None
    data_inicio: date
    data_fim: date
    motivo: str = Field(..., min_length=3, max_length=255)
    aulas_afetadas: List[int] = Field(..., min_length=1)
    observacoes: Optional[str] = None

    @model_validator(mode="after")
    def check_periodo(self):
        if self.data_fim < self.data_inicio:
            raise ValueError("Data final deve ser igual ou posterior à data inicial")
        return self

class AtestadoAvaliacao(BaseModel):
    id_atestado: int = Field(..., gt=0)
    status: StatusAtestado
    justificativa_rejeicao: Optional[str] = None

    @model_validator(mode="after")
    def check_decisao(self):
        if self.status not in (StatusAtestado.Aprovado, StatusAtestado.Rejeitado):
            raise ValueError("Status deve ser Aprovado ou Rejeitado")
        if self.status == StatusAtestado.Rejeitado and not (self.justificativa_rejeicao or "").strip():
            raise ValueError("Justificativa é obrigatória para rejeitar um atestado")
        return self


# ---- Pré-cadastro ----
class PreCadastroCreate(BaseModel):
    nome: str = Field(..., min_length=2, max_length=100)
    sobrenome: str = Field(..., min_length=2, max_length=150)
    cpf: str
    rg: str
    nome_mae: str = Field(..., min_length=5, max_length=160)
    nome_pai: Optional[str] = Field(None, max_length=160)
    data_nasc: date
    email: EmailStr
    telefone: str = Field(..., min_length=10, max_length=15)
    telefone_responsavel: Optional[str] = Field(None, min_length=10, max_length=15)
    nome_responsavel: Optional[str] = Field(None, max_length=100)
    cep: str
    rua: str = Field(..., min_length=5, max_length=255)
    cidade: str = Field(..., min_length=2, max_length=100)
    uf: str
    numero: str = Field(..., min_length=1, max_length=10)
    complemento: Optional[str] = Field(None, max_length=100)
    id_curso_desejado: int = Field(..., gt=0)

    @field_validator("nome", "sobrenome", "nome_mae", "nome_pai", "nome_responsavel", "cidade")
    @classmethod
    def check_letras(cls, v, info):
        return _nome(v, info.field_name)

    @field_validator("cpf")
    @classmethod
    def check_cpf(cls, v):
        if not is_valid_cpf(v):
            raise ValueError("CPF inválido")
        return only_digits(v)

    @field_validator("rg")
    @classmethod
    def check_rg(cls, v):
        if not v.isdigit() or not 7 <= len(v) <= 12:
            raise ValueError("RG deve conter de 7 a 12 dígitos")
        return v

    @field_validator("telefone", "telefone_responsavel")
    @classmethod
    def check_telefone(cls, v):
        if v is not None and not _TELEFONE.match(v):
            raise ValueError("Formato de telefone inválido")
        return v

    @field_validator("cep")
    @classmethod
    def check_cep(cls, v):
        if not _CEP.match(v):
            raise ValueError("CEP deve ter formato 00000-000 ou 00000000")
        return only_digits(v)

    @field_validator("uf")
    @classmethod
    def check_uf(cls, v):
        if v not in UFS:
            raise ValueError("UF inválida")
        return v

    @field_validator("data_nasc")
    @classmethod
    def check_idade(cls, v):
        hoje = date.today()
        if not _anos_atras(hoje, 100) <= v <= _anos_atras(hoje, 14):
            raise ValueError("Data de nascimento deve estar entre 14 e 100 anos atrás")
        return v

    @model_validator(mode="after")
    def check_responsavel(self):
        if self.data_nasc > _anos_atras(date.today(), 18) and not self.telefone_responsavel:
            raise ValueError("Telefone do responsável é obrigatório para menores de 18 anos")
        return self

class PreCadastroOut(BaseModel):
    id_pre_cadastro: int
    nome: str
    sobrenome: str
    cpf: str
    email: str
    telefone: str
    id_curso_desejado: int
    status: StatusPreCadastro
    data_envio: Optional[datetime] = None
    data_avaliacao: Optional[datetime] = None
    avaliado_por: Optional[str] = None
    observacoes: Optional[str] = None
    motivo_rejeicao: Optional[str] = None

    class Config:
        from_attributes = True

class PreCadastroAvaliacao(BaseModel):
    status: StatusPreCadastro
    observacoes: Optional[str] = Field(None, max_length=1000)
    motivo_rejeicao: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_motivo(self):
        if self.status == StatusPreCadastro.Pendente:
            raise ValueError("Status de avaliação inválido")
        if self.status == StatusPreCadastro.Rejeitado and not (self.motivo_rejeicao or "").strip():
            raise ValueError("Motivo da rejeição é obrigatório")
        return self


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    actor_cpf: Optional[str] = None
    actor_tipo: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str
    detail: Optional[Any] = None
