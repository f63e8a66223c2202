"""Generic table-driven CRUD dispatcher.

A request names a table and an operation; the table name is normalized
through a fixed alias map, resolved to a registered ``Repository`` and the
operation is run against it. Every collection reachable this way is
registered explicitly below, and aliases pointing at unregistered names are
rejected when the registry is built.

Each ``handle`` call commits once. Workflows that need several writes to be
atomic use the repositories directly inside one transaction at the call site.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import Date, DateTime, Integer, Numeric, inspect
from sqlalchemy.orm import Session, selectinload

from academico.core.exceptions import (
    MethodUnavailableError,
    MissingDataError,
    MissingPrimaryKeyError,
    ModelNotFoundError,
    RecordNotFoundError,
    UnsupportedOperationError,
    ValidationError,
)
from academico.core.roles import TipoUsuario
from academico.models import (
    Aluno, AtestadoAula, AtestadoMedico, AuditLog, ContatoAluno, Curso,
    CursoMateria, DiaNaoLetivo, DocAula, DocumentoPreCadastro, Endereco,
    Materia, Nota, PreCadastro, Presenca, Professor, Turma, TurmaAluno, Aula,
)

logger = logging.getLogger("academico")

OPERATIONS = ("insert", "get", "update", "delete", "upsert")
ALL_OPERATIONS = frozenset(OPERATIONS)
READ_ONLY = frozenset({"get"})

PrimaryKey = Union[str, Sequence[str]]


def to_dict(record: Any, relations: Iterable[str] = ()) -> Dict[str, Any]:
    """Column values of ``record`` plus the named (already loaded) relations."""
    mapper = inspect(record).mapper
    out = {attr.key: getattr(record, attr.key) for attr in mapper.column_attrs}
    for name in relations:
        value = getattr(record, name)
        if value is None:
            out[name] = None
        elif isinstance(value, list):
            out[name] = [to_dict(item) for item in value]
        else:
            out[name] = to_dict(value)
    return out


def _coerce_value(column, value: Any) -> Any:
    """Convert JSON scalars to the Python type a column expects."""
    if value is None:
        return None
    col_type = column.type
    try:
        if isinstance(col_type, DateTime) and isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if isinstance(col_type, Date) and isinstance(value, str):
            return date.fromisoformat(value[:10])
        if isinstance(col_type, Numeric) and not isinstance(value, Decimal):
            return Decimal(str(value))
        if isinstance(col_type, Integer) and isinstance(value, str):
            return int(value)
    except (ValueError, InvalidOperation):
        raise ValidationError(f'Valor inválido para "{column.key}": {value!r}')
    return value


class Repository:
    """Typed access to one ORM model for the dispatcher."""

    def __init__(
        self,
        model,
        operations: Iterable[str] = ALL_OPERATIONS,
        read_role: TipoUsuario = TipoUsuario.Aluno,
        write_role: TipoUsuario = TipoUsuario.Professor,
    ):
        self.model = model
        self.operations = frozenset(operations)
        self.read_role = read_role
        self.write_role = write_role
        unknown = self.operations - ALL_OPERATIONS
        if unknown:
            raise ValueError(f"Unknown operations for {model.__name__}: {sorted(unknown)}")
        mapper = inspect(model)
        self.columns = {attr.key: attr.columns[0] for attr in mapper.column_attrs}
        self.relations = frozenset(mapper.relationships.keys())
        self.primary_key = tuple(mapper.get_property_by_column(c).key for c in mapper.primary_key)

    def supports(self, operation: str) -> bool:
        return operation in self.operations

    def required_role(self, operation: str) -> TipoUsuario:
        """Minimum acting role for ``operation`` through the generic endpoint."""
        return self.read_role if operation == "get" else self.write_role

    def coerce(self, data: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(data) - set(self.columns)
        if unknown:
            raise ValidationError(
                f"Campos desconhecidos em {self.model.__tablename__}: {', '.join(sorted(unknown))}"
            )
        return {key: _coerce_value(self.columns[key], value) for key, value in data.items()}

    def create(self, db: Session, data: Dict[str, Any]):
        record = self.model(**self.coerce(data))
        db.add(record)
        db.flush()
        db.refresh(record)
        return record

    def find_many(self, db: Session, relations: Iterable[str] = ()) -> List[Any]:
        query = db.query(self.model)
        for name in relations:
            query = query.options(selectinload(getattr(self.model, name)))
        return query.all()

    def find_first(self, db: Session, where: Dict[str, Any]):
        return db.query(self.model).filter_by(**self.coerce(where)).first()

    def find_one(self, db: Session, where: Dict[str, Any]):
        """The single record matching ``where``; None if there is none."""
        matches = db.query(self.model).filter_by(**self.coerce(where)).limit(2).all()
        if len(matches) > 1:
            raise ValidationError(
                f"Chave {where} não identifica um único registro em {self.model.__tablename__}"
            )
        return matches[0] if matches else None

    def update(self, db: Session, record, data: Dict[str, Any]):
        for key, value in self.coerce(data).items():
            setattr(record, key, value)
        db.flush()
        db.refresh(record)
        return record

    def delete(self, db: Session, record) -> None:
        db.delete(record)
        db.flush()

    def upsert(self, db: Session, where: Dict[str, Any], data: Dict[str, Any]) -> Tuple[Any, bool]:
        """Update the record matching ``where`` or create it. Returns (record, created)."""
        record = self.find_first(db, where)
        if record is None:
            return self.create(db, {**where, **data}), True
        return self.update(db, record, data), False


class CrudRegistry:
    """Canonical table names mapped to repositories, plus their aliases."""

    def __init__(self):
        self._repositories: Dict[str, Repository] = {}
        self._aliases: Dict[str, str] = {}

    @staticmethod
    def normalize(name: str) -> str:
        return name.replace("_", "").replace("-", "").lower()

    def register(self, name: str, repository: Repository, aliases: Iterable[str] = ()) -> None:
        if name in self._repositories:
            raise ValueError(f"Table '{name}' already registered")
        self._repositories[name] = repository
        for alias in (name, *aliases):
            self.alias(alias, name)

    def alias(self, alias: str, canonical: str) -> None:
        if canonical not in self._repositories:
            raise ValueError(f"Alias '{alias}' points to unregistered table '{canonical}'")
        key = self.normalize(alias)
        existing = self._aliases.get(key)
        if existing is not None and existing != canonical:
            raise ValueError(f"Alias '{alias}' already maps to '{existing}'")
        self._aliases[key] = canonical

    def resolve(self, table: str) -> Tuple[str, Repository]:
        canonical = self._aliases.get(self.normalize(table or ""))
        if canonical is None:
            raise ModelNotFoundError(table)
        return canonical, self._repositories[canonical]

    def validate(self) -> List[str]:
        """Check every alias resolves; returns the canonical names."""
        for alias, canonical in self._aliases.items():
            if canonical not in self._repositories:
                raise ValueError(f"Alias '{alias}' points to unregistered table '{canonical}'")
        return sorted(self._repositories)

    def names(self) -> List[str]:
        return sorted(self._repositories)


def build_registry() -> CrudRegistry:
    staff = TipoUsuario.Professor
    coordenacao = TipoUsuario.Coordenador
    registry = CrudRegistry()
    registry.register("alunos", Repository(Aluno), ("aluno",))
    registry.register("enderecos", Repository(Endereco), ("endereco",))
    registry.register("contato_aluno", Repository(ContatoAluno), ("contatos_aluno", "contato"))
    registry.register("professores", Repository(Professor), ("professor",))
    registry.register("cursos", Repository(Curso), ("curso",))
    registry.register("materias", Repository(Materia), ("materia",))
    registry.register("curso_materias", Repository(CursoMateria), ("curso_materia",))
    registry.register("turmas", Repository(Turma), ("turma",))
    registry.register("turma_aluno", Repository(TurmaAluno), ("turma_alunos",))
    registry.register("aulas", Repository(Aula), ("aula",))
    registry.register("docs_aulas", Repository(DocAula), ("docs_aula", "doc_aula"))
    registry.register("presencas", Repository(Presenca), ("presenca",))
    registry.register("notas", Repository(Nota), ("nota",))
    registry.register("dias_nao_letivos", Repository(DiaNaoLetivo), ("dia_nao_letivo",))
    # Medical and enrollment records are kept from students
    registry.register(
        "atestados_medicos", Repository(AtestadoMedico, read_role=staff), ("atestado_medico", "atestados"),
    )
    registry.register("atestado_aulas", Repository(AtestadoAula, read_role=staff), ("atestado_aula",))
    registry.register(
        "pre_cadastros",
        Repository(PreCadastro, read_role=coordenacao, write_role=coordenacao),
        ("pre_cadastro",),
    )
    registry.register(
        "documentos_pre_cadastro",
        Repository(DocumentoPreCadastro, read_role=coordenacao, write_role=coordenacao),
        ("documento_pre_cadastro",),
    )
    registry.register(
        "audit_logs", Repository(AuditLog, READ_ONLY, read_role=coordenacao), ("audit_log", "logs", "log"),
    )
    return registry


def _key_values(primary_key: Optional[PrimaryKey], data: Optional[dict], operation: str) -> Dict[str, Any]:
    keys = [primary_key] if isinstance(primary_key, str) else list(primary_key or [])
    if not keys:
        raise MissingPrimaryKeyError(operation)
    if not data:
        raise MissingDataError(operation)
    missing = [key for key in keys if data.get(key) is None]
    if missing:
        raise MissingPrimaryKeyError(
            operation, f"Valor da chave primária ausente nos dados: {', '.join(missing)}"
        )
    return {key: data[key] for key in keys}


def _flatten_where(where: Dict[str, Any]) -> Dict[str, Any]:
    """Accept ``{"uc_name": {...}}`` as well as plain field criteria."""
    if len(where) == 1:
        (value,) = where.values()
        if isinstance(value, dict):
            return dict(value)
    return dict(where)


class CrudService:
    """Runs CRUD requests against registered collections."""

    def __init__(self, registry: CrudRegistry):
        self.registry = registry

    def repository(self, table: str) -> Repository:
        return self.registry.resolve(table)[1]

    def handle(
        self,
        db: Session,
        operation: str,
        table: str,
        primary_key: Optional[PrimaryKey] = None,
        data: Optional[Dict[str, Any]] = None,
        where: Optional[Dict[str, Any]] = None,
        relations: Optional[Dict[str, bool]] = None,
    ) -> Any:
        """Dispatch one request.

        Raises:
            ModelNotFoundError: unknown table; storage is never touched.
            UnsupportedOperationError: operation outside the CRUD contract.
            MethodUnavailableError: the collection does not allow the operation.
            MissingPrimaryKeyError / MissingDataError: incomplete request.
            RecordNotFoundError: update/delete key matches nothing.

        Storage errors are rolled back and re-raised unchanged.
        """
        name, repo = self.registry.resolve(table)
        if operation not in OPERATIONS:
            raise UnsupportedOperationError(operation)
        if not repo.supports(operation):
            raise MethodUnavailableError(name, operation)

        handler = getattr(self, f"_{operation}")
        try:
            result = handler(db, name, repo, primary_key, data, where, relations)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.debug("crud %s %s ok", operation, name)
        return result

    def _insert(self, db, name, repo, primary_key, data, where, relations):
        if not data:
            raise MissingDataError("insert")
        return to_dict(repo.create(db, data))

    def _get(self, db, name, repo, primary_key, data, where, relations):
        wanted = [rel for rel, include in (relations or {}).items() if include]
        unknown = set(wanted) - repo.relations
        if unknown:
            raise ValidationError(f"Relações desconhecidas em {name}: {', '.join(sorted(unknown))}")
        return [to_dict(record, wanted) for record in repo.find_many(db, wanted)]

    def _update(self, db, name, repo, primary_key, data, where, relations):
        key = _key_values(primary_key, data, "update")
        record = repo.find_one(db, key)
        if record is None:
            raise RecordNotFoundError(name, key)
        changes = {k: v for k, v in data.items() if k not in key}
        return to_dict(repo.update(db, record, changes))

    def _delete(self, db, name, repo, primary_key, data, where, relations):
        key = _key_values(primary_key, data, "delete")
        record = repo.find_one(db, key)
        if record is None:
            raise RecordNotFoundError(name, key)
        repo.delete(db, record)
        return {"deleted": True, **key}

    def _upsert(self, db, name, repo, primary_key, data, where, relations):
        if not data:
            raise MissingDataError("upsert")
        criteria = _flatten_where(where) if where else _key_values(primary_key, data, "upsert")
        changes = {k: v for k, v in data.items() if k not in criteria}
        record, created = repo.upsert(db, criteria, changes)
        logger.debug("upsert %s %s", name, "created" if created else "updated")
        return to_dict(record)


crud_registry = build_registry()
crud_service = CrudService(crud_registry)
