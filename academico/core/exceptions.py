"""Custom exception classes for the academic platform."""

from typing import Optional, Sequence, Union

from fastapi import HTTPException, status


class AcademicoError(Exception):
    """Base exception for the academic platform."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthenticationError(AcademicoError):
    """Raised when authentication fails."""
    pass


class AuthorizationError(AcademicoError):
    """Raised when user lacks permission."""
    pass


class ResourceNotFoundError(AcademicoError):
    """Raised when a requested resource is not found."""
    pass


class ResourceConflictError(AcademicoError):
    """Raised when a resource already exists."""
    pass


class ValidationError(AcademicoError):
    """Raised when input validation fails."""
    pass


class StorageError(AcademicoError):
    """Raised when MinIO/storage operation fails."""
    pass


# ---- CRUD dispatcher ----

class CrudError(AcademicoError):
    """Base class for generic CRUD dispatch failures."""
    pass


class ModelNotFoundError(CrudError):
    """Raised when a table name does not resolve to a registered collection."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f'Modelo "{table}" não encontrado.')


class MethodUnavailableError(CrudError):
    """Raised when a collection does not support the requested operation."""

    def __init__(self, table: str, operation: str):
        self.table = table
        self.operation = operation
        super().__init__(f'Operação "{operation}" não disponível para "{table}".')


class MissingPrimaryKeyError(CrudError):
    """Raised when update/delete is requested without a primary key."""

    def __init__(self, operation: str, detail: Optional[str] = None):
        self.operation = operation
        super().__init__(detail or f"Chave primária é obrigatória para {operation}.")


class MissingDataError(CrudError):
    """Raised when a mutation is requested without a data payload."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Dados são obrigatórios para {operation}.")


class UnsupportedOperationError(CrudError):
    """Raised for operation names outside the CRUD contract."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f'Operação "{operation}" não suportada.')


class RecordNotFoundError(CrudError, ResourceNotFoundError):
    """Raised when update/delete targets a record that does not exist."""

    def __init__(self, table: str, key: Union[dict, Sequence]):
        self.table = table
        self.key = key
        super().__init__(f'Registro {key} não encontrado em "{table}".')


# HTTP exception shortcuts
def not_found(detail: str = "Resource not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def forbidden(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def bad_request(detail: str = "Bad request") -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

