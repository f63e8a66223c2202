"""Generic CRUD API router — one endpoint for every registered collection."""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from academico.db.session import get_db
from academico.schemas.schemas import CrudRequest
from academico.services.crud_service import crud_registry, crud_service
from academico.services.audit_service import audit_service, resource_key
from academico.core.principal import DisplaySession
from academico.core.roles import has_permission
from academico.core.security import get_current_session
from academico.core.exceptions import (
    AuthorizationError, CrudError, MethodUnavailableError, ModelNotFoundError,
    RecordNotFoundError, ValidationError,
)

logger = logging.getLogger("academico")

router = APIRouter(prefix="/crud", tags=["crud"])

_BODY_HEADERS = (b"content-length", b"content-type")


def _status_for(exc: Exception) -> int:
    if isinstance(exc, (ModelNotFoundError, RecordNotFoundError)):
        return 404
    if isinstance(exc, MethodUnavailableError):
        return 405
    if isinstance(exc, (CrudError, ValidationError)):
        return 400
    if isinstance(exc, IntegrityError):
        return 409
    return 500


def _error(exc: Exception, response: Response) -> JSONResponse:
    if isinstance(exc, (CrudError, ValidationError)):
        message = exc.message
    elif isinstance(exc, IntegrityError):
        message = "Violação de integridade dos dados"
    else:
        message = "Erro interno do servidor"
    error = JSONResponse(
        status_code=_status_for(exc),
        content={"success": False, "error": message},
    )
    # keep a refreshed session token set on the dependency response
    error.raw_headers.extend(h for h in response.raw_headers if h[0] not in _BODY_HEADERS)
    return error


@router.post("")
async def crud(
    body: CrudRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    session: DisplaySession = Depends(get_current_session),
):
    """Run ``operation`` on ``table``.

    Each collection sets the acting role needed to read it and to write it.
    Most are readable by any signed-in user and writable from Professor up.
    """
    try:
        name, repo = crud_registry.resolve(body.table)
    except ModelNotFoundError as e:
        return _error(e, response)

    required = repo.required_role(body.operation)
    if not has_permission(session.tipo_login, required):
        raise AuthorizationError(
            f"Role '{session.tipo_login.value}' insufficient. Requires '{required.value}' or higher."
        )

    try:
        result = crud_service.handle(
            db,
            body.operation,
            body.table,
            primary_key=body.primary_key,
            data=body.data,
            where=body.where,
            relations=body.relations,
        )
    except (CrudError, ValidationError, IntegrityError) as e:
        logger.info("crud %s %s rejected: %s", body.operation, name, e)
        return _error(e, response)
    except SQLAlchemyError as e:
        logger.error("crud %s %s failed: %s", body.operation, name, e)
        return _error(e, response)

    if body.operation != "get":
        audit_service.log_from_request(
            db, request, session,
            action=f"crud.{body.operation}",
            resource_type=name,
            resource_id=resource_key(result, repo.primary_key),
            new_value=body.data,
        )

    return {"success": True, "data": jsonable_encoder(result)}
