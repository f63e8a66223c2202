"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from academico.core.config import settings
from academico.core.middleware import setup_middleware
from academico.core.exceptions import (
    AcademicoError, AuthenticationError, AuthorizationError,
    ResourceConflictError, ResourceNotFoundError, StorageError,
)

from academico.api.auth import router as auth_router
from academico.api.crud import router as crud_router
from academico.api.cadastros import router as cadastros_router
from academico.api.usuarios import router as usuarios_router
from academico.api.aulas import router as aulas_router
from academico.api.notas import router as notas_router
from academico.api.atestados import router as atestados_router
from academico.api.pre_cadastro import router as pre_cadastro_router
from academico.api.arquivos import router as arquivos_router
from academico.api.admin import router as admin_router
from academico.api.pages import router as pages_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("academico")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("🚀 Starting %s", settings.APP_NAME)

    from academico.services.crud_service import crud_registry
    tables = crud_registry.validate()
    logger.info("✅ CRUD registry ready (%d tables)", len(tables))

    # Ensure MinIO bucket exists
    try:
        from academico.services.file_service import file_service
        file_service.ensure_bucket()
        logger.info("✅ MinIO bucket ready")
    except Exception as e:
        logger.warning(f"⚠️  MinIO not available: {e}")

    yield

    logger.info("🔻 Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title="Acadêmico API",
    description="Gestão acadêmica: alunos, turmas, aulas, notas e atestados",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)

_STATUS_BY_ERROR = (
    (ResourceNotFoundError, 404),
    (ResourceConflictError, 409),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (StorageError, 502),
)


# Exception handler for domain errors
@app.exception_handler(AcademicoError)
async def academico_exception_handler(request: Request, exc: AcademicoError):
    status_code = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 400)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message},
    )

# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(crud_router, prefix="/api")
app.include_router(cadastros_router, prefix="/api")
app.include_router(usuarios_router, prefix="/api")
app.include_router(aulas_router, prefix="/api")
app.include_router(notas_router, prefix="/api")
app.include_router(atestados_router, prefix="/api")
app.include_router(pre_cadastro_router, prefix="/api")
app.include_router(arquivos_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(pages_router)


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
