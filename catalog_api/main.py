"""
Punto de entrada de la API de catálogo.

Monta el router v1, registra la traducción de excepciones de dominio a
respuestas HTTP y crea las tablas al arrancar.
"""
import logging
from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_api.api.v1.router import api_router
from catalog_api.config import settings, setup_logging
from catalog_api.core.exceptions import (
    BadRequestException,
    CatalogException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
)
from catalog_api.db.session import engine, get_db_connection
from catalog_api.models import Base

logger = logging.getLogger(__name__)

# Código HTTP por familia de excepción (se busca por la jerarquía de clases)
STATUS_BY_EXCEPTION: Dict[Type[CatalogException], int] = {
    BadRequestException: status.HTTP_400_BAD_REQUEST,
    UnauthorizedException: status.HTTP_401_UNAUTHORIZED,
    ForbiddenException: status.HTTP_403_FORBIDDEN,
    NotFoundException: status.HTTP_404_NOT_FOUND,
    ConflictException: status.HTTP_409_CONFLICT,
}

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Catalog API

    Catálogo de la tienda: categorías jerárquicas y productos.

    * **Categorías** - Árbol de hasta 4 niveles (0 a 3) sin ciclos
    * **Búsqueda** - Productos ordenados por relevancia, sin distinguir acentos
    * **Contadores** - Reconciliación de productos por categoría

    Documentación interactiva en **/docs** y **/redoc**.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def status_for(exc: CatalogException) -> int:
    """Código HTTP de una excepción de dominio (500 si no está mapeada)."""
    for klass in type(exc).__mro__:
        if klass in STATUS_BY_EXCEPTION:
            return STATUS_BY_EXCEPTION[klass]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(CatalogException)
async def catalog_exception_handler(request: Request, exc: CatalogException):
    """Traduce cualquier CatalogException a su respuesta HTTP."""
    status_code = status_for(exc)
    content = {"detail": str(exc)}
    headers = None

    if status_code == status.HTTP_400_BAD_REQUEST:
        # El cliente distingue los errores de jerarquía por su clase
        content["error_code"] = type(exc).__name__
        logger.warning(f"{request.method} {request.url.path}: {exc}")
    elif status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    elif status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Excepción sin código HTTP asignado: {type(exc).__name__}: {exc}")

    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Errores de validación de Pydantic reducidos a tipo, ubicación y mensaje."""
    errors = [
        {"type": error.get("type"), "loc": error.get("loc"), "msg": error.get("msg")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(errors)}
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check():
    """Estado del servicio."""
    return {"status": "healthy", "version": settings.APP_VERSION}


@app.on_event("startup")
async def startup_event():
    setup_logging(settings.LOG_LEVEL)
    Base.metadata.create_all(bind=engine)
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} iniciada (debug={settings.DEBUG})")


@app.on_event("shutdown")
async def shutdown_event():
    get_db_connection().close()
    logger.info(f"{settings.APP_NAME} detenida")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("catalog_api.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
