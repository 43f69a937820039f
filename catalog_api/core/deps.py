"""
Dependencias comunes de FastAPI.
"""
import logging
from typing import Any, Dict, Generator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from catalog_api.core.exceptions import ForbiddenException, UnauthorizedException
from catalog_api.core.security import decode_access_token
from catalog_api.db.session import SessionLocal

logger = logging.getLogger(__name__)

# auto_error=False para responder 401 con nuestro handler en vez del 403 de FastAPI
bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_ROLES = {"admin", "superadmin"}


def get_db() -> Generator:
    """Sesión de base de datos por request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Dict[str, Any]:
    """
    Claims del token Bearer de la request.

    Raises:
        UnauthorizedException: Si falta el token o no es válido
    """
    if credentials is None:
        raise UnauthorizedException("Se requiere un token de acceso")

    try:
        return decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.info(f"Token rechazado: {e}")
        raise UnauthorizedException("No se pudieron validar las credenciales")


async def get_current_admin(
    payload: Dict[str, Any] = Depends(get_token_payload)
) -> Dict[str, Any]:
    """
    Exigir rol de administrador.

    Raises:
        ForbiddenException: Si el token es válido pero el rol no alcanza
    """
    if payload.get("role") not in ADMIN_ROLES:
        raise ForbiddenException("No tiene permisos de administrador")
    return payload
