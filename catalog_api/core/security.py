"""
Tokens JWT de acceso.

El catálogo no gestiona usuarios: solo emite y valida tokens firmados con
SECRET_KEY cuyo claim "role" habilita las escrituras de administrador.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from catalog_api.config import settings

ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    subject: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    **extra_claims: Any
) -> str:
    """
    Emitir un token de acceso.

    Args:
        subject: Identificador de quien usa el token (claim "sub")
        role: Rol del portador ("admin", "superadmin", ...)
        expires_delta: Vigencia; por defecto ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Token JWT firmado
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        **extra_claims,
        "sub": str(subject),
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Validar firma, expiración y tipo de un token de acceso.

    Raises:
        JWTError: Si el token es inválido, expiró o no es de acceso
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        raise JWTError("El token no es un token de acceso válido")
    return payload
