"""
Excepciones de dominio de la API de catálogo.

Cada familia (BadRequest, NotFound, Conflict...) se traduce a un código
HTTP en main.py; las subclases solo cambian el mensaje por defecto.
"""
from typing import Optional


class CatalogException(Exception):
    """Excepción base del catálogo."""

    default_message = "Error en la aplicación"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundException(CatalogException):
    default_message = "Recurso no encontrado"


class UnauthorizedException(CatalogException):
    default_message = "No autorizado"


class ForbiddenException(CatalogException):
    default_message = "Acceso prohibido"


class BadRequestException(CatalogException):
    default_message = "Solicitud inválida"


class ConflictException(CatalogException):
    default_message = "Conflicto con el estado actual del recurso"


# ================================================================
# JERARQUÍA DE CATEGORÍAS
# ================================================================

class SelfParentError(BadRequestException):
    default_message = "Una categoría no puede ser su propio padre"


class ParentNotFoundError(BadRequestException):
    default_message = "La categoría padre no existe"


class DepthLimitExceededError(BadRequestException):
    """El padre propuesto ya está en el nivel máximo del árbol."""

    default_message = "Se superó la profundidad máxima de categorías"


class CircularReferenceError(BadRequestException):
    """El padre propuesto desciende de la categoría, o su cadena ya tiene un ciclo."""

    default_message = "La asignación crearía una referencia circular"


class CategoryInUseError(ConflictException):
    """La categoría tiene subcategorías o productos asociados."""

    default_message = "La categoría está en uso"
