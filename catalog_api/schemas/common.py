"""
Schemas compartidos por los endpoints de categorías y productos.
"""
from typing import Optional

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Confirmación de una operación sin cuerpo propio (p. ej. un borrado)."""

    message: str
    success: bool = True
    resource_id: Optional[int] = None
