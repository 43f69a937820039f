"""
Endpoints de la API v1.
"""
from catalog_api.api.v1.endpoints import (
    categories,
    products,
)

__all__ = [
    "categories",
    "products",
]
