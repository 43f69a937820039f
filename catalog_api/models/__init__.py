"""
Módulo de modelos ORM.
Importa todos los modelos para que SQLAlchemy los reconozca.
"""
from catalog_api.db.base import Base

# Catálogo
from catalog_api.models.category import Category
from catalog_api.models.product import Product

__all__ = [
    "Base",
    # Catálogo
    "Category",
    "Product",
]
