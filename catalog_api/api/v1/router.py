"""
Router de la API v1 del catálogo.
"""
from fastapi import APIRouter

from catalog_api.api.v1.endpoints import categories, products

api_router = APIRouter()

api_router.include_router(categories.router, prefix="/categories", tags=["Categorías"])
api_router.include_router(products.router, prefix="/products", tags=["Productos"])
