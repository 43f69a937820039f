"""
Endpoints de productos.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from catalog_api.core.deps import get_db, get_current_admin
from catalog_api.schemas.catalog import (
    ProductCreate,
    ProductFilters,
    ProductListResponse,
    ProductResponse,
    ProductSearchResponse,
    ProductStockUpdate,
    ProductUpdate,
)
from catalog_api.schemas.common import MessageResponse
from catalog_api.services import product_service

router = APIRouter()


def get_product_filters(
    category: Optional[str] = Query(None, description="Nombre de la categoria"),
    category_id: Optional[int] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    in_stock: Optional[bool] = Query(None),
    featured: Optional[bool] = Query(None),
    tags: Optional[List[str]] = Query(None, description="Cualquiera de estos tags"),
) -> ProductFilters:
    """Construir los filtros estructurados desde la query string."""
    return ProductFilters(
        category=category,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        featured=featured,
        tags=tags,
    )


@router.get("/search", response_model=ProductSearchResponse)
def search_products(
    q: Optional[str] = Query(None, description="Termino de busqueda"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    filters: ProductFilters = Depends(get_product_filters),
    db: Session = Depends(get_db)
):
    """
    Buscar productos ordenados por relevancia.

    Acepta texto libre o un ID de gestion numerico.
    No requiere autenticacion.
    """
    return product_service.search_products(db, q, filters, page=page, limit=limit)


@router.get("", response_model=ProductListResponse)
def get_products(
    page: int = Query(1),
    limit: int = Query(10),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    filters: ProductFilters = Depends(get_product_filters),
    db: Session = Depends(get_db)
):
    """
    Obtener lista paginada de productos.
    No requiere autenticacion.
    """
    return product_service.list_products(
        db, filters, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db)
):
    """
    Obtener un producto por ID.
    No requiere autenticacion.
    """
    return product_service.get_product_or_404(db, product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_in: ProductCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Crear un producto.
    Requiere rol de administrador.
    """
    return product_service.create_product(db, product_in)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_in: ProductUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Actualizar un producto.
    Requiere rol de administrador.
    """
    return product_service.update_product(db, product_id, product_in)


@router.patch("/{product_id}/stock", response_model=ProductResponse)
def update_product_stock(
    product_id: int,
    stock_in: ProductStockUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Actualizar el stock de un producto.
    Requiere rol de administrador.
    """
    return product_service.update_stock(db, product_id, stock_in.stock_count)


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Eliminar un producto.
    Requiere rol de administrador.
    """
    product_service.delete_product(db, product_id)
    return MessageResponse(message="Producto eliminado exitosamente", resource_id=product_id)
