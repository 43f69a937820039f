"""
Endpoints de categorias (catalogo jerarquico).
"""
import math
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional, Union

from catalog_api.core.deps import get_db, get_current_admin
from catalog_api.schemas.catalog import (
    CategoryCreate,
    CategoryFilters,
    CategoryHierarchyResponse,
    CategoryListResponse,
    CategoryPathResponse,
    CategoryResponse,
    CategoryUpdate,
    MigrationResponse,
    ProductCountsResponse,
)
from catalog_api.schemas.common import MessageResponse
from catalog_api.services import category_service

router = APIRouter()


# ================================================================
# ENDPOINTS PUBLICOS
# ================================================================

@router.get("", response_model=Union[CategoryListResponse, CategoryHierarchyResponse])
def get_categories(
    hierarchical: bool = Query(False, description="Devolver el arbol completo de categorias"),
    search: Optional[str] = Query(None, description="Buscar por nombre o descripcion"),
    parent_id: Optional[int] = Query(None, description="Filtrar por categoria padre"),
    level: Optional[int] = Query(None, ge=0, description="Filtrar por nivel"),
    is_parent: Optional[bool] = Query(None, description="Filtrar categorias padre / hoja"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    """
    Obtener lista de categorias.

    Con hierarchical=true devuelve el bosque completo (raices con sus
    subcategorias anidadas) e ignora filtros y paginacion.
    No requiere autenticacion.
    """
    if hierarchical:
        tree = category_service.get_hierarchy(db)
        return CategoryHierarchyResponse(data=tree, total=len(tree))

    filters = CategoryFilters(search=search, parent_id=parent_id, level=level, is_parent=is_parent)
    categories, total = category_service.list_categories(
        db, filters, skip=(page - 1) * limit, limit=limit
    )
    return CategoryListResponse(
        data=categories,
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit),
    )


@router.get("/product-counts", response_model=ProductCountsResponse)
def get_product_counts(
    include_parents: bool = Query(True),
    include_leaves: bool = Query(True),
    rollup_parents: bool = Query(True, description="Sumar los productos de las subcategorias"),
    in_stock: Optional[bool] = Query(None),
    featured: Optional[bool] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Obtener la cantidad de productos por categoria.
    No requiere autenticacion.
    """
    counts = category_service.get_product_counts(
        db,
        include_parents=include_parents,
        include_leaves=include_leaves,
        rollup_parents=rollup_parents,
        in_stock=in_stock,
        featured=featured,
    )
    return ProductCountsResponse(counts=counts, updated_at=datetime.now(timezone.utc))


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    db: Session = Depends(get_db)
):
    """
    Obtener una categoria por ID.
    No requiere autenticacion.
    """
    return category_service.get_category_or_404(db, category_id)


@router.get("/{category_id}/subcategories", response_model=List[CategoryResponse])
def get_subcategories(
    category_id: int,
    db: Session = Depends(get_db)
):
    """
    Obtener las subcategorias directas de una categoria.
    No requiere autenticacion.
    """
    return category_service.get_subcategories(db, category_id)


@router.get("/{category_id}/path", response_model=CategoryPathResponse)
def get_category_path(
    category_id: int,
    db: Session = Depends(get_db)
):
    """
    Obtener la ruta completa (raiz primero) hasta una categoria.
    No requiere autenticacion.
    """
    path = category_service.get_category_path(db, category_id)
    return CategoryPathResponse(data=path, depth=len(path) - 1)


# ================================================================
# ENDPOINTS ADMIN
# ================================================================

@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_in: CategoryCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Crear una nueva categoria (opcionalmente dentro de otra).
    Requiere rol de administrador.
    """
    return category_service.create_category(db, category_in)


@router.post("/migrate", response_model=MigrationResponse)
def migrate_categories(
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Recalcular nivel e is_parent de todas las categorias.
    Requiere rol de administrador.
    """
    updated = category_service.migrate_categories(db)
    _, total = category_service.list_categories(db)
    return MigrationResponse(updated=updated, total=total)


@router.put("/update-counts", response_model=ProductCountsResponse)
def update_product_counts(
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Reconciliar los contadores de productos de todas las categorias.
    Requiere rol de administrador.
    """
    counts = category_service.update_product_counts(db)
    return ProductCountsResponse(counts=counts, updated_at=datetime.now(timezone.utc))


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    category_in: CategoryUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Actualizar una categoria (incluye moverla dentro del arbol).
    Requiere rol de administrador.
    """
    return category_service.update_category(db, category_id, category_in)


@router.delete("/{category_id}", response_model=MessageResponse)
def delete_category(
    category_id: int,
    force: bool = Query(False, description="Eliminar aunque tenga productos asociados"),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """
    Eliminar una categoria sin subcategorias.
    Requiere rol de administrador.
    """
    category_service.delete_category(db, category_id, force_products=force)
    return MessageResponse(message="Categoria eliminada exitosamente", resource_id=category_id)
