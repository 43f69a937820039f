"""
Servicio de productos.
Escrituras con reconciliación de contadores y búsqueda con ranking.
"""
import logging
import math
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from catalog_api.config import settings
from catalog_api.core.exceptions import BadRequestException, ConflictException, NotFoundException
from catalog_api.crud.category import category as crud_category
from catalog_api.crud.product import product as crud_product
from catalog_api.models.product import Product
from catalog_api.schemas.catalog import (
    PaginationInfo,
    ProductCreate,
    ProductFilters,
    ProductListResponse,
    ProductResponse,
    ProductSearchResponse,
    ProductSearchResult,
    ProductUpdate,
    SearchInfo,
)
from catalog_api.services import category_hierarchy_service as hierarchy
from catalog_api.services import search_service

logger = logging.getLogger(__name__)

# Campos que un update puede poner explícitamente en null
NULLABLE_FIELDS = {"management_id", "original_price", "discount"}


def clamp_pagination(page: int, limit: int) -> tuple[int, int]:
    """Página >= 1 y límite entre 1 y SEARCH_MAX_LIMIT."""
    return max(1, page), min(settings.SEARCH_MAX_LIMIT, max(1, limit))


def build_pagination(page: int, limit: int, total: int) -> PaginationInfo:
    """Construir la información de paginación."""
    pages = math.ceil(total / limit) if limit else 0
    return PaginationInfo(
        page=page,
        limit=limit,
        total=total,
        pages=pages,
        has_next=page < pages,
        has_prev=page > 1,
    )


def get_product_or_404(db: Session, product_id: int) -> Product:
    """Obtener un producto o lanzar NotFoundException."""
    product = crud_product.get(db, product_id)
    if product is None:
        raise NotFoundException("Producto no encontrado")
    return product


def reconcile_category_counts(db: Session, category_ids: Iterable[Optional[int]]) -> None:
    """Recalcular product_count de las categorías afectadas por una escritura."""
    categories = [
        category
        for category in (crud_category.find_by_id(db, cid) for cid in set(category_ids) if cid is not None)
        if category is not None
    ]
    hierarchy.recompute_product_counts(
        db,
        categories,
        lambda category_id: crud_product.count_by_category_id(db, category_id),
    )


def _check_management_id(db: Session, management_id: Optional[int], exclude_id: Optional[int] = None) -> None:
    if management_id is None:
        return
    existing = crud_product.get_by_management_id(db, management_id=management_id)
    if existing is not None and existing.id != exclude_id:
        raise ConflictException(f"Ya existe un producto con el ID de gestión {management_id}")


def _resolve_category_name(db: Session, category_id: int) -> str:
    category = crud_category.find_by_id(db, category_id)
    if category is None:
        raise BadRequestException(f"La categoría con ID {category_id} no existe")
    return category.name


def create_product(db: Session, product_in: ProductCreate) -> Product:
    """
    Crear un producto y actualizar el contador de su categoría.
    """
    _check_management_id(db, product_in.management_id)
    data = product_in.model_dump()
    data["category"] = _resolve_category_name(db, product_in.category_id)

    product = crud_product.create(db, obj_in=data)
    reconcile_category_counts(db, [product.category_id])

    logger.info(f"Producto creado: {product.id} '{product.name}' en categoría {product.category_id}")
    return product


def update_product(db: Session, product_id: int, product_in: ProductUpdate) -> Product:
    """
    Actualizar un producto.

    Si cambia de categoría, se sincroniza el nombre desnormalizado y se
    recalculan los contadores de ambas categorías.
    """
    product = get_product_or_404(db, product_id)
    update_data = {
        field: value
        for field, value in product_in.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    former_category_id = product.category_id

    if "management_id" in update_data:
        _check_management_id(db, update_data["management_id"], exclude_id=product.id)

    new_category_id = update_data.get("category_id")
    if new_category_id is not None:
        update_data["category"] = _resolve_category_name(db, new_category_id)
    else:
        update_data.pop("category_id", None)

    product = crud_product.update(db, db_obj=product, obj_in=update_data)
    if product.category_id != former_category_id:
        reconcile_category_counts(db, [former_category_id, product.category_id])

    logger.info(f"Producto actualizado: {product.id}")
    return product


def update_stock(db: Session, product_id: int, stock_count: int) -> Product:
    """Actualizar el stock; in_stock se deriva automáticamente."""
    product = get_product_or_404(db, product_id)
    product.stock_count = stock_count
    return crud_product.save(db, product)


def delete_product(db: Session, product_id: int) -> Product:
    """Eliminar un producto y actualizar el contador de su categoría."""
    product = get_product_or_404(db, product_id)
    category_id = product.category_id
    crud_product.remove(db, id=product_id)
    reconcile_category_counts(db, [category_id])

    logger.info(f"Producto eliminado: {product_id}")
    return product


def list_products(
    db: Session,
    filters: Optional[ProductFilters] = None,
    *,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "created_at",
    sort_order: str = "desc"
) -> ProductListResponse:
    """Listar productos filtrados y paginados."""
    page, limit = clamp_pagination(page, limit)
    items, total = crud_product.list_products(
        db, filters, skip=(page - 1) * limit, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return ProductListResponse(
        data=[ProductResponse.model_validate(item) for item in items],
        pagination=build_pagination(page, limit, total),
    )


def search_products(
    db: Session,
    search_term: Optional[str],
    filters: Optional[ProductFilters] = None,
    *,
    page: int = 1,
    limit: Optional[int] = None,
    weights: Optional[search_service.SearchWeights] = None
) -> ProductSearchResponse:
    """
    Buscar productos por relevancia.

    Los filtros estructurados se aplican en la base de datos, el filtro de
    texto y el ranking en memoria; la paginación se aplica al final.

    Raises:
        BadRequestException: Si no se indica término de búsqueda
    """
    if search_term is None or not search_term.strip():
        raise BadRequestException("Parámetro de búsqueda 'q' es requerido")

    page, limit = clamp_pagination(page, limit or settings.SEARCH_DEFAULT_LIMIT)
    weights = weights or search_service.SearchWeights.from_settings()

    candidates = [
        product for product in crud_product.find_candidates(db, filters)
        if search_service.matches_search(product, search_term)
    ]
    logger.debug(f"Búsqueda '{search_term}': {len(candidates)} candidatos con filtros {filters}")

    ranked = search_service.rank(candidates, search_term, weights)
    skip = (page - 1) * limit
    page_items = ranked[skip:skip + limit]

    results = []
    for product, relevance in page_items:
        result = ProductSearchResult.model_validate(product)
        result.relevance_score = relevance
        results.append(result)

    logger.info(
        f"Búsqueda '{search_term}' completada: {len(ranked)} resultados, "
        f"mejor puntaje {page_items[0][1] if page_items else 0}"
    )

    return ProductSearchResponse(
        data=results,
        search_info=SearchInfo(
            query=search_term,
            normalized_query=search_service.normalize(search_term),
            words=search_service.extract_words(search_term),
        ),
        pagination=build_pagination(page, limit, len(ranked)),
    )
