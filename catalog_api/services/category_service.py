"""
Servicio de categorías.
Operaciones de alto nivel sobre el árbol de categorías.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from catalog_api.config import settings
from catalog_api.core.exceptions import (
    CategoryInUseError,
    ConflictException,
    DepthLimitExceededError,
    NotFoundException,
)
from catalog_api.crud.category import category as crud_category
from catalog_api.crud.product import product as crud_product
from catalog_api.models.category import Category
from catalog_api.schemas.catalog import CategoryCreate, CategoryFilters, CategoryUpdate
from catalog_api.services import category_hierarchy_service as hierarchy

logger = logging.getLogger(__name__)


def get_category_or_404(db: Session, category_id: int) -> Category:
    """Obtener una categoría o lanzar NotFoundException."""
    category = crud_category.find_by_id(db, category_id)
    if category is None:
        raise NotFoundException("Categoría no encontrada")
    return category


def create_category(db: Session, category_in: CategoryCreate) -> Category:
    """
    Crear una categoría validando nombre único y asignación de padre.

    Args:
        db: Sesión de base de datos
        category_in: Datos de la categoría

    Returns:
        Categoría creada
    """
    if crud_category.find_by_name(db, name=category_in.name):
        raise ConflictException(f"Ya existe una categoría con el nombre '{category_in.name}'")

    new_category = Category(
        name=category_in.name,
        description=category_in.description,
        icon=category_in.icon,
        color=category_in.color,
        product_count=0,
    )
    hierarchy.apply_assignment(db, new_category, category_in.parent_category_id)
    crud_category.save(db, new_category)

    logger.info(
        f"Categoría creada: {new_category.id} '{new_category.name}' (nivel {new_category.level})"
    )
    return new_category


def update_category(db: Session, category_id: int, category_in: CategoryUpdate) -> Category:
    """
    Actualizar una categoría.

    Si el payload incluye parent_category_id (aunque sea null) se revalida la
    jerarquía, se propagan los niveles al subárbol y se recalcula is_parent
    del padre anterior.
    """
    category = get_category_or_404(db, category_id)
    update_data = category_in.model_dump(exclude_unset=True)

    name = update_data.pop("name", None)
    if name is not None and name != category.name:
        if crud_category.find_by_name(db, name=name, exclude_id=category_id):
            raise ConflictException(f"Ya existe otra categoría con el nombre '{name}'")
        category.name = name
        renamed = crud_product.rename_category(db, category_id=category_id, name=name)
        logger.info(f"Categoría {category_id} renombrada a '{name}' ({renamed} productos actualizados)")

    move = "parent_category_id" in update_data
    new_parent_id = update_data.pop("parent_category_id", None)

    for field, value in update_data.items():
        setattr(category, field, value)

    if not move or new_parent_id == category.parent_category_id:
        return crud_category.save(db, category)

    former_parent_id = category.parent_category_id
    new_level = hierarchy.validate_parent_assignment(db, category.id, new_parent_id)
    height = hierarchy.subtree_height(db, category.id)
    if new_level + height > settings.CATEGORY_MAX_LEVEL:
        raise DepthLimitExceededError(
            f"Mover la categoría dejaría descendientes por debajo del nivel {settings.CATEGORY_MAX_LEVEL}"
        )

    hierarchy.apply_assignment(db, category, new_parent_id, level=new_level)
    crud_category.save(db, category)
    hierarchy.refresh_subtree_levels(db, category)
    hierarchy.refresh_is_parent(db, former_parent_id)

    logger.info(
        f"Categoría {category.id} movida de {former_parent_id} a {new_parent_id} (nivel {category.level})"
    )
    return category


def delete_category(db: Session, category_id: int, *, force_products: bool = False) -> Category:
    """
    Eliminar una categoría sin subcategorías.

    Args:
        db: Sesión de base de datos
        category_id: ID de la categoría
        force_products: Permitir eliminarla aunque tenga productos asociados

    Raises:
        NotFoundException: Si no existe
        CategoryInUseError: Si tiene subcategorías o productos (sin force_products)
    """
    category = get_category_or_404(db, category_id)

    children_count = crud_category.count_children(db, parent_id=category_id)
    if children_count > 0:
        raise CategoryInUseError(
            f"No se puede eliminar: tiene {children_count} subcategorías. Elimine las subcategorías primero."
        )

    products_count = crud_product.count_by_category_id(db, category_id)
    if products_count > 0 and not force_products:
        raise CategoryInUseError(
            f"No se puede eliminar: hay {products_count} productos asociados a esta categoría."
        )

    if products_count > 0:
        removed = crud_product.remove_by_category(db, category_id=category_id)
        logger.warning(f"Categoría {category_id}: {removed} productos eliminados junto con la categoría")

    former_parent_id = category.parent_category_id
    crud_category.remove(db, id=category_id)
    hierarchy.refresh_is_parent(db, former_parent_id)

    logger.info(f"Categoría eliminada: {category_id}")
    return category


def list_categories(
    db: Session,
    filters: Optional[CategoryFilters] = None,
    *,
    skip: int = 0,
    limit: Optional[int] = None
) -> tuple[List[Category], int]:
    """Listar categorías filtradas con su total."""
    return (
        crud_category.find_all(db, filters, skip=skip, limit=limit),
        crud_category.count(db, filters),
    )


def get_subcategories(db: Session, category_id: int) -> List[Category]:
    """Obtener las subcategorías directas (404 si la categoría no existe)."""
    get_category_or_404(db, category_id)
    return crud_category.find_children(db, parent_id=category_id)


def get_category_path(db: Session, category_id: int) -> List[Category]:
    """Ruta raíz -> categoría."""
    return hierarchy.compute_path(db, category_id)


def get_hierarchy(db: Session) -> List[dict]:
    """Vista jerárquica completa (bosque de categorías)."""
    return hierarchy.build_hierarchy(crud_category.find_all(db))


def update_product_counts(db: Session) -> Dict[int, int]:
    """
    Reconciliar product_count de todas las categorías con la tabla de productos.

    Returns:
        Diccionario {category_id: cantidad}
    """
    categories = crud_category.find_all(db)
    updated = hierarchy.recompute_product_counts(
        db,
        categories,
        lambda category_id: crud_product.count_by_category_id(db, category_id),
    )
    return {category.id: category.product_count for category in updated}


def get_product_counts(
    db: Session,
    *,
    include_parents: bool = True,
    include_leaves: bool = True,
    rollup_parents: bool = True,
    in_stock: Optional[bool] = None,
    featured: Optional[bool] = None
) -> Dict[int, int]:
    """
    Obtener el conteo de productos por categoría (solo lectura).

    Con rollup_parents, el conteo de un padre incluye el de sus descendientes.
    El product_count almacenado no se modifica.
    """
    categories = crud_category.find_all(db)
    direct = crud_product.counts_by_category(db, in_stock=in_stock, featured=featured)

    if rollup_parents:
        counts = hierarchy.rollup_counts(categories, direct)
    else:
        counts = {category.id: direct.get(category.id, 0) for category in categories}

    result = {}
    for category in categories:
        if category.is_parent and not include_parents:
            continue
        if not category.is_parent and not include_leaves:
            continue
        result[category.id] = counts.get(category.id, 0)
    return result


def migrate_categories(db: Session) -> int:
    """
    Recalcular level e is_parent de todas las categorías a partir de los padres.

    Repara filas antiguas o inconsistentes. Un padre inexistente convierte a la
    categoría en raíz.

    Returns:
        Cantidad de categorías modificadas
    """
    categories = crud_category.find_all(db)
    by_id = {category.id: category for category in categories}
    parent_ids = {c.parent_category_id for c in categories if c.parent_category_id is not None}

    changed = 0
    for node in hierarchy.build_hierarchy(categories):
        pending = [(node, 0)]
        while pending:
            current, level = pending.pop()
            category = by_id[current["id"]]
            is_parent = category.id in parent_ids
            orphaned = level == 0 and category.parent_category_id is not None

            if orphaned or category.level != level or category.is_parent != is_parent:
                if orphaned:
                    category.parent_category_id = None
                category.level = level
                category.is_parent = is_parent
                db.add(category)
                changed += 1
            pending.extend((child, level + 1) for child in current["subcategories"])

    if changed:
        db.commit()
    logger.info(f"Migración de categorías: {changed}/{len(categories)} actualizadas")
    return changed
