"""
Servicio de jerarquía de categorías.

Valida asignaciones de padre (auto-referencia, existencia, profundidad y
ciclos), materializa el árbol a partir de la lista plana almacenada y calcula
rutas raíz -> categoría. Los niveles van de 0 (raíz) a CATEGORY_MAX_LEVEL.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

from catalog_api.config import settings
from catalog_api.core.exceptions import (
    CircularReferenceError,
    DepthLimitExceededError,
    NotFoundException,
    ParentNotFoundError,
    SelfParentError,
)
from catalog_api.crud.category import category as crud_category
from catalog_api.models.category import Category

logger = logging.getLogger(__name__)


def validate_parent_assignment(
    db: Session,
    category_id: Optional[int],
    proposed_parent_id: Optional[int],
    max_level: Optional[int] = None,
) -> int:
    """
    Validar que proposed_parent_id pueda ser el padre de category_id.

    Args:
        db: Sesión de base de datos
        category_id: ID de la categoría (None si aún no fue creada)
        proposed_parent_id: ID del padre propuesto (None = raíz)
        max_level: Nivel máximo permitido (por defecto CATEGORY_MAX_LEVEL)

    Returns:
        Nivel resultante de la categoría

    Raises:
        SelfParentError: Si la categoría sería su propio padre
        ParentNotFoundError: Si el padre no existe
        DepthLimitExceededError: Si el padre ya está en el nivel máximo
        CircularReferenceError: Si el padre desciende de la categoría o la cadena ya tiene un ciclo
    """
    if proposed_parent_id is None:
        return 0

    if max_level is None:
        max_level = settings.CATEGORY_MAX_LEVEL

    if category_id is not None and proposed_parent_id == category_id:
        raise SelfParentError()

    parent = crud_category.find_by_id(db, proposed_parent_id)
    if parent is None:
        raise ParentNotFoundError(f"La categoría padre con ID {proposed_parent_id} no existe")

    if parent.level >= max_level:
        raise DepthLimitExceededError(
            f"La categoría '{parent.name}' está en el nivel {parent.level}; "
            f"el máximo permitido es {max_level}"
        )

    # Recorrer ancestros desde el padre propuesto hasta una raíz
    visited = set()
    current = parent
    while current is not None:
        if current.id == category_id or current.id in visited:
            logger.warning(
                f"Asignación rechazada: {category_id} -> {proposed_parent_id} crearía un ciclo"
            )
            raise CircularReferenceError()
        visited.add(current.id)
        if current.parent_category_id is None:
            break
        current = crud_category.find_by_id(db, current.parent_category_id)

    return parent.level + 1


def apply_assignment(
    db: Session,
    category: Category,
    proposed_parent_id: Optional[int],
    max_level: Optional[int] = None,
    *,
    level: Optional[int] = None,
) -> Category:
    """
    Asignar un padre a la categoría y recalcular sus campos derivados.

    No persiste la categoría (lo hace quien llama); sí persiste el padre
    cuando pasa a ser marcado como is_parent.

    Args:
        db: Sesión de base de datos
        category: Categoría a modificar (nueva o existente)
        proposed_parent_id: ID del padre (None = raíz)
        level: Nivel ya obtenido de validate_parent_assignment para este
            mismo padre; si se indica no se vuelve a validar

    Returns:
        La misma categoría con parent_category_id, level e is_parent actualizados
    """
    if level is None:
        level = validate_parent_assignment(db, category.id, proposed_parent_id, max_level)

    category.parent_category_id = proposed_parent_id
    category.level = level
    # Hoja hasta que alguna categoría la referencie como padre
    category.is_parent = category.id is not None and crud_category.has_children(db, parent_id=category.id)

    if proposed_parent_id is not None:
        parent = crud_category.find_by_id(db, proposed_parent_id)
        if not parent.is_parent:
            parent.is_parent = True
            crud_category.save(db, parent)
            logger.info(f"Categoría {parent.id} marcada como padre")

    return category


def refresh_is_parent(db: Session, category_id: Optional[int]) -> Optional[Category]:
    """
    Recalcular is_parent de una categoría según sus hijos actuales.

    Returns:
        Categoría actualizada, o None si no existe
    """
    category = crud_category.find_by_id(db, category_id)
    if category is None:
        return None
    is_parent = crud_category.has_children(db, parent_id=category.id)
    if category.is_parent != is_parent:
        category.is_parent = is_parent
        crud_category.save(db, category)
    return category


def subtree_height(db: Session, category_id: int) -> int:
    """Altura del subárbol bajo la categoría (0 si es hoja)."""
    height = 0
    frontier = [category_id]
    seen = {category_id}
    while True:
        next_frontier = []
        for parent_id in frontier:
            for child in crud_category.find_children(db, parent_id=parent_id):
                if child.id not in seen:
                    seen.add(child.id)
                    next_frontier.append(child.id)
        if not next_frontier:
            return height
        height += 1
        frontier = next_frontier


def refresh_subtree_levels(db: Session, category: Category) -> int:
    """
    Propagar el nivel de una categoría a todos sus descendientes.

    Returns:
        Cantidad de descendientes cuyo nivel cambió
    """
    changed = 0
    pending = [category]
    seen = {category.id}
    while pending:
        current = pending.pop(0)
        for child in crud_category.find_children(db, parent_id=current.id):
            if child.id in seen:
                continue
            seen.add(child.id)
            if child.level != current.level + 1:
                child.level = current.level + 1
                db.add(child)
                changed += 1
            pending.append(child)
    if changed:
        db.commit()
    return changed


def _as_node(category: Any) -> Dict[str, Any]:
    """Copia superficial de una categoría (ORM o dict) como dict."""
    if isinstance(category, Mapping):
        node = dict(category)
    else:
        mapper = sa_inspect(category).mapper
        node = {attr.key: getattr(category, attr.key) for attr in mapper.column_attrs}
    node["subcategories"] = []
    return node


def build_hierarchy(categories: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Construir el bosque de categorías a partir de una lista plana.

    El orden de la lista de entrada determina el orden entre hermanos.
    Una categoría cuyo padre no está en la lista se trata como raíz.

    Args:
        categories: Categorías (ORM o dicts) con id y parent_category_id

    Returns:
        Lista de raíces; cada nodo lleva sus hijos en "subcategories"
    """
    nodes = [_as_node(category) for category in categories]
    lookup = {node["id"]: node for node in nodes}

    roots = []
    for node in nodes:
        parent_id = node.get("parent_category_id")
        parent = lookup.get(parent_id) if parent_id is not None else None
        if parent is not None and parent is not node:
            parent["subcategories"].append(node)
        else:
            if parent_id is not None:
                logger.warning(f"Categoría {node['id']} referencia un padre inexistente ({parent_id})")
            roots.append(node)
    return roots


def compute_path(db: Session, category_id: int) -> List[Category]:
    """
    Obtener la ruta desde la raíz hasta la categoría indicada.

    Args:
        db: Sesión de base de datos
        category_id: ID de la categoría destino

    Returns:
        Lista de categorías (raíz primero, destino al final)

    Raises:
        NotFoundException: Si la categoría no existe
    """
    current = crud_category.find_by_id(db, category_id)
    if current is None:
        raise NotFoundException("Categoría no encontrada")

    path = [current]
    visited = {current.id}
    while current.parent_category_id is not None:
        parent = crud_category.find_by_id(db, current.parent_category_id)
        if parent is None:
            break
        if parent.id in visited:
            logger.warning(f"Ciclo detectado al calcular la ruta de la categoría {category_id}")
            break
        visited.add(parent.id)
        path.insert(0, parent)
        current = parent
    return path


def recompute_product_counts(
    db: Session,
    categories: Iterable[Category],
    product_counter: Callable[[int], int],
) -> List[Category]:
    """
    Recalcular product_count de cada categoría con el contador dado.

    Cada categoría se persiste por separado: si falla a mitad de camino,
    las anteriores quedan actualizadas y el resto sin cambios.

    Args:
        db: Sesión de base de datos
        categories: Categorías a actualizar
        product_counter: Función category_id -> cantidad de productos directos

    Returns:
        Lista de categorías actualizadas
    """
    updated = []
    for category in categories:
        category.product_count = product_counter(category.id)
        updated.append(crud_category.save(db, category))
    logger.info(f"Contadores de productos recalculados para {len(updated)} categorías")
    return updated


def rollup_counts(categories: Iterable[Any], direct_counts: Mapping[int, int]) -> Dict[int, int]:
    """
    Sumar a cada categoría los productos de todos sus descendientes.

    Args:
        categories: Categorías (ORM o dicts)
        direct_counts: Conteo directo por category_id

    Returns:
        Conteo acumulado por category_id
    """
    totals: Dict[int, int] = {}

    def accumulate(node: Dict[str, Any]) -> int:
        total = direct_counts.get(node["id"], 0)
        for child in node["subcategories"]:
            total += accumulate(child)
        totals[node["id"]] = total
        return total

    for root in build_hierarchy(categories):
        accumulate(root)
    return totals
