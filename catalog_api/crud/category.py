"""
CRUD para categorías.
"""
from typing import List, Optional
from sqlalchemy.orm import Session, Query
from sqlalchemy import or_

from catalog_api.crud.base import CRUDBase
from catalog_api.models.category import Category
from catalog_api.schemas.catalog import CategoryFilters


class CRUDCategory(CRUDBase[Category, dict, dict]):
    """CRUD específico para categorías."""

    def find_by_id(self, db: Session, category_id: Optional[int]) -> Optional[Category]:
        """Obtener una categoría por ID (None si no existe)."""
        return self.get(db, category_id)

    def _filtered_query(self, db: Session, filters: Optional[CategoryFilters]) -> Query:
        query = db.query(Category)
        if filters is None:
            return query

        if filters.search:
            search_term = f"%{filters.search.strip()}%"
            query = query.filter(
                or_(
                    Category.name.ilike(search_term),
                    Category.description.ilike(search_term)
                )
            )
        if filters.parent_id is not None:
            query = query.filter(Category.parent_category_id == filters.parent_id)
        if filters.level is not None:
            query = query.filter(Category.level == filters.level)
        if filters.is_parent is not None:
            query = query.filter(Category.is_parent == filters.is_parent)
        return query

    def find_all(
        self,
        db: Session,
        filters: Optional[CategoryFilters] = None,
        *,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[Category]:
        """
        Obtener categorías que cumplen los filtros, ordenadas por nombre.

        Args:
            db: Sesión de base de datos
            filters: Filtros opcionales (búsqueda, padre, nivel, is_parent)
            skip: Registros a saltar
            limit: Límite de registros (None = todos)

        Returns:
            Lista de categorías
        """
        query = self._filtered_query(db, filters).order_by(Category.name).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, db: Session, filters: Optional[CategoryFilters] = None) -> int:
        """Contar categorías que cumplen los filtros."""
        return self._filtered_query(db, filters).count()

    def find_by_name(
        self, db: Session, *, name: str, exclude_id: Optional[int] = None
    ) -> Optional[Category]:
        """
        Buscar una categoría por nombre exacto.

        Args:
            db: Sesión de base de datos
            name: Nombre (ya recortado)
            exclude_id: ID a excluir (para actualizaciones)

        Returns:
            Categoría encontrada o None
        """
        query = db.query(Category).filter(Category.name == name)
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first()

    def find_children(self, db: Session, *, parent_id: int) -> List[Category]:
        """Obtener las subcategorías directas de una categoría."""
        return (
            db.query(Category)
            .filter(Category.parent_category_id == parent_id)
            .order_by(Category.name)
            .all()
        )

    def count_children(self, db: Session, *, parent_id: int) -> int:
        """Contar las subcategorías directas de una categoría."""
        return db.query(Category).filter(Category.parent_category_id == parent_id).count()

    def has_children(self, db: Session, *, parent_id: int) -> bool:
        """Indica si alguna categoría referencia a parent_id como padre."""
        return self.count_children(db, parent_id=parent_id) > 0


# Instancia global del CRUD
category = CRUDCategory(Category)
