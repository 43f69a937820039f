"""
CRUD para productos.
"""
from typing import Dict, List, Optional
from sqlalchemy.orm import Session, Query
from sqlalchemy import asc, desc, func

from catalog_api.crud.base import CRUDBase
from catalog_api.models.product import Product
from catalog_api.schemas.catalog import ProductFilters


SORTABLE_FIELDS = {
    "name": Product.name,
    "price": Product.price,
    "rating": Product.rating,
    "created_at": Product.created_at,
    "stock_count": Product.stock_count,
}


class CRUDProduct(CRUDBase[Product, dict, dict]):
    """CRUD específico para productos."""

    def count_by_category_id(self, db: Session, category_id: int) -> int:
        """
        Contar productos asignados directamente a una categoría.

        Args:
            db: Sesión de base de datos
            category_id: ID de la categoría

        Returns:
            Cantidad de productos
        """
        return db.query(Product).filter(Product.category_id == category_id).count()

    def counts_by_category(self, db: Session, *, in_stock: Optional[bool] = None,
                           featured: Optional[bool] = None) -> Dict[int, int]:
        """
        Contar productos agrupados por categoría en una sola consulta.

        Returns:
            Diccionario {category_id: cantidad}; las categorías sin productos no aparecen
        """
        query = db.query(Product.category_id, func.count(Product.id))
        if in_stock is not None:
            query = query.filter(Product.in_stock == in_stock)
        if featured is not None:
            query = query.filter(Product.featured == featured)
        rows = query.group_by(Product.category_id).all()
        return {category_id: count for category_id, count in rows}

    def remove_by_category(self, db: Session, *, category_id: int) -> int:
        """
        Eliminar todos los productos de una categoría.

        Returns:
            Cantidad de productos eliminados
        """
        deleted = db.query(Product).filter(Product.category_id == category_id).delete(synchronize_session=False)
        db.commit()
        return deleted

    def rename_category(self, db: Session, *, category_id: int, name: str) -> int:
        """
        Actualizar el nombre desnormalizado de categoría en sus productos.

        No confirma la transacción: lo hace quien guarda la categoría.

        Returns:
            Cantidad de productos actualizados
        """
        return (
            db.query(Product)
            .filter(Product.category_id == category_id)
            .update({Product.category: name}, synchronize_session=False)
        )

    def get_by_management_id(self, db: Session, *, management_id: int) -> Optional[Product]:
        """Obtener un producto por su ID de gestión."""
        return db.query(Product).filter(Product.management_id == management_id).first()

    def _filtered_query(self, db: Session, filters: Optional[ProductFilters]) -> Query:
        query = db.query(Product)
        if filters is None:
            return query

        if filters.category:
            query = query.filter(Product.category == filters.category)
        if filters.category_id is not None:
            query = query.filter(Product.category_id == filters.category_id)
        if filters.min_price is not None:
            query = query.filter(Product.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.filter(Product.price <= filters.max_price)
        if filters.in_stock is not None:
            query = query.filter(Product.in_stock == filters.in_stock)
        if filters.featured:
            query = query.filter(Product.featured == True)
        return query

    @staticmethod
    def _has_any_tag(product: Product, tags: List[str]) -> bool:
        return bool(set(product.tags or []) & set(tags))

    def find_candidates(self, db: Session, filters: Optional[ProductFilters] = None) -> List[Product]:
        """
        Obtener los productos que cumplen los filtros estructurados.

        El filtro de texto se aplica después, en el servicio de búsqueda,
        porque requiere normalización (acentos, mayúsculas).

        Args:
            db: Sesión de base de datos
            filters: Filtros de categoría, precio, stock, destacados y tags

        Returns:
            Lista de productos en orden de inserción
        """
        products = self._filtered_query(db, filters).order_by(Product.id).all()
        if filters is not None and filters.tags:
            # tags es una columna JSON: se filtra en Python para ser portable entre motores
            products = [p for p in products if self._has_any_tag(p, filters.tags)]
        return products

    def list_products(
        self,
        db: Session,
        filters: Optional[ProductFilters] = None,
        *,
        skip: int = 0,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> tuple[List[Product], int]:
        """
        Listar productos con filtros, orden y paginación.

        Returns:
            Tupla (productos de la página, total)
        """
        column = SORTABLE_FIELDS.get(sort_by, Product.created_at)
        order = asc(column) if sort_order == "asc" else desc(column)

        if filters is not None and filters.tags:
            ordered = self._filtered_query(db, filters).order_by(order, Product.id).all()
            ordered = [p for p in ordered if self._has_any_tag(p, filters.tags)]
            return ordered[skip:skip + limit], len(ordered)

        query = self._filtered_query(db, filters)
        total = query.count()
        items = query.order_by(order, Product.id).offset(skip).limit(limit).all()
        return items, total


# Instancia global del CRUD
product = CRUDProduct(Product)
