"""
Modelo ORM para Categorías de productos (árbol de hasta 4 niveles: 0..3).
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from catalog_api.db.base import Base, TimestampMixin


class Category(Base, TimestampMixin):
    """Modelo de Categorías con referencia opcional a su categoría padre."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(String(500))
    icon = Column(String(50))
    color = Column(String(20))
    product_count = Column(Integer, nullable=False, default=0)
    parent_category_id = Column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Derivados: se recalculan en cada asignación de padre
    is_parent = Column(Boolean, nullable=False, default=False)
    level = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint('product_count >= 0', name='check_product_count_positive'),
        CheckConstraint('level >= 0', name='check_category_level_positive'),
    )

    # Self-referential relationship
    parent = relationship("Category", remote_side=[id], backref="children")

    # Relationships
    products = relationship("Product", back_populates="category_ref")

    def __repr__(self):
        return f"<Category {self.name} (level {self.level})>"
