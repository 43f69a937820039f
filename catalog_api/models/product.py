"""
Modelo ORM para Productos.
"""
from sqlalchemy import Column, Integer, String, Boolean, Float, ForeignKey, CheckConstraint, Text, JSON
from sqlalchemy.orm import relationship, validates
from catalog_api.db.base import Base, TimestampMixin


MAX_GALLERY_IMAGES = 4
DEFAULT_PRODUCT_IMAGE = "/uploads/products/default-product.png"


class Product(Base, TimestampMixin):
    """Modelo de Productos del catálogo."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    management_id = Column(Integer, unique=True, nullable=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False, index=True)
    original_price = Column(Float)
    # Nombre de la categoría desnormalizado (se usa en la búsqueda)
    category = Column(String(100), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    image = Column(String(500))
    gallery = Column(JSON, nullable=False, default=list)
    in_stock = Column(Boolean, nullable=False, default=False, index=True)
    stock_count = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0)
    reviews = Column(Integer, nullable=False, default=0)
    featured = Column(Boolean, nullable=False, default=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    specifications = Column(JSON, nullable=False, default=dict)
    discount = Column(Float)

    # Constraints
    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_positive'),
        CheckConstraint('stock_count >= 0', name='check_stock_count_positive'),
        CheckConstraint('rating >= 0 AND rating <= 5', name='check_rating_range'),
    )

    # Relationships
    category_ref = relationship("Category", back_populates="products")

    def __repr__(self):
        return f"<Product {self.name}>"

    @validates("stock_count")
    def _sync_in_stock(self, key, value):
        """in_stock siempre se deriva de stock_count."""
        self.in_stock = (value or 0) > 0
        return value

    @validates("gallery")
    def _sync_main_image(self, key, value):
        """La primera imagen de la galería es siempre la principal."""
        gallery = list(value or [])
        if len(gallery) > MAX_GALLERY_IMAGES:
            raise ValueError(f"No se pueden tener más de {MAX_GALLERY_IMAGES} imágenes por producto")
        if not gallery:
            gallery = [DEFAULT_PRODUCT_IMAGE]
        self.image = gallery[0]
        return gallery

    @property
    def discount_calculated(self) -> int:
        """Porcentaje de descuento calculado a partir del precio original."""
        if self.original_price and self.original_price > self.price:
            return round((self.original_price - self.price) / self.original_price * 100)
        return 0
