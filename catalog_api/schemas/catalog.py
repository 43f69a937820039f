"""
Schemas para el catálogo (Categorías y Productos).
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Union
from datetime import datetime


# ================================================================
# CATEGORIAS
# ================================================================

class CategoryFilters(BaseModel):
    """Filtros para listar categorías."""

    search: Optional[str] = None
    parent_id: Optional[int] = None
    level: Optional[int] = Field(None, ge=0)
    is_parent: Optional[bool] = None


class CategoryBase(BaseModel):
    """Schema base de categoria."""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    parent_category_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("El nombre de la categoría es requerido")
        return value

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None


class CategoryCreate(CategoryBase):
    """Schema para crear categoria."""
    pass


class CategoryUpdate(BaseModel):
    """
    Schema para actualizar categoria.

    parent_category_id solo se procesa si viene en el payload;
    enviar null convierte la categoría en raíz.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    parent_category_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("El nombre de la categoría no puede estar vacío")
        return value

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None


class CategoryResponse(BaseModel):
    """Schema de respuesta de categoria."""

    id: int
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    product_count: int = 0
    parent_category_id: Optional[int] = None
    is_parent: bool = False
    level: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CategoryTreeResponse(CategoryResponse):
    """Schema de respuesta de categoria con sus subcategorías anidadas."""

    subcategories: List["CategoryTreeResponse"] = []


class CategoryListResponse(BaseModel):
    """Schema de respuesta paginada de categorias."""

    data: List[CategoryResponse]
    total: int
    page: int
    limit: int
    pages: int


class CategoryHierarchyResponse(BaseModel):
    """Schema de respuesta de la vista jerárquica completa."""

    data: List[CategoryTreeResponse]
    total: int


class CategoryPathResponse(BaseModel):
    """Ruta desde la raíz hasta una categoría (raíz primero)."""

    data: List[CategoryResponse]
    depth: int


class ProductCountsResponse(BaseModel):
    """Mapa de productos por categoría."""

    counts: Dict[int, int]
    updated_at: datetime


class MigrationResponse(BaseModel):
    """Resultado de la reconciliación de niveles / is_parent."""

    updated: int
    total: int


# ================================================================
# PRODUCTOS
# ================================================================

SpecificationValue = Union[str, int, float]


class ProductFilters(BaseModel):
    """Filtros estructurados para listar y buscar productos."""

    category: Optional[str] = None
    category_id: Optional[int] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None
    tags: Optional[List[str]] = None


class ProductBase(BaseModel):
    """Schema base de producto."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    category_id: int
    management_id: Optional[int] = Field(None, ge=0)
    gallery: List[str] = Field(default_factory=list, max_length=4)
    stock_count: int = Field(default=0, ge=0)
    rating: float = Field(default=0, ge=0, le=5)
    reviews: int = Field(default=0, ge=0)
    featured: bool = False
    tags: List[str] = Field(default_factory=list)
    specifications: Dict[str, SpecificationValue] = Field(default_factory=dict)
    discount: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("El campo no puede estar vacío")
        return value


class ProductCreate(ProductBase):
    """Schema para crear producto."""
    pass


class ProductUpdate(BaseModel):
    """Schema para actualizar producto."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    category_id: Optional[int] = None
    management_id: Optional[int] = Field(None, ge=0)
    gallery: Optional[List[str]] = Field(None, max_length=4)
    stock_count: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    reviews: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None
    tags: Optional[List[str]] = None
    specifications: Optional[Dict[str, SpecificationValue]] = None
    discount: Optional[float] = Field(None, ge=0, le=100)


class ProductStockUpdate(BaseModel):
    """Schema para actualizar el stock de un producto."""

    stock_count: int = Field(..., ge=0)


class ProductResponse(BaseModel):
    """Schema de respuesta de producto."""

    id: int
    management_id: Optional[int] = None
    name: str
    description: str
    price: float
    original_price: Optional[float] = None
    category: str
    category_id: int
    image: Optional[str] = None
    gallery: List[str] = []
    in_stock: bool
    stock_count: int
    rating: float
    reviews: int
    featured: bool
    tags: List[str] = []
    specifications: Dict[str, SpecificationValue] = {}
    discount: Optional[float] = None
    discount_calculated: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductSearchResult(ProductResponse):
    """Producto con su puntaje de relevancia."""

    relevance_score: int = 0


class PaginationInfo(BaseModel):
    """Datos de paginación."""

    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class SearchInfo(BaseModel):
    """Información de la búsqueda realizada."""

    query: str
    normalized_query: str
    words: List[str]


class ProductListResponse(BaseModel):
    """Schema de respuesta paginada de productos."""

    data: List[ProductResponse]
    pagination: PaginationInfo


class ProductSearchResponse(BaseModel):
    """Schema de respuesta de la búsqueda de productos."""

    data: List[ProductSearchResult]
    search_info: SearchInfo
    pagination: PaginationInfo
