"""
Servicio de búsqueda inteligente de productos.

Normaliza texto (minúsculas, sin acentos, espacios colapsados) y calcula un
puntaje de relevancia determinista por producto.
"""
import math
import re
import unicodedata
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from catalog_api.config import settings


STOCK_BONUS = 5
FEATURED_BONUS = 10
WORD_COVERAGE_BONUS = 30
MANAGEMENT_ID_FACTOR = 1.5
DESCRIPTION_EXACT_FACTOR = 0.8
DESCRIPTION_PARTIAL_FACTOR = 0.6

_NUMERIC_RE = re.compile(r"^[0-9]+$")
_WHITESPACE_RE = re.compile(r"\s+")


class SearchWeights(BaseModel):
    """Pesos de cada señal de coincidencia."""

    exact_match: float = 100
    partial_match: float = 50
    tag_match: float = 75
    category_match: float = 25

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls) -> "SearchWeights":
        """Pesos configurados en el entorno."""
        return cls(
            exact_match=settings.SEARCH_EXACT_MATCH_SCORE,
            partial_match=settings.SEARCH_PARTIAL_MATCH_SCORE,
            tag_match=settings.SEARCH_TAG_MATCH_SCORE,
            category_match=settings.SEARCH_CATEGORY_MATCH_SCORE,
        )


DEFAULT_WEIGHTS = SearchWeights()


def normalize(text: Optional[str]) -> str:
    """
    Normalizar texto para comparaciones.

    - Convierte a minúsculas
    - Elimina acentos (descomposición NFD sin marcas combinantes)
    - Colapsa espacios múltiples y recorta extremos
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def split_words(search_term: Optional[str]) -> List[str]:
    """Palabras normalizadas del término de búsqueda (sin escapar)."""
    return [word for word in normalize(search_term).split(" ") if word]


def extract_words(search_term: Optional[str]) -> List[str]:
    """
    Convertir la búsqueda en palabras listas para usarse como patrón literal.

    Returns:
        Palabras normalizadas con los metacaracteres de regex escapados
    """
    return [re.escape(word) for word in split_words(search_term)]


def _numeric_value(search_term: Optional[str]) -> Optional[int]:
    term = (search_term or "").strip()
    if _NUMERIC_RE.match(term):
        return int(term)
    return None


def _field(product: Any, name: str, default: Any = None) -> Any:
    if isinstance(product, dict):
        return product.get(name, default)
    return getattr(product, name, default)


def score(product: Any, search_term: Optional[str], weights: Optional[SearchWeights] = None) -> int:
    """
    Calcular el puntaje de relevancia de un producto.

    Args:
        product: Producto (ORM o dict) con name, description, category, tags,
            in_stock, featured y opcionalmente management_id
        search_term: Texto buscado
        weights: Pesos de coincidencia (por defecto 100/50/75/25)

    Returns:
        Puntaje entero no negativo
    """
    weights = weights or DEFAULT_WEIGHTS

    norm_search = normalize(search_term)
    norm_name = normalize(_field(product, "name"))
    norm_desc = normalize(_field(product, "description"))
    norm_category = normalize(_field(product, "category"))
    words = split_words(search_term)
    numeric_value = _numeric_value(search_term)

    total = 0.0

    # Una búsqueda vacía solo suma los bonus de stock y destacado
    if norm_search:
        # Solo una de estas coincidencias aplica, por orden de prioridad
        management_id = _field(product, "management_id")
        if numeric_value is not None and management_id is not None and management_id == numeric_value:
            total += weights.exact_match * MANAGEMENT_ID_FACTOR
        elif norm_name == norm_search:
            total += weights.exact_match
        elif norm_desc == norm_search:
            total += weights.exact_match * DESCRIPTION_EXACT_FACTOR
        elif norm_search in norm_name:
            total += weights.partial_match
        elif norm_search in norm_desc:
            total += weights.partial_match * DESCRIPTION_PARTIAL_FACTOR

        if norm_search in norm_category:
            total += weights.category_match

        tags = _field(product, "tags") or []
        if isinstance(tags, (list, tuple, set)) and any(norm_search in normalize(tag) for tag in tags):
            total += weights.tag_match

    if len(words) > 1:
        matching = [
            word for word in words
            if word in norm_name or word in norm_desc or word in norm_category
        ]
        total += (len(matching) / len(words)) * WORD_COVERAGE_BONUS

    if _field(product, "in_stock"):
        total += STOCK_BONUS
    if _field(product, "featured"):
        total += FEATURED_BONUS

    # Redondeo half-up
    return max(0, math.floor(total + 0.5))


def rank(
    products: Iterable[Any],
    search_term: Optional[str],
    weights: Optional[SearchWeights] = None,
) -> List[Tuple[Any, int]]:
    """
    Ordenar productos por relevancia descendente.

    El orden es estable: a igual puntaje se conserva el orden de entrada.
    La paginación la aplica quien llama.

    Returns:
        Lista de tuplas (producto, puntaje)
    """
    scored = [(product, score(product, search_term, weights)) for product in products]
    return sorted(scored, key=lambda item: item[1], reverse=True)


def matches_search(product: Any, search_term: Optional[str]) -> bool:
    """
    Indicar si un producto es candidato para la búsqueda.

    Coincide si el ID de gestión es igual al término numérico, o si el
    término completo o cualquiera de sus palabras aparece en nombre,
    descripción, categoría o tags.
    """
    numeric_value = _numeric_value(search_term)
    if numeric_value is not None and _field(product, "management_id") == numeric_value:
        return True

    patterns = extract_words(search_term)
    if not patterns:
        return False

    haystacks = [
        normalize(_field(product, "name")),
        normalize(_field(product, "description")),
        normalize(_field(product, "category")),
    ]
    haystacks.extend(normalize(tag) for tag in (_field(product, "tags") or []))

    return any(
        re.search(pattern, haystack)
        for pattern in patterns
        for haystack in haystacks
    )
