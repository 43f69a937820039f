from types import SimpleNamespace

import pytest

from catalog_api.core.exceptions import BadRequestException, ConflictException, NotFoundException
from catalog_api.crud.category import category as crud_category
from catalog_api.schemas.catalog import ProductFilters, ProductUpdate
from catalog_api.services import product_service
from catalog_api.services.search_service import SearchWeights


@pytest.fixture
def catalog(make_category, make_product):
    kitchen = make_category("Cocina")
    garden = make_category("Jardín")
    products = {
        "blue": make_product("Blue Pot", kitchen, description="Olla enlozada", price=20.0),
        "red": make_product(
            "Red Pot", kitchen, description="Olla de hierro", price=35.0,
            stock_count=4, featured=True, tags=["hierro"],
        ),
        "pan": make_product("Sartén", kitchen, description="Antiadherente", price=15.0, management_id=42),
        "hose": make_product(
            "Manguera 42m", garden, description="Para riego", price=50.0, tags=["riego", "exterior"],
        ),
    }
    return products


def test_create_product_updates_category_count(db, make_category, make_product):
    category = make_category("Librería")
    product = make_product("Lápiz", category, stock_count=0, gallery=[])

    db.refresh(category)
    assert category.product_count == 1
    assert product.category == "Librería"
    assert product.in_stock is False
    assert product.image == product.gallery[0]


def test_create_product_unknown_category(make_product):
    with pytest.raises(BadRequestException):
        make_product("Sin categoría", SimpleNamespace(id=999))


def test_duplicate_management_id(catalog, make_category, make_product):
    category = make_category("Otra")
    with pytest.raises(ConflictException):
        make_product("Copia", category, management_id=42)


def test_update_product_moves_between_categories(db, catalog):
    hose = catalog["hose"]
    kitchen_id = catalog["blue"].category_id
    garden_id = hose.category_id

    updated = product_service.update_product(db, hose.id, ProductUpdate(category_id=kitchen_id, price=45.0))

    assert updated.category == "Cocina"
    assert updated.price == 45.0
    assert updated.category_ref.product_count == 4
    assert product_service.get_product_or_404(db, hose.id).category_id == kitchen_id
    assert crud_category.find_by_id(db, garden_id).product_count == 0


def test_update_product_ignores_nulls_on_required_fields(db, catalog):
    pan = catalog["pan"]
    updated = product_service.update_product(
        db, pan.id, ProductUpdate(name=None, management_id=None)
    )
    assert updated.name == "Sartén"
    assert updated.management_id is None


def test_update_stock_derives_in_stock(db, catalog):
    blue = catalog["blue"]
    assert blue.in_stock is False
    assert product_service.update_stock(db, blue.id, 3).in_stock is True
    assert product_service.update_stock(db, blue.id, 0).in_stock is False


def test_delete_product(db, catalog):
    blue = catalog["blue"]
    category = blue.category_ref
    product_service.delete_product(db, blue.id)

    db.refresh(category)
    assert category.product_count == 2
    with pytest.raises(NotFoundException):
        product_service.get_product_or_404(db, blue.id)


def test_list_products(db, catalog):
    response = product_service.list_products(db, page=1, limit=2, sort_by="price", sort_order="asc")
    assert [p.name for p in response.data] == ["Sartén", "Blue Pot"]
    assert response.pagination.total == 4
    assert response.pagination.pages == 2
    assert response.pagination.has_next is True

    tagged = product_service.list_products(db, ProductFilters(tags=["riego"]))
    assert [p.name for p in tagged.data] == ["Manguera 42m"]


def test_search_requires_term(db):
    with pytest.raises(BadRequestException):
        product_service.search_products(db, "   ")
    with pytest.raises(BadRequestException):
        product_service.search_products(db, None)


def test_search_ranks_by_relevance(db, catalog):
    response = product_service.search_products(db, "pot")

    assert [(p.name, p.relevance_score) for p in response.data] == [("Red Pot", 65), ("Blue Pot", 50)]
    assert response.search_info.normalized_query == "pot"
    assert response.search_info.words == ["pot"]
    assert response.pagination.total == 2


def test_search_is_accent_insensitive(db, catalog):
    response = product_service.search_products(db, "SARTEN")
    assert [p.name for p in response.data] == ["Sartén"]
    assert response.data[0].relevance_score == 100


def test_search_numeric_management_id_first(db, catalog):
    response = product_service.search_products(db, "42")
    assert [p.name for p in response.data] == ["Sartén", "Manguera 42m"]
    assert response.data[0].relevance_score == 150


def test_search_with_filters(db, catalog):
    response = product_service.search_products(db, "olla", ProductFilters(max_price=30))
    assert [p.name for p in response.data] == ["Blue Pot"]

    response = product_service.search_products(db, "pot", ProductFilters(in_stock=True))
    assert [p.name for p in response.data] == ["Red Pot"]

    response = product_service.search_products(db, "riego", ProductFilters(tags=["exterior"]))
    assert [p.name for p in response.data] == ["Manguera 42m"]


def test_search_pagination(db, catalog):
    first = product_service.search_products(db, "olla", page=1, limit=1)
    second = product_service.search_products(db, "olla", page=2, limit=1)

    assert first.pagination.total == 2
    assert first.pagination.has_next is True
    assert [p.name for p in first.data] == ["Red Pot"]
    assert [p.name for p in second.data] == ["Blue Pot"]


def test_search_custom_weights(db, catalog):
    weights = SearchWeights(exact_match=100, partial_match=1, tag_match=0, category_match=0)
    response = product_service.search_products(db, "pot", weights=weights)
    assert [p.relevance_score for p in response.data] == [16, 1]


def test_search_without_matches(db, catalog):
    response = product_service.search_products(db, "televisor")
    assert response.data == []
    assert response.pagination.total == 0
    assert response.pagination.pages == 0
