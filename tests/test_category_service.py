import pytest

from catalog_api.core.exceptions import (
    CategoryInUseError,
    CircularReferenceError,
    ConflictException,
    DepthLimitExceededError,
    NotFoundException,
)
from catalog_api.models.category import Category
from catalog_api.models.product import Product
from catalog_api.schemas.catalog import CategoryFilters, CategoryUpdate, ProductFilters
from catalog_api.services import category_hierarchy_service as hierarchy
from catalog_api.services import category_service, product_service


def test_create_duplicate_name(make_category):
    make_category("Bebidas")
    with pytest.raises(ConflictException):
        make_category("Bebidas")


def test_create_strips_name(make_category):
    assert make_category("  Snacks  ").name == "Snacks"


def test_update_fields_without_move(db, make_category):
    root = make_category("Oficina")
    child = make_category("Papelería", parent=root)

    updated = category_service.update_category(
        db, child.id, CategoryUpdate(description="Cuadernos y más", color="#00ff00")
    )

    assert updated.description == "Cuadernos y más"
    assert updated.parent_category_id == root.id
    assert updated.level == 1


def test_update_rename_conflict(db, make_category):
    make_category("Uno")
    other = make_category("Dos")
    with pytest.raises(ConflictException):
        category_service.update_category(db, other.id, CategoryUpdate(name="Uno"))


def test_move_updates_levels_and_former_parent(db, make_category):
    old_parent = make_category("Viejo")
    new_parent = make_category("Nuevo")
    moved = make_category("Movida", parent=old_parent)
    grandchild = make_category("Nieta", parent=moved)

    category_service.update_category(db, moved.id, CategoryUpdate(parent_category_id=new_parent.id))

    db.refresh(old_parent)
    db.refresh(new_parent)
    db.refresh(grandchild)
    assert moved.parent_category_id == new_parent.id
    assert old_parent.is_parent is False
    assert new_parent.is_parent is True
    assert grandchild.level == 2


def test_move_to_root(db, make_category):
    parent = make_category("Padre")
    child = make_category("Hija", parent=parent)

    category_service.update_category(db, child.id, CategoryUpdate(parent_category_id=None))

    db.refresh(parent)
    assert child.level == 0
    assert child.parent_category_id is None
    assert parent.is_parent is False


def test_move_under_descendant_is_rejected(db, make_category):
    a = make_category("A")
    b = make_category("B", parent=a)
    with pytest.raises(CircularReferenceError):
        category_service.update_category(db, a.id, CategoryUpdate(parent_category_id=b.id))


def test_move_checks_subtree_depth(db, make_category):
    deep0 = make_category("P0")
    deep1 = make_category("P1", parent=deep0)
    deep2 = make_category("P2", parent=deep1)

    branch = make_category("Rama")
    make_category("Hoja", parent=branch)

    # Rama quedaría en nivel 3 y Hoja en nivel 4
    with pytest.raises(DepthLimitExceededError):
        category_service.update_category(db, branch.id, CategoryUpdate(parent_category_id=deep2.id))


def test_update_missing_category(db):
    with pytest.raises(NotFoundException):
        category_service.update_category(db, 999, CategoryUpdate(name="X"))


def test_delete_with_children_is_rejected(db, make_category):
    root = make_category("Con hijos")
    make_category("Hijo", parent=root)
    with pytest.raises(CategoryInUseError):
        category_service.delete_category(db, root.id)


def test_delete_with_products_requires_force(db, make_category, make_product):
    category = make_category("Con productos")
    make_product("Producto A", category)

    with pytest.raises(CategoryInUseError):
        category_service.delete_category(db, category.id)

    category_service.delete_category(db, category.id, force_products=True)
    assert db.query(Category).count() == 0
    assert db.query(Product).count() == 0


def test_delete_leaf_refreshes_parent(db, make_category):
    root = make_category("Raíz")
    leaf = make_category("Hoja única", parent=root)

    category_service.delete_category(db, leaf.id)

    db.refresh(root)
    assert root.is_parent is False


def test_list_categories_with_filters(db, make_category):
    root = make_category("Computación")
    make_category("Notebooks", parent=root)
    make_category("Monitores", parent=root)

    items, total = category_service.list_categories(db, CategoryFilters(parent_id=root.id))
    assert total == 2
    assert [c.name for c in items] == ["Monitores", "Notebooks"]

    items, total = category_service.list_categories(db, CategoryFilters(search="note"))
    assert [c.name for c in items] == ["Notebooks"]


def test_get_subcategories_and_path(db, make_category):
    root = make_category("Bazar")
    child = make_category("Vajilla", parent=root)

    assert [c.id for c in category_service.get_subcategories(db, root.id)] == [child.id]
    assert [c.name for c in category_service.get_category_path(db, child.id)] == ["Bazar", "Vajilla"]
    with pytest.raises(NotFoundException):
        category_service.get_subcategories(db, 999)


def test_get_hierarchy(db, make_category):
    root = make_category("Salud")
    make_category("Vitaminas", parent=root)
    make_category("Belleza")

    forest = category_service.get_hierarchy(db)

    assert [n["name"] for n in forest] == ["Belleza", "Salud"]
    assert [n["name"] for n in forest[1]["subcategories"]] == ["Vitaminas"]


def test_update_product_counts_repairs_drift(db, make_category, make_product):
    root = make_category("Deco")
    child = make_category("Cuadros", parent=root)
    make_product("Cuadro 1", child)
    make_product("Cuadro 2", child)

    child.product_count = 99
    db.commit()

    counts = category_service.update_product_counts(db)

    assert counts == {root.id: 0, child.id: 2}
    db.refresh(child)
    assert child.product_count == 2


def test_get_product_counts(db, make_category, make_product):
    root = make_category("Audio")
    child = make_category("Parlantes", parent=root)
    make_product("Parlante", child, stock_count=1)
    make_product("Parlante usado", child)
    make_product("Cable", root)

    assert category_service.get_product_counts(db) == {root.id: 3, child.id: 2}
    assert category_service.get_product_counts(db, rollup_parents=False) == {root.id: 1, child.id: 2}
    assert category_service.get_product_counts(db, include_parents=False) == {child.id: 2}
    assert category_service.get_product_counts(db, include_leaves=False) == {root.id: 3}
    assert category_service.get_product_counts(db, in_stock=True) == {root.id: 1, child.id: 1}


def test_migrate_categories(db, make_category):
    root = make_category("Migrar")
    child = make_category("Migrar hija", parent=root)
    orphan = make_category("Huérfana")

    # Datos inconsistentes: niveles, is_parent y un padre inexistente
    root.is_parent = False
    child.level = 3
    orphan.parent_category_id = 12345
    orphan.level = 2
    db.commit()

    assert category_service.migrate_categories(db) == 3

    db.refresh(root)
    db.refresh(child)
    db.refresh(orphan)
    assert root.is_parent is True
    assert child.level == 1
    assert orphan.parent_category_id is None
    assert orphan.level == 0
    assert category_service.migrate_categories(db) == 0


def test_rename_updates_product_category_name(db, make_category, make_product):
    category = make_category("Ollas")
    pot = make_product("Olla de barro", category)

    category_service.update_category(db, category.id, CategoryUpdate(name="Cacerolas"))

    db.refresh(pot)
    assert pot.category == "Cacerolas"

    response = product_service.search_products(db, "cacerolas")
    assert [p.id for p in response.data] == [pot.id]
    listed = product_service.list_products(db, ProductFilters(category="Cacerolas"))
    assert listed.pagination.total == 1
    assert product_service.list_products(db, ProductFilters(category="Ollas")).pagination.total == 0


def test_move_walks_ancestors_once(db, make_category, monkeypatch):
    root = make_category("Origen")
    target = make_category("Destino")
    moved = make_category("Mudanza", parent=root)

    calls = []
    validate = hierarchy.validate_parent_assignment

    def counting_validate(*args, **kwargs):
        calls.append(args)
        return validate(*args, **kwargs)

    monkeypatch.setattr(hierarchy, "validate_parent_assignment", counting_validate)
    category_service.update_category(db, moved.id, CategoryUpdate(parent_category_id=target.id))

    assert len(calls) == 1
    assert moved.parent_category_id == target.id
    assert moved.level == 1
