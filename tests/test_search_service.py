import pytest

from catalog_api.services.search_service import (
    DEFAULT_WEIGHTS,
    SearchWeights,
    extract_words,
    matches_search,
    normalize,
    rank,
    score,
)


def _product(name, **extra):
    data = {
        "name": name,
        "description": "",
        "category": "",
        "tags": [],
        "in_stock": False,
        "featured": False,
        "management_id": None,
    }
    data.update(extra)
    return data


def test_normalize():
    assert normalize("  Cámara   DIGITAL ") == "camara digital"
    assert normalize("Ñandú") == "nandu"
    assert normalize(None) == ""
    assert normalize("") == ""


def test_extract_words_escapes_metacharacters():
    assert extract_words("  Foo.Bar   (x) ") == [r"foo\.bar", r"\(x\)"]
    assert extract_words("   ") == []


def test_accents_do_not_change_exact_match():
    accented = _product("Widgét")
    plain = _product("Widget")
    assert score(accented, "widget") == score(plain, "widget") == 100


def test_featured_in_stock_ranks_first():
    blue = _product("Blue Pot")
    red = _product("Red Pot", featured=True, in_stock=True)

    ranked = rank([blue, red], "pot")

    assert [(p["name"], s) for p, s in ranked] == [("Red Pot", 65), ("Blue Pot", 50)]


def test_management_id_outranks_textual_number():
    by_id = _product("Lámpara de mesa", management_id=42)
    by_text = _product("Modelo 42X")

    assert score(by_id, "42") == 150
    assert score(by_text, "42") == 50
    assert rank([by_text, by_id], "42")[0][0] is by_id


def test_match_branches_are_exclusive():
    # Nombre exacto y también parcial en la descripción: solo cuenta el primero
    product = _product("Mate", description="Mate de calabaza")
    assert score(product, "mate") == 100


def test_description_matches():
    assert score(_product("Otro", description="Taza grande"), "taza grande") == 110
    assert score(_product("Otro", description="Una taza"), "taza") == 30


def test_category_and_tag_signals():
    product = _product("Silla", category="Muebles de oficina", tags=["Ergonómica", "oficina"])
    # Categoría +25, tag +75 (una sola vez aunque coincidan varios)
    assert score(product, "oficina") == 100


def test_multiword_coverage_rounds_half_up():
    product = _product("alpha beta gamma")
    assert score(product, "alpha beta gamma delta") == 23


def test_empty_search_only_gets_bonuses():
    assert score(_product("Algo", in_stock=True, featured=True), "") == 15
    assert score(_product("Algo"), "") == 0
    assert rank([], "") == []


def test_missing_fields_score_zero():
    assert score({}, "nada") == 0


def test_orm_like_objects_are_supported():
    class Item:
        name = "Termo"
        description = None
        category = "Camping"
        tags = None
        in_stock = True
        featured = False

    assert score(Item(), "termo") == 105


def test_rank_is_stable_for_ties():
    first = _product("Vaso azul")
    second = _product("Vaso rojo")
    third = _product("Vaso verde")
    ranked = rank([first, second, third], "vaso")
    assert [p for p, _ in ranked] == [first, second, third]


def test_custom_weights():
    weights = SearchWeights(exact_match=10, partial_match=5, tag_match=1, category_match=1)
    assert score(_product("Cuchara"), "cuchara", weights) == 10
    assert DEFAULT_WEIGHTS.exact_match == 100


def test_weights_are_frozen():
    with pytest.raises(Exception):
        DEFAULT_WEIGHTS.exact_match = 1


def test_matches_search():
    product = _product("Auriculares", description="Bluetooth 5.0", tags=["audio"])
    assert matches_search(product, "bluetooth")
    assert matches_search(product, "AUDIO")
    assert matches_search(product, "teclado auriculares")
    assert not matches_search(product, "teclado")
    assert not matches_search(product, "5x0")
    assert matches_search(_product("Cable", management_id=7), "7")
    assert not matches_search(product, "   ")


def test_only_ascii_digits_match_management_id():
    product = _product("Lampara", management_id=42)
    assert score(product, "٤٢") == 0
    assert not matches_search(product, "٤٢")
    assert score(product, "42") == 150
