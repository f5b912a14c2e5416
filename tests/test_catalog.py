# tests/test_catalog.py
from sign_tutor.catalog import SignCatalog, filter_by_difficulty, load_catalog


def test_catalog_indexes_signs(catalog):
    assert len(catalog) == 17
    assert "x3" in catalog
    sign = catalog.get("x3")
    assert sign.category_id == "x"
    assert sign.category_name == "Warning signs"
    assert catalog.get("missing") is None


def test_signs_in_keeps_category_order(catalog):
    ids = [s.id for s in catalog.signs_in(["x"])]
    assert ids == ["x1", "x2", "x3", "x4", "x5"]
    assert len(catalog.signs_in(["x", "y"])) == 17
    assert catalog.signs_in(["nope"]) == []


def test_filter_by_difficulty_bands(catalog):
    signs = catalog.signs_in(["x"])
    # x5 has no difficulty and counts as 2
    assert [s.id for s in filter_by_difficulty(signs, "easy")] == ["x1", "x2", "x5"]
    assert [s.id for s in filter_by_difficulty(signs, "medium")] == ["x2", "x3", "x4", "x5"]
    assert [s.id for s in filter_by_difficulty(signs, "hard")] == ["x3", "x4"]


def test_filter_adaptive_skips_filtering(catalog):
    signs = catalog.signs_in(["x"])
    assert filter_by_difficulty(signs, "adaptive") == signs


def test_filter_unknown_band_allows_everything(catalog):
    signs = catalog.signs_in(["x"])
    assert filter_by_difficulty(signs, "expert") == signs


def test_load_bundled_catalog():
    catalog = load_catalog()
    assert len(catalog) > 20
    assert {c.id for c in catalog.categories()} >= {"warning", "priority", "prohibitory"}


def test_load_missing_catalog_returns_empty(tmp_path):
    catalog = load_catalog(tmp_path / "nope.json")
    assert len(catalog) == 0


def test_load_invalid_json_returns_empty(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    assert len(load_catalog(path)) == 0


def test_from_dict_defaults():
    catalog = SignCatalog.from_dict({"z": {"signs": [{"id": 7, "name": "Seven"}]}})
    assert catalog.get("7").name == "Seven"
    assert catalog.category("z").name == "z"
