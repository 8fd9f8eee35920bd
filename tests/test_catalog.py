import json
import os

import pytest

from models.catalog import (
    SOURCE_DRAGONS, SOURCE_GENERIC, SOURCE_MOUNTS, Catalog, get_catalog
)
from models.monster import CreatureRecord
from utils.exceptions import CatalogError

SPARSE_CR_XP = {"1": 200, "2": 450, "1/2": 100, "1/4": 50}


def test_find_best_cr_picks_largest_fitting_xp():
    catalog = Catalog(cr_xp=SPARSE_CR_XP)
    assert catalog.find_best_cr(50) == ("1/4", 50)
    assert catalog.find_best_cr(199) == ("1/2", 100)
    assert catalog.find_best_cr(449.5) == ("1", 200)
    assert catalog.find_best_cr(10_000) == ("2", 450)


def test_find_best_cr_none_when_budget_too_small():
    catalog = Catalog(cr_xp=SPARSE_CR_XP)
    assert catalog.find_best_cr(49) == (None, 0)
    assert catalog.find_best_cr(0) == (None, 0)
    assert catalog.find_best_cr(-10) == (None, 0)


def test_find_best_cr_is_independent_of_table_order():
    reversed_table = dict(reversed(list(SPARSE_CR_XP.items())))
    assert Catalog(cr_xp=reversed_table).find_best_cr(300) == ("1", 200)


def test_creatures_at_matches_exact_cr(catalog):
    dragons = catalog.creatures_at("1/4", SOURCE_DRAGONS)
    assert [d.name for d in dragons] == ["Pseudodragon"]
    assert catalog.creatures_at("2", SOURCE_DRAGONS) == []
    assert [m.name for m in catalog.creatures_at("1/2", SOURCE_MOUNTS)] == ["Warhorse"]


def test_generic_catalog_flattens_themes(catalog):
    names = sorted(c.name for c in catalog.creatures_at("1/4", SOURCE_GENERIC))
    assert names == ["Goblin", "Wolf"]
    wolf = next(c for c in catalog.creatures_at("1/4", SOURCE_GENERIC) if c.name == "Wolf")
    assert wolf.cr == "1/4"
    assert wolf.theme == "wilderness"
    assert wolf.type == "Unknown"


def test_unknown_source_raises(catalog):
    with pytest.raises(CatalogError):
        catalog.creatures_at("1", "nonexistent")


def test_entries_with_unknown_cr_are_dropped():
    catalog = Catalog(
        cr_xp=SPARSE_CR_XP,
        dragons=[{"name": "Ancient Red Dragon", "cr": "24"}, {"name": "Pseudodragon", "cr": "1/4"}],
        generic={"24": {"dragon": ["Tarrasque Spawn"]}},
    )
    assert [d.name for d in catalog.dragons] == ["Pseudodragon"]
    assert "24" not in catalog.generic


def test_catalog_is_read_only(catalog):
    with pytest.raises(TypeError):
        catalog.cr_xp["1"] = 1
    assert isinstance(catalog.dragons, tuple)
    assert isinstance(catalog.dragons[0], CreatureRecord)


def test_terrain_is_parsed_at_construction(catalog):
    assert catalog.terrain["Open"] == (6, 6, 0)
    assert catalog.terrain["Forest"] == (2, 8, 0)
    with pytest.raises(ValueError):
        Catalog(cr_xp=SPARSE_CR_XP, terrain={"Swamp": "two dice"})


def test_load_bundled_data():
    catalog = get_catalog()
    assert catalog.xp_for("1/4") == 50
    assert catalog.xp_for("30") == 155000
    assert len(catalog.dragons) > 0 and len(catalog.legendary) > 0
    assert len(catalog.mounts) > 0 and len(catalog.riders) > 0
    assert len(catalog.tarot) == 22
    assert set(catalog.terrain) >= {"Forest", "Mountains"}
    assert set(catalog.cultures) == {"aquilonian", "barbarian", "oriental", "lusitania", "qharan"}
    assert sorted(catalog.party_xp) == list(range(1, 21))
    for record in catalog.dragons + catalog.legendary + catalog.mounts + catalog.riders:
        assert record.cr in catalog.cr_xp


def test_load_missing_directory_raises(tmp_path):
    with pytest.raises(CatalogError):
        Catalog.load(str(tmp_path))


def test_load_invalid_json_raises(tmp_path):
    source_dir = os.path.join(os.path.dirname(__file__), '..', 'data')
    for filename in os.listdir(source_dir):
        if filename.endswith('.json'):
            with open(os.path.join(source_dir, filename)) as src:
                (tmp_path / filename).write_text(src.read())
    (tmp_path / 'terrain.json').write_text('{"Open": ')
    with pytest.raises(CatalogError):
        Catalog.load(str(tmp_path))


def test_load_rejects_bad_dice(tmp_path):
    source_dir = os.path.join(os.path.dirname(__file__), '..', 'data')
    for filename in os.listdir(source_dir):
        if filename.endswith('.json'):
            with open(os.path.join(source_dir, filename)) as src:
                (tmp_path / filename).write_text(src.read())
    (tmp_path / 'terrain.json').write_text(json.dumps({"Open": "lots"}))
    with pytest.raises(CatalogError):
        Catalog.load(str(tmp_path))
