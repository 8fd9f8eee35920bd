import os
import random
import tempfile

import pytest

# Keep the module-level store used by app.py out of the repository data directory
os.environ.setdefault('ENCOUNTERS_DB_PATH', os.path.join(tempfile.gettempdir(), 'named_encounters_test.db'))

from models.catalog import Catalog
from models.cultural_names import load_cultural_generators
from models.naming import CULTURAL_STYLES

TEST_CR_XP = {
    "0": 10, "1/8": 25, "1/4": 50, "1/2": 100, "1": 200,
    "2": 450, "3": 700, "4": 1100, "5": 1800,
}

TEST_DRAGONS = [
    {"name": "Pseudodragon", "cr": "1/4", "type": "Dragon", "theme": "dragon"},
    {"name": "Red Dragon Wyrmling", "cr": "4", "type": "Dragon", "theme": "dragon"},
]

TEST_LEGENDARY = [
    {"name": "Goblin Warlord", "cr": "1/2", "type": "Legendary", "theme": "humanoid"},
]

TEST_MOUNTS = [
    {"name": "Riding Horse", "cr": "1/4", "type": "Mount", "theme": "beast"},
    {"name": "Warhorse", "cr": "1/2", "type": "Mount", "theme": "beast"},
]

TEST_RIDERS = [
    {"name": "Guard", "cr": "1/4", "type": "Rider", "theme": "humanoid"},
    {"name": "Knight", "cr": "3", "type": "Rider", "theme": "humanoid"},
]

TEST_GENERIC = {
    "0": {"wilderness": ["Rat", "Bat"]},
    "1/8": {"humanoid": ["Bandit", "Cultist"]},
    "1/4": {"humanoid": ["Goblin"], "wilderness": ["Wolf"]},
    "1/2": {"humanoid": ["Orc", "Hobgoblin"]},
    "1": {"wilderness": ["Dire Wolf"], "humanoid": ["Bugbear"]},
    "2": {"giant": ["Ogre"], "wilderness": ["Giant Boar"]},
    "3": {"monstrosity": ["Owlbear", "Manticore"]},
    "4": {"undead": ["Ghost"], "monstrosity": ["Chuul"]},
    "5": {"elemental": ["Fire Elemental"], "giant": ["Hill Giant"]},
}

TEST_TRAITS = ["Brave/Reckless", "Loyal/Obsessive", "Patient/Cold", "Generous/Naive"]

TEST_TAROT = [
    {
        "title": "The Tower",
        "description": "Sudden upheaval.",
        "upright_meaning": {
            "creature_or_trap": "Flees a collapsing lair",
            "situation": "A bridge gives way",
            "place": "A ruined watchtower",
            "treasure": "Buried under rubble",
        },
        "reversed_meaning": {
            "creature_or_trap": "Clings to a doomed home",
            "situation": "Disaster narrowly averted",
            "place": "A cracked dam",
            "treasure": "Hidden before the fall",
        },
    },
    {
        "title": "The Star",
        "description": "Hope renewed.",
        "upright_meaning": {
            "creature_or_trap": "Guards a sacred spring",
            "situation": "A pilgrimage under way",
            "place": "A moonlit shrine",
            "treasure": "An offering bowl",
        },
        "reversed_meaning": {
            "creature_or_trap": "Lost and desperate",
            "situation": "A broken promise",
            "place": "A dry well",
            "treasure": "Stolen relics",
        },
    },
]

TEST_TERRAIN = {"Open": "6d6", "Forest": "2d8"}

TEST_PARTY_XP = {
    "1": {"Low": 50, "Moderate": 75, "High": 100},
    "5": {"Low": 500, "Moderate": 750, "High": 1100},
}


def make_culture_data():
    data = {}
    for culture in CULTURAL_STYLES:
        data[culture] = {
            "male": {"names": [f"{culture.title()}son"], "starts": ["Ka"], "ends": ["rn"]},
            "female": {"names": [f"{culture.title()}dottir"], "starts": ["Li"], "ends": ["ra"]},
            "family": ["Stone"],
            "family_chance": 0.5,
            "patterns": {"male": "{given} of {family}", "female": "{given} of {family}"},
        }
    return data


class FixedRandom(random.Random):
    """Seeded random whose random() always returns the same value."""

    def __init__(self, value, seed=0):
        super().__init__(seed)
        self.value = value

    def random(self):
        return self.value

    # Defining getrandbits keeps choice/randint on the bit-based path, independent of random()
    def getrandbits(self, k):
        return super().getrandbits(k)


@pytest.fixture
def catalog_factory():
    def make(**overrides):
        data = dict(
            cr_xp=TEST_CR_XP,
            dragons=TEST_DRAGONS,
            legendary=TEST_LEGENDARY,
            mounts=TEST_MOUNTS,
            riders=TEST_RIDERS,
            generic=TEST_GENERIC,
            traits=TEST_TRAITS,
            tarot=TEST_TAROT,
            terrain=TEST_TERRAIN,
            party_xp=TEST_PARTY_XP,
            cultures=load_cultural_generators(make_culture_data()),
        )
        data.update(overrides)
        return Catalog(**data)
    return make


@pytest.fixture
def catalog(catalog_factory):
    return catalog_factory()


@pytest.fixture
def db_path():
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield os.path.join(tmp_dir, 'encounters.db')
