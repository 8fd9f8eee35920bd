import random

import pytest

from models.cultural_names import CulturalNameGenerator, load_cultural_generators
from utils.exceptions import CatalogError

QHARAN = {
    "male": {"names": ["Rashid", "Tariq"], "starts": ["Ha"], "ends": ["kim"]},
    "female": {"names": ["Layla", "Samira"], "starts": ["Za"], "ends": ["hra"]},
    "family": ["Qasim"],
    "family_chance": 1.0,
    "patterns": {"male": "{given} ibn {family}", "female": "{given} bint {family}"},
}


def test_family_pattern_applied():
    generator = load_cultural_generators({"qharan": QHARAN})["qharan"]
    rng = random.Random(1)
    for _ in range(20):
        male = generator.generate("male", rng)
        female = generator.generate("female", rng)
        assert male.endswith(" ibn Qasim")
        assert female.endswith(" bint Qasim")
        assert male.split(" ibn ")[0] in ("Rashid", "Tariq", "Hakim")
        assert female.split(" bint ")[0] in ("Layla", "Samira", "Zahra")


def test_no_family_without_chance():
    generator = CulturalNameGenerator(
        "barbarian",
        given={"male": {"names": ["Conan"]}, "female": {"names": ["Valka"]}},
        family=["Ironhand"],
        family_chance=0.0,
    )
    rng = random.Random(2)
    assert {generator("male", rng) for _ in range(10)} == {"Conan"}
    assert {generator("female", rng) for _ in range(10)} == {"Valka"}


def test_syllable_names_are_generated():
    generator = CulturalNameGenerator(
        "oriental",
        given={"male": {"names": ["Kang"], "starts": ["Shu"], "ends": ["n"]}, "female": {"names": ["Mei"]}},
    )
    rng = random.Random(3)
    names = {generator.generate("male", rng) for _ in range(100)}
    assert names == {"Kang", "Shun"}


def test_unknown_gender():
    generator = load_cultural_generators({"qharan": QHARAN})["qharan"]
    with pytest.raises(ValueError):
        generator.generate("other", random.Random(4))


def test_default_pattern():
    data = dict(QHARAN, patterns=None)
    generator = load_cultural_generators({"lusitania": data})["lusitania"]
    name = generator.generate("male", random.Random(5))
    assert name.endswith(" Qasim")
    assert " ibn " not in name


def test_bundled_cultures_generate():
    from models.catalog import get_catalog
    rng = random.Random(6)
    for culture, generator in get_catalog().cultures.items():
        for gender in ("male", "female"):
            assert generator.generate(gender, rng).strip()


@pytest.mark.parametrize("bad", [
    {"male": {"names": ["A"]}},
    {"male": {"names": []}, "female": {"names": ["B"]}},
    {"male": {"names": ["A"]}, "female": {"names": ["B"]}, "family_chance": "often"},
])
def test_invalid_culture_data(bad):
    with pytest.raises(CatalogError):
        load_cultural_generators({"broken": bad})
