"""
Cultural personal-name generators.

Each culture combines a pool of known given names with start/end syllables
for new ones, and optionally appends a family name using a gendered pattern
such as '{given} ibn {family}'.
"""

import random
from typing import Any, Dict, Mapping, Optional, Sequence

from utils.exceptions import CatalogError

GENDER_MALE = 'male'
GENDER_FEMALE = 'female'
GENDERS = (GENDER_MALE, GENDER_FEMALE)

# Chance of composing a fresh given name from syllables instead of the pool
SYLLABLE_NAME_CHANCE = 0.5
DEFAULT_PATTERN = '{given} {family}'


class CulturalNameGenerator:
    """
    Personal-name generator for one culture.

    Attributes:
        culture (str): Culture key, e.g. 'aquilonian'
        given (Dict[str, Dict[str, list]]): Per-gender 'names', 'starts' and 'ends'
        family (list): Family or clan names
        family_chance (float): Probability of adding a family name
        patterns (Dict[str, str]): Per-gender format for given + family
    """

    def __init__(
        self,
        culture: str,
        given: Mapping[str, Mapping[str, Sequence[str]]],
        family: Sequence[str] = (),
        family_chance: float = 0.0,
        patterns: Optional[Mapping[str, str]] = None,
    ) -> None:
        for gender in GENDERS:
            if not given.get(gender, {}).get('names'):
                raise ValueError(f"Culture '{culture}' has no {gender} names")
        self.culture = culture
        self.given = {gender: {key: tuple(values) for key, values in pools.items()} for gender, pools in given.items()}
        self.family = tuple(family)
        self.family_chance = family_chance
        self.patterns = dict(patterns or {})

    def _given_name(self, gender: str, rng) -> str:
        pools = self.given[gender]
        starts, ends = pools.get('starts'), pools.get('ends')
        if starts and ends and rng.random() < SYLLABLE_NAME_CHANCE:
            return rng.choice(starts) + rng.choice(ends)
        return rng.choice(pools['names'])

    def generate(self, gender: str, rng: Optional[random.Random] = None) -> str:
        """
        Generate a personal name.

        Args:
            gender: 'male' or 'female'
            rng: Random source; a fresh unseeded one if omitted

        Returns:
            The generated name
        """
        if gender not in GENDERS:
            raise ValueError(f"Unknown gender: {gender}")
        rng = rng or random.Random()
        given = self._given_name(gender, rng)
        if self.family and rng.random() < self.family_chance:
            pattern = self.patterns.get(gender, DEFAULT_PATTERN)
            return pattern.format(given=given, family=rng.choice(self.family))
        return given

    def __call__(self, gender: str, rng: Optional[random.Random] = None) -> str:
        return self.generate(gender, rng)


def load_cultural_generators(data: Mapping[str, Mapping[str, Any]]) -> Dict[str, CulturalNameGenerator]:
    """Build one generator per culture from the cultural_names.json structure."""
    generators = {}
    for culture, entry in data.items():
        try:
            generators[culture] = CulturalNameGenerator(
                culture,
                given={gender: entry[gender] for gender in GENDERS},
                family=entry.get('family', ()),
                family_chance=float(entry.get('family_chance', 0.0)),
                patterns=entry.get('patterns'),
            )
        except (KeyError, ValueError) as e:
            raise CatalogError(f"Invalid cultural name data for '{culture}': {e}")
    return generators
