"""
Naming and styling engine.

Gives every creature in a roster a display name, a naming style and one or
two virtue/vice traits. Names are either atmospheric (the creature's own name
with themed prefixes and suffixes) or personal (a cultural name with an
optional epithet). A roster usually shares a single style; otherwise two
styles alternate across it.
"""

import logging
import random
from typing import Dict, List, Mapping, Optional, Sequence

from models.cultural_names import GENDERS, CulturalNameGenerator
from models.monster import MonsterInstance

STYLE_ATMOSPHERIC = 'atmospheric'
CULTURAL_STYLES = ['aquilonian', 'barbarian', 'oriental', 'lusitania', 'qharan']
NAMING_STYLES = [STYLE_ATMOSPHERIC] + CULTURAL_STYLES

NAME_TYPE_TITLE = 'title'
NAME_TYPE_PERSONAL = 'personal'

CONSISTENT_STYLE_CHANCE = 0.75
PERSONAL_NAME_CHANCE = 0.6
PREFIX_CHANCE = 0.7
SUFFIX_CHANCE = 0.6
TITLE_CHANCE = 0.7
VIRTUE_CHANCE = 0.4

DARK_PREFIXES = [
    "Shadowfang", "Bloodclaw", "Deathwhisper", "Grimheart", "Voidcaller", "Bonegnawer",
    "Nightstalker", "Soulrender", "Plaguebearer", "Doomhowler", "Cursebringer", "Fleshripper",
    "Darkbane", "Terrorwing", "Blightcaster", "Necrosworn", "Vilebreath", "Corpsewalker"
]

NOBLE_PREFIXES = [
    "Goldenscale", "Brightflame", "Starwing", "Moonheart", "Sunbringer", "Stormcaller",
    "Ironbane", "Crystalclaw", "Silvermane", "Lightbearer", "Pridewalker", "Valorwing",
    "Oathkeeper", "Trueheart", "Justicebringer", "Honorbound", "Lightforge", "Brightshield"
]

ELEMENTAL_PREFIXES = [
    "Frostborn", "Flameheart", "Stormwing", "Earthshaker", "Tidecaller", "Windwalker",
    "Emberforge", "Glacialmaw", "Thunderclaw", "Magmaheart", "Mistweaver", "Voidwind"
]

ANCIENT_PREFIXES = [
    "Ancient", "Elder", "Primordial", "Forgotten", "Lost", "Timeworn", "Ageless", "Eternal",
    "Firstborn", "Oldblood", "Ancientheart", "Elderscale", "Primeval", "Dateless"
]

DARK_SUFFIXES = [
    "the Corrupted", "the Fallen", "the Cursed", "the Damned", "the Twisted", "the Vile",
    "the Accursed", "the Betrayer", "the Defiler", "the Destroyer", "the Devourer", "the Tormentor",
    "of the Abyss", "of Shadows", "of Nightmares", "of the Void", "of Darkness", "of Death"
]

NOBLE_SUFFIXES = [
    "the Noble", "the Righteous", "the Pure", "the Valiant", "the Just", "the Heroic",
    "the Magnificent", "the Glorious", "the Radiant", "the Majestic", "the Honorable", "the True",
    "of Light", "of Honor", "of Justice", "of Glory", "of Valor", "of Truth"
]

ELEMENTAL_SUFFIXES = [
    "of the Inferno", "of the Glacier", "of the Storm", "of the Deep", "of the Winds", "of the Stone",
    "the Flamebringer", "the Frostcaller", "the Stormborn", "the Earthbound", "the Seaborn", "the Skywalker"
]

ANCIENT_SUFFIXES = [
    "the Ancient", "the Timeless", "the Eternal", "the Ageless", "the Forgotten", "the Lost",
    "of Ages Past", "of Old", "of the First Days", "the Primordial", "the Elder", "the Firstborn"
]

GENERAL_TITLES = [
    "the Mighty", "the Fierce", "the Terrible", "the Great", "the Powerful", "the Strong",
    "the Swift", "the Cunning", "the Wise", "the Bold", "the Wild", "the Savage",
    "the Relentless", "the Unstoppable", "the Fearsome", "the Legendary"
]

THEME_PREFIXES = {
    "dark": DARK_PREFIXES,
    "noble": NOBLE_PREFIXES,
    "elemental": ELEMENTAL_PREFIXES,
    "ancient": ANCIENT_PREFIXES,
}

THEME_SUFFIXES = {
    "dark": DARK_SUFFIXES,
    "noble": NOBLE_SUFFIXES,
    "elemental": ELEMENTAL_SUFFIXES,
    "ancient": ANCIENT_SUFFIXES,
}

# Short epithets appended to personal names
THEME_TITLES = {
    "dark": ["the Dark", "the Shadow", "the Cursed", "the Fallen", "the Corrupted"],
    "noble": ["the Noble", "the Just", "the Radiant", "the Glorious", "the Honorable"],
    "elemental": ["the Stormcaller", "the Flameheart", "the Frostborn", "the Earthshaker"],
    "ancient": ["the Ancient", "the Elder", "the Timeless", "the Primordial"],
}
DEFAULT_TITLES = ["the Great", "the Mighty", "the Fierce", "the Legendary"]

FALLBACK_PREFIXES = DARK_PREFIXES + NOBLE_PREFIXES + ELEMENTAL_PREFIXES

MONSTER_TYPE_THEMES = {
    "Dragon": ["elemental", "ancient", "noble"],
    "Fiend": ["dark", "ancient"],
    "Undead": ["dark", "ancient"],
    "Celestial": ["noble", "elemental"],
    "Legendary": ["ancient", "noble", "elemental"],
    "Mount": ["elemental", "noble"],
    "Rider": ["cultural", "noble"],
}
DEFAULT_THEMES = ["general"]

logger = logging.getLogger(__name__)


class NamingEngine:
    """
    Assigns display names, naming styles and traits to roster entries.
    """

    def __init__(
        self,
        cultures: Mapping[str, CulturalNameGenerator],
        traits: Sequence[str] = (),
        rng: Optional[random.Random] = None,
    ) -> None:
        self.cultures = dict(cultures)
        self.traits = list(traits)
        self.rng = rng or random.Random()

    def _pick_theme(self, monster_type: str) -> str:
        return self.rng.choice(MONSTER_TYPE_THEMES.get(monster_type, DEFAULT_THEMES))

    def theme_prefix(self, theme: str) -> str:
        return self.rng.choice(THEME_PREFIXES.get(theme, FALLBACK_PREFIXES))

    def theme_suffix(self, theme: str) -> str:
        return self.rng.choice(THEME_SUFFIXES.get(theme, GENERAL_TITLES))

    def theme_title(self, theme: str) -> str:
        return self.rng.choice(THEME_TITLES.get(theme, DEFAULT_TITLES))

    def atmospheric_name(self, base_name: str, monster_type: str) -> Dict[str, str]:
        """Decorate the creature's own name with themed prefix and/or suffix."""
        theme = self._pick_theme(monster_type)
        use_prefix = self.rng.random() < PREFIX_CHANCE
        use_suffix = self.rng.random() < SUFFIX_CHANCE

        name = base_name
        if use_prefix:
            name = f"{self.theme_prefix(theme)} {name}"
        if use_suffix:
            name = f"{name} {self.theme_suffix(theme)}"

        return {'name': name, 'naming_style': STYLE_ATMOSPHERIC, 'name_type': NAME_TYPE_TITLE}

    def personal_name(self, monster_type: str, culture: str) -> Dict[str, str]:
        """Generate a cultural personal name, usually with a themed epithet."""
        gender = self.rng.choice(GENDERS)
        name = self.cultures[culture].generate(gender, self.rng)
        theme = self._pick_theme(monster_type)
        if self.rng.random() < TITLE_CHANCE:
            name = f"{name} {self.theme_title(theme)}"
        return {'name': name, 'naming_style': culture, 'name_type': NAME_TYPE_PERSONAL}

    def generate_name(self, base_name: str, monster_type: str) -> Dict[str, str]:
        """Generate a name in a freely chosen style: personal 60% of the time."""
        available = [c for c in CULTURAL_STYLES if c in self.cultures]
        if available and self.rng.random() < PERSONAL_NAME_CHANCE:
            return self.personal_name(monster_type, self.rng.choice(available))
        return self.atmospheric_name(base_name, monster_type)

    def generate_name_with_style(self, base_name: str, monster_type: str, style: str) -> Dict[str, str]:
        """Generate a name in a forced style, falling back to a free choice for unknown styles."""
        if style == STYLE_ATMOSPHERIC:
            return self.atmospheric_name(base_name, monster_type)
        if style in self.cultures:
            return self.personal_name(monster_type, style)
        logger.debug(f"Unknown naming style '{style}', choosing freely")
        return self.generate_name(base_name, monster_type)

    def generate_traits(self) -> List[str]:
        """Pick one or two trait pairs and keep the vice 60% of the time."""
        if not self.traits:
            return []
        count = min(self.rng.randint(1, 2), len(self.traits))
        chosen = []
        for pair in self.rng.sample(self.traits, count):
            virtue, _, vice = pair.partition('/')
            keep = virtue if self.rng.random() < VIRTUE_CHANCE else (vice or virtue)
            chosen.append(keep.strip())
        return chosen

    def name_group(self, monsters: Sequence[MonsterInstance]) -> List[MonsterInstance]:
        """
        Name a whole roster, keeping its styles coherent.

        Args:
            monsters: Roster entries (left unmodified)

        Returns:
            New roster entries with display_name, naming_style, name_type and traits attached
        """
        if not monsters:
            return []

        if self.rng.random() < CONSISTENT_STYLE_CHANCE or len(monsters) == 1:
            base_name, monster_type = monsters[0].naming_base()
            group_style = self.generate_name(base_name, monster_type)['naming_style']
            styles = [group_style] * len(monsters)
        else:
            style_a, style_b = self.rng.sample(NAMING_STYLES, 2)
            styles = [style_a if index % 2 == 0 else style_b for index in range(len(monsters))]

        named = []
        for monster, style in zip(monsters, styles):
            base_name, monster_type = monster.naming_base()
            name_data = self.generate_name_with_style(base_name, monster_type, style)
            named.append(monster.with_naming(
                display_name=name_data['name'],
                naming_style=name_data['naming_style'],
                name_type=name_data['name_type'],
                traits=self.generate_traits(),
            ))
        return named
