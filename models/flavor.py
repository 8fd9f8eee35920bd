"""
Flavor draws attached to every generated encounter: a tarot-card motivation
and a terrain with its starting distance.
"""

import random
import re
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

ORIENTATION_UPRIGHT = 'Upright'
ORIENTATION_REVERSED = 'Reversed'
DISTANCE_MULTIPLIER_FEET = 10

# (meaning field, label shown to the table)
TAROT_CONTEXTS = [
    ('creature_or_trap', 'Creature Motivation'),
    ('situation', 'Situation'),
    ('place', 'Place'),
    ('treasure', 'Treasure Context'),
]


def parse_dice(dice_str: str) -> Tuple[int, int, int]:
    """
    Parse a dice string like '2d6+3', '1d4-1', '6d6', etc.
    Returns (num, die, mod)
    """
    pattern = r'^(\d+)[dD](\d+)([+-]\d+)?$'
    match = re.match(pattern, dice_str.replace(' ', ''))
    if not match:
        raise ValueError(f"Invalid dice string: {dice_str}")
    num = int(match.group(1))
    die = int(match.group(2))
    mod = int(match.group(3)) if match.group(3) else 0
    return num, die, mod


def roll_dice(num: int, die: int, rng: Optional[random.Random] = None) -> int:
    """Sum num independent rolls of a die with faces 1..die."""
    rng = rng or random.Random()
    return sum(rng.randint(1, die) for _ in range(num))


def generate_tarot_motivation(deck: Sequence[Dict[str, Any]], rng: Optional[random.Random] = None) -> Dict[str, str]:
    """
    Draw one card, pick an orientation, and surface one of its four meanings.

    Args:
        deck: Tarot cards with title, description, upright_meaning and reversed_meaning
        rng: Random source

    Returns:
        Dictionary with card, orientation, description, context_type and context_content
    """
    rng = rng or random.Random()
    card = rng.choice(deck)
    is_upright = rng.random() < 0.5
    orientation = ORIENTATION_UPRIGHT if is_upright else ORIENTATION_REVERSED
    meanings = card['upright_meaning'] if is_upright else card['reversed_meaning']
    field, label = rng.choice(TAROT_CONTEXTS)
    return {
        'card': card['title'],
        'orientation': orientation,
        'description': card.get('description', ''),
        'context_type': label,
        'context_content': meanings[field],
    }


def generate_distance_and_terrain(terrain: Mapping[str, Tuple[int, int, int]], rng: Optional[random.Random] = None) -> Dict[str, Any]:
    """
    Pick a terrain uniformly and roll its starting distance in feet.

    Args:
        terrain: Terrain name -> parsed dice (num, die, mod)
        rng: Random source

    Returns:
        Dictionary with terrain and distance
    """
    rng = rng or random.Random()
    chosen = rng.choice(list(terrain))
    num, die, mod = terrain[chosen]
    distance = (roll_dice(num, die, rng) + mod) * DISTANCE_MULTIPLIER_FEET
    return {'terrain': chosen, 'distance': distance}
