"""
Party XP budget lookup.

Sums the per-character XP budget for the chosen difficulty tier over every
line of a party ({level, count}).
"""

import random
from typing import Any, Dict, List, Mapping, Optional, Sequence

from utils.exceptions import ValidationError

DIFFICULTY_LOW = 'Low'
DIFFICULTY_MODERATE = 'Moderate'
DIFFICULTY_HIGH = 'High'
DIFFICULTY_RANDOM = 'Random'
DIFFICULTY_TIERS = [DIFFICULTY_LOW, DIFFICULTY_MODERATE, DIFFICULTY_HIGH]
DIFFICULTIES = DIFFICULTY_TIERS + [DIFFICULTY_RANDOM]

MIN_LEVEL = 1
MAX_LEVEL = 20
MIN_COUNT = 1


def resolve_difficulty(difficulty: str, rng: Optional[random.Random] = None) -> str:
    """Return the tier to use; 'Random' picks one of Low/Moderate/High."""
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
    if difficulty == DIFFICULTY_RANDOM:
        rng = rng or random.Random()
        return rng.choice(DIFFICULTY_TIERS)
    return difficulty


def _validate_line(line: Mapping[str, Any]) -> Dict[str, int]:
    if not isinstance(line, Mapping):
        raise ValidationError("Each party line must be an object with level and count")
    level, count = line.get('level'), line.get('count', 1)
    if not isinstance(level, int) or isinstance(level, bool):
        raise ValidationError("level must be an integer")
    if level < MIN_LEVEL or level > MAX_LEVEL:
        raise ValidationError(f"level must be between {MIN_LEVEL} and {MAX_LEVEL}")
    if not isinstance(count, int) or isinstance(count, bool) or count < MIN_COUNT:
        raise ValidationError(f"count must be an integer of at least {MIN_COUNT}")
    return {'level': level, 'count': count}


def calculate_party_budget(
    party_xp: Mapping[int, Mapping[str, int]],
    lines: Sequence[Mapping[str, Any]],
    difficulty: str = DIFFICULTY_HIGH,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Calculate the total encounter XP budget for a party.

    Args:
        party_xp: Level -> {tier: per-character XP}
        lines: Party lines, each {'level': int, 'count': int}
        difficulty: Low, Moderate, High or Random
        rng: Random source used to resolve 'Random'

    Returns:
        Dictionary with total_xp, the resolved difficulty, party_levels and party_size

    Raises:
        ValidationError: If the party or difficulty is invalid
    """
    if not lines:
        raise ValidationError("party must contain at least one line")
    validated = [_validate_line(line) for line in lines]
    tier = resolve_difficulty(difficulty, rng)

    total = 0
    for line in validated:
        row = party_xp.get(line['level'])
        if row:
            total += row[tier] * line['count']

    party_levels: List[int] = [line['level'] for line in validated]
    return {
        'total_xp': total,
        'difficulty': tier,
        'party_levels': party_levels,
        'party_size': sum(line['count'] for line in validated),
    }
