"""
Encounter generation engine.

Turns a total XP budget into a roster for one of four categories (a lone
dragon or legendary creature, mounts and riders, a monotype group, or a
mixed group of up to three creature types), then attaches flavor and names.
"""

import logging
import random
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from models.catalog import (
    SOURCE_DRAGONS, SOURCE_GENERIC, SOURCE_LEGENDARY, Catalog, get_catalog
)
from models.flavor import generate_distance_and_terrain, generate_tarot_motivation
from models.monster import (
    ROLE_DISMOUNTED, ROLE_ELITE, ROLE_LEADER, ROLE_MINION,
    CreatureRecord, MonsterInstance, MountedPair, SingleMonster
)
from models.naming import NamingEngine
from utils.exceptions import (
    CatalogEmptyError, EncounterGenerationError, InsufficientRosterError,
    NoFitError, UnknownCategoryError
)

# Category tags and their display labels
CATEGORY_DRAGON_LEGENDARY = 'dragon_legendary'
CATEGORY_MOUNTS_RIDERS = 'mounts_riders'
CATEGORY_GROUPS = 'groups'
CATEGORY_MIXED_GROUPS = 'mixed_groups'
CATEGORIES = [CATEGORY_DRAGON_LEGENDARY, CATEGORY_MOUNTS_RIDERS, CATEGORY_GROUPS, CATEGORY_MIXED_GROUPS]
CATEGORY_LABELS = {
    CATEGORY_DRAGON_LEGENDARY: 'Dragon or Legendary',
    CATEGORY_MOUNTS_RIDERS: 'Mounts and Riders',
    CATEGORY_GROUPS: 'Groups',
    CATEGORY_MIXED_GROUPS: 'Mixed Groups',
}

# Roster size limits
MIN_QUANTITY = 2
MAX_QUANTITY = 10
MAX_MOUNTED_ROSTER = 8
PAIR_PREFERENCE_CHANCE = 0.7
MAX_BATCH_SIZE = 4
MAX_CREATURE_TYPES = 3
MAX_NEW_TYPE_ATTEMPTS = 20

logger = logging.getLogger(__name__)


def quantity_range(party_size: int) -> Tuple[int, int]:
    """Return (min, max) roster size for a party: 2 to twice the party size, capped at 10."""
    return MIN_QUANTITY, min(party_size * 2, MAX_QUANTITY)


class EncounterBuilder:
    """
    Builds named encounters that fit an XP budget.

    Randomness comes from an injectable random.Random so tests can seed it;
    by default every builder draws fresh entropy.
    """

    def __init__(self, catalog: Optional[Catalog] = None, rng: Optional[random.Random] = None):
        self.catalog = catalog or get_catalog()
        self.rng = rng or random.Random()
        self.naming = NamingEngine(self.catalog.cultures, self.catalog.traits, self.rng)

    def find_best_cr(self, budget: float) -> Tuple[Optional[str], int]:
        return self.catalog.find_best_cr(budget)

    def _pick_quantity(self, min_quantity: int, max_quantity: int) -> int:
        return self.rng.randint(min_quantity, max_quantity)

    def _priced(self, records: Sequence[CreatureRecord]) -> List[Tuple[CreatureRecord, int]]:
        """Pair each record with its XP cost, most expensive first."""
        priced = [(record, self.catalog.xp_for(record.cr)) for record in records]
        return sorted(priced, key=lambda item: item[1], reverse=True)

    def generate_dragon_legendary(self, total_xp: float) -> Dict[str, Any]:
        """
        Pick a single dragon or legendary creature at the best-fitting CR.

        Leftover budget below the resolved CR's XP is not spent.

        Raises:
            NoFitError: If no CR fits the budget
            CatalogEmptyError: If no dragon or legendary creature has that CR
        """
        cr, xp = self.find_best_cr(total_xp)
        if cr is None:
            raise NoFitError('No dragon or legendary creature fits budget')

        options = self.catalog.creatures_at(cr, SOURCE_DRAGONS) + self.catalog.creatures_at(cr, SOURCE_LEGENDARY)
        if not options:
            raise CatalogEmptyError(f'No dragon or legendary creature found for CR {cr}')

        chosen = self.rng.choice(options)
        return {
            'category': CATEGORY_LABELS[CATEGORY_DRAGON_LEGENDARY],
            'quantity': 1,
            'monsters': [SingleMonster(creature=chosen, xp=xp)],
            'total_xp_used': xp,
            'description': f"{chosen.name} (CR {chosen.cr})",
        }

    def generate_mounts_riders(self, total_xp: float, min_quantity: int, max_quantity: int) -> Dict[str, Any]:
        """
        Fill the budget with mounted pairs and dismounted riders.

        Pairs are preferred 70% of the time: each step takes the costliest
        affordable mount+rider combination until none fits, then falls back to
        the costliest affordable rider. A final pass spends leftover XP on
        random affordable riders.

        Raises:
            InsufficientRosterError: If fewer than two creatures fit the budget
        """
        target_quantity = max(MIN_QUANTITY, self._pick_quantity(min_quantity, max_quantity))
        mounts = self._priced(self.catalog.mounts)
        riders = self._priced(self.catalog.riders)

        results: List[MonsterInstance] = []
        total_used_xp = 0
        remaining_xp = total_xp
        attempt_pairs = self.rng.random() < PAIR_PREFERENCE_CHANCE

        while len(results) < target_quantity and remaining_xp > 0:
            added = False

            if attempt_pairs and mounts and riders:
                best_combo = None
                best_combo_xp = 0
                for mount, mount_xp in mounts:
                    for rider, rider_xp in riders:
                        combo_xp = mount_xp + rider_xp
                        if combo_xp <= remaining_xp and combo_xp > best_combo_xp:
                            best_combo = (mount, rider)
                            best_combo_xp = combo_xp

                if best_combo:
                    mount, rider = best_combo
                    results.append(MountedPair(mount=mount, rider=rider, xp=best_combo_xp))
                    total_used_xp += best_combo_xp
                    remaining_xp -= best_combo_xp
                    added = True
                else:
                    # No pair fits any more; riders only from here on
                    attempt_pairs = False

            if not added and riders:
                best_rider = next(((r, xp) for r, xp in riders if xp <= remaining_xp), None)
                if best_rider:
                    rider, rider_xp = best_rider
                    results.append(SingleMonster(creature=rider, xp=rider_xp, role=ROLE_DISMOUNTED))
                    total_used_xp += rider_xp
                    remaining_xp -= rider_xp
                    added = True

            if not added:
                break

        max_creatures = min(max_quantity, MAX_MOUNTED_ROSTER)
        while len(results) < max_creatures and remaining_xp > 0:
            affordable = [(r, xp) for r, xp in riders if xp <= remaining_xp]
            if not affordable:
                break
            rider, rider_xp = self.rng.choice(affordable)
            results.append(SingleMonster(creature=rider, xp=rider_xp, role=ROLE_DISMOUNTED))
            total_used_xp += rider_xp
            remaining_xp -= rider_xp

        if len(results) < MIN_QUANTITY:
            raise InsufficientRosterError('Could not generate at least 2 mounts/riders within XP budget')

        return {
            'category': CATEGORY_LABELS[CATEGORY_MOUNTS_RIDERS],
            'quantity': len(results),
            'monsters': results,
            'total_xp_used': total_used_xp,
            'description': format_mount_rider_description(results),
        }

    def generate_groups(self, total_xp: float, min_quantity: int, max_quantity: int) -> Dict[str, Any]:
        """
        Build a monotype group: one creature type repeated quantity times.

        Raises:
            NoFitError: If no CR fits the per-creature share of the budget
            CatalogEmptyError: If the generic catalog has nothing at that CR
        """
        quantity = self._pick_quantity(min_quantity, max_quantity)
        xp_per_creature = total_xp / quantity

        cr, xp = self.find_best_cr(xp_per_creature)
        if cr is None:
            raise NoFitError('No creature fits per-creature budget for group')

        available = self.catalog.creatures_at(cr, SOURCE_GENERIC)
        if not available:
            raise CatalogEmptyError(f'No creatures found for CR {cr} group encounter')

        chosen = self.rng.choice(available)
        return {
            'category': CATEGORY_LABELS[CATEGORY_GROUPS],
            'quantity': quantity,
            'monsters': [SingleMonster(creature=chosen, xp=xp) for _ in range(quantity)],
            'total_xp_used': xp * quantity,
            'description': f"{quantity}× {chosen.name} (CR {chosen.cr} each)",
        }

    def generate_mixed_groups(self, total_xp: float, min_quantity: int, max_quantity: int) -> Dict[str, Any]:
        """
        Build a group of up to three creature types in sub-batches of 1-4.

        Each sub-batch re-divides the remaining budget over the remaining
        creatures. New types are sought with up to 20 draws; after that a
        repeated type is accepted, so distinct types are not guaranteed.
        The first sub-batch leads; later ones are minions.

        Raises:
            NoFitError: If no CR fits before any creature was added
            CatalogEmptyError: If the catalog is empty at the first resolved CR
        """
        quantity = self._pick_quantity(min_quantity, max_quantity)

        results: List[MonsterInstance] = []
        total_used_xp = 0
        remaining_xp = total_xp
        remaining_creatures = quantity
        used_creature_types = set()
        failure: Optional[EncounterGenerationError] = None

        while remaining_creatures > 0 and remaining_xp > 0 and len(used_creature_types) < MAX_CREATURE_TYPES:
            batch_size = min(self.rng.randint(1, MAX_BATCH_SIZE), remaining_creatures)

            xp_per_creature = remaining_xp / remaining_creatures
            cr, xp = self.find_best_cr(xp_per_creature)
            if cr is None:
                failure = NoFitError('No creature fits per-creature budget for mixed group')
                break

            available = self.catalog.creatures_at(cr, SOURCE_GENERIC)
            if not available:
                failure = CatalogEmptyError(f'No creatures found for CR {cr} mixed group encounter')
                break

            attempts = 0
            while True:
                chosen = self.rng.choice(available)
                attempts += 1
                if chosen.name not in used_creature_types or attempts >= MAX_NEW_TYPE_ATTEMPTS:
                    break

            if not results:
                role = ROLE_LEADER
            elif not used_creature_types:
                role = ROLE_ELITE
            else:
                role = ROLE_MINION

            type_id = len(used_creature_types)
            for _ in range(batch_size):
                results.append(SingleMonster(creature=chosen, xp=xp, role=role, creature_type_id=type_id))
                total_used_xp += xp
                remaining_xp -= xp
                remaining_creatures -= 1

            used_creature_types.add(chosen.name)

        if not results:
            raise failure or NoFitError('No creature fits per-creature budget for mixed group')

        if failure:
            logger.info(f"Mixed group stopped early with {len(results)} creatures: {failure}")

        return {
            'category': CATEGORY_LABELS[CATEGORY_MIXED_GROUPS],
            'quantity': len(results),
            'monsters': results,
            'total_xp_used': total_used_xp,
            'description': format_mixed_group_description(results),
        }

    def _build_roster(self, category: str, total_xp: float, min_quantity: int, max_quantity: int) -> Dict[str, Any]:
        if category == CATEGORY_DRAGON_LEGENDARY:
            return self.generate_dragon_legendary(total_xp)
        elif category == CATEGORY_MOUNTS_RIDERS:
            return self.generate_mounts_riders(total_xp, min_quantity, max_quantity)
        elif category == CATEGORY_GROUPS:
            return self.generate_groups(total_xp, min_quantity, max_quantity)
        elif category == CATEGORY_MIXED_GROUPS:
            return self.generate_mixed_groups(total_xp, min_quantity, max_quantity)
        raise UnknownCategoryError('Unknown encounter category')

    def generate_encounter(
        self,
        total_xp_budget: float,
        party_levels: Optional[Sequence[int]] = None,
        party_size: int = 1,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Generate one complete, named encounter.

        Args:
            total_xp_budget: Total XP the encounter may spend
            party_levels: Character levels in the party (informational)
            party_size: Number of characters, which bounds the roster size
            category: Force a category tag instead of picking one at random

        Returns:
            Serializable encounter dictionary, or {'error', 'type'} on failure
        """
        min_quantity, max_quantity = quantity_range(party_size)
        if category is None:
            category = self.rng.choice(CATEGORIES)

        logger.debug(
            f"Generating {category} encounter: budget {total_xp_budget}, "
            f"levels {list(party_levels or [])}, quantity {min_quantity}-{max_quantity}"
        )

        try:
            encounter = self._build_roster(category, total_xp_budget, min_quantity, max_quantity)
        except EncounterGenerationError as e:
            logger.warning(f"Encounter generation failed for {category} with budget {total_xp_budget}: {e}")
            return {'error': str(e), 'type': e.__class__.__name__}

        tarot_motivation = generate_tarot_motivation(self.catalog.tarot, self.rng) if self.catalog.tarot else None
        if self.catalog.terrain:
            distance_info = generate_distance_and_terrain(self.catalog.terrain, self.rng)
        else:
            distance_info = {'terrain': None, 'distance': None}
        monsters = self.naming.name_group(encounter['monsters'])

        logger.debug(
            f"Generated {encounter['category']} encounter: {encounter['quantity']} creatures, "
            f"{encounter['total_xp_used']}/{total_xp_budget} XP"
        )

        return {
            'id': uuid4().hex,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'category': encounter['category'],
            'quantity': encounter['quantity'],
            'monsters': [monster.to_dict() for monster in monsters],
            'total_xp_used': encounter['total_xp_used'],
            'description': encounter['description'],
            'terrain': distance_info['terrain'],
            'distance': distance_info['distance'],
            'tarot_motivation': tarot_motivation,
        }


def format_mount_rider_description(results: Sequence[MonsterInstance]) -> str:
    pairs = [r for r in results if isinstance(r, MountedPair)]
    dismounted = [r for r in results if r.role == ROLE_DISMOUNTED]

    parts = []
    if pairs:
        parts.append(f"{len(pairs)} mounted: " + ', '.join(f"{p.rider.name} on {p.mount.name}" for p in pairs))
    if dismounted:
        parts.append(f"{len(dismounted)} dismounted: " + ', '.join(d.name for d in dismounted))
    return '; '.join(parts)


def format_mixed_group_description(results: Sequence[MonsterInstance]) -> str:
    groups: 'OrderedDict[str, Dict[str, Any]]' = OrderedDict()
    for monster in results:
        group = groups.setdefault(monster.name, {'cr': monster.cr, 'role': monster.role, 'count': 0})
        group['count'] += 1

    descriptions = []
    for name, group in groups.items():
        role_text = group['role'] if group['role'] in (ROLE_LEADER, ROLE_ELITE) else 'support'
        descriptions.append(f"{group['count']}× {name} ({role_text}, CR {group['cr']})")
    return ' + '.join(descriptions)
