"""
Static catalog data for encounter generation.

Loads the CR/XP table, the creature sub-catalogs, trait pairs, the tarot deck,
terrain dice and the party XP budget table from the data directory once, and
exposes them as read-only lookups.
"""

import json
import logging
import os
import threading
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models.cultural_names import CulturalNameGenerator, load_cultural_generators
from models.flavor import parse_dice
from models.monster import CreatureRecord
from utils.exceptions import CatalogError
from utils.logging import log_exception

# Constants
DATA_DIR_ENV = 'ENCOUNTERS_DATA_DIR'
DEFAULT_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data')

CR_XP_FILENAME = 'cr_xp.json'
DRAGONS_FILENAME = 'dragons.json'
LEGENDARY_FILENAME = 'legendary.json'
MOUNTS_FILENAME = 'mounts.json'
RIDERS_FILENAME = 'riders.json'
GENERIC_FILENAME = 'enc_by_cr.json'
TRAITS_FILENAME = 'traits.json'
TAROT_FILENAME = 'tarot.json'
TERRAIN_FILENAME = 'terrain.json'
PARTY_XP_FILENAME = 'party_xp.json'
CULTURAL_NAMES_FILENAME = 'cultural_names.json'

KEY_CHALLENGE_RATING = 'challenge_rating'

SOURCE_DRAGONS = 'dragons'
SOURCE_LEGENDARY = 'legendary'
SOURCE_MOUNTS = 'mounts'
SOURCE_RIDERS = 'riders'
SOURCE_GENERIC = 'generic'

logger = logging.getLogger(__name__)


class Catalog:
    """
    Immutable, process-wide catalog of encounter data.

    Build one with Catalog.load() to read the JSON data files, or directly
    from Python mappings (useful for tests with small, known tables).
    """

    def __init__(
        self,
        cr_xp: Mapping[str, int],
        dragons: Iterable[Any] = (),
        legendary: Iterable[Any] = (),
        mounts: Iterable[Any] = (),
        riders: Iterable[Any] = (),
        generic: Optional[Mapping[str, Mapping[str, Sequence[Any]]]] = None,
        traits: Sequence[str] = (),
        tarot: Sequence[Dict[str, Any]] = (),
        terrain: Optional[Mapping[str, str]] = None,
        party_xp: Optional[Mapping[Any, Mapping[str, int]]] = None,
        cultures: Optional[Mapping[str, CulturalNameGenerator]] = None,
    ) -> None:
        self.cr_xp = MappingProxyType({str(cr): int(xp) for cr, xp in cr_xp.items()})
        self.dragons = self._records(dragons, SOURCE_DRAGONS)
        self.legendary = self._records(legendary, SOURCE_LEGENDARY)
        self.mounts = self._records(mounts, SOURCE_MOUNTS)
        self.riders = self._records(riders, SOURCE_RIDERS)
        self.generic = self._generic_records(generic or {})
        self.traits = tuple(traits)
        self.tarot = tuple(tarot)
        self.terrain = MappingProxyType(
            {name: parse_dice(formula) for name, formula in (terrain or {}).items()}
        )
        self.party_xp = MappingProxyType(
            {int(level): MappingProxyType(dict(row)) for level, row in (party_xp or {}).items()}
        )
        self.cultures = MappingProxyType(dict(cultures or {}))

    def _to_record(self, entry: Any, cr: Optional[str] = None, theme: Optional[str] = None) -> CreatureRecord:
        if isinstance(entry, CreatureRecord):
            return entry
        if isinstance(entry, str):
            return CreatureRecord(name=entry, cr=cr, theme=theme)
        data = dict(entry)
        if cr is not None:
            data.setdefault('cr', cr)
        if theme is not None:
            data.setdefault('theme', theme)
        return CreatureRecord.from_dict(data)

    def _records(self, entries: Iterable[Any], source: str) -> Tuple[CreatureRecord, ...]:
        records = []
        for entry in entries:
            record = self._to_record(entry)
            if record.cr not in self.cr_xp:
                logger.warning(f"Dropping {source} entry '{record.name}': CR {record.cr} not in XP table")
                continue
            records.append(record)
        return tuple(records)

    def _generic_records(self, generic: Mapping[str, Mapping[str, Sequence[Any]]]) -> Mapping[str, Mapping[str, Tuple[CreatureRecord, ...]]]:
        by_cr = {}
        for cr, themes in generic.items():
            cr = str(cr)
            if cr not in self.cr_xp:
                logger.warning(f"Dropping generic catalog CR {cr}: not in XP table")
                continue
            by_cr[cr] = MappingProxyType({
                theme: tuple(self._to_record(entry, cr=cr, theme=theme) for entry in entries)
                for theme, entries in themes.items()
            })
        return MappingProxyType(by_cr)

    def xp_for(self, cr: str) -> Optional[int]:
        """Return the XP value for a challenge rating, or None if unknown."""
        return self.cr_xp.get(str(cr))

    def find_best_cr(self, budget: float) -> Tuple[Optional[str], int]:
        """
        Find the challenge rating with the largest XP value not exceeding budget.

        Args:
            budget: XP available (may be fractional)

        Returns:
            Tuple of (cr, xp); (None, 0) if no CR fits the budget
        """
        best_cr = None
        best_xp = 0
        for cr, xp in self.cr_xp.items():
            if xp <= budget and xp > best_xp:
                best_cr = cr
                best_xp = xp
        return best_cr, best_xp

    def creatures_at(self, cr: str, source: str) -> List[CreatureRecord]:
        """
        Return all creatures from one sub-catalog with exactly the given CR.

        The generic catalog is flattened across all of its theme buckets.
        """
        cr = str(cr)
        if source == SOURCE_GENERIC:
            themes = self.generic.get(cr, {})
            return [record for records in themes.values() for record in records]
        records = {
            SOURCE_DRAGONS: self.dragons,
            SOURCE_LEGENDARY: self.legendary,
            SOURCE_MOUNTS: self.mounts,
            SOURCE_RIDERS: self.riders,
        }.get(source)
        if records is None:
            raise CatalogError(f"Unknown catalog source: {source}")
        return [record for record in records if record.cr == cr]

    @classmethod
    def load(cls, data_dir: Optional[str] = None) -> 'Catalog':
        """
        Load every catalog file from the data directory.

        Raises:
            CatalogError: If a file is missing or contains invalid data
        """
        data_dir = data_dir or os.environ.get(DATA_DIR_ENV, DEFAULT_DATA_DIR)
        logger.debug(f"Loading catalog from {data_dir}")

        try:
            generic = {}
            for row in _read_json(data_dir, GENERIC_FILENAME):
                row = dict(row)
                cr = row.pop(KEY_CHALLENGE_RATING)
                generic[cr] = {theme: names for theme, names in row.items() if isinstance(names, list)}

            catalog = cls(
                cr_xp=_read_json(data_dir, CR_XP_FILENAME),
                dragons=_read_json(data_dir, DRAGONS_FILENAME),
                legendary=_read_json(data_dir, LEGENDARY_FILENAME),
                mounts=_read_json(data_dir, MOUNTS_FILENAME),
                riders=_read_json(data_dir, RIDERS_FILENAME),
                generic=generic,
                traits=_read_json(data_dir, TRAITS_FILENAME),
                tarot=_read_json(data_dir, TAROT_FILENAME),
                terrain=_read_json(data_dir, TERRAIN_FILENAME),
                party_xp=_read_json(data_dir, PARTY_XP_FILENAME),
                cultures=load_cultural_generators(_read_json(data_dir, CULTURAL_NAMES_FILENAME)),
            )
        except (KeyError, TypeError, ValueError) as e:
            log_exception(e)
            raise CatalogError(f"Invalid catalog data in {data_dir}: {e}")

        logger.info(
            f"Loaded catalog: {len(catalog.cr_xp)} CRs, {len(catalog.dragons)} dragons, "
            f"{len(catalog.legendary)} legendary, {len(catalog.mounts)} mounts, "
            f"{len(catalog.riders)} riders, {len(catalog.generic)} generic CR buckets"
        )
        return catalog


def _read_json(data_dir: str, filename: str) -> Any:
    path = os.path.join(data_dir, filename)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError as e:
        log_exception(e)
        raise CatalogError(f"Catalog data file not found: {path}")
    except json.JSONDecodeError as e:
        log_exception(e)
        raise CatalogError(f"Invalid JSON in catalog data file {path}: {e}")


_default_catalog: Optional[Catalog] = None
_catalog_lock = threading.Lock()


def get_catalog() -> Catalog:
    """Return the process-wide catalog, loading it on first use."""
    global _default_catalog
    with _catalog_lock:
        if _default_catalog is None:
            _default_catalog = Catalog.load()
        return _default_catalog
