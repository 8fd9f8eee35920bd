from models.catalog import Catalog
from models.db import EncounterStore
from models.encounter_builder import EncounterBuilder
from models.party_budget import DIFFICULTY_HIGH, calculate_party_budget
import logging
import random
from typing import Dict, List, Any, Optional
from utils.exceptions import ValidationError
from utils.logging import log_generation
from utils.monitoring import error_tracker, performance_monitor, track_performance

# Constants
MIN_PARTY_LEVEL = 1
MAX_PARTY_LEVEL = 20
MIN_PARTY_SIZE = 1
MAX_PARTY_SIZE = 50
MAX_TOTAL_XP = 10_000_000
MAX_PARTY_LINES = 20

logger = logging.getLogger(__name__)


class EncounterController:
    """
    Controller for generating, remembering and saving encounters.
    Validates request data before it reaches the builder and records metrics.
    """

    def __init__(self, catalog: Optional[Catalog] = None, store: Optional[EncounterStore] = None,
                 rng: Optional[random.Random] = None):
        """
        Initialize the encounter controller.

        Args:
            catalog: Creature catalog (defaults to the shared catalog)
            store: Saved-encounter store (defaults to the configured database)
            rng: Random source shared by generation and difficulty rolls
        """
        self.builder = EncounterBuilder(catalog=catalog, rng=rng)
        self.store = store or EncounterStore()

    def _validate_party_size(self, party_size: Any) -> int:
        if not isinstance(party_size, int) or isinstance(party_size, bool):
            raise ValidationError("party_size must be an integer")
        if party_size < MIN_PARTY_SIZE or party_size > MAX_PARTY_SIZE:
            raise ValidationError(f"party_size must be between {MIN_PARTY_SIZE} and {MAX_PARTY_SIZE}")
        return party_size

    def _validate_total_xp(self, total_xp: Any) -> float:
        if not isinstance(total_xp, (int, float)) or isinstance(total_xp, bool):
            raise ValidationError("total_xp must be a number")
        if total_xp < 0 or total_xp > MAX_TOTAL_XP:
            raise ValidationError(f"total_xp must be between 0 and {MAX_TOTAL_XP}")
        return total_xp

    def _validate_party_levels(self, party_levels: Any) -> List[int]:
        if party_levels is None:
            return []
        if not isinstance(party_levels, list):
            raise ValidationError("party_levels must be a list")
        for level in party_levels:
            if not isinstance(level, int) or isinstance(level, bool):
                raise ValidationError("party_levels must contain integers")
            if level < MIN_PARTY_LEVEL or level > MAX_PARTY_LEVEL:
                raise ValidationError(f"party level must be between {MIN_PARTY_LEVEL} and {MAX_PARTY_LEVEL}")
        return party_levels

    def calculate_budget(self, party: Any, difficulty: Any = DIFFICULTY_HIGH) -> Dict[str, Any]:
        """
        Calculate the XP budget for a party.

        Args:
            party: List of {'level', 'count'} lines
            difficulty: Low, Moderate, High or Random

        Returns:
            Dictionary with total_xp, difficulty, party_levels and party_size

        Raises:
            ValidationError: If the party or difficulty is invalid
        """
        if not isinstance(party, list):
            raise ValidationError("party must be a list of {level, count} lines")
        if len(party) > MAX_PARTY_LINES:
            raise ValidationError(f"Too many party lines (max {MAX_PARTY_LINES})")
        if not isinstance(difficulty, str):
            raise ValidationError("difficulty must be a string")

        budget = calculate_party_budget(self.builder.catalog.party_xp, party, difficulty, self.builder.rng)
        self._validate_party_size(budget['party_size'])
        logger.info(
            f"Party budget: {budget['total_xp']} XP ({budget['difficulty']}) "
            f"for {budget['party_size']} characters"
        )
        return budget

    def _resolve_generation_inputs(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ValidationError("Invalid input format")

        if 'party' in data:
            budget = self.calculate_budget(data['party'], data.get('difficulty', DIFFICULTY_HIGH))
            inputs = {
                'total_xp_budget': budget['total_xp'],
                'party_levels': budget['party_levels'],
                'party_size': budget['party_size'],
            }
        elif 'total_xp' in data:
            inputs = {
                'total_xp_budget': self._validate_total_xp(data['total_xp']),
                'party_levels': self._validate_party_levels(data.get('party_levels')),
                'party_size': self._validate_party_size(data.get('party_size', MIN_PARTY_SIZE)),
            }
        else:
            raise ValidationError("Either party or total_xp is required")

        category = data.get('category')
        if category is not None and not isinstance(category, str):
            raise ValidationError("category must be a string")
        inputs['category'] = category or None
        return inputs

    @track_performance('generate_encounter')
    def generate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Generate an encounter from request data.

        Accepts either {'party', 'difficulty'} or {'total_xp', 'party_levels',
        'party_size'}, plus an optional 'category' tag.

        Returns:
            The encounter dictionary, or {'error', 'type'} if no roster could be built

        Raises:
            ValidationError: If the request data is invalid
        """
        inputs = self._resolve_generation_inputs(data)
        encounter = self.builder.generate_encounter(**inputs)
        log_generation(encounter, inputs['total_xp_budget'], inputs['category'])

        if 'error' in encounter:
            performance_monitor.record_counter('generation_failed')
            error_tracker.record_error(encounter['type'], encounter['error'], {
                'total_xp_budget': inputs['total_xp_budget'],
                'category': inputs['category'],
            })
        else:
            performance_monitor.record_counter('generation_succeeded')
            performance_monitor.record_counter(f"category_{encounter['category']}")
        return encounter

    def generate_for_session(self, session_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Generate an encounter and remember it as the session's current one on success."""
        encounter = self.generate(data)
        if 'error' not in encounter:
            self.store.set_current_encounter(session_id, encounter)
        return encounter

    def get_current_encounter(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get_current_encounter(session_id)

    def save_encounter(self, session_id: str, encounter: Optional[Dict[str, Any]] = None) -> str:
        """
        Save an encounter for the session.

        Args:
            session_id: Owning session
            encounter: Encounter to save; the current encounter when omitted

        Returns:
            The saved encounter id

        Raises:
            ValidationError: If there is nothing to save or the encounter is invalid
        """
        if encounter is None:
            encounter = self.store.get_current_encounter(session_id)
            if encounter is None:
                raise ValidationError("No current encounter to save")
        encounter_id = self.store.save_encounter(session_id, encounter)
        logger.info(f"Saved encounter {encounter_id} for session {session_id}")
        return encounter_id

    def list_saved_encounters(self, session_id: str) -> List[Dict[str, Any]]:
        return self.store.list_encounters(session_id)

    def get_saved_encounter(self, session_id: str, encounter_id: str) -> Optional[Dict[str, Any]]:
        return self.store.get_encounter(session_id, encounter_id)

    def delete_saved_encounter(self, session_id: str, encounter_id: str) -> bool:
        deleted = self.store.delete_encounter(session_id, encounter_id)
        if deleted:
            logger.info(f"Deleted saved encounter {encounter_id}")
        return deleted

    def clear_saved_encounters(self, session_id: str) -> int:
        count = self.store.clear_encounters(session_id)
        logger.info(f"Cleared {count} saved encounters for session {session_id}")
        return count
