import json
import os
import sqlite3
from contextlib import contextmanager
from typing import List, Dict, Any, Optional

from utils.exceptions import DatabaseError, ValidationError
from utils.logging import log_exception

DEFAULT_DB_PATH = os.environ.get('ENCOUNTERS_DB_PATH', 'data/encounters.db')
SCHEMA_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'db', 'schema.sql')
MAX_SAVED_ENCOUNTERS = 200


class EncounterStore:
    """
    SQLite store for saved encounters, scoped per session.

    Encounters are stored as opaque JSON payloads keyed by (session_id, id);
    sessions never see or replace each other's rows.
    """
    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        self._ensure_db_directory()
        self._init_database()
        self._create_indexes()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        db_dir = os.path.dirname(self.db_path)
        if db_dir:  # Only create directory if there is a directory path
            os.makedirs(db_dir, exist_ok=True)

    def _init_database(self):
        """Initialize database with schema."""
        try:
            with self._get_connection() as conn:
                with open(SCHEMA_PATH, 'r') as f:
                    conn.executescript(f.read())
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to initialize database: {e}")

    def _create_indexes(self):
        """Create indexes for common queries."""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_saved_encounters_session_id ON saved_encounters(session_id)",
            "CREATE INDEX IF NOT EXISTS idx_saved_encounters_created_at ON saved_encounters(created_at)",
        ]
        try:
            with self._get_connection() as conn:
                for index_sql in indexes:
                    conn.execute(index_sql)
        except Exception as e:
            log_exception(e)
            # Don't fail if indexes already exist

    @contextmanager
    def _get_connection(self):
        """Get database connection with tuned settings."""
        conn = sqlite3.connect(self.db_path, timeout=20.0)
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        try:
            yield conn
        finally:
            conn.close()

    def create_session(self, session_id: str) -> bool:
        """Register a session id."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO sessions (session_id) VALUES (?)",
                    (session_id,)
                )
                conn.commit()
            return True
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to create session: {e}")

    def save_encounter(self, session_id: str, encounter: Dict[str, Any]) -> str:
        """
        Save a generated encounter; saving the same id again in the same session replaces it.

        Returns:
            The encounter id

        Raises:
            ValidationError: If the encounter is an error result or has no id
            DatabaseError: If the insert fails
        """
        if not isinstance(encounter, dict) or 'error' in encounter:
            raise ValidationError("Only successfully generated encounters can be saved")
        encounter_id = encounter.get('id')
        if not encounter_id or not isinstance(encounter_id, str):
            raise ValidationError("Encounter has no id")

        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO saved_encounters (id, session_id, category, total_xp_used, payload)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        encounter_id,
                        session_id,
                        encounter.get('category', 'Unknown'),
                        int(encounter.get('total_xp_used') or 0),
                        json.dumps(encounter)
                    )
                )
                conn.commit()
            return encounter_id
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to save encounter: {e}")

    def list_encounters(self, session_id: str) -> List[Dict[str, Any]]:
        """Get saved encounters for a session, newest first."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    """
                    SELECT payload FROM saved_encounters
                    WHERE session_id = ?
                    ORDER BY created_at DESC, rowid DESC
                    LIMIT ?
                    """,
                    (session_id, MAX_SAVED_ENCOUNTERS)
                )
                results = [json.loads(row['payload']) for row in cursor.fetchall()]
            return results
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to list saved encounters: {e}")

    def get_encounter(self, session_id: str, encounter_id: str) -> Optional[Dict[str, Any]]:
        """Get one of a session's saved encounters by id."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "SELECT payload FROM saved_encounters WHERE session_id = ? AND id = ?",
                    (session_id, encounter_id)
                )
                result = cursor.fetchone()
            return json.loads(result['payload']) if result else None
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to get saved encounter: {e}")

    def delete_encounter(self, session_id: str, encounter_id: str) -> bool:
        """Delete one saved encounter; returns False if it did not exist."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM saved_encounters WHERE session_id = ? AND id = ?",
                    (session_id, encounter_id)
                )
                deleted = cursor.rowcount
                conn.commit()
            return deleted > 0
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to delete saved encounter: {e}")

    def set_current_encounter(self, session_id: str, encounter: Dict[str, Any]) -> None:
        """Remember the last generated encounter for a session."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO current_encounters (session_id, payload, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    """,
                    (session_id, json.dumps(encounter))
                )
                conn.commit()
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to store current encounter: {e}")

    def get_current_encounter(self, session_id: str) -> Optional[Dict[str, Any]]:
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "SELECT payload FROM current_encounters WHERE session_id = ?",
                    (session_id,)
                )
                result = cursor.fetchone()
            return json.loads(result['payload']) if result else None
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to get current encounter: {e}")

    def clear_encounters(self, session_id: str) -> int:
        """Delete every saved encounter for a session and return how many were removed."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM saved_encounters WHERE session_id = ?",
                    (session_id,)
                )
                deleted_count = cursor.rowcount
                conn.commit()
            return deleted_count
        except Exception as e:
            log_exception(e)
            raise DatabaseError(f"Failed to clear saved encounters: {e}")
