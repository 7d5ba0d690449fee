"""JSON file persistence for the budget state.

The whole ``BudgetState`` is stored as one camelCase JSON blob. The store
does no migration: what is saved is what gets loaded.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from pocket_budget.models.schemas import BudgetState

logger = logging.getLogger("pocket_budget.storage")


def default_state_path() -> Path:
    return Path.home() / ".pocket-budget" / "state.json"


class JsonStateStore:
    """Loads and saves a budget state from a single JSON file."""

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path) if path else default_state_path()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def quarantine_path(self) -> Path:
        """Where an unreadable state file is moved before it can be overwritten."""
        return self._path.with_name(self._path.name + ".corrupt")

    def load(self) -> Optional[BudgetState]:
        """Read the saved state, or ``None`` if there is nothing usable.

        An unreadable file is renamed to :attr:`quarantine_path` so that the
        next save cannot destroy it.
        """
        if not self._path.exists():
            return None
        try:
            return BudgetState.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable budget state at %s: %s", self._path, e)
            os.replace(self._path, self.quarantine_path)
            logger.warning("Moved unreadable budget state to %s", self.quarantine_path)
            return None

    def save(self, state: BudgetState):
        """Persist *state*, creating the parent directory if needed.

        Writes to a temp file next to the target and renames it over, so a
        crash mid-write leaves the previous file intact.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(
            json.dumps(state.model_dump(mode="json", by_alias=True), indent=2),
            encoding="utf-8",
        )
        os.replace(tmp, self._path)
        logger.debug("Saved budget state to %s", self._path)
