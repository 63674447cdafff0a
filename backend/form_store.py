"""
Form State Store - session-scoped persistence of the in-progress application.

The record is kept as JSON under a single fixed key of a mutable mapping.
In the Streamlit app the mapping is st.session_state (one browser session);
tests pass a plain dict.
"""

import logging
from typing import MutableMapping, Optional

from pydantic import ValidationError as ModelValidationError

from config.settings import settings
from config.application_schema import ApplicationRecord

logger = logging.getLogger(__name__)


class FormStateStore:
    """Saves, loads and clears the application under one key."""

    def __init__(self, storage: MutableMapping, key: Optional[str] = None):
        self.storage = storage
        self.key = key or settings.FORM_STATE_KEY

    def save(self, record: ApplicationRecord):
        self.storage[self.key] = record.model_dump_json(by_alias=True)
        logger.debug(f"[Form Store] Saved application under {self.key!r}")

    def load(self) -> Optional[ApplicationRecord]:
        """Return the stored application, or None when nothing usable is stored."""
        raw = self.storage.get(self.key)
        if raw is None:
            return None

        try:
            return ApplicationRecord.model_validate_json(raw)
        except (ModelValidationError, TypeError) as e:
            logger.warning(f"[Form Store] Discarding unreadable state under {self.key!r}: {e}")
            self.clear()
            return None

    def clear(self):
        if self.key in self.storage:
            del self.storage[self.key]
            logger.debug(f"[Form Store] Cleared {self.key!r}")

    def has_record(self) -> bool:
        return self.key in self.storage
