"""
Preference store: one JSON record per user in the preferences namespace.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from arcpay.config import ArcPayConfig
from arcpay.errors import NotFoundError, ValidationError
from arcpay.schema import PreferencesUpdate, UserPreferences
from arcpay.storage import KVStore

logger = logging.getLogger(__name__)


class PreferenceStore:
    def __init__(self, store: KVStore, config: Optional[ArcPayConfig] = None):
        self._store = store
        self._config = config or ArcPayConfig()

    def get(self, user_id: str) -> Optional[UserPreferences]:
        raw = self._store.get(user_id)
        if not raw:
            return None
        return UserPreferences.model_validate_json(raw)

    def require(self, user_id: str) -> UserPreferences:
        prefs = self.get(user_id)
        if prefs is None:
            raise NotFoundError("User preferences not found")
        return prefs

    def defaults(self, user_id: str) -> UserPreferences:
        return UserPreferences(
            user_id=user_id,
            max_daily_budget=self._config.default_max_daily_budget,
            monthly_limit=self._config.default_monthly_limit,
        )

    def update(self, user_id: str, changes: PreferencesUpdate) -> UserPreferences:
        """Merge a partial update over the stored record (or the defaults) and save it."""
        if not user_id:
            raise ValidationError("user_id is required")
        current = self.get(user_id) or self.defaults(user_id)
        merged = current.model_dump()
        merged.update(changes.model_dump(exclude_unset=True))
        merged["user_id"] = user_id
        merged["updated_at"] = datetime.now(timezone.utc)
        try:
            prefs = UserPreferences.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
        self._store.put(user_id, prefs.to_json())
        logger.info("Saved preferences for user %s", user_id)
        return prefs
