"""System settings repository for DynamoDB operations."""

import structlog

from warrantydb.models.settings import SystemSettings, UpdateSettingsRequest
from warrantydb.repositories.base import BaseRepository

logger = structlog.get_logger()


class SettingsRepository(BaseRepository[SystemSettings]):
    """Repository for the single SystemSettings record."""

    def __init__(self, table_name: str | None = None):
        """Initialize settings repository."""
        super().__init__(SystemSettings, table_name)

    def get_settings(self) -> SystemSettings:
        """Stored settings, or the defaults if none were ever saved."""
        settings = self.get(pk="SETTINGS", sk="SYSTEM")
        if settings is None:
            logger.debug("No stored settings, using defaults")
            return SystemSettings()
        return settings

    def save_settings(self, settings: SystemSettings) -> SystemSettings:
        return self.put(settings)

    def update_settings(self, request: UpdateSettingsRequest) -> SystemSettings:
        """Apply a partial update and save it."""
        current = self.get_settings()
        changes = request.model_dump(exclude_none=True)
        updated = SystemSettings.model_validate({**current.model_dump(), **changes})
        logger.info("System settings updated", fields=sorted(changes))
        return self.save_settings(updated)
