"""DynamoDB repositories for data access."""

from warrantydb.repositories.base import BaseRepository
from warrantydb.repositories.email_template import EmailTemplateRepository
from warrantydb.repositories.reminder import ReminderRepository
from warrantydb.repositories.settings import SettingsRepository
from warrantydb.repositories.warranty import WarrantyRepository

__all__ = [
    "BaseRepository",
    "WarrantyRepository",
    "ReminderRepository",
    "EmailTemplateRepository",
    "SettingsRepository",
]
