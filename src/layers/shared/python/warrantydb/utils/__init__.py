"""Utility functions and helpers."""

from warrantydb.utils.exceptions import (
    AlreadyActivatedError,
    ConflictError,
    DeliveryError,
    NotFoundError,
    TemplateUnavailableError,
    ValidationError,
    WarrantyDBError,
    WarrantyVoidedError,
)
from warrantydb.utils.responses import created, error, from_exception, success, validation_error

__all__ = [
    # Response helpers
    "success",
    "created",
    "error",
    "from_exception",
    "validation_error",
    # Exceptions
    "WarrantyDBError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "AlreadyActivatedError",
    "WarrantyVoidedError",
    "TemplateUnavailableError",
    "DeliveryError",
]
