"""Custom exception classes for WarrantyDB."""


class WarrantyDBError(Exception):
    """Base exception for all WarrantyDB errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 500,
        details: dict | None = None,
    ):
        """Initialize WarrantyDBError.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            status_code: HTTP status code for API responses.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API response."""
        result = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(WarrantyDBError):
    """Raised when a warranty, activation code or other record does not resolve."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: str | None = None,
    ):
        """Initialize NotFoundError.

        Args:
            resource_type: Type of resource (e.g., "Warranty", "ActivationCode").
            resource_id: ID of the resource that was not found.
            message: Optional custom message.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            message=message or f"{resource_type} with ID '{resource_id}' not found",
            error_code="NOT_FOUND",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ValidationError(WarrantyDBError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[dict] | None = None,
    ):
        self.errors = errors or []
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details={"errors": self.errors} if self.errors else None,
        )

    @classmethod
    def from_pydantic(cls, exc: Exception) -> "ValidationError":
        """Create ValidationError from Pydantic ValidationError."""
        errors = []
        if hasattr(exc, "errors"):
            for error in exc.errors():
                errors.append(
                    {
                        "field": ".".join(str(loc) for loc in error.get("loc", [])),
                        "message": error.get("msg", "Invalid value"),
                        "type": error.get("type", "unknown"),
                    }
                )
        return cls(message="Validation failed", errors=errors)


class ConflictError(WarrantyDBError):
    """Raised on a duplicate or an optimistic lock failure."""

    def __init__(
        self,
        message: str = "Resource conflict",
        conflict_type: str | None = None,
    ):
        super().__init__(
            message=message,
            error_code="CONFLICT",
            status_code=409,
            details={"conflict_type": conflict_type} if conflict_type else None,
        )


class AlreadyActivatedError(WarrantyDBError):
    """Raised when an activation code is redeemed a second time."""

    def __init__(self, warranty_id: str):
        self.warranty_id = warranty_id
        super().__init__(
            message="This warranty has already been activated",
            error_code="ALREADY_ACTIVATED",
            status_code=409,
            details={"warranty_id": warranty_id},
        )


class WarrantyVoidedError(WarrantyDBError):
    """Raised when activation is attempted on a voided warranty."""

    def __init__(self, warranty_id: str):
        self.warranty_id = warranty_id
        super().__init__(
            message="This warranty has been voided. Please contact support",
            error_code="WARRANTY_VOIDED",
            status_code=409,
            details={"warranty_id": warranty_id},
        )


class TemplateUnavailableError(WarrantyDBError):
    """No active email template exists for a reminder type.

    Scheduling passes log and skip on this error; it never aborts a batch.
    """

    def __init__(self, template_type: str):
        self.template_type = template_type
        super().__init__(
            message=f"No active email template for type '{template_type}'",
            error_code="TEMPLATE_UNAVAILABLE",
            status_code=422,
            details={"template_type": template_type},
        )


class DeliveryError(WarrantyDBError):
    """Raised by a delivery channel when the transport fails."""

    def __init__(
        self,
        message: str,
        provider: str = "ses",
        original_error: str | None = None,
    ):
        super().__init__(
            message=message,
            error_code="DELIVERY_FAILED",
            status_code=502,
            details={"provider": provider, "original_error": original_error},
        )
