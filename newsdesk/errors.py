"""Error taxonomy for the ingestion pipeline."""

from typing import Optional


class NewsdeskError(Exception):
    """Base class for all newsdesk errors."""


class IngestionError(NewsdeskError):
    """Raised when an ingestion run cannot start or complete."""


class CooldownActive(IngestionError):
    """The last successful run is still inside the cooldown window."""

    def __init__(self, days_remaining: int) -> None:
        self.days_remaining = days_remaining
        super().__init__(f"Cooldown active, {days_remaining} days remaining")


class CategoryError(IngestionError):
    """A failure scoped to a single category."""

    kind = "category error"

    def __init__(self, category: str, cause: Optional[BaseException] = None, detail: str = "") -> None:
        self.category = category
        self.cause = cause
        self.detail = detail or (str(cause) if cause else "")
        message = f"{self.kind} on category '{category}'"
        if self.detail:
            message += f": {self.detail}"
        super().__init__(message)


class ProviderUnavailable(CategoryError):
    """The provider was unreachable or answered with a non-200 status."""

    kind = "provider unavailable"


class ValidationFailed(CategoryError):
    """The provider payload did not match the expected shape."""

    kind = "validation failed"


class StorageFailure(CategoryError):
    """A database error aborted the category transaction."""

    kind = "storage failure"
