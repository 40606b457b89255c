"""CRM error taxonomy.

Every handler-level failure is one of these. The API layer maps them onto the
response envelope with the carried status code.
"""

from __future__ import annotations


class CrmError(Exception):
    """Base class for CRM failures surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CrmError):
    """Missing required field, unknown enum value or malformed body."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(CrmError):
    """Lookup by id found no record."""

    status_code = 404
    default_message = "Record not found"

    def __init__(self, entity: str, record_id: str) -> None:
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found")


class PersistenceError(CrmError):
    """Underlying store failure (constraint violation, connectivity).

    The message returned to callers is generic; the original exception is
    chained and logged.
    """

    status_code = 500
    default_message = "Database operation failed"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Failed to {operation}")
