from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    UNKNOWN_ENTITY_KIND = ErrorDefinition(
        "UNKNOWN_ENTITY_KIND",
        "Unknown entity kind",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    BATCH_TOO_LARGE = ErrorDefinition(
        "BATCH_TOO_LARGE",
        "Batch exceeds the maximum number of entities",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    CONFLICT_NOT_FOUND = ErrorDefinition(
        "CONFLICT_NOT_FOUND",
        "Pending conflict not found",
        status.HTTP_404_NOT_FOUND,
    )
    SELECTION_INCOMPLETE = ErrorDefinition(
        "SELECTION_INCOMPLETE",
        "Every manual-required field needs a selection",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    RESOLVED_RECORD_INVALID = ErrorDefinition(
        "RESOLVED_RECORD_INVALID",
        "Resolved record failed validation",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
