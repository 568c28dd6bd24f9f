"""Domain error hierarchy shared by the calculation core and issuance services."""

from __future__ import annotations

from typing import Any
from uuid import UUID

# purpose: give routes one place to translate domain failures into HTTP responses
# status: active


class CarbonAccountingError(RuntimeError):
    """Base error for calculation and issuance flows."""


class InputValidationError(CarbonAccountingError):
    """Raised before any computation or mutation when inputs are rejected."""

    def __init__(self, errors: list[str], warnings: list[str] | None = None):
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        super().__init__("; ".join(self.errors) or "validation failed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": False,
            "errors": self.errors,
            "warnings": self.warnings,
        }


class StateConflictError(CarbonAccountingError):
    """Raised when a lifecycle transition is attempted from an invalid state."""

    def __init__(
        self,
        message: str,
        *,
        entity: str,
        entity_id: UUID | str | None = None,
        current_status: str | None = None,
        action: str | None = None,
    ):
        self.message = message
        self.entity = entity
        self.entity_id = str(entity_id) if entity_id is not None else None
        self.current_status = current_status
        self.action = action
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "current_status": self.current_status,
            "action": self.action,
        }


class DataIntegrityError(CarbonAccountingError):
    """Raised when stored data cannot support a calculation or issuance."""


class RecordNotFound(CarbonAccountingError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, entity_id: UUID | str):
        self.entity = entity
        self.entity_id = str(entity_id)
        super().__init__(f"{entity} {entity_id} not found")
