"""
Domain exceptions for the stock ledger.

Every rejection raised by the ledger carries a machine-readable code, the
identity of the offending entity and, where it applies, the numeric
shortfall or cap that caused it.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Lookup Exceptions
class NotFoundError(LedgerError):
    """Referenced entity does not exist."""

    pass


class MaterialNotFoundError(NotFoundError):
    """Material not found in the ledger."""

    def __init__(self, material_id: str):
        super().__init__(
            f"Material not found: {material_id}",
            code="MATERIAL_NOT_FOUND",
            details={"material_id": material_id},
        )


class ProjectNotFoundError(NotFoundError):
    """Project not found in the ledger."""

    def __init__(self, project_id: str):
        super().__init__(
            f"Project not found: {project_id}",
            code="PROJECT_NOT_FOUND",
            details={"project_id": project_id},
        )


class BudgetLineNotFoundError(NotFoundError):
    """Material is not part of the project's budget."""

    def __init__(self, project_id: str, material_id: str):
        super().__init__(
            f"Material {material_id} is not budgeted in project {project_id}",
            code="BUDGET_LINE_NOT_FOUND",
            details={"project_id": project_id, "material_id": material_id},
        )


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidQuantityError(ValidationError):
    """Quantity is not an integer in the allowed range."""

    def __init__(self, quantity: Any, allow_zero: bool = False, material_id: str | None = None):
        expected = "a non-negative integer" if allow_zero else "a positive integer"
        super().__init__(
            field="quantity",
            message=f"Quantity must be {expected}",
            value=quantity,
        )
        self.code = "INVALID_QUANTITY"
        self.details["material_id"] = material_id


# Reservation Exceptions
class DuplicateLineError(LedgerError):
    """Material already present in a budget or movement."""

    def __init__(self, material_id: str, project_id: str | None = None):
        where = f"project {project_id}" if project_id else "this request"
        super().__init__(
            f"Material {material_id} is already listed in {where}",
            code="DUPLICATE_LINE",
            details={"material_id": material_id, "project_id": project_id},
        )


class InsufficientAvailabilityError(LedgerError):
    """Requested quantity exceeds what is free to reserve or withdraw."""

    def __init__(
        self,
        material_id: str,
        material_name: str,
        requested: int,
        available: int,
        code: str = "INSUFFICIENT_AVAILABILITY",
        message: str | None = None,
    ):
        shortfall = requested - available
        super().__init__(
            message
            or (
                f"Insufficient availability for {material_name}: requested {requested}, "
                f"available {available} (short by {shortfall})"
            ),
            code=code,
            details={
                "material_id": material_id,
                "material_name": material_name,
                "requested": requested,
                "available": available,
                "shortfall": shortfall,
            },
        )

    @property
    def shortfall(self) -> int:
        return self.details["shortfall"]


class ExceedsEffectiveAvailabilityError(InsufficientAvailabilityError):
    """Final usage exceeds stock left after other projects' reservations."""

    def __init__(
        self,
        material_id: str,
        material_name: str,
        requested: int,
        effective_cap: int,
        project_id: str,
    ):
        super().__init__(
            material_id=material_id,
            material_name=material_name,
            requested=requested,
            available=effective_cap,
            code="EXCEEDS_EFFECTIVE_AVAILABILITY",
            message=(
                f"Final quantity for {material_name} ({requested}) exceeds the "
                f"effective availability ({effective_cap}) for project {project_id}"
            ),
        )
        self.details["effective_cap"] = effective_cap
        self.details["project_id"] = project_id


class InvalidStateTransitionError(LedgerError):
    """Project is not in a state that allows the operation."""

    def __init__(self, project_id: str, status: str, operation: str):
        super().__init__(
            f"Cannot {operation} project {project_id} while it is {status}",
            code="INVALID_STATE_TRANSITION",
            details={"project_id": project_id, "status": status, "operation": operation},
        )


class HasReservationsError(LedgerError):
    """Material still has quantities reserved by pending projects."""

    def __init__(self, material_id: str, material_name: str, reserved: int):
        super().__init__(
            f"Material {material_name} cannot be removed: {reserved} reserved "
            f"by pending projects",
            code="HAS_RESERVATIONS",
            details={
                "material_id": material_id,
                "material_name": material_name,
                "reserved": reserved,
            },
        )


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class ConfigurationError(LedgerError):
    """Configuration error."""

    pass
