"""Validation errors raised before items and capacities reach the selector."""


class ItemValidationError(ValueError):
    """Raised when an item's fields cannot form a valid selector input."""


class CapacityValidationError(ValueError):
    """Raised when a capacity or budget is not a finite number."""


class ItemFileError(ValueError):
    """Raised when an uploaded item file violates the expected layout."""
