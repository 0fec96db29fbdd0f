"""
Custom exception hierarchy for teach_tree.

The mining pipeline itself is total over its inputs: malformed ids,
unknown labels and unmatched patterns all degrade to empty or partial
results. Exceptions are reserved for invalid configuration and invalid
listing requests made by callers.
"""


class TeachTreeError(Exception):
    """Base exception for all teach_tree errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(TeachTreeError):
    """Raised when a configuration option is out of range."""

    def __init__(self, option: str, value: object, reason: str):
        super().__init__(
            f"Invalid value for {option}: {value!r} ({reason})",
            details={"option": option, "value": value, "reason": reason},
        )
        self.option = option


# =============================================================================
# Listing Exceptions
# =============================================================================


class InvalidSortError(TeachTreeError):
    """Raised when the pattern table is asked to sort by an unknown field or order."""

    def __init__(self, value: str, allowed: tuple[str, ...]):
        super().__init__(
            f"Unsupported sort option {value!r}",
            details={"value": value, "allowed": list(allowed)},
        )
        self.value = value


class InvalidPageActionError(TeachTreeError):
    """Raised when the pattern table is asked for an unknown page move."""

    def __init__(self, value: str, allowed: tuple[str, ...]):
        super().__init__(
            f"Unsupported page action {value!r}",
            details={"value": value, "allowed": list(allowed)},
        )
        self.value = value
