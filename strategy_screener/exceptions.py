"""
Custom exceptions for the options strategy screener.

Construction errors (bad kind, action or leg values) are contract violations
and propagate. Malformed chain cells are recoverable: the combination
generator skips the affected candidate and keeps going.
"""

from typing import Any, List


class ScreenerError(Exception):
    """Base exception for all screener errors."""

    pass


class InvalidKindError(ScreenerError, ValueError):
    """Exception raised when an option kind is not 'call' or 'put'."""

    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(f"option kind must be 'call' or 'put', got {kind!r}")


class InvalidActionError(ScreenerError, ValueError):
    """Exception raised when a leg action is not 'buy' or 'sell'."""

    def __init__(self, action: Any) -> None:
        self.action = action
        super().__init__(f"action must be 'buy' or 'sell', got {action!r}")


class InvalidPositionError(ScreenerError, ValueError):
    """Exception raised when strike, premium or quantity is out of range."""

    pass


class MalformedCellValueError(ScreenerError):
    """Exception raised when a chain cell cannot be read as a number."""

    def __init__(self, field: str, index: int, value: Any = None) -> None:
        self.field = field
        self.index = index
        self.value = value
        super().__init__(f"Malformed {field} value at row {index}: {value!r}")


class ChainSchemaError(ScreenerError):
    """Exception raised when the chain table does not match its schema."""

    def __init__(self, missing_fields: List[str], details: str = "") -> None:
        self.missing_fields = missing_fields
        message = f"Chain table is missing fields: {', '.join(missing_fields)}"
        if details:
            message += f" ({details})"
        super().__init__(message)


class EmptyChainError(ChainSchemaError):
    """Exception raised when the chain table has no rows."""

    def __init__(self) -> None:
        ScreenerError.__init__(self, "Chain table is empty (no rows)")
        self.missing_fields = []


class ConfigError(ScreenerError):
    """Exception raised when a screener config file is invalid."""

    def __init__(self, file_path: str, details: str = "") -> None:
        self.file_path = file_path
        message = f"Invalid screener config: {file_path}"
        if details:
            message += f": {details}"
        super().__init__(message)


class ChainLoadError(ScreenerError):
    """Exception raised when a chain file cannot be read."""

    def __init__(self, file_path: str, details: str = "") -> None:
        self.file_path = file_path
        message = f"Failed to load chain file: {file_path}"
        if details:
            message += f": {details}"
        super().__init__(message)
