"""Exceptions raised for malformed or invalid plan input.

Both subclass ``ValueError`` so callers may catch input problems generically.
The scheduling and synthesis engines never raise these themselves.
"""

from __future__ import annotations

from typing import Any, Optional


class PlanFormatError(ValueError):
    """Raised when a persisted plan file cannot be decoded.

    Attributes:
        line: 1-based line number of the offending (non-blank) line, if known.
    """

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class PlanValidationError(ValueError):
    """Raised when a plan fails input-shape validation.

    Attributes:
        field: Name of the PlanData field that failed validation.
        value: The offending value.
        reason: Explanation of why the value is invalid.
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}. Got: {value!r}")
