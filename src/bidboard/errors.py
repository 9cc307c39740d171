"""Exception types raised by the bid board."""
from __future__ import annotations


class BidBoardError(Exception):
    """Base class for bid board errors."""


class NotFound(BidBoardError, LookupError):
    """Raised when an estimate or line item id is unknown and lookups are strict."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"Unknown {kind}: {key}")
        self.kind = kind
        self.key = key


class InvalidStatus(BidBoardError, ValueError):
    """Raised when a status outside the pipeline's four states is written."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid estimate status: {value!r}")
        self.value = value


class InvalidValue(BidBoardError, ValueError):
    """Raised for rejected field values or edits to derived fields."""


class AIServiceError(BidBoardError, RuntimeError):
    """Raised for any failure of the AI collaborator."""


__all__ = ["BidBoardError", "NotFound", "InvalidStatus", "InvalidValue", "AIServiceError"]
