"""
Failure values raised by the catalog core.

Every failure is a ``CatalogError`` tagged with one ``ErrorKind``. The set of
kinds is closed, so the HTTP layer can map each one exhaustively.
"""
import enum
from typing import Any, Dict, List


class ErrorKind(str, enum.Enum):
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    VALIDATION_FAILED = "validation_failed"
    STORE_UNAVAILABLE = "store_unavailable"


# Only transient storage failures are safe to retry
RETRYABLE_KINDS = frozenset({ErrorKind.STORE_UNAVAILABLE})


class CatalogError(Exception):
    def __init__(self, kind: ErrorKind, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.details}

    def __repr__(self):
        return f"<CatalogError(kind={self.kind.value}, message='{self.message}', details={self.details})>"


def invalid_argument(message: str, **details: Any) -> CatalogError:
    return CatalogError(ErrorKind.INVALID_ARGUMENT, message, details)


def not_found(hotel_id: str) -> CatalogError:
    return CatalogError(ErrorKind.NOT_FOUND, "Hotel not found", {"hotel_id": hotel_id})


def insufficient_inventory(hotel_id: str, requested: int, remaining: int) -> CatalogError:
    return CatalogError(
        ErrorKind.INSUFFICIENT_INVENTORY,
        "Not enough available rooms",
        {"hotel_id": hotel_id, "requested": requested, "remaining": remaining},
    )


def validation_failed(fields: Dict[str, List[str]]) -> CatalogError:
    """``fields`` maps a dotted field path to every message raised for it."""
    return CatalogError(ErrorKind.VALIDATION_FAILED, "Validation failed", {"fields": fields})


def store_unavailable(reason: str) -> CatalogError:
    return CatalogError(ErrorKind.STORE_UNAVAILABLE, "Catalog store unavailable", {"reason": reason})
