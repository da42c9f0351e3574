from __future__ import annotations

from typing import Optional


# ---------------------------------------------------------------------------
# Ledger errors
# ---------------------------------------------------------------------------


class LedgerError(Exception):
    """Base for every failure a ledger operation can report to its caller."""

    code = "ledger_error"

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class NotFound(LedgerError):
    code = "not_found"


class AssetNotFound(NotFound):
    code = "asset_not_found"

    def __init__(self, asset_id) -> None:
        super().__init__(f"Asset with ID {asset_id} not found")
        self.asset_id = asset_id


class WaybillNotFound(NotFound):
    code = "waybill_not_found"

    def __init__(self, waybill_id: str) -> None:
        super().__init__(f"Waybill {waybill_id} not found")
        self.waybill_id = waybill_id


class InsufficientQuantity(LedgerError):
    """Stock, site stock or reservation would go negative."""

    code = "insufficient_quantity"


class DuplicateId(LedgerError):
    """Caller-supplied waybill id already exists."""

    code = "duplicate_id"


class AllocatorExhausted(DuplicateId):
    """No free sequential id within the attempt budget."""

    code = "allocator_exhausted"


class InvalidWaybillType(LedgerError):
    """A return-only operation was invoked on an outbound waybill."""

    code = "invalid_waybill_type"


class ValidationError(LedgerError):
    code = "validation_error"


class InvalidStatusTransition(LedgerError):
    code = "invalid_transition"


__all__ = [
    "AllocatorExhausted",
    "AssetNotFound",
    "DuplicateId",
    "InsufficientQuantity",
    "InvalidStatusTransition",
    "InvalidWaybillType",
    "LedgerError",
    "NotFound",
    "ValidationError",
    "WaybillNotFound",
]
