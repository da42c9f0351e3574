"""
Quantity bookkeeping for asset records.

Available stock is always derived with one formula:

    available = quantity - reserved - damaged - missing

Site quantities are distributional only. Units deployed to a site are
already counted in `reserved_quantity`, so they are never subtracted again.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from . import models

SiteQuantities = Dict[str, int]


def available_from(quantity: int, reserved: int, damaged: int, missing: int) -> int:
    return (quantity or 0) - (reserved or 0) - (damaged or 0) - (missing or 0)


def recompute_available(
    asset: models.Asset,
    *,
    reserved: Optional[int] = None,
    damaged: Optional[int] = None,
    missing: Optional[int] = None,
) -> int:
    """
    Available quantity of `asset`, optionally with proposed counter values.

    Pure: neither reads nor writes anything except the given asset's fields.
    """
    return available_from(
        asset.quantity,
        asset.reserved_quantity if reserved is None else reserved,
        asset.damaged_count if damaged is None else damaged,
        asset.missing_count if missing is None else missing,
    )


def site_key(site_id) -> str:
    # JSON object keys are strings; integer site ids from callers must match.
    return str(site_id)


def read_site_quantities(asset: models.Asset) -> SiteQuantities:
    raw: Mapping = asset.site_quantities or {}
    return {site_key(k): int(v) for k, v in raw.items()}


def site_quantity(asset: models.Asset, site_id) -> int:
    return read_site_quantities(asset).get(site_key(site_id), 0)


def add_to_site(site_quantities: Mapping[str, int], site_id, qty: int) -> SiteQuantities:
    result = {site_key(k): int(v) for k, v in site_quantities.items()}
    key = site_key(site_id)
    new_qty = result.get(key, 0) + qty
    if new_qty <= 0:
        result.pop(key, None)
    else:
        result[key] = new_qty
    return result


def remove_from_site(site_quantities: Mapping[str, int], site_id, qty: int) -> SiteQuantities:
    """Subtract `qty` from one site, flooring at 0 and dropping emptied keys."""
    return add_to_site(site_quantities, site_id, -qty)


def apply_counters(
    asset: models.Asset,
    *,
    reserved: Optional[int] = None,
    damaged: Optional[int] = None,
    missing: Optional[int] = None,
    site_quantities: Optional[SiteQuantities] = None,
) -> None:
    """
    Write new counter values onto `asset` and refresh the derived field.

    Every ledger mutation goes through here so the invariant holds on flush.
    """
    if reserved is not None:
        asset.reserved_quantity = reserved
    if damaged is not None:
        asset.damaged_count = damaged
    if missing is not None:
        asset.missing_count = missing
    if site_quantities is not None:
        # Assign a fresh dict so the JSON column registers the change.
        asset.site_quantities = dict(site_quantities)
    asset.available_quantity = recompute_available(asset)
