from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from assetdb.errors import AssetNotFound

from . import models, schemas
from .quantities import recompute_available, site_key


def _parse_asset_id(asset_id) -> int:
    try:
        return int(asset_id)
    except (TypeError, ValueError):
        raise AssetNotFound(asset_id)


def get_asset(db: Session, asset_id) -> Optional[models.Asset]:
    try:
        key = int(asset_id)
    except (TypeError, ValueError):
        return None
    return db.query(models.Asset).filter(models.Asset.id == key).first()


def get_asset_or_raise(db: Session, asset_id) -> models.Asset:
    asset = db.query(models.Asset).filter(models.Asset.id == _parse_asset_id(asset_id)).first()
    if not asset:
        raise AssetNotFound(asset_id)
    return asset


def list_assets(db: Session, *, skip: int = 0, limit: int = 100) -> List[models.Asset]:
    return db.query(models.Asset).order_by(models.Asset.id.asc()).offset(skip).limit(limit).all()


def create_asset(db: Session, *, payload: schemas.AssetCreate) -> models.Asset:
    """
    Register a new asset with an initial owned quantity.

    Counters start at zero; the derived available quantity is set before flush.
    """
    asset = models.Asset(
        name=payload.name.strip(),
        description=payload.description,
        unit=payload.unit,
        category=payload.category,
        asset_type=payload.asset_type,
        quantity=payload.quantity,
        reserved_quantity=0,
        damaged_count=0,
        missing_count=0,
        site_quantities={},
        low_stock_level=payload.low_stock_level,
        critical_stock_level=payload.critical_stock_level,
    )
    asset.available_quantity = recompute_available(asset)
    db.add(asset)
    db.flush()
    return asset


def site_inventory(db: Session, *, site_id: str) -> List[schemas.SiteStockItem]:
    key = site_key(site_id)
    items: List[schemas.SiteStockItem] = []
    for asset in list_assets(db, limit=None):
        qty = int((asset.site_quantities or {}).get(key, 0))
        if qty <= 0:
            continue
        items.append(
            schemas.SiteStockItem(
                asset_id=asset.id,
                asset_name=asset.name,
                unit=asset.unit,
                category=asset.category,
                quantity=qty,
                last_updated=asset.updated_at,
            )
        )
    return items
