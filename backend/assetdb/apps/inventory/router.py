from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from assetdb.database import get_db

from . import movements, reconciliation, schemas, services

router = APIRouter(
    prefix="/inventory",
    tags=["inventory"],
)


@router.post(
    "/assets",
    response_model=schemas.AssetRead,
    status_code=status.HTTP_201_CREATED,
)
def create_asset(
    payload: schemas.AssetCreate,
    db: Session = Depends(get_db),
):
    asset = services.create_asset(db, payload=payload)
    db.commit()
    db.refresh(asset)
    return asset


@router.get(
    "/assets",
    response_model=List[schemas.AssetRead],
)
def list_assets(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_assets(db, skip=skip, limit=limit)


@router.get(
    "/assets/{asset_id}",
    response_model=schemas.AssetRead,
)
def get_asset(
    asset_id: int,
    db: Session = Depends(get_db),
):
    asset = services.get_asset(db, asset_id)
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found.")
    return asset


@router.get(
    "/sites/{site_id}/stock",
    response_model=List[schemas.SiteStockItem],
)
def site_stock(
    site_id: str,
    db: Session = Depends(get_db),
):
    return services.site_inventory(db, site_id=site_id)


@router.get(
    "/movements",
    response_model=List[schemas.SiteTransactionRead],
)
def list_movements(
    site_id: Optional[str] = None,
    asset_id: Optional[int] = None,
    reference_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return movements.list_movements(
        db,
        site_id=site_id,
        asset_id=asset_id,
        reference_id=reference_id,
        skip=skip,
        limit=limit,
    )


@router.post(
    "/reconcile",
    response_model=schemas.ReconciliationSummary,
)
def reconcile(
    db: Session = Depends(get_db),
):
    return reconciliation.reconcile_available_quantities(db)
