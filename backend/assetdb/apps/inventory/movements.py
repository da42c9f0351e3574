from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)


def record_movement(
    db: Session,
    *,
    site_id: str,
    asset: models.Asset,
    quantity: int,
    direction: models.MovementDirectionEnum,
    kind: models.MovementKindEnum,
    reference_id: str,
    reference_type: str,
    condition: Optional[models.MovementConditionEnum] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> models.SiteTransaction:
    entry = models.SiteTransaction(
        site_id=str(site_id),
        asset_id=asset.id,
        asset_name=asset.name,
        transaction_type=kind,
        quantity=quantity,
        direction=direction,
        reference_id=reference_id,
        reference_type=reference_type,
        condition=condition,
        notes=notes,
        created_by=created_by,
    )
    db.add(entry)
    db.flush()
    return entry


def delete_for_reference(db: Session, *, reference_id: str, reference_type: str) -> int:
    """
    Remove the movement rows written for one document.

    Only the waybill reversal path calls this; the log is otherwise never edited.
    """
    deleted = (
        db.query(models.SiteTransaction)
        .filter(
            models.SiteTransaction.reference_id == reference_id,
            models.SiteTransaction.reference_type == reference_type,
        )
        .delete(synchronize_session=False)
    )
    logger.info(
        "Removed movement entries",
        extra={"reference_id": reference_id, "reference_type": reference_type, "count": deleted},
    )
    return deleted


def list_movements(
    db: Session,
    *,
    site_id: Optional[str] = None,
    asset_id: Optional[int] = None,
    reference_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.SiteTransaction]:
    query = db.query(models.SiteTransaction)
    if site_id is not None:
        query = query.filter(models.SiteTransaction.site_id == str(site_id))
    if asset_id is not None:
        query = query.filter(models.SiteTransaction.asset_id == asset_id)
    if reference_id is not None:
        query = query.filter(models.SiteTransaction.reference_id == reference_id)
    return (
        query.order_by(models.SiteTransaction.created_at.asc(), models.SiteTransaction.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )
