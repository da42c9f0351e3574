from __future__ import annotations

import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from . import models
from .quantities import recompute_available

logger = logging.getLogger(__name__)


def reconcile_available_quantities(db: Session, *, commit: bool = True) -> Dict[str, object]:
    """
    Recompute `available_quantity` for every asset and persist any drift.

    Purely corrective and idempotent: a second run right after the first
    finds nothing to fix.
    """
    fixed_ids: List[int] = []
    assets = db.query(models.Asset).order_by(models.Asset.id.asc()).all()
    for asset in assets:
        correct = recompute_available(asset)
        if asset.available_quantity != correct:
            logger.info(
                "Fixing asset available quantity",
                extra={
                    "asset_id": asset.id,
                    "stored": asset.available_quantity,
                    "expected": correct,
                },
            )
            asset.available_quantity = correct
            fixed_ids.append(asset.id)

    if commit:
        db.commit()
    else:
        db.flush()

    summary = {"checked": len(assets), "fixed": len(fixed_ids), "fixed_asset_ids": fixed_ids}
    logger.info("Asset reconciliation finished", extra=summary)
    return summary
