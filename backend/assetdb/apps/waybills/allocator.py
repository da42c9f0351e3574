from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from assetdb.errors import AllocatorExhausted

from . import models

logger = logging.getLogger(__name__)

WAYBILL_PREFIX = "WB"
RETURN_PREFIX = "RB"
MAX_ATTEMPTS = 10_000


def prefix_for(waybill_type: models.WaybillTypeEnum) -> str:
    if waybill_type == models.WaybillTypeEnum.RETURN:
        return RETURN_PREFIX
    return WAYBILL_PREFIX


def waybill_id_exists(db: Session, waybill_id: str) -> bool:
    return db.query(models.Waybill.id).filter(models.Waybill.id == waybill_id).first() is not None


@dataclass(frozen=True)
class SequentialIdAllocator:
    """
    Hands out `PREFIX001`, `PREFIX002`, ... skipping ids already in use.

    The existence check runs on the caller's Session, so the check and the
    insert that follows belong to the same transaction.
    """

    prefix: str
    width: int = 3
    max_attempts: int = MAX_ATTEMPTS

    def format(self, counter: int) -> str:
        return f"{self.prefix}{counter:0{self.width}d}"

    def allocate(self, db: Session) -> str:
        for counter in range(1, self.max_attempts + 1):
            candidate = self.format(counter)
            if not waybill_id_exists(db, candidate):
                return candidate
        logger.error(
            "Waybill id allocation exhausted",
            extra={"prefix": self.prefix, "max_attempts": self.max_attempts},
        )
        raise AllocatorExhausted(
            f"Unable to generate unique waybill ID after {self.max_attempts} attempts"
        )


def allocator_for(waybill_type: models.WaybillTypeEnum) -> SequentialIdAllocator:
    return SequentialIdAllocator(prefix=prefix_for(waybill_type))
