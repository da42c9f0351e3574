from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    JSON,
    String,
    Text,
)

from assetdb.database import Base
from assetdb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MovementDirectionEnum(str, enum.Enum):
    IN = "in"
    OUT = "out"


class MovementConditionEnum(str, enum.Enum):
    GOOD = "good"
    DAMAGED = "damaged"
    MISSING = "missing"


class MovementKindEnum(str, enum.Enum):
    WAYBILL = "waybill"
    RETURN = "return"
    ADJUSTMENT = "adjustment"


class Asset(Base):
    """
    Quantity state of one owned asset.

    `available_quantity` is derived (see `quantities.recompute_available`) and
    only written by ledger operations and the reconciliation pass.
    """

    __tablename__ = "assets"
    __table_args__ = (Index("ix_assets_name", "name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    unit = Column("unit_of_measurement", String(32), nullable=False, default="pcs")
    category = Column(String(64), nullable=True)
    asset_type = Column("type", String(32), nullable=True)

    quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)
    damaged_count = Column(Integer, nullable=False, default=0)
    missing_count = Column(Integer, nullable=False, default=0)
    site_quantities = Column(JSON, nullable=False, default=dict)
    available_quantity = Column(Integer, nullable=False, default=0)

    low_stock_level = Column(Integer, nullable=False, default=10)
    critical_stock_level = Column(Integer, nullable=False, default=5)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<Asset id={self.id} name={self.name!r} qty={self.quantity} "
            f"reserved={self.reserved_quantity} available={self.available_quantity}>"
        )


class SiteTransaction(Base):
    """
    Append-only movement log of quantities entering or leaving a site.
    """

    __tablename__ = "site_transactions"
    __table_args__ = (
        Index("ix_site_transactions_site_time", "site_id", "created_at"),
        Index("ix_site_transactions_reference", "reference_type", "reference_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    site_id = Column(String(64), nullable=False, index=True)
    asset_id = Column(Integer, nullable=False, index=True)
    asset_name = Column(String(255), nullable=False)
    transaction_type = Column(
        SAEnum(MovementKindEnum, name="site_transaction_kind_enum", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    quantity = Column(Integer, nullable=False)
    direction = Column(
        "type",
        SAEnum(MovementDirectionEnum, name="site_transaction_direction_enum", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    reference_id = Column(String(64), nullable=False)
    reference_type = Column(String(64), nullable=False)
    condition = Column(
        SAEnum(MovementConditionEnum, name="site_transaction_condition_enum", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )
    notes = Column(Text, nullable=True)
    created_by = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    def __repr__(self) -> str:
        return (
            f"<SiteTransaction id={self.id} site={self.site_id} asset={self.asset_id} "
            f"{self.direction.value if self.direction else None} qty={self.quantity}>"
        )
