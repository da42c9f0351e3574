from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum as SAEnum, Index, JSON, String, Text

from assetdb.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WaybillTypeEnum(str, enum.Enum):
    WAYBILL = "waybill"
    RETURN = "return"


class WaybillStatusEnum(str, enum.Enum):
    OUTSTANDING = "outstanding"
    SENT_TO_SITE = "sent_to_site"
    PARTIAL_RETURNED = "partial_returned"
    RETURN_COMPLETED = "return_completed"


class Waybill(Base):
    """
    Loan (`WB###`) or return (`RB###`) document.

    Line items live in the `items` JSON column; services convert them to
    `schemas.WaybillItem` on read and back on write.
    """

    __tablename__ = "waybills"

    id = Column(String(32), primary_key=True)
    waybill_type = Column(
        "type",
        SAEnum(WaybillTypeEnum, name="waybill_type_enum", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=WaybillTypeEnum.WAYBILL,
    )
    site_id = Column("siteId", String(64), nullable=False, index=True)
    return_to_site_id = Column("returnToSiteId", String(64), nullable=True)
    driver_name = Column("driverName", String(128), nullable=True)
    vehicle = Column(String(128), nullable=True)
    issue_date = Column("issueDate", DateTime(timezone=True), nullable=False, default=_utcnow)
    expected_return_date = Column("expectedReturnDate", DateTime(timezone=True), nullable=True)
    sent_to_site_date = Column(DateTime(timezone=True), nullable=True)
    purpose = Column(Text, nullable=False, default="")
    service = Column(String(64), nullable=True)
    status = Column(
        SAEnum(WaybillStatusEnum, name="waybill_status_enum", native_enum=False,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=WaybillStatusEnum.OUTSTANDING,
        index=True,
    )
    items = Column(JSON, nullable=False, default=list)
    created_by = Column("createdBy", String(128), nullable=True)
    created_at = Column("createdAt", DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column("updatedAt", DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_waybills_site_status", site_id, status),
        Index("ix_waybills_type_status", waybill_type, status),
    )

    def __repr__(self) -> str:
        return f"<Waybill id={self.id} type={self.waybill_type} status={self.status} site={self.site_id}>"
