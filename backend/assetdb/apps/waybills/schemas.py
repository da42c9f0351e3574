from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from assetdb.apps.inventory.models import MovementConditionEnum

from . import models


class ReturnBreakdown(BaseModel):
    good: int = 0
    damaged: int = 0
    missing: int = 0

    @property
    def total(self) -> int:
        return self.good + self.damaged + self.missing


class WaybillItemCreate(BaseModel):
    asset_id: int
    asset_name: str = ""
    quantity: int = Field(..., gt=0)


class WaybillItem(WaybillItemCreate):
    """Line item as persisted inside `waybills.items`."""

    returned_quantity: int = 0
    return_breakdown: ReturnBreakdown = Field(default_factory=ReturnBreakdown)
    status: models.WaybillStatusEnum = models.WaybillStatusEnum.OUTSTANDING


class WaybillBase(BaseModel):
    site_id: str
    return_to_site_id: Optional[str] = None
    driver_name: Optional[str] = None
    vehicle: Optional[str] = None
    issue_date: Optional[datetime] = None
    expected_return_date: Optional[datetime] = None
    purpose: str = ""
    service: Optional[str] = None
    created_by: Optional[str] = None


class WaybillCreate(WaybillBase):
    id: Optional[str] = None
    waybill_type: models.WaybillTypeEnum = models.WaybillTypeEnum.WAYBILL
    items: List[WaybillItemCreate] = Field(..., min_length=1)


class WaybillUpdate(BaseModel):
    """Fields left as None keep their stored value."""

    site_id: Optional[str] = None
    return_to_site_id: Optional[str] = None
    driver_name: Optional[str] = None
    vehicle: Optional[str] = None
    issue_date: Optional[datetime] = None
    expected_return_date: Optional[datetime] = None
    purpose: Optional[str] = None
    service: Optional[str] = None
    items: Optional[List[WaybillItemCreate]] = Field(None, min_length=1)


class ReturnLine(BaseModel):
    asset_id: int
    asset_name: str = ""
    quantity: int = Field(..., gt=0)
    condition: MovementConditionEnum = MovementConditionEnum.GOOD


class ReturnProcessRequest(BaseModel):
    waybill_id: str
    items: List[ReturnLine] = Field(..., min_length=1)
    created_by: Optional[str] = None


class ReturnWaybillCreate(WaybillBase):
    items: List[ReturnLine] = Field(..., min_length=1)


class SendToSiteRequest(BaseModel):
    sent_to_site_date: Optional[datetime] = None


class WaybillRead(WaybillBase):
    id: str
    waybill_type: models.WaybillTypeEnum
    status: models.WaybillStatusEnum
    items: List[WaybillItem]
    issue_date: datetime
    sent_to_site_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionResult(BaseModel):
    """Outcome of one ledger operation; failures carry a code and message."""

    success: bool
    waybill_id: Optional[str] = None
    error: Optional[str] = None
    code: Optional[str] = None
