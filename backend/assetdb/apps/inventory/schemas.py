from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from . import models


class AssetCreate(BaseModel):
    name: str
    description: Optional[str] = None
    unit: str = "pcs"
    category: Optional[str] = None
    asset_type: Optional[str] = None
    quantity: int = Field(0, ge=0)
    low_stock_level: int = Field(10, ge=0)
    critical_stock_level: int = Field(5, ge=0)


class AssetRead(AssetCreate):
    id: int
    reserved_quantity: int
    damaged_count: int
    missing_count: int
    site_quantities: Dict[str, int] = Field(default_factory=dict)
    available_quantity: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SiteStockItem(BaseModel):
    asset_id: int
    asset_name: str
    unit: str
    category: Optional[str] = None
    quantity: int
    last_updated: Optional[datetime] = None


class SiteTransactionRead(BaseModel):
    id: str
    site_id: str
    asset_id: int
    asset_name: str
    transaction_type: models.MovementKindEnum
    quantity: int
    direction: models.MovementDirectionEnum
    reference_id: str
    reference_type: str
    condition: Optional[models.MovementConditionEnum] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReconciliationSummary(BaseModel):
    checked: int
    fixed: int
    fixed_asset_ids: List[int] = Field(default_factory=list)
