from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from assetdb.database import get_db

from . import models, schemas, services

router = APIRouter(
    prefix="",
    tags=["waybills"],
)

_ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "asset_not_found": status.HTTP_404_NOT_FOUND,
    "waybill_not_found": status.HTTP_404_NOT_FOUND,
    "insufficient_quantity": status.HTTP_409_CONFLICT,
    "duplicate_id": status.HTTP_409_CONFLICT,
    "allocator_exhausted": status.HTTP_409_CONFLICT,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "missing_requirements": status.HTTP_409_CONFLICT,
    "invalid_waybill_type": status.HTTP_400_BAD_REQUEST,
    "validation_error": status.HTTP_400_BAD_REQUEST,
}


def _raise_for_failure(result: schemas.TransactionResult) -> None:
    if result.success:
        return
    raise HTTPException(
        status_code=_ERROR_STATUS.get(result.code or "", status.HTTP_400_BAD_REQUEST),
        detail={"code": result.code, "message": result.error},
    )


def _load(db: Session, waybill_id: str) -> models.Waybill:
    waybill = services.get_waybill(db, waybill_id)
    if not waybill:
        raise HTTPException(status_code=404, detail="Waybill not found.")
    return waybill


@router.post(
    "/waybills",
    response_model=schemas.WaybillRead,
    status_code=status.HTTP_201_CREATED,
)
def create_waybill(
    payload: schemas.WaybillCreate,
    db: Session = Depends(get_db),
):
    result = services.create_waybill(db, payload)
    _raise_for_failure(result)
    return _load(db, result.waybill_id)


@router.post(
    "/return-waybills",
    response_model=schemas.WaybillRead,
    status_code=status.HTTP_201_CREATED,
)
def create_return_waybill(
    payload: schemas.ReturnWaybillCreate,
    db: Session = Depends(get_db),
):
    result = services.create_return_waybill(db, payload)
    _raise_for_failure(result)
    return _load(db, result.waybill_id)


@router.get(
    "/waybills",
    response_model=List[schemas.WaybillRead],
)
def list_waybills(
    waybill_type: Optional[models.WaybillTypeEnum] = None,
    waybill_status: Optional[models.WaybillStatusEnum] = None,
    site_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return services.list_waybills(
        db,
        waybill_type=waybill_type,
        status=waybill_status,
        site_id=site_id,
        skip=skip,
        limit=limit,
    )


@router.get(
    "/waybills/{waybill_id}",
    response_model=schemas.WaybillRead,
)
def get_waybill(
    waybill_id: str,
    db: Session = Depends(get_db),
):
    return _load(db, waybill_id)


@router.post(
    "/waybills/{waybill_id}/send-to-site",
    response_model=schemas.WaybillRead,
)
def send_to_site(
    waybill_id: str,
    payload: Optional[schemas.SendToSiteRequest] = None,
    db: Session = Depends(get_db),
):
    result = services.send_to_site(
        db,
        waybill_id,
        sent_to_site_date=payload.sent_to_site_date if payload else None,
    )
    _raise_for_failure(result)
    return _load(db, waybill_id)


@router.post(
    "/waybills/{waybill_id}/returns",
    response_model=schemas.WaybillRead,
)
def process_return(
    waybill_id: str,
    payload: schemas.ReturnProcessRequest,
    db: Session = Depends(get_db),
):
    if payload.waybill_id != waybill_id:
        raise HTTPException(status_code=400, detail="waybill_id in body does not match the path.")
    result = services.process_return(db, payload)
    _raise_for_failure(result)
    return _load(db, waybill_id)


@router.put(
    "/waybills/{waybill_id}",
    response_model=schemas.WaybillRead,
)
def update_waybill(
    waybill_id: str,
    payload: schemas.WaybillUpdate,
    db: Session = Depends(get_db),
):
    result = services.update_waybill(db, waybill_id, payload)
    _raise_for_failure(result)
    return _load(db, waybill_id)


@router.delete(
    "/waybills/{waybill_id}",
    response_model=schemas.TransactionResult,
)
def delete_waybill(
    waybill_id: str,
    db: Session = Depends(get_db),
):
    result = services.delete_waybill(db, waybill_id)
    _raise_for_failure(result)
    return result
