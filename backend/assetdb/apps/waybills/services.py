from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from assetdb.apps.inventory import models as inventory_models
from assetdb.apps.inventory.movements import delete_for_reference, record_movement
from assetdb.apps.inventory.quantities import (
    add_to_site,
    apply_counters,
    read_site_quantities,
    recompute_available,
    remove_from_site,
    site_quantity,
)
from assetdb.apps.inventory.services import get_asset_or_raise
from assetdb.apps.workflow import apply_transition
from assetdb.errors import (
    DuplicateId,
    InsufficientQuantity,
    InvalidWaybillType,
    LedgerError,
    ValidationError,
    WaybillNotFound,
)

from . import models, schemas
from .allocator import allocator_for, waybill_id_exists

logger = logging.getLogger(__name__)

WAYBILL_REFERENCE = "waybill"
RETURN_REFERENCE = "return_waybill"

_DESCRIPTIVE_FIELDS = (
    "site_id",
    "return_to_site_id",
    "driver_name",
    "vehicle",
    "issue_date",
    "expected_return_date",
    "purpose",
    "service",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Persistence boundary for line items
# ---------------------------------------------------------------------------


def read_items(waybill: models.Waybill) -> List[schemas.WaybillItem]:
    return [schemas.WaybillItem.model_validate(raw) for raw in (waybill.items or [])]


def write_items(waybill: models.Waybill, items: Iterable[schemas.WaybillItem]) -> None:
    waybill.items = [item.model_dump(mode="json") for item in items]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_waybill(db: Session, waybill_id: str) -> Optional[models.Waybill]:
    return db.query(models.Waybill).filter(models.Waybill.id == waybill_id).first()


def list_waybills(
    db: Session,
    *,
    waybill_type: Optional[models.WaybillTypeEnum] = None,
    status: Optional[models.WaybillStatusEnum] = None,
    site_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Waybill]:
    query = db.query(models.Waybill)
    if waybill_type is not None:
        query = query.filter(models.Waybill.waybill_type == waybill_type)
    if status is not None:
        query = query.filter(models.Waybill.status == status)
    if site_id is not None:
        query = query.filter(models.Waybill.site_id == str(site_id))
    return query.order_by(models.Waybill.created_at.desc(), models.Waybill.id.desc()).offset(skip).limit(limit).all()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_waybill_or_raise(db: Session, waybill_id: str) -> models.Waybill:
    waybill = get_waybill(db, waybill_id)
    if not waybill:
        raise WaybillNotFound(waybill_id)
    return waybill


def _quantities_by_asset(lines: Iterable) -> "OrderedDict[int, int]":
    totals: "OrderedDict[int, int]" = OrderedDict()
    for line in lines:
        totals[line.asset_id] = totals.get(line.asset_id, 0) + line.quantity
    return totals


def _reserve(asset: inventory_models.Asset, qty: int) -> None:
    new_reserved = asset.reserved_quantity + qty
    if recompute_available(asset, reserved=new_reserved) < 0:
        raise InsufficientQuantity(
            f"Insufficient quantity for asset {asset.name}. "
            f"Available: {recompute_available(asset)}, Requested: {qty}"
        )
    apply_counters(asset, reserved=new_reserved)


def _release(asset: inventory_models.Asset, qty: int) -> None:
    apply_counters(asset, reserved=max(0, asset.reserved_quantity - qty))


def _check_site_stock(asset: inventory_models.Asset, site_id: str, qty: int) -> None:
    at_site = site_quantity(asset, site_id)
    if at_site < qty:
        raise InsufficientQuantity(
            f"Insufficient quantity at site for asset {asset.name}. "
            f"Available at site: {at_site}, Requested: {qty}"
        )


def _build_items(
    lines: Iterable[schemas.WaybillItemCreate],
    assets: Dict[int, inventory_models.Asset],
) -> List[schemas.WaybillItem]:
    return [
        schemas.WaybillItem(
            asset_id=line.asset_id,
            asset_name=line.asset_name or assets[line.asset_id].name,
            quantity=line.quantity,
        )
        for line in lines
    ]


def _transition(waybill: models.Waybill, to_status: models.WaybillStatusEnum, items: List[schemas.WaybillItem]) -> None:
    apply_transition(
        workflow_name=waybill.waybill_type.value,
        entity_id=waybill.id,
        from_state=waybill.status.value,
        to_state=to_status.value,
        before_obj={"status": waybill.status.value},
        after_obj={"status": to_status.value, "items": items},
    )
    waybill.status = to_status


def _run(db: Session, operation: str, fn: Callable[[], str], **context) -> schemas.TransactionResult:
    """
    Execute one ledger operation as a single unit of work.

    Commits when `fn` returns; rolls back on any exception. Ledger errors become
    a failed `TransactionResult`, anything else is re-raised after rollback.
    """
    try:
        waybill_id = fn()
        db.commit()
    except LedgerError as exc:
        db.rollback()
        logger.warning(
            "Ledger operation rejected",
            extra={"operation": operation, "code": exc.code, "error": exc.message, **context},
        )
        return schemas.TransactionResult(
            success=False,
            waybill_id=context.get("waybill_id"),
            error=exc.message,
            code=exc.code,
        )
    except Exception:
        db.rollback()
        logger.exception("Ledger operation failed", extra={"operation": operation, **context})
        raise
    logger.info("Ledger operation committed", extra={"operation": operation, **context, "waybill_id": waybill_id})
    return schemas.TransactionResult(success=True, waybill_id=waybill_id)


# ---------------------------------------------------------------------------
# Return settlement (shared by process_return and create_return_waybill)
# ---------------------------------------------------------------------------


def _summarise_return(lines: Iterable[schemas.ReturnLine]) -> "OrderedDict[int, schemas.ReturnBreakdown]":
    summary: "OrderedDict[int, schemas.ReturnBreakdown]" = OrderedDict()
    for line in lines:
        breakdown = summary.setdefault(line.asset_id, schemas.ReturnBreakdown())
        if line.condition == inventory_models.MovementConditionEnum.DAMAGED:
            breakdown.damaged += line.quantity
        elif line.condition == inventory_models.MovementConditionEnum.MISSING:
            breakdown.missing += line.quantity
        else:
            breakdown.good += line.quantity
    return summary


def _display_condition(breakdown: schemas.ReturnBreakdown) -> inventory_models.MovementConditionEnum:
    if breakdown.damaged > 0:
        return inventory_models.MovementConditionEnum.DAMAGED
    if breakdown.missing > 0:
        return inventory_models.MovementConditionEnum.MISSING
    return inventory_models.MovementConditionEnum.GOOD


def _apply_returned(items: List[schemas.WaybillItem], asset_id: int, breakdown: schemas.ReturnBreakdown) -> None:
    """Spread one asset's returned units over its open line items, good first."""
    pending = {"good": breakdown.good, "damaged": breakdown.damaged, "missing": breakdown.missing}
    for item in items:
        if item.asset_id != asset_id:
            continue
        room = item.quantity - item.returned_quantity
        if room <= 0:
            continue
        for condition in ("good", "damaged", "missing"):
            take = min(room, pending[condition])
            if take <= 0:
                continue
            pending[condition] -= take
            room -= take
            item.returned_quantity += take
            setattr(item.return_breakdown, condition, getattr(item.return_breakdown, condition) + take)
        item.status = (
            models.WaybillStatusEnum.RETURN_COMPLETED
            if item.returned_quantity >= item.quantity
            else models.WaybillStatusEnum.PARTIAL_RETURNED
        )


def _settle_return(
    db: Session,
    *,
    waybill: models.Waybill,
    summary: "OrderedDict[int, schemas.ReturnBreakdown]",
    created_by: Optional[str] = None,
) -> None:
    items = read_items(waybill)

    for asset_id, breakdown in summary.items():
        remaining = sum(i.quantity - i.returned_quantity for i in items if i.asset_id == asset_id)
        if not any(i.asset_id == asset_id for i in items):
            raise ValidationError(f"Asset {asset_id} is not on waybill {waybill.id}")
        if breakdown.total > remaining:
            raise ValidationError(
                f"Return quantity for asset {asset_id} exceeds remaining quantity on waybill "
                f"{waybill.id}. Remaining: {remaining}, Returned: {breakdown.total}"
            )
        # Another return may have settled the same site stock since this one was created.
        _check_site_stock(get_asset_or_raise(db, asset_id), waybill.site_id, breakdown.total)

    for asset_id, breakdown in summary.items():
        _apply_returned(items, asset_id, breakdown)

    all_returned = all(i.returned_quantity >= i.quantity for i in items)
    target = models.WaybillStatusEnum.RETURN_COMPLETED if all_returned else models.WaybillStatusEnum.PARTIAL_RETURNED
    _transition(waybill, target, items)

    for asset_id, breakdown in summary.items():
        asset = get_asset_or_raise(db, asset_id)
        total = breakdown.total
        apply_counters(
            asset,
            reserved=max(0, asset.reserved_quantity - total),
            damaged=asset.damaged_count + breakdown.damaged,
            missing=asset.missing_count + breakdown.missing,
            site_quantities=remove_from_site(read_site_quantities(asset), waybill.site_id, total),
        )
        record_movement(
            db,
            site_id=waybill.site_id,
            asset=asset,
            quantity=total,
            direction=inventory_models.MovementDirectionEnum.OUT,
            kind=inventory_models.MovementKindEnum.RETURN,
            reference_id=waybill.id,
            reference_type=RETURN_REFERENCE,
            condition=_display_condition(breakdown),
            created_by=created_by,
        )

    write_items(waybill, items)
    db.flush()


# ---------------------------------------------------------------------------
# Ledger operations
# ---------------------------------------------------------------------------


def _create_waybill(db: Session, payload: schemas.WaybillCreate) -> str:
    if payload.id:
        if waybill_id_exists(db, payload.id):
            raise DuplicateId(f"Waybill with ID {payload.id} already exists. Please use a different ID.")
        waybill_id = payload.id
    else:
        waybill_id = allocator_for(payload.waybill_type).allocate(db)

    totals = _quantities_by_asset(payload.items)
    assets = {asset_id: get_asset_or_raise(db, asset_id) for asset_id in totals}

    waybill = models.Waybill(
        id=waybill_id,
        waybill_type=payload.waybill_type,
        site_id=str(payload.site_id),
        return_to_site_id=payload.return_to_site_id,
        driver_name=payload.driver_name,
        vehicle=payload.vehicle,
        issue_date=payload.issue_date or _utcnow(),
        expected_return_date=payload.expected_return_date,
        purpose=payload.purpose,
        service=payload.service,
        status=models.WaybillStatusEnum.OUTSTANDING,
        created_by=payload.created_by,
    )
    write_items(waybill, _build_items(payload.items, assets))
    db.add(waybill)
    db.flush()

    for asset_id, qty in totals.items():
        asset = assets[asset_id]
        if payload.waybill_type == models.WaybillTypeEnum.RETURN:
            # A return records intent to pull stock back; nothing is reserved.
            _check_site_stock(asset, waybill.site_id, qty)
        else:
            _reserve(asset, qty)

    db.flush()
    return waybill_id


def create_waybill(db: Session, payload: schemas.WaybillCreate) -> schemas.TransactionResult:
    """
    Insert a waybill and reserve its quantities (outbound) or check site stock (return).
    """
    return _run(
        db,
        "create_waybill",
        lambda: _create_waybill(db, payload),
        waybill_id=payload.id,
        waybill_type=payload.waybill_type.value,
    )


def _send_to_site(db: Session, waybill_id: str, sent_to_site_date: Optional[datetime]) -> str:
    waybill = _get_waybill_or_raise(db, waybill_id)
    items = read_items(waybill)
    _transition(waybill, models.WaybillStatusEnum.SENT_TO_SITE, items)
    waybill.sent_to_site_date = sent_to_site_date or _utcnow()

    for item in items:
        asset = get_asset_or_raise(db, item.asset_id)
        # Reservation stays: deployed units remain committed until returned.
        apply_counters(
            asset,
            site_quantities=add_to_site(read_site_quantities(asset), waybill.site_id, item.quantity),
        )
        record_movement(
            db,
            site_id=waybill.site_id,
            asset=asset,
            quantity=item.quantity,
            direction=inventory_models.MovementDirectionEnum.IN,
            kind=inventory_models.MovementKindEnum.WAYBILL,
            reference_id=waybill.id,
            reference_type=WAYBILL_REFERENCE,
            created_by=waybill.created_by,
        )

    db.flush()
    return waybill.id


def send_to_site(
    db: Session,
    waybill_id: str,
    *,
    sent_to_site_date: Optional[datetime] = None,
) -> schemas.TransactionResult:
    return _run(
        db,
        "send_to_site",
        lambda: _send_to_site(db, waybill_id, sent_to_site_date),
        waybill_id=waybill_id,
    )


def _process_return(db: Session, payload: schemas.ReturnProcessRequest) -> str:
    waybill = _get_waybill_or_raise(db, payload.waybill_id)
    if waybill.waybill_type != models.WaybillTypeEnum.RETURN:
        raise InvalidWaybillType(f"Waybill {waybill.id} is not a return type")
    _settle_return(db, waybill=waybill, summary=_summarise_return(payload.items), created_by=payload.created_by)
    return waybill.id


def process_return(db: Session, payload: schemas.ReturnProcessRequest) -> schemas.TransactionResult:
    """
    Settle returned units (good / damaged / missing) against a return waybill.
    """
    return _run(
        db,
        "process_return",
        lambda: _process_return(db, payload),
        waybill_id=payload.waybill_id,
    )


def _delete_waybill(db: Session, waybill_id: str) -> str:
    waybill = _get_waybill_or_raise(db, waybill_id)
    items = read_items(waybill)

    if waybill.waybill_type == models.WaybillTypeEnum.RETURN:
        if waybill.status != models.WaybillStatusEnum.OUTSTANDING:
            raise ValidationError(
                f"Return waybill {waybill.id} has recorded returns ({waybill.status.value}) and cannot be deleted"
            )
        # An outstanding return reserved nothing.
    elif waybill.status == models.WaybillStatusEnum.OUTSTANDING:
        for asset_id, qty in _quantities_by_asset(items).items():
            _release(get_asset_or_raise(db, asset_id), qty)
    elif waybill.status == models.WaybillStatusEnum.SENT_TO_SITE:
        # Return documents release the reservation; only site stock is reversed here.
        for asset_id, qty in _quantities_by_asset(items).items():
            asset = get_asset_or_raise(db, asset_id)
            apply_counters(
                asset,
                site_quantities=remove_from_site(read_site_quantities(asset), waybill.site_id, qty),
            )
        delete_for_reference(db, reference_id=waybill.id, reference_type=WAYBILL_REFERENCE)

    db.delete(waybill)
    db.flush()
    return waybill_id


def delete_waybill(db: Session, waybill_id: str) -> schemas.TransactionResult:
    """
    Delete a waybill after reversing the quantity effects its status implies.
    """
    return _run(db, "delete_waybill", lambda: _delete_waybill(db, waybill_id), waybill_id=waybill_id)


def _update_waybill(db: Session, waybill_id: str, payload: schemas.WaybillUpdate) -> str:
    waybill = _get_waybill_or_raise(db, waybill_id)
    status = waybill.status
    is_return = waybill.waybill_type == models.WaybillTypeEnum.RETURN
    old_items = read_items(waybill)
    new_site = str(payload.site_id) if payload.site_id is not None else waybill.site_id
    site_changed = new_site != waybill.site_id

    if site_changed and status != models.WaybillStatusEnum.OUTSTANDING:
        raise ValidationError(f"Site of waybill {waybill.id} cannot change once it is {status.value}")
    if payload.items is not None and status in (
        models.WaybillStatusEnum.PARTIAL_RETURNED,
        models.WaybillStatusEnum.RETURN_COMPLETED,
    ):
        raise ValidationError(f"Items of waybill {waybill.id} cannot change once returns are recorded")

    lines = payload.items if payload.items is not None else old_items
    old_totals = _quantities_by_asset(old_items)
    new_totals = _quantities_by_asset(lines)
    asset_ids = list(old_totals) + [a for a in new_totals if a not in old_totals]
    assets = {asset_id: get_asset_or_raise(db, asset_id) for asset_id in asset_ids}

    if is_return:
        if payload.items is not None or site_changed:
            for asset_id, qty in new_totals.items():
                _check_site_stock(assets[asset_id], new_site, qty)
    else:
        for asset_id in asset_ids:
            delta = new_totals.get(asset_id, 0) - old_totals.get(asset_id, 0)
            if delta == 0:
                continue
            asset = assets[asset_id]
            if delta > 0:
                _reserve(asset, delta)
            else:
                _release(asset, -delta)
            if status == models.WaybillStatusEnum.SENT_TO_SITE:
                apply_counters(
                    asset,
                    site_quantities=add_to_site(read_site_quantities(asset), waybill.site_id, delta),
                )
                record_movement(
                    db,
                    site_id=waybill.site_id,
                    asset=asset,
                    quantity=abs(delta),
                    direction=(
                        inventory_models.MovementDirectionEnum.IN
                        if delta > 0
                        else inventory_models.MovementDirectionEnum.OUT
                    ),
                    kind=inventory_models.MovementKindEnum.ADJUSTMENT,
                    reference_id=waybill.id,
                    reference_type=WAYBILL_REFERENCE,
                    notes="waybill edited after dispatch",
                    created_by=waybill.created_by,
                )

    if payload.items is not None:
        write_items(waybill, _build_items(payload.items, assets))

    for field in _DESCRIPTIVE_FIELDS:
        value = getattr(payload, field)
        if value is not None:
            setattr(waybill, field, str(value) if field == "site_id" else value)
    waybill.updated_at = _utcnow()

    db.flush()
    return waybill.id


def update_waybill(db: Session, waybill_id: str, payload: schemas.WaybillUpdate) -> schemas.TransactionResult:
    """
    Overwrite a waybill, applying only the per-asset quantity differences.
    """
    return _run(db, "update_waybill", lambda: _update_waybill(db, waybill_id, payload), waybill_id=waybill_id)


def _create_return_waybill(db: Session, payload: schemas.ReturnWaybillCreate) -> str:
    waybill_id = allocator_for(models.WaybillTypeEnum.RETURN).allocate(db)
    summary = _summarise_return(payload.items)
    names = {line.asset_id: line.asset_name for line in payload.items if line.asset_name}

    items: List[schemas.WaybillItem] = []
    for asset_id, breakdown in summary.items():
        asset = get_asset_or_raise(db, asset_id)
        _check_site_stock(asset, payload.site_id, breakdown.total)
        items.append(
            schemas.WaybillItem(
                asset_id=asset_id,
                asset_name=names.get(asset_id) or asset.name,
                quantity=breakdown.total,
            )
        )

    waybill = models.Waybill(
        id=waybill_id,
        waybill_type=models.WaybillTypeEnum.RETURN,
        site_id=str(payload.site_id),
        return_to_site_id=payload.return_to_site_id,
        driver_name=payload.driver_name,
        vehicle=payload.vehicle,
        issue_date=payload.issue_date or _utcnow(),
        expected_return_date=payload.expected_return_date,
        purpose=payload.purpose,
        service=payload.service,
        status=models.WaybillStatusEnum.OUTSTANDING,
        created_by=payload.created_by,
    )
    write_items(waybill, items)
    db.add(waybill)
    db.flush()

    _settle_return(db, waybill=waybill, summary=summary, created_by=payload.created_by)
    return waybill_id


def create_return_waybill(db: Session, payload: schemas.ReturnWaybillCreate) -> schemas.TransactionResult:
    """
    Create an `RB###` return waybill and settle it in the same unit of work.
    """
    return _run(
        db,
        "create_return_waybill",
        lambda: _create_return_waybill(db, payload),
        site_id=str(payload.site_id),
    )
