# agritrade/services/stock.py
"""
Daily stock ledger.

One StockLog row per (crop, day). Opening stock is the closing stock of the
latest earlier row for the crop (0 when there is none); purchased/sold are the
day's summed quantities and the average rates are plain means of the day's
transaction rates.

Nothing here commits. Callers (routes, CLI) own the unit of work so the
transaction write and the ledger upsert land in the same commit.
"""
from __future__ import annotations

import logging
from datetime import date, datetime

from agritrade import db
from agritrade.errors import NotFound, ValidationError
from agritrade.models import Crop, Purchase, Sale, StockLog
from agritrade.utils import as_day, day_window

log = logging.getLogger(__name__)

TRANSACTION_KINDS = {
    "purchase": (Purchase, Purchase.purchase_date),
    "sale": (Sale, Sale.sale_date),
}


# ---------- helpers ----------
def _get_crop(crop_id) -> Crop:
    crop = db.session.get(Crop, crop_id)
    if crop is None:
        raise NotFound("Crop not found")
    return crop


def _day_rows(model, date_col, crop_id, start: datetime, end: datetime):
    return (
        model.query
        .filter(model.crop_id == crop_id, date_col >= start, date_col <= end)
        .all()
    )


def _mean_rate(rows) -> float:
    if not rows:
        return 0.0
    return sum(r.rate for r in rows) / len(rows)


def _opening_stock(crop_id, day: date) -> float:
    prior = (
        StockLog.query
        .filter(StockLog.crop_id == crop_id, StockLog.day < day)
        .order_by(StockLog.day.desc())
        .first()
    )
    return prior.closing_stock if prior else 0.0


def _upsert(crop_id, day: date, **values) -> StockLog:
    row = StockLog.query.filter_by(crop_id=crop_id, day=day).first()
    if row is None:
        row = StockLog(crop_id=crop_id, day=day)
        db.session.add(row)
    for k, v in values.items():
        setattr(row, k, v)
    db.session.flush()
    return row


# ---------- ledger ----------
def compute_daily_stock(crop_id, on: date | datetime | None = None) -> StockLog:
    """Derive and upsert the snapshot of ``crop_id`` for the calendar day of ``on``."""
    crop = _get_crop(crop_id)
    day = as_day(on)
    start, end = day_window(day)

    purchases = _day_rows(Purchase, Purchase.purchase_date, crop.id, start, end)
    sales = _day_rows(Sale, Sale.sale_date, crop.id, start, end)

    opening = _opening_stock(crop.id, day)
    purchased = sum(p.quantity for p in purchases)
    sold = sum(s.quantity for s in sales)

    row = _upsert(
        crop.id,
        day,
        opening_stock=opening,
        purchased=purchased,
        sold=sold,
        closing_stock=opening + purchased - sold,
        avg_buying_rate=_mean_rate(purchases),
        avg_selling_rate=_mean_rate(sales),
    )
    log.debug(
        "stock %s %s: opening=%s purchased=%s sold=%s closing=%s",
        crop.name, day, row.opening_stock, row.purchased, row.sold, row.closing_stock,
    )
    return row


def roll_forward(crop_id, after: date | datetime) -> list[StockLog]:
    """Recompute every stored snapshot of the crop dated after ``after``, oldest first."""
    later_days = [
        d for (d,) in (
            db.session.query(StockLog.day)
            .filter(StockLog.crop_id == crop_id, StockLog.day > as_day(after))
            .order_by(StockLog.day.asc())
            .all()
        )
    ]
    return [compute_daily_stock(crop_id, d) for d in later_days]


def recompute_after_transaction(
    crop_id,
    kind: str,
    quantity_delta: float | None = None,
    rate: float | None = None,
    on: date | datetime | None = None,
) -> StockLog:
    """
    Refresh the ledger after a purchase/sale was created, updated or deleted.

    ``on`` is the transaction's own date (today when omitted). The kind's
    average rate is re-queried from that day's stored transactions;
    ``quantity_delta`` and ``rate`` are only logged.
    """
    if kind not in TRANSACTION_KINDS:
        raise ValidationError(f"Unknown transaction kind: {kind}")

    day = as_day(on)
    log.info(
        "recompute stock crop=%s kind=%s day=%s delta=%s rate=%s",
        crop_id, kind, day, quantity_delta, rate,
    )
    row = compute_daily_stock(crop_id, day)

    model, date_col = TRANSACTION_KINDS[kind]
    start, end = day_window(day)
    avg = _mean_rate(_day_rows(model, date_col, crop_id, start, end))
    if kind == "purchase":
        row.avg_buying_rate = avg
    else:
        row.avg_selling_rate = avg
    db.session.flush()

    roll_forward(crop_id, day)
    return row


# ---------- read models ----------
def _snapshot_payload(crop: Crop, row: StockLog) -> dict:
    return {"crop": crop.summary(), **row.to_dict()}


def crop_stock(crop_id, on: date | datetime | None = None) -> dict:
    crop = _get_crop(crop_id)
    return _snapshot_payload(crop, compute_daily_stock(crop.id, on))


def stock_status(on: date | datetime | None = None) -> list[dict]:
    crops = Crop.query.filter_by(is_active=True).order_by(Crop.name.asc()).all()
    return [_snapshot_payload(c, compute_daily_stock(c.id, on)) for c in crops]


def stock_history(crop_id, start: date | None = None, end: date | None = None, limit: int = 30) -> dict:
    crop = _get_crop(crop_id)
    q = StockLog.query.filter(StockLog.crop_id == crop.id)
    if start:
        q = q.filter(StockLog.day >= start)
    if end:
        q = q.filter(StockLog.day <= end)
    rows = q.order_by(StockLog.day.desc()).limit(limit).all()
    return {"crop": crop.summary(), "history": [r.to_dict() for r in rows]}

