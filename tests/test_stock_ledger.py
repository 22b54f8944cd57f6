from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from agritrade import db
from agritrade.errors import NotFound, ValidationError
from agritrade.models import StockLog
from agritrade.services.stock import (
    compute_daily_stock,
    recompute_after_transaction,
    roll_forward,
    stock_history,
    stock_status,
)

from conftest import DAY, at

YESTERDAY = DAY - timedelta(days=1)


def _snapshot(row):
    return (row.opening_stock, row.purchased, row.sold, row.closing_stock,
            row.avg_buying_rate, row.avg_selling_rate)


# ---------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------

def test_first_purchase_with_no_prior_snapshot(make_crop, make_purchase):
    maize = make_crop("maize")
    make_purchase(maize, 50, 2400)

    row = compute_daily_stock(maize.id, DAY)

    assert _snapshot(row) == (0, 50, 0, 50, 2400, 0)


def test_opening_comes_from_previous_day_closing(make_crop, make_purchase, make_sale):
    wheat = make_crop("wheat")
    make_purchase(wheat, 40, 2700, when=at(YESTERDAY))
    assert compute_daily_stock(wheat.id, YESTERDAY).closing_stock == 40

    make_sale(wheat, 15, 2900)
    row = compute_daily_stock(wheat.id, DAY)

    assert row.opening_stock == 40
    assert row.purchased == 0
    assert row.sold == 15
    assert row.closing_stock == 25
    assert row.avg_selling_rate == 2900
    assert row.avg_buying_rate == 0


def test_average_buying_rate_is_mean_of_rates(make_crop, make_purchase):
    crop = make_crop()
    make_purchase(crop, 10, 100)
    make_purchase(crop, 30, 200)

    row = compute_daily_stock(crop.id, DAY)

    assert row.avg_buying_rate == 150
    assert row.purchased == 40


# ---------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------

def test_closing_balance_holds_for_mixed_day(make_crop, make_purchase, make_sale):
    crop = make_crop()
    make_purchase(crop, 100, 2000, when=at(YESTERDAY))
    compute_daily_stock(crop.id, YESTERDAY)

    for qty in (12.5, 30, 7):
        make_purchase(crop, qty, 2100)
    for qty in (20, 4.5):
        make_sale(crop, qty, 2300)

    row = compute_daily_stock(crop.id, DAY)

    assert row.opening_stock == 100
    assert row.closing_stock == pytest.approx(100 + 12.5 + 30 + 7 - 20 - 4.5)
    assert row.closing_stock == row.opening_stock + row.purchased - row.sold


def test_no_prior_snapshot_means_zero_opening(make_crop, make_sale):
    crop = make_crop()
    make_sale(crop, 5, 100)

    row = compute_daily_stock(crop.id, DAY)

    assert row.opening_stock == 0
    assert row.closing_stock == -5


def test_opening_ignores_later_snapshots(make_crop, make_purchase):
    crop = make_crop()
    make_purchase(crop, 70, 100, when=at(DAY + timedelta(days=3)))
    compute_daily_stock(crop.id, DAY + timedelta(days=3))

    row = compute_daily_stock(crop.id, DAY)

    assert row.opening_stock == 0


def test_day_with_no_transactions_has_zero_rates(make_crop):
    crop = make_crop()
    row = compute_daily_stock(crop.id, DAY)
    assert _snapshot(row) == (0, 0, 0, 0, 0, 0)


def test_compute_is_idempotent(make_crop, make_purchase, make_sale):
    crop = make_crop()
    make_purchase(crop, 50, 2400)
    make_sale(crop, 10, 2600)

    first = _snapshot(compute_daily_stock(crop.id, DAY))
    second = compute_daily_stock(crop.id, DAY)

    assert _snapshot(second) == first
    assert StockLog.query.filter_by(crop_id=crop.id).count() == 1


def test_window_covers_whole_day_only(make_crop, make_purchase):
    crop = make_crop()
    make_purchase(crop, 1, 100, when=datetime.combine(DAY, datetime.min.time()))
    make_purchase(crop, 2, 100, when=datetime(DAY.year, DAY.month, DAY.day, 23, 59, 59))
    make_purchase(crop, 4, 100, when=at(DAY + timedelta(days=1), hour=0))

    row = compute_daily_stock(crop.id, datetime(DAY.year, DAY.month, DAY.day, 18, 30))

    assert row.day == DAY
    assert row.purchased == 3


def test_other_crops_are_not_counted(make_crop, make_purchase):
    maize = make_crop("maize")
    wheat = make_crop("wheat")
    make_purchase(maize, 10, 100)
    make_purchase(wheat, 99, 100)

    assert compute_daily_stock(maize.id, DAY).purchased == 10


def test_default_day_is_today(make_crop, make_purchase):
    crop = make_crop()
    make_purchase(crop, 8, 300, when=datetime.now())

    row = compute_daily_stock(crop.id)

    assert row.day == date.today()
    assert row.purchased == 8


def test_unknown_crop_raises_not_found(app):
    with pytest.raises(NotFound):
        compute_daily_stock(9999, DAY)


# ---------------------------------------------------------------------
# recompute_after_transaction
# ---------------------------------------------------------------------

def test_recompute_targets_the_transaction_day(make_crop, make_purchase):
    crop = make_crop()
    p = make_purchase(crop, 25, 1800, when=at(YESTERDAY))

    row = recompute_after_transaction(crop.id, "purchase", p.quantity, p.rate, on=p.purchase_date)

    assert row.day == YESTERDAY
    assert row.purchased == 25
    assert row.avg_buying_rate == 1800


def test_recompute_after_delete_uses_fresh_query(make_crop, make_purchase):
    crop = make_crop()
    make_purchase(crop, 10, 100)
    doomed = make_purchase(crop, 20, 300)
    recompute_after_transaction(crop.id, "purchase", 20, 300, on=DAY)

    db.session.delete(doomed)
    db.session.flush()
    row = recompute_after_transaction(crop.id, "purchase", -20, 300, on=DAY)

    assert row.purchased == 10
    assert row.avg_buying_rate == 100


def test_recompute_after_last_sale_removed_resets_rate(make_crop, make_sale):
    crop = make_crop()
    s = make_sale(crop, 5, 900)
    recompute_after_transaction(crop.id, "sale", 5, 900, on=DAY)

    db.session.delete(s)
    db.session.flush()
    row = recompute_after_transaction(crop.id, "sale", -5, 900, on=DAY)

    assert row.sold == 0
    assert row.avg_selling_rate == 0


def test_backdated_change_rolls_forward(make_crop, make_purchase, make_sale):
    crop = make_crop()
    make_purchase(crop, 40, 100, when=at(YESTERDAY))
    compute_daily_stock(crop.id, YESTERDAY)
    make_sale(crop, 15, 120)
    compute_daily_stock(crop.id, DAY)

    late = make_purchase(crop, 10, 110, when=at(YESTERDAY, hour=17))
    recompute_after_transaction(crop.id, "purchase", late.quantity, late.rate, on=late.purchase_date)

    today = StockLog.query.filter_by(crop_id=crop.id, day=DAY).one()
    assert today.opening_stock == 50
    assert today.closing_stock == 35


def test_roll_forward_returns_later_rows_in_order(make_crop, make_purchase):
    crop = make_crop()
    for offset in (1, 2, 3):
        d = DAY + timedelta(days=offset)
        make_purchase(crop, offset, 100, when=at(d))
        compute_daily_stock(crop.id, d)

    rows = roll_forward(crop.id, DAY)

    assert [r.day for r in rows] == [DAY + timedelta(days=o) for o in (1, 2, 3)]
    assert [r.closing_stock for r in rows] == [1, 3, 6]


def test_recompute_rejects_unknown_kind(make_crop):
    crop = make_crop()
    with pytest.raises(ValidationError):
        recompute_after_transaction(crop.id, "transfer", 1, 1, on=DAY)


# ---------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------

def test_stock_status_lists_active_crops(make_crop, make_purchase):
    maize = make_crop("maize")
    make_crop("cotton", is_active=False)
    make_purchase(maize, 12, 100)

    rows = stock_status(DAY)

    assert [r["crop"]["name"] for r in rows] == ["MAIZE"]
    assert rows[0]["closing_stock"] == 12


def test_stock_history_filters_and_limits(make_crop):
    crop = make_crop()
    for offset in range(5):
        compute_daily_stock(crop.id, DAY + timedelta(days=offset))

    hist = stock_history(crop.id, start=DAY + timedelta(days=1), end=DAY + timedelta(days=3))
    assert [h["day"] for h in hist["history"]] == [
        (DAY + timedelta(days=o)).isoformat() for o in (3, 2, 1)
    ]

    assert len(stock_history(crop.id, limit=2)["history"]) == 2
