# agritrade/services/dashboard.py
from __future__ import annotations

from datetime import date, datetime, time

from sqlalchemy import func

from agritrade import db
from agritrade.errors import ValidationError
from agritrade.models import Crop, Expense, Farmer, Purchase, Sale

CHART_TYPES = ("daily", "crop")


def default_range(start: datetime | None = None, end: datetime | None = None) -> tuple[datetime, datetime]:
    """First day of the current month (midnight) up to now, unless given."""
    now = datetime.now()
    if start is None:
        start = datetime.combine(now.date().replace(day=1), time.min)
    if end is None:
        end = now
    return start, end


def _day_key(value) -> str:
    # sqlite returns func.date() as text, postgres as a date
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)


def _totals(date_col, qty_sum, money_sum, start, end):
    row = (
        db.session.query(
            func.coalesce(func.sum(qty_sum), 0),
            func.coalesce(func.sum(money_sum), 0),
        )
        .filter(date_col >= start, date_col <= end)
        .one()
    )
    return float(row[0] or 0), float(row[1] or 0)


def _by_crop(model, date_col, money_col, start, end):
    return (
        db.session.query(
            Crop.id,
            Crop.name,
            Crop.unit,
            func.coalesce(func.sum(model.quantity), 0),
            func.coalesce(func.sum(money_col), 0),
            func.avg(model.rate),
        )
        .join(Crop, Crop.id == model.crop_id)
        .filter(date_col >= start, date_col <= end)
        .group_by(Crop.id, Crop.name, Crop.unit)
        .all()
    )


def dashboard_stats(start: datetime | None = None, end: datetime | None = None) -> dict:
    start, end = default_range(start, end)

    total_purchased, total_cost = _totals(
        Purchase.purchase_date, Purchase.quantity, Purchase.total_cost, start, end
    )
    total_sold, total_revenue = _totals(
        Sale.sale_date, Sale.quantity, Sale.total_amount, start, end
    )
    total_expenses = float(
        db.session.query(func.coalesce(func.sum(Expense.amount), 0))
        .filter(Expense.date >= start.date(), Expense.date <= end.date())
        .scalar() or 0
    )

    farmer_count = Farmer.query.filter_by(is_active=True).count()
    crop_count = Crop.query.filter_by(is_active=True).count()

    # Crop-wise: purchases first, then fold in sales
    crop_stats = {}
    for crop_id, name, unit, qty, cost, avg_rate in _by_crop(
        Purchase, Purchase.purchase_date, Purchase.total_cost, start, end
    ):
        crop_stats[crop_id] = {
            "crop_id": crop_id,
            "crop_name": name,
            "unit": unit,
            "total_purchased": float(qty),
            "total_cost": float(cost),
            "avg_buying_rate": float(avg_rate or 0),
            "total_sold": 0.0,
            "total_revenue": 0.0,
            "avg_selling_rate": 0.0,
            "profit": -float(cost),
        }

    for crop_id, name, unit, qty, revenue, avg_rate in _by_crop(
        Sale, Sale.sale_date, Sale.total_amount, start, end
    ):
        stat = crop_stats.setdefault(crop_id, {
            "crop_id": crop_id,
            "crop_name": name,
            "unit": unit,
            "total_purchased": 0.0,
            "total_cost": 0.0,
            "avg_buying_rate": 0.0,
        })
        stat["total_sold"] = float(qty)
        stat["total_revenue"] = float(revenue)
        stat["avg_selling_rate"] = float(avg_rate or 0)
        stat["profit"] = float(revenue) - stat["total_cost"]

    return {
        "overview": {
            "total_purchased": total_purchased,
            "total_sold": total_sold,
            "total_cost": total_cost,
            "total_revenue": total_revenue,
            "total_expenses": total_expenses,
            "net_profit": total_revenue - total_cost - total_expenses,
            "farmer_count": farmer_count,
            "crop_count": crop_count,
        },
        "crop_stats": sorted(crop_stats.values(), key=lambda s: s["crop_name"]),
        "date_range": {"start": start.isoformat(), "end": end.isoformat()},
    }


def _daily(start, end) -> list[dict]:
    purchase_day = func.date(Purchase.purchase_date)
    sale_day = func.date(Sale.sale_date)

    purchases = (
        db.session.query(
            purchase_day,
            func.coalesce(func.sum(Purchase.quantity), 0),
            func.coalesce(func.sum(Purchase.total_cost), 0),
        )
        .filter(Purchase.purchase_date >= start, Purchase.purchase_date <= end)
        .group_by(purchase_day)
        .all()
    )
    sales = (
        db.session.query(
            sale_day,
            func.coalesce(func.sum(Sale.quantity), 0),
            func.coalesce(func.sum(Sale.total_amount), 0),
        )
        .filter(Sale.sale_date >= start, Sale.sale_date <= end)
        .group_by(sale_day)
        .all()
    )

    days = {}
    for d, qty, cost in purchases:
        key = _day_key(d)
        days[key] = {"date": key, "purchases": float(qty), "sales": 0.0,
                     "cost": float(cost), "revenue": 0.0}
    for d, qty, revenue in sales:
        key = _day_key(d)
        entry = days.setdefault(key, {"date": key, "purchases": 0.0, "sales": 0.0,
                                      "cost": 0.0, "revenue": 0.0})
        entry["sales"] = float(qty)
        entry["revenue"] = float(revenue)

    out = sorted(days.values(), key=lambda e: e["date"])
    for entry in out:
        entry["profit"] = entry["revenue"] - entry["cost"]
    return out


def _crop_chart(start, end) -> list[dict]:
    rows = _by_crop(Purchase, Purchase.purchase_date, Purchase.total_cost, start, end)
    data = [
        {"crop_id": crop_id, "crop_name": name, "total_purchased": float(qty), "total_cost": float(cost)}
        for crop_id, name, _unit, qty, cost, _avg in rows
    ]
    return sorted(data, key=lambda e: e["total_purchased"], reverse=True)


def dashboard_charts(start: datetime | None = None, end: datetime | None = None,
                     chart_type: str = "daily") -> dict:
    if chart_type not in CHART_TYPES:
        raise ValidationError(f"chart_type must be one of: {', '.join(CHART_TYPES)}")
    start, end = default_range(start, end)
    data = _daily(start, end) if chart_type == "daily" else _crop_chart(start, end)
    return {
        "chart_type": chart_type,
        "data": data,
        "date_range": {"start": start.isoformat(), "end": end.isoformat()},
    }
