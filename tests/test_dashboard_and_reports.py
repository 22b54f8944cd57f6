from __future__ import annotations

import io
from datetime import timedelta

import pandas as pd
import pytest

from agritrade import db
from agritrade.errors import ValidationError
from agritrade.models import Expense
from agritrade.services.dashboard import dashboard_charts, dashboard_stats
from agritrade.services.stock import compute_daily_stock

from conftest import DAY, at

START = at(DAY, hour=0)
END = at(DAY + timedelta(days=1), hour=23)


@pytest.fixture()
def trading(user, make_crop, make_purchase, make_sale):
    maize = make_crop("maize")
    wheat = make_crop("wheat")
    cotton = make_crop("cotton")
    make_purchase(maize, 10, 100)
    make_purchase(maize, 20, 200)
    make_sale(maize, 5, 300)
    make_purchase(wheat, 8, 50, when=at(DAY + timedelta(days=1)))
    make_sale(cotton, 3, 1000, when=at(DAY + timedelta(days=1)))
    make_purchase(maize, 999, 1, when=at(DAY - timedelta(days=10)))  # out of range
    db.session.add(Expense(date=DAY, category="Labor", description="Loading crew",
                           amount=400, created_by_id=user.id))
    db.session.commit()
    return maize, wheat, cotton


def test_overview_totals(trading):
    overview = dashboard_stats(START, END)["overview"]

    assert overview["total_purchased"] == 38
    assert overview["total_cost"] == 10 * 100 + 20 * 200 + 8 * 50
    assert overview["total_sold"] == 8
    assert overview["total_revenue"] == 5 * 300 + 3 * 1000
    assert overview["total_expenses"] == 400
    assert overview["net_profit"] == 4500 - 5400 - 400
    assert overview["crop_count"] == 3
    assert overview["farmer_count"] == 1


def test_crop_stats_merge_purchases_and_sales(trading):
    stats = {s["crop_name"]: s for s in dashboard_stats(START, END)["crop_stats"]}

    assert stats["MAIZE"]["total_purchased"] == 30
    assert stats["MAIZE"]["avg_buying_rate"] == 150
    assert stats["MAIZE"]["total_sold"] == 5
    assert stats["MAIZE"]["profit"] == 1500 - 5000

    assert stats["WHEAT"]["total_sold"] == 0
    assert stats["WHEAT"]["profit"] == -400

    assert stats["COTTON"]["total_purchased"] == 0
    assert stats["COTTON"]["profit"] == 3000


def test_daily_chart(trading):
    data = dashboard_charts(START, END, "daily")["data"]

    assert [d["date"] for d in data] == [DAY.isoformat(), (DAY + timedelta(days=1)).isoformat()]
    assert data[0]["purchases"] == 30
    assert data[0]["profit"] == 1500 - 5000
    assert data[1]["revenue"] == 3000
    assert data[1]["cost"] == 400


def test_crop_chart_sorted_by_purchased(trading):
    data = dashboard_charts(START, END, "crop")["data"]
    assert [d["crop_name"] for d in data] == ["MAIZE", "WHEAT"]


def test_unknown_chart_type(app):
    with pytest.raises(ValidationError):
        dashboard_charts(chart_type="pie")


def test_dashboard_endpoints(client, auth, trading):
    resp = client.get(f"/api/dashboard/stats?start_date={DAY}&end_date={DAY}", headers=auth)
    assert resp.status_code == 200
    assert resp.get_json()["overview"]["total_purchased"] == 30

    resp = client.get(f"/api/dashboard/charts?chart_type=bar&start_date={DAY}", headers=auth)
    assert resp.status_code == 400


# ---------------------------------------------------------------------
# Stock endpoints
# ---------------------------------------------------------------------

def test_stock_endpoints(client, auth, trading):
    maize = trading[0]

    rows = client.get(f"/api/stock?date={DAY}", headers=auth).get_json()
    by_name = {r["crop"]["name"]: r for r in rows}
    assert by_name["MAIZE"]["closing_stock"] == 25
    assert by_name["COTTON"]["closing_stock"] == 0

    one = client.get(f"/api/stock/{maize.id}?date={DAY}", headers=auth).get_json()
    assert one["avg_selling_rate"] == 300

    hist = client.get(f"/api/stock/history/{maize.id}?limit=5", headers=auth).get_json()
    assert hist["crop"]["name"] == "MAIZE"
    assert [h["day"] for h in hist["history"]] == [DAY.isoformat()]

    assert client.get("/api/stock/4242", headers=auth).status_code == 404


# ---------------------------------------------------------------------
# Excel exports
# ---------------------------------------------------------------------

def _read(resp):
    assert resp.status_code == 200
    return pd.read_excel(io.BytesIO(resp.data))


def test_crop_report_export(client, auth, trading):
    df = _read(client.get(f"/api/reports/crops.xlsx?start_date={DAY}&end_date={DAY + timedelta(days=1)}",
                          headers=auth))
    assert list(df.columns) == ["Crop", "Purchased", "Sold", "Revenue", "Cost", "Profit"]
    assert df.set_index("Crop").loc["MAIZE", "Profit"] == -3500


def test_purchase_and_sales_exports(client, auth, trading):
    purchases = _read(client.get("/api/reports/purchases.xlsx", headers=auth))
    assert len(purchases) == 4
    assert set(purchases["Crop"]) == {"MAIZE", "WHEAT"}

    sales = _read(client.get(f"/api/reports/sales.xlsx?start_date={DAY}&end_date={DAY}", headers=auth))
    assert sales["Total Amount"].tolist() == [1500]


def test_seeded_ledger_is_consistent(app):
    from agritrade.models import StockLog
    from agritrade.seed import seed_database

    seed_database(days=4)

    for crop_id in {r.crop_id for r in StockLog.query.all()}:
        rows = StockLog.query.filter_by(crop_id=crop_id).order_by(StockLog.day).all()
        assert len(rows) == 4
        assert rows[0].opening_stock == 0
        for prev, cur in zip(rows, rows[1:]):
            assert cur.opening_stock == prev.closing_stock
        recomputed = compute_daily_stock(crop_id, rows[-1].day)
        assert recomputed.closing_stock == pytest.approx(rows[-1].closing_stock)
