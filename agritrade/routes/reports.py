import io

import pandas as pd
from flask import Blueprint, send_file
from flask_login import login_required

from agritrade.models import Purchase, Sale
from agritrade.services.dashboard import dashboard_stats
from agritrade.utils import range_args

bp = Blueprint("reports", __name__, url_prefix="/api/reports")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _excel(rows, columns, filename):
    df = pd.DataFrame(rows, columns=columns)
    output = io.BytesIO()
    df.to_excel(output, index=False)
    output.seek(0)
    return send_file(output, mimetype=XLSX_MIMETYPE, download_name=filename, as_attachment=True)


@bp.get("/crops.xlsx")
@login_required
def export_crop_report():
    """Crop-wise summary for the selected range."""
    start, end = range_args()
    stats = dashboard_stats(start, end)
    rows = [{
        "Crop": s["crop_name"],
        "Purchased": s["total_purchased"],
        "Sold": s["total_sold"],
        "Revenue": s["total_revenue"],
        "Cost": s["total_cost"],
        "Profit": s["profit"],
    } for s in stats["crop_stats"]]
    columns = ["Crop", "Purchased", "Sold", "Revenue", "Cost", "Profit"]
    return _excel(rows, columns, "crop_report.xlsx")


@bp.get("/purchases.xlsx")
@login_required
def export_purchases():
    start, end = range_args()
    query = Purchase.query
    if start:
        query = query.filter(Purchase.purchase_date >= start)
    if end:
        query = query.filter(Purchase.purchase_date <= end)

    rows = [{
        "Date": p.purchase_date.strftime("%Y-%m-%d"),
        "Crop": p.crop.name,
        "Farmer": p.farmer.name,
        "Village": p.farmer.village,
        "Quantity": p.quantity,
        "Rate": p.rate,
        "Total Cost": p.total_cost,
        "Payment Status": p.payment_status,
    } for p in query.order_by(Purchase.purchase_date.asc()).all()]
    columns = ["Date", "Crop", "Farmer", "Village", "Quantity", "Rate", "Total Cost", "Payment Status"]
    return _excel(rows, columns, "purchase_data.xlsx")


@bp.get("/sales.xlsx")
@login_required
def export_sales():
    start, end = range_args()
    query = Sale.query
    if start:
        query = query.filter(Sale.sale_date >= start)
    if end:
        query = query.filter(Sale.sale_date <= end)

    rows = [{
        "Date": s.sale_date.strftime("%Y-%m-%d"),
        "Crop": s.crop.name,
        "Buyer": s.buyer_name,
        "Vehicle No": s.vehicle_number,
        "Quantity": s.quantity,
        "Rate": s.rate,
        "Total Amount": s.total_amount,
        "Payment Status": s.payment_status,
    } for s in query.order_by(Sale.sale_date.asc()).all()]
    columns = ["Date", "Crop", "Buyer", "Vehicle No", "Quantity", "Rate", "Total Amount", "Payment Status"]
    return _excel(rows, columns, "sales_data.xlsx")
