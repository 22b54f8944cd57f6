from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from agritrade import db
from agritrade.services.stock import crop_stock, stock_history, stock_status
from agritrade.utils import int_arg, parse_date

bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@bp.get("")
@login_required
def all_stock():
    """Stock snapshot of every active crop for ?date= (default today)."""
    rows = stock_status(parse_date(request.args.get("date")))
    db.session.commit()
    return jsonify(rows)


@bp.get("/<int:crop_id>")
@login_required
def one_crop(crop_id):
    row = crop_stock(crop_id, parse_date(request.args.get("date")))
    db.session.commit()
    return jsonify(row)


@bp.get("/history/<int:crop_id>")
@login_required
def history(crop_id):
    limit = int_arg("limit", current_app.config.get("STOCK_HISTORY_LIMIT", 30))
    return jsonify(stock_history(
        crop_id,
        start=parse_date(request.args.get("start_date")),
        end=parse_date(request.args.get("end_date")),
        limit=max(limit, 1),
    ))
