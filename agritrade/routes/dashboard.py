from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from agritrade.services.dashboard import dashboard_charts, dashboard_stats
from agritrade.utils import range_args

bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@bp.get("/stats")
@login_required
def stats():
    start, end = range_args()
    return jsonify(dashboard_stats(start, end))


@bp.get("/charts")
@login_required
def charts():
    start, end = range_args()
    chart_type = request.args.get("chart_type", "daily")
    return jsonify(dashboard_charts(start, end, chart_type))
