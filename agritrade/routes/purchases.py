from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from agritrade import db
from agritrade.errors import ValidationError
from agritrade.models import Crop, Farmer, Purchase, PAYMENT_STATUSES
from agritrade.services.stock import recompute_after_transaction
from agritrade.utils import (
    Checker, clean_str, get_or_404, int_arg, json_body, parse_datetime, range_args,
)

bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@bp.get("")
@login_required
def list_purchases():
    """Purchases, newest first, filtered by crop / farmer / payment status / date range."""
    query = Purchase.query

    crop_id = int_arg("crop")
    farmer_id = int_arg("farmer")
    payment_status = request.args.get("payment_status")
    start, end = range_args()

    if crop_id:
        query = query.filter(Purchase.crop_id == crop_id)
    if farmer_id:
        query = query.filter(Purchase.farmer_id == farmer_id)
    if payment_status:
        query = query.filter(Purchase.payment_status == payment_status)
    if start:
        query = query.filter(Purchase.purchase_date >= start)
    if end:
        query = query.filter(Purchase.purchase_date <= end)

    purchases = query.order_by(Purchase.purchase_date.desc()).all()
    return jsonify([p.to_dict() for p in purchases])


@bp.get("/<int:purchase_id>")
@login_required
def get_purchase(purchase_id):
    return jsonify(get_or_404(Purchase, purchase_id, "Purchase not found").to_dict())


@bp.post("")
@login_required
def create_purchase():
    data = json_body()
    c = Checker(data)
    c.integer("crop", "Valid crop ID is required")
    c.integer("farmer", "Valid farmer ID is required")
    c.numeric("quantity", "Quantity must be a number")
    c.numeric("rate", "Rate must be a number")
    c.one_of("payment_status", PAYMENT_STATUSES, "Invalid payment status", optional=True)
    c.date("purchase_date", "Invalid purchase date")
    c.date("payment_date", "Invalid payment date")
    c.check()

    crop = db.session.get(Crop, int(data["crop"]))
    farmer = db.session.get(Farmer, int(data["farmer"]))
    if not crop:
        raise ValidationError("Crop not found")
    if not farmer:
        raise ValidationError("Farmer not found")

    purchase = Purchase(
        crop_id=crop.id,
        farmer_id=farmer.id,
        quantity=float(data["quantity"]),
        rate=float(data["rate"]),
        payment_status=data.get("payment_status") or "Pending",
        payment_date=parse_datetime(data.get("payment_date")),
        notes=clean_str(data.get("notes")),
        purchase_date=parse_datetime(data.get("purchase_date"), default=datetime.now()),
        created_by_id=current_user.id,
    )
    db.session.add(purchase)
    db.session.flush()

    recompute_after_transaction(
        crop.id, "purchase", purchase.quantity, purchase.rate, on=purchase.purchase_date
    )
    db.session.commit()
    return jsonify(purchase.to_dict()), 201


@bp.put("/<int:purchase_id>")
@login_required
def update_purchase(purchase_id):
    purchase = get_or_404(Purchase, purchase_id, "Purchase not found")
    data = json_body()
    c = Checker(data)
    c.numeric("quantity", "Quantity must be a number", optional=True)
    c.numeric("rate", "Rate must be a number", optional=True)
    c.one_of("payment_status", PAYMENT_STATUSES, "Invalid payment status", optional=True)
    c.date("purchase_date", "Invalid purchase date")
    c.date("payment_date", "Invalid payment date")
    c.check()

    old_date = purchase.purchase_date
    if data.get("quantity") is not None:
        purchase.quantity = float(data["quantity"])
    if data.get("rate") is not None:
        purchase.rate = float(data["rate"])
    if data.get("payment_status"):
        purchase.payment_status = data["payment_status"]
    if "payment_date" in data:
        purchase.payment_date = parse_datetime(data["payment_date"])
    if "notes" in data:
        purchase.notes = clean_str(data["notes"])
    if clean_str(data.get("purchase_date")):
        purchase.purchase_date = parse_datetime(data["purchase_date"])
    db.session.flush()

    # Ledger only moves when the quantity, rate or day does
    if any(data.get(k) is not None for k in ("quantity", "rate", "purchase_date")):
        if old_date.date() != purchase.purchase_date.date():
            recompute_after_transaction(purchase.crop_id, "purchase", -purchase.quantity,
                                        purchase.rate, on=old_date)
        recompute_after_transaction(purchase.crop_id, "purchase", purchase.quantity,
                                    purchase.rate, on=purchase.purchase_date)

    db.session.commit()
    return jsonify(purchase.to_dict())


@bp.delete("/<int:purchase_id>")
@login_required
def delete_purchase(purchase_id):
    purchase = get_or_404(Purchase, purchase_id, "Purchase not found")
    crop_id, quantity, rate, when = (
        purchase.crop_id, purchase.quantity, purchase.rate, purchase.purchase_date
    )
    db.session.delete(purchase)
    db.session.flush()

    recompute_after_transaction(crop_id, "purchase", -quantity, rate, on=when)
    db.session.commit()
    return jsonify({"message": "Purchase deleted successfully"})
