from __future__ import annotations

from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from agritrade import db
from agritrade.errors import ValidationError
from agritrade.models import Crop, Sale, PAYMENT_STATUSES
from agritrade.services.stock import recompute_after_transaction
from agritrade.utils import (
    Checker, clean_str, get_or_404, int_arg, json_body, parse_datetime, range_args,
)

bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@bp.get("")
@login_required
def list_sales():
    query = Sale.query

    crop_id = int_arg("crop")
    buyer_name = clean_str(request.args.get("buyer_name"))
    payment_status = request.args.get("payment_status")
    start, end = range_args()

    if crop_id:
        query = query.filter(Sale.crop_id == crop_id)
    if buyer_name:
        # case-insensitive substring match
        query = query.filter(Sale.buyer_name.ilike(f"%{buyer_name}%"))
    if payment_status:
        query = query.filter(Sale.payment_status == payment_status)
    if start:
        query = query.filter(Sale.sale_date >= start)
    if end:
        query = query.filter(Sale.sale_date <= end)

    sales = query.order_by(Sale.sale_date.desc()).all()
    return jsonify([s.to_dict() for s in sales])


@bp.get("/<int:sale_id>")
@login_required
def get_sale(sale_id):
    return jsonify(get_or_404(Sale, sale_id, "Sale not found").to_dict())


@bp.post("")
@login_required
def create_sale():
    data = json_body()
    c = Checker(data)
    c.integer("crop", "Valid crop ID is required")
    c.required("buyer_name", "Buyer name is required")
    c.numeric("quantity", "Quantity must be a number")
    c.numeric("rate", "Rate must be a number")
    c.one_of("payment_status", PAYMENT_STATUSES, "Invalid payment status", optional=True)
    c.date("sale_date", "Invalid sale date")
    c.date("payment_date", "Invalid payment date")
    c.check()

    crop = db.session.get(Crop, int(data["crop"]))
    if not crop:
        raise ValidationError("Crop not found")

    sale = Sale(
        crop_id=crop.id,
        buyer_name=clean_str(data["buyer_name"]),
        vehicle_number=clean_str(data.get("vehicle_number")),
        quantity=float(data["quantity"]),
        rate=float(data["rate"]),
        payment_status=data.get("payment_status") or "Pending",
        payment_date=parse_datetime(data.get("payment_date")),
        notes=clean_str(data.get("notes")),
        sale_date=parse_datetime(data.get("sale_date"), default=datetime.now()),
        created_by_id=current_user.id,
    )
    db.session.add(sale)
    db.session.flush()

    recompute_after_transaction(crop.id, "sale", sale.quantity, sale.rate, on=sale.sale_date)
    db.session.commit()
    return jsonify(sale.to_dict()), 201


@bp.put("/<int:sale_id>")
@login_required
def update_sale(sale_id):
    sale = get_or_404(Sale, sale_id, "Sale not found")
    data = json_body()
    c = Checker(data)
    if "buyer_name" in data:
        c.required("buyer_name", "Buyer name cannot be empty")
    c.numeric("quantity", "Quantity must be a number", optional=True)
    c.numeric("rate", "Rate must be a number", optional=True)
    c.one_of("payment_status", PAYMENT_STATUSES, "Invalid payment status", optional=True)
    c.date("sale_date", "Invalid sale date")
    c.date("payment_date", "Invalid payment date")
    c.check()

    old_date = sale.sale_date
    if "buyer_name" in data:
        sale.buyer_name = clean_str(data["buyer_name"])
    if "vehicle_number" in data:
        sale.vehicle_number = clean_str(data["vehicle_number"])
    if data.get("quantity") is not None:
        sale.quantity = float(data["quantity"])
    if data.get("rate") is not None:
        sale.rate = float(data["rate"])
    if data.get("payment_status"):
        sale.payment_status = data["payment_status"]
    if "payment_date" in data:
        sale.payment_date = parse_datetime(data["payment_date"])
    if "notes" in data:
        sale.notes = clean_str(data["notes"])
    if clean_str(data.get("sale_date")):
        sale.sale_date = parse_datetime(data["sale_date"])
    db.session.flush()

    if any(data.get(k) is not None for k in ("quantity", "rate", "sale_date")):
        if old_date.date() != sale.sale_date.date():
            recompute_after_transaction(sale.crop_id, "sale", -sale.quantity, sale.rate, on=old_date)
        recompute_after_transaction(sale.crop_id, "sale", sale.quantity, sale.rate, on=sale.sale_date)

    db.session.commit()
    return jsonify(sale.to_dict())


@bp.delete("/<int:sale_id>")
@login_required
def delete_sale(sale_id):
    sale = get_or_404(Sale, sale_id, "Sale not found")
    crop_id, quantity, rate, when = sale.crop_id, sale.quantity, sale.rate, sale.sale_date
    db.session.delete(sale)
    db.session.flush()

    recompute_after_transaction(crop_id, "sale", -quantity, rate, on=when)
    db.session.commit()
    return jsonify({"message": "Sale deleted successfully"})
