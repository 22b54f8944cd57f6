from __future__ import annotations

from datetime import date

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy import func

from agritrade import db
from agritrade.errors import ValidationError
from agritrade.models import Crop, Expense, EXPENSE_CATEGORIES
from agritrade.utils import (
    Checker, clean_str, get_or_404, int_arg, json_body, parse_date, range_args,
)

bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


def _crop_ref(value):
    if value in (None, ""):
        return None
    crop = db.session.get(Crop, int(value))
    if not crop:
        raise ValidationError("Crop not found")
    return crop.id


def _check(data, partial=False):
    c = Checker(data)
    if not partial or "description" in data:
        c.required("description", "Description is required")
    c.numeric("amount", "Amount must be a number", optional=partial)
    c.one_of("category", EXPENSE_CATEGORIES, "Invalid category", optional=True)
    c.integer("crop", "Valid crop ID is required", optional=True)
    c.date("date", "Invalid date")
    c.check()


@bp.get("")
@login_required
def list_expenses():
    query = Expense.query
    category = request.args.get("category")
    crop_id = int_arg("crop")
    start, end = range_args()

    if category:
        query = query.filter(Expense.category == category)
    if crop_id:
        query = query.filter(Expense.crop_id == crop_id)
    if start:
        query = query.filter(Expense.date >= start.date())
    if end:
        query = query.filter(Expense.date <= end.date())

    total = query.with_entities(func.coalesce(func.sum(Expense.amount), 0)).scalar() or 0
    expenses = query.order_by(Expense.date.desc(), Expense.id.desc()).all()
    return jsonify({
        "expenses": [e.to_dict() for e in expenses],
        "total": round(float(total), 2),
    })


@bp.get("/<int:expense_id>")
@login_required
def get_expense(expense_id):
    return jsonify(get_or_404(Expense, expense_id, "Expense not found").to_dict())


@bp.post("")
@login_required
def create_expense():
    data = json_body()
    _check(data)

    exp = Expense(
        date=parse_date(data.get("date"), default=date.today()),
        category=data.get("category") or "Other",
        description=clean_str(data["description"]),
        amount=float(data["amount"]),
        crop_id=_crop_ref(data.get("crop")),
        notes=clean_str(data.get("notes")),
        created_by_id=current_user.id,
    )
    db.session.add(exp)
    db.session.commit()
    return jsonify(exp.to_dict()), 201


@bp.put("/<int:expense_id>")
@login_required
def update_expense(expense_id):
    exp = get_or_404(Expense, expense_id, "Expense not found")
    data = json_body()
    _check(data, partial=True)

    if clean_str(data.get("date")):
        exp.date = parse_date(data["date"])
    if data.get("category"):
        exp.category = data["category"]
    if "description" in data:
        exp.description = clean_str(data["description"])
    if data.get("amount") is not None:
        exp.amount = float(data["amount"])
    if "crop" in data:
        exp.crop_id = _crop_ref(data["crop"])
    if "notes" in data:
        exp.notes = clean_str(data["notes"])

    db.session.commit()
    return jsonify(exp.to_dict())


@bp.delete("/<int:expense_id>")
@login_required
def delete_expense(expense_id):
    exp = get_or_404(Expense, expense_id, "Expense not found")
    db.session.delete(exp)
    db.session.commit()
    return jsonify({"message": "Expense deleted successfully"})
