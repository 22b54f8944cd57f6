from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import login_required

from agritrade import db
from agritrade.models import Farmer, Purchase
from agritrade.utils import CONTACT_RE, Checker, as_bool, clean_str, get_or_404, json_body

bp = Blueprint("farmers", __name__, url_prefix="/api/farmers")

TEXT_FIELDS = ("name", "village", "contact", "alternate_contact", "address", "notes")


@bp.get("")
@login_required
def list_farmers():
    farmers = Farmer.query.filter_by(is_active=True).order_by(Farmer.name.asc()).all()
    return jsonify([f.to_dict() for f in farmers])


@bp.get("/<int:farmer_id>")
@login_required
def get_farmer(farmer_id):
    """Farmer with their purchase history, newest first."""
    farmer = get_or_404(Farmer, farmer_id, "Farmer not found")
    purchases = farmer.purchases.order_by(Purchase.purchase_date.desc()).all()
    return jsonify({"farmer": farmer.to_dict(), "purchases": [p.to_dict() for p in purchases]})


@bp.post("")
@login_required
def create_farmer():
    data = json_body()
    c = Checker(data)
    c.required("name", "Farmer name is required")
    c.required("village", "Village is required")
    c.matches("contact", CONTACT_RE, "Contact must be 10 digits")
    c.matches("alternate_contact", CONTACT_RE, "Alternate contact must be 10 digits", optional=True)
    c.check()

    farmer = Farmer(**{k: clean_str(data.get(k)) for k in TEXT_FIELDS})
    db.session.add(farmer)
    db.session.commit()
    return jsonify(farmer.to_dict()), 201


@bp.put("/<int:farmer_id>")
@login_required
def update_farmer(farmer_id):
    farmer = get_or_404(Farmer, farmer_id, "Farmer not found")
    data = json_body()
    c = Checker(data)
    if "name" in data:
        c.required("name", "Farmer name cannot be empty")
    if "village" in data:
        c.required("village", "Village cannot be empty")
    if "contact" in data:
        c.matches("contact", CONTACT_RE, "Contact must be 10 digits")
    c.matches("alternate_contact", CONTACT_RE, "Alternate contact must be 10 digits", optional=True)
    c.check()

    for k in TEXT_FIELDS:
        if k in data:
            setattr(farmer, k, clean_str(data[k]))
    if "is_active" in data:
        farmer.is_active = as_bool(data["is_active"])

    db.session.commit()
    return jsonify(farmer.to_dict())


@bp.delete("/<int:farmer_id>")
@login_required
def delete_farmer(farmer_id):
    farmer = get_or_404(Farmer, farmer_id, "Farmer not found")
    farmer.is_active = False
    db.session.commit()
    return jsonify({"message": "Farmer deleted successfully"})
