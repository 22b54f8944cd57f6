from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import login_required

from agritrade import db
from agritrade.errors import Conflict
from agritrade.models import Crop, UNITS, normalize_crop_name
from agritrade.utils import Checker, as_bool, clean_str, get_or_404, json_body

bp = Blueprint("crops", __name__, url_prefix="/api/crops")


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    q = Crop.query.filter(Crop.name == normalize_crop_name(name))
    if exclude_id is not None:
        q = q.filter(Crop.id != exclude_id)
    return db.session.query(q.exists()).scalar()


@bp.get("")
@login_required
def list_crops():
    crops = Crop.query.filter_by(is_active=True).order_by(Crop.name.asc()).all()
    return jsonify([c.to_dict() for c in crops])


@bp.get("/<int:crop_id>")
@login_required
def get_crop(crop_id):
    return jsonify(get_or_404(Crop, crop_id, "Crop not found").to_dict())


@bp.post("")
@login_required
def create_crop():
    data = json_body()
    c = Checker(data)
    c.required("name", "Crop name is required")
    c.one_of("unit", UNITS, "Invalid unit")
    c.numeric("market_rate", "Market rate must be a number")
    c.check()

    if _name_taken(data["name"]):
        raise Conflict("Crop already exists")

    crop = Crop(
        name=data["name"],
        unit=data["unit"],
        description=clean_str(data.get("description")),
        market_rate=float(data["market_rate"]),
    )
    db.session.add(crop)
    db.session.commit()
    return jsonify(crop.to_dict()), 201


@bp.put("/<int:crop_id>")
@login_required
def update_crop(crop_id):
    crop = get_or_404(Crop, crop_id, "Crop not found")
    data = json_body()
    c = Checker(data)
    if "name" in data:
        c.required("name", "Crop name cannot be empty")
    c.one_of("unit", UNITS, "Invalid unit", optional=True)
    c.numeric("market_rate", "Market rate must be a number", optional=True)
    c.check()

    if "name" in data:
        if _name_taken(data["name"], exclude_id=crop.id):
            raise Conflict("Crop already exists")
        crop.name = data["name"]
    if "unit" in data:
        crop.unit = data["unit"]
    if "description" in data:
        crop.description = clean_str(data["description"])
    if "market_rate" in data:
        crop.market_rate = float(data["market_rate"])
    if "is_active" in data:
        crop.is_active = as_bool(data["is_active"])

    db.session.commit()
    return jsonify(crop.to_dict())


@bp.delete("/<int:crop_id>")
@login_required
def delete_crop(crop_id):
    """Soft delete: history keeps pointing at the crop."""
    crop = get_or_404(Crop, crop_id, "Crop not found")
    crop.is_active = False
    db.session.commit()
    return jsonify({"message": "Crop deleted successfully"})
