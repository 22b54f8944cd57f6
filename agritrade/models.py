# agritrade/models.py
from datetime import date, datetime

from flask_login import UserMixin
from sqlalchemy import event
from sqlalchemy.orm import validates
from werkzeug.security import generate_password_hash, check_password_hash

from agritrade import db


UNITS = ("kg", "quintal", "ton", "bag")
PAYMENT_STATUSES = ("Paid", "Pending", "Partial")
EXPENSE_CATEGORIES = ("Transport", "Loading", "Labor", "Storage", "Other")
ROLES = ("admin", "staff")


def _iso(value):
    return value.isoformat() if value is not None else None


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


# ---------------------------
# Auth / Users
# ---------------------------
class User(db.Model, UserMixin):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.String(50), unique=True, index=True, nullable=False)
    email = db.Column(db.String(120), unique=True, index=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=True)
    role = db.Column(db.String(20), nullable=False, default="staff")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password, method="pbkdf2:sha256")

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash or "", password)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
        }


# ---------------------------
# Master data
# ---------------------------
class Crop(TimestampMixin, db.Model):
    __tablename__ = "crop"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), unique=True, index=True, nullable=False)
    unit = db.Column(db.String(20), nullable=False, default="kg")
    description = db.Column(db.String(255))
    market_rate = db.Column(db.Float, nullable=False, default=0.0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    @validates("name")
    def _normalize_name(self, key, value):
        return normalize_crop_name(value)

    def summary(self):
        return {"id": self.id, "name": self.name, "unit": self.unit}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "description": self.description,
            "market_rate": self.market_rate,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Crop {self.id} {self.name}>"


def normalize_crop_name(value):
    return (value or "").strip().upper()


class Farmer(TimestampMixin, db.Model):
    __tablename__ = "farmer"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    village = db.Column(db.String(120), nullable=False)
    contact = db.Column(db.String(10), nullable=False)
    alternate_contact = db.Column(db.String(10))
    address = db.Column(db.String(255))
    notes = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    purchases = db.relationship("Purchase", back_populates="farmer", lazy="dynamic")

    def summary(self):
        return {"id": self.id, "name": self.name, "village": self.village, "contact": self.contact}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "village": self.village,
            "contact": self.contact,
            "alternate_contact": self.alternate_contact,
            "address": self.address,
            "notes": self.notes,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


# ---------------------------
# Purchases / Sales / Expenses
# ---------------------------
class Purchase(TimestampMixin, db.Model):
    __tablename__ = "purchase"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    crop_id = db.Column(db.Integer, db.ForeignKey("crop.id"), nullable=False, index=True)
    farmer_id = db.Column(db.Integer, db.ForeignKey("farmer.id"), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)
    rate = db.Column(db.Float, nullable=False)
    total_cost = db.Column(db.Float, nullable=False, default=0.0)  # quantity * rate
    payment_status = db.Column(db.String(10), nullable=False, default="Pending")
    payment_date = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    purchase_date = db.Column(db.DateTime, nullable=False, default=datetime.now, index=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)

    crop = db.relationship("Crop")
    farmer = db.relationship("Farmer", back_populates="purchases")
    created_by = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "crop": self.crop.summary() if self.crop else None,
            "farmer": self.farmer.summary() if self.farmer else None,
            "quantity": self.quantity,
            "rate": self.rate,
            "total_cost": self.total_cost,
            "payment_status": self.payment_status,
            "payment_date": _iso(self.payment_date),
            "notes": self.notes,
            "purchase_date": _iso(self.purchase_date),
            "created_by": self.created_by.username if self.created_by else None,
            "created_at": _iso(self.created_at),
        }


class Sale(TimestampMixin, db.Model):
    __tablename__ = "sale"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    crop_id = db.Column(db.Integer, db.ForeignKey("crop.id"), nullable=False, index=True)
    buyer_name = db.Column(db.String(150), nullable=False, index=True)
    vehicle_number = db.Column(db.String(30))
    quantity = db.Column(db.Float, nullable=False)
    rate = db.Column(db.Float, nullable=False)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)  # quantity * rate
    payment_status = db.Column(db.String(10), nullable=False, default="Pending")
    payment_date = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    sale_date = db.Column(db.DateTime, nullable=False, default=datetime.now, index=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)

    crop = db.relationship("Crop")
    created_by = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "crop": self.crop.summary() if self.crop else None,
            "buyer_name": self.buyer_name,
            "vehicle_number": self.vehicle_number,
            "quantity": self.quantity,
            "rate": self.rate,
            "total_amount": self.total_amount,
            "payment_status": self.payment_status,
            "payment_date": _iso(self.payment_date),
            "notes": self.notes,
            "sale_date": _iso(self.sale_date),
            "created_by": self.created_by.username if self.created_by else None,
            "created_at": _iso(self.created_at),
        }


class Expense(TimestampMixin, db.Model):
    __tablename__ = "expense"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    date = db.Column(db.Date, nullable=False, default=date.today, index=True)
    category = db.Column(db.String(20), nullable=False, default="Other")
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    crop_id = db.Column(db.Integer, db.ForeignKey("crop.id"), nullable=True)
    notes = db.Column(db.Text)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)

    crop = db.relationship("Crop")
    created_by = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "date": _iso(self.date),
            "category": self.category,
            "description": self.description,
            "amount": self.amount,
            "crop": self.crop.summary() if self.crop else None,
            "notes": self.notes,
            "created_by": self.created_by.username if self.created_by else None,
        }


# ---------------------------
# Daily stock ledger
# ---------------------------
class StockLog(TimestampMixin, db.Model):
    __tablename__ = "stock_log"
    __table_args__ = (
        db.UniqueConstraint("crop_id", "day", name="uix_stock_log_crop_day"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    crop_id = db.Column(db.Integer, db.ForeignKey("crop.id"), nullable=False, index=True)
    day = db.Column(db.Date, nullable=False, index=True)
    opening_stock = db.Column(db.Float, nullable=False, default=0.0)
    purchased = db.Column(db.Float, nullable=False, default=0.0)
    sold = db.Column(db.Float, nullable=False, default=0.0)
    closing_stock = db.Column(db.Float, nullable=False, default=0.0)  # opening + purchased - sold
    avg_buying_rate = db.Column(db.Float, nullable=False, default=0.0)
    avg_selling_rate = db.Column(db.Float, nullable=False, default=0.0)

    crop = db.relationship("Crop")

    def to_dict(self):
        return {
            "id": self.id,
            "crop_id": self.crop_id,
            "day": _iso(self.day),
            "opening_stock": self.opening_stock,
            "purchased": self.purchased,
            "sold": self.sold,
            "closing_stock": self.closing_stock,
            "avg_buying_rate": self.avg_buying_rate,
            "avg_selling_rate": self.avg_selling_rate,
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<StockLog crop={self.crop_id} day={self.day} closing={self.closing_stock}>"


# ---------------------------
# Derived columns (not independently settable)
# ---------------------------
@event.listens_for(Purchase, "before_insert")
@event.listens_for(Purchase, "before_update")
def _purchase_total(mapper, connection, target):
    target.total_cost = (target.quantity or 0.0) * (target.rate or 0.0)


@event.listens_for(Sale, "before_insert")
@event.listens_for(Sale, "before_update")
def _sale_total(mapper, connection, target):
    target.total_amount = (target.quantity or 0.0) * (target.rate or 0.0)


@event.listens_for(StockLog, "before_insert")
@event.listens_for(StockLog, "before_update")
def _stock_log_closing(mapper, connection, target):
    target.closing_stock = (
        (target.opening_stock or 0.0) + (target.purchased or 0.0) - (target.sold or 0.0)
    )
