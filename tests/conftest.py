# pytest -q
from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from agritrade import create_app, db
from agritrade.auth import issue_token
from agritrade.models import Crop, Farmer, Purchase, Sale, User

DAY = date(2024, 6, 15)


def at(day: date = DAY, hour: int = 10) -> datetime:
    return datetime.combine(day, datetime.min.time()) + timedelta(hours=hour)


@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def user(app):
    u = User(username="admin", email="admin@example.com", role="admin")
    u.set_password("secret123")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture()
def auth(user):
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture()
def make_crop(app):
    def _make(name="maize", unit="quintal", market_rate=2500.0, **kw):
        crop = Crop(name=name, unit=unit, market_rate=market_rate, **kw)
        db.session.add(crop)
        db.session.flush()
        return crop
    return _make


@pytest.fixture()
def farmer(app):
    f = Farmer(name="Ramesh Patil", village="Shirpur", contact="9876543210")
    db.session.add(f)
    db.session.flush()
    return f


@pytest.fixture()
def make_purchase(user, farmer):
    def _make(crop, quantity, rate, when=None):
        p = Purchase(
            crop_id=crop.id,
            farmer_id=farmer.id,
            quantity=quantity,
            rate=rate,
            purchase_date=when or at(),
            created_by_id=user.id,
        )
        db.session.add(p)
        db.session.flush()
        return p
    return _make


@pytest.fixture()
def make_sale(user):
    def _make(crop, quantity, rate, when=None, buyer="Shree Traders"):
        s = Sale(
            crop_id=crop.id,
            buyer_name=buyer,
            quantity=quantity,
            rate=rate,
            sale_date=when or at(hour=15),
            created_by_id=user.id,
        )
        db.session.add(s)
        db.session.flush()
        return s
    return _make
