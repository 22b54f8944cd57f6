# agritrade/seed.py
from __future__ import annotations

import logging
import random
from datetime import date, datetime, timedelta

import click
from flask.cli import with_appcontext

from agritrade import db
from agritrade.models import Crop, Expense, Farmer, Purchase, Sale, StockLog, User
from agritrade.services.stock import compute_daily_stock

log = logging.getLogger(__name__)

CROPS = [
    ("MAIZE", "quintal", "Yellow Maize", 2500),
    ("COTTON", "quintal", "Cotton Seed", 6500),
    ("WHEAT", "quintal", "Wheat Grain", 2800),
    ("BAJRA", "quintal", "Pearl Millet", 2200),
    ("SOYBEAN", "quintal", "Soybean Seed", 4500),
    ("SUGARCANE", "ton", "Sugarcane", 3500),
]

FARMERS = [
    ("Ramesh Patil", "Shirpur", "9876543210"),
    ("Suresh Jadhav", "Dhule", "9876543211"),
    ("Ganesh More", "Amalner", "9876543212"),
    ("Vijay Pawar", "Chopda", "9876543213"),
    ("Anil Shinde", "Shirpur", "9876543214"),
]

BUYERS = ["Shree Traders", "Krishna Agro", "Balaji Mills"]


def seed_database(days: int = 7, rng: random.Random | None = None):
    """Wipe the tables and load sample master data plus ``days`` of trading."""
    rng = rng or random.Random(42)

    for model in (StockLog, Expense, Sale, Purchase, Farmer, Crop, User):
        model.query.delete()
    db.session.flush()

    admin = User(username="admin", email="admin@agritrade.local", role="admin")
    admin.set_password("admin123")
    db.session.add(admin)

    crops = [Crop(name=n, unit=u, description=d, market_rate=r) for n, u, d, r in CROPS]
    farmers = [Farmer(name=n, village=v, contact=c) for n, v, c in FARMERS]
    db.session.add_all(crops + farmers)
    db.session.flush()

    start = date.today() - timedelta(days=days - 1)
    for offset in range(days):
        day = start + timedelta(days=offset)
        at = datetime.combine(day, datetime.min.time()) + timedelta(hours=10)
        for crop in crops:
            bought = 0.0
            for _ in range(rng.randint(0, 2)):
                qty = float(rng.randint(10, 60))
                bought += qty
                db.session.add(Purchase(
                    crop_id=crop.id,
                    farmer_id=rng.choice(farmers).id,
                    quantity=qty,
                    rate=crop.market_rate * rng.uniform(0.92, 1.0),
                    payment_status=rng.choice(["Paid", "Pending", "Partial"]),
                    purchase_date=at,
                    created_by_id=admin.id,
                ))
            if bought and rng.random() < 0.6:
                db.session.add(Sale(
                    crop_id=crop.id,
                    buyer_name=rng.choice(BUYERS),
                    quantity=round(bought * rng.uniform(0.3, 0.9), 1),
                    rate=crop.market_rate * rng.uniform(1.02, 1.12),
                    payment_status=rng.choice(["Paid", "Pending"]),
                    sale_date=at + timedelta(hours=4),
                    created_by_id=admin.id,
                ))
            db.session.flush()
            compute_daily_stock(crop.id, day)

        db.session.add(Expense(
            date=day,
            category=rng.choice(["Transport", "Loading", "Labor", "Storage"]),
            description="Daily operations",
            amount=float(rng.randint(300, 2500)),
            created_by_id=admin.id,
        ))

    db.session.commit()
    log.info("Seeded %d crops, %d farmers, %d days", len(crops), len(farmers), days)
    return admin


@click.command("seed")
@click.option("--days", default=7, show_default=True, help="Days of sample trading to generate.")
@with_appcontext
def seed_command(days):
    """Reset the database with sample crops, farmers and transactions."""
    db.create_all()
    seed_database(days)
    click.echo(f"Seeded {days} days of sample data (login: admin / admin123).")
