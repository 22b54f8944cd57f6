"""Create crop, farmer, transaction and stock ledger tables"""

from alembic import op
import sqlalchemy as sa

# ---- Identifiers ----
revision = "3a1f9c0d2b7e"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def upgrade():
    # --- user ---
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=256)),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="staff"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_user_username", "user", ["username"], unique=True)
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    # --- crop ---
    op.create_table(
        "crop",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=False, server_default="kg"),
        sa.Column("description", sa.String(length=255)),
        sa.Column("market_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_crop_name", "crop", ["name"], unique=True)

    # --- farmer ---
    op.create_table(
        "farmer",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("village", sa.String(length=120), nullable=False),
        sa.Column("contact", sa.String(length=10), nullable=False),
        sa.Column("alternate_contact", sa.String(length=10)),
        sa.Column("address", sa.String(length=255)),
        sa.Column("notes", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_farmer_name", "farmer", ["name"])

    # --- purchase ---
    op.create_table(
        "purchase",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("crop_id", sa.Integer(), nullable=False),
        sa.Column("farmer_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column("total_cost", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_status", sa.String(length=10), nullable=False, server_default="Pending"),
        sa.Column("payment_date", sa.DateTime()),
        sa.Column("notes", sa.Text()),
        sa.Column("purchase_date", sa.DateTime(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["crop_id"], ["crop.id"]),
        sa.ForeignKeyConstraint(["farmer_id"], ["farmer.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["user.id"]),
    )
    op.create_index("ix_purchase_crop_id", "purchase", ["crop_id"])
    op.create_index("ix_purchase_farmer_id", "purchase", ["farmer_id"])
    op.create_index("ix_purchase_purchase_date", "purchase", ["purchase_date"])

    # --- sale ---
    op.create_table(
        "sale",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("crop_id", sa.Integer(), nullable=False),
        sa.Column("buyer_name", sa.String(length=150), nullable=False),
        sa.Column("vehicle_number", sa.String(length=30)),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("rate", sa.Float(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_status", sa.String(length=10), nullable=False, server_default="Pending"),
        sa.Column("payment_date", sa.DateTime()),
        sa.Column("notes", sa.Text()),
        sa.Column("sale_date", sa.DateTime(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["crop_id"], ["crop.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["user.id"]),
    )
    op.create_index("ix_sale_crop_id", "sale", ["crop_id"])
    op.create_index("ix_sale_buyer_name", "sale", ["buyer_name"])
    op.create_index("ix_sale_sale_date", "sale", ["sale_date"])

    # --- expense ---
    op.create_table(
        "expense",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False, server_default="Other"),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("crop_id", sa.Integer()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_by_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["crop_id"], ["crop.id"]),
        sa.ForeignKeyConstraint(["created_by_id"], ["user.id"]),
    )
    op.create_index("ix_expense_date", "expense", ["date"])

    # --- stock_log ---
    op.create_table(
        "stock_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("crop_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("opening_stock", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("purchased", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("sold", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("closing_stock", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("avg_buying_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("avg_selling_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["crop_id"], ["crop.id"]),
        sa.UniqueConstraint("crop_id", "day", name="uix_stock_log_crop_day"),
    )
    op.create_index("ix_stock_log_crop_id", "stock_log", ["crop_id"])
    op.create_index("ix_stock_log_day", "stock_log", ["day"])


def downgrade():
    op.drop_index("ix_stock_log_day", table_name="stock_log")
    op.drop_index("ix_stock_log_crop_id", table_name="stock_log")
    op.drop_table("stock_log")
    op.drop_index("ix_expense_date", table_name="expense")
    op.drop_table("expense")
    op.drop_index("ix_sale_sale_date", table_name="sale")
    op.drop_index("ix_sale_buyer_name", table_name="sale")
    op.drop_index("ix_sale_crop_id", table_name="sale")
    op.drop_table("sale")
    op.drop_index("ix_purchase_purchase_date", table_name="purchase")
    op.drop_index("ix_purchase_farmer_id", table_name="purchase")
    op.drop_index("ix_purchase_crop_id", table_name="purchase")
    op.drop_table("purchase")
    op.drop_index("ix_farmer_name", table_name="farmer")
    op.drop_table("farmer")
    op.drop_index("ix_crop_name", table_name="crop")
    op.drop_table("crop")
    op.drop_index("ix_user_email", table_name="user")
    op.drop_index("ix_user_username", table_name="user")
    op.drop_table("user")
