"""Initial rice mill schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None

NOW = sa.text("(CURRENT_TIMESTAMP)")


def upgrade():
    op.create_table(
        "dealers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("dealer_id", sa.String(16), nullable=False),
        sa.Column("dealer_name", sa.String(128), nullable=False),
        sa.Column("business_name", sa.String(128), nullable=False),
        sa.Column("contact_number", sa.String(32), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("gst_number", sa.String(32), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_dealers_status"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("dealers", schema=None) as batch_op:
        batch_op.create_index("ix_dealers_dealer_id", ["dealer_id"], unique=True)
        batch_op.create_index("ix_dealers_status", ["status"], unique=False)
        batch_op.create_index("ix_dealers_created_at", ["created_at"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default="admin"),
        sa.Column("dealer_code", sa.String(16), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'dealer')", name="ck_users_role"),
        sa.ForeignKeyConstraint(["dealer_code"], ["dealers.dealer_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dealer_code"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index("ix_users_email", ["email"], unique=True)
        batch_op.create_index("ix_users_role", ["role"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("session_tokens", schema=None) as batch_op:
        batch_op.create_index("ix_session_tokens_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_session_tokens_token_hash", ["token_hash"], unique=True)
        batch_op.create_index("ix_session_tokens_is_revoked", ["is_revoked"], unique=False)

    op.create_table(
        "godowns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("capacity", sa.Numeric(14, 3), nullable=False),
        sa.Column("current_stock", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("stock_type", sa.String(16), nullable=False, server_default="mixed"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("capacity >= 0", name="ck_godowns_capacity_nonneg"),
        sa.CheckConstraint("current_stock >= 0", name="ck_godowns_stock_nonneg"),
        sa.CheckConstraint("stock_type IN ('paddy', 'rice', 'mixed')", name="ck_godowns_stock_type"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "paddy_intakes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("paddy_type", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("weight", sa.Numeric(14, 3), nullable=False),
        sa.Column("quality_grade", sa.String(4), nullable=False),
        sa.Column("moisture_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("seller_name", sa.String(128), nullable=False),
        sa.Column("seller_contact", sa.String(32), nullable=False),
        sa.Column("vehicle_number", sa.String(32), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("godown_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("added_by_user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("weight > 0", name="ck_paddy_weight_pos"),
        sa.CheckConstraint("quantity >= 0", name="ck_paddy_quantity_nonneg"),
        sa.CheckConstraint("moisture_percent >= 0 AND moisture_percent <= 100", name="ck_paddy_moisture_range"),
        sa.ForeignKeyConstraint(["godown_id"], ["godowns.id"]),
        sa.ForeignKeyConstraint(["added_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("paddy_intakes", schema=None) as batch_op:
        batch_op.create_index("ix_paddy_intakes_paddy_type", ["paddy_type"], unique=False)
        batch_op.create_index("ix_paddy_intakes_godown_id", ["godown_id"], unique=False)
        batch_op.create_index("ix_paddy_intakes_date", ["date"], unique=False)

    op.create_table(
        "rice_stock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("rice_name", sa.String(128), nullable=False),
        sa.Column("rice_type", sa.String(32), nullable=False),
        sa.Column("quantity_kg", sa.Numeric(14, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("bags_5kg", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("bags_10kg", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("bags_25kg", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("bags_75kg", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("godown_id", sa.Integer(), nullable=False),
        sa.Column("production_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="ready"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("quantity_kg >= 0", name="ck_rice_quantity_nonneg"),
        sa.CheckConstraint("bags_5kg >= 0", name="ck_rice_bags_5kg_nonneg"),
        sa.CheckConstraint("bags_10kg >= 0", name="ck_rice_bags_10kg_nonneg"),
        sa.CheckConstraint("bags_25kg >= 0", name="ck_rice_bags_25kg_nonneg"),
        sa.CheckConstraint("bags_75kg >= 0", name="ck_rice_bags_75kg_nonneg"),
        sa.CheckConstraint("status IN ('in_production', 'ready', 'sold')", name="ck_rice_status"),
        sa.ForeignKeyConstraint(["godown_id"], ["godowns.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("rice_stock", schema=None) as batch_op:
        batch_op.create_index("ix_rice_stock_type_name", ["rice_type", "rice_name"], unique=False)
        batch_op.create_index("ix_rice_stock_godown_id", ["godown_id"], unique=False)
        batch_op.create_index("ix_rice_stock_status", ["status"], unique=False)
        batch_op.create_index("ix_rice_stock_created_at", ["created_at"], unique=False)

    op.create_table(
        "dealer_orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("dealer_pk", sa.Integer(), nullable=False),
        sa.Column("dealer_code", sa.String(16), nullable=False),
        sa.Column("rice_type", sa.String(64), nullable=False),
        sa.Column("brand", sa.String(128), nullable=False),
        sa.Column("bag_size", sa.String(8), nullable=False),
        sa.Column("quantity_bags", sa.Integer(), nullable=False),
        sa.Column("total_quantity_kg", sa.Numeric(14, 3), nullable=False),
        sa.Column("rate_per_kg", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("approved_by_user_id", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("quantity_bags >= 1", name="ck_dealer_orders_qty_pos"),
        sa.CheckConstraint("total_quantity_kg >= 0", name="ck_dealer_orders_kg_nonneg"),
        sa.CheckConstraint("bag_size IN ('5kg', '10kg', '25kg', '75kg')", name="ck_dealer_orders_bag_size"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'dispatched', 'delivered')",
            name="ck_dealer_orders_status",
        ),
        sa.ForeignKeyConstraint(["dealer_pk"], ["dealers.id"]),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["approved_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("dealer_orders", schema=None) as batch_op:
        batch_op.create_index("ix_dealer_orders_dealer_pk", ["dealer_pk"], unique=False)
        batch_op.create_index("ix_dealer_orders_dealer_created", ["dealer_code", "created_at"], unique=False)
        batch_op.create_index("ix_dealer_orders_status", ["status"], unique=False)
        batch_op.create_index("ix_dealer_orders_created_at", ["created_at"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(128), nullable=False),
        sa.Column("customer_contact", sa.String(32), nullable=False),
        sa.Column("customer_address", sa.String(255), nullable=True),
        sa.Column("rice_type", sa.String(64), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("rate", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("vehicle_number", sa.String(32), nullable=True),
        sa.Column("driver_name", sa.String(128), nullable=True),
        sa.Column("destination", sa.String(255), nullable=True),
        sa.Column("dispatch_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("balance_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("sold_by_user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("quantity >= 0", name="ck_sales_quantity_nonneg"),
        sa.CheckConstraint("rate >= 0", name="ck_sales_rate_nonneg"),
        sa.CheckConstraint("paid_amount >= 0", name="ck_sales_paid_nonneg"),
        sa.ForeignKeyConstraint(["sold_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.create_index("ix_sales_customer_created", ["customer_name", "created_at"], unique=False)
        batch_op.create_index("ix_sales_status", ["status"], unique=False)
        batch_op.create_index("ix_sales_payment_status", ["payment_status"], unique=False)
        batch_op.create_index("ix_sales_created_at", ["created_at"], unique=False)

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("dealer_pk", sa.Integer(), nullable=False),
        sa.Column("dealer_code", sa.String(16), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(32), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.CheckConstraint("amount >= 0", name="ck_invoices_amount_nonneg"),
        sa.CheckConstraint("paid_amount >= 0", name="ck_invoices_paid_nonneg"),
        sa.ForeignKeyConstraint(["dealer_pk"], ["dealers.id"]),
        sa.ForeignKeyConstraint(["order_id"], ["dealer_orders.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("invoices", schema=None) as batch_op:
        batch_op.create_index("ix_invoices_dealer_pk", ["dealer_pk"], unique=False)
        batch_op.create_index("ix_invoices_order_id", ["order_id"], unique=True)
        batch_op.create_index("ix_invoices_dealer_created", ["dealer_code", "created_at"], unique=False)
        batch_op.create_index("ix_invoices_payment_status", ["payment_status"], unique=False)
        batch_op.create_index("ix_invoices_created_at", ["created_at"], unique=False)

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=True),
        sa.Column("invoice_id", sa.Integer(), nullable=True),
        sa.Column("dealer_code", sa.String(16), nullable=True),
        sa.Column("customer_name", sa.String(128), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=False, server_default="cash"),
        sa.Column("reference_number", sa.String(128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("received_by_user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_payments_amount_nonneg"),
        sa.CheckConstraint(
            "(sale_id IS NOT NULL AND invoice_id IS NULL) OR (sale_id IS NULL AND invoice_id IS NOT NULL)",
            name="ck_payments_single_target",
        ),
        sa.CheckConstraint(
            "payment_method IN ('cash', 'cheque', 'bank_transfer', 'upi', 'other')",
            name="ck_payments_method",
        ),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"]),
        sa.ForeignKeyConstraint(["received_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("payments", schema=None) as batch_op:
        batch_op.create_index("ix_payments_sale_id", ["sale_id"], unique=False)
        batch_op.create_index("ix_payments_invoice_id", ["invoice_id"], unique=False)
        batch_op.create_index("ix_payments_dealer_code", ["dealer_code"], unique=False)
        batch_op.create_index("ix_payments_payment_date", ["payment_date"], unique=False)

    op.create_table(
        "identifier_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("kind"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("identifier_sequences")
    op.drop_table("payments")
    op.drop_table("invoices")
    op.drop_table("sales")
    op.drop_table("dealer_orders")
    op.drop_table("rice_stock")
    op.drop_table("paddy_intakes")
    op.drop_table("godowns")
    op.drop_table("session_tokens")
    op.drop_table("users")
    op.drop_table("dealers")
