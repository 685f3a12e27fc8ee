"""Initial schema with restaurant scoping and RLS.

- users, user_roles
- restaurants, restaurant_staff, staff_invitations
- restaurant_tables, shifts, staff_table_assignments
- categories, menu_items
- suppliers, inventory_items, menu_item_ingredients, waste_log
- orders, order_items, staff_notifications
- purchase_orders, purchase_order_items

Also creates helper function set_restaurant_id(uuid) to set the app.restaurant_id GUC.
Policies only restrict rows when the GUC is set; unscoped sessions (auth,
platform admin) rely on the explicit restaurant filters in the repositories.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RESTAURANT_SCOPED_TABLES = [
    "restaurant_staff",
    "staff_invitations",
    "restaurant_tables",
    "shifts",
    "staff_table_assignments",
    "categories",
    "menu_items",
    "suppliers",
    "inventory_items",
    "waste_log",
    "orders",
    "staff_notifications",
    "purchase_orders",
]


def _pk() -> sa.Column:
    return sa.Column("id", sa.UUID(), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _restaurant_fk() -> list:
    return [
        sa.Column(
            "restaurant_id",
            sa.UUID(),
            nullable=False,
            server_default=sa.text("NULLIF(current_setting('app.restaurant_id', true), '')::uuid"),
        ),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"], ondelete="CASCADE"),
    ]


def upgrade() -> None:
    # Helper function to set the restaurant in the current session
    op.execute(
        """
        CREATE OR REPLACE FUNCTION set_restaurant_id(p_restaurant_id uuid)
        RETURNS void AS $$
        BEGIN
            PERFORM set_config('app.restaurant_id', p_restaurant_id::text, false);
        END;
        $$ LANGUAGE plpgsql;
        """
    )

    # Users
    op.create_table(
        "users",
        _pk(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("hashed_password", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_table(
        "user_roles",
        _pk(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    # Restaurants
    op.create_table(
        "restaurants",
        _pk(),
        sa.Column("owner_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("cover_image_url", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("bank_name", sa.Text(), nullable=True),
        sa.Column("bank_account_name", sa.Text(), nullable=True),
        sa.Column("bank_account_number", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("subscription_status", sa.Text(), server_default="trial", nullable=False),
        sa.Column("subscription_plan", sa.Text(), server_default="starter", nullable=False),
        sa.Column("subscription_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("slug", name="uq_restaurants_slug"),
        sa.CheckConstraint(
            "subscription_status IN ('trial', 'active', 'expired')", name="subscription_status"
        ),
        sa.CheckConstraint(
            "subscription_plan IN ('starter', 'professional', 'enterprise')", name="subscription_plan"
        ),
    )
    op.create_index("ix_restaurants_owner_id", "restaurants", ["owner_id"])

    # Staff
    op.create_table(
        "restaurant_staff",
        _pk(),
        *_restaurant_fk(),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("restaurant_id", "user_id", name="uq_restaurant_staff_restaurant_user"),
    )
    op.create_table(
        "staff_invitations",
        _pk(),
        *_restaurant_fk(),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("invited_by", sa.UUID(), nullable=False),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["invited_by"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("token", name="uq_staff_invitations_token"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'expired')", name="status"
        ),
    )
    op.create_index("ix_staff_invitations_email", "staff_invitations", ["email"])

    # Tables, shifts and assignments
    op.create_table(
        "restaurant_tables",
        _pk(),
        *_restaurant_fk(),
        sa.Column("table_number", sa.Integer(), nullable=False),
        sa.Column("capacity", sa.Integer(), server_default="4", nullable=False),
        sa.Column("status", sa.Text(), server_default="available", nullable=False),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('available', 'occupied', 'reserved')", name="status"),
    )
    # Numbers may repeat only among soft-deleted tables
    op.execute(
        "CREATE UNIQUE INDEX uq_restaurant_tables_active_number "
        "ON restaurant_tables (restaurant_id, table_number) WHERE is_active"
    )
    op.create_table(
        "shifts",
        _pk(),
        *_restaurant_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "staff_table_assignments",
        _pk(),
        *_restaurant_fk(),
        sa.Column("staff_user_id", sa.UUID(), nullable=False),
        sa.Column("table_id", sa.UUID(), nullable=False),
        sa.Column("shift_id", sa.UUID(), nullable=True),
        sa.Column("assignment_date", sa.Date(), server_default=sa.text("CURRENT_DATE"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["staff_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["table_id"], ["restaurant_tables.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"], ondelete="SET NULL"),
    )
    op.create_index(
        "ix_staff_table_assignments_restaurant_date",
        "staff_table_assignments",
        ["restaurant_id", "assignment_date"],
    )

    # Menu
    op.create_table(
        "categories",
        _pk(),
        *_restaurant_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "menu_items",
        _pk(),
        *_restaurant_fk(),
        sa.Column("category_id", sa.UUID(), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("model_url", sa.Text(), nullable=True),
        sa.Column("is_available", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("is_featured", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.CheckConstraint("price >= 0", name="price_non_negative"),
    )
    op.create_index("ix_menu_items_category_id", "menu_items", ["category_id"])

    # Inventory
    op.create_table(
        "suppliers",
        _pk(),
        *_restaurant_fk(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("contact_person", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "inventory_items",
        _pk(),
        *_restaurant_fk(),
        sa.Column("supplier_id", sa.UUID(), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("sku", sa.Text(), nullable=True),
        sa.Column("unit", sa.Text(), server_default="unit", nullable=False),
        sa.Column("quantity_in_stock", sa.Numeric(12, 3), server_default="0", nullable=False),
        sa.Column("minimum_stock_level", sa.Numeric(12, 3), server_default="0", nullable=False),
        sa.Column("cost_per_unit", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="SET NULL"),
        sa.CheckConstraint("quantity_in_stock >= 0", name="stock_non_negative"),
    )
    op.create_table(
        "menu_item_ingredients",
        _pk(),
        sa.Column("menu_item_id", sa.UUID(), nullable=False),
        sa.Column("inventory_item_id", sa.UUID(), nullable=False),
        sa.Column("quantity_required", sa.Numeric(12, 3), server_default="1", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["menu_item_id"], ["menu_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["inventory_item_id"], ["inventory_items.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("menu_item_id", "inventory_item_id", name="uq_menu_item_ingredients_item_inventory"),
    )
    op.create_index("ix_menu_item_ingredients_menu_item_id", "menu_item_ingredients", ["menu_item_id"])
    op.create_table(
        "waste_log",
        _pk(),
        *_restaurant_fk(),
        sa.Column("inventory_item_id", sa.UUID(), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("logged_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["inventory_item_id"], ["inventory_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["logged_by"], ["users.id"], ondelete="SET NULL"),
    )

    # Orders
    op.create_table(
        "orders",
        _pk(),
        *_restaurant_fk(),
        sa.Column("table_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("order_type", sa.Text(), server_default="dine_in", nullable=False),
        sa.Column("customer_notes", sa.Text(), nullable=True),
        sa.Column("customer_name", sa.Text(), nullable=True),
        sa.Column("customer_phone", sa.Text(), nullable=True),
        sa.Column("customer_email", sa.Text(), nullable=True),
        sa.Column("delivery_address", sa.Text(), nullable=True),
        sa.Column("payment_proof_url", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'preparing', 'ready', 'completed', 'cancelled')",
            name="status",
        ),
        sa.CheckConstraint("order_type IN ('dine_in', 'delivery')", name="order_type"),
    )
    op.create_index("ix_orders_restaurant_created_at", "orders", ["restaurant_id", "created_at"])
    op.create_index("ix_orders_restaurant_table", "orders", ["restaurant_id", "table_number"])
    op.create_table(
        "order_items",
        _pk(),
        sa.Column("order_id", sa.UUID(), nullable=False),
        sa.Column("menu_item_id", sa.UUID(), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["menu_item_id"], ["menu_items.id"], ondelete="SET NULL"),
        sa.CheckConstraint("quantity > 0", name="quantity_positive"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_table(
        "staff_notifications",
        _pk(),
        *_restaurant_fk(),
        sa.Column("staff_user_id", sa.UUID(), nullable=False),
        sa.Column("order_id", sa.UUID(), nullable=True),
        sa.Column("table_id", sa.UUID(), nullable=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["staff_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["table_id"], ["restaurant_tables.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_staff_notifications_staff_user_id", "staff_notifications", ["staff_user_id"])

    # Procurement
    op.create_table(
        "purchase_orders",
        _pk(),
        *_restaurant_fk(),
        sa.Column("supplier_id", sa.UUID(), nullable=True),
        sa.Column("order_number", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default="pending", nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("ordered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "status IN ('pending', 'ordered', 'received', 'cancelled')", name="status"
        ),
    )
    op.create_table(
        "purchase_order_items",
        _pk(),
        sa.Column("purchase_order_id", sa.UUID(), nullable=False),
        sa.Column("inventory_item_id", sa.UUID(), nullable=False),
        sa.Column("quantity_ordered", sa.Numeric(12, 3), nullable=False),
        sa.Column("quantity_received", sa.Numeric(12, 3), server_default="0", nullable=False),
        sa.Column("unit_cost", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["purchase_order_id"], ["purchase_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["inventory_item_id"], ["inventory_items.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_purchase_order_items_purchase_order_id", "purchase_order_items", ["purchase_order_id"])

    # Restaurant-scoped indexes and RLS
    for tbl in RESTAURANT_SCOPED_TABLES:
        op.create_index(f"ix_{tbl}_restaurant_id", tbl, ["restaurant_id"])
        op.execute(f"ALTER TABLE {tbl} ENABLE ROW LEVEL SECURITY;")
        op.execute(
            f"""
            CREATE POLICY {tbl}_restaurant_isolation ON {tbl}
            USING (
                NULLIF(current_setting('app.restaurant_id', true), '') IS NULL
                OR restaurant_id = NULLIF(current_setting('app.restaurant_id', true), '')::uuid
            )
            WITH CHECK (
                NULLIF(current_setting('app.restaurant_id', true), '') IS NULL
                OR restaurant_id = NULLIF(current_setting('app.restaurant_id', true), '')::uuid
            );
            """
        )


def downgrade() -> None:
    # Drop RLS policies
    for tbl in RESTAURANT_SCOPED_TABLES:
        op.execute(f"DROP POLICY IF EXISTS {tbl}_restaurant_isolation ON {tbl};")
        op.execute(f"ALTER TABLE {tbl} DISABLE ROW LEVEL SECURITY;")

    # Drop tables in reverse dependency order
    op.drop_table("purchase_order_items")
    op.drop_table("purchase_orders")
    op.drop_table("staff_notifications")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("waste_log")
    op.drop_table("menu_item_ingredients")
    op.drop_table("inventory_items")
    op.drop_table("suppliers")
    op.drop_table("menu_items")
    op.drop_table("categories")
    op.drop_table("staff_table_assignments")
    op.drop_table("shifts")
    op.drop_table("restaurant_tables")
    op.drop_table("staff_invitations")
    op.drop_table("restaurant_staff")
    op.drop_table("restaurants")
    op.drop_table("user_roles")
    op.drop_table("users")

    op.execute("DROP FUNCTION IF EXISTS set_restaurant_id(uuid);")
