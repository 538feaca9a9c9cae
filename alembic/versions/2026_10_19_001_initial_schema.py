"""Initial schema for accounts, menu, cart, orders and settings

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_initial_schema'
down_revision = None


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    # Accounts
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('phone_number', sa.String(32), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        *timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'password_reset_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_password_reset_tokens_user_id', 'password_reset_tokens', ['user_id'])
    op.create_index('ix_password_reset_tokens_token_hash', 'password_reset_tokens', ['token_hash'], unique=True)

    op.create_table(
        'admins',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(120), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='moderator'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )
    op.create_index('ix_admins_user_id', 'admins', ['user_id'], unique=True)
    op.create_index('ix_admins_is_active', 'admins', ['is_active'])

    # Menu
    op.create_table(
        'menu_categories',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name_en', sa.String(120), nullable=False),
        sa.Column('name_mm', sa.String(120), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )
    op.create_index('ix_menu_categories_display_order', 'menu_categories', ['display_order'])
    op.create_index('ix_menu_categories_is_active', 'menu_categories', ['is_active'])

    op.create_table(
        'menu_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('category_id', sa.Uuid(), sa.ForeignKey('menu_categories.id'), nullable=False),
        sa.Column('menu_code', sa.String(32), nullable=True),
        sa.Column('name_en', sa.String(160), nullable=False),
        sa.Column('name_mm', sa.String(160), nullable=True),
        sa.Column('description_en', sa.String(2000), nullable=True),
        sa.Column('description_mm', sa.String(2000), nullable=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(16), nullable=False, server_default='draft'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_set_menu', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('allow_user_notes', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
    )
    op.create_index('ix_menu_items_category_id', 'menu_items', ['category_id'])
    op.create_index('ix_menu_items_status', 'menu_items', ['status'])
    op.create_index('ix_menu_items_is_available', 'menu_items', ['is_available'])

    op.create_table(
        'choice_pools',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('name_en', sa.String(120), nullable=True),
        sa.Column('name_mm', sa.String(120), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
    )
    op.create_index('ix_choice_pools_is_active', 'choice_pools', ['is_active'])

    op.create_table(
        'choice_pool_options',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('pool_id', sa.Uuid(), sa.ForeignKey('choice_pools.id'), nullable=False),
        sa.Column('menu_code', sa.String(32), nullable=True),
        sa.Column('name_en', sa.String(120), nullable=False),
        sa.Column('name_mm', sa.String(120), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
    )
    op.create_index('ix_choice_pool_options_pool_id', 'choice_pool_options', ['pool_id'])

    op.create_table(
        'set_menu_pool_links',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('menu_item_id', sa.Uuid(), sa.ForeignKey('menu_items.id'), nullable=False),
        sa.Column('pool_id', sa.Uuid(), sa.ForeignKey('choice_pools.id'), nullable=False),
        sa.Column('is_price_determining', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('uses_option_price', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('flat_price', sa.Integer(), nullable=True),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('min_select', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('max_select', sa.Integer(), nullable=False, server_default='99'),
        sa.Column('label_en', sa.String(120), nullable=True),
        sa.Column('label_mm', sa.String(120), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_set_menu_pool_links_menu_item_id', 'set_menu_pool_links', ['menu_item_id'])
    op.create_index('ix_set_menu_pool_links_pool_id', 'set_menu_pool_links', ['pool_id'])

    op.create_table(
        'recommended_menu_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('menu_item_id', sa.Uuid(), sa.ForeignKey('menu_items.id'), nullable=False),
        sa.Column('menu_category_id', sa.Uuid(), sa.ForeignKey('menu_categories.id'), nullable=False),
        sa.Column('badge_label', sa.String(40), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_recommended_menu_items_menu_item_id', 'recommended_menu_items', ['menu_item_id'], unique=True)
    op.create_index('ix_recommended_menu_items_menu_category_id', 'recommended_menu_items', ['menu_category_id'])

    # Cart
    op.create_table(
        'carts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='active'),
        sa.Column('subtotal', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
    )
    op.create_index('ix_carts_user_id', 'carts', ['user_id'])
    # One active cart per user
    op.create_index(
        'uq_carts_active_user', 'carts', ['user_id'], unique=True,
        sqlite_where=sa.text("status = 'active'"),
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'cart_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cart_id', sa.Uuid(), sa.ForeignKey('carts.id'), nullable=False),
        sa.Column('menu_item_id', sa.Uuid(), sa.ForeignKey('menu_items.id'), nullable=False),
        sa.Column('menu_code', sa.String(32), nullable=True),
        sa.Column('menu_item_name', sa.String(160), nullable=False),
        sa.Column('menu_item_name_mm', sa.String(160), nullable=True),
        sa.Column('base_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('addons_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('note', sa.String(280), nullable=True),
        sa.Column('hash_key', sa.String(64), nullable=False),
        *timestamps(),
        sa.UniqueConstraint('cart_id', 'hash_key', name='uq_cart_items_cart_hash'),
    )
    op.create_index('ix_cart_items_cart_id', 'cart_items', ['cart_id'])
    op.create_index('ix_cart_items_menu_item_id', 'cart_items', ['menu_item_id'])

    op.create_table(
        'cart_item_choices',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cart_item_id', sa.Uuid(), sa.ForeignKey('cart_items.id'), nullable=False),
        sa.Column('pool_link_id', sa.Uuid(), nullable=False),
        sa.Column('option_id', sa.Uuid(), nullable=False),
        sa.Column('group_name', sa.String(120), nullable=False),
        sa.Column('group_name_mm', sa.String(120), nullable=True),
        sa.Column('option_name', sa.String(120), nullable=False),
        sa.Column('option_name_mm', sa.String(120), nullable=True),
        sa.Column('menu_code', sa.String(32), nullable=True),
        sa.Column('extra_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('selection_role', sa.String(16), nullable=False, server_default='addon'),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_cart_item_choices_cart_item_id', 'cart_item_choices', ['cart_item_id'])

    # Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('display_id', sa.String(16), nullable=False),
        sa.Column('display_day', sa.Date(), nullable=False),
        sa.Column('display_counter', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('cart_id', sa.Uuid(), nullable=True),
        sa.Column('status', sa.String(40), nullable=False, server_default='order_processing'),
        sa.Column('customer_name', sa.String(120), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(32), nullable=False),
        sa.Column('delivery_mode', sa.String(16), nullable=False, server_default='preset'),
        sa.Column('delivery_location_id', sa.Uuid(), nullable=True),
        sa.Column('delivery_building_id', sa.Uuid(), nullable=True),
        sa.Column('delivery_location_name', sa.String(120), nullable=True),
        sa.Column('delivery_building_label', sa.String(60), nullable=True),
        sa.Column('order_note', sa.String(500), nullable=True),
        sa.Column('subtotal', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('vat_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('food_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('delivery_fee', sa.Integer(), nullable=True),
        sa.Column('discount_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('admin_note', sa.String(500), nullable=True),
        sa.Column('cancel_reason', sa.String(500), nullable=True),
        sa.Column('is_closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('display_day', 'display_counter', name='uq_orders_display_day_counter'),
    )
    op.create_index('ix_orders_display_id', 'orders', ['display_id'], unique=True)
    op.create_index('ix_orders_display_day', 'orders', ['display_day'])
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_is_closed', 'orders', ['is_closed'])
    op.create_index('ix_orders_closed_at', 'orders', ['closed_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('menu_item_id', sa.Uuid(), nullable=True),
        sa.Column('menu_code', sa.String(32), nullable=True),
        sa.Column('name_en', sa.String(160), nullable=False),
        sa.Column('name_mm', sa.String(160), nullable=True),
        sa.Column('base_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('addons_total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('note', sa.String(280), nullable=True),
        sa.Column('choices', sa.JSON(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'order_events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('event_type', sa.String(40), nullable=False),
        sa.Column('from_status', sa.String(40), nullable=True),
        sa.Column('to_status', sa.String(40), nullable=True),
        sa.Column('actor_type', sa.String(16), nullable=False, server_default='system'),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('note', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_order_events_order_id', 'order_events', ['order_id'])

    op.create_table(
        'order_payments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('receipt_url', sa.String(1000), nullable=True),
        sa.Column('receipt_uploaded_at', sa.DateTime(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verified_by_admin_id', sa.Uuid(), nullable=True),
        sa.Column('rejected_reason', sa.String(500), nullable=True),
        sa.Column('rejection_count', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
        sa.UniqueConstraint('order_id', 'type', name='uq_order_payments_order_type'),
    )
    op.create_index('ix_order_payments_order_id', 'order_payments', ['order_id'])

    # Delivery and shop settings
    op.create_table(
        'delivery_locations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('slug', sa.String(140), nullable=False),
        sa.Column('condo_name', sa.String(120), nullable=False),
        sa.Column('area', sa.String(40), nullable=False, server_default='AU'),
        sa.Column('min_fee', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_fee', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('notes', sa.String(200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )
    op.create_index('ix_delivery_locations_slug', 'delivery_locations', ['slug'], unique=True)
    op.create_index('ix_delivery_locations_is_active', 'delivery_locations', ['is_active'])

    op.create_table(
        'delivery_buildings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('delivery_locations.id'), nullable=False),
        sa.Column('label', sa.String(60), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_delivery_buildings_location_id', 'delivery_buildings', ['location_id'])

    op.create_table(
        'shop_settings',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('is_open', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('closed_message_en', sa.String(500), nullable=True),
        sa.Column('closed_message_mm', sa.String(500), nullable=True),
        sa.Column('updated_by_admin_id', sa.Uuid(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )


def downgrade():
    for table in (
        'shop_settings', 'delivery_buildings', 'delivery_locations',
        'order_payments', 'order_events', 'order_items', 'orders',
        'cart_item_choices', 'cart_items', 'carts',
        'recommended_menu_items', 'set_menu_pool_links', 'choice_pool_options', 'choice_pools',
        'menu_items', 'menu_categories',
        'admins', 'password_reset_tokens', 'users',
    ):
        op.drop_table(table)
