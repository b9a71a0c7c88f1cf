"""Initial marketplace schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('phone_no', sa.String(20), nullable=True),
        sa.Column('alternate_phone', sa.String(20), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_customers_email', 'customers', ['email'], unique=True)

    op.create_table(
        'service_providers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('phone_no', sa.String(20), nullable=True),
        sa.Column('alternate_phone', sa.String(20), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        sa.Column('business_name', sa.String(255), nullable=True),
        sa.Column('gst_number', sa.String(20), nullable=True),
        sa.Column('aadhar_number', sa.String(20), nullable=True),
        sa.Column('pan_number', sa.String(20), nullable=True),
        sa.Column('status', sa.Enum('basic_registered', 'pending_approval', 'approved', 'rejected', name='provider_status'), nullable=False),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_service_providers_email', 'service_providers', ['email'], unique=True)

    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('phone_no', sa.String(20), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('role', sa.Enum('super_admin', 'support_admin', name='admin_role'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_admins_email', 'admins', ['email'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('actor_id', sa.Integer(), sa.ForeignKey('admins.id'), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('target_type', sa.String(50), nullable=False),
        sa.Column('target_id', sa.Integer(), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])

    op.create_table(
        'services',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('provider_id', sa.Integer(), sa.ForeignKey('service_providers.id'), nullable=False),
        sa.Column('service_name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('status', sa.Enum('Active', 'Inactive', name='service_status'), nullable=False),
        *_timestamps()
    )
    op.create_index('ix_services_provider_id', 'services', ['provider_id'])
    op.create_index('ix_services_category', 'services', ['category'])

    op.create_table(
        'media',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('media_type', sa.Enum('Image', 'Video', name='media_type'), nullable=False),
        sa.Column('media_url', sa.String(500), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('file_extension', sa.String(10), nullable=True),
        sa.Column('status', sa.Enum('Active', 'Inactive', 'Deleted', name='media_status'), nullable=False),
        sa.Column('upload_time', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_media_service_id', 'media', ['service_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('review_text', sa.String(500), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_reviews_rating_range')
    )
    op.create_index('ix_reviews_service_id', 'reviews', ['service_id'])
    op.create_index('ix_reviews_customer_id', 'reviews', ['customer_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('provider_id', sa.Integer(), sa.ForeignKey('service_providers.id'), nullable=False),
        sa.Column('status', sa.Enum('Pending', 'Accepted', 'Rejected', 'Cancelled', 'Completed', name='booking_status'), nullable=False),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_by', sa.String(20), nullable=True),
        sa.Column('event_address', sa.Text(), nullable=False),
        sa.Column('event_start_date', sa.Date(), nullable=False),
        sa.Column('event_end_date', sa.Date(), nullable=False),
        sa.Column('event_time', sa.String(5), nullable=False),
        sa.Column('booking_date', sa.DateTime(), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(20), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_status', sa.Enum('unpaid', 'paid', name='payment_status'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('total_amount > 0', name='ck_bookings_total_amount_positive'),
        sa.CheckConstraint('event_end_date >= event_start_date', name='ck_bookings_event_dates')
    )
    op.create_index('ix_bookings_customer_id', 'bookings', ['customer_id'])
    op.create_index('ix_bookings_service_id', 'bookings', ['service_id'])
    op.create_index('ix_bookings_provider_id', 'bookings', ['provider_id'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])
    op.create_index('ix_bookings_event_start_date', 'bookings', ['event_start_date'])

    op.create_table(
        'reset_tokens',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('expiry', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'verified', 'used', name='reset_token_status'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_reset_tokens_email', 'reset_tokens', ['email'])
    op.create_index('ix_reset_tokens_token_hash', 'reset_tokens', ['token_hash'], unique=True)

    op.create_table(
        'email_verification_tokens',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('expiry', sa.DateTime(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'verified', 'used', name='verification_token_status'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_email_verification_tokens_email', 'email_verification_tokens', ['email'])
    op.create_index('ix_email_verification_tokens_token', 'email_verification_tokens', ['token'], unique=True)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('receiver_id', sa.Integer(), nullable=False),
        sa.Column('receiver_type', sa.Enum('PROVIDER', 'CUSTOMER', name='receiver_type'), nullable=False),
        sa.Column('booking_id', sa.Integer(), sa.ForeignKey('bookings.id'), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('UNREAD', 'READ', name='notification_status'), nullable=False),
        *_timestamps()
    )
    op.create_index('ix_notifications_receiver_id', 'notifications', ['receiver_id'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('email_verification_tokens')
    op.drop_table('reset_tokens')
    op.drop_table('bookings')
    op.drop_table('reviews')
    op.drop_table('media')
    op.drop_table('services')
    op.drop_table('audit_logs')
    op.drop_table('admins')
    op.drop_table('service_providers')
    op.drop_table('customers')
