"""Create mail_items, pickups, notifications and audit_logs tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None

CARRIER = postgresql.ENUM('ups', 'fedex', 'usps', 'dhl', 'amazon', 'other', name='carrier', create_type=False)
MAIL_ITEM_TYPE = postgresql.ENUM(
    'package', 'letter', 'large_package', 'envelope', 'perishable', 'signature_required', 'other',
    name='mail_item_type', create_type=False,
)
MAIL_ITEM_STATUS = postgresql.ENUM(
    'pending', 'notified', 'picked_up', 'returned_to_sender', 'lost', 'other',
    name='mail_item_status', create_type=False,
)
NOTIFICATION_TYPE = postgresql.ENUM('email', 'sms', 'app', 'other', name='notification_type', create_type=False)
NOTIFICATION_STATUS = postgresql.ENUM('sent', 'delivered', 'failed', 'pending', name='notification_status', create_type=False)
AUDIT_ACTION = postgresql.ENUM('create', 'update', 'delete', 'login', 'logout', 'other', name='audit_action', create_type=False)

ENUMS = [CARRIER, MAIL_ITEM_TYPE, MAIL_ITEM_STATUS, NOTIFICATION_TYPE, NOTIFICATION_STATUS, AUDIT_ACTION]

SINGLE_RECIPIENT = (
    "(recipient_id IS NOT NULL AND external_recipient_id IS NULL) OR "
    "(recipient_id IS NULL AND external_recipient_id IS NOT NULL)"
)


def upgrade():
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        'mail_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('mail_room_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=True),
        sa.Column('external_recipient_id', sa.Integer(), nullable=True),
        sa.Column('tracking_number', sa.Text(), nullable=True),
        sa.Column('carrier', CARRIER, server_default='other', nullable=False),
        sa.Column('type', MAIL_ITEM_TYPE, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_priority', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('status', MAIL_ITEM_STATUS, server_default='pending', nullable=False),
        sa.Column('received_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('notified_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('picked_up_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('processed_by_id', sa.Integer(), nullable=True),
        sa.Column('label_image', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['mail_room_id'], ['mail_rooms.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['recipient_id'], ['user_profiles.id']),
        sa.ForeignKeyConstraint(['external_recipient_id'], ['external_people.id']),
        sa.ForeignKeyConstraint(['processed_by_id'], ['user_profiles.id']),
        sa.CheckConstraint(
            'NOT (recipient_id IS NOT NULL AND external_recipient_id IS NOT NULL)',
            name='ck_mail_items_single_recipient'
        ),
        sa.CheckConstraint(
            "notified_at IS NULL OR status <> 'pending'",
            name='ck_mail_items_notified_at_after_notify'
        ),
        sa.CheckConstraint(
            "status NOT IN ('notified', 'picked_up') OR notified_at IS NOT NULL",
            name='ck_mail_items_notified_at_required'
        ),
        sa.CheckConstraint(
            "(status = 'picked_up' AND picked_up_at IS NOT NULL AND processed_by_id IS NOT NULL)"
            " OR (status <> 'picked_up' AND picked_up_at IS NULL)",
            name='ck_mail_items_picked_up_at'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    for column in ['organization_id', 'mail_room_id', 'recipient_id', 'external_recipient_id', 'status', 'received_at']:
        op.create_index(f'mail_items_{column}_idx', 'mail_items', [column])

    op.create_table(
        'pickups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('mail_item_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=True),
        sa.Column('external_recipient_id', sa.Integer(), nullable=True),
        sa.Column('processed_by_id', sa.Integer(), nullable=False),
        sa.Column('picked_up_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('signature', sa.Text(), nullable=True),
        sa.Column('photo_confirmation', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['mail_item_id'], ['mail_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_id'], ['user_profiles.id']),
        sa.ForeignKeyConstraint(['external_recipient_id'], ['external_people.id']),
        sa.ForeignKeyConstraint(['processed_by_id'], ['user_profiles.id']),
        sa.CheckConstraint(SINGLE_RECIPIENT, name='ck_pickups_recipient'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('pickups_mail_item_id_idx', 'pickups', ['mail_item_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('mail_item_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=True),
        sa.Column('external_recipient_id', sa.Integer(), nullable=True),
        sa.Column('type', NOTIFICATION_TYPE, server_default='email', nullable=False),
        sa.Column('destination', sa.Text(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', NOTIFICATION_STATUS, server_default='pending', nullable=False),
        sa.Column('sent_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['mail_item_id'], ['mail_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_id'], ['user_profiles.id']),
        sa.ForeignKeyConstraint(['external_recipient_id'], ['external_people.id']),
        sa.CheckConstraint(SINGLE_RECIPIENT, name='ck_notifications_recipient'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('notifications_mail_item_id_idx', 'notifications', ['mail_item_id'])

    # Audit log is append-only: no updated_at, no trigger
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', AUDIT_ACTION, nullable=False),
        sa.Column('table_name', sa.Text(), nullable=True),
        sa.Column('record_id', sa.Integer(), nullable=True),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['user_id'], ['user_profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('audit_logs_organization_id_idx', 'audit_logs', ['organization_id'])
    op.create_index('audit_logs_organization_id_created_at_idx', 'audit_logs', ['organization_id', 'created_at'])

    for table in ['mail_items', 'pickups', 'notifications']:
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW
            EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade():
    for table in ['notifications', 'pickups', 'mail_items']:
        op.execute(f'DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}')

    op.drop_index('audit_logs_organization_id_created_at_idx', table_name='audit_logs')
    op.drop_index('audit_logs_organization_id_idx', table_name='audit_logs')
    op.drop_table('audit_logs')

    op.drop_index('notifications_mail_item_id_idx', table_name='notifications')
    op.drop_table('notifications')

    op.drop_index('pickups_mail_item_id_idx', table_name='pickups')
    op.drop_table('pickups')

    for column in ['received_at', 'status', 'external_recipient_id', 'recipient_id', 'mail_room_id', 'organization_id']:
        op.drop_index(f'mail_items_{column}_idx', table_name='mail_items')
    op.drop_table('mail_items')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
