"""Create integrations table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19 14:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None

INTEGRATION_TYPE = postgresql.ENUM('csv', 'api', 'other', name='integration_type', create_type=False)


def upgrade():
    INTEGRATION_TYPE.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'integrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('type', INTEGRATION_TYPE, server_default='csv', nullable=False),
        sa.Column('configuration', postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('last_synced_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('integrations_organization_id_idx', 'integrations', ['organization_id'])

    op.execute("""
        CREATE TRIGGER update_integrations_updated_at
        BEFORE UPDATE ON integrations
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade():
    op.execute('DROP TRIGGER IF EXISTS update_integrations_updated_at ON integrations')
    op.drop_index('integrations_organization_id_idx', table_name='integrations')
    op.drop_table('integrations')
    INTEGRATION_TYPE.drop(op.get_bind(), checkfirst=True)
