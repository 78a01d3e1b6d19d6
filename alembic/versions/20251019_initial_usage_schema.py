"""initial usage ledger schema

Revision ID: 20251019_initial_usage_schema
Revises:
Create Date: 2025-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20251019_initial_usage_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(25), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('clerk_id', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_clerk_id', 'users', ['clerk_id'], unique=True)

    op.create_table(
        'devices',
        sa.Column('id', sa.String(25), primary_key=True),
        sa.Column('external_device_id', sa.String(255), nullable=False, unique=True),
        sa.Column('platform', sa.String(20), nullable=False),
        sa.Column('user_id', sa.String(25), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_devices_id', 'devices', ['id'])
    op.create_index('ix_devices_user_id', 'devices', ['user_id'])
    op.create_index('ix_device_user_platform', 'devices', ['user_id', 'platform'])

    op.create_table(
        'daily_activities',
        sa.Column('id', sa.String(25), primary_key=True),
        sa.Column('device_id', sa.String(25), sa.ForeignKey('devices.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.UniqueConstraint('device_id', 'date', name='uq_daily_activity_device_date'),
    )
    op.create_index('ix_daily_activities_id', 'daily_activities', ['id'])
    op.create_index('ix_daily_activities_device_id', 'daily_activities', ['device_id'])
    op.create_index('ix_daily_activities_date', 'daily_activities', ['date'])

    op.create_table(
        'apps',
        sa.Column('id', sa.String(25), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('category', sa.String(20), nullable=False, server_default='uncategorized'),
        sa.Column('auto_suggested', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_apps_id', 'apps', ['id'])

    op.create_table(
        'app_usages',
        sa.Column('id', sa.String(25), primary_key=True),
        sa.Column('daily_activity_id', sa.String(25), sa.ForeignKey('daily_activities.id'), nullable=False),
        sa.Column('app_id', sa.String(25), sa.ForeignKey('apps.id'), nullable=False),
        sa.Column('total_time_ms', sa.BigInteger(), nullable=False, server_default='0'),
        sa.UniqueConstraint('daily_activity_id', 'app_id', name='uq_app_usage_daily_app'),
    )
    op.create_index('ix_app_usages_id', 'app_usages', ['id'])
    op.create_index('ix_app_usages_daily_activity_id', 'app_usages', ['daily_activity_id'])
    op.create_index('ix_app_usages_app_id', 'app_usages', ['app_id'])

    op.create_table(
        'usage_timelines',
        sa.Column('id', sa.String(25), primary_key=True),
        sa.Column('app_usage_id', sa.String(25), sa.ForeignKey('app_usages.id'), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_usage_timelines_id', 'usage_timelines', ['id'])
    op.create_index('ix_usage_timelines_app_usage_id', 'usage_timelines', ['app_usage_id'])
    # overlap lookups during pruning and `since` filtering on the stats path
    op.create_index('ix_usage_timeline_range', 'usage_timelines', ['start_time', 'end_time'])
    op.create_index('ix_usage_timeline_end', 'usage_timelines', ['end_time'])


def downgrade() -> None:
    op.drop_index('ix_usage_timeline_end', table_name='usage_timelines')
    op.drop_index('ix_usage_timeline_range', table_name='usage_timelines')
    op.drop_index('ix_usage_timelines_app_usage_id', table_name='usage_timelines')
    op.drop_index('ix_usage_timelines_id', table_name='usage_timelines')
    op.drop_table('usage_timelines')

    op.drop_index('ix_app_usages_app_id', table_name='app_usages')
    op.drop_index('ix_app_usages_daily_activity_id', table_name='app_usages')
    op.drop_index('ix_app_usages_id', table_name='app_usages')
    op.drop_table('app_usages')

    op.drop_index('ix_apps_id', table_name='apps')
    op.drop_table('apps')

    op.drop_index('ix_daily_activities_date', table_name='daily_activities')
    op.drop_index('ix_daily_activities_device_id', table_name='daily_activities')
    op.drop_index('ix_daily_activities_id', table_name='daily_activities')
    op.drop_table('daily_activities')

    op.drop_index('ix_device_user_platform', table_name='devices')
    op.drop_index('ix_devices_user_id', table_name='devices')
    op.drop_index('ix_devices_id', table_name='devices')
    op.drop_table('devices')

    op.drop_index('ix_users_clerk_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
