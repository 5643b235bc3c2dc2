"""Initial migration

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

REMINDER_STATUSES = ('completed', 'current', 'upcoming', 'future', 'placeholder')

def upgrade() -> None:
    # 1. Reminders table
    reminder_status = postgresql.ENUM(*REMINDER_STATUSES, name='reminder_status', create_type=False)
    reminder_status.create(op.get_bind(), checkfirst=True)

    op.create_table('reminders',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('scheduled_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notify_before_minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', reminder_status, server_default='future', nullable=False),
        sa.Column('is_priority', sa.Boolean(), server_default=sa.text('false'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('notify_before_minutes >= 0', name='ck_reminders_notify_before_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reminders_user_id'), 'reminders', ['user_id'], unique=False)
    op.create_index(op.f('ix_reminders_scheduled_time'), 'reminders', ['scheduled_time'], unique=False)
    op.create_index('ix_reminder_user_scheduled', 'reminders', ['user_id', 'scheduled_time'], unique=False)

    # 2. Reminder actions
    op.create_table('reminder_actions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reminder_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('action_type', sa.String(length=32), nullable=False),
        sa.Column('action_value', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), server_default='{}', nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint(
            "action_type IN ('call', 'link', 'location', 'email', 'note', 'assign', 'photo', 'voice', 'subtasks')",
            name='ck_reminder_actions_type'
        ),
        sa.ForeignKeyConstraint(['reminder_id'], ['reminders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reminder_actions_reminder_id'), 'reminder_actions', ['reminder_id'], unique=False)
    op.create_index(op.f('ix_reminder_actions_action_type'), 'reminder_actions', ['action_type'], unique=False)

    # 3. Per-device notification schedules
    op.create_table('notification_schedules',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('reminder_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('device_id', sa.String(length=255), nullable=False),
        sa.Column('notification_id', sa.String(length=255), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reminder_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('snoozed_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['reminder_id'], ['reminders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'reminder_id', 'device_id', name='uq_notification_schedule_user_reminder_device')
    )
    op.create_index('ix_notification_schedules_user_device', 'notification_schedules', ['user_id', 'device_id'], unique=False)

    # 4. User preferences
    op.create_table('user_preferences',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('snooze_mode', sa.String(length=32), server_default='text_input', nullable=False),
        sa.Column('default_snooze_minutes', sa.Integer(), server_default='15', nullable=False),
        sa.Column('snooze_preset_values', postgresql.JSONB(astext_type=sa.Text()), server_default='[10, 15, 30]', nullable=False),
        sa.Column('default_notify_before_minutes', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint("snooze_mode IN ('text_input', 'presets')", name='ck_user_preferences_snooze_mode'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )


def downgrade() -> None:
    op.drop_table('user_preferences')
    op.drop_index('ix_notification_schedules_user_device', table_name='notification_schedules')
    op.drop_table('notification_schedules')
    op.drop_index(op.f('ix_reminder_actions_action_type'), table_name='reminder_actions')
    op.drop_index(op.f('ix_reminder_actions_reminder_id'), table_name='reminder_actions')
    op.drop_table('reminder_actions')
    op.drop_index('ix_reminder_user_scheduled', table_name='reminders')
    op.drop_index(op.f('ix_reminders_scheduled_time'), table_name='reminders')
    op.drop_index(op.f('ix_reminders_user_id'), table_name='reminders')
    op.drop_table('reminders')
    postgresql.ENUM(name='reminder_status').drop(op.get_bind(), checkfirst=True)
