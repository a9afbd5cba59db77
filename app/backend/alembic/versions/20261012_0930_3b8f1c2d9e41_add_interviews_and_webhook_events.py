"""add interviews and webhook events

Revision ID: 3b8f1c2d9e41
Revises:
Create Date: 2026-10-12 09:30:41.512209

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '3b8f1c2d9e41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('interviews',
    sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
    sa.Column('zoom_meeting_id', sa.String(length=64), nullable=True),
    sa.Column('status', sa.String(length=20), server_default='scheduled', nullable=False),
    sa.Column('recording_status', sa.String(length=20), nullable=True),
    sa.Column('recording_url', sa.Text(), nullable=True),
    sa.Column('recording_duration', sa.Integer(), nullable=True),
    sa.Column('recording_file_size', sa.BigInteger(), nullable=True),
    sa.Column('recording_processed_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('webhook_last_received_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('webhook_event_type', sa.String(length=100), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_interviews_zoom_meeting_id'), 'interviews', ['zoom_meeting_id'], unique=True)

    op.create_table('webhook_events',
    sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
    sa.Column('provider', sa.String(length=50), nullable=False),
    sa.Column('event_type', sa.String(length=100), nullable=False),
    sa.Column('event_id', sa.String(length=255), nullable=False),
    sa.Column('correlation_key', sa.String(length=255), nullable=True),
    sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
    sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
    sa.Column('max_attempts', sa.Integer(), server_default='3', nullable=False),
    sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('next_retry_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('error_message', sa.Text(), nullable=True),
    sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint("status IN ('pending', 'processing', 'completed', 'failed', 'dead_letter')", name='ck_webhook_events_status'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('provider', 'event_id', name='uq_webhook_events_provider_event_id')
    )
    op.create_index('ix_webhook_events_status_next_retry_at', 'webhook_events', ['status', 'next_retry_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_webhook_events_status_next_retry_at', table_name='webhook_events')
    op.drop_table('webhook_events')
    op.drop_index(op.f('ix_interviews_zoom_meeting_id'), table_name='interviews')
    op.drop_table('interviews')
