"""Create file_action_request table

Revision ID: 001
Revises:
Create Date: 2026-10-05 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'file_action_request',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('status', sa.String(16), server_default='PENDING', nullable=False),
        sa.Column('file_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('source_folder_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('target_folder_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('requester_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('designated_approver_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('approver_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('decision_comment', sa.Text(), nullable=True),
        sa.Column('execution_note', sa.Text(), nullable=True),
        sa.Column('snapshot_folder_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('snapshot_file_state', sa.String(32), nullable=False),
        sa.Column('requested_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('decided_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('executed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("type IN ('MOVE', 'DELETE')", name='ck_file_action_request_type'),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'CANCELED', 'EXECUTED', 'FAILED', 'INVALIDATED')",
            name='ck_file_action_request_status'
        ),
        sa.CheckConstraint(
            "(type = 'MOVE' AND target_folder_id IS NOT NULL) OR (type = 'DELETE' AND target_folder_id IS NULL)",
            name='ck_file_action_request_target_folder'
        ),
    )

    op.create_index('ix_file_action_request_status', 'file_action_request', ['status'])
    op.create_index('ix_file_action_request_type', 'file_action_request', ['type'])
    op.create_index('ix_file_action_request_file_id', 'file_action_request', ['file_id'])
    op.create_index('ix_file_action_request_requester_id', 'file_action_request', ['requester_id'])
    op.create_index(
        'ix_file_action_request_designated_approver_id',
        'file_action_request',
        ['designated_approver_id']
    )
    op.create_index('ix_file_action_request_requested_at', 'file_action_request', ['requested_at'])

    # At most one PENDING request per file
    op.create_index(
        'uq_file_action_request_pending_file',
        'file_action_request',
        ['file_id'],
        unique=True,
        postgresql_where=sa.text("status = 'PENDING'")
    )


def downgrade():
    op.drop_index('uq_file_action_request_pending_file', table_name='file_action_request')
    op.drop_index('ix_file_action_request_requested_at', table_name='file_action_request')
    op.drop_index('ix_file_action_request_designated_approver_id', table_name='file_action_request')
    op.drop_index('ix_file_action_request_requester_id', table_name='file_action_request')
    op.drop_index('ix_file_action_request_file_id', table_name='file_action_request')
    op.drop_index('ix_file_action_request_type', table_name='file_action_request')
    op.drop_index('ix_file_action_request_status', table_name='file_action_request')

    op.drop_table('file_action_request')
