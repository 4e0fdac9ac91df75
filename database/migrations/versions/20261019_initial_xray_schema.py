"""Initial schema - xray_executions, xray_steps

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create X-Ray trace tables"""

    # Executions (root aggregate)
    op.create_table(
        'xray_executions',
        sa.Column('execution_id', sa.String(length=64), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        # IN_PROGRESS, COMPLETED or FAILED:<reason> (reason truncated to fit)
        sa.Column('status', sa.String(length=500), nullable=False),
        sa.Column('context', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        # Optimistic lock counter
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('execution_id')
    )
    op.create_index(op.f('ix_xray_executions_start_time'), 'xray_executions', ['start_time'], unique=False)

    # Steps (owned by an execution, cascade delete)
    op.create_table(
        'xray_steps',
        sa.Column('step_id', sa.String(length=64), nullable=False),
        sa.Column('step_name', sa.String(length=255), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('input', sa.JSON(), nullable=True),
        sa.Column('output', sa.JSON(), nullable=True),
        sa.Column('reasoning', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('execution_id', sa.String(length=64), nullable=False),
        # Insertion index within the execution (tie-break for equal timestamps)
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ['execution_id'],
            ['xray_executions.execution_id'],
            ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('step_id')
    )
    op.create_index(op.f('ix_xray_steps_execution_id'), 'xray_steps', ['execution_id'], unique=False)
    op.create_index(
        'idx_xray_steps_execution_order',
        'xray_steps',
        ['execution_id', 'timestamp', 'sequence']
    )


def downgrade() -> None:
    """Drop X-Ray tables"""
    op.drop_index('idx_xray_steps_execution_order', table_name='xray_steps')
    op.drop_index(op.f('ix_xray_steps_execution_id'), table_name='xray_steps')
    op.drop_table('xray_steps')

    op.drop_index(op.f('ix_xray_executions_start_time'), table_name='xray_executions')
    op.drop_table('xray_executions')
