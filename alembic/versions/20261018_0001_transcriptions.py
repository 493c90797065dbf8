"""Transcriptions table with workflow columns

Revision ID: 0001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'transcriptions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('audio_url', sa.String(2048), nullable=False),
        sa.Column('transcription', sa.Text(), nullable=False),
        sa.Column('source', sa.String(20), nullable=False, server_default='mock'),
        sa.Column('language', sa.String(5), nullable=False, server_default='en-US'),
        # NULL for records created outside the review workflow
        sa.Column('workflow_status', sa.String(20), nullable=True),
        sa.Column('workflow_history', sa.JSON(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_transcriptions_created_at', 'transcriptions', ['created_at'])
    op.create_index('ix_transcriptions_source_created', 'transcriptions', ['source', 'created_at'])
    op.create_index('ix_transcriptions_status_updated', 'transcriptions', ['workflow_status', 'updated_at'])


def downgrade() -> None:
    op.drop_index('ix_transcriptions_status_updated', table_name='transcriptions')
    op.drop_index('ix_transcriptions_source_created', table_name='transcriptions')
    op.drop_index('ix_transcriptions_created_at', table_name='transcriptions')
    op.drop_table('transcriptions')
