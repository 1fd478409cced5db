"""create i18n tables

Revision ID: 001_i18n_tables
Revises:
Create Date: 2026-10-19

Tables behind the translation cache:
- h_language: languages enabled in the UI (cache warm set)
- system_message: message key + default (uz-UZ) text
- system_message_translation: one text per (message, language)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_i18n_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'h_language',
        sa.Column('code', sa.String(10), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('position', sa.Integer, nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'system_message',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('message_key', sa.String(255), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('message_key', name='uq_system_message_message_key'),
    )
    op.create_index('idx_system_message_category', 'system_message', ['category'])
    op.create_index('idx_system_message_deleted_at', 'system_message', ['deleted_at'])

    op.create_table(
        'system_message_translation',
        sa.Column('message_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('language', sa.String(10), nullable=False),
        sa.Column('translation', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('message_id', 'language'),
        sa.ForeignKeyConstraint(['message_id'], ['system_message.id'], ondelete='CASCADE'),
    )
    # Bulk loader filters by language
    op.create_index('idx_system_message_translation_language', 'system_message_translation', ['language'])


def downgrade():
    op.drop_index('idx_system_message_translation_language', table_name='system_message_translation')
    op.drop_table('system_message_translation')

    op.drop_index('idx_system_message_deleted_at', table_name='system_message')
    op.drop_index('idx_system_message_category', table_name='system_message')
    op.drop_table('system_message')

    op.drop_table('h_language')
