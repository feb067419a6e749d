"""create categories, sentences, favorites, recordings and practice logs

Revision ID: 8d3f6a2c4b10
Revises: 5a1c0e9b7d21
Create Date: 2026-09-28 10:31:07.918342

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d3f6a2c4b10'
down_revision: Union[str, None] = '5a1c0e9b7d21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('categories',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('name', sa.String(length=100), nullable=False),
                    sa.Column('description', sa.Text(), nullable=True),
                    sa.Column('color', sa.String(length=20), nullable=True, server_default='#3b82f6'),
                    sa.Column('is_preset', sa.Boolean(), nullable=False, server_default=sa.text('false')),
                    sa.Column('user_id', sa.Integer(), nullable=True),
                    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
                    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
                    sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_categories_is_preset'), 'categories', ['is_preset'])
    op.create_index(op.f('ix_categories_user_id'), 'categories', ['user_id'])
    # preset names are global, custom names are unique per user
    op.create_index('categories_preset_name_idx', 'categories', ['name'], unique=True,
                    postgresql_where=sa.text('is_preset = true'))
    op.create_index('categories_user_name_idx', 'categories', ['user_id', 'name'], unique=True,
                    postgresql_where=sa.text('is_preset = false'))

    op.create_table('sentences',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('english_text', sa.Text(), nullable=False),
                    sa.Column('chinese_text', sa.Text(), nullable=True),
                    sa.Column('category_id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('difficulty', sa.String(length=20), nullable=True, server_default='medium'),
                    sa.Column('notes', sa.Text(), nullable=True),
                    sa.Column('is_shared', sa.Boolean(), nullable=False, server_default=sa.text('false')),
                    sa.Column('audio_url', sa.Text(), nullable=True),
                    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
                    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
                    sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_sentences_category_id'), 'sentences', ['category_id'])
    op.create_index(op.f('ix_sentences_user_id'), 'sentences', ['user_id'])
    op.create_index(op.f('ix_sentences_is_shared'), 'sentences', ['is_shared'])
    op.create_index('sentences_user_shared_idx', 'sentences', ['user_id', 'is_shared'])

    op.create_table('user_sentence_favorites',
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('sentence_id', sa.Integer(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['sentence_id'], ['sentences.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('user_id', 'sentence_id')
                    )
    op.create_index(op.f('ix_user_sentence_favorites_user_id'), 'user_sentence_favorites', ['user_id'])
    op.create_index(op.f('ix_user_sentence_favorites_sentence_id'), 'user_sentence_favorites', ['sentence_id'])

    op.create_table('recordings',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('sentence_id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('audio_url', sa.Text(), nullable=False),
                    sa.Column('object_key', sa.Text(), nullable=True),
                    sa.Column('duration', sa.Integer(), nullable=True),
                    sa.Column('file_size', sa.Integer(), nullable=True),
                    sa.Column('mime_type', sa.String(length=50), nullable=True, server_default='audio/webm'),
                    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
                    sa.ForeignKeyConstraint(['sentence_id'], ['sentences.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_recordings_sentence_id'), 'recordings', ['sentence_id'])
    op.create_index(op.f('ix_recordings_user_id'), 'recordings', ['user_id'])
    op.create_index('recordings_user_sentence_idx', 'recordings', ['user_id', 'sentence_id'])

    op.create_table('practice_logs',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('sentence_id', sa.Integer(), nullable=False),
                    sa.Column('score', sa.Integer(), nullable=True),
                    sa.Column('transcript', sa.Text(), nullable=True),
                    sa.Column('practiced_at', sa.DateTime(timezone=True), server_default=sa.text('now()'),
                              nullable=False),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.ForeignKeyConstraint(['sentence_id'], ['sentences.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_practice_logs_user_id'), 'practice_logs', ['user_id'])
    op.create_index(op.f('ix_practice_logs_sentence_id'), 'practice_logs', ['sentence_id'])
    op.create_index('practice_logs_user_practiced_idx', 'practice_logs', ['user_id', 'practiced_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('practice_logs_user_practiced_idx', table_name='practice_logs')
    op.drop_index(op.f('ix_practice_logs_sentence_id'), table_name='practice_logs')
    op.drop_index(op.f('ix_practice_logs_user_id'), table_name='practice_logs')
    op.drop_table('practice_logs')

    op.drop_index('recordings_user_sentence_idx', table_name='recordings')
    op.drop_index(op.f('ix_recordings_user_id'), table_name='recordings')
    op.drop_index(op.f('ix_recordings_sentence_id'), table_name='recordings')
    op.drop_table('recordings')

    op.drop_index(op.f('ix_user_sentence_favorites_sentence_id'), table_name='user_sentence_favorites')
    op.drop_index(op.f('ix_user_sentence_favorites_user_id'), table_name='user_sentence_favorites')
    op.drop_table('user_sentence_favorites')

    op.drop_index('sentences_user_shared_idx', table_name='sentences')
    op.drop_index(op.f('ix_sentences_is_shared'), table_name='sentences')
    op.drop_index(op.f('ix_sentences_user_id'), table_name='sentences')
    op.drop_index(op.f('ix_sentences_category_id'), table_name='sentences')
    op.drop_table('sentences')

    op.drop_index('categories_user_name_idx', table_name='categories')
    op.drop_index('categories_preset_name_idx', table_name='categories')
    op.drop_index(op.f('ix_categories_user_id'), table_name='categories')
    op.drop_index(op.f('ix_categories_is_preset'), table_name='categories')
    op.drop_table('categories')
