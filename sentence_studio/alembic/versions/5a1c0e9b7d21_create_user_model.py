"""create user model

Revision ID: 5a1c0e9b7d21
Revises:
Create Date: 2026-09-28 10:12:41.204517

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5a1c0e9b7d21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('email', sa.String(length=255), nullable=False),
                    sa.Column('name', sa.String(length=255), nullable=True),
                    sa.Column('password_hash', sa.Text(), nullable=True),
                    sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
                    sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
                    sa.Column('theme_mode', sa.String(length=20), nullable=False, server_default='system'),
                    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text("now()")),
                    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text("now()")),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('email')
                    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('tokens',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('tokens', sa.String(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index(op.f('ix_tokens_tokens'), 'tokens', ['tokens'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_tokens_tokens'), table_name='tokens')
    op.drop_table('tokens')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
