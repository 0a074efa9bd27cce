"""Add location field to posts table

Revision ID: 002_add_post_location
Revises: 001
Create Date: 2026-09-16

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '002_add_post_location'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('posts', sa.Column('location', sa.String(), nullable=True))


def downgrade() -> None:
    op.drop_column('posts', 'location')
