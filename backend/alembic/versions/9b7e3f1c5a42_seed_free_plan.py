"""seed_free_plan

Revision ID: 9b7e3f1c5a42
Revises: 4c1f7a2d9e30
Create Date: 2026-10-19 10:40:03.552871

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9b7e3f1c5a42'
down_revision: Union[str, Sequence[str], None] = '4c1f7a2d9e30'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


plans_table = sa.table(
    'subscription_plans',
    sa.column('name', sa.String),
    sa.column('description', sa.Text),
    sa.column('price', sa.Numeric),
    sa.column('currency', sa.String),
    sa.column('duration', sa.String),
    sa.column('limits', sa.JSON),
    sa.column('features', sa.JSON),
    sa.column('is_active', sa.Boolean),
    sa.column('version', sa.Integer),
)


def upgrade() -> None:
    """Upgrade schema."""
    # New users land on this plan (settings.free_plan_name)
    op.bulk_insert(
        plans_table,
        [
            {
                'name': 'Free',
                'description': 'Basic access for new users',
                'price': 0,
                'currency': 'KZT',
                'duration': 'yearly',
                'limits': {'publications': 3, 'responses': 10, 'messages': 20, 'promotions': 0},
                'features': {},
                'is_active': True,
                'version': 1,
            }
        ],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DELETE FROM subscription_plans WHERE name = 'Free' AND price = 0 AND version = 1")
