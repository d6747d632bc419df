"""Add current_environment_id reference to app_version

Revision ID: b2c3d4e5f6a7
Revises: a1b2c3d4e5f6
Create Date: 2026-06-15 11:44:26.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "b2c3d4e5f6a7"
down_revision: Union[str, None] = "a1b2c3d4e5f6"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Nullable so existing rows survive until the backfill revision fills them in
    with op.batch_alter_table("app_version", schema=None) as batch_op:
        batch_op.add_column(sa.Column("current_environment_id", sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            "fk_app_version_current_environment_id",
            "app_environment",
            ["current_environment_id"],
            ["id"],
        )
        batch_op.create_index(
            "ix_app_version_current_environment_id", ["current_environment_id"], unique=False
        )


def downgrade() -> None:
    with op.batch_alter_table("app_version", schema=None) as batch_op:
        batch_op.drop_index("ix_app_version_current_environment_id")
        batch_op.drop_constraint("fk_app_version_current_environment_id", type_="foreignkey")
        batch_op.drop_column("current_environment_id")
