"""Backfill app_version.current_environment_id from each organization's default environment.

Revision ID: c3d4e5f6a7b8
Revises: b2c3d4e5f6a7
Create Date: 2026-06-15 11:44:31.000000

"""

from typing import Sequence, Union

# revision identifiers, used by Alembic.
revision: str = "c3d4e5f6a7b8"
down_revision: Union[str, None] = "b2c3d4e5f6a7"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """No schema change.

    Trigger: this revision is newly applied.
    Why: db.run_migrations() detects this revision transition and runs
    CurrentEnvironmentBackfill.up() in its own transaction before stamping it.
    Outcome: every existing app version references its organization's default environment.
    """


def downgrade() -> None:
    """No-op downgrade.

    The previous schema held no explicit reference, so there is nothing to restore.
    """
