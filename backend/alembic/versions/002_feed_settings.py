"""Feed settings: per-subscriber auto-archive grace period and archive-after-vote preference."""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "feed_settings",
        sa.Column("subscriber_id", UUID(as_uuid=True), nullable=False),
        sa.Column("autoarchive_after_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("archive_proposal_after_vote", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("subscriber_id"),
    )


def downgrade() -> None:
    op.drop_table("feed_settings")
