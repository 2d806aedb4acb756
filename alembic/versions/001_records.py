"""Records table — contact entries keyed by canonical MAC.

Revision ID: 001_records
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_records"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("mac", sa.String(12), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("mac", name="uq_records_mac"),
    )
    op.create_index("ix_records_name", "records", ["name"])
    op.create_index("ix_records_phone", "records", ["phone"])
    op.create_index("ix_records_created_at", "records", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_records_created_at", table_name="records")
    op.drop_index("ix_records_phone", table_name="records")
    op.drop_index("ix_records_name", table_name="records")
    op.drop_table("records")
