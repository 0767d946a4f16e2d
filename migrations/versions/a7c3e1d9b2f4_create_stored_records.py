"""Create stored_records table for the record store.

Revision ID: a7c3e1d9b2f4
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a7c3e1d9b2f4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if not insp.has_table("stored_records"):
        op.create_table(
            "stored_records",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("collection", sa.String(length=64), nullable=False),
            sa.Column("record_id", sa.String(length=64), nullable=False),
            sa.Column("payload_json", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("collection", "record_id", name="uq_stored_records_collection_record_id"),
        )

    existing_indexes = {idx["name"] for idx in insp.get_indexes("stored_records")} if insp.has_table("stored_records") else set()
    if "idx_stored_records_collection" not in existing_indexes:
        op.create_index("idx_stored_records_collection", "stored_records", ["collection"])


def downgrade() -> None:
    op.drop_index("idx_stored_records_collection", table_name="stored_records")
    op.drop_table("stored_records")
