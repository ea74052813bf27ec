"""create users and todos tables"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1d7e2a9b40"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("wallet_address", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("external_id", name="uq_users_external_id"),
    )

    op.create_table(
        "todos",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("attachment_key", sa.String(length=512), nullable=True),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("length(title) > 0", name="ck_todos_title_length"),
        sa.ForeignKeyConstraint(
            ["owner_id"],
            ["users.external_id"],
            name="fk_todos_owner_id_users",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_todos"),
        sa.UniqueConstraint("attachment_key", name="uq_todos_attachment_key"),
    )
    op.create_index("ix_todos_owner_id", "todos", ["owner_id"], unique=False)
    op.create_index("ix_todos_owner_id_created_at", "todos", ["owner_id", "created_at"], unique=False)
    op.create_index("ix_todos_completed", "todos", ["completed"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_todos_completed", table_name="todos")
    op.drop_index("ix_todos_owner_id_created_at", table_name="todos")
    op.drop_index("ix_todos_owner_id", table_name="todos")
    op.drop_table("todos")
    op.drop_table("users")
