"""add users, guest tokens and user settings tables"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "guest_accounts_20261019"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=190), nullable=False, unique=True),
        sa.Column("name", sa.String(length=190), nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="guest"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("auth_source", sa.String(length=32), nullable=False, server_default="local"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "guest_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=190), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token", sa.String(length=255), nullable=False),
        sa.Column("purpose", sa.String(length=16), nullable=False, server_default="register"),
        sa.Column("confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_guest_tokens_email", "guest_tokens", ["email"])
    op.create_index("ix_guest_tokens_user_id", "guest_tokens", ["user_id"])
    op.create_index("ix_guest_tokens_token", "guest_tokens", ["token"])

    op.create_table(
        "user_settings",
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("name", sa.String(length=190), primary_key=True),
        sa.Column("value", sa.JSON(), nullable=True),
    )


def downgrade():
    op.drop_table("user_settings")
    op.drop_index("ix_guest_tokens_token", table_name="guest_tokens")
    op.drop_index("ix_guest_tokens_user_id", table_name="guest_tokens")
    op.drop_index("ix_guest_tokens_email", table_name="guest_tokens")
    op.drop_table("guest_tokens")
    op.drop_table("users")
