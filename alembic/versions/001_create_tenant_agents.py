"""Create tenants and tenant_agents tables

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # One agent per tenant; a tenant without a row here is "agentless"
    op.create_table(
        "tenant_agents",
        sa.Column("tenant_id", sa.String(64), sa.ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("endpoint", sa.Text(), nullable=True),
        # Literal secret or a vault:// / env:// reference
        sa.Column("shared_secret", sa.Text(), nullable=True),
        sa.Column("encryption_key", sa.Text(), nullable=True),
        sa.Column("encrypt_queries", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("timeout_ms", sa.Integer(), server_default="15000", nullable=True),
        sa.Column("max_retries", sa.Integer(), server_default="2", nullable=True),
        sa.Column("retry_enabled", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("tenant_agents")
    op.drop_table("tenants")
