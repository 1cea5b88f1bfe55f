"""Initial schema: users, orgs, memberships, invoices, reports and their links.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fk(column: str, target: str, *, primary_key: bool = True) -> sa.Column:
    """String foreign key, restrict on delete, cascade on update."""
    return sa.Column(
        column,
        sa.String(),
        sa.ForeignKey(target, ondelete="RESTRICT", onupdate="CASCADE"),
        primary_key=primary_key,
        nullable=False,
    )


def _link_table(name: str, left: tuple[str, str], right: tuple[str, str]) -> None:
    op.create_table(
        name,
        _fk(left[0], left[1]),
        _fk(right[0], right[1]),
    )


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Entity tables
    # -----------------------------------------------------------------------
    op.create_table(
        "User",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("identifier", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("picture", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("managed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("super_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("email", name="User_email_key"),
    )
    op.create_index("ix_User_identifier", "User", ["identifier"])

    op.create_table(
        "Org",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("contact", sa.String(), nullable=False),
    )

    op.create_table(
        "Invoice",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "Report",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "Authentication",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("sub", sa.String(), nullable=False),
        sa.UniqueConstraint("sub", name="Authentication_sub_key"),
    )

    # -----------------------------------------------------------------------
    # 2. Membership and link tables
    # -----------------------------------------------------------------------
    op.create_table(
        "OrgUser",
        _fk("user_id", "User.id"),
        _fk("org_id", "Org.id"),
        sa.Column("role", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("role BETWEEN 1 AND 4", name="OrgUser_role_check"),
    )
    op.create_index("ix_OrgUser_org_id", "OrgUser", ["org_id"])

    _link_table("UserInvoice", ("user_id", "User.id"), ("invoice_id", "Invoice.id"))
    _link_table("OrgInvoice", ("org_id", "Org.id"), ("invoice_id", "Invoice.id"))
    _link_table("UserReport", ("user_id", "User.id"), ("report_id", "Report.id"))
    _link_table("OrgReport", ("org_id", "Org.id"), ("report_id", "Report.id"))
    _link_table("UserAuthentication", ("user_id", "User.id"), ("auth_id", "Authentication.id"))

    op.create_index("ix_OrgInvoice_invoice_id", "OrgInvoice", ["invoice_id"])
    op.create_index("ix_OrgReport_report_id", "OrgReport", ["report_id"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in (
        "UserAuthentication",
        "OrgReport",
        "UserReport",
        "OrgInvoice",
        "UserInvoice",
        "OrgUser",
        "Authentication",
        "Report",
        "Invoice",
        "Org",
        "User",
    ):
        op.drop_table(table)
