"""create crm entity and relation tables

Revision ID: 202610190002
Revises: 202610190001
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190002"
down_revision: str | None = "202610190001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _entity_tables() -> dict[str, list[sa.Column]]:
    """Table name -> columns besides id, org_id and the timestamps."""
    return {
        "contacts": [
            sa.Column("first_name", sa.Text(), nullable=False),
            sa.Column("last_name", sa.Text(), nullable=False),
        ],
        "deals": [
            sa.Column("name", sa.Text(), nullable=True),
            sa.Column("size", sa.Float(), nullable=True),
            sa.Column("active", sa.Boolean(), nullable=False),
        ],
        "notes": [
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("body", sa.Text(), nullable=False),
        ],
        "companies": [sa.Column("name", sa.Text(), nullable=False)],
        "links": [sa.Column("link", sa.Text(), nullable=False)],
        "emails": [sa.Column("email", sa.Text(), nullable=False)],
        "phones": [sa.Column("number", sa.Text(), nullable=False)],
    }


# table name -> (parent column, parent table, child column, child table)
JOIN_TABLES: dict[str, tuple[str, str, str, str]] = {
    "deal_contacts": ("deal_id", "deals", "contact_id", "contacts"),
    "task_deals": ("task_id", "tasks", "deal_id", "deals"),
    "task_links": ("task_id", "tasks", "link_id", "links"),
    "task_users": ("task_id", "tasks", "user_id", "users"),
}


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _create_org_table(name: str, columns: list[sa.Column], *constraints: sa.Constraint) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("org_id", sa.Uuid(), nullable=False),
        *columns,
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["orgs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        *constraints,
    )
    op.create_index(f"ix_{name}_org_id", name, ["org_id"], unique=False)


def upgrade() -> None:
    for name, columns in _entity_tables().items():
        _create_org_table(name, columns)

    _create_org_table(
        "tasks",
        [
            sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("contact_id", sa.Uuid(), nullable=True),
        ],
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="SET NULL"),
    )

    for name, (parent_column, parent_table, child_column, child_table) in JOIN_TABLES.items():
        op.create_table(
            name,
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column(parent_column, sa.Uuid(), nullable=False),
            sa.Column(child_column, sa.Uuid(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint([parent_column], [f"{parent_table}.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint([child_column], [f"{child_table}.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(parent_column, child_column, name=f"uq_{name}_pair"),
        )
        op.create_index(f"ix_{name}_{parent_column}", name, [parent_column], unique=False)
        op.create_index(f"ix_{name}_{child_column}", name, [child_column], unique=False)


def downgrade() -> None:
    for name, (parent_column, _, child_column, _) in JOIN_TABLES.items():
        op.drop_index(f"ix_{name}_{child_column}", table_name=name)
        op.drop_index(f"ix_{name}_{parent_column}", table_name=name)
        op.drop_table(name)

    op.drop_index("ix_tasks_org_id", table_name="tasks")
    op.drop_table("tasks")

    for name in reversed(list(_entity_tables())):
        op.drop_index(f"ix_{name}_org_id", table_name=name)
        op.drop_table(name)
