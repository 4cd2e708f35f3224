"""Create DMS schema: users, plants, task masters, task instances, app settings

Revision ID: 4a7e1c9d2b30
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4a7e1c9d2b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="employee"),
        sa.Column("module_permissions", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("employee_id", sa.String(), nullable=True),
        sa.Column("plant", sa.String(), nullable=True),
        sa.Column("department", sa.String(), nullable=True),
        sa.Column("designation", sa.String(), nullable=True),
        sa.Column("contact_no", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(op.f("ix_users_plant"), "users", ["plant"], unique=False)

    op.create_table(
        "plants",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("postal_code", sa.String(), nullable=True),
        sa.Column("contact_person", sa.String(), nullable=True),
        sa.Column("contact_email", sa.String(), nullable=True),
        sa.Column("contact_phone", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_plants_code"), "plants", ["code"], unique=True)
    op.create_index(op.f("ix_plants_is_active"), "plants", ["is_active"], unique=False)

    op.create_table(
        "task_masters",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("instructions", sa.String(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("plant_id", sa.String(), nullable=False),
        sa.Column("assigned_to", sa.String(), nullable=False),
        sa.Column("assigned_by", sa.String(), nullable=False),
        sa.Column("priority", sa.String(), nullable=False, server_default="medium"),
        sa.Column("estimated_duration", sa.Integer(), nullable=False),
        sa.Column("frequency", sa.String(), nullable=False),
        sa.Column("frequency_value", sa.Integer(), nullable=True),
        sa.Column("frequency_unit", sa.String(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("task_type", sa.String(), nullable=False, server_default="recurring"),
        sa.Column("last_generated", sa.DateTime(), nullable=True),
        sa.Column("last_occurrence_date", sa.Date(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(op.f("ix_task_masters_plant_id"), "task_masters", ["plant_id"], unique=False)
    op.create_index(op.f("ix_task_masters_assigned_to"), "task_masters", ["assigned_to"], unique=False)
    op.create_index(op.f("ix_task_masters_assigned_by"), "task_masters", ["assigned_by"], unique=False)
    op.create_index(op.f("ix_task_masters_frequency"), "task_masters", ["frequency"], unique=False)
    op.create_index(op.f("ix_task_masters_is_active"), "task_masters", ["is_active"], unique=False)

    op.create_table(
        "task_instances",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "task_master_id",
            sa.String(),
            sa.ForeignKey("task_masters.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("plant_id", sa.String(), nullable=False),
        sa.Column("assigned_to", sa.String(), nullable=False),
        sa.Column("assigned_by", sa.String(), nullable=False),
        sa.Column("priority", sa.String(), nullable=False, server_default="medium"),
        sa.Column("instructions", sa.String(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("estimated_duration", sa.Integer(), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("actual_duration", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("task_master_id", "scheduled_date", name="uq_task_instance_occurrence"),
    )
    op.create_index(op.f("ix_task_instances_task_master_id"), "task_instances", ["task_master_id"], unique=False)
    op.create_index(op.f("ix_task_instances_plant_id"), "task_instances", ["plant_id"], unique=False)
    op.create_index(op.f("ix_task_instances_assigned_to"), "task_instances", ["assigned_to"], unique=False)
    op.create_index(op.f("ix_task_instances_scheduled_date"), "task_instances", ["scheduled_date"], unique=False)
    op.create_index(op.f("ix_task_instances_due_date"), "task_instances", ["due_date"], unique=False)
    op.create_index(op.f("ix_task_instances_status"), "task_instances", ["status"], unique=False)

    op.create_table(
        "app_settings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("company_logo_url", sa.String(), nullable=True),
        sa.Column("company_name", sa.String(), nullable=True),
        sa.Column("app_name_short", sa.String(), nullable=True),
        sa.Column("app_name_long", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("app_settings")

    op.drop_index(op.f("ix_task_instances_status"), table_name="task_instances")
    op.drop_index(op.f("ix_task_instances_due_date"), table_name="task_instances")
    op.drop_index(op.f("ix_task_instances_scheduled_date"), table_name="task_instances")
    op.drop_index(op.f("ix_task_instances_assigned_to"), table_name="task_instances")
    op.drop_index(op.f("ix_task_instances_plant_id"), table_name="task_instances")
    op.drop_index(op.f("ix_task_instances_task_master_id"), table_name="task_instances")
    op.drop_table("task_instances")

    op.drop_index(op.f("ix_task_masters_is_active"), table_name="task_masters")
    op.drop_index(op.f("ix_task_masters_frequency"), table_name="task_masters")
    op.drop_index(op.f("ix_task_masters_assigned_by"), table_name="task_masters")
    op.drop_index(op.f("ix_task_masters_assigned_to"), table_name="task_masters")
    op.drop_index(op.f("ix_task_masters_plant_id"), table_name="task_masters")
    op.drop_table("task_masters")

    op.drop_index(op.f("ix_plants_is_active"), table_name="plants")
    op.drop_index(op.f("ix_plants_code"), table_name="plants")
    op.drop_table("plants")

    op.drop_index(op.f("ix_users_plant"), table_name="users")
    op.drop_index(op.f("ix_users_role"), table_name="users")
    op.drop_table("users")
