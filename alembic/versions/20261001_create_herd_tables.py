"""create herd read-model tables"""
from alembic import op
import sqlalchemy as sa

revision = "20261001_create_herd_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "herd_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_herd_groups_property_id", "herd_groups", ["property_id"])

    op.create_table(
        "animals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("tag", sa.String(length=40), nullable=True),
        sa.Column("sex", sa.Enum("FEMALE", "MALE", name="animal_sex"), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("herd_groups.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_animals_property_id", "animals", ["property_id"])
    op.create_index("ix_animals_group_id", "animals", ["group_id"])

    op.create_table(
        "breedings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("animal_id", sa.Integer(), sa.ForeignKey("animals.id"), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("IN_PROGRESS", "CONFIRMED", "FAILED", "CONCLUDED", name="breeding_status"),
            nullable=False,
        ),
        sa.Column("insemination_type", sa.String(length=60), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_breedings_animal_id", "breedings", ["animal_id"])

    op.create_table(
        "treatments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("animal_id", sa.Integer(), sa.ForeignKey("animals.id"), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("diagnosis", sa.String(length=255), nullable=True),
        sa.Column("intervention_type", sa.String(length=120), nullable=True),
        sa.Column("needs_return", sa.Boolean(), nullable=False),
        sa.Column("return_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_treatments_animal_id", "treatments", ["animal_id"])
    op.create_index("ix_treatments_return_date", "treatments", ["return_date"])

    op.create_table(
        "vaccinations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("animal_id", sa.Integer(), sa.ForeignKey("animals.id"), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("vaccine_type", sa.String(length=120), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_vaccinations_animal_id", "vaccinations", ["animal_id"])
    op.create_index("ix_vaccinations_scheduled_date", "vaccinations", ["scheduled_date"])

    op.create_table(
        "milk_yields",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("animal_id", sa.Integer(), sa.ForeignKey("animals.id"), nullable=False),
        sa.Column("milked_on", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Numeric(8, 2), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_milk_yields_quantity_non_negative"),
        *_timestamps(),
    )
    op.create_index("ix_milk_yields_animal_id", "milk_yields", ["animal_id"])
    op.create_index("ix_milk_yields_milked_on", "milk_yields", ["milked_on"])

    op.create_table(
        "weighings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("animal_id", sa.Integer(), sa.ForeignKey("animals.id"), nullable=False),
        sa.Column("weighed_on", sa.Date(), nullable=False),
        sa.Column("weight", sa.Numeric(8, 2), nullable=False),
        sa.CheckConstraint("weight > 0", name="ck_weighings_weight_positive"),
        *_timestamps(),
    )
    op.create_index("ix_weighings_animal_id", "weighings", ["animal_id"])
    op.create_index("ix_weighings_weighed_on", "weighings", ["weighed_on"])


def downgrade() -> None:
    for table in ("weighings", "milk_yields", "vaccinations", "treatments", "breedings"):
        op.drop_table(table)
    op.drop_index("ix_animals_group_id", table_name="animals")
    op.drop_index("ix_animals_property_id", table_name="animals")
    op.drop_table("animals")
    op.drop_index("ix_herd_groups_property_id", table_name="herd_groups")
    op.drop_table("herd_groups")
    op.drop_table("properties")
