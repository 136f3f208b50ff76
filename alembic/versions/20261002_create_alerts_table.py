"""create alerts table with lineage dedup slot"""
from alembic import op
import sqlalchemy as sa

revision = "20261002_create_alerts_table"
down_revision = "20261001_create_herd_tables"
branch_labels = None
depends_on = None

ALERT_DOMAINS = ("CLINICAL", "SANITARY", "REPRODUCTION", "MANAGEMENT", "PRODUCTION")
ORIGIN_EVENT_TYPES = (
    "FEMALE_EMPTY",
    "BREEDING_NO_DIAGNOSIS",
    "PREDICTED_BIRTH",
    "TREATMENT_RETURN",
    "VACCINATION",
    "MILK_DROP",
    "PENDING_DRY_OFF",
    "EARLY_CLINICAL_SIGNS",
)


def upgrade() -> None:
    op.create_table(
        "alerts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("domain", sa.Enum(*ALERT_DOMAINS, name="alert_domain"), nullable=False),
        sa.Column("severity", sa.Enum("LOW", "MEDIUM", "HIGH", name="alert_severity"), nullable=False),
        sa.Column("animal_id", sa.Integer(), nullable=True),
        sa.Column("property_id", sa.Integer(), nullable=True),
        sa.Column("group_label", sa.String(length=120), nullable=True),
        sa.Column("location_label", sa.String(length=120), nullable=True),
        sa.Column("reason", sa.String(length=500), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("clinical_narrative", sa.Text(), nullable=True),
        sa.Column("alert_date", sa.Date(), nullable=False),
        sa.Column("acknowledged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "origin_event_type",
            sa.Enum(*ORIGIN_EVENT_TYPES, name="alert_origin_event_type"),
            nullable=True,
        ),
        sa.Column("origin_event_id", sa.String(length=64), nullable=True),
        sa.Column("dedup_slot", sa.String(length=16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "origin_event_type",
            "origin_event_id",
            "animal_id",
            "domain",
            "dedup_slot",
            name="uq_alerts_lineage_slot",
        ),
    )
    op.create_index("ix_alerts_domain", "alerts", ["domain"])
    op.create_index("ix_alerts_animal_id", "alerts", ["animal_id"])
    op.create_index("ix_alerts_property_id", "alerts", ["property_id"])
    op.create_index("ix_alerts_alert_date", "alerts", ["alert_date"])
    op.create_index(
        "ix_alerts_lineage",
        "alerts",
        ["origin_event_type", "origin_event_id", "animal_id", "domain"],
    )


def downgrade() -> None:
    for index in (
        "ix_alerts_lineage",
        "ix_alerts_alert_date",
        "ix_alerts_property_id",
        "ix_alerts_animal_id",
        "ix_alerts_domain",
    ):
        op.drop_index(index, table_name="alerts")
    op.drop_table("alerts")
