from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20250101_01"
down_revision: str | Sequence[str] | None = None
branch_labels = None
depends_on = None


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def _id() -> sa.Column:
    return sa.Column("id", _uuid(), primary_key=True)


def upgrade() -> None:
    """Create supply chain, monitoring and issuance tables."""

    op.create_table(
        "facilities",
        _id(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("registration_number", sa.String(), nullable=False),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("baseline_type", sa.String(), nullable=False, server_default="NEW_BUILT"),
        sa.Column("baseline_carbon_storage_tco2e", sa.Float(), nullable=True),
        sa.Column("total_infrastructure_emissions_tco2e", sa.Float(), nullable=True),
        sa.Column("infrastructure_lifetime_years", sa.Float(), nullable=True),
        sa.Column("co_product_allocation_factor", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "baseline_type IN ('NEW_BUILT', 'RETROFIT_FACILITY', 'CHARCOAL_REPURPOSE')",
            name="ck_facilities_baseline_type",
        ),
    )

    op.create_table(
        "feedstock_deliveries",
        _id(),
        sa.Column("facility_id", _uuid(), sa.ForeignKey("facilities.id"), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=False),
        sa.Column("feedstock_type", sa.String(), nullable=False),
        sa.Column("supplier_name", sa.String(), nullable=True),
        sa.Column("weight_tonnes", sa.Float(), nullable=False),
        sa.Column("delivery_distance_km", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "production_batches",
        _id(),
        sa.Column("facility_id", _uuid(), sa.ForeignKey("facilities.id"), nullable=False),
        sa.Column("production_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="in_progress"),
        sa.Column("feedstock_input_tonnes", sa.Float(), nullable=True),
        sa.Column("output_biochar_tonnes", sa.Float(), nullable=False, server_default="0"),
        sa.Column("dry_mass_tonnes", sa.Float(), nullable=True),
        sa.Column("temperature_min_c", sa.Float(), nullable=True),
        sa.Column("temperature_max_c", sa.Float(), nullable=True),
        sa.Column("temperature_avg_c", sa.Float(), nullable=True),
        sa.Column("stack_ch4_kg", sa.Float(), nullable=True),
        sa.Column("stack_n2o_kg", sa.Float(), nullable=True),
        sa.Column("total_carbon_percent", sa.Float(), nullable=True),
        sa.Column("organic_carbon_percent", sa.Float(), nullable=True),
        sa.Column("hydrogen_percent", sa.Float(), nullable=True),
        sa.Column("h_corg_ratio", sa.Float(), nullable=True),
        sa.Column("quality_status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_production_batches_facility_date",
        "production_batches",
        ["facility_id", "production_date"],
    )

    op.create_table(
        "lab_tests",
        _id(),
        sa.Column(
            "production_batch_id",
            _uuid(),
            sa.ForeignKey("production_batches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("test_date", sa.Date(), nullable=False),
        sa.Column("lab_name", sa.String(), nullable=True),
        sa.Column("total_carbon_percent", sa.Float(), nullable=False),
        sa.Column("inorganic_carbon_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("hydrogen_percent", sa.Float(), nullable=False),
        sa.Column("moisture_percent", sa.Float(), nullable=True),
        sa.Column("organic_carbon_percent", sa.Float(), nullable=True),
        sa.Column("h_corg_ratio", sa.Float(), nullable=True),
        sa.Column("passes_threshold", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "feedstock_allocations",
        _id(),
        sa.Column(
            "feedstock_delivery_id",
            _uuid(),
            sa.ForeignKey("feedstock_deliveries.id"),
            nullable=False,
        ),
        sa.Column(
            "production_batch_id",
            _uuid(),
            sa.ForeignKey("production_batches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("percentage_used", sa.Float(), nullable=True),
        sa.Column("weight_used_tonnes", sa.Float(), nullable=True),
    )

    op.create_table(
        "energy_usages",
        _id(),
        sa.Column("facility_id", _uuid(), sa.ForeignKey("facilities.id"), nullable=False),
        sa.Column("production_batch_id", _uuid(), sa.ForeignKey("production_batches.id"), nullable=True),
        sa.Column("scope", sa.String(), nullable=False, server_default="production"),
        sa.Column("energy_type", sa.String(), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=True),
        sa.Column("period_end", sa.Date(), nullable=True),
    )

    op.create_table(
        "sequestration_events",
        _id(),
        sa.Column("final_delivery_date", sa.Date(), nullable=False),
        sa.Column("destination", sa.String(), nullable=True),
        sa.Column("method", sa.String(), nullable=True),
        sa.Column("end_use_category", sa.String(), nullable=True),
        sa.Column("mean_annual_soil_temp_c", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "sequestration_batches",
        _id(),
        sa.Column(
            "sequestration_event_id",
            _uuid(),
            sa.ForeignKey("sequestration_events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "production_batch_id",
            _uuid(),
            sa.ForeignKey("production_batches.id"),
            nullable=False,
        ),
        sa.Column("quantity_tonnes", sa.Float(), nullable=False, server_default="0"),
    )

    op.create_table(
        "leakage_assessments",
        _id(),
        sa.Column("facility_id", _uuid(), sa.ForeignKey("facilities.id"), nullable=False),
        sa.Column("assessment_date", sa.Date(), nullable=False),
        sa.Column("facility_ecological_kg", sa.Float(), nullable=False, server_default="0"),
        sa.Column("biomass_ecological_kg", sa.Float(), nullable=False, server_default="0"),
        sa.Column("afolu_kg", sa.Float(), nullable=False, server_default="0"),
        sa.Column("energy_material_kg", sa.Float(), nullable=False, server_default="0"),
        sa.Column("iluc_kg", sa.Float(), nullable=False, server_default="0"),
        sa.Column("ecological_status", sa.String(), nullable=True),
        sa.Column("market_status", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )

    op.create_table(
        "monitoring_periods",
        _id(),
        sa.Column("facility_id", _uuid(), sa.ForeignKey("facilities.id"), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_dry_mass_tonnes", sa.Float(), nullable=True),
        sa.Column("h_corg_ratio", sa.Float(), nullable=True),
        sa.Column("soil_temp_used_c", sa.Integer(), nullable=True),
        sa.Column("c_stored_tco2e", sa.Float(), nullable=True),
        sa.Column("c_baseline_tco2e", sa.Float(), nullable=True),
        sa.Column("c_loss_tco2e", sa.Float(), nullable=True),
        sa.Column("persistence_fraction_percent", sa.Float(), nullable=True),
        sa.Column("e_project_tco2e", sa.Float(), nullable=True),
        sa.Column("e_leakage_tco2e", sa.Float(), nullable=True),
        sa.Column("net_corcs_tco2e", sa.Float(), nullable=True),
        sa.Column("calculated_at", sa.DateTime(), nullable=True),
        sa.Column("calculation_version", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("period_end > period_start", name="ck_monitoring_periods_ordered"),
    )
    op.create_index(
        "ix_monitoring_periods_facility_range",
        "monitoring_periods",
        ["facility_id", "period_start", "period_end"],
    )

    op.create_table(
        "corc_issuances",
        _id(),
        sa.Column("serial_number", sa.String(), nullable=False, unique=True),
        sa.Column(
            "monitoring_period_id",
            _uuid(),
            sa.ForeignKey("monitoring_periods.id"),
            nullable=False,
        ),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("net_corcs_tco2e", sa.Float(), nullable=False),
        sa.Column("c_stored_tco2e", sa.Float(), nullable=True),
        sa.Column("c_baseline_tco2e", sa.Float(), nullable=True),
        sa.Column("c_loss_tco2e", sa.Float(), nullable=True),
        sa.Column("persistence_fraction_percent", sa.Float(), nullable=True),
        sa.Column("e_project_tco2e", sa.Float(), nullable=True),
        sa.Column("e_leakage_tco2e", sa.Float(), nullable=True),
        sa.Column("h_corg_ratio", sa.Float(), nullable=True),
        sa.Column("permanence_type", sa.String(), nullable=False, server_default="BC200+"),
        sa.Column("calculation_version", sa.String(), nullable=True),
        sa.Column("issuance_date", sa.DateTime(), nullable=True),
        sa.Column("owner_name", sa.String(), nullable=True),
        sa.Column("owner_account_id", sa.String(), nullable=True),
        sa.Column("retirement_date", sa.DateTime(), nullable=True),
        sa.Column("retirement_beneficiary", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint(
            "status IN ('draft', 'issued', 'retired')",
            name="ck_corc_issuances_status",
        ),
    )

    op.create_table(
        "corc_production_batches",
        sa.Column(
            "corc_id",
            _uuid(),
            sa.ForeignKey("corc_issuances.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "production_batch_id",
            _uuid(),
            sa.ForeignKey("production_batches.id"),
            primary_key=True,
        ),
    )
    op.create_table(
        "corc_sequestration_events",
        sa.Column(
            "corc_id",
            _uuid(),
            sa.ForeignKey("corc_issuances.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "sequestration_event_id",
            _uuid(),
            sa.ForeignKey("sequestration_events.id"),
            primary_key=True,
        ),
    )

    op.create_table(
        "bcus",
        _id(),
        sa.Column("registry_serial", sa.String(), nullable=False, unique=True),
        sa.Column("quantity_tco2e", sa.Float(), nullable=False),
        sa.Column("issuance_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="issued"),
        sa.Column("owner_name", sa.String(), nullable=True),
        sa.Column("owner_account_id", sa.String(), nullable=True),
        sa.Column("retirement_date", sa.DateTime(), nullable=True),
        sa.Column("retirement_beneficiary", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "sequestration_event_id",
            _uuid(),
            sa.ForeignKey("sequestration_events.id"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("quantity_tco2e > 0", name="ck_bcus_quantity_positive"),
        sa.CheckConstraint(
            "status IN ('issued', 'transferred', 'retired')",
            name="ck_bcus_status",
        ),
    )

    op.create_table(
        "issuance_events",
        _id(),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", _uuid(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("from_status", sa.String(), nullable=True),
        sa.Column("to_status", sa.String(), nullable=True),
        sa.Column("detail", sa.JSON(), nullable=True),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("entity_type", "entity_id", "sequence"),
    )
    op.create_index("ix_issuance_events_entity_id", "issuance_events", ["entity_id"])

    op.create_table(
        "recalculation_jobs",
        _id(),
        sa.Column(
            "monitoring_period_id",
            _uuid(),
            sa.ForeignKey("monitoring_periods.id"),
            nullable=False,
        ),
        sa.Column("status", sa.String(), nullable=False, server_default="queued"),
        sa.Column("trigger", sa.String(), nullable=False, server_default="manual"),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("recalculation_jobs")
    op.drop_index("ix_issuance_events_entity_id", table_name="issuance_events")
    op.drop_table("issuance_events")
    op.drop_table("bcus")
    op.drop_table("corc_sequestration_events")
    op.drop_table("corc_production_batches")
    op.drop_table("corc_issuances")
    op.drop_index("ix_monitoring_periods_facility_range", table_name="monitoring_periods")
    op.drop_table("monitoring_periods")
    op.drop_table("leakage_assessments")
    op.drop_table("sequestration_batches")
    op.drop_table("sequestration_events")
    op.drop_table("energy_usages")
    op.drop_table("feedstock_allocations")
    op.drop_table("lab_tests")
    op.drop_index("ix_production_batches_facility_date", table_name="production_batches")
    op.drop_table("production_batches")
    op.drop_table("feedstock_deliveries")
    op.drop_table("facilities")
