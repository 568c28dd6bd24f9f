import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Table,
    Text,
    Float,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Facility(Base):
    __tablename__ = "facilities"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    registration_number = Column(String, nullable=False)
    location = Column(String)
    baseline_type = Column(String, nullable=False, default="NEW_BUILT")
    # only meaningful for CHARCOAL_REPURPOSE baselines
    baseline_carbon_storage_tco2e = Column(Float)
    total_infrastructure_emissions_tco2e = Column(Float)
    infrastructure_lifetime_years = Column(Float)
    co_product_allocation_factor = Column(Float)
    created_at = Column(DateTime, default=_utcnow)

    deliveries = relationship("FeedstockDelivery", back_populates="facility")
    batches = relationship("ProductionBatch", back_populates="facility")
    leakage_assessments = relationship("LeakageAssessment", back_populates="facility")
    monitoring_periods = relationship("MonitoringPeriod", back_populates="facility")


class FeedstockDelivery(Base):
    __tablename__ = "feedstock_deliveries"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    facility_id = Column(UUID(as_uuid=True), ForeignKey("facilities.id"), nullable=False)
    delivery_date = Column(Date, nullable=False)
    feedstock_type = Column(String, nullable=False)
    supplier_name = Column(String)
    weight_tonnes = Column(Float, nullable=False)
    delivery_distance_km = Column(Float)
    created_at = Column(DateTime, default=_utcnow)

    facility = relationship("Facility", back_populates="deliveries")
    allocations = relationship("FeedstockAllocation", back_populates="delivery")


class ProductionBatch(Base):
    __tablename__ = "production_batches"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    facility_id = Column(UUID(as_uuid=True), ForeignKey("facilities.id"), nullable=False)
    production_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="in_progress")
    feedstock_input_tonnes = Column(Float)
    output_biochar_tonnes = Column(Float, nullable=False, default=0.0)
    dry_mass_tonnes = Column(Float)
    temperature_min_c = Column(Float)
    temperature_max_c = Column(Float)
    temperature_avg_c = Column(Float)
    stack_ch4_kg = Column(Float)
    stack_n2o_kg = Column(Float)
    # authoritative quality, mirrored from the latest lab test
    total_carbon_percent = Column(Float)
    organic_carbon_percent = Column(Float)
    hydrogen_percent = Column(Float)
    h_corg_ratio = Column(Float)
    quality_status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=_utcnow)

    facility = relationship("Facility", back_populates="batches")
    lab_tests = relationship(
        "LabTest",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="LabTest.test_date",
    )
    allocations = relationship(
        "FeedstockAllocation", back_populates="batch", cascade="all, delete-orphan"
    )
    energy_usages = relationship("EnergyUsage", back_populates="batch")
    sequestration_links = relationship("SequestrationBatch", back_populates="batch")


class LabTest(Base):
    __tablename__ = "lab_tests"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    production_batch_id = Column(
        UUID(as_uuid=True),
        ForeignKey("production_batches.id", ondelete="CASCADE"),
        nullable=False,
    )
    test_date = Column(Date, nullable=False)
    lab_name = Column(String)
    total_carbon_percent = Column(Float, nullable=False)
    inorganic_carbon_percent = Column(Float, nullable=False, default=0.0)
    hydrogen_percent = Column(Float, nullable=False)
    moisture_percent = Column(Float)
    organic_carbon_percent = Column(Float)
    h_corg_ratio = Column(Float)
    passes_threshold = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_utcnow)

    batch = relationship("ProductionBatch", back_populates="lab_tests")


class FeedstockAllocation(Base):
    __tablename__ = "feedstock_allocations"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    feedstock_delivery_id = Column(
        UUID(as_uuid=True), ForeignKey("feedstock_deliveries.id"), nullable=False
    )
    production_batch_id = Column(
        UUID(as_uuid=True),
        ForeignKey("production_batches.id", ondelete="CASCADE"),
        nullable=False,
    )
    percentage_used = Column(Float)
    weight_used_tonnes = Column(Float)

    delivery = relationship("FeedstockDelivery", back_populates="allocations")
    batch = relationship("ProductionBatch", back_populates="allocations")


class EnergyUsage(Base):
    __tablename__ = "energy_usages"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    facility_id = Column(UUID(as_uuid=True), ForeignKey("facilities.id"), nullable=False)
    production_batch_id = Column(UUID(as_uuid=True), ForeignKey("production_batches.id"))
    scope = Column(String, nullable=False, default="production")
    energy_type = Column(String)
    quantity = Column(Float, nullable=False)
    unit = Column(String)
    period_start = Column(Date)
    period_end = Column(Date)

    batch = relationship("ProductionBatch", back_populates="energy_usages")


class SequestrationEvent(Base):
    __tablename__ = "sequestration_events"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    final_delivery_date = Column(Date, nullable=False)
    destination = Column(String)
    method = Column(String)
    end_use_category = Column(String)
    mean_annual_soil_temp_c = Column(Float)
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow)

    batch_links = relationship(
        "SequestrationBatch", back_populates="event", cascade="all, delete-orphan"
    )


class SequestrationBatch(Base):
    __tablename__ = "sequestration_batches"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sequestration_event_id = Column(
        UUID(as_uuid=True),
        ForeignKey("sequestration_events.id", ondelete="CASCADE"),
        nullable=False,
    )
    production_batch_id = Column(
        UUID(as_uuid=True), ForeignKey("production_batches.id"), nullable=False
    )
    quantity_tonnes = Column(Float, nullable=False, default=0.0)

    event = relationship("SequestrationEvent", back_populates="batch_links")
    batch = relationship("ProductionBatch", back_populates="sequestration_links")


class LeakageAssessment(Base):
    __tablename__ = "leakage_assessments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    facility_id = Column(UUID(as_uuid=True), ForeignKey("facilities.id"), nullable=False)
    assessment_date = Column(Date, nullable=False)
    facility_ecological_kg = Column(Float, nullable=False, default=0.0)
    biomass_ecological_kg = Column(Float, nullable=False, default=0.0)
    afolu_kg = Column(Float, nullable=False, default=0.0)
    energy_material_kg = Column(Float, nullable=False, default=0.0)
    iluc_kg = Column(Float, nullable=False, default=0.0)
    ecological_status = Column(String, default="not_assessed")
    market_status = Column(String, default="not_assessed")
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow)

    facility = relationship("Facility", back_populates="leakage_assessments")


class MonitoringPeriod(Base):
    __tablename__ = "monitoring_periods"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    facility_id = Column(UUID(as_uuid=True), ForeignKey("facilities.id"), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="active")
    notes = Column(Text)
    # cached result of the last saved calculation
    total_dry_mass_tonnes = Column(Float)
    h_corg_ratio = Column(Float)
    soil_temp_used_c = Column(Integer)
    c_stored_tco2e = Column(Float)
    c_baseline_tco2e = Column(Float)
    c_loss_tco2e = Column(Float)
    persistence_fraction_percent = Column(Float)
    e_project_tco2e = Column(Float)
    e_leakage_tco2e = Column(Float)
    net_corcs_tco2e = Column(Float)
    calculated_at = Column(DateTime)
    calculation_version = Column(String)
    created_at = Column(DateTime, default=_utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    facility = relationship("Facility", back_populates="monitoring_periods")
    issuances = relationship("CORCIssuance", back_populates="monitoring_period")


corc_production_batches = Table(
    "corc_production_batches",
    Base.metadata,
    Column(
        "corc_id",
        UUID(as_uuid=True),
        ForeignKey("corc_issuances.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "production_batch_id",
        UUID(as_uuid=True),
        ForeignKey("production_batches.id"),
        primary_key=True,
    ),
)

corc_sequestration_events = Table(
    "corc_sequestration_events",
    Base.metadata,
    Column(
        "corc_id",
        UUID(as_uuid=True),
        ForeignKey("corc_issuances.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "sequestration_event_id",
        UUID(as_uuid=True),
        ForeignKey("sequestration_events.id"),
        primary_key=True,
    ),
)


class CORCIssuance(Base):
    __tablename__ = "corc_issuances"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    serial_number = Column(String, nullable=False, unique=True)
    monitoring_period_id = Column(
        UUID(as_uuid=True), ForeignKey("monitoring_periods.id"), nullable=False
    )
    status = Column(String, nullable=False, default="draft")
    # frozen copy of the period result at creation time
    net_corcs_tco2e = Column(Float, nullable=False)
    c_stored_tco2e = Column(Float)
    c_baseline_tco2e = Column(Float)
    c_loss_tco2e = Column(Float)
    persistence_fraction_percent = Column(Float)
    e_project_tco2e = Column(Float)
    e_leakage_tco2e = Column(Float)
    h_corg_ratio = Column(Float)
    permanence_type = Column(String, nullable=False, default="BC200+")
    calculation_version = Column(String)
    issuance_date = Column(DateTime)
    owner_name = Column(String)
    owner_account_id = Column(String)
    retirement_date = Column(DateTime)
    retirement_beneficiary = Column(String)
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    monitoring_period = relationship("MonitoringPeriod", back_populates="issuances")
    production_batches = relationship("ProductionBatch", secondary=corc_production_batches)
    sequestration_events = relationship(
        "SequestrationEvent", secondary=corc_sequestration_events
    )


class BCU(Base):
    __tablename__ = "bcus"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    registry_serial = Column(String, nullable=False, unique=True)
    quantity_tco2e = Column(Float, nullable=False)
    issuance_date = Column(DateTime, nullable=False, default=_utcnow)
    status = Column(String, nullable=False, default="issued")
    owner_name = Column(String)
    owner_account_id = Column(String)
    retirement_date = Column(DateTime)
    retirement_beneficiary = Column(String)
    notes = Column(Text)
    sequestration_event_id = Column(UUID(as_uuid=True), ForeignKey("sequestration_events.id"))
    created_at = Column(DateTime, default=_utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    sequestration_event = relationship("SequestrationEvent")


class IssuanceEvent(Base):
    __tablename__ = "issuance_events"
    __table_args__ = (UniqueConstraint("entity_type", "entity_id", "sequence"),)
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entity_type = Column(String, nullable=False)
    entity_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    action = Column(String, nullable=False)
    from_status = Column(String)
    to_status = Column(String)
    detail = Column(JSON, default=dict)
    sequence = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=_utcnow)


class RecalculationJob(Base):
    __tablename__ = "recalculation_jobs"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    monitoring_period_id = Column(
        UUID(as_uuid=True), ForeignKey("monitoring_periods.id"), nullable=False
    )
    status = Column(String, nullable=False, default="queued")
    trigger = Column(String, nullable=False, default="manual")
    error = Column(Text)
    result = Column(JSON)
    created_at = Column(DateTime, default=_utcnow)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
