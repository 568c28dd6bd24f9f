"""Supply chain schemas: facilities, feedstock, production, sequestration and leakage."""

# purpose: request and response models for the measurement side of the registry
# status: active

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

BaselineType = Literal["NEW_BUILT", "RETROFIT_FACILITY", "CHARCOAL_REPURPOSE"]
BatchStatus = Literal["in_progress", "complete"]


def reject_explicit_nulls(payload: BaseModel, fields: tuple[str, ...]) -> None:
    """Partial updates may omit these fields but never clear them."""

    cleared = [name for name in fields if name in payload.model_fields_set and getattr(payload, name) is None]
    if cleared:
        raise ValueError(f"Fields cannot be set to null: {', '.join(cleared)}")


class FacilityCreate(BaseModel):
    name: str
    registration_number: str = Field(min_length=1)
    location: str | None = None
    baseline_type: BaselineType = "NEW_BUILT"
    baseline_carbon_storage_tco2e: float | None = Field(default=None, ge=0)
    total_infrastructure_emissions_tco2e: float | None = Field(default=None, ge=0)
    infrastructure_lifetime_years: float | None = Field(default=None, gt=0)
    co_product_allocation_factor: float | None = Field(default=None, gt=0, le=1)


class FacilityOut(BaseModel):
    id: UUID
    name: str
    registration_number: str
    location: str | None = None
    baseline_type: str
    baseline_carbon_storage_tco2e: float | None = None
    total_infrastructure_emissions_tco2e: float | None = None
    infrastructure_lifetime_years: float | None = None
    co_product_allocation_factor: float | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class FeedstockDeliveryCreate(BaseModel):
    facility_id: UUID
    delivery_date: date
    feedstock_type: str
    supplier_name: str | None = None
    weight_tonnes: float = Field(gt=0)
    delivery_distance_km: float | None = Field(default=None, ge=0)


class FeedstockDeliveryOut(FeedstockDeliveryCreate):
    id: UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ProductionBatchCreate(BaseModel):
    facility_id: UUID
    production_date: date
    status: BatchStatus = "in_progress"
    feedstock_input_tonnes: float | None = Field(default=None, ge=0)
    output_biochar_tonnes: float = Field(ge=0)
    dry_mass_tonnes: float | None = Field(default=None, ge=0)
    temperature_min_c: float | None = None
    temperature_max_c: float | None = None
    temperature_avg_c: float | None = None
    stack_ch4_kg: float | None = Field(default=None, ge=0)
    stack_n2o_kg: float | None = Field(default=None, ge=0)


class ProductionBatchUpdate(BaseModel):
    production_date: date | None = None
    status: BatchStatus | None = None
    feedstock_input_tonnes: float | None = Field(default=None, ge=0)
    output_biochar_tonnes: float | None = Field(default=None, ge=0)
    dry_mass_tonnes: float | None = Field(default=None, ge=0)
    temperature_min_c: float | None = None
    temperature_max_c: float | None = None
    temperature_avg_c: float | None = None
    stack_ch4_kg: float | None = Field(default=None, ge=0)
    stack_n2o_kg: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _keep_required_fields(self) -> "ProductionBatchUpdate":
        reject_explicit_nulls(self, ("production_date", "status", "output_biochar_tonnes"))
        return self


class ProductionBatchOut(BaseModel):
    id: UUID
    facility_id: UUID
    production_date: date
    status: str
    feedstock_input_tonnes: float | None = None
    output_biochar_tonnes: float
    dry_mass_tonnes: float | None = None
    temperature_min_c: float | None = None
    temperature_max_c: float | None = None
    temperature_avg_c: float | None = None
    stack_ch4_kg: float | None = None
    stack_n2o_kg: float | None = None
    total_carbon_percent: float | None = None
    organic_carbon_percent: float | None = None
    hydrogen_percent: float | None = None
    h_corg_ratio: float | None = None
    quality_status: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LabTestCreate(BaseModel):
    test_date: date
    lab_name: str | None = None
    total_carbon_percent: float = Field(ge=0, le=100)
    inorganic_carbon_percent: float = Field(default=0.0, ge=0, le=100)
    hydrogen_percent: float = Field(ge=0, le=100)
    moisture_percent: float | None = Field(default=None, ge=0, lt=100)


class LabTestUpdate(BaseModel):
    test_date: date | None = None
    lab_name: str | None = None
    total_carbon_percent: float | None = Field(default=None, ge=0, le=100)
    inorganic_carbon_percent: float | None = Field(default=None, ge=0, le=100)
    hydrogen_percent: float | None = Field(default=None, ge=0, le=100)
    moisture_percent: float | None = Field(default=None, ge=0, lt=100)

    @model_validator(mode="after")
    def _keep_measurements(self) -> "LabTestUpdate":
        reject_explicit_nulls(
            self, ("test_date", "total_carbon_percent", "inorganic_carbon_percent", "hydrogen_percent")
        )
        return self


class LabTestOut(BaseModel):
    id: UUID
    production_batch_id: UUID
    test_date: date
    lab_name: str | None = None
    total_carbon_percent: float
    inorganic_carbon_percent: float
    hydrogen_percent: float
    moisture_percent: float | None = None
    organic_carbon_percent: float | None = None
    h_corg_ratio: float | None = None
    passes_threshold: bool
    model_config = ConfigDict(from_attributes=True)


class FeedstockAllocationCreate(BaseModel):
    feedstock_delivery_id: UUID
    percentage_used: float | None = Field(default=None, ge=0, le=100)
    weight_used_tonnes: float | None = Field(default=None, ge=0)


class FeedstockAllocationOut(FeedstockAllocationCreate):
    id: UUID
    production_batch_id: UUID
    model_config = ConfigDict(from_attributes=True)


class EnergyUsageCreate(BaseModel):
    scope: Literal["production", "other"] = "production"
    energy_type: str | None = None
    quantity: float = Field(ge=0)
    unit: str | None = None
    period_start: date | None = None
    period_end: date | None = None


class EnergyUsageOut(EnergyUsageCreate):
    id: UUID
    facility_id: UUID
    production_batch_id: UUID | None = None
    model_config = ConfigDict(from_attributes=True)


class SequestrationBatchLink(BaseModel):
    production_batch_id: UUID
    quantity_tonnes: float = Field(ge=0)
    model_config = ConfigDict(from_attributes=True)


class SequestrationEventCreate(BaseModel):
    final_delivery_date: date
    destination: str | None = None
    method: str | None = None
    end_use_category: str | None = None
    mean_annual_soil_temp_c: float | None = None
    notes: str | None = None
    batches: list[SequestrationBatchLink] = Field(default_factory=list)


class SequestrationEventOut(BaseModel):
    id: UUID
    final_delivery_date: date
    destination: str | None = None
    method: str | None = None
    end_use_category: str | None = None
    mean_annual_soil_temp_c: float | None = None
    notes: str | None = None
    batch_links: list[SequestrationBatchLink] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class LeakageAssessmentCreate(BaseModel):
    facility_id: UUID
    assessment_date: date
    facility_ecological_kg: float = Field(default=0.0, ge=0)
    biomass_ecological_kg: float = Field(default=0.0, ge=0)
    afolu_kg: float = Field(default=0.0, ge=0)
    energy_material_kg: float = Field(default=0.0, ge=0)
    iluc_kg: float = Field(default=0.0, ge=0)
    ecological_status: str | None = "not_assessed"
    market_status: str | None = "not_assessed"
    notes: str | None = None


class LeakageAssessmentOut(LeakageAssessmentCreate):
    id: UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class IlucEstimateRequest(BaseModel):
    quantity_dry_tonnes: float = Field(ge=0)
    lower_heating_value_gj: float = Field(ge=0)
    iluc_factor_kg_per_mj: float = Field(ge=0)
    attribution_factor: float = Field(default=1.0, ge=0, le=1)
    puro_category: str | None = None
    dedicated_crop: bool = False


class IlucEstimateOut(BaseModel):
    iluc_kg: float
    assessment_required: bool | None = None


class LeakageRiskRequest(BaseModel):
    puro_category: str = Field(min_length=1, max_length=1)
    dedicated_crop: bool = False
    has_existing_use: bool = False


class LeakageRiskOut(BaseModel):
    risk_level: Literal["low", "medium", "high"]
    requires_iluc: bool
    mitigation_required: bool
    notes: list[str]
