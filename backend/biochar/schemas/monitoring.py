"""Monitoring period and calculation schemas."""

# purpose: contracts for period management, CORC calculation and recalculation jobs
# status: active

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .supply_chain import reject_explicit_nulls

PeriodStatus = Literal["active", "closed", "verified"]


class MonitoringPeriodCreate(BaseModel):
    facility_id: UUID
    period_start: date
    period_end: date
    notes: str | None = None


class MonitoringPeriodUpdate(BaseModel):
    status: PeriodStatus | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _keep_status(self) -> "MonitoringPeriodUpdate":
        reject_explicit_nulls(self, ("status",))
        return self


class MonitoringPeriodOut(BaseModel):
    id: UUID
    facility_id: UUID
    period_start: date
    period_end: date
    status: str
    notes: str | None = None
    total_dry_mass_tonnes: float | None = None
    h_corg_ratio: float | None = None
    soil_temp_used_c: int | None = None
    c_stored_tco2e: float | None = None
    c_baseline_tco2e: float | None = None
    c_loss_tco2e: float | None = None
    persistence_fraction_percent: float | None = None
    e_project_tco2e: float | None = None
    e_leakage_tco2e: float | None = None
    net_corcs_tco2e: float | None = None
    calculated_at: datetime | None = None
    calculation_version: str | None = None
    version: int
    model_config = ConfigDict(from_attributes=True)


class CalculateRequest(BaseModel):
    save_result: bool = True
    mean_soil_temp_override: float | None = None
    co_product_allocation_factor_override: float | None = Field(default=None, gt=0, le=1)
    biochar_energy_mj: float | None = Field(default=None, gt=0)
    co_product_energy_mj: float | None = Field(default=None, ge=0)
    return_full_breakdown: bool = False

    @model_validator(mode="after")
    def _one_allocation_source(self) -> "CalculateRequest":
        energies = (self.biochar_energy_mj, self.co_product_energy_mj)
        if (energies[0] is None) != (energies[1] is None):
            raise ValueError("Energy-based allocation needs both biochar and co-product energy content")
        if energies[0] is not None and self.co_product_allocation_factor_override is not None:
            raise ValueError("Give either an allocation factor override or energy contents, not both")
        return self


class EmissionBreakdownOut(BaseModel):
    biomass_tco2e: float
    production_tco2e: float
    embodied_tco2e: float
    end_use_tco2e: float
    ecological_leakage_tco2e: float
    market_leakage_tco2e: float


class CalculationResultOut(BaseModel):
    h_corg_ratio: float
    quality_valid: bool
    c_stored_tco2e: float
    c_baseline_tco2e: float
    c_loss_tco2e: float
    persistence_fraction_percent: float
    e_project_tco2e: float
    e_leakage_tco2e: float
    net_corcs_tco2e: float
    soil_temp_used_c: int
    permanence_type: str
    calculation_version: str
    breakdown: EmissionBreakdownOut


class ValidationOut(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class CalculateResponse(BaseModel):
    monitoring_period_id: UUID
    saved: bool
    result: CalculationResultOut
    validation: ValidationOut
    production_batch_count: int
    sequestration_event_count: int
    total_dry_mass_tonnes: float
    efficiency: dict[str, float] = Field(default_factory=dict)
    breakdown: dict[str, Any] | None = None


class RecalculationJobOut(BaseModel):
    id: UUID
    monitoring_period_id: UUID
    status: str
    trigger: str
    error: str | None = None
    result: dict[str, Any] | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
