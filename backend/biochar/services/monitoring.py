"""Monitoring period management and CORC calculation orchestration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from fastapi import Depends

from .. import models, schemas
from ..errors import DataIntegrityError, InputValidationError, StateConflictError
from ..methodology import (
    AllocationSnapshot,
    BatchSnapshot,
    CalculationInput,
    CalculationResult,
    EmbodiedSnapshot,
    EnergySnapshot,
    LeakageSnapshot,
    ValidationReport,
    aggregate_leakage,
    aggregate_production,
    calculate_corcs,
    calculation_breakdown,
    co_product_allocation_factor,
    efficiency_metrics,
    validate_calculation_input,
)
from ..methodology.constants import DEFAULT_METHODOLOGY, DEFAULT_SOIL_TEMP_C, MethodologyConfig
from ..repositories import (
    FacilityRepository,
    LeakageAssessmentRepository,
    MonitoringPeriodRepository,
    ProductionBatchRepository,
    SequestrationRepository,
    provide,
)

# purpose: assemble period data, run the calculator and persist results atomically
# inputs: monitoring period identifiers plus calculation options
# outputs: CalculationOutcome with result, validation report and optional formula breakdown
# status: active
# depends_on: biochar.methodology, biochar.repositories

logger = logging.getLogger(__name__)

MAX_PERIOD_DAYS = int(os.getenv("CORC_MAX_PERIOD_DAYS", "366"))
CLOSED_STATUSES = {"closed", "verified"}


@dataclass(slots=True)
class CalculationOutcome:
    period: models.MonitoringPeriod
    result: CalculationResult
    report: ValidationReport
    production_batch_count: int
    sequestration_event_count: int
    total_dry_mass_tonnes: float
    efficiency: dict[str, float]
    breakdown: dict[str, Any] | None
    saved: bool

    def to_response(self) -> dict[str, Any]:
        return {
            "monitoring_period_id": self.period.id,
            "saved": self.saved,
            "result": self.result.to_dict(),
            "validation": self.report.to_dict(),
            "production_batch_count": self.production_batch_count,
            "sequestration_event_count": self.sequestration_event_count,
            "total_dry_mass_tonnes": self.total_dry_mass_tonnes,
            "efficiency": self.efficiency,
            "breakdown": self.breakdown,
        }


def batch_snapshot(batch: models.ProductionBatch) -> BatchSnapshot:
    """Calculation view of a batch; the latest lab test by date wins over batch fields."""

    latest = max(batch.lab_tests, key=lambda test: (test.test_date, test.created_at), default=None)
    allocations = []
    for allocation in batch.allocations:
        delivery = allocation.delivery
        weight = allocation.weight_used_tonnes
        if weight is None and delivery is not None and allocation.percentage_used is not None:
            weight = delivery.weight_tonnes * allocation.percentage_used / 100
        allocations.append(
            AllocationSnapshot(
                distance_km=delivery.delivery_distance_km if delivery is not None else None,
                weight_used_tonnes=weight,
            )
        )
    return BatchSnapshot(
        batch_id=str(batch.id),
        output_biochar_tonnes=batch.output_biochar_tonnes or 0.0,
        dry_mass_tonnes=batch.dry_mass_tonnes,
        organic_carbon_percent=batch.organic_carbon_percent,
        hydrogen_percent=batch.hydrogen_percent,
        lab_organic_carbon_percent=latest.organic_carbon_percent if latest is not None else None,
        lab_hydrogen_percent=latest.hydrogen_percent if latest is not None else None,
        lab_moisture_percent=latest.moisture_percent if latest is not None else None,
        stack_ch4_kg=batch.stack_ch4_kg,
        stack_n2o_kg=batch.stack_n2o_kg,
        allocations=tuple(allocations),
        energy_usages=tuple(
            EnergySnapshot(usage.energy_type, usage.quantity or 0.0)
            for usage in batch.energy_usages
            if usage.scope == "production"
        ),
    )


def resolve_soil_temperature(
    override: float | None,
    events: Sequence[models.SequestrationEvent],
    default: float = DEFAULT_SOIL_TEMP_C,
) -> float:
    """Explicit override, else the mean of recorded event temperatures, else the configured default."""

    if override is not None:
        return override
    temps = [event.mean_annual_soil_temp_c for event in events if event.mean_annual_soil_temp_c is not None]
    if temps:
        return sum(temps) / len(temps)
    return default


class MonitoringService:
    def __init__(
        self,
        periods: MonitoringPeriodRepository,
        facilities: FacilityRepository,
        batches: ProductionBatchRepository,
        sequestration: SequestrationRepository,
        leakage: LeakageAssessmentRepository,
        config: MethodologyConfig = DEFAULT_METHODOLOGY,
    ):
        self.periods = periods
        self.facilities = facilities
        self.batches = batches
        self.sequestration = sequestration
        self.leakage = leakage
        self.config = config

    def create_period(self, payload: schemas.MonitoringPeriodCreate) -> models.MonitoringPeriod:
        # serialises concurrent creates for one facility across the overlap check and insert
        self.facilities.require_locked(payload.facility_id)

        errors: list[str] = []
        if payload.period_end <= payload.period_start:
            errors.append("Period end date must be after start date")
        elif (payload.period_end - payload.period_start).days > MAX_PERIOD_DAYS:
            errors.append(f"Monitoring period cannot exceed {MAX_PERIOD_DAYS} days")
        else:
            clashes = self.periods.overlapping(payload.facility_id, payload.period_start, payload.period_end)
            for clash in clashes:
                errors.append(
                    f"Monitoring period overlaps existing period {clash.period_start.isoformat()} "
                    f"to {clash.period_end.isoformat()}"
                )
        if errors:
            raise InputValidationError(errors)

        period = models.MonitoringPeriod(**payload.model_dump(), status="active")
        self.periods.add(period)
        self.periods.commit(action="create")
        return self.periods.refresh(period)

    def update_period(self, period_id: UUID, payload: schemas.MonitoringPeriodUpdate) -> models.MonitoringPeriod:
        period = self.periods.require(period_id)
        changes = payload.model_dump(exclude_unset=True)
        status = changes.get("status")
        if status in CLOSED_STATUSES and period.net_corcs_tco2e is None:
            raise DataIntegrityError("CORC calculation must be completed before closing or verifying the period")
        for key, value in changes.items():
            setattr(period, key, value)
        self.periods.commit(action="update", entity_id=period_id)
        return self.periods.refresh(period)

    def delete_period(self, period_id: UUID) -> None:
        period = self.periods.require(period_id)
        if period.issuances:
            raise StateConflictError(
                "Cannot delete a monitoring period with CORC issuances",
                entity=self.periods.entity,
                entity_id=period_id,
                current_status=period.status,
                action="delete",
            )
        self.periods.delete(period)
        self.periods.commit(action="delete", entity_id=period_id)

    def calculate(
        self,
        period_id: UUID,
        *,
        save_result: bool = True,
        mean_soil_temp_override: float | None = None,
        co_product_allocation_factor_override: float | None = None,
        biochar_energy_mj: float | None = None,
        co_product_energy_mj: float | None = None,
        return_full_breakdown: bool = False,
    ) -> CalculationOutcome:
        """Aggregate, validate and quantify one monitoring period.

        Nothing is written unless every step succeeds and ``save_result``
        is set; the result fields and version are committed together.
        """

        period = self.periods.require(period_id)
        facility = self.facilities.require(period.facility_id)

        batches = self.batches.complete_in_range(facility.id, period.period_start, period.period_end)
        if not batches:
            raise DataIntegrityError("No completed production batches found in monitoring period")

        batch_ids = {batch.id for batch in batches}
        events = self.sequestration.delivered_in_range(batch_ids, period.period_start, period.period_end)
        end_use_quantities = [
            link.quantity_tonnes or 0.0
            for event in events
            for link in event.batch_links
            if link.production_batch_id in batch_ids
        ]

        allocation_factor = facility.co_product_allocation_factor
        if co_product_allocation_factor_override is not None:
            allocation_factor = co_product_allocation_factor_override
        elif biochar_energy_mj is not None and co_product_energy_mj is not None:
            allocation_factor = co_product_allocation_factor(biochar_energy_mj, co_product_energy_mj)

        production = aggregate_production(
            [batch_snapshot(batch) for batch in batches],
            end_use_quantities_tonnes=end_use_quantities,
            embodied=EmbodiedSnapshot(
                total_infrastructure_tco2e=facility.total_infrastructure_emissions_tco2e,
                lifetime_years=facility.infrastructure_lifetime_years,
            ),
            co_product_allocation_factor=allocation_factor,
            config=self.config,
        )
        leakage = aggregate_leakage(
            [
                LeakageSnapshot(
                    assessment_date=item.assessment_date,
                    facility_ecological_kg=item.facility_ecological_kg or 0.0,
                    biomass_ecological_kg=item.biomass_ecological_kg or 0.0,
                    afolu_kg=item.afolu_kg or 0.0,
                    energy_material_kg=item.energy_material_kg or 0.0,
                    iluc_kg=item.iluc_kg or 0.0,
                )
                for item in self.leakage.for_facility(facility.id)
            ]
        )

        data = CalculationInput(
            biochar_dry_mass_tonnes=production.total_dry_mass_tonnes,
            organic_carbon_percent=production.organic_carbon_percent,
            hydrogen_percent=production.hydrogen_percent,
            mean_soil_temp_c=resolve_soil_temperature(mean_soil_temp_override, events),
            baseline_type=facility.baseline_type,
            baseline_carbon_storage_tco2e=facility.baseline_carbon_storage_tco2e or 0.0,
            project_emissions=production.emissions,
            leakage=leakage,
        )
        report = validate_calculation_input(
            data,
            caveats=production.caveats + leakage.caveats,
            config=self.config,
        )
        if not report.is_valid:
            logger.info("Calculation for period %s rejected: %s", period_id, "; ".join(report.errors))
        report.raise_for_errors()

        result = calculate_corcs(data, self.config)
        breakdown = calculation_breakdown(data, self.config).to_dict() if return_full_breakdown else None

        if save_result:
            self._store_result(period, production.total_dry_mass_tonnes, result)
            self.periods.commit(action="calculate", entity_id=period_id)
            self.periods.refresh(period)
            logger.info(
                "Saved calculation for period %s: net %.4f tCO2e (%s)",
                period_id,
                result.net_corcs_tco2e,
                result.calculation_version,
            )

        return CalculationOutcome(
            period=period,
            result=result,
            report=report,
            production_batch_count=len(batches),
            sequestration_event_count=len(events),
            total_dry_mass_tonnes=production.total_dry_mass_tonnes,
            efficiency=efficiency_metrics(data, result),
            breakdown=breakdown,
            saved=save_result,
        )

    @staticmethod
    def _store_result(period: models.MonitoringPeriod, dry_mass: float, result: CalculationResult) -> None:
        period.total_dry_mass_tonnes = dry_mass
        period.h_corg_ratio = result.h_corg_ratio
        period.soil_temp_used_c = result.soil_temp_used_c
        period.c_stored_tco2e = result.c_stored_tco2e
        period.c_baseline_tco2e = result.c_baseline_tco2e
        period.c_loss_tco2e = result.c_loss_tco2e
        period.persistence_fraction_percent = result.persistence_fraction_percent
        period.e_project_tco2e = result.e_project_tco2e
        period.e_leakage_tco2e = result.e_leakage_tco2e
        period.net_corcs_tco2e = result.net_corcs_tco2e
        period.calculation_version = result.calculation_version
        period.calculated_at = datetime.now(timezone.utc)


def get_monitoring_service(
    periods: MonitoringPeriodRepository = Depends(provide(MonitoringPeriodRepository)),
    facilities: FacilityRepository = Depends(provide(FacilityRepository)),
    batches: ProductionBatchRepository = Depends(provide(ProductionBatchRepository)),
    sequestration: SequestrationRepository = Depends(provide(SequestrationRepository)),
    leakage: LeakageAssessmentRepository = Depends(provide(LeakageAssessmentRepository)),
) -> MonitoringService:
    return MonitoringService(periods, facilities, batches, sequestration, leakage)
