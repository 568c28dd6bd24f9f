"""CORC issuance orchestration: creation from saved period results and lifecycle transitions."""

from __future__ import annotations

import logging
import re
from uuid import UUID

from fastapi import Depends

from .. import lifecycle, models, schemas
from ..errors import DataIntegrityError
from ..eventlog import log_rejection, record_issuance_event
from ..repositories import (
    CORCRepository,
    IssuanceEventRepository,
    MonitoringPeriodRepository,
    ProductionBatchRepository,
    SequestrationRepository,
    provide,
)

# purpose: freeze period results into serialised certificates and drive draft -> issued -> retired
# inputs: monitoring periods with saved results, transition requests
# outputs: CORCIssuance rows with linked batches/events and an IssuanceEvent per transition
# status: active
# depends_on: biochar.lifecycle, biochar.eventlog

logger = logging.getLogger(__name__)

ENTITY_TYPE = "corc"


def facility_code(facility: models.Facility) -> str:
    """First six alphanumerics of the registration number, upper-cased."""

    code = re.sub(r"[^A-Za-z0-9]", "", facility.registration_number or "").upper()[:6]
    if not code:
        code = facility.id.hex[:6].upper()
    return code


def serial_prefix(code: str, year: int) -> str:
    return f"CORC-{code}-{year}-"


def format_serial(code: str, year: int, sequence: int) -> str:
    return f"{serial_prefix(code, year)}{sequence:06d}"


class IssuanceService:
    def __init__(
        self,
        corcs: CORCRepository,
        periods: MonitoringPeriodRepository,
        batches: ProductionBatchRepository,
        sequestration: SequestrationRepository,
        events: IssuanceEventRepository,
    ):
        self.corcs = corcs
        self.periods = periods
        self.batches = batches
        self.sequestration = sequestration
        self.events = events

    def list(self, *, status: str | None = None, monitoring_period_id: UUID | None = None):
        return self.corcs.search(status=status, monitoring_period_id=monitoring_period_id)

    def get(self, corc_id: UUID) -> models.CORCIssuance:
        return self.corcs.require(corc_id)

    def history(self, corc_id: UUID) -> list[models.IssuanceEvent]:
        self.corcs.require(corc_id)
        return self.events.for_entity(ENTITY_TYPE, corc_id)

    def create_from_period(self, payload: schemas.CORCCreate) -> models.CORCIssuance:
        period = self.periods.require(payload.monitoring_period_id)
        if period.net_corcs_tco2e is None:
            raise DataIntegrityError(
                "Monitoring period has no saved calculation; run the calculation before creating a CORC"
            )

        code = facility_code(period.facility)
        year = period.period_end.year
        serial = format_serial(code, year, self.corcs.next_sequence(serial_prefix(code, year)))

        batches = self.batches.complete_in_range(period.facility_id, period.period_start, period.period_end)
        events = self.sequestration.delivered_in_range(
            [batch.id for batch in batches], period.period_start, period.period_end
        )

        corc = models.CORCIssuance(
            serial_number=serial,
            monitoring_period_id=period.id,
            status=lifecycle.CORC_DRAFT,
            net_corcs_tco2e=period.net_corcs_tco2e,
            c_stored_tco2e=period.c_stored_tco2e,
            c_baseline_tco2e=period.c_baseline_tco2e,
            c_loss_tco2e=period.c_loss_tco2e,
            persistence_fraction_percent=period.persistence_fraction_percent,
            e_project_tco2e=period.e_project_tco2e,
            e_leakage_tco2e=period.e_leakage_tco2e,
            h_corg_ratio=period.h_corg_ratio,
            calculation_version=period.calculation_version,
            permanence_type=payload.permanence_type,
            notes=payload.notes,
        )
        corc.production_batches = list(batches)
        corc.sequestration_events = list(events)
        self.corcs.add(corc)
        self.corcs.flush(action="create")
        record_issuance_event(
            self.corcs.db,
            ENTITY_TYPE,
            corc,
            "create",
            to_status=corc.status,
            detail={"serial_number": serial, "net_corcs_tco2e": corc.net_corcs_tco2e},
        )
        self.corcs.commit(action="create")
        logger.info("Created CORC %s from period %s (%.4f tCO2e)", serial, period.id, corc.net_corcs_tco2e)
        return self.corcs.refresh(corc)

    def update(self, corc_id: UUID, payload: schemas.CORCUpdate) -> models.CORCIssuance:
        corc = self.corcs.require(corc_id)
        with log_rejection(ENTITY_TYPE, corc_id, "edit"):
            applied = lifecycle.edit_corc(corc, payload.model_dump(exclude_unset=True))
        record_issuance_event(
            self.corcs.db,
            ENTITY_TYPE,
            corc,
            "edit",
            from_status=corc.status,
            to_status=corc.status,
            detail=applied,
        )
        self.corcs.commit(action="edit", entity_id=corc_id)
        return self.corcs.refresh(corc)

    def delete(self, corc_id: UUID) -> None:
        corc = self.corcs.require(corc_id)
        with log_rejection(ENTITY_TYPE, corc_id, "delete"):
            lifecycle.ensure_corc_deletable(corc)
        record_issuance_event(
            self.corcs.db,
            ENTITY_TYPE,
            corc,
            "delete",
            from_status=corc.status,
            detail={"serial_number": corc.serial_number},
        )
        self.corcs.delete(corc)
        self.corcs.commit(action="delete", entity_id=corc_id)

    def issue(self, corc_id: UUID, payload: schemas.CORCIssueRequest) -> models.CORCIssuance:
        corc = self.corcs.require(corc_id)
        with log_rejection(ENTITY_TYPE, corc_id, "issue"):
            previous, current = lifecycle.issue_corc(
                corc,
                issuance_date=payload.issuance_date,
                owner_name=payload.owner_name,
                owner_account_id=payload.owner_account_id,
            )
        record_issuance_event(
            self.corcs.db,
            ENTITY_TYPE,
            corc,
            "issue",
            from_status=previous,
            to_status=current,
            detail={"issuance_date": corc.issuance_date, "owner_name": corc.owner_name},
        )
        self.corcs.commit(action="issue", entity_id=corc_id)
        return self.corcs.refresh(corc)

    def retire(self, corc_id: UUID, payload: schemas.CORCRetireRequest) -> models.CORCIssuance:
        corc = self.corcs.require(corc_id)
        with log_rejection(ENTITY_TYPE, corc_id, "retire"):
            previous, current = lifecycle.retire_corc(
                corc,
                retirement_beneficiary=payload.retirement_beneficiary,
                retirement_date=payload.retirement_date,
                notes=payload.notes,
            )
        record_issuance_event(
            self.corcs.db,
            ENTITY_TYPE,
            corc,
            "retire",
            from_status=previous,
            to_status=current,
            detail={
                "retirement_date": corc.retirement_date,
                "retirement_beneficiary": corc.retirement_beneficiary,
            },
        )
        self.corcs.commit(action="retire", entity_id=corc_id)
        return self.corcs.refresh(corc)


def get_issuance_service(
    corcs: CORCRepository = Depends(provide(CORCRepository)),
    periods: MonitoringPeriodRepository = Depends(provide(MonitoringPeriodRepository)),
    batches: ProductionBatchRepository = Depends(provide(ProductionBatchRepository)),
    sequestration: SequestrationRepository = Depends(provide(SequestrationRepository)),
    events: IssuanceEventRepository = Depends(provide(IssuanceEventRepository)),
) -> IssuanceService:
    return IssuanceService(corcs, periods, batches, sequestration, events)
