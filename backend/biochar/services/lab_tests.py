"""Lab test recording and authoritative batch quality synchronisation."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends

from .. import models, schemas
from ..errors import RecordNotFound
from ..methodology import evaluate_lab_test
from ..repositories import (
    LabTestRepository,
    MonitoringPeriodRepository,
    ProductionBatchRepository,
    RecalculationJobRepository,
    provide,
)
from ..tasks import enqueue_recalculation

# purpose: keep batch quality fields equal to the latest remaining lab test after every change
# inputs: lab test payloads scoped to a production batch
# outputs: persisted LabTest rows, refreshed batch quality, queued recalculation jobs
# status: active

logger = logging.getLogger(__name__)


def apply_assessment(test: models.LabTest) -> None:
    assessment = evaluate_lab_test(
        test.total_carbon_percent,
        test.inorganic_carbon_percent or 0.0,
        test.hydrogen_percent,
    )
    test.organic_carbon_percent = assessment.organic_carbon_percent
    test.h_corg_ratio = assessment.h_corg_ratio
    test.passes_threshold = assessment.passes_quality_threshold


def copy_quality(batch: models.ProductionBatch, latest: models.LabTest | None) -> None:
    """Mirror ``latest`` onto the batch, or reset the batch to pending when there is none."""

    if latest is None:
        batch.total_carbon_percent = None
        batch.organic_carbon_percent = None
        batch.hydrogen_percent = None
        batch.h_corg_ratio = None
        batch.quality_status = "pending"
        return
    batch.total_carbon_percent = latest.total_carbon_percent
    batch.organic_carbon_percent = latest.organic_carbon_percent
    batch.hydrogen_percent = latest.hydrogen_percent
    batch.h_corg_ratio = latest.h_corg_ratio
    batch.quality_status = "passed" if latest.passes_threshold else "failed"


class LabTestService:
    def __init__(
        self,
        batches: ProductionBatchRepository,
        lab_tests: LabTestRepository,
        periods: MonitoringPeriodRepository,
        jobs: RecalculationJobRepository,
    ):
        self.batches = batches
        self.lab_tests = lab_tests
        self.periods = periods
        self.jobs = jobs

    def list_for_batch(self, batch_id: UUID) -> list[models.LabTest]:
        self.batches.require(batch_id)
        return self.lab_tests.for_batch(batch_id)

    def create(self, batch_id: UUID, payload: schemas.LabTestCreate) -> models.LabTest:
        batch = self.batches.require(batch_id)
        test = models.LabTest(production_batch_id=batch.id, **payload.model_dump())
        apply_assessment(test)
        self.lab_tests.add(test)
        self._sync_and_commit(batch, action="create")
        return self.lab_tests.refresh(test)

    def update(self, batch_id: UUID, test_id: UUID, payload: schemas.LabTestUpdate) -> models.LabTest:
        batch = self.batches.require(batch_id)
        test = self._require_test(batch, test_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(test, key, value)
        apply_assessment(test)
        self._sync_and_commit(batch, action="update")
        return self.lab_tests.refresh(test)

    def delete(self, batch_id: UUID, test_id: UUID) -> None:
        batch = self.batches.require(batch_id)
        test = self._require_test(batch, test_id)
        self.lab_tests.delete(test)
        self._sync_and_commit(batch, action="delete")

    def sync_batch_quality(self, batch: models.ProductionBatch, *, action: str = "sync") -> None:
        self.lab_tests.flush(action=action, entity_id=batch.id)
        copy_quality(batch, self.lab_tests.latest_for_batch(batch.id))

    def _require_test(self, batch: models.ProductionBatch, test_id: UUID) -> models.LabTest:
        test = self.lab_tests.get(test_id)
        if test is None or test.production_batch_id != batch.id:
            raise RecordNotFound(self.lab_tests.entity, test_id)
        return test

    def _sync_and_commit(self, batch: models.ProductionBatch, *, action: str) -> None:
        self.sync_batch_quality(batch, action=action)
        self.lab_tests.commit(action=action, entity_id=batch.id)
        self._queue_recalculations(batch)

    def _queue_recalculations(self, batch: models.ProductionBatch) -> list[models.RecalculationJob]:
        """Queue recalculation for every already-calculated period containing the batch."""

        jobs = [
            self.jobs.add(models.RecalculationJob(monitoring_period_id=period.id, trigger="lab_test"))
            for period in self.periods.calculated_covering(batch)
        ]
        if not jobs:
            return []
        self.jobs.commit(action="queue")
        for job in jobs:
            logger.info("Queued recalculation %s for period %s after lab test change", job.id, job.monitoring_period_id)
            enqueue_recalculation(job.id)
        return jobs


def get_lab_test_service(
    batches: ProductionBatchRepository = Depends(provide(ProductionBatchRepository)),
    lab_tests: LabTestRepository = Depends(provide(LabTestRepository)),
    periods: MonitoringPeriodRepository = Depends(provide(MonitoringPeriodRepository)),
    jobs: RecalculationJobRepository = Depends(provide(RecalculationJobRepository)),
) -> LabTestService:
    return LabTestService(batches, lab_tests, periods, jobs)
