"""Per-entity data access used by the calculation and issuance services."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Generic, Iterable, TypeVar
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from . import models
from .database import get_db
from .errors import RecordNotFound, StateConflictError

# purpose: keep query construction out of services so they can be exercised with any session
# inputs: SQLAlchemy session scoped to a request or worker task
# outputs: ORM entities and commit semantics that surface concurrency failures as domain errors
# status: active

ModelT = TypeVar("ModelT")


class Repository(Generic[ModelT]):
    model: type
    entity: str

    def __init__(self, db: Session):
        self.db = db

    def get(self, entity_id: UUID) -> ModelT | None:
        return self.db.get(self.model, entity_id)

    def require(self, entity_id: UUID) -> ModelT:
        instance = self.get(entity_id)
        if instance is None:
            raise RecordNotFound(self.entity, entity_id)
        return instance

    def locked(self, entity_id: UUID):
        return self.db.query(self.model).filter(self.model.id == entity_id).with_for_update()

    def require_locked(self, entity_id: UUID) -> ModelT:
        """Load and row-lock ``entity_id`` until the transaction ends (no-op on SQLite)."""

        instance = self.locked(entity_id).one_or_none()
        if instance is None:
            raise RecordNotFound(self.entity, entity_id)
        return instance

    def list(self) -> list[ModelT]:
        return self.db.query(self.model).all()

    def add(self, instance: ModelT) -> ModelT:
        self.db.add(instance)
        return instance

    def delete(self, instance: ModelT) -> None:
        self.db.delete(instance)

    def flush(self, *, action: str = "flush", entity_id: UUID | str | None = None) -> None:
        with self._conflicts(action, entity_id):
            self.db.flush()

    def commit(self, *, action: str, entity_id: UUID | str | None = None) -> None:
        """Commit the unit of work, translating lost races into StateConflictError."""

        with self._conflicts(action, entity_id):
            self.db.commit()

    @contextmanager
    def _conflicts(self, action: str, entity_id: UUID | str | None):
        try:
            yield
        except StaleDataError as exc:
            self.db.rollback()
            raise StateConflictError(
                f"{self.entity} was modified concurrently; reload and retry",
                entity=self.entity,
                entity_id=entity_id,
                action=action,
            ) from exc
        except IntegrityError as exc:
            self.db.rollback()
            raise StateConflictError(
                f"{self.entity} conflicts with an existing record",
                entity=self.entity,
                entity_id=entity_id,
                action=action,
            ) from exc

    def refresh(self, instance: ModelT) -> ModelT:
        self.db.refresh(instance)
        return instance


class FacilityRepository(Repository[models.Facility]):
    model = models.Facility
    entity = "Facility"


class FeedstockDeliveryRepository(Repository[models.FeedstockDelivery]):
    model = models.FeedstockDelivery
    entity = "Feedstock delivery"

    def for_facility(self, facility_id: UUID | None = None) -> list[models.FeedstockDelivery]:
        query = self.db.query(models.FeedstockDelivery)
        if facility_id:
            query = query.filter(models.FeedstockDelivery.facility_id == facility_id)
        return query.order_by(models.FeedstockDelivery.delivery_date.desc()).all()


class ProductionBatchRepository(Repository[models.ProductionBatch]):
    model = models.ProductionBatch
    entity = "Production batch"

    def for_facility(self, facility_id: UUID | None = None) -> list[models.ProductionBatch]:
        query = self.db.query(models.ProductionBatch)
        if facility_id:
            query = query.filter(models.ProductionBatch.facility_id == facility_id)
        return query.order_by(models.ProductionBatch.production_date.desc()).all()

    def complete_in_range(self, facility_id: UUID, start: date, end: date) -> list[models.ProductionBatch]:
        """Completed batches produced within the inclusive date range, with calculation inputs loaded."""

        return (
            self.db.query(models.ProductionBatch)
            .options(
                selectinload(models.ProductionBatch.lab_tests),
                selectinload(models.ProductionBatch.allocations).selectinload(
                    models.FeedstockAllocation.delivery
                ),
                selectinload(models.ProductionBatch.energy_usages),
            )
            .filter(
                models.ProductionBatch.facility_id == facility_id,
                models.ProductionBatch.status == "complete",
                models.ProductionBatch.production_date >= start,
                models.ProductionBatch.production_date <= end,
            )
            .order_by(models.ProductionBatch.production_date.asc())
            .all()
        )


class LabTestRepository(Repository[models.LabTest]):
    model = models.LabTest
    entity = "Lab test"

    def for_batch(self, batch_id: UUID) -> list[models.LabTest]:
        return (
            self.db.query(models.LabTest)
            .filter(models.LabTest.production_batch_id == batch_id)
            .order_by(models.LabTest.test_date.desc(), models.LabTest.created_at.desc())
            .all()
        )

    def latest_for_batch(self, batch_id: UUID, *, excluding: UUID | None = None) -> models.LabTest | None:
        query = self.db.query(models.LabTest).filter(models.LabTest.production_batch_id == batch_id)
        if excluding is not None:
            query = query.filter(models.LabTest.id != excluding)
        return query.order_by(models.LabTest.test_date.desc(), models.LabTest.created_at.desc()).first()


class SequestrationRepository(Repository[models.SequestrationEvent]):
    model = models.SequestrationEvent
    entity = "Sequestration event"

    def list(self) -> list[models.SequestrationEvent]:
        return (
            self.db.query(models.SequestrationEvent)
            .order_by(models.SequestrationEvent.final_delivery_date.desc())
            .all()
        )

    def delivered_in_range(
        self,
        batch_ids: Iterable[UUID],
        start: date,
        end: date,
    ) -> list[models.SequestrationEvent]:
        """Events delivered within the range that carry biochar from one of ``batch_ids``."""

        ids = list(batch_ids)
        if not ids:
            return []
        return (
            self.db.query(models.SequestrationEvent)
            .options(selectinload(models.SequestrationEvent.batch_links))
            .join(models.SequestrationBatch)
            .filter(
                models.SequestrationBatch.production_batch_id.in_(ids),
                models.SequestrationEvent.final_delivery_date >= start,
                models.SequestrationEvent.final_delivery_date <= end,
            )
            .distinct()
            .order_by(models.SequestrationEvent.final_delivery_date.asc())
            .all()
        )


class LeakageAssessmentRepository(Repository[models.LeakageAssessment]):
    model = models.LeakageAssessment
    entity = "Leakage assessment"

    def for_facility(self, facility_id: UUID | None = None) -> list[models.LeakageAssessment]:
        query = self.db.query(models.LeakageAssessment)
        if facility_id:
            query = query.filter(models.LeakageAssessment.facility_id == facility_id)
        return query.order_by(models.LeakageAssessment.assessment_date.desc()).all()


class MonitoringPeriodRepository(Repository[models.MonitoringPeriod]):
    model = models.MonitoringPeriod
    entity = "Monitoring period"

    def for_facility(self, facility_id: UUID | None = None) -> list[models.MonitoringPeriod]:
        query = self.db.query(models.MonitoringPeriod)
        if facility_id:
            query = query.filter(models.MonitoringPeriod.facility_id == facility_id)
        return query.order_by(models.MonitoringPeriod.period_start.desc()).all()

    def overlapping(
        self,
        facility_id: UUID,
        start: date,
        end: date,
        *,
        exclude_id: UUID | None = None,
    ) -> list[models.MonitoringPeriod]:
        # inclusive on both ends: a period ending on the day another starts overlaps it
        query = self.db.query(models.MonitoringPeriod).filter(
            models.MonitoringPeriod.facility_id == facility_id,
            models.MonitoringPeriod.period_start <= end,
            models.MonitoringPeriod.period_end >= start,
        )
        if exclude_id is not None:
            query = query.filter(models.MonitoringPeriod.id != exclude_id)
        return query.all()

    def calculated_covering(self, batch: models.ProductionBatch) -> list[models.MonitoringPeriod]:
        """Periods with a saved result whose range contains the batch production date."""

        return (
            self.db.query(models.MonitoringPeriod)
            .filter(
                models.MonitoringPeriod.facility_id == batch.facility_id,
                models.MonitoringPeriod.period_start <= batch.production_date,
                models.MonitoringPeriod.period_end >= batch.production_date,
                models.MonitoringPeriod.net_corcs_tco2e.isnot(None),
            )
            .all()
        )


class CORCRepository(Repository[models.CORCIssuance]):
    model = models.CORCIssuance
    entity = "CORC issuance"

    def search(
        self,
        *,
        status: str | None = None,
        monitoring_period_id: UUID | None = None,
    ) -> list[models.CORCIssuance]:
        query = self.db.query(models.CORCIssuance)
        if status:
            query = query.filter(models.CORCIssuance.status == status)
        if monitoring_period_id:
            query = query.filter(models.CORCIssuance.monitoring_period_id == monitoring_period_id)
        return query.order_by(models.CORCIssuance.created_at.desc()).all()

    def next_sequence(self, prefix: str) -> int:
        """Next free sequence number for serials starting with ``prefix``."""

        serials = (
            self.db.query(models.CORCIssuance.serial_number)
            .filter(models.CORCIssuance.serial_number.like(f"{prefix}%"))
            .all()
        )
        highest = 0
        for (serial,) in serials:
            tail = serial[len(prefix):]
            if tail.isdigit():
                highest = max(highest, int(tail))
        return highest + 1


class BCURepository(Repository[models.BCU]):
    model = models.BCU
    entity = "BCU"

    def search(self, *, status: str | None = None, owner_name: str | None = None) -> list[models.BCU]:
        query = self.db.query(models.BCU)
        if status:
            query = query.filter(models.BCU.status == status)
        if owner_name:
            query = query.filter(models.BCU.owner_name == owner_name)
        return query.order_by(models.BCU.issuance_date.desc()).all()

    def serial_exists(self, serial: str) -> bool:
        return (
            self.db.query(func.count(models.BCU.id))
            .filter(models.BCU.registry_serial == serial)
            .scalar()
            > 0
        )


class RecalculationJobRepository(Repository[models.RecalculationJob]):
    model = models.RecalculationJob
    entity = "Recalculation job"

    def for_period(self, period_id: UUID) -> list[models.RecalculationJob]:
        return (
            self.db.query(models.RecalculationJob)
            .filter(models.RecalculationJob.monitoring_period_id == period_id)
            .order_by(models.RecalculationJob.created_at.desc())
            .all()
        )


class IssuanceEventRepository(Repository[models.IssuanceEvent]):
    model = models.IssuanceEvent
    entity = "Issuance event"

    def for_entity(self, entity_type: str, entity_id: UUID) -> list[models.IssuanceEvent]:
        return (
            self.db.query(models.IssuanceEvent)
            .filter(
                models.IssuanceEvent.entity_type == entity_type,
                models.IssuanceEvent.entity_id == entity_id,
            )
            .order_by(models.IssuanceEvent.sequence.asc())
            .all()
        )


def provide(repository_cls: type[Repository]):
    """Build a FastAPI dependency yielding ``repository_cls`` bound to the request session."""

    def _dependency(db: Session = Depends(get_db)) -> Repository:
        return repository_cls(db)

    _dependency.__name__ = f"get_{repository_cls.__name__}"
    return _dependency
