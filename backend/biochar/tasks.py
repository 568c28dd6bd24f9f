import os
from datetime import datetime, timezone
from uuid import UUID

from celery import Celery
from celery.utils.log import get_task_logger

from . import models
from .database import session_scope
from .errors import CarbonAccountingError
from .repositories import (
    FacilityRepository,
    LeakageAssessmentRepository,
    MonitoringPeriodRepository,
    ProductionBatchRepository,
    SequestrationRepository,
)
from .services.monitoring import MonitoringService

# purpose: run monitoring period recalculation outside the request lifecycle
# inputs: RecalculationJob identifiers queued by routes and the lab test service
# outputs: saved period results and job status transitions queued -> running -> completed | failed
# status: active

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "memory://")
celery_app = Celery("biochar", broker=CELERY_BROKER_URL)
celery_app.conf.task_always_eager = (
    CELERY_BROKER_URL == "memory://" or os.getenv("TESTING") == "1"
)

_logger = get_task_logger(__name__)


def _now():
    return datetime.now(timezone.utc)


def build_monitoring_service(db) -> MonitoringService:
    return MonitoringService(
        MonitoringPeriodRepository(db),
        FacilityRepository(db),
        ProductionBatchRepository(db),
        SequestrationRepository(db),
        LeakageAssessmentRepository(db),
    )


def _finish(db, job_id: UUID, status: str, *, error: str | None = None, result: dict | None = None):
    job = db.get(models.RecalculationJob, job_id)
    job.status = status
    job.error = error
    job.result = result
    job.completed_at = _now()
    db.commit()
    return job


@celery_app.task
def recalculate_monitoring_period(job_id: str):
    with session_scope() as db:
        job_uuid = UUID(job_id)
        job = db.get(models.RecalculationJob, job_uuid)
        if not job:
            _logger.warning("Recalculation job %s missing", job_id)
            return None
        job.status = "running"
        job.started_at = _now()
        db.commit()
        period_id = job.monitoring_period_id

        try:
            outcome = build_monitoring_service(db).calculate(period_id, save_result=True)
        except CarbonAccountingError as exc:
            db.rollback()
            _logger.warning("Recalculation job %s for period %s failed: %s", job_id, period_id, exc)
            _finish(db, job_uuid, "failed", error=str(exc))
            return "failed"
        except Exception as exc:
            db.rollback()
            _finish(db, job_uuid, "failed", error=f"{type(exc).__name__}: {exc}")
            raise

        _finish(
            db,
            job_uuid,
            "completed",
            result={
                "net_corcs_tco2e": outcome.result.net_corcs_tco2e,
                "calculation_version": outcome.result.calculation_version,
                "warnings": list(outcome.report.warnings),
            },
        )
        _logger.info("Recalculation job %s completed for period %s", job_id, period_id)
        return "completed"


def enqueue_recalculation(job_id: UUID | str) -> None:
    """Dispatch a queued RecalculationJob."""

    identifier = str(job_id)
    if celery_app.conf.task_always_eager:
        recalculate_monitoring_period(identifier)
    else:
        recalculate_monitoring_period.delay(identifier)
