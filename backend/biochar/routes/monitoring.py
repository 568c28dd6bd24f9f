from uuid import UUID

from fastapi import APIRouter, Depends

from ..repositories import MonitoringPeriodRepository, RecalculationJobRepository, provide
from ..services.monitoring import MonitoringService, get_monitoring_service
from ..tasks import enqueue_recalculation
from .. import models, schemas

router = APIRouter(prefix="/api/monitoring-periods", tags=["monitoring"])
jobs_router = APIRouter(prefix="/api/recalculation-jobs", tags=["monitoring"])


@router.post("", response_model=schemas.MonitoringPeriodOut)
def create_period(
    period: schemas.MonitoringPeriodCreate,
    service: MonitoringService = Depends(get_monitoring_service),
):
    return service.create_period(period)


@router.get("", response_model=list[schemas.MonitoringPeriodOut])
def list_periods(
    facility_id: UUID | None = None,
    periods: MonitoringPeriodRepository = Depends(provide(MonitoringPeriodRepository)),
):
    return periods.for_facility(facility_id)


@router.get("/{period_id}", response_model=schemas.MonitoringPeriodOut)
def get_period(
    period_id: UUID,
    periods: MonitoringPeriodRepository = Depends(provide(MonitoringPeriodRepository)),
):
    return periods.require(period_id)


@router.put("/{period_id}", response_model=schemas.MonitoringPeriodOut)
def update_period(
    period_id: UUID,
    data: schemas.MonitoringPeriodUpdate,
    service: MonitoringService = Depends(get_monitoring_service),
):
    return service.update_period(period_id, data)


@router.delete("/{period_id}", status_code=204)
def delete_period(period_id: UUID, service: MonitoringService = Depends(get_monitoring_service)):
    service.delete_period(period_id)


@router.post("/{period_id}/calculate", response_model=schemas.CalculateResponse)
def calculate_period(
    period_id: UUID,
    options: schemas.CalculateRequest | None = None,
    service: MonitoringService = Depends(get_monitoring_service),
):
    options = options or schemas.CalculateRequest()
    outcome = service.calculate(
        period_id,
        save_result=options.save_result,
        mean_soil_temp_override=options.mean_soil_temp_override,
        co_product_allocation_factor_override=options.co_product_allocation_factor_override,
        biochar_energy_mj=options.biochar_energy_mj,
        co_product_energy_mj=options.co_product_energy_mj,
        return_full_breakdown=options.return_full_breakdown,
    )
    return outcome.to_response()


@router.post("/{period_id}/recalculate", response_model=schemas.RecalculationJobOut, status_code=202)
def recalculate_period(
    period_id: UUID,
    periods: MonitoringPeriodRepository = Depends(provide(MonitoringPeriodRepository)),
    jobs: RecalculationJobRepository = Depends(provide(RecalculationJobRepository)),
):
    periods.require(period_id)
    job = jobs.add(models.RecalculationJob(monitoring_period_id=period_id, trigger="manual"))
    jobs.commit(action="queue")
    enqueue_recalculation(job.id)
    return jobs.refresh(job)


@router.get("/{period_id}/recalculation-jobs", response_model=list[schemas.RecalculationJobOut])
def list_period_jobs(
    period_id: UUID,
    jobs: RecalculationJobRepository = Depends(provide(RecalculationJobRepository)),
):
    return jobs.for_period(period_id)


@jobs_router.get("/{job_id}", response_model=schemas.RecalculationJobOut)
def get_job(
    job_id: UUID,
    jobs: RecalculationJobRepository = Depends(provide(RecalculationJobRepository)),
):
    return jobs.require(job_id)
