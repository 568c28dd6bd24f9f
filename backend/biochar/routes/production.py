from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..repositories import ProductionBatchRepository, provide
from ..services.lab_tests import LabTestService, get_lab_test_service
from .. import models, schemas

router = APIRouter(prefix="/api/production", tags=["production"])


def _get_batch(batch_id: UUID, db: Session) -> models.ProductionBatch:
    batch = db.get(models.ProductionBatch, batch_id)
    if not batch:
        raise HTTPException(status_code=404, detail="Production batch not found")
    return batch


@router.post("/batches", response_model=schemas.ProductionBatchOut)
def create_batch(batch: schemas.ProductionBatchCreate, db: Session = Depends(get_db)):
    if not db.get(models.Facility, batch.facility_id):
        raise HTTPException(status_code=404, detail="Facility not found")
    db_batch = models.ProductionBatch(**batch.model_dump())
    db.add(db_batch)
    db.commit()
    db.refresh(db_batch)
    return db_batch


@router.get("/batches", response_model=list[schemas.ProductionBatchOut])
def list_batches(
    facility_id: UUID | None = None,
    batches: ProductionBatchRepository = Depends(provide(ProductionBatchRepository)),
):
    return batches.for_facility(facility_id)


@router.get("/batches/{batch_id}", response_model=schemas.ProductionBatchOut)
def get_batch(batch_id: UUID, db: Session = Depends(get_db)):
    return _get_batch(batch_id, db)


@router.put("/batches/{batch_id}", response_model=schemas.ProductionBatchOut)
def update_batch(
    batch_id: UUID,
    data: schemas.ProductionBatchUpdate,
    batches: ProductionBatchRepository = Depends(provide(ProductionBatchRepository)),
):
    batch = batches.require(batch_id)
    for k, v in data.model_dump(exclude_unset=True).items():
        setattr(batch, k, v)
    batches.commit(action="update", entity_id=batch_id)
    return batches.refresh(batch)


@router.post("/batches/{batch_id}/allocations", response_model=schemas.FeedstockAllocationOut)
def add_allocation(
    batch_id: UUID,
    allocation: schemas.FeedstockAllocationCreate,
    db: Session = Depends(get_db),
):
    batch = _get_batch(batch_id, db)
    if not db.get(models.FeedstockDelivery, allocation.feedstock_delivery_id):
        raise HTTPException(status_code=404, detail="Feedstock delivery not found")
    db_allocation = models.FeedstockAllocation(production_batch_id=batch.id, **allocation.model_dump())
    db.add(db_allocation)
    db.commit()
    db.refresh(db_allocation)
    return db_allocation


@router.post("/batches/{batch_id}/energy", response_model=schemas.EnergyUsageOut)
def add_energy_usage(batch_id: UUID, usage: schemas.EnergyUsageCreate, db: Session = Depends(get_db)):
    batch = _get_batch(batch_id, db)
    db_usage = models.EnergyUsage(
        production_batch_id=batch.id,
        facility_id=batch.facility_id,
        **usage.model_dump(),
    )
    db.add(db_usage)
    db.commit()
    db.refresh(db_usage)
    return db_usage


@router.get("/batches/{batch_id}/lab-tests", response_model=list[schemas.LabTestOut])
def list_lab_tests(batch_id: UUID, service: LabTestService = Depends(get_lab_test_service)):
    return service.list_for_batch(batch_id)


@router.post("/batches/{batch_id}/lab-tests", response_model=schemas.LabTestOut)
def create_lab_test(
    batch_id: UUID,
    test: schemas.LabTestCreate,
    service: LabTestService = Depends(get_lab_test_service),
):
    return service.create(batch_id, test)


@router.put("/batches/{batch_id}/lab-tests/{test_id}", response_model=schemas.LabTestOut)
def update_lab_test(
    batch_id: UUID,
    test_id: UUID,
    data: schemas.LabTestUpdate,
    service: LabTestService = Depends(get_lab_test_service),
):
    return service.update(batch_id, test_id, data)


@router.delete("/batches/{batch_id}/lab-tests/{test_id}", status_code=204)
def delete_lab_test(
    batch_id: UUID,
    test_id: UUID,
    service: LabTestService = Depends(get_lab_test_service),
):
    service.delete(batch_id, test_id)
