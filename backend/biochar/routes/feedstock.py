from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..repositories import FeedstockDeliveryRepository, provide
from .. import models, schemas

router = APIRouter(prefix="/api/feedstock", tags=["feedstock"])


@router.post("/deliveries", response_model=schemas.FeedstockDeliveryOut)
def create_delivery(delivery: schemas.FeedstockDeliveryCreate, db: Session = Depends(get_db)):
    if not db.get(models.Facility, delivery.facility_id):
        raise HTTPException(status_code=404, detail="Facility not found")
    db_delivery = models.FeedstockDelivery(**delivery.model_dump())
    db.add(db_delivery)
    db.commit()
    db.refresh(db_delivery)
    return db_delivery


@router.get("/deliveries", response_model=list[schemas.FeedstockDeliveryOut])
def list_deliveries(
    facility_id: UUID | None = None,
    deliveries: FeedstockDeliveryRepository = Depends(provide(FeedstockDeliveryRepository)),
):
    return deliveries.for_facility(facility_id)
