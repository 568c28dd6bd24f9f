from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..repositories import SequestrationRepository, provide
from .. import models, schemas

router = APIRouter(prefix="/api/sequestration", tags=["sequestration"])


@router.post("/events", response_model=schemas.SequestrationEventOut)
def create_event(event: schemas.SequestrationEventCreate, db: Session = Depends(get_db)):
    data = event.model_dump(exclude={"batches"})
    db_event = models.SequestrationEvent(**data)
    for link in event.batches:
        if not db.get(models.ProductionBatch, link.production_batch_id):
            raise HTTPException(status_code=404, detail=f"Production batch {link.production_batch_id} not found")
        db_event.batch_links.append(
            models.SequestrationBatch(
                production_batch_id=link.production_batch_id,
                quantity_tonnes=link.quantity_tonnes,
            )
        )
    db.add(db_event)
    db.commit()
    db.refresh(db_event)
    return db_event


@router.get("/events", response_model=list[schemas.SequestrationEventOut])
def list_events(events: SequestrationRepository = Depends(provide(SequestrationRepository))):
    return events.list()


@router.get("/events/{event_id}", response_model=schemas.SequestrationEventOut)
def get_event(event_id: UUID, events: SequestrationRepository = Depends(provide(SequestrationRepository))):
    return events.require(event_id)
