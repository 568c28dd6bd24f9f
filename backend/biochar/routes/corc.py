from uuid import UUID

from fastapi import APIRouter, Depends

from ..services.issuance import IssuanceService, get_issuance_service
from .. import schemas

router = APIRouter(prefix="/api/corc", tags=["corc"])


@router.post("", response_model=schemas.CORCOut)
def create_corc(payload: schemas.CORCCreate, service: IssuanceService = Depends(get_issuance_service)):
    return schemas.CORCOut.from_model(service.create_from_period(payload))


@router.get("", response_model=list[schemas.CORCOut])
def list_corcs(
    status: str | None = None,
    monitoring_period_id: UUID | None = None,
    service: IssuanceService = Depends(get_issuance_service),
):
    return [
        schemas.CORCOut.from_model(corc)
        for corc in service.list(status=status, monitoring_period_id=monitoring_period_id)
    ]


@router.get("/{corc_id}", response_model=schemas.CORCOut)
def get_corc(corc_id: UUID, service: IssuanceService = Depends(get_issuance_service)):
    return schemas.CORCOut.from_model(service.get(corc_id))


@router.put("/{corc_id}", response_model=schemas.CORCOut)
def update_corc(
    corc_id: UUID,
    payload: schemas.CORCUpdate,
    service: IssuanceService = Depends(get_issuance_service),
):
    return schemas.CORCOut.from_model(service.update(corc_id, payload))


@router.delete("/{corc_id}", status_code=204)
def delete_corc(corc_id: UUID, service: IssuanceService = Depends(get_issuance_service)):
    service.delete(corc_id)


@router.post("/{corc_id}/issue", response_model=schemas.CORCOut)
def issue_corc(
    corc_id: UUID,
    payload: schemas.CORCIssueRequest | None = None,
    service: IssuanceService = Depends(get_issuance_service),
):
    return schemas.CORCOut.from_model(service.issue(corc_id, payload or schemas.CORCIssueRequest()))


@router.post("/{corc_id}/retire", response_model=schemas.CORCOut)
def retire_corc(
    corc_id: UUID,
    payload: schemas.CORCRetireRequest,
    service: IssuanceService = Depends(get_issuance_service),
):
    return schemas.CORCOut.from_model(service.retire(corc_id, payload))


@router.get("/{corc_id}/events", response_model=list[schemas.IssuanceEventOut])
def list_corc_events(corc_id: UUID, service: IssuanceService = Depends(get_issuance_service)):
    return service.history(corc_id)
