from uuid import UUID

from fastapi import APIRouter, Depends

from ..services.registry import RegistryService, get_registry_service
from .. import schemas

router = APIRouter(prefix="/api/registry", tags=["registry"])


@router.post("", response_model=schemas.BCUOut)
def create_bcu(payload: schemas.BCUCreate, service: RegistryService = Depends(get_registry_service)):
    return service.create(payload)


@router.get("", response_model=list[schemas.BCUOut])
def list_bcus(
    status: str | None = None,
    owner_name: str | None = None,
    service: RegistryService = Depends(get_registry_service),
):
    return service.list(status=status, owner_name=owner_name)


@router.get("/{bcu_id}", response_model=schemas.BCUOut)
def get_bcu(bcu_id: UUID, service: RegistryService = Depends(get_registry_service)):
    return service.get(bcu_id)


@router.put("/{bcu_id}", response_model=schemas.BCUOut)
def update_bcu(
    bcu_id: UUID,
    payload: schemas.BCUUpdate,
    service: RegistryService = Depends(get_registry_service),
):
    return service.update(bcu_id, payload)


@router.delete("/{bcu_id}", status_code=204)
def delete_bcu(bcu_id: UUID, service: RegistryService = Depends(get_registry_service)):
    service.delete(bcu_id)


@router.post("/{bcu_id}/transfer", response_model=schemas.BCUOut)
def transfer_bcu(
    bcu_id: UUID,
    payload: schemas.BCUTransferRequest,
    service: RegistryService = Depends(get_registry_service),
):
    return service.transfer(bcu_id, payload)


@router.post("/{bcu_id}/retire", response_model=schemas.BCUOut)
def retire_bcu(
    bcu_id: UUID,
    payload: schemas.BCURetireRequest,
    service: RegistryService = Depends(get_registry_service),
):
    return service.retire(bcu_id, payload)


@router.get("/{bcu_id}/events", response_model=list[schemas.IssuanceEventOut])
def list_bcu_events(bcu_id: UUID, service: RegistryService = Depends(get_registry_service)):
    return service.history(bcu_id)
