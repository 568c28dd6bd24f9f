"""Legacy BCU registry: creation, transfer, retirement and deletion."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from uuid import UUID

from fastapi import Depends

from .. import lifecycle, models, schemas
from ..errors import StateConflictError
from ..eventlog import log_rejection, record_issuance_event
from ..repositories import BCURepository, IssuanceEventRepository, provide

# purpose: drive the issued -> transferred* -> retired lifecycle of legacy carbon units
# inputs: BCU payloads and transfer/retire requests
# outputs: BCU rows plus an IssuanceEvent per transition
# status: active

logger = logging.getLogger(__name__)

ENTITY_TYPE = "bcu"


def generate_serial(now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")
    return f"BCU-{stamp}-{uuid.uuid4().hex[:9].upper()}"


class RegistryService:
    def __init__(self, bcus: BCURepository, events: IssuanceEventRepository):
        self.bcus = bcus
        self.events = events

    def list(self, *, status: str | None = None, owner_name: str | None = None):
        return self.bcus.search(status=status, owner_name=owner_name)

    def get(self, bcu_id: UUID) -> models.BCU:
        return self.bcus.require(bcu_id)

    def history(self, bcu_id: UUID):
        self.bcus.require(bcu_id)
        return self.events.for_entity(ENTITY_TYPE, bcu_id)

    def create(self, payload: schemas.BCUCreate) -> models.BCU:
        data = payload.model_dump()
        serial = data.pop("registry_serial") or generate_serial()
        if self.bcus.serial_exists(serial):
            raise StateConflictError(
                f"Registry serial {serial} already exists",
                entity=self.bcus.entity,
                action="create",
            )
        if data.get("issuance_date") is None:
            data.pop("issuance_date")
        bcu = models.BCU(registry_serial=serial, status=lifecycle.BCU_ISSUED, **data)
        self.bcus.add(bcu)
        self.bcus.flush(action="create")
        record_issuance_event(
            self.bcus.db,
            ENTITY_TYPE,
            bcu,
            "create",
            to_status=bcu.status,
            detail={"registry_serial": serial, "quantity_tco2e": bcu.quantity_tco2e},
        )
        self.bcus.commit(action="create")
        logger.info("Registered BCU %s (%.4f tCO2e)", serial, bcu.quantity_tco2e)
        return self.bcus.refresh(bcu)

    def update(self, bcu_id: UUID, payload: schemas.BCUUpdate) -> models.BCU:
        bcu = self.bcus.require(bcu_id)
        changes = payload.model_dump(exclude_unset=True)
        for key, value in changes.items():
            setattr(bcu, key, value)
        record_issuance_event(
            self.bcus.db,
            ENTITY_TYPE,
            bcu,
            "edit",
            from_status=bcu.status,
            to_status=bcu.status,
            detail=changes,
        )
        self.bcus.commit(action="edit", entity_id=bcu_id)
        return self.bcus.refresh(bcu)

    def transfer(self, bcu_id: UUID, payload: schemas.BCUTransferRequest) -> models.BCU:
        bcu = self.bcus.require(bcu_id)
        previous_owner = bcu.owner_name
        with log_rejection(ENTITY_TYPE, bcu_id, "transfer"):
            previous, current = lifecycle.transfer_bcu(
                bcu,
                new_owner_name=payload.new_owner_name,
                new_owner_account_id=payload.new_owner_account_id,
                notes=payload.notes,
            )
        record_issuance_event(
            self.bcus.db,
            ENTITY_TYPE,
            bcu,
            "transfer",
            from_status=previous,
            to_status=current,
            detail={"from_owner": previous_owner, "to_owner": bcu.owner_name},
        )
        self.bcus.commit(action="transfer", entity_id=bcu_id)
        return self.bcus.refresh(bcu)

    def retire(self, bcu_id: UUID, payload: schemas.BCURetireRequest) -> models.BCU:
        bcu = self.bcus.require(bcu_id)
        with log_rejection(ENTITY_TYPE, bcu_id, "retire"):
            previous, current = lifecycle.retire_bcu(
                bcu,
                retirement_beneficiary=payload.retirement_beneficiary,
                retirement_date=payload.retirement_date,
                notes=payload.notes,
            )
        record_issuance_event(
            self.bcus.db,
            ENTITY_TYPE,
            bcu,
            "retire",
            from_status=previous,
            to_status=current,
            detail={"retirement_beneficiary": bcu.retirement_beneficiary},
        )
        self.bcus.commit(action="retire", entity_id=bcu_id)
        return self.bcus.refresh(bcu)

    def delete(self, bcu_id: UUID) -> None:
        bcu = self.bcus.require(bcu_id)
        with log_rejection(ENTITY_TYPE, bcu_id, "delete"):
            lifecycle.ensure_bcu_deletable(bcu)
        record_issuance_event(
            self.bcus.db,
            ENTITY_TYPE,
            bcu,
            "delete",
            from_status=bcu.status,
            detail={"registry_serial": bcu.registry_serial},
        )
        self.bcus.delete(bcu)
        self.bcus.commit(action="delete", entity_id=bcu_id)


def get_registry_service(
    bcus: BCURepository = Depends(provide(BCURepository)),
    events: IssuanceEventRepository = Depends(provide(IssuanceEventRepository)),
) -> RegistryService:
    return RegistryService(bcus, events)
