"""CORC issuance and BCU registry schemas."""

# purpose: contracts for certificate creation, lifecycle transitions and audit history
# status: active

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

PermanenceType = Literal["BC100+", "BC200+"]


class CORCCreate(BaseModel):
    monitoring_period_id: UUID
    permanence_type: PermanenceType = "BC200+"
    notes: str | None = None


class CORCUpdate(BaseModel):
    notes: str | None = None
    permanence_type: PermanenceType | None = None
    owner_name: str | None = None
    owner_account_id: str | None = None


class CORCIssueRequest(BaseModel):
    issuance_date: datetime | None = None
    owner_name: str | None = None
    owner_account_id: str | None = None


class CORCRetireRequest(BaseModel):
    retirement_date: datetime | None = None
    retirement_beneficiary: str = Field(min_length=1)
    notes: str | None = None


class CORCOut(BaseModel):
    id: UUID
    serial_number: str
    monitoring_period_id: UUID
    status: str
    net_corcs_tco2e: float
    c_stored_tco2e: float | None = None
    c_baseline_tco2e: float | None = None
    c_loss_tco2e: float | None = None
    persistence_fraction_percent: float | None = None
    e_project_tco2e: float | None = None
    e_leakage_tco2e: float | None = None
    h_corg_ratio: float | None = None
    permanence_type: str
    calculation_version: str | None = None
    issuance_date: datetime | None = None
    owner_name: str | None = None
    owner_account_id: str | None = None
    retirement_date: datetime | None = None
    retirement_beneficiary: str | None = None
    notes: str | None = None
    created_at: datetime
    version: int
    production_batch_ids: list[UUID] = Field(default_factory=list)
    sequestration_event_ids: list[UUID] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, corc: Any) -> "CORCOut":
        out = cls.model_validate(corc)
        out.production_batch_ids = [batch.id for batch in corc.production_batches]
        out.sequestration_event_ids = [event.id for event in corc.sequestration_events]
        return out


class BCUCreate(BaseModel):
    registry_serial: str | None = None
    quantity_tco2e: float = Field(gt=0)
    issuance_date: datetime | None = None
    owner_name: str | None = None
    owner_account_id: str | None = None
    notes: str | None = None
    sequestration_event_id: UUID | None = None


class BCUUpdate(BaseModel):
    notes: str | None = None


class BCUTransferRequest(BaseModel):
    new_owner_name: str = Field(min_length=1)
    new_owner_account_id: str | None = None
    notes: str | None = None


class BCURetireRequest(BaseModel):
    retirement_date: datetime | None = None
    retirement_beneficiary: str = Field(min_length=1)
    notes: str | None = None


class BCUOut(BaseModel):
    id: UUID
    registry_serial: str
    quantity_tco2e: float
    issuance_date: datetime
    status: str
    owner_name: str | None = None
    owner_account_id: str | None = None
    retirement_date: datetime | None = None
    retirement_beneficiary: str | None = None
    notes: str | None = None
    sequestration_event_id: UUID | None = None
    version: int
    model_config = ConfigDict(from_attributes=True)


class IssuanceEventOut(BaseModel):
    id: UUID
    entity_type: str
    entity_id: UUID
    action: str
    from_status: str | None = None
    to_status: str | None = None
    detail: dict[str, Any] = Field(default_factory=dict)
    sequence: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
