from uuid import UUID

import pytest
from sqlalchemy.dialects import postgresql

from biochar import schemas
from biochar.errors import StateConflictError
from biochar.repositories import (
    BCURepository,
    CORCRepository,
    FacilityRepository,
    IssuanceEventRepository,
    MonitoringPeriodRepository,
    ProductionBatchRepository,
    SequestrationRepository,
)
from biochar.services.issuance import IssuanceService
from biochar.services.registry import RegistryService
from biochar.tasks import build_monitoring_service

from .conftest import TestingSessionLocal, calculated_period, create_facility, create_period


@pytest.fixture
def sessions():
    first, second = TestingSessionLocal(), TestingSessionLocal()
    try:
        yield first, second
    finally:
        first.close()
        second.close()


def issuance_service(db):
    return IssuanceService(
        CORCRepository(db),
        MonitoringPeriodRepository(db),
        ProductionBatchRepository(db),
        SequestrationRepository(db),
        IssuanceEventRepository(db),
    )


def registry_service(db):
    return RegistryService(BCURepository(db), IssuanceEventRepository(db))


def test_second_issue_of_same_draft_conflicts(client, sessions):
    _, _, period, _ = calculated_period(client)
    corc = client.post("/api/corc", json={"monitoring_period_id": period["id"]}).json()
    corc_id = UUID(corc["id"])

    first, second = (issuance_service(db) for db in sessions)
    first.get(corc_id)
    second.get(corc_id)

    first.issue(corc_id, schemas.CORCIssueRequest(owner_name="First"))
    with pytest.raises(StateConflictError) as excinfo:
        second.issue(corc_id, schemas.CORCIssueRequest(owner_name="Second"))
    assert excinfo.value.action == "issue"

    stored = client.get(f"/api/corc/{corc['id']}").json()
    assert stored["status"] == "issued"
    assert stored["owner_name"] == "First"
    events = client.get(f"/api/corc/{corc['id']}/events").json()
    assert [event["action"] for event in events] == ["create", "issue"]


def test_second_bcu_retire_conflicts(client, sessions):
    bcu = client.post("/api/registry", json={"quantity_tco2e": 3}).json()
    bcu_id = UUID(bcu["id"])

    first, second = (registry_service(db) for db in sessions)
    first.get(bcu_id)
    second.get(bcu_id)

    first.retire(bcu_id, schemas.BCURetireRequest(retirement_beneficiary="First"))
    with pytest.raises(StateConflictError):
        second.retire(bcu_id, schemas.BCURetireRequest(retirement_beneficiary="Second"))

    stored = client.get(f"/api/registry/{bcu['id']}").json()
    assert stored["retirement_beneficiary"] == "First"
    assert stored["version"] == bcu["version"] + 1


def test_second_period_save_conflicts(client, sessions):
    _, _, period, _ = calculated_period(client)
    period_id = UUID(period["id"])
    before = client.get(f"/api/monitoring-periods/{period['id']}").json()

    first, second = (build_monitoring_service(db) for db in sessions)
    first.periods.require(period_id)
    second.periods.require(period_id)

    first.calculate(period_id, mean_soil_temp_override=30.0)
    with pytest.raises(StateConflictError):
        second.calculate(period_id, mean_soil_temp_override=7.0)

    stored = client.get(f"/api/monitoring-periods/{period['id']}").json()
    assert stored["soil_temp_used_c"] == 30
    assert stored["version"] == before["version"] + 1


def test_period_creation_locks_the_facility_row(db_session):
    query = FacilityRepository(db_session).locked(UUID(int=1))
    sql = str(query.statement.compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in sql


def test_overlap_is_checked_after_locking(client):
    fac = create_facility(client)
    create_period(client, fac["id"], start="2024-01-01", end="2024-06-30")
    resp = client.post(
        "/api/monitoring-periods",
        json={"facility_id": fac["id"], "period_start": "2024-06-30", "period_end": "2024-09-30"},
    )
    assert resp.status_code == 422
    missing = client.post(
        "/api/monitoring-periods",
        json={"facility_id": str(UUID(int=7)), "period_start": "2024-01-01", "period_end": "2024-02-01"},
    )
    assert missing.status_code == 404
