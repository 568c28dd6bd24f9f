import os
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from biochar.main import app
from biochar.database import Base, get_db

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_facility(client, **overrides):
    """
    purpose: register a facility with a unique registration number so serials never collide across tests
    outputs: facility JSON payload
    """

    payload = {
        "name": "Test Kiln",
        "registration_number": f"F{uuid.uuid4().hex[:5].upper()}",
        "baseline_type": "NEW_BUILT",
    }
    payload.update(overrides)
    resp = client.post("/api/facilities", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_batch(client, facility_id, production_date="2024-03-01", **overrides):
    payload = {
        "facility_id": facility_id,
        "production_date": production_date,
        "status": "complete",
        "output_biochar_tonnes": 1000,
    }
    payload.update(overrides)
    resp = client.post("/api/production/batches", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()


def add_lab_test(client, batch_id, test_date="2024-03-05", total=80.0, hydrogen=2.0, inorganic=0.0):
    resp = client.post(
        f"/api/production/batches/{batch_id}/lab-tests",
        json={
            "test_date": test_date,
            "total_carbon_percent": total,
            "inorganic_carbon_percent": inorganic,
            "hydrogen_percent": hydrogen,
        },
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_period(client, facility_id, start="2024-01-01", end="2024-12-31"):
    resp = client.post(
        "/api/monitoring-periods",
        json={"facility_id": facility_id, "period_start": start, "period_end": end},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def calculated_period(client, *, output_tonnes=1000, total=80.0, hydrogen=2.0, soil_temp=15.0, **facility):
    """
    purpose: build facility -> complete batch -> lab test -> period and save a calculation
    outputs: tuple(facility, batch, period, calculation response)
    """

    fac = create_facility(client, **facility)
    batch = create_batch(client, fac["id"], output_biochar_tonnes=output_tonnes)
    add_lab_test(client, batch["id"], total=total, hydrogen=hydrogen)
    period = create_period(client, fac["id"])
    resp = client.post(
        f"/api/monitoring-periods/{period['id']}/calculate",
        json={"save_result": True, "mean_soil_temp_override": soil_temp},
    )
    assert resp.status_code == 200, resp.text
    return fac, batch, period, resp.json()
