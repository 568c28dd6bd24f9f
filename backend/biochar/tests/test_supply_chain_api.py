import pytest

from .conftest import add_lab_test, create_batch, create_facility, create_period


def test_period_aggregates_full_supply_chain(client):
    fac = create_facility(client)
    delivery = client.post(
        "/api/feedstock/deliveries",
        json={
            "facility_id": fac["id"],
            "delivery_date": "2024-02-20",
            "feedstock_type": "wood chips",
            "weight_tonnes": 50,
            "delivery_distance_km": 100,
        },
    ).json()
    batch = create_batch(client, fac["id"])
    add_lab_test(client, batch["id"])

    resp = client.post(
        f"/api/production/batches/{batch['id']}/allocations",
        json={"feedstock_delivery_id": delivery["id"], "weight_used_tonnes": 50},
    )
    assert resp.status_code == 200, resp.text
    resp = client.post(
        f"/api/production/batches/{batch['id']}/energy",
        json={"energy_type": "electricity", "quantity": 2000, "unit": "kWh"},
    )
    assert resp.status_code == 200, resp.text
    client.post(
        f"/api/production/batches/{batch['id']}/energy",
        json={"scope": "other", "energy_type": "diesel", "quantity": 9999},
    )

    resp = client.post(
        "/api/sequestration/events",
        json={
            "final_delivery_date": "2024-05-01",
            "mean_annual_soil_temp_c": 20,
            "batches": [{"production_batch_id": batch["id"], "quantity_tonnes": 1000}],
        },
    )
    assert resp.status_code == 200, resp.text
    client.post(
        "/api/leakage-assessments",
        json={"facility_id": fac["id"], "assessment_date": "2023-01-01", "afolu_kg": 99999},
    )
    client.post(
        "/api/leakage-assessments",
        json={"facility_id": fac["id"], "assessment_date": "2024-01-01", "afolu_kg": 4000},
    )

    period = create_period(client, fac["id"])
    resp = client.post(f"/api/monitoring-periods/{period['id']}/calculate", json={"save_result": False})
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert body["sequestration_event_count"] == 1
    assert body["result"]["soil_temp_used_c"] == 20
    # haulage 500 kg, electricity 1000 kg, end-use transport 10000 kg
    assert body["result"]["e_project_tco2e"] == pytest.approx(11.5)
    assert body["result"]["e_leakage_tco2e"] == pytest.approx(4.0)
    assert not any("leakage" in warning.lower() for warning in body["validation"]["warnings"])


def test_batch_for_unknown_facility_is_not_found(client):
    resp = client.post(
        "/api/production/batches",
        json={
            "facility_id": "00000000-0000-0000-0000-000000000000",
            "production_date": "2024-01-01",
            "output_biochar_tonnes": 1,
        },
    )
    assert resp.status_code == 404


def test_iluc_estimate(client):
    resp = client.post(
        "/api/leakage-assessments/iluc-estimate",
        json={
            "quantity_dry_tonnes": 10,
            "lower_heating_value_gj": 18,
            "iluc_factor_kg_per_mj": 0.01,
            "attribution_factor": 0.5,
            "puro_category": "a",
        },
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["iluc_kg"] == pytest.approx(10 * 18 * 1000 * 0.01 * 0.5)
    assert body["assessment_required"] is True

    resp = client.post(
        "/api/leakage-assessments/iluc-estimate",
        json={"quantity_dry_tonnes": 1, "lower_heating_value_gj": 1, "iluc_factor_kg_per_mj": 0},
    )
    assert resp.json()["assessment_required"] is None


def test_metrics_endpoint(client):
    client.get("/api/facilities")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "request_count" in resp.text


@pytest.mark.parametrize("field", ["status", "production_date", "output_biochar_tonnes"])
def test_batch_update_cannot_clear_required_fields(client, field):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"])

    resp = client.put(f"/api/production/batches/{batch['id']}", json={field: None})
    assert resp.status_code == 422

    stored = client.get(f"/api/production/batches/{batch['id']}").json()
    assert stored["status"] == "complete"
    assert stored["output_biochar_tonnes"] == pytest.approx(1000.0)


def test_batch_update_allows_clearing_optional_fields(client):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"], stack_ch4_kg=5)

    resp = client.put(f"/api/production/batches/{batch['id']}", json={"stack_ch4_kg": None, "status": "in_progress"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["stack_ch4_kg"] is None
    assert resp.json()["status"] == "in_progress"


def test_leakage_risk_screen(client):
    resp = client.post(
        "/api/leakage-assessments/risk-screen",
        json={"puro_category": "b", "has_existing_use": True},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["risk_level"] == "medium"
    assert body["requires_iluc"] is True
    assert body["mitigation_required"] is True
    assert len(body["notes"]) == 2

    assert client.post("/api/leakage-assessments/risk-screen", json={"puro_category": ""}).status_code == 422


def test_lab_moisture_converts_output_to_dry_mass(client):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"], output_biochar_tonnes=100)
    resp = client.post(
        f"/api/production/batches/{batch['id']}/lab-tests",
        json={"test_date": "2024-03-05", "total_carbon_percent": 80, "hydrogen_percent": 2, "moisture_percent": 20},
    )
    assert resp.status_code == 200, resp.text
    period = create_period(client, fac["id"])

    body = client.post(f"/api/monitoring-periods/{period['id']}/calculate", json={"save_result": False}).json()
    assert body["total_dry_mass_tonnes"] == pytest.approx(80.0)
    assert body["result"]["c_stored_tco2e"] == pytest.approx(80 * 0.8 * 44 / 12)


def test_recorded_dry_mass_wins_over_moisture(client):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"], output_biochar_tonnes=100, dry_mass_tonnes=90)
    client.post(
        f"/api/production/batches/{batch['id']}/lab-tests",
        json={"test_date": "2024-03-05", "total_carbon_percent": 80, "hydrogen_percent": 2, "moisture_percent": 20},
    )
    period = create_period(client, fac["id"])

    body = client.post(f"/api/monitoring-periods/{period['id']}/calculate", json={"save_result": False}).json()
    assert body["total_dry_mass_tonnes"] == pytest.approx(90.0)
