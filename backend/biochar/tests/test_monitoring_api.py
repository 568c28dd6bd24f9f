import pytest

from .conftest import add_lab_test, calculated_period, create_batch, create_facility, create_period


def calculate(client, period_id, **options):
    return client.post(f"/api/monitoring-periods/{period_id}/calculate", json=options)


def test_reference_period_is_calculated_and_saved(client):
    _, _, period, calc = calculated_period(client)

    assert calc["saved"] is True
    assert calc["production_batch_count"] == 1
    assert calc["total_dry_mass_tonnes"] == pytest.approx(1000.0)
    assert calc["result"]["h_corg_ratio"] == pytest.approx(0.3)
    assert calc["result"]["net_corcs_tco2e"] == pytest.approx(2327.072, rel=1e-6)
    assert calc["result"]["calculation_version"] == "puro-biochar-2025-v1.0.0"
    assert calc["breakdown"] is None

    stored = client.get(f"/api/monitoring-periods/{period['id']}").json()
    assert stored["net_corcs_tco2e"] == pytest.approx(2327.072, rel=1e-6)
    assert stored["calculation_version"] == "puro-biochar-2025-v1.0.0"
    assert stored["version"] > period["version"]


def test_missing_leakage_is_reported_as_warning(client):
    _, _, _, calc = calculated_period(client)
    assert calc["validation"]["is_valid"] is True
    assert any("leakage" in warning.lower() for warning in calc["validation"]["warnings"])


def test_default_quality_is_reported_as_warning(client):
    fac = create_facility(client)
    create_batch(client, fac["id"])
    period = create_period(client, fac["id"])

    resp = calculate(client, period["id"], save_result=False)
    assert resp.status_code == 200, resp.text
    warnings = resp.json()["validation"]["warnings"]
    assert any("default organic carbon" in warning for warning in warnings)
    assert any("default hydrogen" in warning for warning in warnings)


def test_preview_does_not_persist(client):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"])
    add_lab_test(client, batch["id"])
    period = create_period(client, fac["id"])

    resp = calculate(client, period["id"], save_result=False, return_full_breakdown=True)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["saved"] is False
    assert body["breakdown"]["steps"]

    stored = client.get(f"/api/monitoring-periods/{period['id']}").json()
    assert stored["net_corcs_tco2e"] is None


def test_calculation_without_body_uses_defaults(client):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"])
    add_lab_test(client, batch["id"])
    period = create_period(client, fac["id"])

    resp = client.post(f"/api/monitoring-periods/{period['id']}/calculate")
    assert resp.status_code == 200, resp.text
    assert resp.json()["saved"] is True
    assert resp.json()["result"]["soil_temp_used_c"] == 15


def test_zero_dry_mass_fails_without_saving(client):
    fac = create_facility(client)
    create_batch(client, fac["id"], output_biochar_tonnes=0)
    period = create_period(client, fac["id"])

    resp = calculate(client, period["id"])
    assert resp.status_code == 400
    assert "dry mass" in resp.json()["detail"]
    assert client.get(f"/api/monitoring-periods/{period['id']}").json()["net_corcs_tco2e"] is None


def test_period_without_batches_fails(client):
    fac = create_facility(client)
    create_batch(client, fac["id"], production_date="2023-06-01")
    create_batch(client, fac["id"], status="in_progress")
    period = create_period(client, fac["id"])

    resp = calculate(client, period["id"])
    assert resp.status_code == 400
    assert "No completed production batches" in resp.json()["detail"]


def test_quality_failure_is_rejected(client):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"])
    add_lab_test(client, batch["id"], total=50.0, hydrogen=4.0)
    period = create_period(client, fac["id"])

    resp = calculate(client, period["id"])
    assert resp.status_code == 422
    validation = resp.json()["validation"]
    assert validation["is_valid"] is False
    assert any("0.7" in error for error in validation["errors"])
    assert client.get(f"/api/monitoring-periods/{period['id']}").json()["net_corcs_tco2e"] is None


def test_overlapping_period_is_rejected(client):
    fac = create_facility(client)
    create_period(client, fac["id"])

    resp = client.post(
        "/api/monitoring-periods",
        json={"facility_id": fac["id"], "period_start": "2024-12-31", "period_end": "2025-06-30"},
    )
    assert resp.status_code == 422
    assert "overlaps" in resp.json()["validation"]["errors"][0]

    other = create_facility(client)
    create_period(client, other["id"])


@pytest.mark.parametrize(
    "start,end",
    [("2024-06-01", "2024-06-01"), ("2024-06-01", "2024-01-01"), ("2024-01-01", "2025-06-01")],
)
def test_invalid_period_bounds(client, start, end):
    fac = create_facility(client)
    resp = client.post(
        "/api/monitoring-periods",
        json={"facility_id": fac["id"], "period_start": start, "period_end": end},
    )
    assert resp.status_code == 422


def test_closing_requires_saved_calculation(client):
    fac = create_facility(client)
    period = create_period(client, fac["id"])

    resp = client.put(f"/api/monitoring-periods/{period['id']}", json={"status": "closed"})
    assert resp.status_code == 400

    _, _, calculated, _ = calculated_period(client)
    resp = client.put(f"/api/monitoring-periods/{calculated['id']}", json={"status": "verified"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "verified"


def test_delete_period_blocked_by_issuance(client):
    fac = create_facility(client)
    empty = create_period(client, fac["id"])
    assert client.delete(f"/api/monitoring-periods/{empty['id']}").status_code == 204
    assert client.get(f"/api/monitoring-periods/{empty['id']}").status_code == 404

    _, _, period, _ = calculated_period(client)
    assert client.post("/api/corc", json={"monitoring_period_id": period["id"]}).status_code == 200
    resp = client.delete(f"/api/monitoring-periods/{period['id']}")
    assert resp.status_code == 409


def test_allocation_override_scales_project_emissions(client):
    fac = create_facility(client, co_product_allocation_factor=1.0)
    batch = create_batch(client, fac["id"], stack_ch4_kg=1000)
    add_lab_test(client, batch["id"])
    period = create_period(client, fac["id"])

    full = calculate(client, period["id"], save_result=False).json()
    half = calculate(client, period["id"], save_result=False, co_product_allocation_factor_override=0.5).json()
    assert full["result"]["e_project_tco2e"] == pytest.approx(28.0)
    assert half["result"]["e_project_tco2e"] == pytest.approx(14.0)


def test_period_status_cannot_be_cleared(client):
    fac = create_facility(client)
    period = create_period(client, fac["id"])
    resp = client.put(f"/api/monitoring-periods/{period['id']}", json={"status": None})
    assert resp.status_code == 422
    assert client.get(f"/api/monitoring-periods/{period['id']}").json()["status"] == "active"


def test_allocation_from_energy_content(client):
    fac = create_facility(client)
    batch = create_batch(client, fac["id"], stack_ch4_kg=1000)
    add_lab_test(client, batch["id"])
    period = create_period(client, fac["id"])

    resp = calculate(client, period["id"], save_result=False, biochar_energy_mj=250, co_product_energy_mj=750)
    assert resp.status_code == 200, resp.text
    assert resp.json()["result"]["e_project_tco2e"] == pytest.approx(7.0)


@pytest.mark.parametrize(
    "options",
    [
        {"biochar_energy_mj": 250},
        {"biochar_energy_mj": 250, "co_product_energy_mj": 750, "co_product_allocation_factor_override": 0.5},
    ],
)
def test_allocation_inputs_must_be_consistent(client, options):
    fac = create_facility(client)
    period = create_period(client, fac["id"])
    assert calculate(client, period["id"], **options).status_code == 422
