import random
from datetime import date

from locust import HttpUser, task, between


class RegistryUser(HttpUser):
    wait_time = between(1, 3)

    def on_start(self):
        facility = self.client.post(
            "/api/facilities",
            json={"name": "Load Kiln", "registration_number": f"LOAD{random.randint(0, 9999):04d}"},
        ).json()
        year = random.randint(2000, 2999)
        batch = self.client.post(
            "/api/production/batches",
            json={
                "facility_id": facility["id"],
                "production_date": date(year, 3, 1).isoformat(),
                "status": "complete",
                "output_biochar_tonnes": 50,
            },
        ).json()
        self.client.post(
            f"/api/production/batches/{batch['id']}/lab-tests",
            json={"test_date": date(year, 3, 5).isoformat(), "total_carbon_percent": 78, "hydrogen_percent": 2},
        )
        period = self.client.post(
            "/api/monitoring-periods",
            json={
                "facility_id": facility["id"],
                "period_start": date(year, 1, 1).isoformat(),
                "period_end": date(year, 12, 31).isoformat(),
            },
        ).json()
        self.period_id = period["id"]

    @task(3)
    def calculate_preview(self):
        self.client.post(
            f"/api/monitoring-periods/{self.period_id}/calculate",
            json={"save_result": False, "return_full_breakdown": True},
            name="/api/monitoring-periods/[id]/calculate",
        )

    @task(1)
    def list_corcs(self):
        self.client.get("/api/corc")
