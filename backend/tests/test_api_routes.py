"""
test_api_routes.py — HTTP surface through FastAPI's TestClient.

Every test runs against a fresh SiteStore injected via dependency override.
"""

import pytest

PROJECT_BODY = {
    "name": "Kartal Konutları",
    "budget": 200,
    "start_date": "2024-01-10",
    "end_date": "2024-03-20",
}


@pytest.fixture
def scenario_client(client, site_store):
    """Scenario A (budget 100, half done) and Scenario B (budget 200, nothing done)."""
    from santiye.models.domain import Project, Task, TaskStatus
    site_store.add_project(Project(
        id="A", name="A", budget=100, start_date="2024-01-01", end_date="2024-03-31",
        tasks=[
            Task(title="a1", status=TaskStatus.DONE, weight=50, due_date="2024-01-31"),
            Task(title="a2", status=TaskStatus.TODO, weight=50, due_date="2024-03-31"),
        ],
    ))
    site_store.add_project(Project(
        id="B", name="B", budget=200, start_date="2024-02-01", end_date="2024-04-30",
        tasks=[Task(title="b1", status=TaskStatus.TODO, weight=100, due_date="2024-04-30")],
    ))
    return client


class TestProjectRoutes:

    def test_create_get_delete(self, client):
        created = client.post("/api/v1/projects", json=PROJECT_BODY)
        assert created.status_code == 201
        project_id = created.json()["id"]
        assert created.json()["status"] == "Planning"

        assert client.get(f"/api/v1/projects/{project_id}").json()["name"] == "Kartal Konutları"
        assert client.delete(f"/api/v1/projects/{project_id}").status_code == 204
        assert client.get(f"/api/v1/projects/{project_id}").status_code == 404

    def test_malformed_date_is_rejected(self, client):
        body = {**PROJECT_BODY, "start_date": "2024-13-45"}
        assert client.post("/api/v1/projects", json=body).status_code == 422

    def test_unknown_status_is_rejected(self, client):
        body = {**PROJECT_BODY, "status": "Cancelled"}
        assert client.post("/api/v1/projects", json=body).status_code == 422

    def test_task_status_update_records_history(self, client):
        project_id = client.post("/api/v1/projects", json=PROJECT_BODY).json()["id"]
        task = client.post(
            f"/api/v1/projects/{project_id}/tasks",
            json={"title": "Temel", "due_date": "2024-02-01", "weight": 40},
        ).json()
        resp = client.patch(
            f"/api/v1/projects/{project_id}/tasks/{task['id']}",
            json={"status": "Done", "updated_by": "Şef"},
        )
        assert resp.status_code == 200
        assert resp.json()["history"][0]["user"] == "Şef"

    def test_unknown_task_is_404(self, client):
        project_id = client.post("/api/v1/projects", json=PROJECT_BODY).json()["id"]
        resp = client.patch(f"/api/v1/projects/{project_id}/tasks/nope", json={"status": "Done"})
        assert resp.status_code == 404


class TestScheduleRoutes:

    def test_earned_value_scenario(self, scenario_client):
        body = scenario_client.get("/api/v1/schedule/earned-value").json()
        assert body["total_budget"] == 300
        assert body["total_earned"] == pytest.approx(50)
        assert body["global_progress"] == pytest.approx(50 / 3)
        assert len(body["projects"]) == 2

    def test_single_view_restricts_projects(self, scenario_client):
        body = scenario_client.get("/api/v1/schedule/earned-value", params={"view": "single", "project_id": "A"}).json()
        assert body["total_budget"] == 100
        assert body["global_progress"] == pytest.approx(50)

    def test_unknown_view_is_rejected(self, scenario_client):
        assert scenario_client.get("/api/v1/schedule/timeline", params={"view": "gantt"}).status_code == 422

    def test_timeline_covers_padded_months(self, scenario_client):
        body = scenario_client.get("/api/v1/schedule/timeline").json()
        timeline = body["timeline"]
        assert timeline["start"].startswith("2023-12-01")
        assert timeline["end"].startswith("2024-05-31")
        assert len(timeline["months"]) == 6
        assert timeline["duration_ms"] > 0
        for row in body["rows"]:
            assert 0 <= row["position_pct"] <= 100
            assert row["width_pct"] >= 0.5

    def test_position_endpoint(self, scenario_client):
        body = scenario_client.get(
            "/api/v1/schedule/position", params={"start": "2023-06-01", "end": "2023-06-01"}
        ).json()
        assert body["position_pct"] == 0
        assert body["width_pct"] == 0.5
        assert body["duration_days"] == 0

    def test_template_download(self, client):
        resp = client.get("/api/v1/schedule/template.csv")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "is_programi_sablon.csv" in resp.headers["content-disposition"]

    def test_csv_import(self, scenario_client):
        csv_body = (
            "İş Kalemi Adı,Başlangıç,Bitiş,Pursantaj (%)\n"
            "Duvar,2024-02-01,2024-02-10,10\n"
            "Kötü,2024-02-30,2024-03-01,5\n"
        )
        resp = scenario_client.post(
            "/api/v1/schedule/A/import",
            content=csv_body.encode("utf-8"),
            headers={"Content-Type": "text/csv"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["added_count"] == 1
        assert body["skipped_rows"][0]["line"] == 3
        project = scenario_client.get("/api/v1/projects/A").json()
        assert len(project["tasks"]) == 3

    def test_csv_import_rejects_non_utf8_body(self, scenario_client):
        body = "İş,Başlangıç,Bitiş\nDuvar,2024-02-01,2024-02-10\n".encode("cp1254")
        resp = scenario_client.post("/api/v1/schedule/A/import", content=body, headers={"Content-Type": "text/csv"})
        assert resp.status_code == 400
        assert len(scenario_client.get("/api/v1/projects/A").json()["tasks"]) == 2

    def test_csv_import_unknown_project(self, client):
        resp = client.post("/api/v1/schedule/nope/import", content=b"a,b,c\n")
        assert resp.status_code == 404


class TestFinanceRoutes:

    @pytest.fixture
    def contracted_client(self, client, site_store, residence_project, subcontractor, subcontract):
        site_store.add_project(residence_project)
        site_store.add_subcontractor(subcontractor)
        site_store.add_contract(subcontract)
        return client

    def test_subcontractor_payment_is_computed(self, contracted_client):
        resp = contracted_client.post("/api/v1/finance/payments", json={
            "type": "Taseron", "month": "Mayıs 2024",
            "project_id": "P1", "subcontractor_id": "S1",
            "quantities": {"I1": 3, "I2": 0},
        })
        assert resp.status_code == 201
        payment = resp.json()
        assert payment["amount"] == 300
        assert [i["item_id"] for i in payment["items"]] == ["I1"]

        statement = contracted_client.get(f"/api/v1/finance/payments/{payment['id']}/statement").json()
        assert statement["title"] == "TAŞERON HAKEDİŞ RAPORU"
        assert statement["rows"][0]["previous_quantity"] == 0

    def test_zero_quantity_payment_is_rejected(self, contracted_client):
        resp = contracted_client.post("/api/v1/finance/payments", json={
            "type": "Taseron", "month": "Mayıs 2024",
            "project_id": "P1", "subcontractor_id": "S1", "quantities": {},
        })
        assert resp.status_code == 400

    def test_payment_without_contract_is_404(self, contracted_client):
        resp = contracted_client.post("/api/v1/finance/payments", json={
            "type": "Taseron", "month": "Mayıs 2024",
            "project_id": "P1", "subcontractor_id": "S9", "quantities": {"I1": 1},
        })
        assert resp.status_code == 404

    def test_employer_payment_and_listing(self, contracted_client):
        resp = contracted_client.post("/api/v1/finance/payments", json={
            "type": "Idare", "month": "Mayıs 2024", "project_id": "P1", "amount": 1500,
        })
        assert resp.status_code == 201
        listed = contracted_client.get("/api/v1/finance/payments", params={"type": "Idare"}).json()
        assert [p["amount"] for p in listed] == [1500]
        budget = contracted_client.get("/api/v1/finance/budget").json()
        assert budget["total_paid"] == 1500

    def test_negative_quantity_payment_is_rejected(self, contracted_client):
        resp = contracted_client.post("/api/v1/finance/payments", json={
            "type": "Taseron", "month": "Mayıs 2024",
            "project_id": "P1", "subcontractor_id": "S1",
            "quantities": {"I1": 10, "I2": -5},
        })
        assert resp.status_code == 422
        assert contracted_client.get("/api/v1/finance/payments").json() == []

    def test_negative_quantity_preview_is_rejected(self, contracted_client):
        resp = contracted_client.post("/api/v1/finance/hakedis/preview", json={
            "project_id": "P1", "subcontractor_id": "S1", "quantities": {"I1": -10},
        })
        assert resp.status_code == 422

    def test_preview_totals_current_quantities(self, contracted_client):
        resp = contracted_client.post("/api/v1/finance/hakedis/preview", json={
            "project_id": "P1", "subcontractor_id": "S1", "quantities": {"I1": 10, "I2": 2},
        })
        assert resp.status_code == 200
        assert resp.json()["total_amount"] == 1100

    def test_subcontractor_payment_amount_is_not_editable(self, contracted_client):
        payment = contracted_client.post("/api/v1/finance/payments", json={
            "type": "Taseron", "month": "Mayıs 2024",
            "project_id": "P1", "subcontractor_id": "S1", "quantities": {"I1": 3},
        }).json()
        resp = contracted_client.patch(f"/api/v1/finance/payments/{payment['id']}", json={"amount": 999})
        assert resp.status_code == 400
        assert contracted_client.patch(
            f"/api/v1/finance/payments/{payment['id']}", json={"month": "Haziran 2024"}
        ).json()["amount"] == 300

    def test_employer_payment_amount_is_editable(self, contracted_client):
        payment = contracted_client.post("/api/v1/finance/payments", json={
            "type": "Idare", "month": "Mayıs 2024", "amount": 1500,
        }).json()
        resp = contracted_client.patch(f"/api/v1/finance/payments/{payment['id']}", json={"amount": 1750})
        assert resp.status_code == 200
        assert resp.json()["amount"] == 1750

    def test_price_difference(self, client):
        ok = client.post("/api/v1/finance/price-difference",
                         json={"amount": 50000, "base_index": 100, "current_index": 115})
        assert ok.json()["price_difference"] == pytest.approx(7500)
        bad = client.post("/api/v1/finance/price-difference",
                          json={"amount": 50000, "base_index": 0, "current_index": 115})
        assert bad.status_code == 400


class TestServiceEndpoints:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "active"
        assert body["projects_loaded"] == 0

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert "uptime_seconds" in body
        assert "calculations_processed" in body

    def test_request_id_header(self, client):
        resp = client.get("/api/v1/projects")
        assert "X-Request-ID" in resp.headers
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_dashboard_summary(self, scenario_client):
        body = scenario_client.get("/api/v1/dashboard/summary").json()
        assert body["total_projects"] == 2
        assert body["total_budget"] == 300
        assert body["tasks_by_status"]["Done"] == 1
        assert body["earned_progress_pct"] == pytest.approx(50 / 3)

    def test_caller_request_id_is_echoed(self, client):
        resp = client.get("/api/v1/projects", headers={"X-Request-ID": "abc-123"})
        assert resp.headers["X-Request-ID"] == "abc-123"


def test_json_log_line_carries_extras():
    import json
    import logging

    from santiye.services.logging_config import JSONFormatter

    record = logging.LogRecord("santiye-store", logging.INFO, __file__, 10, "Proje eklendi", None, None)
    record.project_id = "P1"
    line = json.loads(JSONFormatter().format(record))
    assert line["msg"] == "Proje eklendi"
    assert line["project_id"] == "P1"
    assert line["level"] == "INFO"


def test_project_id_is_read_from_path():
    from santiye.services.middleware import _project_id_from_path

    assert _project_id_from_path("/api/v1/projects/P1/tasks/T1") == "P1"
    assert _project_id_from_path("/api/v1/schedule/P2/import") == "P2"
    assert _project_id_from_path("/api/v1/schedule/timeline") is None
    assert _project_id_from_path("/api/v1/projects") is None


class TestSubcontractorRoutes:

    SUB_BODY = {"name": "Demir Elektrik", "tax_id": "9876543210", "trade": "Elektrik", "rating": 9.2}

    def test_create_and_stats(self, client):
        created = client.post("/api/v1/subcontractors", json=self.SUB_BODY)
        assert created.status_code == 201
        client.post("/api/v1/subcontractors", json={**self.SUB_BODY, "name": "Kaya Sıhhi", "rating": 7.0})

        stats = client.get("/api/v1/subcontractors/stats").json()
        assert stats["total_subcontractors"] == 2
        assert stats["avg_rating"] == 8.1
        assert stats["sub_of_month"]["id"] == created.json()["id"]

    def test_rating_outside_scale_is_rejected(self, client):
        assert client.post("/api/v1/subcontractors", json={**self.SUB_BODY, "rating": 11}).status_code == 422

    def test_contract_with_unknown_subcontractor_is_404(self, client, site_store, residence_project):
        site_store.add_project(residence_project)
        resp = client.post("/api/v1/finance/contracts", json={
            "subcontractor_id": "ghost", "project_id": "P1",
            "start_date": "2024-03-01", "end_date": "2024-06-30",
        })
        assert resp.status_code == 404

    def test_delete_refused_while_contracted(self, client, site_store, residence_project, subcontractor, subcontract):
        site_store.add_project(residence_project)
        site_store.add_subcontractor(subcontractor)
        site_store.add_contract(subcontract)
        assert client.delete("/api/v1/subcontractors/S1").status_code == 400

        client.delete("/api/v1/projects/P1")
        assert client.delete("/api/v1/subcontractors/S1").status_code == 204
        assert client.get("/api/v1/subcontractors/S1").status_code == 404

    def test_unit_prices(self, client, site_store, residence_project, subcontractor, subcontract):
        site_store.add_project(residence_project)
        site_store.add_subcontractor(subcontractor)
        site_store.add_contract(subcontract)
        body = client.get("/api/v1/subcontractors/unit-prices").json()
        assert [i["name"] for i in body["items"]] == ["Beton dökümü", "Kalıp işçiliği"]
        assert body["items"][0]["history"][0]["subcontractor"] == "Yılmaz Yapı"


class TestPunchRoutes:

    def test_lifecycle_and_stats(self, client):
        created = client.post("/api/v1/punch-items", json={
            "title": "Çatlak sıva", "location": "A Blok 3. kat", "severity": "Yüksek",
        })
        assert created.status_code == 201
        item_id = created.json()["id"]
        assert created.json()["status"] == "Açık"

        assert client.get("/api/v1/punch-items/stats").json()["critical"] == 1
        assert client.post(f"/api/v1/punch-items/{item_id}/advance").json()["status"] == "Çözüldü"

        stats = client.get("/api/v1/punch-items/stats").json()
        assert stats["critical"] == 0
        assert stats["resolved"] == 1

        resolved = client.get("/api/v1/punch-items", params={"status": "Çözüldü"}).json()
        assert [i["id"] for i in resolved] == [item_id]
        assert client.delete(f"/api/v1/punch-items/{item_id}").status_code == 204
        assert client.post(f"/api/v1/punch-items/{item_id}/advance").status_code == 404

    def test_unknown_severity_is_rejected(self, client):
        resp = client.post("/api/v1/punch-items", json={"title": "x", "location": "y", "severity": "Acil"})
        assert resp.status_code == 422

    def test_item_for_unknown_project_is_404(self, client):
        resp = client.post("/api/v1/punch-items", json={"title": "x", "location": "y", "project_id": "nope"})
        assert resp.status_code == 404
