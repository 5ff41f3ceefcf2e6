"""
Unit tests for the JSON API routes over an in-memory spreadsheet.
"""

import pytest

from invoicing.models import StorageState

ADDRESS = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "USA"}

INVOICE_BODY = {
    "issue_date": "2024-01-10",
    "due_date": "2024-02-09",
    "tax_rate": 10,
    "line_items": [
        {"description": "Consulting", "quantity": 10, "rate": 100},
        {"description": "Hosting", "quantity": 1, "rate": 50},
    ],
}


@pytest.fixture
def client_id(api_client, auth_headers):
    response = api_client.post(
        "/api/clients",
        json={"name": "Acme Corp", "email": "billing@acme.example", "address": ADDRESS},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


@pytest.fixture
def invoice(api_client, auth_headers, client_id):
    response = api_client.post("/api/invoices", json={**INVOICE_BODY, "client_id": client_id}, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["data"]


class TestClients:
    def test_list_paginates(self, api_client, auth_headers, client_id):
        response = api_client.get("/api/clients?page=1&limit=10", headers=auth_headers)

        body = response.json()
        assert body["success"] is True
        assert [c["id"] for c in body["data"]] == [client_id]
        assert body["meta"] == {"page": 1, "limit": 10, "total": 1, "total_pages": 1}

    def test_update(self, api_client, auth_headers, client_id):
        response = api_client.put(f"/api/clients/{client_id}", json={"phone": "+1 555 0199"}, headers=auth_headers)

        assert response.json()["data"]["phone"] == "+1 555 0199"

    def test_update_rejects_null_name(self, api_client, auth_headers, client_id):
        response = api_client.put(f"/api/clients/{client_id}", json={"name": None}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert api_client.get(f"/api/clients/{client_id}", headers=auth_headers).json()["data"]["name"] == "Acme Corp"

    def test_delete_cascades(self, api_client, auth_headers, client_id, invoice):
        response = api_client.delete(f"/api/clients/{client_id}", headers=auth_headers)

        assert response.json()["data"]["deleted_invoices"] == [invoice["id"]]
        assert api_client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).status_code == 404


class TestInvoices:
    def test_create_returns_computed_totals(self, invoice):
        assert invoice["invoice_number"] == "INV-0001"
        assert invoice["total"] == 1155.0
        assert invoice["balance"] == 1155.0

    def test_create_archives_pdf_in_background(self, api_client, auth_headers, invoice, drive):
        response = api_client.get(f"/api/invoices/storage-status?ids={invoice['id']}", headers=auth_headers)

        statuses = response.json()["data"]
        assert statuses[0]["status"] == StorageState.STORED.value
        assert statuses[0]["drive_file_id"] == "file-1"
        drive.upload_pdf.assert_called_once()

    def test_drive_failure_does_not_fail_creation(self, api_client, auth_headers, client_id, drive):
        drive.upload_pdf.side_effect = RuntimeError("drive unavailable")

        response = api_client.post("/api/invoices", json={**INVOICE_BODY, "client_id": client_id}, headers=auth_headers)

        assert response.status_code == 201
        invoice_id = response.json()["data"]["id"]
        statuses = api_client.get("/api/invoices/storage-status", headers=auth_headers).json()["data"]
        assert [(s["invoice_id"], s["status"]) for s in statuses] == [(invoice_id, "failed")]

    def test_validation_error(self, api_client, auth_headers, client_id):
        body = {**INVOICE_BODY, "client_id": client_id, "due_date": "2024-01-01"}

        response = api_client.post("/api/invoices", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_update_rejects_null_issue_date(self, api_client, auth_headers, invoice):
        response = api_client.put(
            f"/api/invoices/{invoice['id']}", json={"issue_date": None, "notes": "x"}, headers=auth_headers
        )

        assert response.status_code == 400
        stored = api_client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["data"]
        assert stored["issue_date"] == "2024-01-10"

    def test_status_and_send(self, api_client, auth_headers, invoice):
        sent = api_client.post(f"/api/invoices/{invoice['id']}/send", headers=auth_headers).json()["data"]
        assert sent["status"] == "sent"

        cancelled = api_client.patch(
            f"/api/invoices/{invoice['id']}/status", json={"status": "cancelled"}, headers=auth_headers
        )
        assert cancelled.json()["data"]["status"] == "cancelled"

        response = api_client.post(f"/api/invoices/{invoice['id']}/send", headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATE"

    def test_filter_by_status(self, api_client, auth_headers, invoice):
        drafts = api_client.get("/api/invoices?status=draft", headers=auth_headers).json()
        sent = api_client.get("/api/invoices?status=sent", headers=auth_headers).json()

        assert drafts["meta"]["total"] == 1
        assert sent["data"] == []

    def test_unknown_sort_key(self, api_client, auth_headers, invoice):
        response = api_client.get("/api/invoices?sort_by=colour", headers=auth_headers)

        assert response.status_code == 400

    def test_pdf_download(self, api_client, auth_headers, invoice):
        response = api_client.get(f"/api/invoices/{invoice['id']}/pdf", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="invoice-INV-0001.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_html_preview(self, api_client, auth_headers, invoice):
        response = api_client.get(f"/api/invoices/{invoice['id']}/preview", headers=auth_headers)

        assert response.status_code == 200
        assert "INV-0001" in response.text
        assert "$1,155.00" in response.text


class TestPayments:
    def test_payment_marks_invoice_paid(self, api_client, auth_headers, invoice):
        response = api_client.post(
            "/api/payments",
            json={
                "invoice_id": invoice["id"],
                "amount": 1155,
                "payment_date": "2024-01-20",
                "payment_method": "bank_transfer",
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        updated = api_client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers).json()["data"]
        assert updated["status"] == "paid"
        assert updated["balance"] == 0.0

        payment_id = response.json()["data"]["id"]
        deleted = api_client.delete(f"/api/payments/{payment_id}", headers=auth_headers).json()["data"]
        assert deleted["invoice"]["status"] == "sent"
        assert deleted["invoice"]["balance"] == 1155.0


class TestTemplates:
    def test_apply_returns_invoice_form(self, api_client, auth_headers, client_id):
        created = api_client.post(
            "/api/templates",
            json={"name": "Retainer", "line_items": [{"description": "Retainer", "quantity": 1, "rate": 2000}]},
            headers=auth_headers,
        ).json()["data"]

        response = api_client.post(
            f"/api/templates/{created['id']}/apply",
            json={"client_id": client_id, "issue_date": "2024-05-01"},
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert data["due_date"] == "2024-05-31"
        assert data["template_id"] == created["id"]
        assert api_client.get("/api/invoices", headers=auth_headers).json()["data"] == []


class TestProjects:
    def test_project_task_and_time(self, api_client, auth_headers, client_id):
        project = api_client.post(
            "/api/projects",
            json={"name": "Website", "client_id": client_id, "start_date": "2024-01-01", "hourly_rate": 90},
            headers=auth_headers,
        ).json()["data"]
        task = api_client.post(
            "/api/tasks", json={"project_id": project["id"], "title": "Design"}, headers=auth_headers
        ).json()["data"]
        entry = api_client.post(
            "/api/time-entries",
            json={
                "task_id": task["id"],
                "project_id": project["id"],
                "start_time": "2024-01-02T09:00:00Z",
                "end_time": "2024-01-02T11:00:00Z",
            },
            headers=auth_headers,
        )
        assert entry.json()["data"]["duration"] == 120

        stats = api_client.get(f"/api/projects/{project['id']}/stats", headers=auth_headers).json()["data"]
        assert stats["billable_amount"] == 180.0
        assert stats["budget_used_percent"] is None

    def test_update_rejects_end_before_start(self, api_client, auth_headers, client_id):
        project = api_client.post(
            "/api/projects",
            json={"name": "Website", "client_id": client_id, "start_date": "2024-03-01"},
            headers=auth_headers,
        ).json()["data"]

        response = api_client.put(
            f"/api/projects/{project['id']}", json={"end_date": "2024-01-01"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestRecurring:
    def test_generate_due(self, api_client, auth_headers, client_id):
        body = {
            **INVOICE_BODY,
            "client_id": client_id,
            "is_recurring": True,
            "recurring_schedule": {"frequency": "monthly", "start_date": "2024-01-10"},
        }
        parent = api_client.post("/api/invoices", json=body, headers=auth_headers).json()["data"]

        response = api_client.post("/api/invoices/recurring?today=2024-01-10", headers=auth_headers)

        assert response.json()["meta"]["summary"] == {"processed": 1, "generated": 1, "failed": 0}
        recurring = api_client.get("/api/invoices/recurring", headers=auth_headers).json()["data"]
        assert recurring[0]["recurring_schedule"]["next_invoice_date"] == "2024-02-10"

        paused = api_client.patch(
            f"/api/invoices/recurring/{parent['id']}", json={"is_active": False}, headers=auth_headers
        )
        assert paused.json()["data"]["recurring_schedule"]["is_active"] is False


class TestStorage:
    def test_retry_upload(self, api_client, auth_headers, client_id, drive):
        drive.upload_pdf.side_effect = [RuntimeError("drive unavailable"), drive.upload_pdf.return_value]
        invoice = api_client.post(
            "/api/invoices", json={**INVOICE_BODY, "client_id": client_id}, headers=auth_headers
        ).json()["data"]

        response = api_client.post(f"/api/invoices/{invoice['id']}/retry-upload", headers=auth_headers)

        assert response.json()["data"]["status"] == "stored"
        assert response.json()["data"]["retry_count"] == 1

    def test_folders(self, api_client, auth_headers, drive):
        drive.list_folders.return_value = [{"id": "f1", "name": "Invoices"}]
        drive.create_folder.return_value = {"id": "f2", "name": "2024"}

        assert api_client.get("/api/google-drive/folders", headers=auth_headers).json()["data"][0]["id"] == "f1"
        created = api_client.post(
            "/api/google-drive/folders", json={"name": " 2024 ", "parent_id": "f1"}, headers=auth_headers
        )
        assert created.status_code == 201
        drive.create_folder.assert_called_once_with("2024", "f1")


class TestReportsAndDashboard:
    def test_dashboard(self, api_client, auth_headers, invoice):
        data = api_client.get("/api/dashboard", headers=auth_headers).json()["data"]

        assert data["total_invoices"] == 1
        assert data["outstanding_amount"] == 1155.0

    def test_dashboard_rejects_reversed_window(self, api_client, auth_headers):
        response = api_client.get("/api/dashboard?date_from=2024-02-01&date_to=2024-01-01", headers=auth_headers)

        assert response.status_code == 400

    def test_invalid_report_type(self, api_client, auth_headers):
        response = api_client.get("/api/reports?type=profit", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REPORT_TYPE"

    def test_client_report(self, api_client, auth_headers, invoice):
        rows = api_client.get("/api/reports?type=client", headers=auth_headers).json()["data"]

        assert rows[0]["client_name"] == "Acme Corp"
        assert rows[0]["outstanding_amount"] == 1155.0

    @pytest.mark.parametrize("fmt,media_type", [("csv", "text/csv"), ("pdf", "application/pdf")])
    def test_export(self, api_client, auth_headers, invoice, fmt, media_type):
        response = api_client.get(f"/api/reports/export?type=invoice-status&format={fmt}", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(media_type)
        assert "invoice-status-report-" in response.headers["content-disposition"]
        if fmt == "csv":
            assert response.text.splitlines()[1] == '"draft","1","1155.00"'


class TestBulk:
    def test_bulk_status_update(self, api_client, auth_headers, invoice):
        response = api_client.post(
            "/api/bulk",
            json={"operation": "update_status", "ids": [invoice["id"], "missing"], "status": "sent"},
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert data["summary"] == {"total": 2, "successful": 1, "failed": 1}

    def test_unknown_operation(self, api_client, auth_headers):
        response = api_client.post("/api/bulk", json={"operation": "archive", "ids": ["a"]}, headers=auth_headers)

        assert response.status_code == 400


class TestSettingsAndSheets:
    def test_company_settings(self, api_client, auth_headers):
        response = api_client.put(
            "/api/settings", json={"name": "Studio", "currency": "EUR"}, headers=auth_headers
        )

        assert response.json()["data"]["currency"] == "EUR"
        assert api_client.get("/api/settings", headers=auth_headers).json()["data"]["name"] == "Studio"

        logs = api_client.get("/api/activity-logs?entity_type=settings", headers=auth_headers).json()["data"]
        assert logs[0]["new_value"] == "currency, name"

    def test_app_settings(self, api_client, auth_headers):
        response = api_client.put("/api/app-settings", json={"drive_enabled": False}, headers=auth_headers)

        assert response.json()["data"]["drive_enabled"] is False

    def test_setup_is_idempotent(self, api_client, auth_headers):
        data = api_client.post("/api/sheets/setup", headers=auth_headers).json()["data"]

        assert data["created"] == []

    def test_sheets_health(self, api_client, auth_headers):
        data = api_client.get("/api/sheets/health", headers=auth_headers).json()["data"]

        assert data["status"] == "healthy"
        assert data["missing_tabs"] == []
        assert "retry_statistics" in data
