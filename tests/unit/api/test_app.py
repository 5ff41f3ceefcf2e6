"""
Unit tests for the application factory, authentication and error envelopes.
"""

import pytest
from fastapi.testclient import TestClient

import invoicing.api.dependencies as dependencies
from invoicing import __version__
from invoicing.api.app import create_app
from invoicing.services.client_service import ClientService
from invoicing.services.error_classifier import QuotaExceededError


def test_liveness(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": __version__, "service": "invoicing"}
    assert response.headers["X-Correlation-ID"]


def test_correlation_id_is_echoed(api_client):
    response = api_client.get("/health", headers={"X-Correlation-ID": "req-42"})

    assert response.headers["X-Correlation-ID"] == "req-42"


class TestAuthentication:
    def test_missing_token(self, api_client):
        response = api_client.get("/api/clients")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": {"code": "UNAUTHORIZED", "message": "Authentication required"},
        }

    def test_bearer_token(self, api_client, auth_headers):
        response = api_client.get("/api/clients", headers=auth_headers)

        assert response.status_code == 200
        assert api_client.tokens == ["ya29.test-access-token"]

    def test_cookie_token(self, api_client):
        api_client.cookies.set("access_token", "cookie-token")

        response = api_client.get("/api/clients")

        assert response.status_code == 200
        assert api_client.tokens == ["cookie-token"]

    def test_header_wins_over_cookie(self, api_client, auth_headers):
        api_client.cookies.set("access_token", "cookie-token")

        api_client.get("/api/clients", headers=auth_headers)

        assert api_client.tokens == ["ya29.test-access-token"]


class TestCronAuthentication:
    def test_rejects_wrong_secret(self, api_client):
        response = api_client.post("/api/cron/recurring-invoices", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert api_client.tokens == []

    def test_rejects_user_tokens(self, api_client, auth_headers):
        response = api_client.get("/api/cron/recurring-invoices", headers=auth_headers)

        assert response.status_code == 401

    def test_runs_as_service_account(self, api_client):
        response = api_client.post(
            "/api/cron/recurring-invoices", headers={"Authorization": "Bearer test-cron-secret"}
        )

        assert response.status_code == 200
        assert response.json()["meta"]["summary"] == {"processed": 0, "generated": 0, "failed": 0}
        assert api_client.tokens == ["test-api-token"]

    def test_unconfigured_secret(self, api_client, test_config):
        test_config.cron_secret_token = None

        response = api_client.post(
            "/api/cron/recurring-invoices", headers={"Authorization": "Bearer test-cron-secret"}
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "CONFIGURATION_ERROR"


class TestResolveCaller:
    def test_api_token_selects_service_account(self, test_config):
        info = dependencies.resolve_caller("test-api-token", test_config)

        assert info["client_email"] == test_config.google_client_email

    def test_other_tokens_are_user_credentials(self, test_config):
        credentials = dependencies.resolve_caller("ya29.user", test_config)

        assert credentials.token == "ya29.user"


class TestErrorEnvelopes:
    def test_not_found(self, api_client, auth_headers):
        response = api_client.get("/api/clients/missing", headers=auth_headers)

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert error["details"] == {"entity": "Client", "id": "missing"}

    def test_request_validation(self, api_client, auth_headers):
        response = api_client.post(
            "/api/clients", json={"name": "Acme", "email": "nope"}, headers=auth_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        fields = {d["field"] for d in body["error"]["details"]}
        assert {"email", "address"} <= fields

    def test_google_error(self, api_client, auth_headers, monkeypatch):
        def over_quota(self, *args, **kwargs):
            raise QuotaExceededError("Rate limit exceeded", operation="read Clients")

        monkeypatch.setattr(ClientService, "list_clients", over_quota)

        response = api_client.get("/api/clients", headers=auth_headers)

        assert response.status_code == 429
        assert response.json()["error"] == {
            "code": "RATE_LIMIT_EXCEEDED",
            "message": "Rate limit exceeded",
            "details": {"kind": "quota", "retryable": True},
        }

    def test_unexpected_error(self, request_context, auth_headers, monkeypatch):
        monkeypatch.setattr(dependencies, "build_context", lambda *args, **kwargs: request_context)

        def boom(self, *args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(ClientService, "list_clients", boom)
        client = TestClient(create_app(), raise_server_exceptions=False)

        response = client.get("/api/clients", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        }


@pytest.mark.parametrize("path", ["/api/invoices/recurring", "/api/invoices/storage-status"])
def test_literal_invoice_paths_are_not_captured(api_client, auth_headers, path):
    response = api_client.get(path, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == []
