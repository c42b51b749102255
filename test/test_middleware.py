"""
Tests for structured request logging
"""

import json
import logging

from cookie_consent.middleware.logging import RequestIdFilter, StructuredFormatter, request_id_var


class TestStructuredLoggingMiddleware:
    async def test_request_id_echoed(self, client, active_policy):
        response = await client.get("/api/consent/status", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    async def test_request_id_generated(self, client, active_policy):
        response = await client.get("/api/consent/status")

        assert response.headers["X-Request-ID"]

    async def test_access_log_reports_consent_cookie_presence(self, client, active_policy, caplog):
        await client.post("/api/consent/accept")
        caplog.clear()

        with caplog.at_level(logging.INFO, logger="consent.access"):
            await client.get("/api/consent/status")

        record = next(record for record in caplog.records if record.name == "consent.access")
        assert record.has_consent_cookie is True
        assert record.status_code == 200
        assert "masilia_consent" not in record.getMessage()


class TestStructuredFormatter:
    def test_extra_fields_are_rendered(self):
        record = logging.LogRecord(
            "cookie_consent.events", logging.INFO, __file__, 1, "User gave initial consent", None, None
        )
        record.accepted_categories = ["essential"]
        token = request_id_var.set("req-456")
        try:
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["message"] == "User gave initial consent"
        assert entry["request_id"] == "req-456"
        assert entry["accepted_categories"] == ["essential"]
        assert entry["level"] == "INFO"


class TestConsentCookieName:
    async def test_access_log_uses_app_cookie_name(self, app, client, test_settings, active_policy, caplog):
        app.state.settings = test_settings.model_copy(update={"consent_cookie_name": "site_consent"})

        accepted = await client.post("/api/consent/accept")
        assert "site_consent" in accepted.cookies
        caplog.clear()

        with caplog.at_level(logging.INFO, logger="consent.access"):
            await client.get("/api/consent/status")

        record = next(record for record in caplog.records if record.name == "consent.access")
        assert record.has_consent_cookie is True
