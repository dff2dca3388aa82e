"""Tests for root routes, CORS and generic error responses."""

import pytest


class TestMiscRoutes:
    def test_root(self, client):
        body = client.get("/").json()
        assert body["success"] is True
        assert body["message"] == "Fold Backend API is running"
        assert body["version"] == "1.0.0"
        assert "timestamp" in body

    def test_health_uptime_never_decreases(self, client):
        """Test that uptime comes from a monotonic clock."""
        first = client.get("/health").json()
        second = client.get("/health").json()
        assert first["status"] == "healthy"
        assert first["uptime"] >= 0
        assert second["uptime"] >= first["uptime"]

    def test_openapi_document(self, client):
        schema = client.get("/openapi.json").json()
        assert schema["info"]["title"] == "Fold Backend API"
        assert "/api/user/me" in schema["paths"]
        assert schema["components"]["securitySchemes"]["SessionCookie"]["name"] == "fold.session_token"

    def test_test_login_page(self, client):
        response = client.get("/test-login")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "/api/auth/sign-in/social" in response.text


class TestErrorResponses:
    """Tests for responses produced by the global error handlers."""

    def test_unknown_route(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Not Found", "message": "Route GET /nope not found"}

    def test_unexpected_error_shows_message_outside_production(self, client, app, auth_headers, monkeypatch):
        async def boom(*args):
            raise RuntimeError("database exploded")

        monkeypatch.setattr(app, "get_profile", boom)
        response = client.get("/api/user/me", headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal Server Error", "message": "database exploded"}


class TestProductionErrors:
    @pytest.fixture
    def config(self, config):
        return config.model_copy(update={"environment": "production"})

    def test_unexpected_error_hides_message(self, client, app, auth_headers, monkeypatch):
        async def boom(*args):
            raise RuntimeError("database exploded")

        monkeypatch.setattr(app, "get_profile", boom)
        response = client.get("/api/user/me", headers=auth_headers)
        assert response.status_code == 500
        assert response.json()["message"] == "An unexpected error occurred"


class TestCors:
    def test_preflight_from_frontend(self, client):
        response = client.options(
            "/api/user/me",
            headers={"Origin": "http://localhost:3001", "Access-Control-Request-Method": "PATCH"},
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3001"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_unknown_origin_not_allowed(self, client):
        response = client.get("/health", headers={"Origin": "https://evil.example.com"})
        assert "access-control-allow-origin" not in response.headers
