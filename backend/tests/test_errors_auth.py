"""Tests for authentication and the error envelope."""

from uuid import uuid4


class TestAuth:
    async def test_missing_token(self, client):
        response = await client.get("/api/ai-chat/sessions")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "No authorization token provided"}

    async def test_malformed_header(self, client):
        response = await client.get("/api/ai-chat/sessions", headers={"Authorization": "Token abc"})

        assert response.status_code == 401

    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/ai-chat/sessions", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    async def test_expired_token(self, client, user, token_for):
        response = await client.get(
            "/api/ai-chat/sessions",
            headers={"Authorization": f"Bearer {token_for(user.id, expires_in=-60)}"},
        )

        assert response.status_code == 401

    async def test_wrong_audience(self, client, user, token_for):
        response = await client.get(
            "/api/ai-chat/sessions",
            headers={"Authorization": f"Bearer {token_for(user.id, audience='anon')}"},
        )

        assert response.status_code == 401

    async def test_unknown_user(self, client, token_for):
        response = await client.get(
            "/api/ai-chat/sessions",
            headers={"Authorization": f"Bearer {token_for(uuid4())}"},
        )

        assert response.status_code == 401


class TestErrorEnvelope:
    async def test_unknown_route(self, client):
        response = await client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json()["success"] is False

    async def test_invalid_uuid_in_path(self, client, auth_headers):
        response = await client.get("/api/ai-chat/sessions/not-a-uuid", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation Error"
        assert response.json()["details"][0]["path"] == "path.session_id"

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
