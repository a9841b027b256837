"""Tests for learning profile endpoints."""

import pytest

from lectio.db.models import LearningProfileEntry
from lectio.services.insights import LearningInsight, save_insights


@pytest.fixture
async def insights(session_factory, user) -> dict[str, LearningProfileEntry]:
    async with session_factory() as db:
        await save_insights(
            db,
            user.id,
            [
                LearningInsight("question_patterns", "common_question_types", "explanatory questions", 0.7),
                LearningInsight("theological_preference", "primary_interests", "grace, faith", 0.8),
                LearningInsight("theological_preference", "secondary_interests", "covenant", 0.5),
            ],
        )
        await db.commit()
    return user


async def _profile(client, auth_headers):
    response = await client.get("/api/ai-chat/learning-profile", headers=auth_headers)
    assert response.status_code == 200
    return response.json()["data"]


class TestLearningProfile:
    async def test_grouped_by_category(self, client, auth_headers, insights):
        profile = await _profile(client, auth_headers)

        assert set(profile) == {"question_patterns", "theological_preference"}
        preferences = profile["theological_preference"]
        assert [entry["insight_key"] for entry in preferences] == [
            "primary_interests",
            "secondary_interests",
        ]
        assert preferences[0]["source"] == "auto"

    async def test_empty_profile(self, client, auth_headers):
        assert await _profile(client, auth_headers) == {}

    async def test_update_insight(self, client, auth_headers, insights):
        entry = (await _profile(client, auth_headers))["question_patterns"][0]

        response = await client.put(
            f"/api/ai-chat/learning-profile/{entry['id']}",
            json={"insight_value": "comparative questions", "confidence_score": 0.95, "source": "manual"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Learning insight updated successfully"
        updated = response.json()["data"]
        assert updated["insight_value"] == "comparative questions"
        assert updated["confidence_score"] == 0.95
        assert updated["source"] == "manual"

    async def test_confidence_out_of_range(self, client, auth_headers, insights):
        entry = (await _profile(client, auth_headers))["question_patterns"][0]

        response = await client.put(
            f"/api/ai-chat/learning-profile/{entry['id']}",
            json={"confidence_score": 1.5},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["path"] == "confidence_score"

    async def test_delete_insight(self, client, auth_headers, insights):
        entry = (await _profile(client, auth_headers))["question_patterns"][0]

        response = await client.delete(
            f"/api/ai-chat/learning-profile/{entry['id']}", headers=auth_headers
        )

        assert response.status_code == 200
        assert "question_patterns" not in await _profile(client, auth_headers)

    async def test_other_users_insight_is_not_found(self, client, insights, other_user, token_for):
        entry = (
            await _profile(client, {"Authorization": f"Bearer {token_for(insights.id)}"})
        )["question_patterns"][0]

        response = await client.delete(
            f"/api/ai-chat/learning-profile/{entry['id']}",
            headers={"Authorization": f"Bearer {token_for(other_user.id)}"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Learning insight not found"
