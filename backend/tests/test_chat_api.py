"""Tests for chat session and message endpoints."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, select

from lectio.db.models import ChatContextSnapshot, ChatMessage, ChatSession, LearningProfileEntry
from lectio.errors import ModelUnavailableError


async def _create_session(client, auth_headers, **body):
    payload = {key: value for key, value in {"mode": "study", **body}.items() if value is not None}
    response = await client.post("/api/ai-chat/sessions", json=payload, headers=auth_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateSession:
    async def test_creates_session_with_greeting_and_snapshots(
        self, client, auth_headers, study_data, gateway, session_factory
    ):
        response = await client.post(
            "/api/ai-chat/sessions",
            json={
                "mode": "study",
                "context_book_id": "ROM",
                "context_chapter": 5,
                "context_version_id": "NIV",
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Chat session created successfully"
        session = body["data"]
        assert session["mode"] == "study"
        assert session["is_active"] is True
        assert session["title"] == f"Study Chat - {datetime.now(timezone.utc):%m/%d/%Y}"

        greeting_call = gateway.calls[0]
        assert "currently reading ROM chapter 5 in the NIV version" in greeting_call.user_message
        assert greeting_call.max_tokens == 500
        assert greeting_call.temperature == 0.8

        async with session_factory() as db:
            snapshots = await db.execute(
                select(ChatContextSnapshot.context_type).where(
                    ChatContextSnapshot.session_id == UUID(session["id"])
                )
            )
            assert set(snapshots.scalars()) == {
                "notes",
                "highlights",
                "bookmarks",
                "reading_progress",
                "verse_interactions",
            }

        detail = await client.get(f"/api/ai-chat/sessions/{session['id']}", headers=auth_headers)
        messages = detail.json()["data"]["messages"]
        assert [m["role"] for m in messages] == ["assistant"]
        assert messages[0]["content"] == gateway.greeting
        assert messages[0]["tokens_used"] == 0

    async def test_custom_title_and_legacy_mode_field(self, client, auth_headers):
        session = await _create_session(
            client, auth_headers, mode=None, ai_version="debate", title="  Romans debate  "
        )

        assert session["mode"] == "debate"
        assert session["title"] == "Romans debate"

    async def test_new_user_has_no_snapshots(self, client, auth_headers, session_factory):
        session = await _create_session(client, auth_headers)

        async with session_factory() as db:
            count = await db.execute(
                select(func.count(ChatContextSnapshot.id)).where(
                    ChatContextSnapshot.session_id == UUID(session["id"])
                )
            )
            assert count.scalar_one() == 0

    async def test_invalid_mode(self, client, auth_headers):
        response = await client.post(
            "/api/ai-chat/sessions", json={"mode": "poetry"}, headers=auth_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Validation Error"
        assert body["details"][0]["path"] == "mode"

    async def test_greeting_failure_fails_request(self, client, auth_headers, gateway, session_factory):
        gateway.error = ModelUnavailableError()

        response = await client.post(
            "/api/ai-chat/sessions", json={"mode": "study"}, headers=auth_headers
        )

        assert response.status_code == 503
        assert response.json()["error"] == "AI temporarily unavailable. Please try again shortly."
        async with session_factory() as db:
            count = await db.execute(select(func.count(ChatSession.id)))
            assert count.scalar_one() == 0


class TestSendMessage:
    async def test_returns_annotated_reply(self, client, auth_headers, study_data, gateway, app):
        session = await _create_session(client, auth_headers)

        response = await client.post(
            f"/api/ai-chat/sessions/{session['id']}/messages",
            json={"content": "What is grace?"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Message sent successfully"
        reply = body["data"]
        assert reply["aiResponse"] == gateway.reply
        assert reply["tokensUsed"] == 42
        assert reply["metadata"]["versesCited"] == ["John 3:16"]
        assert reply["metadata"]["detailedVerses"][0]["version"] == "NIV"
        assert "grace" in reply["metadata"]["theologicalTopics"]
        assert reply["formattedContent"]["format"] == "markdown"

        turn = gateway.calls[-1]
        assert turn.user_message == "What is grace?"
        assert turn.history == [("assistant", gateway.greeting)]
        assert "Ruth is currently reading ROM 5 in the NIV version." in turn.system_prompt

    async def test_persists_both_turns_in_order(self, client, auth_headers):
        session = await _create_session(client, auth_headers)
        url = f"/api/ai-chat/sessions/{session['id']}/messages"

        await client.post(url, json={"content": "First question"}, headers=auth_headers)
        await client.post(url, json={"content": "Second question"}, headers=auth_headers)

        response = await client.get(url, headers=auth_headers)
        messages = response.json()["data"]["messages"]
        assert [(m["role"], m["content"][:6]) for m in messages] == [
            ("assistant", "Welcom"),
            ("user", "First "),
            ("assistant", "Consid"),
            ("user", "Second"),
            ("assistant", "Consid"),
        ]
        assert messages[1]["tokens_used"] == 0
        assert messages[2]["tokens_used"] == 42
        assert messages[2]["metadata"]["versesCited"] == ["John 3:16"]

    async def test_records_learning_insights_in_background(
        self, client, auth_headers, app, session_factory, user
    ):
        session = await _create_session(client, auth_headers)

        await client.post(
            f"/api/ai-chat/sessions/{session['id']}/messages",
            json={"content": "Why does grace matter?"},
            headers=auth_headers,
        )
        await app.state.background_tasks.drain(timeout=5)

        async with session_factory() as db:
            result = await db.execute(
                select(LearningProfileEntry.category).where(LearningProfileEntry.user_id == user.id)
            )
            assert set(result.scalars()) == {"question_patterns", "theological_preference"}

    async def test_inactive_session_rejected(self, client, auth_headers, gateway, session_factory):
        session = await _create_session(client, auth_headers)
        await client.patch(
            f"/api/ai-chat/sessions/{session['id']}", json={"is_active": False}, headers=auth_headers
        )
        calls_before = len(gateway.calls)

        response = await client.post(
            f"/api/ai-chat/sessions/{session['id']}/messages",
            json={"content": "Hello?"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Chat session is not active"
        assert len(gateway.calls) == calls_before
        async with session_factory() as db:
            count = await db.execute(
                select(func.count(ChatMessage.id)).where(ChatMessage.session_id == UUID(session["id"]))
            )
            assert count.scalar_one() == 1

    async def test_model_failure_persists_nothing(self, client, auth_headers, gateway, session_factory):
        session = await _create_session(client, auth_headers)
        gateway.error = ModelUnavailableError()

        response = await client.post(
            f"/api/ai-chat/sessions/{session['id']}/messages",
            json={"content": "Hello?"},
            headers=auth_headers,
        )

        assert response.status_code == 503
        async with session_factory() as db:
            count = await db.execute(
                select(func.count(ChatMessage.id)).where(ChatMessage.session_id == UUID(session["id"]))
            )
            assert count.scalar_one() == 1

    async def test_empty_content_rejected(self, client, auth_headers):
        session = await _create_session(client, auth_headers)

        response = await client.post(
            f"/api/ai-chat/sessions/{session['id']}/messages",
            json={"content": ""},
            headers=auth_headers,
        )

        assert response.status_code == 400

    async def test_other_users_session_is_not_found(
        self, client, auth_headers, other_user, token_for
    ):
        session = await _create_session(client, auth_headers)

        response = await client.post(
            f"/api/ai-chat/sessions/{session['id']}/messages",
            json={"content": "Hello"},
            headers={"Authorization": f"Bearer {token_for(other_user.id)}"},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Chat session not found"


class TestSessionCrud:
    async def test_list_sessions_with_counts_and_filters(self, client, auth_headers):
        study = await _create_session(client, auth_headers)
        await _create_session(client, auth_headers, mode="explainer")
        await client.post(
            f"/api/ai-chat/sessions/{study['id']}/messages",
            json={"content": "Hello"},
            headers=auth_headers,
        )

        response = await client.get("/api/ai-chat/sessions", headers=auth_headers)
        sessions = response.json()["data"]
        assert response.json()["message"] == "Retrieved 2 chat sessions"
        assert sessions[0]["id"] == study["id"]
        assert sessions[0]["message_count"] == 3
        assert sessions[1]["message_count"] == 1

        filtered = await client.get(
            "/api/ai-chat/sessions", params={"mode": "explainer"}, headers=auth_headers
        )
        assert [s["mode"] for s in filtered.json()["data"]] == ["explainer"]

    async def test_list_only_own_sessions(self, client, auth_headers, other_user, token_for):
        await _create_session(client, auth_headers)

        response = await client.get(
            "/api/ai-chat/sessions",
            headers={"Authorization": f"Bearer {token_for(other_user.id)}"},
        )

        assert response.json()["data"] == []

    async def test_get_session_detail(self, client, auth_headers, study_data):
        session = await _create_session(client, auth_headers)

        response = await client.get(f"/api/ai-chat/sessions/{session['id']}", headers=auth_headers)

        detail = response.json()["data"]
        assert detail["message_count"] == 1
        assert len(detail["context_snapshots"]) == 5
        assert response.json()["message"] == "Chat session retrieved successfully"

    async def test_update_title(self, client, auth_headers):
        session = await _create_session(client, auth_headers)

        response = await client.patch(
            f"/api/ai-chat/sessions/{session['id']}",
            json={"title": "Renamed"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Renamed"
        assert response.json()["data"]["mode"] == "study"

    async def test_mode_cannot_change(self, client, auth_headers):
        session = await _create_session(client, auth_headers)

        response = await client.patch(
            f"/api/ai-chat/sessions/{session['id']}",
            json={"mode": "debate"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    async def test_null_fields_rejected(self, client, auth_headers):
        session = await _create_session(client, auth_headers, title="Romans")
        url = f"/api/ai-chat/sessions/{session['id']}"

        for field in ("title", "is_active"):
            response = await client.patch(url, json={field: None}, headers=auth_headers)

            assert response.status_code == 400
            assert response.json()["error"] == "Validation Error"
            assert response.json()["details"][0]["path"] == field

        unchanged = (await client.get(url, headers=auth_headers)).json()["data"]
        assert unchanged["title"] == "Romans"
        assert unchanged["is_active"] is True

    async def test_delete_cascades(self, client, auth_headers, study_data, session_factory):
        session = await _create_session(client, auth_headers)

        response = await client.delete(f"/api/ai-chat/sessions/{session['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Chat session deleted successfully"
        missing = await client.get(f"/api/ai-chat/sessions/{session['id']}", headers=auth_headers)
        assert missing.status_code == 404
        async with session_factory() as db:
            messages = await db.execute(
                select(func.count(ChatMessage.id)).where(ChatMessage.session_id == UUID(session["id"]))
            )
            snapshots = await db.execute(
                select(func.count(ChatContextSnapshot.id)).where(
                    ChatContextSnapshot.session_id == UUID(session["id"])
                )
            )
            assert messages.scalar_one() == 0
            assert snapshots.scalar_one() == 0

    async def test_unknown_session(self, client, auth_headers):
        response = await client.get(
            "/api/ai-chat/sessions/00000000-0000-0000-0000-000000000000", headers=auth_headers
        )

        assert response.status_code == 404


class TestMessagePage:
    async def test_pagination_and_role_filter(self, client, auth_headers):
        session = await _create_session(client, auth_headers)
        url = f"/api/ai-chat/sessions/{session['id']}/messages"
        await client.post(url, json={"content": "Hello"}, headers=auth_headers)

        first_page = await client.get(url, params={"limit": 2}, headers=auth_headers)
        page = first_page.json()["data"]
        assert len(page["messages"]) == 2
        assert page["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}

        last_page = await client.get(url, params={"limit": 2, "offset": 2}, headers=auth_headers)
        assert last_page.json()["data"]["pagination"]["has_more"] is False

        users_only = await client.get(url, params={"role": "user"}, headers=auth_headers)
        assert [m["role"] for m in users_only.json()["data"]["messages"]] == ["user"]
        assert users_only.json()["data"]["pagination"] == {
            "total": 1,
            "limit": 50,
            "offset": 0,
            "has_more": False,
        }

    async def test_role_filtered_page_ends_with_the_role(self, client, auth_headers):
        session = await _create_session(client, auth_headers)
        url = f"/api/ai-chat/sessions/{session['id']}/messages"
        for content in ("First", "Second"):
            await client.post(url, json={"content": content}, headers=auth_headers)

        response = await client.get(url, params={"role": "user", "limit": 2}, headers=auth_headers)

        page = response.json()["data"]
        assert [m["content"] for m in page["messages"]] == ["First", "Second"]
        assert page["pagination"] == {"total": 2, "limit": 2, "offset": 0, "has_more": False}

    async def test_limit_is_capped(self, client, auth_headers):
        session = await _create_session(client, auth_headers)

        response = await client.get(
            f"/api/ai-chat/sessions/{session['id']}/messages",
            params={"limit": 500},
            headers=auth_headers,
        )

        assert response.status_code == 400
