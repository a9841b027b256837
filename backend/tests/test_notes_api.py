"""Tests for note endpoints."""


class TestNotes:
    async def test_list_notes_with_verses_and_tags(self, client, auth_headers, study_data):
        response = await client.get("/api/notes", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Retrieved 1 note"
        (note,) = response.json()["data"]
        assert note["title"] == "Grace in Romans"
        assert note["verse_count"] == 1
        assert note["tag_count"] == 1
        assert note["tags"][0]["name"] == "Romans"
        assert note["verse_references"][0]["is_quoted"] is True

    async def test_get_note(self, client, auth_headers, study_data):
        (note,) = (await client.get("/api/notes", headers=auth_headers)).json()["data"]

        response = await client.get(f"/api/notes/{note['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["content"]["type"] == "doc"

    async def test_other_users_note_is_not_found(
        self, client, auth_headers, study_data, other_user, token_for
    ):
        (note,) = (await client.get("/api/notes", headers=auth_headers)).json()["data"]

        response = await client.get(
            f"/api/notes/{note['id']}",
            headers={"Authorization": f"Bearer {token_for(other_user.id)}"},
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Note not found"}

    async def test_no_notes(self, client, auth_headers):
        response = await client.get("/api/notes", headers=auth_headers)

        assert response.json()["data"] == []
        assert response.json()["message"] == "Retrieved 0 notes"
