"""
Tests for the admin endpoints: snippets, participant batches, the
response ledger and statistics.
"""
import csv
import io
from unittest.mock import patch

import pytest

from cough_survey.core.config import settings
from cough_survey.core.datetime_utils import utc_now
from cough_survey.core.entities import PARTICIPANT_LABEL_MAX_LENGTH


SNIPPET_BODY = {
    "filename": "abc.mp3",
    "original_name": "hallway cough.mp3",
    "mime_type": "audio/mpeg",
    "duration_ms": 4500,
}


def _create_snippet(client, headers, **overrides):
    return client.post("/v1/snippets", json={**SNIPPET_BODY, **overrides}, headers=headers)


def _answer_first(client, token, selection):
    session = client.post("/v1/sessions", json={"participant_token": token}).json()
    response = client.post(
        "/v1/responses",
        json={
            "participant_token": token,
            "snippet_id": session["session"]["snippet_ids"][0],
            "selection": selection,
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def tokens(client, admin_headers):
    """Four participants answering a single uploaded snippet."""
    response = client.post(
        "/v1/participants/batch", json={"count": 4}, headers=admin_headers
    )
    return [p["token"] for p in response.json()["participants"]]


class TestAdminToken:
    """Tests for the X-Admin-Token gate."""

    def test_missing_header(self, client, admin_headers):
        response = client.get("/v1/snippets")
        assert response.status_code == 422

    def test_wrong_token(self, client, admin_headers):
        response = client.get("/v1/snippets", headers={"X-Admin-Token": "wrong"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid admin token."

    def test_token_not_configured(self, client):
        with patch.object(settings, "ADMIN_TOKEN", ""):
            response = client.get("/v1/stats", headers={"X-Admin-Token": "anything"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Admin token not configured on server."

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/v1/participants"),
            ("post", "/v1/participants/batch"),
            ("get", "/v1/responses"),
            ("get", "/v1/responses/export.csv"),
            ("delete", "/v1/responses?date=2024-01-01"),
            ("get", "/v1/stats"),
            ("get", "/v1/stats/snippets/1"),
            ("delete", "/v1/snippets/1"),
        ],
    )
    def test_admin_routes_are_gated(self, client, admin_headers, method, path):
        response = getattr(client, method)(path, headers={"X-Admin-Token": "wrong"})
        assert response.status_code == 401


class TestSnippetEndpoints:
    """Tests for /v1/snippets."""

    def test_create_and_get(self, client, admin_headers):
        created = _create_snippet(client, admin_headers)
        assert created.status_code == 201
        snippet = created.json()
        assert snippet["mime_type"] == "audio/mpeg"
        assert snippet["duration_ms"] == 4500

        fetched = client.get(f"/v1/snippets/{snippet['id']}", headers=admin_headers)
        assert fetched.status_code == 200
        assert fetched.json() == snippet

    def test_list_newest_first(self, client, admin_headers):
        first = _create_snippet(client, admin_headers, filename="1.mp3").json()
        second = _create_snippet(client, admin_headers, filename="2.mp3").json()

        listed = client.get("/v1/snippets", headers=admin_headers).json()

        assert [s["id"] for s in listed] == [second["id"], first["id"]]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"mime_type": "audio/ogg"},
            {"mime_type": "video/mp4"},
            {"duration_ms": 1999},
            {"duration_ms": 10001},
            {"filename": ""},
        ],
    )
    def test_invalid_metadata(self, client, admin_headers, overrides):
        response = _create_snippet(client, admin_headers, **overrides)
        assert response.status_code == 422

    @pytest.mark.parametrize("duration_ms", [2000, 10000])
    def test_duration_bounds_are_inclusive(self, client, admin_headers, duration_ms):
        response = _create_snippet(client, admin_headers, duration_ms=duration_ms)
        assert response.status_code == 201

    def test_get_missing(self, client, admin_headers):
        response = client.get("/v1/snippets/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "Snippet 999 not found.", "code": "snippet_not_found"}

    def test_delete(self, client, admin_headers):
        snippet = _create_snippet(client, admin_headers).json()

        assert client.delete(f"/v1/snippets/{snippet['id']}", headers=admin_headers).status_code == 204
        assert client.delete(f"/v1/snippets/{snippet['id']}", headers=admin_headers).status_code == 404


class TestParticipantBatch:
    """Tests for POST /v1/participants/batch."""

    def test_batch_returns_links(self, client, admin_headers):
        response = client.post(
            "/v1/participants/batch",
            json={"count": 3, "label": "poster-session"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["count"] == 3
        for p in data["participants"]:
            assert p["label"] == "poster-session"
            assert p["evaluation_url"] == f"{settings.BASE_URL}/evaluate/{p['token']}"

    @pytest.mark.parametrize("count", [0, 101])
    def test_out_of_range(self, client, admin_headers, count):
        response = client.post(
            "/v1/participants/batch", json={"count": count}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_batch_size"
        assert client.get("/v1/participants", headers=admin_headers).json() == []

    def test_label_longer_than_column_is_rejected(self, client, admin_headers):
        response = client.post(
            "/v1/participants/batch",
            json={"count": 1, "label": "x" * (PARTICIPANT_LABEL_MAX_LENGTH + 1)},
            headers=admin_headers,
        )
        assert response.status_code == 422
        assert client.get("/v1/participants", headers=admin_headers).json() == []

    def test_label_at_column_width_is_accepted(self, client, admin_headers):
        label = "x" * PARTICIPANT_LABEL_MAX_LENGTH
        response = client.post(
            "/v1/participants/batch",
            json={"count": 1, "label": label},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["participants"][0]["label"] == label

    def test_list(self, client, admin_headers, tokens):
        listed = client.get("/v1/participants", headers=admin_headers).json()
        assert [p["token"] for p in listed] == tokens


class TestResponseLedgerEndpoints:
    """Tests for the admin response listing, export and bulk delete."""

    def test_list_expands_snippet_and_participant(self, client, admin_headers, tokens):
        snippet = _create_snippet(client, admin_headers).json()
        _answer_first(client, tokens[0], "cough")

        listed = client.get("/v1/responses", headers=admin_headers).json()

        assert len(listed) == 1
        assert listed[0]["snippet"]["id"] == snippet["id"]
        assert listed[0]["participant"]["token"] == tokens[0]

    def test_orphaned_response_has_null_snippet(self, client, admin_headers, tokens):
        snippet = _create_snippet(client, admin_headers).json()
        _answer_first(client, tokens[0], "other")
        client.delete(f"/v1/snippets/{snippet['id']}", headers=admin_headers)

        listed = client.get("/v1/responses", headers=admin_headers).json()

        assert listed[0]["snippet"] is None
        assert listed[0]["snippet_id"] == snippet["id"]

    def test_filters(self, client, admin_headers, tokens):
        snippet = _create_snippet(client, admin_headers).json()
        _answer_first(client, tokens[0], "cough")
        _answer_first(client, tokens[1], "other")
        today = utc_now().date().isoformat()

        by_selection = client.get(
            "/v1/responses", params={"selection": "other"}, headers=admin_headers
        ).json()
        by_snippet = client.get(
            "/v1/responses", params={"snippet_id": snippet["id"]}, headers=admin_headers
        ).json()
        by_date = client.get(
            "/v1/responses", params={"date": today}, headers=admin_headers
        ).json()
        other_day = client.get(
            "/v1/responses", params={"date": "2001-01-01"}, headers=admin_headers
        ).json()

        assert [r["participant"]["token"] for r in by_selection] == [tokens[1]]
        assert len(by_snippet) == 2
        assert len(by_date) == 2
        assert other_day == []

    def test_invalid_filters(self, client, admin_headers):
        bad_date = client.get("/v1/responses", params={"date": "01/02/2024"}, headers=admin_headers)
        bad_selection = client.get(
            "/v1/responses", params={"selection": "sneeze"}, headers=admin_headers
        )
        assert bad_date.status_code == 400
        assert bad_selection.status_code == 400

    def test_export_csv(self, client, admin_headers, tokens):
        _create_snippet(client, admin_headers)
        _answer_first(client, tokens[0], "throat-clear")

        response = client.get("/v1/responses/export.csv", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == ["id", "participant_id", "snippet_id", "selection", "created_at"]
        assert rows[1][3] == "throat-clear"

    def test_delete_by_date(self, client, admin_headers, tokens):
        _create_snippet(client, admin_headers)
        _answer_first(client, tokens[0], "cough")
        _answer_first(client, tokens[1], "cough")

        response = client.delete(
            "/v1/responses",
            params={"date": utc_now().date().isoformat()},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"deleted": 2}
        assert client.get("/v1/responses", headers=admin_headers).json() == []

    def test_delete_requires_date(self, client, admin_headers):
        assert client.delete("/v1/responses", headers=admin_headers).status_code == 422
        invalid = client.delete(
            "/v1/responses", params={"date": "yesterday"}, headers=admin_headers
        )
        assert invalid.status_code == 400


class TestStatsEndpoints:
    """Tests for /v1/stats."""

    def test_summary(self, client, admin_headers, tokens):
        snippet = _create_snippet(client, admin_headers).json()
        for token, selection in zip(tokens, ["cough", "cough", "cough", "other"]):
            _answer_first(client, token, selection)

        data = client.get("/v1/stats", headers=admin_headers).json()

        assert len(data["snippets"]) == 1
        entry = data["snippets"][0]
        assert entry["snippet_id"] == snippet["id"]
        assert entry["original_name"] == "hallway cough.mp3"
        assert (entry["cough_pct"], entry["throat_clear_pct"], entry["other_pct"]) == (75, 0, 25)
        assert data["overall"]["total"] == 4

    def test_single_snippet(self, client, admin_headers):
        snippet = _create_snippet(client, admin_headers).json()

        response = client.get(f"/v1/stats/snippets/{snippet['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert response.json()["cough_pct"] == 0

    def test_single_snippet_missing(self, client, admin_headers):
        response = client.get("/v1/stats/snippets/404", headers=admin_headers)
        assert response.status_code == 404

    def test_feedback_stats_include_submission(self, client, admin_headers, tokens):
        _create_snippet(client, admin_headers)
        first = _answer_first(client, tokens[0], "cough")
        second = _answer_first(client, tokens[1], "throat-clear")

        assert first["snippet_stats"]["cough_pct"] == 100
        assert second["snippet_stats"]["total"] == 2
        assert second["snippet_stats"]["throat_clear_pct"] == 50
