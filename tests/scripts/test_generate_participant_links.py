"""
Tests for the participant link generation CLI.
"""
import csv
import json

import httpx

from cough_survey.scripts.generate_participant_links import main


def _client(handler):
    return httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(handler))


class TestGenerateParticipantLinks:
    """Tests for the cough-survey-links command."""

    def test_writes_csv(self, tmp_path):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["token"] = request.headers["X-Admin-Token"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                201,
                json={
                    "count": 2,
                    "participants": [
                        {
                            "id": 1,
                            "token": "AbCdEf12",
                            "label": "hall",
                            "created_at": "2024-05-01T10:00:00Z",
                            "evaluation_url": "https://survey.example/evaluate/AbCdEf12",
                        },
                        {
                            "id": 2,
                            "token": "ZyXwVu98",
                            "label": "hall",
                            "created_at": "2024-05-01T10:00:00Z",
                            "evaluation_url": "https://survey.example/evaluate/ZyXwVu98",
                        },
                    ],
                },
            )

        output = tmp_path / "links.csv"
        code = main(
            ["--admin-token", "secret", "--count", "2", "--label", "hall", "--output", str(output)],
            client=_client(handler),
        )

        assert code == 0
        assert seen == {
            "path": "/v1/participants/batch",
            "token": "secret",
            "body": {"count": 2, "label": "hall"},
        }
        with output.open(newline="") as handle:
            rows = list(csv.reader(handle))
        assert rows[0] == ["label", "token", "evaluation_url"]
        assert rows[1] == ["hall", "AbCdEf12", "https://survey.example/evaluate/AbCdEf12"]
        assert len(rows) == 3

    def test_api_error(self, tmp_path, capsys):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": "Invalid admin token."})

        output = tmp_path / "links.csv"
        code = main(
            ["--admin-token", "wrong", "--output", str(output)], client=_client(handler)
        )

        assert code == 1
        assert not output.exists()
        assert "401" in capsys.readouterr().err

    def test_requires_admin_token(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ADMIN_TOKEN", raising=False)
        code = main(["--output", str(tmp_path / "links.csv")])
        assert code == 1
