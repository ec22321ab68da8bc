"""
Tests for configuration validators.
"""
import pytest
from pydantic import ValidationError

from cough_survey.core.config import Settings


class TestSettingsValidation:
    """Tests for Settings model validators."""

    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.SESSION_SNIPPET_COUNT == 5
        assert s.SNIPPET_MIN_DURATION_MS == 2000
        assert s.SNIPPET_MAX_DURATION_MS == 10000
        assert s.PARTICIPANT_TOKEN_LENGTH == 8
        assert s.PARTICIPANT_BATCH_MAX == 100
        assert s.SNIPPET_DELETE_CASCADE is False
        assert s.API_V1_PREFIX == "/v1"

    def test_min_duration_above_max(self):
        with pytest.raises(ValidationError, match="SNIPPET_MIN_DURATION_MS"):
            Settings(_env_file=None, SNIPPET_MIN_DURATION_MS=5000, SNIPPET_MAX_DURATION_MS=4000)

    def test_short_token_length(self):
        with pytest.raises(ValidationError, match="PARTICIPANT_TOKEN_LENGTH"):
            Settings(_env_file=None, PARTICIPANT_TOKEN_LENGTH=6)

    def test_session_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, SESSION_SNIPPET_COUNT=0)

    def test_storage_backend_choices(self):
        assert Settings(_env_file=None, STORAGE_BACKEND="memory").STORAGE_BACKEND == "memory"
        with pytest.raises(ValidationError):
            Settings(_env_file=None, STORAGE_BACKEND="redis")

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SESSION_SNIPPET_COUNT", "3")
        assert Settings(_env_file=None).SESSION_SNIPPET_COUNT == 3
