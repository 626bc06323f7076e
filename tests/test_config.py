"""Tests for configuration loading."""

import datetime as dt

import pytest
from pydantic import ValidationError

from drawer.config import AppSettings, GeminiSettings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory so no local .env leaks in."""
    monkeypatch.chdir(tmp_path)
    for var in ("STORAGE_BACKEND", "MAX_UPLOAD_SIZE_MB", "ALLOWED_MIME_TYPES",
                "UPLOAD_DIR", "DEMO_DATA", "GEMINI_API_KEY", "GEMINI_MODEL_NAME"):
        monkeypatch.delenv(var, raising=False)


class TestAppSettings:

    def test_defaults(self):
        settings = AppSettings()
        assert settings.storage_backend == "memory"
        assert settings.demo_data is False
        assert settings.max_upload_size_bytes == 10 * 1024 * 1024
        assert settings.allowed_mime_types_list == [
            "application/pdf",
            "image/png",
            "image/jpeg",
            "image/jpg",
            "image/webp",
        ]
        assert settings.calendar_default_start == dt.date(2020, 1, 1)
        assert settings.calendar_default_end == dt.date(2030, 12, 31)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_SIZE_MB", "2")
        monkeypatch.setenv("ALLOWED_MIME_TYPES", " application/PDF , ,image/png")
        settings = AppSettings()
        assert settings.max_upload_size_bytes == 2 * 1024 * 1024
        assert settings.allowed_mime_types_list == ["application/pdf", "image/png"]

    def test_unknown_storage_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings()


class TestGeminiSettings:

    def test_api_key_required(self):
        with pytest.raises(ValidationError):
            GeminiSettings()

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        settings = GeminiSettings()
        assert settings.model_name == "gemini-2.5-flash"
        assert settings.extraction_max_tokens > settings.chat_max_tokens


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
