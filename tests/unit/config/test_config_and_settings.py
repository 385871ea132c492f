"""
Unit tests for ConfigLoader and settings accessors.
"""
from unittest.mock import patch

import pytest

from reelforge import settings
from reelforge.config.config_loader import ConfigLoader


class TestConfigLoader:
    def test_defaults_load(self, tmp_path):
        loader = ConfigLoader(user_config_path=str(tmp_path / "missing.yaml"))
        assert loader.get("composition", "fps") == 24
        assert loader.get("composition.encoder") == "libx264"
        assert loader.get("nope", "missing", default="x") == "x"

    def test_user_config_merges_over_defaults(self, tmp_path):
        user = tmp_path / "config.yaml"
        user.write_text("composition:\n  fps: 30\nstorage:\n  backend: local\n", encoding="utf-8")

        loader = ConfigLoader(user_config_path=str(user))

        assert loader.get("composition", "fps") == 30
        assert loader.get("composition", "preset") == "ultrafast"
        assert loader.get("storage", "backend") == "local"

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REELFORGE_COMPOSITION_SEGMENT_TIMEOUT_SECONDS", "90")
        monkeypatch.setenv("REELFORGE_FETCH_RETRY_DELAY_SECONDS", "1.5")
        monkeypatch.setenv("REELFORGE_WORKSPACE_ROOT", "/var/tmp/reels")
        monkeypatch.setenv("REELFORGE_API_CORS_CREDENTIALS", "true")

        loader = ConfigLoader(user_config_path=str(tmp_path / "missing.yaml"))

        assert loader.get("composition", "segment_timeout_seconds") == 90
        assert loader.get("fetch", "retry_delay_seconds") == 1.5
        assert loader.get("workspace", "root") == "/var/tmp/reels"
        assert loader.get("api", "cors_credentials") is True

    def test_broken_yaml_is_ignored(self, tmp_path):
        user = tmp_path / "config.yaml"
        user.write_text("composition: [unclosed\n", encoding="utf-8")
        loader = ConfigLoader(user_config_path=str(user))
        assert loader.get("composition", "fps") == 24


class TestSettings:
    def test_environment_precedence(self, monkeypatch):
        assert settings.is_production() is False
        monkeypatch.setenv("NODE_ENV", "production")
        assert settings.is_production() is True
        monkeypatch.setenv("APP_ENV", "staging")
        assert settings.get_environment() == "staging"
        assert settings.is_production() is False

    @pytest.mark.parametrize("cpus,expected", [(8, 7), (2, 1), (1, 1), (None, 1)])
    def test_max_concurrency_from_cpu_count(self, cpus, expected):
        with patch.object(settings._config_loader, "get", return_value=None), \
                patch("reelforge.settings.os.cpu_count", return_value=cpus):
            assert settings.get_max_concurrency() == expected

    def test_max_concurrency_configured(self):
        with patch.object(settings._config_loader, "get", return_value=0):
            assert settings.get_max_concurrency() == 1
        with patch.object(settings._config_loader, "get", return_value=6):
            assert settings.get_max_concurrency() == 6

    def test_port_from_environment(self, monkeypatch):
        assert settings.get_api_port() == 3000
        monkeypatch.setenv("PORT", "8080")
        assert settings.get_api_port() == 8080

    def test_cors_origins_from_environment(self, monkeypatch):
        assert settings.get_cors_origins() == []
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example ,")
        assert settings.get_cors_origins() == ["https://a.example", "https://b.example"]
        monkeypatch.setenv("CORS_CREDENTIALS", "TRUE")
        assert settings.get_cors_credentials() is True

    def test_supabase_key_prefers_service_role(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        assert settings.get_storage_supabase_key() == "anon"
        assert settings.get_storage_supabase_key_type() == "anon"
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")
        assert settings.get_storage_supabase_key() == "service"
        assert settings.get_storage_supabase_key_type() == "service-role"

    def test_segment_timeout_is_clamped(self):
        with patch("reelforge.settings.get_composition_config", return_value={"segment_timeout_seconds": 0.2}):
            assert settings.get_segment_timeout_seconds() == 1.0
        with patch("reelforge.settings.get_composition_config", return_value={"segment_timeout_seconds": "abc"}):
            assert settings.get_segment_timeout_seconds() == 60.0

    def test_subtitle_presets_are_lowercase(self):
        presets = settings.get_subtitle_presets()
        assert "default" in presets
        assert all(name == name.lower() for name in presets)
