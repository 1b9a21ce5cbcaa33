"""Tests for settings.py — load_settings defaults and env overrides."""
from __future__ import annotations

import pytest

from focus_console.errors import InvalidChunkingConfigError
from focus_console.settings import ChunkingSettings, Paths, TracingSettings, load_settings

ENV_VARS = ["FOCUS_CHUNK_SIZE", "FOCUS_CHUNK_OVERLAP", "FOCUS_SERVICE_NAME", "FOCUS_OTLP_ENDPOINT", "FOCUS_DATA_DIR"]


@pytest.fixture()
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestChunkingSettings:
    def test_defaults(self):
        s = ChunkingSettings()
        assert (s.chunk_size, s.overlap) == (650, 80)
        assert s.step == 570

    def test_custom_values(self):
        s = ChunkingSettings(chunk_size=100, overlap=0)
        assert s.step == 100

    @pytest.mark.parametrize(("chunk_size", "overlap"), [(650, 700), (650, 650), (0, 0), (10, -1)])
    def test_rejects_stalling_window(self, chunk_size, overlap):
        with pytest.raises(InvalidChunkingConfigError):
            ChunkingSettings(chunk_size=chunk_size, overlap=overlap)


class TestTracingSettingsAndPaths:
    def test_tracing_defaults(self):
        s = TracingSettings()
        assert s.service_name == "focus-console"
        assert s.endpoint is None

    def test_path_defaults(self):
        p = Paths()
        assert p.data_dir == "data"
        assert p.store_file == "workspace.json"


class TestLoadSettings:
    def test_returns_typed_tuple(self, clean_env):
        chunking, tracing, paths = load_settings()
        assert isinstance(chunking, ChunkingSettings)
        assert isinstance(tracing, TracingSettings)
        assert isinstance(paths, Paths)

    def test_defaults_when_env_vars_absent(self, clean_env):
        chunking, tracing, paths = load_settings()
        assert (chunking.chunk_size, chunking.overlap) == (650, 80)
        assert tracing.endpoint is None
        assert paths.data_dir == "data"

    def test_env_vars_override_defaults(self, clean_env):
        clean_env.setenv("FOCUS_CHUNK_SIZE", "400")
        clean_env.setenv("FOCUS_CHUNK_OVERLAP", "40")
        clean_env.setenv("FOCUS_SERVICE_NAME", "focus-test")
        clean_env.setenv("FOCUS_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
        clean_env.setenv("FOCUS_DATA_DIR", "/tmp/focus")
        chunking, tracing, paths = load_settings()
        assert (chunking.chunk_size, chunking.overlap) == (400, 40)
        assert tracing.service_name == "focus-test"
        assert tracing.endpoint == "http://localhost:4318/v1/traces"
        assert paths.data_dir == "/tmp/focus"

    def test_non_integer_rejected(self, clean_env):
        clean_env.setenv("FOCUS_CHUNK_SIZE", "big")
        with pytest.raises(ValueError, match="FOCUS_CHUNK_SIZE"):
            load_settings()

    def test_invalid_pair_rejected(self, clean_env):
        clean_env.setenv("FOCUS_CHUNK_SIZE", "50")
        clean_env.setenv("FOCUS_CHUNK_OVERLAP", "60")
        with pytest.raises(InvalidChunkingConfigError):
            load_settings()
