from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import InvalidChunkingConfigError


@dataclass(slots=True)
class ChunkingSettings:
    """Window configuration for compendium chunking."""

    chunk_size: int = 650
    overlap: int = 80

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise InvalidChunkingConfigError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.overlap < 0:
            raise InvalidChunkingConfigError(f"overlap must not be negative, got {self.overlap}")
        if self.overlap >= self.chunk_size:
            raise InvalidChunkingConfigError(
                f"overlap ({self.overlap}) must be smaller than chunk_size ({self.chunk_size})"
            )

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap


@dataclass(slots=True)
class TracingSettings:
    """OpenTelemetry export configuration."""

    service_name: str = "focus-console"
    endpoint: str | None = None


@dataclass(slots=True)
class Paths:
    """Common project paths used by the workspace."""

    data_dir: str = "data"
    store_file: str = "workspace.json"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings() -> tuple[ChunkingSettings, TracingSettings, Paths]:
    """Load environment-backed settings and return typed config objects.

    Returns:
        Tuple containing chunking, tracing, and path settings.

    Raises:
        ValueError: If a numeric variable is not an integer.
        InvalidChunkingConfigError: If the chunk size / overlap pair is unusable.
    """
    load_dotenv()
    return (
        ChunkingSettings(
            chunk_size=_int_env("FOCUS_CHUNK_SIZE", 650),
            overlap=_int_env("FOCUS_CHUNK_OVERLAP", 80),
        ),
        TracingSettings(
            service_name=os.getenv("FOCUS_SERVICE_NAME", "focus-console"),
            endpoint=os.getenv("FOCUS_OTLP_ENDPOINT") or None,
        ),
        Paths(data_dir=os.getenv("FOCUS_DATA_DIR", "data")),
    )
