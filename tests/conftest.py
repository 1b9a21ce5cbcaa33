"""Shared pytest fixtures for focus_console unit tests."""
from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from focus_console.chunking import build_chunks
from focus_console.schema import Chunk, Task

FIXED_MOMENT = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


@pytest.fixture()
def fixed_clock():
    return lambda: FIXED_MOMENT


@pytest.fixture()
def id_factory():
    counter = itertools.count()
    return lambda: f"id-{next(counter)}"


@pytest.fixture()
def sample_chunks() -> list[Chunk]:
    counter = itertools.count()
    return build_chunks(
        [
            "Employees may work remotely from home.",
            "Working from another country is capped at 14 days.",
            "Lost devices must be reported within one hour. Café Wi-Fi needs VPN.",
        ],
        id_factory=lambda: f"chunk-{next(counter)}",
        clock=lambda: FIXED_MOMENT,
    )


@pytest.fixture()
def sample_tasks() -> list[Task]:
    return [
        Task(
            id="T-2",
            title="Plan the roadmap",
            urgent=False,
            important=True,
            rationale="Default review classification",
            created_at="2026-01-02T10:00:00.000Z",
        ),
        Task(
            id="T-1",
            title="Reply asap",
            urgent=True,
            important=False,
            rationale="Flagged urgent via asap",
            created_at="2026-01-01T09:00:00.000Z",
        ),
        Task(
            id="T-3",
            title="Urgent client review",
            urgent=True,
            important=True,
            rationale="Flagged urgent via urgent · High-impact cues: client, review",
            created_at="2026-01-03T08:00:00.000Z",
        ),
    ]
