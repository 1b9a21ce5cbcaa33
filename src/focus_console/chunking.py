from __future__ import annotations

import math
import re
import struct
import uuid
from datetime import datetime, timezone
from typing import Callable

from .schema import Chunk, ChunkMetadata
from .settings import ChunkingSettings

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]

MANUAL_SOURCE = "manual-entry"

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_chunk_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    stamp = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def estimate_tokens(text: str) -> int:
    """Approximate token count as words x 1.25, rounded half up, at least 1."""
    words = len(text.split())
    return max(1, math.floor(words * 1.25 + 0.5))


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def content_hash(text: str) -> str:
    """Order-sensitive 32-bit rolling hash of ``text`` rendered in base 36.

    Iterates UTF-16 code units with ``h = h * 31 + unit`` in signed 32-bit
    arithmetic, so hashes line up with chunks exported by the browser app.
    Change detection only; not collision resistant.
    """
    value = 0
    data = text.encode("utf-16-le", "surrogatepass")
    for (unit,) in struct.iter_unpack("<H", data):
        value = ((value << 5) - value + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return _to_base36(abs(value))


def split_paragraphs(text: str) -> list[str]:
    return [paragraph.strip() for paragraph in _PARAGRAPH_BREAK.split(text) if paragraph.strip()]


def _window_paragraph(paragraph: str, settings: ChunkingSettings) -> list[str]:
    return [
        paragraph[start : start + settings.chunk_size]
        for start in range(0, len(paragraph), settings.step)
    ]


def split_into_segments(text: str, settings: ChunkingSettings) -> list[str]:
    """Greedily pack paragraphs into segments of at most ``settings.chunk_size`` characters.

    Paragraphs longer than the limit are cut into overlapping windows of
    ``chunk_size`` characters that start every ``chunk_size - overlap``
    characters.

    Args:
        text: Raw compendium text.
        settings: Validated window configuration.

    Returns:
        Segment strings in document order; ``[]`` for blank input.
    """
    normalized = text.replace("\r", "").strip()
    if not normalized:
        return []

    segments: list[str] = []
    buffer = ""
    for paragraph in split_paragraphs(normalized):
        candidate = f"{buffer}\n\n{paragraph}" if buffer else paragraph
        if len(candidate) <= settings.chunk_size:
            buffer = candidate
            continue

        if buffer:
            segments.append(buffer)

        if len(paragraph) <= settings.chunk_size:
            buffer = paragraph
        else:
            segments.extend(_window_paragraph(paragraph, settings))
            buffer = ""

    if buffer:
        segments.append(buffer)

    if not segments:
        segments.append(normalized)

    return segments


def build_chunks(
    segments: list[str],
    source: str = MANUAL_SOURCE,
    id_factory: IdFactory | None = None,
    clock: Clock | None = None,
) -> list[Chunk]:
    """Wrap segment strings into indexed chunk records sharing one timestamp."""
    make_id = id_factory or new_chunk_id
    timestamp = format_timestamp((clock or utc_now)())
    return [
        Chunk(
            id=make_id(),
            content=segment,
            metadata=ChunkMetadata(
                chunk_index=index,
                created_at=timestamp,
                source=source,
                token_estimate=estimate_tokens(segment),
                hash=content_hash(segment),
            ),
        )
        for index, segment in enumerate(segments)
    ]


def chunk_text(
    text: str,
    chunk_size: int = 650,
    overlap: int = 80,
    *,
    source: str = MANUAL_SOURCE,
    id_factory: IdFactory | None = None,
    clock: Clock | None = None,
) -> list[Chunk]:
    """Split compendium text into paragraph-aware, overlap-preserving chunks.

    Args:
        text: Raw compendium text.
        chunk_size: Maximum characters per chunk.
        overlap: Characters shared by consecutive windows of an oversized paragraph.
        source: Provenance label stored on every chunk.
        id_factory: Callable returning a fresh unique id per chunk.
        clock: Callable returning the batch creation time.

    Returns:
        Chunk records with contiguous 0-based ``chunk_index`` values.

    Raises:
        InvalidChunkingConfigError: If ``chunk_size`` is not positive or
            ``overlap`` is negative or not smaller than ``chunk_size``.
    """
    settings = ChunkingSettings(chunk_size=chunk_size, overlap=overlap)
    return build_chunks(
        split_into_segments(text, settings),
        source=source,
        id_factory=id_factory,
        clock=clock,
    )
