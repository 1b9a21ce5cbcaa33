"""JSON / JSONL codec for knowledge compendium chunks.

Export writes the wire shape::

    {"id": ..., "content": ...,
     "metadata": {"chunkIndex": ..., "createdAt": ..., "source": ...,
                  "tokenEstimate": ..., "hash": ...}}

either as one pretty-printed array (``json``) or one compact object per line
(``jsonl``). Import accepts both, tolerates missing fields, and is
all-or-nothing: a single bad line rejects the whole payload.
"""
from __future__ import annotations

import json
from typing import Any, Literal

from .chunking import Clock, IdFactory, content_hash, estimate_tokens, format_timestamp, new_chunk_id, utc_now
from .errors import MalformedInputError
from .schema import Chunk, ChunkMetadata, ParsedUpload, UploadedChunk, UploadedMetadata

ExportFormat = Literal["json", "jsonl"]

UPLOADED_SOURCE = "uploaded"
EXPORT_BASENAME = "knowledge-compendium"


def export_filename(fmt: ExportFormat) -> str:
    return f"{EXPORT_BASENAME}.{'jsonl' if fmt == 'jsonl' else 'json'}"


def serialize_chunks(chunks: list[Chunk], fmt: ExportFormat = "json") -> str:
    """Serialize chunks for export.

    Args:
        chunks: Chunk records in display order.
        fmt: ``json`` for a pretty-printed array, ``jsonl`` for one compact
            record per line.

    Returns:
        Serialized payload without a trailing newline.

    Raises:
        ValueError: If ``fmt`` is not a supported format.
    """
    records = [chunk.to_record() for chunk in chunks]
    if fmt == "jsonl":
        return "\n".join(json.dumps(record, ensure_ascii=False, separators=(",", ":")) for record in records)
    if fmt == "json":
        return json.dumps(records, ensure_ascii=False, indent=2)
    raise ValueError(f"Unsupported export format: {fmt!r}")


def _decode_entries(trimmed: str) -> list[tuple[Any, int | None]]:
    if trimmed.startswith("["):
        try:
            parsed = json.loads(trimmed)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"Invalid JSON array: {exc.msg}", line=exc.lineno) from exc
        if not isinstance(parsed, list):
            raise MalformedInputError("Expected a JSON array of chunk objects")
        return [(entry, None) for entry in parsed]

    entries: list[tuple[Any, int | None]] = []
    for line_number, line in enumerate(trimmed.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            entries.append((json.loads(line), line_number))
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"Invalid JSON on line {line_number}: {exc.msg}", line=line_number) from exc
    return entries


def _where(position: int, line: int | None) -> str:
    return f"line {line}" if line is not None else f"entry {position}"


def _optional(record: dict, key: str, kind: type, where: str, line: int | None) -> Any:
    value = record.get(key)
    if value is None:
        return None
    # bool is an int subclass; JSON true/false is not a count or index.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MalformedInputError(f"Field '{key}' at {where} must be of type {kind.__name__}", line=line)
    if kind is str:
        # JSON escapes can decode to lone surrogates, which cannot be stored as UTF-8.
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise MalformedInputError(f"Field '{key}' at {where} is not valid Unicode text", line=line) from exc
    return value


def _to_uploaded(entry: Any, position: int, line: int | None) -> UploadedChunk:
    where = _where(position, line)
    if not isinstance(entry, dict):
        raise MalformedInputError(f"Expected a chunk object at {where}", line=line)

    metadata = entry.get("metadata")
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise MalformedInputError(f"Field 'metadata' at {where} must be an object", line=line)

    chunk_index = _optional(metadata, "chunkIndex", int, where, line)
    if chunk_index is not None and chunk_index < 0:
        raise MalformedInputError(f"Field 'chunkIndex' at {where} must not be negative", line=line)
    return UploadedChunk(
        id=_optional(entry, "id", str, where, line),
        content=_optional(entry, "content", str, where, line),
        metadata=UploadedMetadata(
            chunk_index=chunk_index,
            created_at=_optional(metadata, "createdAt", str, where, line),
            source=_optional(metadata, "source", str, where, line),
            token_estimate=_optional(metadata, "tokenEstimate", int, where, line),
            hash=_optional(metadata, "hash", str, where, line),
        ),
    )


def complete_chunk(uploaded: UploadedChunk, position: int, fallback_timestamp: str, id_factory: IdFactory) -> Chunk:
    """Fill the gaps of an uploaded entry with import defaults."""
    content = uploaded.content if uploaded.content is not None else ""
    meta = uploaded.metadata
    return Chunk(
        id=uploaded.id if uploaded.id is not None else id_factory(),
        content=content,
        metadata=ChunkMetadata(
            chunk_index=meta.chunk_index if meta.chunk_index is not None else position,
            created_at=meta.created_at if meta.created_at is not None else fallback_timestamp,
            source=meta.source if meta.source is not None else UPLOADED_SOURCE,
            token_estimate=meta.token_estimate if meta.token_estimate is not None else estimate_tokens(content),
            hash=meta.hash if meta.hash is not None else content_hash(content),
        ),
    )


def parse_chunks(raw: str, *, id_factory: IdFactory | None = None, clock: Clock | None = None) -> ParsedUpload:
    """Parse an uploaded compendium in JSON-array or JSONL form.

    Args:
        raw: Uploaded file contents.
        id_factory: Callable used for entries without an ``id``.
        clock: Callable providing the timestamp for entries without ``createdAt``.

    Returns:
        `ParsedUpload` with the chunk contents re-joined by blank lines.

    Raises:
        MalformedInputError: If any entry is not valid JSON or not a
            well-typed chunk object. No partial result is produced.
    """
    trimmed = raw.strip()
    if not trimmed:
        return ParsedUpload(content="", chunks=[])

    uploaded = [
        _to_uploaded(entry, position, line) for position, (entry, line) in enumerate(_decode_entries(trimmed))
    ]

    make_id = id_factory or new_chunk_id
    fallback_timestamp = format_timestamp((clock or utc_now)())
    chunks = [complete_chunk(entry, position, fallback_timestamp, make_id) for position, entry in enumerate(uploaded)]
    return ParsedUpload(content="\n\n".join(chunk.content for chunk in chunks), chunks=chunks)
