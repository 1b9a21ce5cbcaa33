from __future__ import annotations

from pathlib import Path

from .codec import ExportFormat, parse_chunks, serialize_chunks
from .schema import Chunk, ParsedUpload


def read_text(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def _write_text(path: str | Path, payload: str) -> Path:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(payload, encoding="utf-8")
    return destination


def format_for_path(path: str | Path) -> ExportFormat:
    return "jsonl" if Path(path).suffix.lower() == ".jsonl" else "json"


def save_compendium(chunks: list[Chunk], path: str | Path, fmt: ExportFormat | None = None) -> Path:
    """Write chunks to ``path``, inferring the format from the suffix when ``fmt`` is omitted."""
    return _write_text(path, serialize_chunks(chunks, fmt or format_for_path(path)))


def load_compendium(path: str | Path) -> ParsedUpload:
    return parse_chunks(read_text(path))


def save_markdown(markdown: str, path: str | Path) -> Path:
    return _write_text(path, markdown)
