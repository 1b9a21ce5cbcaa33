"""Task classification, ruleset markdown and knowledge compendium chunking."""

from .chunking import chunk_text
from .classification import classify_task
from .codec import parse_chunks, serialize_chunks
from .errors import InvalidChunkingConfigError, MalformedInputError
from .markdown import normalize_to_markdown
from .schema import Chunk, ChunkMetadata, ClassificationResult, ParsedUpload, Task

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ClassificationResult",
    "ParsedUpload",
    "Task",
    "InvalidChunkingConfigError",
    "MalformedInputError",
    "classify_task",
    "normalize_to_markdown",
    "chunk_text",
    "serialize_chunks",
    "parse_chunks",
]
