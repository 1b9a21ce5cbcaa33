from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ClassificationResult:
    """Urgency/importance verdict for one task description."""

    urgent: bool
    important: bool
    rationale: str


@dataclass(slots=True)
class Task:
    """Classified task held by the workspace."""

    id: str
    title: str
    urgent: bool
    important: bool
    rationale: str
    created_at: str
    completed: bool = False

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "urgent": self.urgent,
            "important": self.important,
            "completed": self.completed,
            "rationale": self.rationale,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, record: dict) -> Task:
        return cls(
            id=record["id"],
            title=record["title"],
            urgent=bool(record["urgent"]),
            important=bool(record["important"]),
            rationale=record.get("rationale", ""),
            created_at=record["createdAt"],
            completed=bool(record.get("completed", False)),
        )


@dataclass(slots=True)
class ChunkMetadata:
    """Provenance attached to every compendium chunk."""

    chunk_index: int
    created_at: str
    source: str
    token_estimate: int
    hash: str


@dataclass(slots=True)
class Chunk:
    """Bounded slice of compendium text, the unit of export and import."""

    id: str
    content: str
    metadata: ChunkMetadata

    def to_record(self) -> dict:
        """Return the wire representation (camelCase keys, fixed key order)."""
        return {
            "id": self.id,
            "content": self.content,
            "metadata": {
                "chunkIndex": self.metadata.chunk_index,
                "createdAt": self.metadata.created_at,
                "source": self.metadata.source,
                "tokenEstimate": self.metadata.token_estimate,
                "hash": self.metadata.hash,
            },
        }

    @classmethod
    def from_record(cls, record: dict) -> Chunk:
        """Build a chunk from a complete wire record (no defaults applied)."""
        metadata = record["metadata"]
        return cls(
            id=record["id"],
            content=record["content"],
            metadata=ChunkMetadata(
                chunk_index=metadata["chunkIndex"],
                created_at=metadata["createdAt"],
                source=metadata["source"],
                token_estimate=metadata["tokenEstimate"],
                hash=metadata["hash"],
            ),
        )


@dataclass(slots=True)
class UploadedMetadata:
    """Metadata of an uploaded entry; any field may be missing."""

    chunk_index: int | None = None
    created_at: str | None = None
    source: str | None = None
    token_estimate: int | None = None
    hash: str | None = None


@dataclass(slots=True)
class UploadedChunk:
    """Loosely shaped uploaded entry, completed into a ``Chunk`` on import."""

    id: str | None = None
    content: str | None = None
    metadata: UploadedMetadata = field(default_factory=UploadedMetadata)


@dataclass(slots=True)
class ParsedUpload:
    """Result of parsing an uploaded compendium."""

    content: str
    chunks: list[Chunk]
