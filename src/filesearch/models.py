"""Data models and enums for the File Search proxy."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class DocumentState(str, Enum):
    """Processing state of a document inside a File Search store."""

    ACTIVE = "active"
    PENDING = "pending"
    FAILED = "failed"
    UNKNOWN = "unknown"


@dataclass
class Store:
    """A File Search store. Counters are eventually consistent."""

    name: str  # e.g. fileSearchStores/abc123
    display_name: str | None = None
    active_documents_count: int = 0
    pending_documents_count: int = 0
    failed_documents_count: int = 0
    size_bytes: int = 0
    create_time: datetime | None = None
    update_time: datetime | None = None


@dataclass
class Document:
    """A document imported into a store."""

    name: str  # e.g. fileSearchStores/abc123/documents/def456
    display_name: str | None = None
    state: DocumentState = DocumentState.UNKNOWN
    size_bytes: int = 0
    mime_type: str | None = None
    create_time: datetime | None = None
    update_time: datetime | None = None
    custom_metadata: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class Operation:
    """Status of a long-running import operation."""

    name: str
    done: bool = False
    error: str | None = None
    error_detail: dict[str, Any] | None = None
    response: dict[str, Any] | None = None

    @property
    def succeeded(self) -> bool:
        return self.done and self.error is None


@dataclass
class UploadResult:
    """Handles returned by a two-phase upload."""

    operation_name: str
    file_name: str  # transient Files API resource, 48hr TTL


@dataclass(frozen=True)
class GroundingChunk:
    """A web or retrieved-context reference from grounding metadata."""

    kind: str  # "retrieved_context" or "web"
    uri: str | None = None
    title: str | None = None
    text: str | None = None

    @property
    def is_retrieved_context(self) -> bool:
        return self.kind == "retrieved_context"


@dataclass(frozen=True)
class GroundingSupport:
    """Maps a segment of the answer to the chunks that support it."""

    segment_text: str | None = None
    start_index: int | None = None
    end_index: int | None = None
    grounding_chunk_indices: tuple[int, ...] = ()
    confidence_scores: tuple[float, ...] = ()


@dataclass
class Citation:
    """A retrieved-context citation as shown to the user."""

    index: int  # 1-based position in grounding_chunks
    title: str
    uri: str
    text: str
    confidence: float = 0.0


@dataclass
class QueryResult:
    """Grounded answer from a File Search query."""

    text: str
    model: str
    citations: list[Citation] = field(default_factory=list)
    grounding_chunks: list[GroundingChunk] = field(default_factory=list)
    grounding_supports: list[GroundingSupport] = field(default_factory=list)


@dataclass
class ToolResult:
    """Result object returned by the file search tool for every call."""

    answer: str
    model: str | None
    citations: list[Citation]
    has_results: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if d["error"] is None:
            del d["error"]
        return d


@dataclass(frozen=True)
class ChunkingPreset:
    """White-space chunking parameters applied at import time."""

    name: str
    max_tokens_per_chunk: int
    max_overlap_tokens: int
    description: str = ""

    def to_api(self) -> dict[str, Any]:
        return {
            "white_space_config": {
                "max_tokens_per_chunk": self.max_tokens_per_chunk,
                "max_overlap_tokens": self.max_overlap_tokens,
            }
        }


@dataclass(frozen=True)
class GeminiModel:
    """A Gemini model that supports the File Search tool."""

    value: str
    label: str
    description: str
    tier: str = "stable"
    is_default: bool = False
