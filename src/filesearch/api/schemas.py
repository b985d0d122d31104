"""Pydantic models for the File Search HTTP API.

Field names are snake_case in Python and camelCase on the wire, which is
what the browser UI sends and expects.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StoreModel(CamelModel):
    name: str = Field(..., description="Store resource name, e.g. fileSearchStores/abc123")
    display_name: Optional[str] = None
    active_documents_count: int = 0
    pending_documents_count: int = 0
    failed_documents_count: int = 0
    size_bytes: int = 0
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None


class DocumentModel(CamelModel):
    name: str
    display_name: Optional[str] = None
    state: str = Field(..., description="active, pending, failed or unknown")
    size_bytes: int = 0
    mime_type: Optional[str] = None
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    custom_metadata: List[dict[str, Any]] = Field(default_factory=list)


class OperationModel(CamelModel):
    name: str
    done: bool
    error: Optional[dict[str, Any]] = Field(
        default=None,
        description="Provider error (code, details) plus a 'message' when the operation failed",
    )
    response: Optional[dict[str, Any]] = None


class CreateStoreRequest(CamelModel):
    display_name: str = ""


class StoreResponse(CamelModel):
    store: StoreModel


class StoreListResponse(CamelModel):
    stores: List[StoreModel]


class DocumentListResponse(CamelModel):
    documents: List[DocumentModel]


class UploadResponse(CamelModel):
    operation_name: str
    file_name: str


class OperationResponse(CamelModel):
    operation: OperationModel


class SuccessResponse(CamelModel):
    success: bool = True


class QueryRequest(CamelModel):
    store_names: List[str] = Field(default_factory=list, description="Stores to search")
    message: str = ""
    model: Optional[str] = None
    metadata_filter: Optional[str] = Field(
        default=None, description="AIP-160 filter over custom metadata, passed through as-is"
    )


class CitationModel(CamelModel):
    index: int
    title: str
    uri: str
    text: str
    confidence: float


class GroundingChunkModel(CamelModel):
    kind: str
    uri: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None


class GroundingSupportModel(CamelModel):
    segment_text: Optional[str] = None
    start_index: Optional[int] = None
    end_index: Optional[int] = None
    grounding_chunk_indices: List[int] = Field(default_factory=list)
    confidence_scores: List[float] = Field(default_factory=list)


class QueryResponse(CamelModel):
    text: str
    model: str
    citations: List[CitationModel]
    grounding_chunks: List[GroundingChunkModel]
    grounding_supports: List[GroundingSupportModel]


class GeminiModelModel(CamelModel):
    value: str
    label: str
    description: str
    tier: str
    is_default: bool


class ModelListResponse(CamelModel):
    models: List[GeminiModelModel]
    default_model: str


class ChunkingPresetModel(CamelModel):
    name: str
    max_tokens_per_chunk: int
    max_overlap_tokens: int
    description: str


class ChunkingPresetListResponse(CamelModel):
    presets: List[ChunkingPresetModel]
