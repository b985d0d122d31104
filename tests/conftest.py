"""Shared pytest fixtures for File Search proxy tests.

Provides a fake ``genai.Client`` whose ``aio`` surface is made of
AsyncMocks, plus small builders for provider-shaped responses. No test
talks to the real Gemini API.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from filesearch.client import FileSearchClient
from filesearch.config import FileSearchConfig


@pytest.fixture
def mock_genai_client():
    """Mock Google GenAI client exposing only the async surface we call.

    Defaults: empty pages for list calls, ``files/abc123`` for uploads,
    ``fileSearchStores/abc/operations/op1`` for imports.
    """
    mock = MagicMock()
    aio = mock.aio

    aio.file_search_stores.create = AsyncMock()
    aio.file_search_stores.get = AsyncMock()
    aio.file_search_stores.delete = AsyncMock(return_value=None)
    aio.file_search_stores.list = AsyncMock(return_value=SimpleNamespace(page=[]))
    aio.file_search_stores.import_file = AsyncMock(
        return_value=SimpleNamespace(name="fileSearchStores/abc/operations/op1")
    )
    aio.file_search_stores.documents.list = AsyncMock(return_value=SimpleNamespace(page=[]))
    aio.file_search_stores.documents.delete = AsyncMock(return_value=None)

    aio.files.upload = AsyncMock(return_value=SimpleNamespace(name="files/abc123"))
    aio.files.delete = AsyncMock(return_value=None)

    aio.operations.get = AsyncMock()
    aio.models.generate_content = AsyncMock()
    aio.aclose = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def file_search_client(mock_genai_client) -> FileSearchClient:
    return FileSearchClient(mock_genai_client)


@pytest.fixture
def test_config() -> FileSearchConfig:
    return FileSearchConfig(api_key="test-key", poll_interval_seconds=0.0, poll_max_attempts=5)


def make_operation(name: str = "fileSearchStores/abc/operations/op1", done: bool = False, error=None):
    """Provider-shaped operation object."""
    return SimpleNamespace(name=name, done=done, error=error, response=None)


def make_response(text: str | None = None, chunks=None, supports=None, candidates=True):
    """Provider-shaped ``GenerateContentResponse`` with optional grounding."""
    if not candidates:
        return SimpleNamespace(candidates=None)
    parts = [SimpleNamespace(text=text)] if text is not None else []
    grounding = None
    if chunks is not None or supports is not None:
        grounding = SimpleNamespace(grounding_chunks=chunks, grounding_supports=supports)
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=parts),
        grounding_metadata=grounding,
    )
    return SimpleNamespace(candidates=[candidate])


def retrieved_chunk(title=None, uri=None, text=None):
    return SimpleNamespace(
        retrieved_context=SimpleNamespace(title=title, uri=uri, text=text),
        web=None,
    )


def web_chunk(title=None, uri=None):
    return SimpleNamespace(retrieved_context=None, web=SimpleNamespace(title=title, uri=uri))


def support(indices, scores, text=None, start=None, end=None):
    return SimpleNamespace(
        segment=SimpleNamespace(text=text, start_index=start, end_index=end),
        grounding_chunk_indices=indices,
        confidence_scores=scores,
    )
