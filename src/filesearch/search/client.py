"""Gemini File Search query client.

Queries File Search stores via ``generate_content()`` with the
``FileSearch`` tool and shapes the reply into a :class:`QueryResult`.
Queries are not retried; a failure surfaces as :class:`RemoteError`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from filesearch.constants import DEFAULT_MODEL
from filesearch.exceptions import RemoteError, ValidationError
from filesearch.models import QueryResult
from filesearch.search.citations import (
    citations_from_grounding,
    extract_grounding_chunks,
    extract_grounding_supports,
    extract_text,
    first_candidate,
)

logger = logging.getLogger(__name__)


def normalize_store_names(store_names: str | Sequence[str] | None) -> list[str]:
    """Accept one store name or many; blanks are dropped."""
    if store_names is None:
        return []
    if isinstance(store_names, str):
        store_names = [store_names]
    return [s for s in store_names if s]


def build_file_search_tool(
    store_names: str | Sequence[str], metadata_filter: str | None = None
) -> types.Tool:
    """Build a ``FileSearch`` tool clause. The filter is passed through as-is."""
    return types.Tool(
        file_search=types.FileSearch(
            file_search_store_names=normalize_store_names(store_names),
            metadata_filter=metadata_filter or None,
        )
    )


class FileSearchQueryClient:
    """Client for grounded queries against one or more File Search stores.

    Usage::

        search = FileSearchQueryClient(genai.Client(api_key="..."))
        result = await search.query(["fileSearchStores/abc"], "What is our refund policy?")
        for c in result.citations:
            print(c.index, c.title)
    """

    def __init__(self, client: genai.Client, default_model: str = DEFAULT_MODEL) -> None:
        self._client = client
        self.default_model = default_model

    async def query(
        self,
        store_names: str | Sequence[str],
        message: str,
        model: str | None = None,
        metadata_filter: str | None = None,
    ) -> QueryResult:
        """Run one grounded generation request.

        Args:
            store_names: Store resource name, or names, to search; at least one.
            message: User question.
            model: Gemini model; defaults to :attr:`default_model`.
            metadata_filter: Optional AIP-160 filter over custom metadata.

        Returns:
            :class:`QueryResult`. A reply without candidates yields empty
            text and no citations.

        Raises:
            ValidationError: No store given or blank message.
            RemoteError: The provider answered with an error.
        """
        stores = normalize_store_names(store_names)
        if not stores:
            raise ValidationError("At least one store name is required")
        if not message or not message.strip():
            raise ValidationError("message is required")

        model = model or self.default_model
        config = types.GenerateContentConfig(
            tools=[build_file_search_tool(stores, metadata_filter)],
        )

        logger.debug(
            "Querying %s with %s (filter=%s)", ", ".join(stores), model, metadata_filter
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=message,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise RemoteError(
                f"RAG chat failed: {exc.message or exc.status}",
                status_code=exc.code,
                status=exc.status,
                body=exc.details,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"RAG chat failed: {exc}") from exc

        return self._to_result(response, model)

    @staticmethod
    def _to_result(response: Any, model: str) -> QueryResult:
        candidate = first_candidate(response)
        grounding = getattr(candidate, "grounding_metadata", None)
        chunks = extract_grounding_chunks(grounding)
        supports = extract_grounding_supports(grounding)
        return QueryResult(
            text=extract_text(response),
            model=model,
            citations=citations_from_grounding(chunks, supports),
            grounding_chunks=chunks,
            grounding_supports=supports,
        )
