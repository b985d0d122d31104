"""File search as a callable tool for chat agents.

The tool contract is deliberately small: a name, a description, a JSON
schema with one required ``query`` string, and an ``execute`` coroutine
that always returns a :class:`ToolResult`. Agent frameworks call it once
per tool invocation and expect a result object back, so ``execute``
never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from google.genai import types

from filesearch.exceptions import FileSearchError
from filesearch.models import ToolResult
from filesearch.search.client import FileSearchQueryClient, normalize_store_names

logger = logging.getLogger(__name__)

TOOL_NAME = "file_search"

TOOL_DESCRIPTION = (
    "Search and retrieve relevant information from documents stored in the "
    "file search store. Use this tool when the user asks questions that might "
    "be answered by the uploaded documents. The tool will search through the "
    "documents and return relevant passages."
)

GENERIC_ERROR = "Failed to search documents"


class FileSearchTool:
    """Wraps :meth:`FileSearchQueryClient.query` behind a tool contract."""

    name = TOOL_NAME
    description = TOOL_DESCRIPTION
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query to find relevant information in documents",
            }
        },
        "required": ["query"],
    }

    def __init__(
        self,
        query_client: FileSearchQueryClient,
        store_names: str | Sequence[str],
        model: str | None = None,
        metadata_filter: str | None = None,
    ) -> None:
        self._query_client = query_client
        self.store_names = normalize_store_names(store_names)
        self.model = model
        self.metadata_filter = metadata_filter

    async def execute(self, query: str) -> ToolResult:
        try:
            result = await self._query_client.query(
                self.store_names,
                query,
                model=self.model,
                metadata_filter=self.metadata_filter,
            )
        except FileSearchError as exc:
            logger.error("File search tool failed: %s", exc)
            return ToolResult(
                answer="", model=self.model, citations=[], has_results=False, error=str(exc)
            )
        except Exception:
            logger.exception("File search tool failed unexpectedly")
            return ToolResult(
                answer="", model=self.model, citations=[], has_results=False, error=GENERIC_ERROR
            )

        return ToolResult(
            answer=result.text,
            model=result.model,
            citations=result.citations,
            has_results=len(result.text) > 0,
        )

    def to_function_declaration(self) -> types.FunctionDeclaration:
        """Describe the tool for Gemini function calling."""
        return types.FunctionDeclaration(
            name=self.name,
            description=self.description,
            parameters_json_schema=self.parameters,
        )

    def as_genai_tool(self) -> types.Tool:
        return types.Tool(function_declarations=[self.to_function_declaration()])

    async def handle_function_call(self, call: types.FunctionCall) -> types.Part:
        """Execute a model-issued function call and wrap the result.

        Calls for other tool names, or without a ``query`` argument, get
        an error response instead of an exception.
        """
        if call.name != self.name:
            result = ToolResult(
                answer="",
                model=self.model,
                citations=[],
                has_results=False,
                error=f"Unknown tool '{call.name}'",
            )
        else:
            query = (call.args or {}).get("query")
            if not isinstance(query, str) or not query.strip():
                result = ToolResult(
                    answer="",
                    model=self.model,
                    citations=[],
                    has_results=False,
                    error="query is required",
                )
            else:
                result = await self.execute(query)

        return types.Part.from_function_response(name=call.name, response=result.to_dict())
