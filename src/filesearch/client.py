"""Gemini File Search API client wrapper.

Typed access to stores, documents, raw files and long-running
operations. Every call goes through ``client.aio`` so a serving process
never blocks its event loop on the provider.

The ``genai.Client`` is injected rather than created per call, so tests
can pass a fake and a server can share one connection pool::

    client = FileSearchClient(genai.Client(api_key="..."))
    store = await client.create_store("Handbooks")
    docs = await client.list_documents(store.name)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from filesearch.constants import DEFAULT_PAGE_SIZE, MAX_DISPLAY_NAME_LENGTH
from filesearch.exceptions import RemoteError, ValidationError
from filesearch.models import Document, DocumentState, Operation, Store

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------


def _as_int(value: Any) -> int:
    # The REST surface serialises int64 fields as strings.
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_dict(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump(exclude_none=True, mode="json")
    return {"value": value}


def store_from_api(raw: Any) -> Store:
    return Store(
        name=raw.name,
        display_name=getattr(raw, "display_name", None),
        active_documents_count=_as_int(getattr(raw, "active_documents_count", None)),
        pending_documents_count=_as_int(getattr(raw, "pending_documents_count", None)),
        failed_documents_count=_as_int(getattr(raw, "failed_documents_count", None)),
        size_bytes=_as_int(getattr(raw, "size_bytes", None)),
        create_time=getattr(raw, "create_time", None),
        update_time=getattr(raw, "update_time", None),
    )


def document_state_from_api(state: Any) -> DocumentState:
    """Map ``STATE_ACTIVE``-style provider values onto :class:`DocumentState`."""
    if state is None:
        return DocumentState.UNKNOWN
    raw = str(getattr(state, "value", state)).upper()
    if raw.startswith("STATE_"):
        raw = raw[len("STATE_"):]
    try:
        return DocumentState(raw.lower())
    except ValueError:
        return DocumentState.UNKNOWN


def _metadata_from_api(entries: Any) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    for entry in entries or []:
        item: dict[str, Any] = {"key": getattr(entry, "key", None)}
        string_value = getattr(entry, "string_value", None)
        numeric_value = getattr(entry, "numeric_value", None)
        string_list = getattr(entry, "string_list_value", None)
        if string_value is not None:
            item["string_value"] = string_value
        elif numeric_value is not None:
            item["numeric_value"] = numeric_value
        elif string_list is not None:
            item["string_list_value"] = list(getattr(string_list, "values", None) or [])
        result.append(item)
    return result


def document_from_api(raw: Any) -> Document:
    return Document(
        name=raw.name,
        display_name=getattr(raw, "display_name", None),
        state=document_state_from_api(getattr(raw, "state", None)),
        size_bytes=_as_int(getattr(raw, "size_bytes", None)),
        mime_type=getattr(raw, "mime_type", None),
        create_time=getattr(raw, "create_time", None),
        update_time=getattr(raw, "update_time", None),
        custom_metadata=_metadata_from_api(getattr(raw, "custom_metadata", None)),
    )


def _error_message(error: dict[str, Any]) -> str:
    message = error.get("message")
    if isinstance(message, str) and message:
        return message
    return json.dumps(error, sort_keys=True, default=str)


def operation_from_api(raw: Any, fallback_name: str = "") -> Operation:
    """Build an :class:`Operation`; an absent error field means no error."""
    error = _as_dict(getattr(raw, "error", None))
    return Operation(
        name=getattr(raw, "name", None) or fallback_name,
        done=bool(getattr(raw, "done", False)),
        error=_error_message(error) if error else None,
        error_detail=error or None,
        response=_as_dict(getattr(raw, "response", None)),
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class FileSearchClient:
    """Async wrapper around the google-genai SDK for File Search resources."""

    def __init__(self, client: genai.Client) -> None:
        self._client = client

    @classmethod
    def from_api_key(cls, api_key: str) -> FileSearchClient:
        return cls(genai.Client(api_key=api_key))

    @property
    def genai_client(self) -> genai.Client:
        """The underlying SDK client, shared with the query adapter."""
        return self._client

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    async def create_store(self, display_name: str) -> Store:
        """Create a new File Search store.

        Args:
            display_name: Human-readable store name.

        Returns:
            The created :class:`Store`.

        Raises:
            ValidationError: If *display_name* is blank.
            RemoteError: If the provider rejects the request.
        """
        if not display_name or not display_name.strip():
            raise ValidationError("displayName is required")

        raw = await self._safe_call(
            "create store",
            self._client.aio.file_search_stores.create,
            config={"display_name": display_name},
        )
        store = store_from_api(raw)
        logger.info("Created store %s (%s)", store.name, display_name)
        return store

    async def list_stores(self, page_size: int = DEFAULT_PAGE_SIZE) -> list[Store]:
        """Return the first page of stores; an empty account yields ``[]``."""
        _check_page_size(page_size)
        pager = await self._safe_call(
            "list stores",
            self._client.aio.file_search_stores.list,
            config={"page_size": page_size},
        )
        return [store_from_api(s) for s in (pager.page or [])]

    async def get_store(self, name: str) -> Store | None:
        """Fetch a store by resource name.

        Returns ``None`` when the provider reports 404. Any other failure
        still raises :class:`RemoteError`, so callers can tell "does not
        exist" from "could not ask".
        """
        _check_name(name, "store name")
        try:
            raw = await self._safe_call(
                "get store",
                self._client.aio.file_search_stores.get,
                name=name,
            )
        except RemoteError as exc:
            if exc.is_not_found:
                logger.debug("Store %s not found", name)
                return None
            raise
        return store_from_api(raw)

    async def delete_store(self, name: str) -> None:
        """Delete a store and, via ``force``, every document inside it."""
        _check_name(name, "store name")
        await self._safe_call(
            "delete store",
            self._client.aio.file_search_stores.delete,
            name=name,
            config={"force": True},
        )
        logger.info("Deleted store %s", name)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def list_documents(
        self, store_name: str, page_size: int = DEFAULT_PAGE_SIZE
    ) -> list[Document]:
        _check_name(store_name, "store name")
        _check_page_size(page_size)
        pager = await self._safe_call(
            "list documents",
            self._client.aio.file_search_stores.documents.list,
            parent=store_name,
            config={"page_size": page_size},
        )
        documents = [document_from_api(d) for d in (pager.page or [])]
        logger.debug("Listed %d documents in store %s", len(documents), store_name)
        return documents

    async def delete_document(self, name: str) -> None:
        """Delete an indexed document together with its chunks."""
        _check_name(name, "document name")
        await self._safe_call(
            "delete document",
            self._client.aio.file_search_stores.documents.delete,
            name=name,
            config=genai_types.DeleteDocumentConfig(force=True),
        )
        logger.info("Deleted store document %s", name)

    # ------------------------------------------------------------------
    # Raw files and import
    # ------------------------------------------------------------------

    async def upload_file(
        self, file_path: str, display_name: str, mime_type: str | None = None
    ) -> str:
        """Upload a local file to the Files API (temporary, 48hr TTL).

        Returns:
            The transient file resource name, e.g. ``files/abc123``.
        """
        config: dict[str, Any] = {"display_name": display_name[:MAX_DISPLAY_NAME_LENGTH]}
        if mime_type:
            config["mime_type"] = mime_type
        raw = await self._safe_call(
            "upload file",
            self._client.aio.files.upload,
            file=file_path,
            config=config,
        )
        file_name = getattr(raw, "name", None)
        if not file_name:
            raise RemoteError("Failed to upload file: no file name returned from upload")
        logger.debug("Uploaded %s -> %s", display_name, file_name)
        return file_name

    async def import_file(
        self,
        store_name: str,
        file_name: str,
        custom_metadata: list[dict[str, Any]] | None = None,
        chunking_config: dict[str, Any] | None = None,
    ) -> str:
        """Import an uploaded file into a store.

        Returns:
            The name of the long-running import operation.
        """
        config: dict[str, Any] = {}
        if custom_metadata:
            config["custom_metadata"] = custom_metadata
        if chunking_config:
            config["chunking_config"] = chunking_config
        raw = await self._safe_call(
            "import file to store",
            self._client.aio.file_search_stores.import_file,
            file_search_store_name=store_name,
            file_name=file_name,
            config=config or None,
        )
        operation_name = getattr(raw, "name", None)
        if not operation_name:
            raise RemoteError("Failed to import file to store: no operation name returned")
        logger.info("Imported %s into store %s (%s)", file_name, store_name, operation_name)
        return operation_name

    async def delete_file(self, file_name: str) -> None:
        """Delete a transient file from the Files API.

        This does not touch indexed documents; use :meth:`delete_document`
        for those.
        """
        await self._safe_call(
            "delete file",
            self._client.aio.files.delete,
            name=file_name,
        )
        logger.info("Deleted file %s", file_name)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def get_operation_status(self, name: str) -> Operation:
        _check_name(name, "operation name")
        raw = await self._safe_call(
            "get operation status",
            self._client.aio.operations.get,
            genai_types.ImportFileOperation(name=name),
        )
        return operation_from_api(raw, fallback_name=name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying genai client if it supports closing."""
        aclose = getattr(self._client.aio, "aclose", None)
        if callable(aclose):
            result = aclose()
            if result is not None and hasattr(result, "__await__"):
                await result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _safe_call(
        self, action: str, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        """Call *func* and classify provider and transport failures.

        Every failure becomes a :class:`RemoteError` whose message starts
        with ``Failed to <action>``.
        """
        try:
            return await func(*args, **kwargs)
        except genai_errors.APIError as exc:
            logger.debug("Gemini API error during %s: %s %s", action, exc.code, exc.details)
            raise RemoteError(
                f"Failed to {action}: {exc.message or exc.status}",
                status_code=exc.code,
                status=exc.status,
                body=exc.details,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"Failed to {action}: {exc}") from exc


def _check_name(name: str, what: str) -> None:
    if not name or not name.strip():
        raise ValidationError(f"{what} is required")


def _check_page_size(page_size: int) -> None:
    if page_size < 1:
        raise ValidationError(f"page_size must be positive, got {page_size}")
