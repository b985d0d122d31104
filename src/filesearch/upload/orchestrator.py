"""Two-phase upload orchestrator.

Implements the upload pattern the File Search API requires for
searchable metadata:

  1. ``files.upload()`` -- creates a temporary File (48hr TTL)
  2. ``file_search_stores.import_file()`` with ``custom_metadata``
     -- returns a long-running operation

The orchestrator returns as soon as step 2 is accepted. Use
:meth:`UploadOrchestrator.upload_and_wait` or
:class:`~filesearch.upload.poller.OperationPoller` to follow ingestion.
Neither step is retried and no idempotency key is sent, so retrying a
failed upload may create duplicate files and import jobs.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import mimetypes
import os
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from filesearch.client import FileSearchClient
from filesearch.constants import CHUNKING_PRESETS
from filesearch.exceptions import RemoteError, ValidationError
from filesearch.models import ChunkingPreset, Operation, UploadResult
from filesearch.upload.metadata import normalize_custom_metadata
from filesearch.upload.poller import OperationPoller

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def resolve_chunking(chunking: str | ChunkingPreset | None) -> dict[str, Any] | None:
    """Turn a preset name or :class:`ChunkingPreset` into an API chunking config."""
    if chunking is None or chunking == "":
        return None
    if isinstance(chunking, ChunkingPreset):
        return chunking.to_api()
    preset = CHUNKING_PRESETS.get(chunking)
    if preset is None:
        raise ValidationError(
            f"Unknown chunking preset '{chunking}'. "
            f"Valid presets: {', '.join(CHUNKING_PRESETS)}"
        )
    return preset.to_api()


def cleanup_temp_file(path: str | None) -> None:
    """Safely remove a temporary file.

    Handles ``None`` paths and missing files gracefully.
    """
    if path is None:
        return
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Failed to clean up temp file: %s", path, exc_info=True)


def _write_temp_file(data: bytes, suffix: str) -> str:
    tmp = tempfile.NamedTemporaryFile(mode="wb", suffix=suffix, delete=False)
    try:
        with tmp:
            tmp.write(data)
    except OSError:
        cleanup_temp_file(tmp.name)
        raise
    return tmp.name


@contextlib.asynccontextmanager
async def staged_file(data: bytes, display_name: str) -> AsyncIterator[str]:
    """Write *data* to a named temp file and remove it on exit.

    The write runs in a worker thread so a large upload does not stall
    the event loop. The suffix is taken from *display_name* so the SDK
    can guess the MIME type from the path when none was given.
    """
    path = await asyncio.to_thread(_write_temp_file, data, Path(display_name).suffix)
    try:
        yield path
    finally:
        cleanup_temp_file(path)


class UploadOrchestrator:
    """Coordinates raw upload, import and (optionally) polling.

    Usage::

        orchestrator = UploadOrchestrator(FileSearchClient(genai_client))
        result = await orchestrator.upload_document(
            "fileSearchStores/abc",
            b"hello world",
            "notes.txt",
            custom_metadata={"category": "technical", "pages": 5},
        )
        print(result.operation_name)
    """

    def __init__(
        self,
        client: FileSearchClient,
        poller: OperationPoller | None = None,
        default_chunking: str | None = None,
    ) -> None:
        self._client = client
        self._poller = poller or OperationPoller(client)
        self._default_chunking = default_chunking

    async def upload_document(
        self,
        store_name: str,
        file_bytes: bytes,
        display_name: str,
        mime_type: str | None = None,
        custom_metadata: Any = None,
        chunking: str | ChunkingPreset | None = None,
    ) -> UploadResult:
        """Upload *file_bytes* and import them into *store_name*.

        Args:
            store_name: Target store resource name.
            file_bytes: File content; must not be empty.
            display_name: Name shown in citations.
            mime_type: Content type; guessed from *display_name* if omitted.
            custom_metadata: Mapping, structured list or JSON string. See
                :func:`~filesearch.upload.metadata.normalize_custom_metadata`;
                malformed values are ignored.
            chunking: Chunking preset name or :class:`ChunkingPreset`.

        Returns:
            :class:`UploadResult` with the import operation name.

        Raises:
            ValidationError: Empty payload, missing store or display name,
                unknown chunking preset. Raised before any request.
            RemoteError: Upload or import rejected by the provider.
        """
        if not file_bytes:
            raise ValidationError("Uploaded file is empty or missing.")
        if not store_name:
            raise ValidationError("storeName is required")
        if not display_name:
            raise ValidationError("displayName is required")

        chunking_config = resolve_chunking(
            chunking if chunking is not None else self._default_chunking
        )
        metadata = normalize_custom_metadata(custom_metadata)
        content_type = (
            mime_type or mimetypes.guess_type(display_name)[0] or DEFAULT_MIME_TYPE
        )

        async with staged_file(bytes(file_bytes), display_name) as path:
            file_name = await self._client.upload_file(path, display_name, content_type)

        try:
            operation_name = await self._client.import_file(
                store_name,
                file_name,
                custom_metadata=metadata,
                chunking_config=chunking_config,
            )
        except RemoteError:
            await self._discard_transient_file(file_name)
            raise

        logger.info(
            "Uploaded %s (%d bytes, %d metadata fields) to %s -> %s",
            display_name,
            len(file_bytes),
            len(metadata or []),
            store_name,
            operation_name,
        )
        return UploadResult(operation_name=operation_name, file_name=file_name)

    async def upload_and_wait(
        self,
        store_name: str,
        file_bytes: bytes,
        display_name: str,
        mime_type: str | None = None,
        custom_metadata: Any = None,
        chunking: str | ChunkingPreset | None = None,
        interval: float | None = None,
        max_attempts: int | None = None,
    ) -> Operation:
        """Upload, then poll the import operation to a terminal state."""
        result = await self.upload_document(
            store_name,
            file_bytes,
            display_name,
            mime_type=mime_type,
            custom_metadata=custom_metadata,
            chunking=chunking,
        )
        return await self._poller.poll_until_done(
            result.operation_name, interval=interval, max_attempts=max_attempts
        )

    async def _discard_transient_file(self, file_name: str) -> None:
        """Best-effort removal of an uploaded file whose import failed."""
        try:
            await self._client.delete_file(file_name)
        except RemoteError as exc:
            logger.warning(
                "Import failed and transient file %s could not be deleted "
                "(expires after 48h): %s",
                file_name,
                exc,
            )
