"""Upload pipeline for the Gemini File Search API.

Public API
----------
.. autoclass:: UploadOrchestrator
.. autoclass:: OperationPoller
.. autofunction:: normalize_custom_metadata
"""

from filesearch.upload.metadata import normalize_custom_metadata
from filesearch.upload.orchestrator import (
    UploadOrchestrator,
    cleanup_temp_file,
    resolve_chunking,
    staged_file,
)
from filesearch.upload.poller import OperationPoller

__all__ = [
    "OperationPoller",
    "UploadOrchestrator",
    "cleanup_temp_file",
    "normalize_custom_metadata",
    "resolve_chunking",
    "staged_file",
]
