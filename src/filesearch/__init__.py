"""Gemini File Search proxy: stores, uploads, operation polling and grounded queries."""

__version__ = "0.1.0"

from filesearch.models import (
    Citation,
    Document,
    DocumentState,
    Operation,
    QueryResult,
    Store,
    ToolResult,
    UploadResult,
)

__all__ = [
    "Citation",
    "Document",
    "DocumentState",
    "Operation",
    "QueryResult",
    "Store",
    "ToolResult",
    "UploadResult",
    "__version__",
]
