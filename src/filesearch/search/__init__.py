"""Search subpackage for querying Gemini File Search stores."""

from filesearch.search.citations import build_metadata_filter, extract_citations
from filesearch.search.client import FileSearchQueryClient, build_file_search_tool
from filesearch.search.tool import FileSearchTool

__all__ = [
    "FileSearchQueryClient",
    "FileSearchTool",
    "build_file_search_tool",
    "build_metadata_filter",
    "extract_citations",
]
