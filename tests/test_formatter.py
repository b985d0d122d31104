"""Tests for Rich display helpers."""

from __future__ import annotations

from rich.console import Console

from filesearch.formatter import (
    display_documents,
    display_query_result,
    format_size,
    score_bar,
    truncate_text,
)
from filesearch.models import Citation, Document, DocumentState, QueryResult


def _console() -> Console:
    return Console(record=True, width=120)


class TestHelpers:
    def test_score_bar(self):
        assert score_bar(0.5) == "━━━━━○○○○○ 50%"
        assert score_bar(1.5) == "━━━━━━━━━━ 100%"
        assert score_bar(-1) == "○○○○○○○○○○ 0%"

    def test_truncate_text(self):
        assert truncate_text("short", 10) == "short"
        assert truncate_text("the quick brown fox jumps", 15) == "the quick..."

    def test_format_size(self):
        assert format_size(512) == "512 B"
        assert format_size(2048) == "2.0 KB"
        assert format_size(3 * 1024 * 1024) == "3.0 MB"


class TestDisplay:
    def test_documents_table(self):
        con = _console()
        display_documents(
            [Document(name="fileSearchStores/abc/documents/d1", display_name="notes.txt", state=DocumentState.PENDING)],
            "fileSearchStores/abc",
            con,
        )
        out = con.export_text()
        assert "notes.txt" in out
        assert "pending" in out

    def test_query_result_with_citations(self):
        con = _console()
        result = QueryResult(
            text="Refunds within 30 days.",
            model="gemini-2.5-flash",
            citations=[Citation(index=1, title="handbook.pdf", uri="", text="30 days", confidence=0.9)],
        )
        display_query_result(result, console=con)
        out = con.export_text()
        assert "Refunds within 30 days." in out
        assert "Sources: [1]" in out
        assert '"handbook.pdf"' in out

    def test_query_result_without_citations(self):
        con = _console()
        display_query_result(QueryResult(text="", model="gemini-2.5-flash"), console=con)
        out = con.export_text()
        assert "(No response text)" in out
        assert "No sources cited." in out
