"""Tests for the search subpackage: filter builder, citation extraction and the query client."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

from conftest import make_response, retrieved_chunk, support, web_chunk
from filesearch.exceptions import RemoteError, ValidationError
from filesearch.search.citations import (
    build_metadata_filter,
    extract_citations,
    extract_grounding_chunks,
    extract_text,
)
from filesearch.search.client import FileSearchQueryClient, build_file_search_tool

STORE = "fileSearchStores/abc"


# ---------------------------------------------------------------------------
# build_metadata_filter tests
# ---------------------------------------------------------------------------


class TestBuildMetadataFilter:
    def test_single_string(self):
        assert build_metadata_filter(["category:technical"]) == 'category="technical"'

    def test_single_numeric(self):
        assert build_metadata_filter(["pages:5"]) == "pages=5"

    def test_combined(self):
        result = build_metadata_filter(["category:technical", "pages:5"])
        assert result == 'category="technical" AND pages=5'

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("year:>=2020", "year>=2020"),
            ("year:>2020", "year>2020"),
            ("year:<2020", "year<2020"),
            ("year:<=2020", "year<=2020"),
            ("lang:!=en", "lang!=en"),
        ],
    )
    def test_comparisons(self, raw, expected):
        assert build_metadata_filter([raw]) == expected

    def test_quotes_escaped(self):
        assert build_metadata_filter(['title:say "hi"']) == 'title="say \\"hi\\""'

    def test_empty(self):
        assert build_metadata_filter([]) is None
        assert build_metadata_filter(["novalue:", ":nokey"]) is None


# ---------------------------------------------------------------------------
# Citation extraction
# ---------------------------------------------------------------------------


class TestExtractCitations:
    def test_none_metadata(self):
        assert extract_citations(None) == []

    def test_retrieved_context_only(self):
        gm = SimpleNamespace(
            grounding_chunks=[
                retrieved_chunk(title="handbook.pdf", uri="files/1", text="Refunds within 30 days"),
                web_chunk(title="example.com", uri="https://example.com"),
                retrieved_chunk(),
            ],
            grounding_supports=[
                support([0, 1], [0.9, 0.5]),
                support([0], [0.7]),
            ],
        )
        citations = extract_citations(gm)

        assert [c.index for c in citations] == [1, 3]
        first, second = citations
        assert first.title == "handbook.pdf"
        assert first.uri == "files/1"
        assert first.text == "Refunds within 30 days"
        assert first.confidence == pytest.approx(0.8)
        assert second.title == "Unknown"
        assert second.uri == ""
        assert second.text == ""
        assert second.confidence == 0.0

    def test_grounding_chunks_keep_web(self):
        gm = SimpleNamespace(
            grounding_chunks=[web_chunk(title="w"), retrieved_chunk(title="r")],
            grounding_supports=None,
        )
        kinds = [c.kind for c in extract_grounding_chunks(gm)]
        assert kinds == ["web", "retrieved_context"]

    def test_extract_text_without_candidates(self):
        assert extract_text(make_response(candidates=False)) == ""
        assert extract_text(make_response(text=None)) == ""


# ---------------------------------------------------------------------------
# Query client
# ---------------------------------------------------------------------------


class TestQueryClient:
    async def test_query_builds_file_search_tool(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.return_value = make_response(
            text="Refunds are accepted within 30 days.",
            chunks=[retrieved_chunk(title="handbook.pdf", text="30 days")],
            supports=[support([0], [0.95], text="Refunds are accepted", start=0, end=20)],
        )
        client = FileSearchQueryClient(mock_genai_client, default_model="gemini-2.5-flash")

        result = await client.query([STORE], "What is the refund policy?", metadata_filter='category="policy"')

        assert result.text == "Refunds are accepted within 30 days."
        assert result.model == "gemini-2.5-flash"
        assert len(result.citations) == 1
        assert result.citations[0].confidence == pytest.approx(0.95)
        assert result.grounding_supports[0].segment_text == "Refunds are accepted"
        assert result.grounding_supports[0].grounding_chunk_indices == (0,)

        call = mock_genai_client.aio.models.generate_content.await_args
        assert call.kwargs["model"] == "gemini-2.5-flash"
        assert call.kwargs["contents"] == "What is the refund policy?"
        file_search = call.kwargs["config"].tools[0].file_search
        assert file_search.file_search_store_names == [STORE]
        assert file_search.metadata_filter == 'category="policy"'

    async def test_no_candidates(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.return_value = make_response(candidates=False)
        client = FileSearchQueryClient(mock_genai_client)

        result = await client.query([STORE], "hello", model="gemini-2.5-pro")

        assert result.text == ""
        assert result.citations == []
        assert result.model == "gemini-2.5-pro"

    @pytest.mark.parametrize("stores,message", [([], "hi"), ([""], "hi"), ([STORE], "  ")])
    async def test_validation(self, mock_genai_client, stores, message):
        client = FileSearchQueryClient(mock_genai_client)
        with pytest.raises(ValidationError):
            await client.query(stores, message)
        mock_genai_client.aio.models.generate_content.assert_not_awaited()

    async def test_provider_error(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.side_effect = genai_errors.ClientError(
            400, {"error": {"code": 400, "message": "bad store", "status": "INVALID_ARGUMENT"}}, None
        )
        client = FileSearchQueryClient(mock_genai_client)

        with pytest.raises(RemoteError) as excinfo:
            await client.query([STORE], "hi")

        assert str(excinfo.value).startswith("RAG chat failed")
        assert excinfo.value.status_code == 400

    async def test_single_store_name_string(self, mock_genai_client):
        mock_genai_client.aio.models.generate_content.return_value = make_response(text="ok")
        client = FileSearchQueryClient(mock_genai_client)

        await client.query(STORE, "hi")

        config = mock_genai_client.aio.models.generate_content.await_args.kwargs["config"]
        assert config.tools[0].file_search.file_search_store_names == [STORE]

    def test_tool_with_single_store_string(self):
        tool = build_file_search_tool(STORE)
        assert tool.file_search.file_search_store_names == [STORE]

    def test_tool_without_filter(self):
        tool = build_file_search_tool([STORE, "fileSearchStores/def"])
        assert tool.file_search.file_search_store_names == [STORE, "fileSearchStores/def"]
        assert tool.file_search.metadata_filter is None
