"""CLI tests via Typer's CliRunner. Network calls are patched out."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from filesearch.cli import app
from filesearch.exceptions import RemoteError
from filesearch.models import Operation, QueryResult, Store

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_real_keyring(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)
    with patch("filesearch.config.keyring.get_password", return_value="test-key-123456"):
        yield


@pytest.fixture
def fake_client():
    client = MagicMock()
    client.close = AsyncMock(return_value=None)
    client.genai_client = MagicMock()
    with patch("filesearch.cli.FileSearchClient.from_api_key", return_value=client):
        yield client


class TestCatalogue:
    def test_models(self):
        result = runner.invoke(app, ["models"])
        assert result.exit_code == 0
        assert "gemini-2.5-flash" in result.output
        assert "(default)" in result.output


class TestStores:
    def test_list(self, fake_client):
        fake_client.list_stores = AsyncMock(
            return_value=[Store(name="fileSearchStores/abc", display_name="Docs")]
        )
        result = runner.invoke(app, ["stores", "list"])
        assert result.exit_code == 0
        assert "fileSearchStores/abc" in result.output
        fake_client.close.assert_awaited_once()

    def test_get_missing(self, fake_client):
        fake_client.get_store = AsyncMock(return_value=None)
        result = runner.invoke(app, ["stores", "get", "fileSearchStores/gone"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_remote_error_exits_1(self, fake_client):
        fake_client.list_stores = AsyncMock(side_effect=RemoteError("Failed to list stores: denied"))
        result = runner.invoke(app, ["stores", "list"])
        assert result.exit_code == 1
        assert "Failed to list stores" in result.output
        fake_client.close.assert_awaited_once()

    def test_delete_with_yes(self, fake_client):
        fake_client.delete_store = AsyncMock(return_value=None)
        result = runner.invoke(app, ["stores", "delete", "fileSearchStores/abc", "--yes"])
        assert result.exit_code == 0
        fake_client.delete_store.assert_awaited_once_with("fileSearchStores/abc")

    def test_delete_aborted(self, fake_client):
        fake_client.delete_store = AsyncMock(return_value=None)
        result = runner.invoke(app, ["stores", "delete", "fileSearchStores/abc"], input="n\n")
        assert result.exit_code != 0
        fake_client.delete_store.assert_not_awaited()


class TestOperation:
    def test_status_failed(self, fake_client):
        fake_client.get_operation_status = AsyncMock(
            return_value=Operation(name="ops/1", done=True, error="bad file")
        )
        result = runner.invoke(app, ["operation", "status", "ops/1"])
        assert result.exit_code == 0
        assert "bad file" in result.output


class TestQuery:
    def test_query_with_filter(self, fake_client):
        with patch(
            "filesearch.search.client.FileSearchQueryClient.query",
            new=AsyncMock(return_value=QueryResult(text="30 days.", model="gemini-2.5-flash")),
        ) as query:
            result = runner.invoke(
                app,
                ["query", "refund policy?", "-s", "fileSearchStores/abc", "-f", "pages:>=5"],
            )
        assert result.exit_code == 0, result.output
        assert "30 days." in result.output
        assert "pages>=5" in result.output
        query.assert_awaited_once_with(
            ["fileSearchStores/abc"], "refund policy?", model=None, metadata_filter="pages>=5"
        )


class TestApiKey:
    def test_get_api_key_masked(self):
        result = runner.invoke(app, ["config", "get-api-key"])
        assert result.exit_code == 0
        assert "test-key" in result.output
        assert "test-key-123456" not in result.output

    def test_set_api_key_empty(self):
        result = runner.invoke(app, ["config", "set-api-key", "  "])
        assert result.exit_code == 1

    def test_set_api_key(self):
        with patch("filesearch.cli.keyring.set_password") as set_password:
            result = runner.invoke(app, ["config", "set-api-key", "abc"])
        assert result.exit_code == 0
        set_password.assert_called_once_with("filesearch-gemini", "api_key", "abc")
