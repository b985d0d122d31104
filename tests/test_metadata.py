"""Tests for custom metadata normalization."""

from __future__ import annotations

import logging

import pytest

from filesearch.upload.metadata import normalize_custom_metadata


class TestFlatObject:
    def test_string_and_number(self):
        result = normalize_custom_metadata('{"category": "technical", "pages": 5}')
        assert result == [
            {"key": "category", "string_value": "technical"},
            {"key": "pages", "numeric_value": 5},
        ]

    def test_mapping_input(self):
        result = normalize_custom_metadata({"year": 2023.5})
        assert result == [{"key": "year", "numeric_value": 2023.5}]

    def test_bool_is_string(self):
        result = normalize_custom_metadata({"reviewed": True})
        assert result == [{"key": "reviewed", "string_value": "true"}]

    def test_null_is_string(self):
        result = normalize_custom_metadata('{"owner": null}')
        assert result == [{"key": "owner", "string_value": "null"}]

    def test_nested_value_is_compact_json(self):
        result = normalize_custom_metadata({"tags": ["a", "b"]})
        assert result == [{"key": "tags", "string_value": '["a","b"]'}]

    def test_bytes_input(self):
        result = normalize_custom_metadata(b'{"lang": "en"}')
        assert result == [{"key": "lang", "string_value": "en"}]


class TestStructuredList:
    def test_camel_case_entries(self):
        raw = '[{"key": "category", "stringValue": "x"}, {"key": "pages", "numericValue": 2}]'
        assert normalize_custom_metadata(raw) == [
            {"key": "category", "string_value": "x"},
            {"key": "pages", "numeric_value": 2},
        ]

    def test_snake_case_entries(self):
        raw = [{"key": "category", "string_value": "x"}]
        assert normalize_custom_metadata(raw) == [{"key": "category", "string_value": "x"}]

    def test_invalid_entries_are_dropped(self, caplog):
        raw = [
            "not-an-object",
            {"stringValue": "no key"},
            {"key": "both", "stringValue": "a", "numericValue": 1},
            {"key": "neither"},
            {"key": "bad-number", "numericValue": "7"},
            {"key": "ok", "numericValue": 1},
        ]
        with caplog.at_level(logging.WARNING, logger="filesearch.upload.metadata"):
            result = normalize_custom_metadata(raw)
        assert result == [{"key": "ok", "numeric_value": 1}]
        assert len(caplog.records) == 5

    def test_non_finite_numeric_value_dropped(self):
        raw = [{"key": "score", "numericValue": float("inf")}, {"key": "ok", "stringValue": "y"}]
        assert normalize_custom_metadata(raw) == [{"key": "ok", "string_value": "y"}]


class TestIgnored:
    @pytest.mark.parametrize(
        "raw",
        ['{"score": NaN}', '{"score": Infinity}', '[{"key": "s", "numericValue": -Infinity}]'],
    )
    def test_non_json_constants_ignore_everything(self, raw, caplog):
        with caplog.at_level(logging.WARNING, logger="filesearch.upload.metadata"):
            assert normalize_custom_metadata(raw) is None
        assert "not valid JSON" in caplog.text

    def test_non_finite_mapping_value_dropped(self):
        result = normalize_custom_metadata({"score": float("nan"), "pages": 5})
        assert result == [{"key": "pages", "numeric_value": 5}]

    @pytest.mark.parametrize("raw", [None, "", "   ", "{}", "[]"])
    def test_nothing_usable(self, raw):
        assert normalize_custom_metadata(raw) is None

    def test_invalid_json_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="filesearch.upload.metadata"):
            assert normalize_custom_metadata("{not json") is None
        assert "not valid JSON" in caplog.text

    @pytest.mark.parametrize("raw", ["42", '"just a string"', "true", 3.5])
    def test_scalars(self, raw):
        assert normalize_custom_metadata(raw) is None
