"""Unit tests for document identity and ingestion helpers."""

from jsongraph.core.exceptions import ValidationError
from jsongraph.core.identity import (
    display_name_for,
    document_id_for,
    document_metadata,
    parse_document,
    slugify,
)


class TestDocumentId:
    def test_key_order_does_not_matter(self):
        assert document_id_for({"a": 1, "b": [1, 2]}) == document_id_for({"b": [1, 2], "a": 1})

    def test_content_changes_identity(self):
        assert document_id_for({"a": 1}) != document_id_for({"a": 2})

    def test_format(self):
        doc_id = document_id_for({"a": 1})
        assert doc_id.startswith("json-")
        assert len(doc_id) == len("json-") + 16


class TestDisplayName:
    def test_prefers_name_fields(self):
        assert display_name_for({"id": "abc", "name": "My Service"}) == "my-service"

    def test_falls_back_to_first_string(self):
        assert display_name_for({"count": 3, "label": "Hello World!"}) == "hello-world"

    def test_fallback_then_id(self):
        assert display_name_for({"n": 1}, fallback="data") == "data"
        assert display_name_for({"n": 1}) == document_id_for({"n": 1})

    def test_slugify_truncates(self):
        assert len(slugify("x" * 100)) == 40


class TestParseDocument:
    def test_object_root(self):
        result = parse_document('{"a": 1}')
        assert result.is_ok()
        assert result.value == {"a": 1}

    def test_invalid_json(self):
        result = parse_document("{not json")
        assert result.is_err()
        assert isinstance(result.error, ValidationError)
        assert "Invalid JSON" in result.error.message

    def test_non_object_root(self):
        for text in ("[1, 2]", "null", '"str"', "3"):
            result = parse_document(text)
            assert result.is_err(), text
            assert "Root must be a JSON object" in result.error.message


class TestDocumentMetadata:
    def test_counts(self):
        meta = document_metadata({"a": {"b": 1, "c": [1, 2]}})
        assert meta["keys"] == 3
        assert meta["depth"] == 3
        assert meta["lines"] > 1
        assert meta["size"] > 0
