"""Unit tests for CLI utilities."""

import json

import pytest

from jsongraph.cli.utils import open_repository, read_document, resolve_document_id
from jsongraph.config import GraphConfig, StorageConfig
from jsongraph.core.state import GraphRepository


class TestUtils:
    def test_read_document(self, tmp_path):
        f = tmp_path / "doc.json"
        f.write_text(json.dumps({"a": 1}))

        result = read_document(f)
        assert result.is_ok()
        assert result.value == {"a": 1}

    def test_read_document_rejects_array_root(self, tmp_path):
        f = tmp_path / "doc.json"
        f.write_text("[1, 2]")
        assert read_document(f).is_err()

    def test_open_repository_persists_synchronously(self, tmp_path):
        config = GraphConfig(storage=StorageConfig(backend="sqlite", path=tmp_path / "g.db"))

        repo = open_repository(config)
        repo.open_document("d", {"a": 1})

        assert "d" in open_repository(config)


class TestResolveDocumentId:
    @pytest.fixture
    def repo(self):
        repository = GraphRepository()
        repository.open_document("json-abc123", {"a": 1})
        repository.open_document("json-abd456", {"b": 1})
        return repository

    def test_exact_and_prefix(self, repo):
        assert resolve_document_id(repo, "json-abc123") == "json-abc123"
        assert resolve_document_id(repo, "json-abd") == "json-abd456"

    def test_ambiguous(self, repo, capsys):
        assert resolve_document_id(repo, "json-ab") is None
        assert "Ambiguous" in capsys.readouterr().err

    def test_missing(self, repo, capsys):
        assert resolve_document_id(repo, "nope") is None
        assert "No open document" in capsys.readouterr().err
