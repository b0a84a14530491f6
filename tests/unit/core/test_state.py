"""Unit tests for the graph repository."""

import threading

import pytest

from jsongraph.core.exceptions import LookupReason, ValidationError
from jsongraph.core.graph import TreeIndex
from jsongraph.core.state import GraphRepository
from jsongraph.core.storage import MemoryStorage
from jsongraph.core.types import NodeKind, SemanticType

DOC = {"a": {"b": 1, "c": [1, 2]}, "name": "demo"}


@pytest.fixture
def repo():
    repository = GraphRepository()
    repository.open_document("doc-1", DOC)
    return repository


def _assert_tree(state):
    assert state.edge_count == state.node_count - 1
    report = TreeIndex.build(state.nodes, state.edges).validate()
    assert report.valid, report.issues
    assert report.stats["connected"] is True


class TestOpenDocument:
    def test_root_only(self, repo):
        state = repo.get_state("doc-1")
        assert state.node_count == 1
        assert state.edge_count == 0
        root = state.get_node("root")
        assert root.kind == NodeKind.OBJECT
        assert [d.key for d in root.payload] == ["a", "name"]

    def test_idempotent(self, repo):
        repo.expand("doc-1", "root", "a", DOC["a"])
        again = repo.open_document("doc-1", {"different": True})
        assert again.node_count == 2
        assert again.get_node("root").descriptor_for("a") is not None

    def test_non_object_root(self):
        with pytest.raises(ValidationError):
            GraphRepository().open_document("bad", [1, 2, 3])

    def test_open_json_uses_content_id(self):
        repository = GraphRepository()
        first = repository.open_json({"x": 1, "y": 2})
        second = repository.open_json({"y": 2, "x": 1})
        assert first.document_id == second.document_id
        assert len(repository) == 1


class TestExpand:
    def test_creates_one_node_and_one_edge(self, repo):
        result = repo.expand("doc-1", "root", "a", DOC["a"])

        assert result.is_ok()
        node = result.value
        assert node.id == "root.a"
        assert node.kind == NodeKind.OBJECT
        assert node.parent_path == "root"
        assert [d.key for d in node.payload] == ["b", "c"]

        state = repo.get_state("doc-1")
        assert state.node_count == 2
        assert [e.id for e in state.edges] == ["edge-root-root.a"]

    def test_idempotent(self, repo):
        first = repo.expand("doc-1", "root", "a", DOC["a"])
        before = repo.get_state("doc-1")
        second = repo.expand("doc-1", "root", "a", DOC["a"])
        after = repo.get_state("doc-1")

        assert second.value == first.value
        assert after.nodes == before.nodes
        assert after.edges == before.edges

    def test_array_children(self, repo):
        repo.expand("doc-1", "root", "a", DOC["a"])
        repo.expand("doc-1", "root.a", "c", [1, 2])
        result = repo.expand("doc-1", "root.a.c", 1, 2)

        assert result.value.id == "root.a.c[1]"
        assert result.value.kind == NodeKind.PRIMITIVE
        assert result.value.payload[0].semantic_type == SemanticType.NUMBER

    def test_unknown_document(self, repo):
        result = repo.expand("nope", "root", "a", {})
        assert result.is_err()
        assert result.error.reason == LookupReason.UNKNOWN_DOCUMENT

    def test_unknown_parent_leaves_state_untouched(self, repo):
        before = repo.get_state("doc-1")
        result = repo.expand("doc-1", "root.missing", "x", 1)
        assert result.is_err()
        assert result.error.reason == LookupReason.UNKNOWN_PARENT
        assert repo.get_state("doc-1") is before

    def test_unknown_key_leaves_state_untouched(self, repo):
        before = repo.get_state("doc-1")
        result = repo.expand("doc-1", "root", "zzz", 1)
        assert result.is_err()
        assert result.error.reason == LookupReason.UNKNOWN_KEY
        assert result.error.child_key == "zzz"
        assert repo.get_state("doc-1") is before

    def test_primitive_has_no_children(self, repo):
        repo.expand("doc-1", "root", "name", "demo")
        result = repo.expand("doc-1", "root.name", "name", "demo")
        assert result.is_err()
        assert result.error.reason == LookupReason.UNKNOWN_KEY

    def test_value_must_match_payload(self, repo):
        before = repo.get_state("doc-1")
        result = repo.expand("doc-1", "root", "a", 5)
        assert result.is_err()
        assert result.error.reason == LookupReason.VALUE_MISMATCH
        assert repo.get_state("doc-1") is before

        assert repo.expand("doc-1", "root", "a", DOC["a"]).value.kind == NodeKind.OBJECT
        assert repo.expand_path("doc-1", "root.a.b").is_ok()

    def test_bool_is_not_a_number(self):
        repository = GraphRepository()
        repository.open_document("flags", {"on": True})
        result = repository.expand("flags", "root", "on", 1)
        assert result.error.reason == LookupReason.VALUE_MISMATCH

    def test_key_order_does_not_matter(self, repo):
        result = repo.expand("doc-1", "root", "a", {"c": [1, 2], "b": 1})
        assert result.is_ok()
        assert [d.key for d in result.value.payload] == ["b", "c"]

    def test_non_json_value(self, repo):
        with pytest.raises(ValidationError):
            repo.expand("doc-1", "root", "a", {1, 2})

    def test_snapshots_are_immutable(self, repo):
        before = repo.snapshot("doc-1")
        repo.expand("doc-1", "root", "a", DOC["a"])
        assert before.node_count == 1
        assert repo.snapshot("doc-1").node_count == 2


class TestTreeInvariant:
    def test_holds_after_every_expansion(self, repo):
        _assert_tree(repo.get_state("doc-1"))
        repo.expand("doc-1", "root", "a", DOC["a"])
        _assert_tree(repo.get_state("doc-1"))
        repo.expand("doc-1", "root.a", "b", 1)
        _assert_tree(repo.get_state("doc-1"))
        repo.expand("doc-1", "root.a", "c", [1, 2])
        repo.expand("doc-1", "root.a.c", "0", 1)
        repo.expand("doc-1", "root", "name", "demo")
        _assert_tree(repo.get_state("doc-1"))
        assert repo.validate_document("doc-1").valid

    def test_concurrent_expansions_publish_whole_snapshots(self):
        doc = {f"k{i}": {"v": i} for i in range(50)}
        repository = GraphRepository()
        repository.open_document("d", doc)

        def worker(keys):
            for key in keys:
                repository.expand("d", "root", key, doc[key])

        keys = list(doc)
        threads = [threading.Thread(target=worker, args=(keys[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        state = repository.get_state("d")
        assert state.node_count == 51
        _assert_tree(state)


class TestExpandPath:
    def test_materializes_ancestors(self, repo):
        result = repo.expand_path("doc-1", "root.a.c[1]")

        assert result.is_ok()
        assert result.value.id == "root.a.c[1]"
        state = repo.get_state("doc-1")
        assert {n.id for n in state.nodes} == {"root", "root.a", "root.a.c", "root.a.c[1]"}
        _assert_tree(state)

    def test_root_path(self, repo):
        assert repo.expand_path("doc-1", "root").value.id == "root"

    def test_unresolvable(self, repo):
        for path in ("root.zzz", "root.a.c[9]", "root.name.deeper", "not-a-path"):
            result = repo.expand_path("doc-1", path)
            assert result.is_err(), path
            assert result.error.reason == LookupReason.UNRESOLVABLE_PATH

    def test_missing_first_segment_creates_nothing(self, repo):
        repo.expand_path("doc-1", "root.zzz.deeper")
        assert repo.get_state("doc-1").node_count == 1

    def test_resolved_prefix_stays_materialized(self, repo):
        repo.expand_path("doc-1", "root.a.c[9]")
        assert {n.id for n in repo.get_state("doc-1").nodes} == {"root", "root.a", "root.a.c"}


class TestCloseDocument:
    def test_isolation(self, repo):
        repo.open_document("doc-2", {"z": 1})
        repo.expand("doc-2", "root", "z", 1)
        other_before = repo.get_state("doc-2")

        assert repo.close_document("doc-1") is True
        assert repo.get_state("doc-1") is None
        assert repo.get_state("doc-2") is other_before
        assert repo.close_document("doc-1") is False

    def test_remove_alias(self, repo):
        repo.remove("doc-1")
        assert "doc-1" not in repo


class TestQueries:
    def test_edges_and_neighbors(self, repo):
        repo.expand_path("doc-1", "root.a.b")

        edges = repo.get_node_edges("doc-1", "root.a")
        assert [(e.source, e.target) for e in edges] == [("root", "root.a"), ("root.a", "root.a.b")]

        neighbors = [n.id for n in repo.get_connected_nodes("doc-1", "root.a")]
        assert neighbors == ["root", "root.a.b"]

    def test_missing_document(self, repo):
        assert repo.get_node("nope", "root") is None
        assert repo.get_node_edges("nope", "root") == []
        assert repo.validate_document("nope") is None


class TestEndToEnd:
    def test_nested_document_flow(self):
        doc = {"a": {"b": 1, "c": [1, 2]}}
        repository = GraphRepository()
        repository.open_document("e2e", doc)

        repository.expand("e2e", "root", "a", doc["a"])
        repository.expand("e2e", "root.a", "c", doc["a"]["c"])
        repository.expand("e2e", "root.a.c", 0, 1)

        state = repository.get_state("e2e")
        assert [n.id for n in state.nodes] == ["root", "root.a", "root.a.c", "root.a.c[0]"]
        assert [(e.source, e.target) for e in state.edges] == [
            ("root", "root.a"),
            ("root.a", "root.a.c"),
            ("root.a.c", "root.a.c[0]"),
        ]


class TestPersistence:
    def test_writes_through_to_storage(self):
        storage = MemoryStorage()
        repository = GraphRepository(storage=storage, debounce_seconds=0)
        repository.open_document("p", DOC)
        repository.expand("p", "root", "a", DOC["a"])

        restored = storage.load_state("p")
        assert restored.node_count == 2

    def test_load_restores_documents(self):
        storage = MemoryStorage()
        first = GraphRepository(storage=storage, debounce_seconds=0)
        first.open_document("p", DOC)
        first.expand_path("p", "root.a.c")

        second = GraphRepository.load(storage)
        assert second.get_state("p").node_count == 3
        assert second.get_state("p").raw_document == DOC

    def test_close_deletes_from_storage(self):
        storage = MemoryStorage()
        repository = GraphRepository(storage=storage, debounce_seconds=0)
        repository.open_document("p", DOC)
        repository.close_document("p")
        assert storage.load_state("p") is None

    def test_unreadable_storage_starts_empty(self):
        class BrokenStorage(MemoryStorage):
            def load_all_states(self):
                raise OSError("disk gone")

        repository = GraphRepository.load(BrokenStorage())
        assert len(repository) == 0
