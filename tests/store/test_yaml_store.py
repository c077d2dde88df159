"""Tests for YamlStore: loading, status reporting and merge-on-flush."""

from pathlib import Path

import pytest

from stagedconf.core.config import MAX_DOCUMENT_SIZE
from stagedconf.store import KeyValueStore, StoreStatus, YamlStore, open_store


@pytest.fixture
def doc_path(tmp_path: Path) -> Path:
    path = tmp_path / "doc.yaml"
    path.write_text(
        """\
# top comment
section:
  key: value  # keep me
  number: 7
""",
        encoding="utf-8",
    )
    return path


class TestLoading:
    """Tests for opening documents."""

    def test_reads_nested_keys(self, doc_path: Path) -> None:
        store = YamlStore(doc_path)
        assert store.status() is StoreStatus.OK
        assert store.get("section.key") == "value"
        assert store.get("section.number") == 7
        assert store.keys() == ["section.key", "section.number"]

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = YamlStore(tmp_path / "missing.yaml")
        assert store.status() is StoreStatus.OK
        assert store.keys() == []

    @pytest.mark.parametrize("content", ["", "   \n\n", "# only a comment\n"])
    def test_empty_file_is_empty(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text(content)
        store = YamlStore(path)
        assert store.status() is StoreStatus.OK
        assert store.keys() == []

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("a: [unclosed\n")
        assert YamlStore(path).status() is StoreStatus.FORMAT_ERROR

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        assert YamlStore(path).status() is StoreStatus.FORMAT_ERROR

    def test_oversized_document(self, tmp_path: Path) -> None:
        path = tmp_path / "big.yaml"
        path.write_text("a: '" + "x" * MAX_DOCUMENT_SIZE + "'\n")
        assert YamlStore(path).status() is StoreStatus.FORMAT_ERROR

    def test_size_limit_counts_bytes(self, tmp_path: Path) -> None:
        """Multi-byte text under the limit in characters but over it in bytes."""
        path = tmp_path / "wide.yaml"
        path.write_text("a: '" + "é" * (MAX_DOCUMENT_SIZE // 2 + 1) + "'\n", encoding="utf-8")
        assert YamlStore(path).status() is StoreStatus.FORMAT_ERROR

    def test_non_ascii_document(self, tmp_path: Path) -> None:
        path = tmp_path / "utf8.yaml"
        path.write_text("name: Grüße\n", encoding="utf-8")
        assert YamlStore(path).get("name") == "Grüße"

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "latin.yaml"
        path.write_bytes(b"a: \xff\xfe\n")
        store = YamlStore(path)
        assert store.status() is StoreStatus.FORMAT_ERROR
        assert store.keys() == []

    def test_invalid_utf8_never_overwritten(self, tmp_path: Path) -> None:
        path = tmp_path / "latin.yaml"
        path.write_bytes(b"a: \xff\xfe\n")
        store = YamlStore(path)
        store.set("b", "c")
        assert store.flush() is StoreStatus.FORMAT_ERROR
        assert path.read_bytes() == b"a: \xff\xfe\n"

    def test_get_default(self, doc_path: Path) -> None:
        store = YamlStore(doc_path)
        assert store.get("section.nope", "fallback") == "fallback"
        assert not store.contains("section.nope")
        assert store.contains("section")

    def test_satisfies_protocol(self, doc_path: Path) -> None:
        store = open_store(doc_path)
        assert isinstance(store, KeyValueStore)
        assert store.path == doc_path


class TestFlush:
    """Tests for writing changes back."""

    def test_set_is_in_memory_until_flush(self, doc_path: Path) -> None:
        store = YamlStore(doc_path)
        store.set("section.key", "changed")
        assert store.get("section.key") == "changed"
        assert store.dirty
        assert "changed" not in doc_path.read_text()

        assert store.flush() is StoreStatus.OK
        assert not store.dirty
        assert YamlStore(doc_path).get("section.key") == "changed"

    def test_comments_survive_flush(self, doc_path: Path) -> None:
        store = YamlStore(doc_path)
        store.set("section.added", "new")
        store.flush()
        content = doc_path.read_text()
        assert "# top comment" in content
        assert "# keep me" in content

    def test_new_section(self, tmp_path: Path) -> None:
        path = tmp_path / "new.yaml"
        store = YamlStore(path)
        store.set("meta.file_version", "3")
        assert store.flush() is StoreStatus.OK
        assert YamlStore(path).get("meta.file_version") == "3"

    def test_remove(self, doc_path: Path) -> None:
        store = YamlStore(doc_path)
        store.remove("section.number")
        store.flush()
        assert not YamlStore(doc_path).contains("section.number")

    def test_clean_flush_does_not_write(self, doc_path: Path) -> None:
        before = doc_path.stat().st_mtime_ns
        store = YamlStore(doc_path)
        assert store.flush() is StoreStatus.OK
        assert doc_path.stat().st_mtime_ns == before

    def test_set_copies_value(self, tmp_path: Path) -> None:
        store = YamlStore(tmp_path / "a.yaml")
        value = {"items": [1, 2]}
        store.set("data", value)
        value["items"].append(3)
        store.flush()
        assert YamlStore(tmp_path / "a.yaml").get("data.items") == [1, 2]

    def test_malformed_file_is_never_overwritten(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("a: [unclosed\n")
        store = YamlStore(path)
        store.set("a", "b")
        assert store.flush() is StoreStatus.FORMAT_ERROR
        assert path.read_text() == "a: [unclosed\n"

    def test_write_failure_keeps_changes(
        self, doc_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failed write reports ACCESS_ERROR and a later flush retries."""
        import stagedconf.store.yaml_store as yaml_store

        real_write = yaml_store.atomic_write

        def failing_write(path: Path, content: str) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(yaml_store, "atomic_write", failing_write)
        store = YamlStore(doc_path)
        store.set("section.key", "retry")
        assert store.flush() is StoreStatus.ACCESS_ERROR
        assert store.status() is StoreStatus.ACCESS_ERROR
        assert store.dirty

        monkeypatch.setattr(yaml_store, "atomic_write", real_write)
        assert store.flush() is StoreStatus.OK
        assert YamlStore(doc_path).get("section.key") == "retry"


class TestConcurrentStores:
    """Several stores bound to the same file."""

    def test_flushes_merge(self, doc_path: Path) -> None:
        first = YamlStore(doc_path)
        second = YamlStore(doc_path)
        first.set("section.a", "1")
        second.set("section.b", "2")

        assert first.flush() is StoreStatus.OK
        assert second.flush() is StoreStatus.OK

        merged = YamlStore(doc_path)
        assert merged.get("section.a") == "1"
        assert merged.get("section.b") == "2"
        assert merged.get("section.key") == "value"

    def test_flush_refreshes_view(self, doc_path: Path) -> None:
        reader = YamlStore(doc_path)
        writer = YamlStore(doc_path)
        writer.set("section.key", "updated")
        writer.flush()

        assert reader.get("section.key") == "value"
        reader.flush()
        assert reader.get("section.key") == "updated"

    def test_later_flush_wins_on_same_key(self, doc_path: Path) -> None:
        first = YamlStore(doc_path)
        second = YamlStore(doc_path)
        first.set("section.key", "first")
        second.set("section.key", "second")
        first.flush()
        second.flush()
        assert YamlStore(doc_path).get("section.key") == "second"
