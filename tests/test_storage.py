"""Tests for the filesystem blob store."""

import pytest

from turngraph.errors import GraphOperationError, StorageError
from turngraph.events import hash_bytes
from turngraph.storage import FileSystemBlobStore, LineBlobStore


class TestFileSystemBlobStore:
    def test_save_and_read(self, tmp_path):
        store = FileSystemBlobStore(tmp_path)
        uri = store.save("hello")
        assert uri.startswith("file://")
        assert store.read(uri) == "hello"

    def test_content_addressed(self, tmp_path):
        """Equal content maps to one URI named by its SHA-256."""
        store = FileSystemBlobStore(tmp_path)
        a = store.save("same")
        b = store.save(b"same")
        assert a == b
        assert a.endswith(hash_bytes(b"same"))

    def test_no_temp_files_left(self, tmp_path):
        store = FileSystemBlobStore(tmp_path)
        store.save("x")
        store.save_lines(["a", "b"])
        assert list((tmp_path / "tmp").iterdir()) == []

    def test_save_lines_matches_save(self, tmp_path):
        """Streaming lines yields the same blob as saving the joined text."""
        store = FileSystemBlobStore(tmp_path)
        streamed = store.save_lines(iter(["one", "two", "three"]))
        assert streamed == store.save("one\ntwo\nthree")

    def test_compressed_roundtrip(self, tmp_path):
        store = FileSystemBlobStore(tmp_path, compress=True)
        uri = store.save("x" * 1000)
        assert uri.endswith(".zst")
        assert store.read(uri) == "x" * 1000
        streamed = store.save_lines(["a", "b"])
        assert store.read(streamed) == "a\nb"

    def test_read_missing(self, tmp_path):
        store = FileSystemBlobStore(tmp_path)
        with pytest.raises(StorageError) as exc:
            store.read((tmp_path / "nope").as_uri())
        assert exc.value.uri.endswith("nope")

    def test_read_rejects_other_schemes(self, tmp_path):
        with pytest.raises(StorageError):
            FileSystemBlobStore(tmp_path).read("gs://bucket/key")

    def test_supports_streaming_protocol(self, tmp_path):
        assert isinstance(FileSystemBlobStore(tmp_path), LineBlobStore)

    @pytest.mark.parametrize("compress", [False, True])
    def test_failing_source_leaves_no_temp_file(self, tmp_path, compress):
        """An error raised by the lines iterable propagates and the partial file is removed."""

        def lines():
            yield "page one"
            raise GraphOperationError("page two failed")

        store = FileSystemBlobStore(tmp_path, compress=compress)
        with pytest.raises(GraphOperationError):
            store.save_lines(lines())
        assert list((tmp_path / "tmp").iterdir()) == []

    def test_read_rejects_binary_blob(self, tmp_path):
        store = FileSystemBlobStore(tmp_path)
        uri = store.save(b"\xff\xfe\x00")
        with pytest.raises(StorageError):
            store.read(uri)
