"""
Tests for FileSystemGate path confinement and file operations.
"""

import os
import pytest
from pathlib import Path

from depot.FileSystemGate import (
    DataRoot,
    ErrorKind,
    FileSystemGate,
    resolve_path,
    is_within_root,
)
from depot.FileSystemGate.operations import (
    list_directory,
    make_directory,
    remove_directory,
    remove_file,
    move_path,
    guess_mime_type,
)
from depot.FileSystemGate.copy import copy_path, copy_tree

from conftest import tree_snapshot


ROOT = os.path.normpath("/data")


class TestPathResolution:
    """Tests for lexical resolution against the root."""

    @pytest.mark.parametrize("relative", [
        "..",
        "../",
        "../../etc/passwd",
        "a/../../b",
        "a/b/../../../c",
        "./../data/../..",
        "../" * 20 + "etc",
        "../database",
        "../data2/file",
    ])
    def test_escape_is_rejected(self, relative):
        """Any arrangement of '..' that leaves the root is rejected."""
        is_valid, _, error = resolve_path(ROOT, relative, allow_root=True)

        assert is_valid is False
        assert error == "Invalid path"

    @pytest.mark.parametrize("relative, expected", [
        ("foo", "foo"),
        ("foo/bar.txt", "foo/bar.txt"),
        ("./foo/./bar", "foo/bar"),
        ("foo/../bar", "bar"),
        ("a/b/c/../../d", "a/d"),
        ("/etc/passwd", "etc/passwd"),
        ("foo/..//bar/", "bar"),
    ])
    def test_valid_paths_stay_under_root(self, relative, expected):
        """Valid paths normalize to a descendant of the root."""
        is_valid, resolved, error = resolve_path(ROOT, relative)

        assert is_valid is True
        assert error is None
        assert resolved == os.path.join(ROOT, os.path.normpath(expected))
        assert is_within_root(ROOT, resolved)

    def test_empty_path_is_root_for_listing(self):
        """An empty path is the root, accepted only when allowed."""
        assert resolve_path(ROOT, "", allow_root=True) == (True, ROOT, None)
        assert resolve_path(ROOT, ".", allow_root=True) == (True, ROOT, None)

    @pytest.mark.parametrize("relative", ["", ".", "foo/..", "/"])
    def test_root_rejected_for_mutations(self, relative):
        """Paths equal to the root are rejected unless allow_root is set."""
        is_valid, _, error = resolve_path(ROOT, relative)

        assert is_valid is False
        assert error == "Invalid path"

    def test_null_byte_rejected(self):
        """Embedded NUL bytes never reach the filesystem."""
        is_valid, _, _ = resolve_path(ROOT, "foo\x00.txt")
        assert is_valid is False

    def test_containment_is_segment_aware(self):
        """A sibling sharing a string prefix is not contained."""
        assert is_within_root("/data", "/data") is True
        assert is_within_root("/data", "/data/x") is True
        assert is_within_root("/data", "/database") is False
        assert is_within_root("/data", "/data2/x") is False

    def test_tilde_is_not_expanded(self):
        """Client paths are taken literally."""
        is_valid, resolved, _ = resolve_path(ROOT, "~/notes")

        assert is_valid is True
        assert resolved == os.path.join(ROOT, "~", "notes")


class TestDataRoot:
    """Tests for the immutable root configuration."""

    def test_root_is_normalized(self, data_dir):
        """Relative segments in the configured root are collapsed."""
        root = DataRoot(path=str(data_dir / "sub" / ".."))
        assert root.path == str(data_dir)

    def test_root_is_frozen(self, data_root):
        """The root cannot be changed after construction."""
        with pytest.raises(Exception):
            data_root.path = "/elsewhere"

    def test_chunk_size_must_be_positive(self, data_dir):
        with pytest.raises(ValueError):
            DataRoot(path=str(data_dir), chunk_size=0)

    def test_gate_requires_existing_directory(self, temp_dir):
        """The gate refuses a missing or non-directory root."""
        with pytest.raises(FileNotFoundError):
            FileSystemGate(DataRoot(path=str(temp_dir / "missing")))

        afile = temp_dir / "afile"
        afile.write_text("x")
        with pytest.raises(NotADirectoryError):
            FileSystemGate(DataRoot(path=str(afile)))


class TestListDirectory:
    """Tests for listing."""

    def test_list_root(self, data_root, sample_tree):
        """Should list direct children only."""
        result = list_directory(data_root.path, "")

        assert result.success is True
        names = sorted(f["name"] for f in result.data)
        assert names == ["data.json", "docs", "readme.txt"]

    def test_entry_metadata(self, data_root, sample_tree):
        """Entries carry size, type and mime."""
        result = list_directory(data_root.path, ".")
        entries = {f["name"]: f for f in result.data}

        assert entries["readme.txt"] == {
            "name": "readme.txt",
            "size": 11,
            "is_dir": False,
            "mime": "text/plain",
        }
        assert entries["data.json"]["mime"] == "application/json"
        assert entries["docs"]["is_dir"] is True
        assert entries["docs"]["mime"] is None

    def test_list_empty_directory(self, data_root, sample_tree):
        """An empty directory lists as an empty list, not an error."""
        result = list_directory(data_root.path, "docs/nested/empty")

        assert result.success is True
        assert result.data == []

    def test_list_missing(self, data_root):
        result = list_directory(data_root.path, "nope")

        assert result.success is False
        assert result.kind == ErrorKind.NOT_FOUND

    def test_list_file(self, data_root, sample_tree):
        result = list_directory(data_root.path, "readme.txt")

        assert result.success is False
        assert result.kind == ErrorKind.NOT_A_DIRECTORY

    def test_list_outside_root(self, data_root):
        result = list_directory(data_root.path, "../")

        assert result.success is False
        assert result.kind == ErrorKind.INVALID_PATH

    def test_unknown_extension_is_octet_stream(self):
        assert guess_mime_type("blob.unknownext") == "application/octet-stream"
        assert guess_mime_type("noext") == "application/octet-stream"


class TestMakeDirectory:
    """Tests for mkdir."""

    def test_create(self, data_root, data_dir):
        result = make_directory(data_root.path, "new")

        assert result.success is True
        assert (data_dir / "new").is_dir()

    def test_existing_file_is_conflict(self, data_root, sample_tree):
        """Creating a directory over a file fails instead of succeeding silently."""
        result = make_directory(data_root.path, "readme.txt")

        assert result.success is False
        assert result.kind == ErrorKind.ALREADY_EXISTS
        assert (sample_tree / "readme.txt").is_file()

    def test_existing_directory_is_conflict(self, data_root, sample_tree):
        result = make_directory(data_root.path, "docs")

        assert result.success is False
        assert result.kind == ErrorKind.ALREADY_EXISTS

    def test_missing_parent_fails(self, data_root, data_dir):
        """Only one level is created."""
        result = make_directory(data_root.path, "a/b/c")

        assert result.success is False
        assert result.kind == ErrorKind.INTERNAL_IO
        assert not (data_dir / "a").exists()
        assert str(data_dir) not in result.error
        assert result.error == "Failed to create directory: No such file or directory"

    def test_root_rejected(self, data_root):
        result = make_directory(data_root.path, "")

        assert result.success is False
        assert result.kind == ErrorKind.INVALID_PATH

    def test_escape_rejected(self, data_root, temp_dir):
        result = make_directory(data_root.path, "../escaped")

        assert result.success is False
        assert result.kind == ErrorKind.INVALID_PATH
        assert not (temp_dir / "escaped").exists()


class TestRemove:
    """Tests for rmdir and rm."""

    def test_rmdir_recursive(self, data_root, sample_tree):
        """Removing a directory removes its whole subtree."""
        result = remove_directory(data_root.path, "docs")

        assert result.success is True
        assert not (sample_tree / "docs").exists()

    def test_rmdir_on_file(self, data_root, sample_tree):
        result = remove_directory(data_root.path, "readme.txt")

        assert result.success is False
        assert result.kind == ErrorKind.NOT_A_DIRECTORY
        assert (sample_tree / "readme.txt").exists()

    def test_rmdir_missing(self, data_root):
        result = remove_directory(data_root.path, "ghost")
        assert result.kind == ErrorKind.NOT_FOUND

    def test_rmdir_root_rejected(self, data_root, sample_tree):
        """The root itself can never be deleted."""
        for relative in ("", ".", "docs/.."):
            result = remove_directory(data_root.path, relative)
            assert result.kind == ErrorKind.INVALID_PATH
        assert sample_tree.is_dir()

    def test_rm_file(self, data_root, sample_tree):
        result = remove_file(data_root.path, "docs/guide.md")

        assert result.success is True
        assert not (sample_tree / "docs" / "guide.md").exists()

    def test_rm_directory_refused(self, data_root, sample_tree):
        result = remove_file(data_root.path, "docs")

        assert result.success is False
        assert result.kind == ErrorKind.NOT_A_FILE
        assert (sample_tree / "docs").is_dir()

    def test_rm_missing(self, data_root):
        result = remove_file(data_root.path, "ghost.txt")
        assert result.kind == ErrorKind.NOT_FOUND


class TestMove:
    """Tests for move."""

    def test_move_file(self, data_root, sample_tree):
        result = move_path(data_root.path, "readme.txt", "docs/readme.txt")

        assert result.success is True
        assert not (sample_tree / "readme.txt").exists()
        assert (sample_tree / "docs" / "readme.txt").read_text() == "Hello World"

    def test_move_directory(self, data_root, sample_tree):
        result = move_path(data_root.path, "docs", "manual")

        assert result.success is True
        assert (sample_tree / "manual" / "nested" / "deep.txt").exists()

    def test_move_onto_existing(self, data_root, sample_tree):
        """Moving onto an existing path fails and leaves the source alone."""
        result = move_path(data_root.path, "readme.txt", "data.json")

        assert result.success is False
        assert result.kind == ErrorKind.ALREADY_EXISTS
        assert (sample_tree / "readme.txt").read_text() == "Hello World"
        assert (sample_tree / "data.json").read_text() == '{"key": "value"}'

    def test_move_missing_source(self, data_root):
        result = move_path(data_root.path, "ghost", "other")
        assert result.kind == ErrorKind.NOT_FOUND
        assert result.error == "Source path not found"

    def test_move_into_own_subtree(self, data_root, sample_tree):
        """A directory cannot be moved below itself."""
        before = tree_snapshot(sample_tree / "docs")

        result = move_path(data_root.path, "docs", "docs/nested/inner")

        assert result.success is False
        assert result.kind == ErrorKind.INVALID_PATH
        assert tree_snapshot(sample_tree / "docs") == before

    def test_move_to_prefixed_sibling(self, data_root, sample_tree):
        """A sibling whose name starts with the source name is not inside it."""
        result = move_path(data_root.path, "docs", "docs-old")

        assert result.success is True
        assert result.message == "Directory moved successfully"

    @pytest.mark.parametrize("source, dest", [
        ("readme.txt", "../readme.txt"),
        ("../outside", "inside"),
        ("", "elsewhere"),
        ("readme.txt", ""),
    ])
    def test_move_invalid_paths(self, data_root, sample_tree, source, dest):
        result = move_path(data_root.path, source, dest)

        assert result.success is False
        assert result.kind == ErrorKind.INVALID_PATH
        assert (sample_tree / "readme.txt").exists()


class TestCopy:
    """Tests for the copy engine."""

    def test_copy_file(self, data_root, sample_tree):
        result = copy_path(data_root.path, "docs/nested/deep.txt", "deep-copy.txt", chunk_size=3)

        assert result.success is True
        assert (sample_tree / "deep-copy.txt").read_bytes() == b"\x00\x01binary\xff"
        assert (sample_tree / "docs" / "nested" / "deep.txt").exists()

    def test_copy_tree(self, data_root, sample_tree):
        """A multi-level tree is reproduced exactly and the source is unchanged."""
        before = tree_snapshot(sample_tree / "docs")

        result = copy_path(data_root.path, "docs", "docs-copy")

        assert result.success is True
        assert tree_snapshot(sample_tree / "docs-copy") == before
        assert tree_snapshot(sample_tree / "docs") == before
        assert (sample_tree / "docs-copy" / "nested" / "empty").is_dir()

    def test_copy_into_own_subtree_rejected(self, data_root, sample_tree):
        result = copy_path(data_root.path, "docs", "docs/nested/again")

        assert result.success is False
        assert result.kind == ErrorKind.INVALID_PATH
        assert not (sample_tree / "docs" / "nested" / "again").exists()

    def test_copy_onto_existing(self, data_root, sample_tree):
        result = copy_path(data_root.path, "readme.txt", "data.json")

        assert result.success is False
        assert result.kind == ErrorKind.ALREADY_EXISTS
        assert (sample_tree / "data.json").read_text() == '{"key": "value"}'

    def test_copy_missing_source(self, data_root):
        result = copy_path(data_root.path, "ghost", "copy")
        assert result.kind == ErrorKind.NOT_FOUND
        assert result.error == "Source file not found"

    def test_copy_root_rejected(self, data_root, sample_tree):
        result = copy_path(data_root.path, "", "everything")
        assert result.kind == ErrorKind.INVALID_PATH

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")
    def test_copy_special_file_is_invalid_source(self, data_root, data_dir):
        os.mkfifo(data_dir / "pipe")

        result = copy_path(data_root.path, "pipe", "pipe-copy")

        assert result.success is False
        assert result.kind == ErrorKind.INVALID_SOURCE

    def test_copy_tree_failure_leaves_partial_copy(self, sample_tree, monkeypatch):
        """There is no rollback: directories created before the failure remain."""
        import depot.FileSystemGate.copy as copy_module

        def failing_copy(source, destination, chunk_size=4):
            raise PermissionError("denied")

        monkeypatch.setattr(copy_module, "copy_file_bytes", failing_copy)

        with pytest.raises(PermissionError):
            copy_tree(str(sample_tree / "docs"), str(sample_tree / "partial"))

        assert (sample_tree / "partial").is_dir()

    def test_copy_failure_is_internal_io(self, data_root, sample_tree, monkeypatch):
        import depot.FileSystemGate.copy as copy_module

        def failing_copy(source, destination, chunk_size=4):
            raise OSError("disk full")

        monkeypatch.setattr(copy_module, "copy_file_bytes", failing_copy)

        result = copy_path(data_root.path, "docs", "broken")

        assert result.success is False
        assert result.kind == ErrorKind.INTERNAL_IO


class TestGateOperations:
    """Tests for the async gate facade."""

    @pytest.mark.asyncio
    async def test_mkdir_then_list(self, gate, data_dir):
        result = await gate.mkdir("photos")
        assert result.success is True

        listing = await gate.list_dir("")
        assert [f["name"] for f in listing.data] == ["photos"]

    @pytest.mark.asyncio
    async def test_copy_and_move(self, gate, sample_tree):
        assert (await gate.copy("docs", "backup")).success is True
        assert (await gate.move("backup", "archive")).success is True

        assert (sample_tree / "archive" / "guide.md").read_text() == "# Guide"
        assert not (sample_tree / "backup").exists()

    @pytest.mark.asyncio
    async def test_remove(self, gate, sample_tree):
        assert (await gate.remove_file("readme.txt")).success is True
        assert (await gate.rmdir("docs")).success is True
        assert sorted(p.name for p in sample_tree.iterdir()) == ["data.json"]

    def test_health(self, gate, data_dir):
        status = gate.get_health_status()

        assert status["gate"] == "FileSystemGate"
        assert status["healthy"] is True
        assert status["details"]["root"] == str(data_dir)
        assert gate.is_healthy() is True
