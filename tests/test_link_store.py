"""Tests for the link store."""

import errno
import json
import os
import stat
import pytest
from pathlib import Path
from unittest.mock import patch

from extlink.core.errors import LinkExistsError, LinkNotFoundError, LinkStoreError
from extlink.core.models import LinkRecord
from extlink.link_store import LinkStore, registry_root_for, LINK_SUFFIX, _write_exclusive


@pytest.fixture
def store(tmp_path):
    store = LinkStore(tmp_path / "EXT")
    store.ensure_root()
    return store


def record(name="Foo", version="1.0", path="/modules/Foo/1.0"):
    return LinkRecord(name=name, version=version, path=path)


def test_registry_root_for():
    assert registry_root_for("/opt/Host/3.0") == Path("/opt/Host/3.0/EXT")


class TestEnsureRoot:
    def test_creates_directory(self, tmp_path):
        store = LinkStore(tmp_path / "host" / "EXT")
        store.ensure_root()

        assert store.root.is_dir()

    def test_idempotent(self, store):
        store.ensure_root()
        store.ensure_root()

        assert store.root.is_dir()

    def test_failure_is_store_error(self, tmp_path):
        blocker = tmp_path / "host"
        blocker.write_text("not a directory")

        with pytest.raises(LinkStoreError, match="Cannot create registry root"):
            LinkStore(blocker / "EXT").ensure_root()


class TestWrite:
    def test_writes_path_and_version_only(self, store):
        path = store.write(record())

        assert path == store.root / f"Foo{LINK_SUFFIX}"
        assert json.loads(path.read_text()) == {"Version": "1.0", "Path": "/modules/Foo/1.0"}

    def test_refuses_to_overwrite(self, store):
        store.write(record())
        before = store.link_path("Foo").read_bytes()

        with pytest.raises(LinkExistsError):
            store.write(record(version="2.0"))

        assert store.link_path("Foo").read_bytes() == before

    def test_leaves_no_temporary_files(self, store):
        store.write(record())
        with pytest.raises(LinkExistsError):
            store.write(record())

        assert [p.name for p in store.root.iterdir()] == ["Foo.extlnk"]

    def test_failed_write_leaves_nothing(self, store):
        with patch("extlink.link_store.os.link", side_effect=PermissionError("denied")):
            with pytest.raises(LinkStoreError, match="Cannot write link record"):
                store.write(record())

        assert list(store.root.iterdir()) == []

    def test_missing_root(self, tmp_path):
        with pytest.raises(LinkStoreError):
            LinkStore(tmp_path / "missing").write(record())

    def test_rejects_invalid_name(self, store):
        with pytest.raises(ValueError):
            store.write(record(name="../escape"))

    def test_mode_matches_plain_file(self, store):
        link = store.write(record())
        plain = store.root / "plain.txt"
        with open(plain, "w") as f:
            f.write("x")

        assert stat.S_IMODE(os.stat(link).st_mode) == stat.S_IMODE(os.stat(plain).st_mode)

    def test_refuses_name_differing_in_case(self, store):
        store.write(record("Foo"))

        with pytest.raises(LinkExistsError):
            store.write(record("foo", version="2.0"))

        assert [p.name for p in store.root.iterdir()] == ["Foo.extlnk"]


class TestWriteWithoutHardLinks:
    @pytest.fixture(autouse=True)
    def no_hard_links(self):
        with patch("extlink.link_store.os.link",
                   side_effect=OSError(errno.EPERM, "Operation not permitted")):
            yield

    def test_falls_back_to_exclusive_create(self, store):
        path = store.write(record())

        assert json.loads(path.read_text()) == {"Version": "1.0", "Path": "/modules/Foo/1.0"}
        assert [p.name for p in store.root.iterdir()] == ["Foo.extlnk"]

    def test_still_refuses_to_overwrite(self, store):
        store.write(record())
        before = store.link_path("Foo").read_bytes()

        with pytest.raises(LinkExistsError):
            store.write(record(version="2.0"))

        assert store.link_path("Foo").read_bytes() == before

    def test_other_link_errors_are_not_retried(self, store):
        with patch("extlink.link_store.os.link",
                   side_effect=OSError(errno.EIO, "I/O error")):
            with pytest.raises(LinkStoreError, match="Cannot write link record"):
                store.write(record())

        assert list(store.root.iterdir()) == []


def test_exclusive_create_refuses_existing_target(tmp_path):
    target = tmp_path / "Foo.extlnk"
    target.write_text("original")

    with pytest.raises(LinkExistsError):
        _write_exclusive(target, "new", "Link record for 'Foo' already exists")

    assert target.read_text() == "original"


class TestRead:
    def test_read_back(self, store):
        store.write(record())

        loaded = store.read("Foo")

        assert loaded == record()

    def test_name_comes_from_file_name(self, store):
        store.link_path("Bar").write_text(json.dumps({"Name": "Other", "Version": "2.0", "Path": "/p"}))

        assert store.read("Bar").name == "Bar"

    def test_not_present(self, store):
        with pytest.raises(LinkNotFoundError):
            store.read("Foo")

    def test_ignores_case(self, store):
        store.write(record("Foo"))

        assert store.read("foo").name == "Foo"
        assert store.exists("FOO")

    def test_corrupt_document(self, store):
        store.link_path("Foo").write_text("{not json")

        with pytest.raises(LinkStoreError, match="Cannot read link record"):
            store.read("Foo")

    def test_missing_fields(self, store):
        store.link_path("Foo").write_text(json.dumps({"Path": "/p"}))

        with pytest.raises(LinkStoreError, match="Invalid link record"):
            store.read("Foo")


class TestReadAll:
    def test_empty_when_root_missing(self, tmp_path):
        assert list(LinkStore(tmp_path / "EXT").read_all()) == []

    def test_lists_every_link_file(self, store):
        store.write(record("Foo"))
        store.write(record("Bar", "2.0", "/modules/Bar/2.0"))
        (store.root / "notes.txt").write_text("ignored")

        found = dict(store.read_all())

        assert set(found) == {"Foo", "Bar"}
        assert found["Bar"].version == "2.0"

    def test_skips_unreadable_files(self, store):
        store.write(record("Foo"))
        store.link_path("Broken").write_text("[]")

        assert [name for name, _ in store.read_all()] == ["Foo"]

    def test_is_lazy(self, store):
        store.write(record("Foo"))

        entries = store.read_all()

        assert not isinstance(entries, list)
        assert next(entries)[0] == "Foo"


class TestDelete:
    def test_removes_file(self, store):
        store.write(record())

        store.delete("Foo")

        assert not store.exists("Foo")

    def test_ignores_case(self, store):
        store.write(record("Foo"))

        store.delete("FOO")

        assert list(store.root.iterdir()) == []

    def test_not_present(self, store):
        with pytest.raises(LinkNotFoundError):
            store.delete("Foo")

    def test_failure_is_store_error(self, store):
        store.write(record())

        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with pytest.raises(LinkStoreError, match="Cannot remove link record"):
                store.delete("Foo")

        assert store.exists("Foo")
