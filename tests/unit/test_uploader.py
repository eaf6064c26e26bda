"""Unit tests for the directory uploader."""

import asyncio
from pathlib import Path

import pytest

from client_deployer.core.exceptions import ConfigurationError, DeploymentCancelledError
from client_deployer.core.uploader import (
    DirectoryUploader,
    build_upload_unit,
    guess_content_type,
    object_key_for,
)
from tests.fakes import FakeStorage, write_tree

BUCKET = "my-site-bucket"


class TestContentTypes:
    """Tests for content type inference."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("index.html", "text/html"),
            ("assets/app.js", "application/javascript"),
            ("styles/main.css", "text/css"),
            ("logo.png", "image/png"),
            ("icon.svg", "image/svg+xml"),
            ("data.json", "application/json"),
            ("fonts/inter.woff2", "font/woff2"),
            ("INDEX.HTML", "text/html"),
        ],
    )
    def test_known_extensions(self, name: str, expected: str):
        assert guess_content_type(name) == expected

    def test_unknown_extension_defaults_to_octet_stream(self):
        assert guess_content_type("blob.unknownext") == "application/octet-stream"
        assert guess_content_type("LICENSE") == "application/octet-stream"


class TestUploadUnits:
    """Tests for object key derivation."""

    def test_object_key_is_relative_posix_path(self, tmp_path: Path):
        path = tmp_path / "assets" / "img" / "logo.png"
        assert object_key_for(tmp_path, path) == "assets/img/logo.png"

    def test_build_upload_unit(self, tmp_path: Path):
        unit = build_upload_unit(tmp_path, tmp_path / "assets" / "app.js")

        assert unit.object_key == "assets/app.js"
        assert unit.content_type == "application/javascript"
        assert unit.local_path == tmp_path / "assets" / "app.js"


class TestDirectoryUploader:
    """Tests for DirectoryUploader."""

    @pytest.fixture
    def storage(self) -> FakeStorage:
        storage = FakeStorage()
        storage.add_bucket(BUCKET)
        return storage

    @pytest.mark.asyncio
    async def test_uploads_every_file(self, storage: FakeStorage, site_dir: Path):
        uploader = DirectoryUploader(storage)

        summary = await uploader.upload(site_dir, BUCKET)

        assert summary.succeeded
        assert sorted(summary.uploaded) == ["assets/app.js", "error.html", "index.html"]
        objects = storage.buckets[BUCKET]
        assert objects["index.html"] == (b"<html><body>hello</body></html>", "text/html")
        assert objects["error.html"][1] == "text/html"
        assert objects["assets/app.js"][1] == "application/javascript"

    @pytest.mark.asyncio
    async def test_directories_are_not_uploaded(self, storage: FakeStorage, tmp_path: Path):
        root = write_tree(tmp_path / "site", {"a/b/c/deep.txt": "deep", "top.txt": "top"})
        (root / "empty").mkdir()

        summary = await DirectoryUploader(storage).upload(root, BUCKET)

        assert sorted(storage.buckets[BUCKET]) == ["a/b/c/deep.txt", "top.txt"]
        assert len(summary.uploaded) == 2

    @pytest.mark.asyncio
    async def test_waits_for_all_uploads(self, storage: FakeStorage, tmp_path: Path):
        files = {f"dir{i % 3}/file{i}.txt": str(i) for i in range(30)}
        root = write_tree(tmp_path / "site", files)
        storage.put_delay = 0.01

        summary = await DirectoryUploader(storage, concurrency=4).upload(root, BUCKET)

        assert len(summary.uploaded) == 30
        assert storage.in_flight == 0
        assert sorted(storage.buckets[BUCKET]) == sorted(files)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, storage: FakeStorage, tmp_path: Path):
        root = write_tree(tmp_path / "site", {f"f{i}.txt": "x" for i in range(20)})
        storage.put_delay = 0.01

        await DirectoryUploader(storage, concurrency=3).upload(root, BUCKET)

        assert 1 < storage.max_in_flight <= 3

    @pytest.mark.asyncio
    async def test_failed_put_is_collected(self, storage: FakeStorage, site_dir: Path):
        storage.failing_keys.add("assets/app.js")

        summary = await DirectoryUploader(storage).upload(site_dir, BUCKET)

        assert not summary.succeeded
        assert sorted(summary.uploaded) == ["error.html", "index.html"]
        assert [f.object_key for f in summary.failed] == ["assets/app.js"]
        assert "Access Denied" in summary.failed[0].error

    @pytest.mark.asyncio
    async def test_failed_read_is_collected(
        self, storage: FakeStorage, site_dir: Path, monkeypatch: pytest.MonkeyPatch
    ):
        original = Path.read_bytes

        def flaky_read(self: Path) -> bytes:
            if self.name == "error.html":
                raise PermissionError("permission denied")
            return original(self)

        monkeypatch.setattr(Path, "read_bytes", flaky_read)

        summary = await DirectoryUploader(storage).upload(site_dir, BUCKET)

        assert sorted(summary.uploaded) == ["assets/app.js", "index.html"]
        assert summary.failed[0].object_key == "error.html"
        assert "permission denied" in summary.failed[0].error

    @pytest.mark.asyncio
    async def test_missing_root_is_configuration_error(self, storage: FakeStorage, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            await DirectoryUploader(storage).upload(tmp_path / "missing", BUCKET)

        assert storage.calls == []

    @pytest.mark.asyncio
    async def test_cancel_stops_new_uploads(self, storage: FakeStorage, tmp_path: Path):
        root = write_tree(tmp_path / "site", {f"f{i}.txt": "x" for i in range(20)})
        cancel = asyncio.Event()
        storage.on_put = lambda key: cancel.set()

        uploader = DirectoryUploader(storage, concurrency=1, cancel_event=cancel)

        with pytest.raises(DeploymentCancelledError) as exc_info:
            await uploader.upload(root, BUCKET)

        assert len(storage.buckets[BUCKET]) == 1
        assert storage.in_flight == 0
        assert exc_info.value.details["uploaded"] == 1
        assert exc_info.value.details["skipped"] == 19

    @pytest.mark.asyncio
    async def test_cancel_after_last_upload_returns_summary(
        self, storage: FakeStorage, tmp_path: Path
    ):
        root = write_tree(tmp_path / "site", {"a.txt": "a", "b.txt": "b"})
        cancel = asyncio.Event()

        def cancel_when_done(key: str) -> None:
            if len(storage.buckets[BUCKET]) == 2:
                cancel.set()

        storage.on_put = cancel_when_done
        uploader = DirectoryUploader(storage, concurrency=1, cancel_event=cancel)

        summary = await uploader.upload(root, BUCKET)

        assert cancel.is_set()
        assert sorted(summary.uploaded) == ["a.txt", "b.txt"]
        assert summary.skipped == []
