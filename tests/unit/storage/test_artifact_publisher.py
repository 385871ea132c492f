"""
Unit tests for LocalStorage and ArtifactPublisher.
"""
import logging
from unittest.mock import MagicMock

import pytest

from reelforge.core.exceptions import PublishError
from reelforge.storage.exceptions import StorageError, StoragePermissionError
from reelforge.storage.local import LocalStorage
from reelforge.storage.publisher import ArtifactPublisher, storage_key_for


@pytest.fixture
def video(tmp_path):
    path = tmp_path / "work" / "final.mp4"
    path.parent.mkdir()
    path.write_bytes(b"first render")
    return path


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "published")


class TestLocalStorage:
    def test_save_returns_absolute_path(self, storage, video):
        url = storage.save_file(video, "job-1.mp4")
        assert url == str((storage.base_path / "job-1.mp4").resolve())
        assert storage.file_exists("job-1.mp4")

    def test_save_missing_source_raises(self, storage, tmp_path):
        with pytest.raises(StorageError):
            storage.save_file(tmp_path / "nope.mp4", "job-1.mp4")

    def test_delete(self, storage, video):
        storage.save_file(video, "job-1.mp4")
        assert storage.delete_file("job-1.mp4") is True
        assert storage.delete_file("job-1.mp4") is False

    @pytest.mark.parametrize("key", ["../escaped.mp4", "nested/../../escaped.mp4", "/tmp/escaped.mp4"])
    def test_keys_outside_base_are_rejected(self, storage, video, key):
        with pytest.raises(StoragePermissionError):
            storage.save_file(video, key)
        with pytest.raises(StoragePermissionError):
            storage.file_exists(key)
        with pytest.raises(StoragePermissionError):
            storage.delete_file(key)
        assert not (storage.base_path.parent / "escaped.mp4").exists()

    def test_nested_key_inside_base_is_allowed(self, storage, video):
        url = storage.save_file(video, "2024/job-1.mp4")
        assert url == str((storage.base_path / "2024" / "job-1.mp4").resolve())


class TestArtifactPublisher:
    def test_storage_key(self):
        assert storage_key_for("job-123") == "job-123.mp4"

    @pytest.mark.asyncio
    async def test_publish_under_job_id(self, storage, video):
        publisher = ArtifactPublisher(storage)

        artifact = await publisher.publish(video, "job-123")

        assert artifact.storage_key == "job-123.mp4"
        assert artifact.url.endswith("job-123.mp4")
        assert (storage.base_path / "job-123.mp4").read_bytes() == b"first render"

    @pytest.mark.asyncio
    async def test_republish_overwrites_and_logs(self, storage, video, caplog):
        caplog.set_level(logging.INFO)
        publisher = ArtifactPublisher(storage)
        await publisher.publish(video, "job-123")

        video.write_bytes(b"second render")
        await publisher.publish(video, "job-123")

        assert (storage.base_path / "job-123.mp4").read_bytes() == b"second render"
        assert "already exists; overwriting" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_render_raises(self, storage, tmp_path):
        publisher = ArtifactPublisher(storage)
        with pytest.raises(PublishError) as exc_info:
            await publisher.publish(tmp_path / "final.mp4", "job-1")
        assert exc_info.value.storage_key == "job-1.mp4"

    @pytest.mark.asyncio
    async def test_job_id_cannot_escape_storage_root(self, storage, video, tmp_path):
        publisher = ArtifactPublisher(storage)

        with pytest.raises(PublishError):
            await publisher.publish(video, "../escaped")

        assert not (tmp_path / "escaped.mp4").exists()

    @pytest.mark.asyncio
    async def test_backend_failure_is_wrapped(self, video):
        backend = MagicMock(backend_type="mock")
        backend.file_exists.return_value = False
        backend.save_file.side_effect = StorageError("bucket on fire")
        publisher = ArtifactPublisher(backend, content_type="video/mp4")

        with pytest.raises(PublishError) as exc_info:
            await publisher.publish(video, "job-9")

        assert "bucket on fire" in exc_info.value.message
        backend.save_file.assert_called_once_with(video, "job-9.mp4", "video/mp4")

    @pytest.mark.asyncio
    async def test_retract(self, storage, video):
        publisher = ArtifactPublisher(storage)
        await publisher.publish(video, "job-5")

        assert await publisher.retract("job-5") is True
        assert await publisher.retract("job-5") is False
