"""
Unit tests for WorkspaceManager.

Tests cover:
- Fresh, distinct directories even for a repeated job id
- Idempotent release
- Allocation and release failures
"""
from unittest.mock import MagicMock, patch

import pytest

from reelforge.core.exceptions import WorkspaceError
from reelforge.utils.workspace_manager import WorkspaceManager


@pytest.fixture
def manager(tmp_path):
    return WorkspaceManager(tmp_path / "temp")


class TestWorkspaceManager:
    def test_creates_root(self, tmp_path):
        root = tmp_path / "a" / "b"
        WorkspaceManager(root)
        assert root.is_dir()

    def test_root_that_is_a_file_fails(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(WorkspaceError):
            WorkspaceManager(blocker)

    def test_same_job_id_gets_distinct_directories(self, manager):
        first = manager.allocate("job-123")
        second = manager.allocate("job-123")

        assert first != second
        assert first.is_dir() and second.is_dir()
        assert first.parent == manager.root
        assert "job-123" not in first.name
        assert list(first.iterdir()) == []

    def test_allocation_collision_raises(self, manager):
        (manager.root / "fixedtoken").mkdir()
        fake_uuid = MagicMock(hex="fixedtoken")
        with patch("reelforge.utils.workspace_manager.uuid.uuid4", return_value=fake_uuid):
            with pytest.raises(WorkspaceError) as exc_info:
                manager.allocate("job-1")
        assert "job-1" in exc_info.value.message

    def test_release_removes_contents(self, manager):
        session = manager.allocate("j")
        (session / "img_0.png").write_bytes(b"x")
        (session / "nested").mkdir()
        (session / "nested" / "seg_0.mp4").write_bytes(b"y")

        assert manager.release(session) is True
        assert not session.exists()

    def test_release_twice_is_safe(self, manager):
        session = manager.allocate("j")
        assert manager.release(session) is True
        assert manager.release(session) is True
        assert manager.release(None) is True
        assert list(manager.root.iterdir()) == []

    def test_release_failure_is_logged_not_raised(self, manager, caplog):
        session = manager.allocate("j")
        with patch("reelforge.utils.workspace_manager.shutil.rmtree", side_effect=OSError("busy")):
            assert manager.release(session) is False
        assert "busy" in caplog.text
