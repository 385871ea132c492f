"""
Unit tests for the reelforge command line entry point.
"""
import json
import os
from unittest.mock import AsyncMock, patch

import pytest

from reelforge import main as cli
from reelforge.core.exceptions import JobFailedError, JobValidationError
from reelforge.monitoring.preflight import HealthCheck, HealthStatus


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("reelforge.main.setup_logging"):
        yield


@pytest.fixture
def job_file(tmp_path):
    path = tmp_path / "job.json"
    path.write_text(json.dumps({"jobId": "job-1", "segments": [{"imageUrl": "u", "duration": 1}]}))
    return path


class TestParser:
    def test_serve_options(self):
        args = cli.build_parser().parse_args(["serve", "--port", "8080", "--production"])
        assert args.port == 8080
        assert args.production is True
        assert args.func is cli.serve

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestServe:
    def test_refuses_to_start_when_preflight_fails(self):
        failing = [HealthCheck("ffmpeg", HealthStatus.CRITICAL, "missing")]
        with patch("reelforge.main.run_preflight_checks", return_value=failing), \
                patch("uvicorn.run") as mock_run:
            assert cli.main(["serve"]) == 1
        mock_run.assert_not_called()

    def test_starts_uvicorn_factory(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "development")
        monkeypatch.setenv("PORT", "4100")
        healthy = [HealthCheck("ffmpeg", HealthStatus.HEALTHY, "ok")]
        with patch("reelforge.main.run_preflight_checks", return_value=healthy), \
                patch("uvicorn.run") as mock_run:
            assert cli.main(["serve", "--production"]) == 0

        assert mock_run.call_args.args[0] == "reelforge.api.main:create_app"
        assert mock_run.call_args.kwargs["factory"] is True
        assert mock_run.call_args.kwargs["port"] == 4100
        assert os.environ["APP_ENV"] == "production"


class TestRender:
    def test_success_prints_result(self, job_file, capsys):
        with patch("reelforge.main._render", new_callable=AsyncMock,
                   return_value={"jobId": "job-1", "url": "/out/job-1.mp4"}) as mock_render:
            assert cli.main(["render", str(job_file)]) == 0

        assert json.loads(capsys.readouterr().out) == {"jobId": "job-1", "url": "/out/job-1.mp4"}
        assert mock_render.await_args.args[0]["jobId"] == "job-1"

    def test_unreadable_file(self, tmp_path):
        assert cli.main(["render", str(tmp_path / "missing.json")]) == 2

    def test_invalid_json_file(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{nope")
        assert cli.main(["render", str(bad)]) == 2

    def test_validation_failure(self, job_file, capsys):
        with patch("reelforge.main._render", new_callable=AsyncMock,
                   side_effect=JobValidationError("segments array required", field="segments")):
            assert cli.main(["render", str(job_file)]) == 2
        assert json.loads(capsys.readouterr().out)["error"] == "segments array required"

    def test_job_failure(self, job_file, capsys):
        with patch("reelforge.main._render", new_callable=AsyncMock,
                   side_effect=JobFailedError("job-1", RuntimeError("boom"))):
            assert cli.main(["render", str(job_file)]) == 1
        assert json.loads(capsys.readouterr().out)["details"] == "boom"

    def test_unconfigured_storage_fails_cleanly(self, job_file, monkeypatch, caplog):
        monkeypatch.setenv("STORAGE_BACKEND", "supabase")
        with patch("reelforge.services.job_orchestrator.create_http_client") as mock_client:
            assert cli.main(["render", str(job_file)]) == 1

        mock_client.assert_not_called()
        assert "Storage is not usable" in caplog.text

    def test_validation_failure_reports_retained_workspace(self, job_file, capsys):
        error = JobValidationError("bad duration", field="duration", index=0)
        error.workspace = "/tmp/reelforge/abc"
        with patch("reelforge.main._render", new_callable=AsyncMock, side_effect=error):
            assert cli.main(["render", str(job_file)]) == 2
        assert json.loads(capsys.readouterr().out)["workspace"] == "/tmp/reelforge/abc"
