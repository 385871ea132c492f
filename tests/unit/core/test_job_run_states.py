"""
Unit tests for the job state machine and result models.
"""
from pathlib import Path

import pytest

from reelforge.core.exceptions import JobFailedError, JobValidationError
from reelforge.core.models import (
    CompositionOutcome,
    CompositionStrategy,
    JobResult,
    JobRun,
    JobState,
)


class TestJobRun:
    """State transition rules."""

    def test_starts_received(self):
        run = JobRun(job_id="j")
        assert run.state == JobState.RECEIVED
        assert run.history == [JobState.RECEIVED]

    def test_forward_transitions_may_skip_states(self):
        run = JobRun(job_id="j")
        run.advance(JobState.NORMALIZING)
        run.advance(JobState.FETCHING)
        run.advance(JobState.VALIDATING)
        run.advance(JobState.COMPOSING_FAST)
        run.advance(JobState.PUBLISHING)
        run.advance(JobState.CLEANUP)
        run.advance(JobState.DONE)
        assert run.state_path.startswith("received -> normalizing -> fetching")
        assert run.state_path.endswith("cleanup -> done")
        assert run.finished_at is not None

    def test_backward_transition_rejected(self):
        run = JobRun(job_id="j")
        run.advance(JobState.COMPOSING_FAST)
        with pytest.raises(ValueError):
            run.advance(JobState.FETCHING)

    def test_repeat_transition_rejected(self):
        run = JobRun(job_id="j")
        run.advance(JobState.FETCHING)
        with pytest.raises(ValueError):
            run.advance(JobState.FETCHING)

    def test_fail_reports_state_failed_in(self):
        run = JobRun(job_id="j")
        run.advance(JobState.COMPOSING_FALLBACK)
        failed_in = run.fail(RuntimeError("ffmpeg died"))
        assert failed_in == JobState.COMPOSING_FALLBACK
        assert run.state == JobState.FAILED
        assert run.error == "ffmpeg died"

    def test_terminal_states_are_final(self):
        run = JobRun(job_id="j")
        run.advance(JobState.DONE)
        with pytest.raises(ValueError):
            run.advance(JobState.FAILED)


class TestOutcomesAndResults:
    def test_composition_outcome_variants(self):
        ok = CompositionOutcome.ok(Path("/tmp/final.mp4"), CompositionStrategy.FAST)
        assert ok.success and ok.error is None
        failed = CompositionOutcome.failed(RuntimeError("x"), CompositionStrategy.FAST)
        assert not failed.success and failed.output_path is None

    def test_job_result_response_shape(self):
        result = JobResult(job_id="job-123", url="https://cdn/job-123.mp4")
        assert result.to_response() == {"jobId": "job-123", "url": "https://cdn/job-123.mp4"}


class TestErrorPayloads:
    def test_failed_error_hides_details_in_production(self):
        error = JobFailedError("j", RuntimeError("/tmp/secret exploded"), workspace="/tmp/abc", state="fetching")
        assert error.to_response(production=True) == {
            "error": "Video generation failed",
            "details": "Internal server error",
        }

    def test_failed_error_includes_details_in_development(self):
        error = JobFailedError("j", RuntimeError("boom"), workspace="/tmp/abc", state="fetching")
        payload = error.to_response(production=False)
        assert payload["details"] == "boom"
        assert payload["workspace"] == "/tmp/abc"
        assert payload["failedState"] == "fetching"

    def test_validation_error_payload(self):
        error = JobValidationError("bad duration", field="duration", index=3)
        assert error.to_response() == {"error": "bad duration", "field": "duration", "index": 3}
