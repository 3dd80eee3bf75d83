"""Poll-to-completion loop for long-running generation jobs.

    SUBMITTED -> POLLING -> ... -> DONE | FAILED | TIMED_OUT

The backend gives no push notification, so the loop is bounded by
``max_attempts`` polls, i.e. at most ``interval_s * max_attempts`` seconds of
waiting. This is not a retry loop: an error marker ends it at once.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from errors import JobFailedError, JobTimedOutError
from telemetry import emit_telemetry

J = TypeVar("J")


class JobState(Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


async def run_to_completion(
    submit: Callable[[], Awaitable[J]],
    poll: Callable[[J], Awaitable[J]],
    is_done: Callable[[J], bool],
    get_error: Callable[[J], Optional[str]],
    interval_s: float,
    max_attempts: int,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "job",
) -> J:
    """Submit a job and poll it until it is done, failed, or out of attempts.

    Returns the finished job. Raises ``JobFailedError`` as soon as a refreshed
    job carries an error, and ``JobTimedOutError`` after exactly
    ``max_attempts`` polls without reaching a terminal state.
    """
    job = await submit()
    state = JobState.SUBMITTED
    emit_telemetry("JobPoller", state.value, {"label": label})

    error = get_error(job)
    if error:
        _finish(label, JobState.FAILED, 0)
        raise JobFailedError(f"{label} failed: {error}")
    if is_done(job):
        _finish(label, JobState.DONE, 0)
        return job

    state = JobState.POLLING
    attempts = 0
    while attempts < max_attempts:
        await sleep(interval_s)
        job = await poll(job)
        attempts += 1

        error = get_error(job)
        if error:
            _finish(label, JobState.FAILED, attempts)
            raise JobFailedError(f"{label} failed: {error}")
        if is_done(job):
            _finish(label, JobState.DONE, attempts)
            return job

        emit_telemetry("JobPoller", state.value, {"label": label, "attempt": attempts})

    _finish(label, JobState.TIMED_OUT, attempts)
    raise JobTimedOutError(
        f"{label} did not finish within {int(interval_s * max_attempts)}s, please try again later.",
        attempts=attempts,
    )


def _finish(label: str, state: JobState, attempts: int) -> None:
    emit_telemetry("JobPoller", state.value, {"label": label, "attempts": attempts})
