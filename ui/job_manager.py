"""
Job Manager
===========
Runs video renders as background asyncio tasks so the HTTP request can
return a job id immediately; the browser polls GET /api/video/{job_id}.
Jobs are held in memory only and cannot be cancelled once started; the
oldest finished jobs are evicted once more than MAX_FINISHED_JOBS are kept.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from errors import StudioError
from telemetry import emit_telemetry


@dataclass
class Job:
    job_id: str
    kind: str = "video"
    status: str = "pending"          # pending | running | done | error
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    result_url: Optional[str] = None
    error: Optional[Dict[str, str]] = None
    _task: Optional[asyncio.Task] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.job_id,
            "kind": self.kind,
            "status": self.status,
            "startedAt": self.started_at,
            "endedAt": self.ended_at,
            "resultUrl": self.result_url,
            "error": self.error,
        }


# In-memory job store, insertion ordered
_jobs: Dict[str, Job] = {}

MAX_FINISHED_JOBS = 100


def _evict_finished() -> None:
    finished = [j for j in _jobs.values() if j.status in ("done", "error")]
    for job in finished[:max(0, len(finished) - MAX_FINISHED_JOBS)]:
        del _jobs[job.job_id]


async def start_job(work: Callable[[], Awaitable[str]], kind: str = "video") -> Job:
    """Schedule ``work`` on the running loop; it must return the result URL."""
    _evict_finished()
    job = Job(job_id=str(uuid.uuid4())[:8], kind=kind)
    _jobs[job.job_id] = job
    job._task = asyncio.create_task(_run_job(job, work))
    return job


async def _run_job(job: Job, work: Callable[[], Awaitable[str]]):
    job.status = "running"
    job.started_at = datetime.now().isoformat()
    emit_telemetry("JobManager", "running", {"jobId": job.job_id, "kind": job.kind})

    try:
        job.result_url = await work()
        job.status = "done"
    except StudioError as e:
        job.status = "error"
        job.error = e.to_dict()
    except Exception as e:
        print(f"  ❌ Job {job.job_id} crashed: {e}")
        job.status = "error"
        job.error = {"code": "UNEXPECTED_ERROR", "message": str(e)}
    finally:
        job.ended_at = datetime.now().isoformat()
        emit_telemetry("JobManager", job.status, {"jobId": job.job_id, "error": job.error})


def get_job(job_id: str) -> Optional[Job]:
    return _jobs.get(job_id)
