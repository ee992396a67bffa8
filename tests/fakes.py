"""In-memory stand-in for GitHubClient used by resolver and coordinator tests."""

import threading
import time
from datetime import datetime, timedelta, timezone

from gh_step_analyze.errors import AnalysisCancelledError
from gh_step_analyze.models import Job, Run, Step, Workflow

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def utc(day: int, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 10, day, hour, minute, second, tzinfo=timezone.utc)


def make_run(run_id: int, created_at: datetime | None = None) -> Run:
    return Run(
        id=run_id,
        created_at=created_at or utc(17, 8) + timedelta(minutes=run_id),
        status="completed",
        conclusion="success",
        run_number=run_id,
        html_url=f"https://github.com/octo/widgets/actions/runs/{run_id}",
    )


def make_step(
    name: str = "Install dependencies",
    status: str = "completed",
    duration_seconds: float | None = 120,
    started_at: datetime | None = None,
) -> Step:
    start = started_at or utc(17, 8)
    completed = start + timedelta(seconds=duration_seconds) if duration_seconds is not None else None
    return Step(name=name, status=status, started_at=start, completed_at=completed, conclusion="success")


def make_job(job_id: int, name: str = "build", steps=()) -> Job:
    return Job(
        id=job_id,
        name=name,
        steps=tuple(steps),
        html_url=f"https://github.com/octo/widgets/actions/runs/1/job/{job_id}",
    )


class FakeGitHubClient:
    """Serves canned pages and tracks calls and concurrent in-flight requests.

    Any configured value that is an exception instance is raised instead of
    returned. Requests made after ``cancel`` raise ``AnalysisCancelledError``.
    """

    def __init__(self, workflows=None, runs=None, jobs=None, delay_seconds: float = 0.0):
        self.workflows = workflows or {}
        self.runs = runs or {}
        self.jobs = jobs or {}
        self.delay_seconds = delay_seconds
        self.calls = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()
        self._cancelled = threading.Event()

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    def _request(self, key, value):
        if self._cancelled.is_set():
            raise AnalysisCancelledError(f"cancelled before {key}")
        with self._lock:
            self.calls.append(key)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay_seconds:
                time.sleep(self.delay_seconds)
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            with self._lock:
                self._in_flight -= 1

    def _pages(self, key, pages):
        if isinstance(pages, Exception):
            self._request(key, pages)
        for index, page in enumerate(pages):
            yield self._request((*key, index), page)

    def iter_workflow_pages(self, repository):
        return self._pages(("workflows", repository.full_name), self.workflows.get(repository.full_name, [[]]))

    def list_successful_runs(self, repository, workflow_id, since):
        return list(self._request(("runs", repository.full_name, workflow_id), self.runs.get((repository.full_name, workflow_id), [])))

    def iter_job_pages(self, repository, run_id):
        return self._pages(("jobs", repository.full_name, run_id), self.jobs.get((repository.full_name, run_id), [[]]))


def ci_workflow() -> Workflow:
    return Workflow(id=42, name="CI", path=".github/workflows/ci.yml")
