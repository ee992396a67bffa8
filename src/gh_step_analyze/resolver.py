"""Step resolution logic for GitHub Actions workflow runs.

This module turns a repository plus workflow/job/step names into duration
observations:
- Find the workflow by exact name (early-exit over workflow pages).
- List successful runs created inside the analysis window.
- For each run, find the job by exact name (early-exit over job pages), then
  the first completed step with the requested name, and measure it.

Missing workflows, jobs and steps are normal outcomes and yield no observation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .concurrency import RequestLimiter
from .errors import NotFoundError, ProviderError
from .github_client import GitHubClient
from .models import Job, Observation, RepositoryObservations, RepositoryRef, Run, Step, Workflow
from .pagination import search_paginated

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunLookup:
    """Outcome of resolving one run: an observation, a skip (both ``None``), or an error."""

    run: Run
    observation: Optional[Observation] = None
    error: Optional[str] = None


def find_workflow(
    client: GitHubClient,
    repository: RepositoryRef,
    workflow_name: str,
) -> Optional[Workflow]:
    """Find the workflow named exactly ``workflow_name``.

    Returns ``None`` when the repository has no such workflow or the repository
    itself is not found.
    """
    try:
        return search_paginated(
            client.iter_workflow_pages(repository),
            lambda workflow: workflow.name == workflow_name,
        )
    except NotFoundError:
        logger.debug(
            "Repository not found while listing workflows",
            extra={"repository": repository.full_name},
        )
        return None


def find_job(
    client: GitHubClient,
    repository: RepositoryRef,
    run_id: int,
    job_name: str,
) -> Optional[Job]:
    """Find the job named exactly ``job_name`` within a run, or ``None``."""
    try:
        return search_paginated(
            client.iter_job_pages(repository, run_id),
            lambda job: job.name == job_name,
        )
    except NotFoundError:
        logger.debug(
            "Run not found while listing jobs",
            extra={"repository": repository.full_name, "run_id": run_id},
        )
        return None


def find_step(job: Job, step_name: str) -> Optional[Step]:
    """Return the first completed step named ``step_name`` that has both timestamps."""
    for step in job.steps:
        if step.name != step_name or step.status != "completed":
            continue
        if step.started_at is None or step.completed_at is None:
            continue
        return step

    return None


def compute_duration_seconds(step: Step) -> Optional[int]:
    """Compute whole elapsed seconds for a step, truncating fractions.

    Returns ``None`` when timestamps are missing, incomparable, or the step
    completed before it started.
    """
    if step.started_at is None or step.completed_at is None:
        return None

    try:
        elapsed = (step.completed_at - step.started_at).total_seconds()
    except TypeError:
        logger.debug(
            "Skipping step due to incompatible datetime types",
            extra={"step_name": step.name},
        )
        return None

    if elapsed < 0:
        logger.debug(
            "Skipping step due to negative duration",
            extra={"step_name": step.name, "duration_seconds": elapsed},
        )
        return None

    return int(elapsed)


def build_observation(
    repository: RepositoryRef,
    workflow: Workflow,
    run: Run,
    job: Job,
    step: Step,
) -> Optional[Observation]:
    """Build an observation, or ``None`` when the step duration is unusable."""
    duration_seconds = compute_duration_seconds(step)
    if duration_seconds is None:
        return None

    return Observation(
        repository=repository,
        workflow=workflow,
        run=run,
        job=job,
        step=step,
        duration_seconds=duration_seconds,
    )


def resolve_run(
    client: GitHubClient,
    repository: RepositoryRef,
    workflow: Workflow,
    run: Run,
    job_name: str,
    step_name: str,
) -> Optional[Observation]:
    """Resolve a single run to an observation of the requested step, if any."""
    job = find_job(client, repository, run.id, job_name)
    if job is None:
        logger.debug(
            "Run has no matching job",
            extra={"repository": repository.full_name, "run_id": run.id, "job_name": job_name},
        )
        return None

    step = find_step(job, step_name)
    if step is None:
        logger.debug(
            "Job has no completed matching step",
            extra={"repository": repository.full_name, "job_id": job.id, "step_name": step_name},
        )
        return None

    return build_observation(repository, workflow, run, job, step)


def _is_eligible_run(run: Run, since: datetime) -> bool:
    if run.created_at < since:
        return False
    return run.conclusion == "success" or run.status == "success"


async def _lookup_run(
    client: GitHubClient,
    limiter: RequestLimiter,
    repository: RepositoryRef,
    workflow: Workflow,
    run: Run,
    job_name: str,
    step_name: str,
) -> RunLookup:
    try:
        observation = await limiter.run(
            resolve_run, client, repository, workflow, run, job_name, step_name
        )
    except ProviderError as exc:
        logger.warning(
            "Failed to resolve workflow run",
            extra={"repository": repository.full_name, "run_id": run.id, "error": str(exc)},
        )
        return RunLookup(run=run, error=f"run {run.id}: {exc}")

    return RunLookup(run=run, observation=observation)


async def resolve_repository(
    client: GitHubClient,
    limiter: RequestLimiter,
    repository: RepositoryRef,
    workflow_name: str,
    job_name: str,
    step_name: str,
    since: datetime,
) -> RepositoryObservations:
    """Collect step observations for one repository.

    Run lookups are issued concurrently through ``limiter``. A provider failure
    in one run is recorded on the result and does not affect sibling runs.

    Raises:
        ProviderError: If workflow discovery or run listing fails for a reason
            other than the resource being absent.
    """
    workflow = await limiter.run(find_workflow, client, repository, workflow_name)
    if workflow is None:
        logger.info(
            "Workflow not found in repository",
            extra={"repository": repository.full_name, "workflow_name": workflow_name},
        )
        return RepositoryObservations(repository=repository)

    try:
        runs: List[Run] = await limiter.run(
            client.list_successful_runs, repository, workflow.id, since
        )
    except NotFoundError:
        runs = []

    runs = [run for run in runs if _is_eligible_run(run, since)]

    lookups = await asyncio.gather(
        *(
            _lookup_run(client, limiter, repository, workflow, run, job_name, step_name)
            for run in runs
        )
    )

    observations = sorted(
        (lookup.observation for lookup in lookups if lookup.observation is not None),
        key=lambda observation: (observation.run.created_at, observation.run.id),
    )
    errors = tuple(lookup.error for lookup in lookups if lookup.error is not None)

    logger.info(
        "Collected step observations",
        extra={
            "repository": repository.full_name,
            "runs_total": len(runs),
            "observations": len(observations),
            "runs_failed": len(errors),
            "runs_skipped": len(runs) - len(observations) - len(errors),
        },
    )

    return RepositoryObservations(
        repository=repository,
        observations=tuple(observations),
        errors=errors,
    )
