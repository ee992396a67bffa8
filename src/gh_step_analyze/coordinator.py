"""Concurrent fan-out of step resolution across repositories."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Sequence

from .concurrency import RequestLimiter
from .config import Config
from .errors import ProviderError
from .github_client import GitHubClient
from .models import RepositoryObservations, RepositoryRef
from .resolver import resolve_repository

logger = logging.getLogger(__name__)


async def _analyze_repository(
    client: GitHubClient,
    limiter: RequestLimiter,
    repository: RepositoryRef,
    workflow_name: str,
    job_name: str,
    step_name: str,
    since: datetime,
) -> RepositoryObservations:
    try:
        return await resolve_repository(
            client, limiter, repository, workflow_name, job_name, step_name, since
        )
    except ProviderError as exc:
        logger.warning(
            "Failed to analyze repository",
            extra={"repository": repository.full_name, "error": str(exc)},
        )
        return RepositoryObservations(repository=repository, errors=(str(exc),))


async def analyze(
    client: GitHubClient,
    repositories: Sequence[RepositoryRef],
    workflow_name: str,
    job_name: str,
    step_name: str,
    since: datetime,
    limiter: RequestLimiter,
) -> Dict[RepositoryRef, RepositoryObservations]:
    """Resolve every repository concurrently and return results in caller order.

    ``limiter`` is shared by every request issued during the analysis. A
    provider failure is attached to the affected repository only. If the
    analysis is cancelled, cancellation propagates to all in-flight lookups,
    ``client`` is told to stop issuing requests, and nothing is returned.
    """
    unique_repositories = list(dict.fromkeys(repositories))

    try:
        results = await asyncio.gather(
            *(
                _analyze_repository(
                    client, limiter, repository, workflow_name, job_name, step_name, since
                )
                for repository in unique_repositories
            )
        )
    except asyncio.CancelledError:
        # Worker threads cannot be interrupted; stop them at their next request.
        logger.info("Analysis cancelled; stopping outstanding requests")
        client.cancel()
        raise

    return {result.repository: result for result in results}


def run_analysis(
    client: GitHubClient,
    config: Config,
    now: Optional[datetime] = None,
    timeout_seconds: Optional[float] = None,
) -> Dict[RepositoryRef, RepositoryObservations]:
    """Run a full analysis pass synchronously.

    Args:
        client: Provider client used for every request.
        config: Validated configuration (repositories, names, window, concurrency).
        now: Reference time for the window; defaults to the current UTC time.
        timeout_seconds: Optional bound on the whole pass.

    Raises:
        asyncio.TimeoutError: If ``timeout_seconds`` elapses; no partial result
            is returned.
    """
    reference_time = now or datetime.now(timezone.utc)
    since = reference_time - timedelta(days=config.days)

    async def _run() -> Dict[RepositoryRef, RepositoryObservations]:
        limiter = RequestLimiter(config.max_concurrency)
        pending = analyze(
            client,
            config.repositories,
            config.workflow,
            config.job,
            config.step,
            since,
            limiter,
        )
        if timeout_seconds is None:
            return await pending
        return await asyncio.wait_for(pending, timeout=timeout_seconds)

    logger.debug(
        "Starting analysis",
        extra={
            "repositories": [repository.full_name for repository in config.repositories],
            "since": since.isoformat(),
            "max_concurrency": config.max_concurrency,
        },
    )
    return asyncio.run(_run())
