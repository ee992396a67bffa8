"""GitHub Actions REST API client for step duration data retrieval."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

import requests

from .config import Config
from .errors import AnalysisCancelledError, NotFoundError, ProviderError
from .models import Job, RepositoryRef, Run, Step, Workflow

logger = logging.getLogger(__name__)


class GitHubClient:
    """Small, typed client for the GitHub Actions workflow APIs.

    Calls are issued from several worker threads at once, so each thread gets
    its own ``requests.Session``. Once :meth:`cancel` is called every thread
    stops before its next page request or retry.
    """

    _API_VERSION = "2022-11-28"
    _PAGE_SIZE = 100
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(
        self,
        config: Config,
        timeout_seconds: int = 30,
        base_url: str = "https://api.github.com",
    ) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including the token.
            timeout_seconds: Per-request timeout in seconds.
            base_url: API root, overridable for GitHub Enterprise Server.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {config.token}",
            "X-GitHub-Api-Version": self._API_VERSION,
        }
        self._local = threading.local()
        self._cancelled = threading.Event()

    @property
    def _session(self) -> requests.Session:
        """Return the calling thread's session, creating it on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self._headers)
            self._local.session = session
        return session

    def cancel(self) -> None:
        """Stop issuing requests; in-flight calls end at their next page or retry."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _raise_if_cancelled(self, url: str) -> None:
        if self._cancelled.is_set():
            raise AnalysisCancelledError(f"Analysis cancelled before GET {url}")

    def _backoff(self, url: str, seconds: int) -> None:
        """Sleep between retries, waking early when the analysis is cancelled."""
        if self._cancelled.wait(seconds):
            raise AnalysisCancelledError(f"Analysis cancelled while retrying GET {url}")

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the API root."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _repo_path(self, repository: RepositoryRef, path: str) -> str:
        return f"repos/{repository.owner}/{repository.name}/{path.lstrip('/')}"

    def _format_datetime(self, value: datetime) -> str:
        """Format a datetime as UTC ISO8601 suitable for GitHub search qualifiers."""
        utc_value = value.astimezone(timezone.utc).replace(microsecond=0)
        return utc_value.isoformat().replace("+00:00", "Z")

    def _parse_datetime(self, value: Any) -> Optional[datetime]:
        """Parse GitHub ISO8601 timestamps into timezone-aware datetimes.

        Missing, non-string and unparseable values yield ``None``.
        """
        if not value:
            return None
        if not isinstance(value, str):
            logger.debug("Ignoring non-string timestamp", extra={"value": repr(value)})
            return None

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            logger.debug("Ignoring unparseable timestamp", extra={"value": value})
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _as_int(self, value: Any, kind: str, item: Dict[str, Any]) -> int:
        """Convert an id-like payload field, reporting bad values as ``ProviderError``."""
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ProviderError(f"GitHub {kind} payload has a malformed integer field: {item}") from exc

    def _is_rate_limited(self, response: requests.Response) -> bool:
        """Detect primary and secondary rate limit responses."""
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        if response.headers.get("Retry-After"):
            return True
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        return "rate limit" in (response.text or "").lower()

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute backoff seconds, honoring Retry-After or X-RateLimit-Reset when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        reset_header = response.headers.get("X-RateLimit-Reset")
        if reset_header and response.headers.get("X-RateLimit-Remaining") == "0":
            try:
                wait_seconds = int(reset_header) - int(time.time())
                return min(self._MAX_BACKOFF_SECONDS, max(1, wait_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GET request with retry logic for rate limit and 5xx responses.

        Raises:
            NotFoundError: If the resource returns HTTP 404.
            ProviderError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return a JSON object.
            AnalysisCancelledError: If the client is cancelled before or
                between attempts.
        """
        url = self._build_url(path)
        query = dict(params or {})

        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            self._raise_if_cancelled(url)
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise ProviderError(f"GitHub request failed after retries: GET {url}") from exc
                logger.debug(
                    "Retrying GitHub request after network error",
                    extra={"url": url, "attempt": attempt, "error": str(exc)},
                )
                self._backoff(url, min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = self._is_rate_limited(response) or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                backoff_seconds = self._extract_backoff_seconds(response, attempt)
                logger.info(
                    "GitHub request throttled or failed; backing off",
                    extra={
                        "url": url,
                        "status_code": status_code,
                        "attempt": attempt,
                        "backoff_seconds": backoff_seconds,
                    },
                )
                self._backoff(url, backoff_seconds)
                continue

            if status_code == 404:
                raise NotFoundError(f"GitHub resource not found: GET {url}")

            if status_code >= 400:
                raise ProviderError(
                    "GitHub API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise ProviderError(f"GitHub API returned invalid JSON: GET {url}") from exc

            if not isinstance(payload, dict):
                raise ProviderError(f"GitHub API returned unexpected payload shape: GET {url}")

            return payload

        raise ProviderError(f"GitHub request failed after retries: GET {url}") from last_error

    def _iter_pages(
        self,
        path: str,
        collection_key: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Iterator[List[Dict[str, Any]]]:
        """Yield raw pages lazily; one request is issued per page pulled.

        Iteration stops after an empty or partial page.
        """
        page = 1

        while True:
            query: Dict[str, Any] = dict(params or {})
            query["per_page"] = self._PAGE_SIZE
            query["page"] = page

            payload = self._get_json(path, params=query)
            page_items = payload.get(collection_key)
            if page_items is None:
                page_items = []
            if not isinstance(page_items, list) or not all(isinstance(item, dict) for item in page_items):
                raise ProviderError(
                    f"GitHub API returned unexpected '{collection_key}' shape: GET {path}"
                )

            if not page_items:
                return

            yield page_items

            if len(page_items) < self._PAGE_SIZE:
                return

            page += 1

    def _to_workflow(self, item: Dict[str, Any]) -> Workflow:
        workflow_id = item.get("id")
        name = item.get("name")
        if workflow_id is None or name is None:
            raise ProviderError(f"GitHub workflow payload is missing required fields: {item}")
        return Workflow(
            id=self._as_int(workflow_id, "workflow", item),
            name=str(name),
            path=str(item.get("path") or ""),
        )

    def _to_run(self, item: Dict[str, Any]) -> Optional[Run]:
        run_id = item.get("id")
        created_at = self._parse_datetime(item.get("created_at"))
        if run_id is None or created_at is None:
            logger.debug("Skipping workflow run with missing id or created_at", extra={"payload": item})
            return None

        run_number = item.get("run_number")
        return Run(
            id=self._as_int(run_id, "workflow run", item),
            created_at=created_at,
            status=str(item.get("status") or ""),
            conclusion=item.get("conclusion"),
            run_number=self._as_int(run_number, "workflow run", item) if run_number is not None else None,
            html_url=str(item.get("html_url") or ""),
        )

    def _to_step(self, item: Dict[str, Any], job: Dict[str, Any]) -> Step:
        if not isinstance(item, dict):
            raise ProviderError(f"GitHub job payload has a malformed step: {job}")

        number = item.get("number")
        return Step(
            name=str(item.get("name") or ""),
            status=str(item.get("status") or ""),
            started_at=self._parse_datetime(item.get("started_at")),
            completed_at=self._parse_datetime(item.get("completed_at")),
            conclusion=item.get("conclusion"),
            number=self._as_int(number, "job step", job) if number is not None else None,
        )

    def _to_job(self, item: Dict[str, Any]) -> Job:
        job_id = item.get("id")
        name = item.get("name")
        if job_id is None or name is None:
            raise ProviderError(f"GitHub job payload is missing required fields: {item}")

        raw_steps = item.get("steps") or []
        if not isinstance(raw_steps, list):
            raise ProviderError(f"GitHub job payload has malformed steps: {item}")

        return Job(
            id=self._as_int(job_id, "job", item),
            name=str(name),
            steps=tuple(self._to_step(step, item) for step in raw_steps),
            html_url=str(item.get("html_url") or ""),
        )

    def iter_workflow_pages(self, repository: RepositoryRef) -> Iterator[List[Workflow]]:
        """Lazily yield pages of workflows defined in a repository."""
        for page_items in self._iter_pages(
            self._repo_path(repository, "actions/workflows"),
            "workflows",
        ):
            yield [self._to_workflow(item) for item in page_items]

    def list_successful_runs(
        self,
        repository: RepositoryRef,
        workflow_id: int,
        since: datetime,
    ) -> List[Run]:
        """List every successful run of a workflow created after ``since``.

        Filtering is performed server-side with ``status=success`` and
        ``created=>{timestamp}``; all pages are fetched.
        """
        params = {
            "status": "success",
            "created": f">{self._format_datetime(since)}",
        }
        runs: List[Run] = []

        for page_items in self._iter_pages(
            self._repo_path(repository, f"actions/workflows/{workflow_id}/runs"),
            "workflow_runs",
            params=params,
        ):
            for item in page_items:
                run = self._to_run(item)
                if run is not None:
                    runs.append(run)

        return runs

    def iter_job_pages(self, repository: RepositoryRef, run_id: int) -> Iterator[List[Job]]:
        """Lazily yield pages of jobs, with embedded steps, for a workflow run."""
        for page_items in self._iter_pages(
            self._repo_path(repository, f"actions/runs/{run_id}/jobs"),
            "jobs",
        ):
            yield [self._to_job(item) for item in page_items]
