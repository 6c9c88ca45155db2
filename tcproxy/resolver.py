"""
First-success-wins resolution over an ordered list of endpoint candidates.

``resolve`` walks the candidates one at a time (Trying(i)), stops at the first
one that fetches successfully (Succeeded) and otherwise reports the last
candidate's failure (Exhausted). It only needs an async ``fetch(url)``
callable, so it can be driven without an HTTP server.
"""
import logging
import urllib.parse
from typing import Any, Awaitable, Callable, List, Optional

from .endpoints import EndpointCandidate, candidates_for
from .envelopes import detect_envelope, filter_by_type, unwrap
from .fetcher import FetchResult

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable[FetchResult]]

DEFAULT_FAILURE_STATUS = 500


class Outcome:
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"

    def __init__(
        self,
        state: str,
        *,
        data: Any = None,
        status: int = 200,
        error: Optional[str] = None,
        index: Optional[int] = None,
    ):
        self.state = state
        self.data = data
        self.status = status
        self.error = error
        # index of the candidate that produced the outcome
        self.index = index

    @property
    def ok(self) -> bool:
        return self.state == self.SUCCEEDED

    def __repr__(self) -> str:
        return f"Outcome({self.state}, status={self.status}, index={self.index})"


async def fetch_candidate(candidate: EndpointCandidate, fetch: Fetch) -> FetchResult:
    result = await fetch(candidate.url)
    if not result.ok or candidate.follow is None:
        return result
    root_id = result.data.get("rootId") if isinstance(result.data, dict) else None
    if not root_id:
        logger.warning("No rootId in project payload from %s", candidate.url)
        return FetchResult.failure(DEFAULT_FAILURE_STATUS, "Project rootId not found")
    return await fetch(candidate.follow.format(rootId=urllib.parse.quote(str(root_id), safe="")))


def normalize(candidate: EndpointCandidate, payload: Any) -> Any:
    """Unwrap the payload's envelope and apply the candidate's type filter."""
    if candidate.envelope is None:
        return payload
    shape = detect_envelope(payload)
    if shape is not candidate.envelope:
        logger.debug("Expected %s envelope from %s, got %s", candidate.envelope, candidate.url, shape)
    items = unwrap(payload)
    if candidate.keep_type:
        items = filter_by_type(items, candidate.keep_type)
    return items


async def resolve(candidates: List[EndpointCandidate], fetch: Fetch) -> Outcome:
    last: Optional[FetchResult] = None
    total = len(candidates)
    for index, candidate in enumerate(candidates):
        result = await fetch_candidate(candidate, fetch)
        if result.ok:
            data = normalize(candidate, result.data)
            if isinstance(data, list):
                logger.info("Retrieved %d items from candidate %d/%d: %s", len(data), index + 1, total, candidate.url)
            return Outcome(Outcome.SUCCEEDED, data=data, index=index)
        logger.warning("Candidate %d/%d failed (%s): %s", index + 1, total, result.status, candidate.url)
        last = result

    if last is None:
        logger.error("No endpoint candidates to try")
        return Outcome(Outcome.EXHAUSTED, status=DEFAULT_FAILURE_STATUS, error="No endpoint candidates")
    logger.error("All %d candidates failed; last status %s", total, last.status)
    return Outcome(
        Outcome.EXHAUSTED,
        status=last.status or DEFAULT_FAILURE_STATUS,
        error=last.error,
        index=total - 1,
    )


class ResourceProxy:
    """
    Resolves logical resources (project, todos, views, files, topics) for one
    region using a single fetcher.
    """

    def __init__(self, fetch: Fetch, region: str, *, staging: bool = False):
        self._fetch = fetch
        self.region = region
        self.staging = staging

    def candidates(self, resource: str, project_id: str) -> List[EndpointCandidate]:
        return candidates_for(resource, self.region, project_id, staging=self.staging)

    async def get(self, resource: str, project_id: str) -> Outcome:
        return await resolve(self.candidates(resource, project_id), self._fetch)
