import urllib.parse
from typing import List, Optional

from .config import API_ROOT, BCF_ROOT
from .envelopes import EnvelopeShape
from .exceptions import UnknownResourceError
from .regions import core_api_host, topics_api_host

RESOURCES = ("project", "todos", "views", "files", "topics")


class EndpointCandidate:
    """
    One hypothesis for where a resource lives upstream.

    `follow` is a second-step URL template; `{rootId}` is filled in from the
    payload of `url` and the follow-up response is the candidate's result.
    """

    def __init__(
        self,
        url: str,
        envelope: Optional[EnvelopeShape] = EnvelopeShape.BARE_ARRAY,
        *,
        keep_type: Optional[str] = None,
        follow: Optional[str] = None,
    ):
        self.url = url
        self.envelope = envelope
        self.keep_type = keep_type
        self.follow = follow

    def __eq__(self, other):
        if not isinstance(other, EndpointCandidate):
            return NotImplemented
        return (self.url, self.envelope, self.keep_type, self.follow) == (
            other.url,
            other.envelope,
            other.keep_type,
            other.follow,
        )

    def __repr__(self) -> str:
        return f"EndpointCandidate({self.url!r}, envelope={self.envelope}, keep_type={self.keep_type!r})"


def candidates_for(resource: str, region: str, project_id: str, staging: bool = False) -> List[EndpointCandidate]:
    """
    Ordered candidate list for `resource`. Callers try them in order and stop
    at the first success.
    """
    core = f"https://{core_api_host(region, staging)}"
    topics = f"https://{topics_api_host(region, staging)}"
    root = f"{core}{API_ROOT}"
    pid = urllib.parse.quote(str(project_id), safe="")

    if resource == "project":
        return [EndpointCandidate(f"{root}/projects/{pid}", envelope=None)]

    # todos and views take the project as a query parameter, never in the path
    if resource in ("todos", "views"):
        return [EndpointCandidate(f"{root}/{resource}?projectId={pid}")]

    if resource == "files":
        return [
            EndpointCandidate(
                f"{root}/search?query=*&projectId={pid}&type=FILE",
                EnvelopeShape.DOT_DETAILS_PER_ITEM,
            ),
            EndpointCandidate(
                f"{root}/sync/{pid}?excludeVersion=true",
                EnvelopeShape.DOT_DATA,
                keep_type="FILE",
            ),
            EndpointCandidate(
                f"{root}/projects/{pid}",
                EnvelopeShape.BARE_ARRAY,
                keep_type="FILE",
                follow=f"{root}/folders/{{rootId}}/items",
            ),
        ]

    if resource == "topics":
        return [
            EndpointCandidate(f"{topics}/bcf/3.0/projects/{pid}/topics"),
            EndpointCandidate(f"{topics}/bcf/2.1/projects/{pid}/topics"),
            EndpointCandidate(f"{topics}/projects/{pid}/topics"),
            EndpointCandidate(f"{root}/topics?projectId={pid}", EnvelopeShape.DOT_DATA),
            EndpointCandidate(f"{core}{BCF_ROOT}/projects/{pid}/topics"),
        ]

    raise UnknownResourceError(f"Unknown resource '{resource}'. Known: {list(RESOURCES)}")
