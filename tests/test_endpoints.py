import pytest

from tcproxy.endpoints import candidates_for
from tcproxy.envelopes import EnvelopeShape
from tcproxy.exceptions import UnknownResourceError
from tcproxy.regions import resolve_region_code


def test_todos_for_europe_is_single_query_param_url():
    candidates = candidates_for("todos", resolve_region_code("europe"), "P1")
    assert [c.url for c in candidates] == ["https://app21.connect.trimble.com/tc/api/2.0/todos?projectId=P1"]


def test_views_use_query_parameter():
    candidates = candidates_for("views", "us", "P1")
    assert len(candidates) == 1
    assert candidates[0].url == "https://app.connect.trimble.com/tc/api/2.0/views?projectId=P1"


def test_project_info_is_not_unwrapped():
    (candidate,) = candidates_for("project", "ap", "P1")
    assert candidate.url == "https://app31.connect.trimble.com/tc/api/2.0/projects/P1"
    assert candidate.envelope is None


def test_files_candidate_order():
    candidates = candidates_for("files", "us", "P1")
    assert [c.url for c in candidates] == [
        "https://app.connect.trimble.com/tc/api/2.0/search?query=*&projectId=P1&type=FILE",
        "https://app.connect.trimble.com/tc/api/2.0/sync/P1?excludeVersion=true",
        "https://app.connect.trimble.com/tc/api/2.0/projects/P1",
    ]
    assert candidates[0].envelope is EnvelopeShape.DOT_DETAILS_PER_ITEM
    assert candidates[0].keep_type is None
    assert candidates[1].keep_type == "FILE"
    assert candidates[2].follow == "https://app.connect.trimble.com/tc/api/2.0/folders/{rootId}/items"


def test_topics_chain_spans_both_host_families():
    urls = [c.url for c in candidates_for("topics", "eu", "P1")]
    assert urls == [
        "https://open21.connect.trimble.com/bcf/3.0/projects/P1/topics",
        "https://open21.connect.trimble.com/bcf/2.1/projects/P1/topics",
        "https://open21.connect.trimble.com/projects/P1/topics",
        "https://app21.connect.trimble.com/tc/api/2.0/topics?projectId=P1",
        "https://app21.connect.trimble.com/tc/api/bcf/2.1/projects/P1/topics",
    ]


def test_staging_flag_switches_hosts():
    (candidate,) = candidates_for("todos", "eu", "P1", staging=True)
    assert candidate.url.startswith("https://app21.stage.connect.trimble.com/")


@pytest.mark.parametrize("resource", ["project", "todos", "views", "files", "topics"])
def test_candidates_are_deterministic(resource):
    assert candidates_for(resource, "ap-au", "P9") == candidates_for(resource, "ap-au", "P9")


def test_project_id_is_quoted():
    (candidate,) = candidates_for("todos", "us", "a b/c")
    assert candidate.url.endswith("projectId=a%20b%2Fc")


def test_unknown_resource():
    with pytest.raises(UnknownResourceError):
        candidates_for("clashes", "eu", "P1")
