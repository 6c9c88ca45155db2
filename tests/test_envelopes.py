import pytest

from tcproxy.envelopes import EnvelopeShape, detect_envelope, filter_by_type, unwrap
from tcproxy.models import ProjectFile

FILES = [
    {"id": "f1", "name": "model.ifc", "size": 1200, "createdBy": {"name": "Ada"}, "createdOn": "2024-03-01T10:00:00Z"},
    {"id": "f2", "name": "plan.pdf", "size": 80, "createdBy": {"name": "Lin"}, "createdOn": "2024-03-02T10:00:00Z"},
]

PAYLOADS = {
    EnvelopeShape.BARE_ARRAY: list(FILES),
    EnvelopeShape.DOT_DATA: {"data": list(FILES)},
    EnvelopeShape.DOT_ITEMS: {"items": list(FILES), "total": 2},
    EnvelopeShape.DOT_DETAILS_PER_ITEM: [{"type": "FILE", "details": dict(f)} for f in FILES],
}


@pytest.mark.parametrize("shape", list(PAYLOADS))
def test_detect_envelope(shape):
    assert detect_envelope(PAYLOADS[shape]) is shape


@pytest.mark.parametrize("shape", list(PAYLOADS))
def test_every_shape_normalizes_to_the_same_files(shape):
    expected = [ProjectFile.from_raw(f) for f in FILES]
    assert [ProjectFile.from_raw(item) for item in unwrap(PAYLOADS[shape])] == expected


def test_search_hits_keep_their_type():
    items = unwrap(PAYLOADS[EnvelopeShape.DOT_DETAILS_PER_ITEM])
    assert [item["_searchType"] for item in items] == ["FILE", "FILE"]
    assert items[0]["id"] == "f1"


def test_details_list_on_object():
    payload = {"details": [{"type": "FILE", "details": {"id": "x"}}]}
    assert detect_envelope(payload) is EnvelopeShape.DOT_DETAILS_PER_ITEM
    assert unwrap(payload) == [{"id": "x", "_searchType": "FILE"}]


def test_details_list_of_plain_items():
    payload = {"details": [{"id": "f1", "type": "FILE"}]}
    assert detect_envelope(payload) is EnvelopeShape.DOT_DETAILS
    assert unwrap(payload) == [{"id": "f1", "type": "FILE"}]


@pytest.mark.parametrize("payload", [{}, {"rootId": "r1"}, None, "text", 42])
def test_unrecognized_payloads_unwrap_to_empty(payload):
    assert detect_envelope(payload) is None
    assert unwrap(payload) == []


def test_empty_array():
    assert detect_envelope([]) is EnvelopeShape.BARE_ARRAY
    assert unwrap({"data": []}) == []


def test_filter_by_type():
    items = [
        {"id": "1", "type": "FILE"},
        {"id": "2", "type": "FOLDER"},
        {"id": "3", "_searchType": "FILE"},
        "junk",
    ]
    assert [i["id"] for i in filter_by_type(items, "FILE")] == ["1", "3"]
