# tests/test_search.py
from __future__ import annotations

import json

import httpx
import pytest

from statustracker.config import SEARCH_PATH, Settings
from statustracker.errors import TransportError
from statustracker.jira_api import JiraClient
from statustracker.jql import build_issue_search_query

QUERY = build_issue_search_query(["ABC"], [], [])


def make_settings(page_size: int = 100) -> Settings:
    return Settings(
        base_url="https://jira.local",
        username="tester@example.com",
        token="t",
        page_size=page_size,
        timeout_s=5.0,
    )


def fake_issues(start: int, n: int) -> list[dict]:
    return [{"id": str(i), "key": f"ABC-{i}", "fields": {}} for i in range(start, start + n)]


def make_client(page_sizes: list[int], calls: list[dict], page_size: int = 100) -> JiraClient:
    """Serve pages of the given sizes in order, recording every search body."""
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == SEARCH_PATH and request.method == "POST":
            body = json.loads((request.content or b"{}").decode("utf-8"))
            n = page_sizes[len(calls)]
            calls.append(body)
            # no "total": the client must not depend on it
            return httpx.Response(200, json={"issues": fake_issues(body["startAt"], n)})
        return httpx.Response(404)

    s = make_settings(page_size)
    return JiraClient(s, client=s.build_client(transport=httpx.MockTransport(handler)))


def test_search_all_stops_on_short_page():
    calls: list[dict] = []
    client = make_client([100, 100, 37], calls)
    issues = client.search_all(["customfield_10002", "status"], QUERY)

    assert len(issues) == 237
    assert len(calls) == 3
    assert [c["startAt"] for c in calls] == [0, 100, 200]
    assert issues[0].key == "ABC-0"
    assert issues[-1].key == "ABC-236"


def test_search_all_stops_on_empty_page():
    calls: list[dict] = []
    client = make_client([100, 100, 100, 0], calls)
    issues = client.search_all(["status"], QUERY)

    assert len(issues) == 300
    assert len(calls) == 4
    assert calls[-1]["startAt"] == 300


def test_search_payload_shape():
    calls: list[dict] = []
    client = make_client([0], calls)
    assert client.search_all(["customfield_10002", "status"], QUERY) == []
    assert calls == [{
        "fields": ["customfield_10002", "status"],
        "jql": '(project IN ("ABC"))',
        "startAt": 0,
        "maxResults": 100,
    }]


def test_offset_advances_by_returned_count():
    # server caps pages below the requested size: the short page ends the search
    calls: list[dict] = []
    client = make_client([2, 2, 1], calls, page_size=2)
    issues = client.search_all(["status"], QUERY)
    assert [c["startAt"] for c in calls] == [0, 2, 4]
    assert [c["maxResults"] for c in calls] == [2, 2, 2]
    assert len(issues) == 5


def test_explicit_page_size_overrides_settings():
    calls: list[dict] = []
    client = make_client([10, 3], calls)
    issues = client.search_all(["status"], QUERY, page_size=10)
    assert len(issues) == 13
    assert calls[1]["startAt"] == 10


def test_failure_mid_pagination_raises():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if len(seen) == 2:
            return httpx.Response(502, text="Bad Gateway")
        return httpx.Response(200, json={"issues": fake_issues(0, 2)})

    s = make_settings(page_size=2)
    client = JiraClient(s, client=s.build_client(transport=httpx.MockTransport(handler)))

    with pytest.raises(TransportError) as ei:
        client.search_all(["status"], QUERY)
    assert ei.value.status_code == 502
    # exactly one attempt per page, no retry
    assert len(seen) == 2


def test_connection_error_becomes_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    s = make_settings()
    client = JiraClient(s, client=s.build_client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError) as ei:
        client.search_all(["status"], QUERY)
    assert ei.value.status_code is None
    assert isinstance(ei.value.__cause__, httpx.ConnectError)


def test_invalid_json_becomes_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>login</html>")

    s = make_settings()
    client = JiraClient(s, client=s.build_client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError):
        client.search_all(["status"], QUERY)


def test_non_utf8_body_becomes_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"\x80\x81 not utf8")

    s = make_settings()
    client = JiraClient(s, client=s.build_client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError) as ei:
        client.search_all(["status"], QUERY)
    assert isinstance(ei.value.__cause__, ValueError)


@pytest.mark.parametrize("payload", [
    {"issues": [None]},
    {"issues": {"a": 1}},
    {"issues": ["ABC-1"]},
    {"issues": [{"key": "ABC-1", "fields": ["status"]}]},
])
def test_malformed_issues_become_transport_error(payload):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    s = make_settings()
    client = JiraClient(s, client=s.build_client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransportError):
        client.search_all(["status"], QUERY)
