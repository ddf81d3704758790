#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Test script for the Jira and GitHub paginated API clients.

This script validates:
- Offset pagination over Jira searches (start offsets, totals, stale totals)
- Link header pagination over GitHub listings
- Error propagation and API statistics recording
"""

import datetime
import json
import sys
from pathlib import Path

import httpx

# Add the project root to Python path to import our module
sys.path.insert(0, str(Path(__file__).parent))

from generate_insights import (
    APIStatistics,
    GitHubAPIClient,
    GitHubAPIError,
    GitHubNotFoundError,
    JiraAPIClient,
    JiraAPIError,
)

JIRA_URL = "https://jira.example.com/rest/api/3"


def make_issues(count):
    return [{"key": f"ABC-{i}", "fields": {}} for i in range(count)]


def make_jira_client(issues, calls, reported_total=None, stats=None):
    """Jira client backed by an in-memory search endpoint."""

    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/rest/api/3/search"
        payload = json.loads(request.content)
        calls.append(payload["startAt"])
        start = payload["startAt"]
        page = issues[start:start + payload["maxResults"]]
        total = len(issues) if reported_total is None else reported_total
        return httpx.Response(200, json={"startAt": start, "total": total, "issues": page})

    return JiraAPIClient(
        JIRA_URL,
        "bot@example.com",
        "token",
        stats=stats or APIStatistics(),
        transport=httpx.MockTransport(handler),
    )


def test_jira_empty_result_single_round_trip():
    """A total of zero costs exactly one request."""
    print("Testing empty Jira search...")

    calls = []
    with make_jira_client([], calls) as client:
        assert client.search_all("project = ABC") == []
    assert calls == [0]
    print("  ✅ Empty search made one round trip")


def test_jira_offsets_follow_accumulated_count():
    """137 issues with page size 50 are fetched at offsets 0, 50, 100."""
    print("Testing Jira offset pagination...")

    issues = make_issues(137)
    calls = []
    with make_jira_client(issues, calls) as client:
        result = client.search_all("project = ABC", page_size=50)

    assert calls == [0, 50, 100]
    assert len(result) == 137
    assert [issue["key"] for issue in result] == [issue["key"] for issue in issues]
    print("  ✅ Offsets and order preserved")


def test_jira_stale_total_stops_on_empty_page():
    """A total larger than the data available stops at the first empty page."""
    print("Testing stale Jira totals...")

    calls = []
    with make_jira_client(make_issues(60), calls, reported_total=500) as client:
        result = client.search_all("project = ABC", page_size=50)

    assert len(result) == 60
    assert calls == [0, 50, 60]
    print("  ✅ Stale total terminates")


def test_jira_search_payload():
    """The search body carries the query, offset, page size and fields."""
    print("Testing Jira search payload...")

    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"issues": [], "total": 0})

    client = JiraAPIClient(
        JIRA_URL, "bot@example.com", "token",
        stats=APIStatistics(), transport=httpx.MockTransport(handler),
    )
    client.search_all("issuetype = Bug", page_size=25, fields=["created"])
    client.close()

    assert seen == [{"jql": "issuetype = Bug", "startAt": 0, "maxResults": 25, "fields": ["created"]}]
    print("  ✅ Search payload is correct")


def test_jira_error_propagates():
    """Non-success responses raise and are counted."""
    print("Testing Jira error propagation...")

    stats = APIStatistics()
    client = JiraAPIClient(
        JIRA_URL, "bot@example.com", "token",
        stats=stats,
        transport=httpx.MockTransport(lambda request: httpx.Response(401, json={})),
    )

    try:
        client.search_all("project = ABC")
    except JiraAPIError as e:
        assert e.status_code == 401
    else:
        raise AssertionError("Expected JiraAPIError")
    finally:
        client.close()

    assert stats.stats["jira"]["errors"][401] == 1
    print("  ✅ Jira errors propagate")


def test_jira_agile_burndown_url():
    """Burndown requests go to the agile API alongside the REST root."""
    print("Testing Jira agile endpoint...")

    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"changes": {}})

    with JiraAPIClient(
        JIRA_URL, "bot@example.com", "token",
        stats=APIStatistics(), transport=httpx.MockTransport(handler),
    ) as client:
        assert client.get_sprint_burndown(7, 42) == {"changes": {}}

    assert seen == ["https://jira.example.com/rest/agile/1.0/board/7/sprint/42/burndown"]
    print("  ✅ Agile endpoint resolved")


def test_github_link_pagination():
    """GitHub listings follow rel=next links until none remain."""
    print("Testing GitHub link pagination...")

    pages = {
        "1": ([{"name": "api", "archived": False}, {"name": "legacy", "archived": True}], True),
        "2": ([{"name": "web", "archived": False}], False),
    }
    requested = []

    def handler(request):
        page = request.url.params.get("page", "1")
        requested.append((page, request.url.params.get("per_page")))
        items, has_next = pages[page]
        headers = {}
        if has_next:
            headers["Link"] = '<https://api.github.com/user/repos?per_page=100&page=2>; rel="next"'
        return httpx.Response(200, json=items, headers=headers)

    with GitHubAPIClient(
        "token", stats=APIStatistics(), transport=httpx.MockTransport(handler)
    ) as client:
        repos = client.list_repositories()

    assert [repo["name"] for repo in repos] == ["api", "web"]
    assert requested == [("1", "100"), ("2", "100")]
    print("  ✅ Link pagination followed")


def test_github_nested_items_and_limits():
    """Nested listings are unwrapped and max_items truncates."""
    print("Testing GitHub nested listings...")

    def handler(request):
        runs = [{"id": i, "conclusion": "success"} for i in range(5)]
        return httpx.Response(
            200,
            json={"total_count": 5, "workflow_runs": runs},
            headers={"Link": '<https://api.github.com/repos/o/r/actions/runs?page=2>; rel="next"'},
        )

    with GitHubAPIClient(
        "token", stats=APIStatistics(), transport=httpx.MockTransport(handler)
    ) as client:
        runs = client.list_workflow_runs("o/r", max_items=3)

    assert [run["id"] for run in runs] == [0, 1, 2]
    print("  ✅ Nested listings unwrapped")


def test_github_workflow_runs_created_filter():
    """A creation cutoff is sent as GitHub's created search qualifier."""
    print("Testing GitHub workflow run created filter...")

    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json={"total_count": 0, "workflow_runs": []})

    cutoff = datetime.datetime(2024, 4, 10, 15, 30, tzinfo=datetime.timezone.utc)
    with GitHubAPIClient(
        "token", stats=APIStatistics(), transport=httpx.MockTransport(handler)
    ) as client:
        assert client.list_workflow_runs("o/r", created_since=cutoff) == []
        client.list_workflow_runs("o/r")

    assert seen[0] == {"per_page": "100", "created": ">=2024-04-10"}
    assert "created" not in seen[1]
    print("  ✅ Created filter sent")


def test_github_empty_page_stops():
    """An empty page ends pagination even when a next link is present."""
    print("Testing GitHub empty page...")

    calls = []

    def handler(request):
        calls.append(str(request.url))
        return httpx.Response(
            200, json=[], headers={"Link": '<https://api.github.com/x?page=2>; rel="next"'}
        )

    with GitHubAPIClient(
        "token", stats=APIStatistics(), transport=httpx.MockTransport(handler)
    ) as client:
        assert client.list_branches("o/r") == []
    assert len(calls) == 1
    print("  ✅ Empty page stops pagination")


def test_github_errors():
    """404 raises the not-found subclass; other failures raise the base error."""
    print("Testing GitHub errors...")

    def handler(request):
        if request.url.path.endswith("/readme"):
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(500, json={"message": "boom"})

    stats = APIStatistics()
    with GitHubAPIClient("token", stats=stats, transport=httpx.MockTransport(handler)) as client:
        try:
            client.get_readme("o/r")
        except GitHubNotFoundError as e:
            assert e.status_code == 404
        else:
            raise AssertionError("Expected GitHubNotFoundError")

        try:
            client.list_branches("o/r")
        except GitHubNotFoundError:
            raise AssertionError("500 must not be reported as not found")
        except GitHubAPIError as e:
            assert e.status_code == 500
        else:
            raise AssertionError("Expected GitHubAPIError")

    assert stats.stats["github"]["errors"] == {404: 1, 500: 1}
    print("  ✅ GitHub errors classified")


def test_github_transport_exception():
    """Transport failures are wrapped and counted by exception type."""
    print("Testing GitHub transport failures...")

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    stats = APIStatistics()
    with GitHubAPIClient("token", stats=stats, transport=httpx.MockTransport(handler)) as client:
        try:
            client.list_branches("o/r")
        except GitHubAPIError as e:
            assert e.status_code is None
            assert isinstance(e.__cause__, httpx.ConnectError)
        else:
            raise AssertionError("Expected GitHubAPIError")

    assert stats.stats["github"]["errors"] == {"ConnectError": 1}
    print("  ✅ Transport failures wrapped")


def run_all_tests():
    """Run all pagination tests."""
    print("🧪 Running Pagination Tests")
    print("-" * 60)

    tests = [
        test_jira_empty_result_single_round_trip,
        test_jira_offsets_follow_accumulated_count,
        test_jira_stale_total_stops_on_empty_page,
        test_jira_search_payload,
        test_jira_error_propagates,
        test_jira_agile_burndown_url,
        test_github_link_pagination,
        test_github_nested_items_and_limits,
        test_github_workflow_runs_created_filter,
        test_github_empty_page_stops,
        test_github_errors,
        test_github_transport_exception,
    ]

    passed = 0
    failed = 0

    for test_func in tests:
        try:
            test_func()
            passed += 1
        except Exception as e:
            print(f"  ❌ {test_func.__name__} failed: {e}")
            failed += 1
            import traceback
            traceback.print_exc()

    print("-" * 60)
    print(f"📊 Test Results: {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
