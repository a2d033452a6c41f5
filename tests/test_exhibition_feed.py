"""Tests for the exhibition feed lifecycle: loading, filtering, errors, staleness."""

import asyncio
import os
import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("GALLERY_API_URL", "http://gallery.test")

from gallery.api.client import ApiClient
from gallery.api.session_signal import SessionSignal
from gallery.services.exhibitions import (
    ExhibitionFeed,
    FetchState,
    filter_by_category,
    normalize_matchers,
)

CATALOG = [
    {"_id": "1", "title": "Neon Bauhaus", "category": "Modern", "createdAt": "2022-03-01T10:00:00Z"},
    {"_id": "2", "title": "Old Masters", "category": "Classic", "createdBy": {"name": "R. Vermeer"}},
    {"_id": "3", "title": "Silk Roads", "category": "Art & Fashion", "isForSale": True, "price": 900},
]


def make_client(handler, signal=None):
    return ApiClient(
        "http://gallery.test",
        signal=signal or SessionSignal(),
        transport=httpx.MockTransport(handler),
    )


async def wait_for(predicate, attempts=200):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


def test_empty_matchers_returns_every_record_normalized():
    client = make_client(lambda request: httpx.Response(200, json=[{"_id": "1", "category": "Modern"}]))
    feed = ExhibitionFeed(client, [])

    state = asyncio.run(feed.activate())

    assert isinstance(state, FetchState)
    assert state.loading is False
    assert state.error is None
    assert state.status == "ready"
    assert len(state.exhibitions) == 1
    item = state.exhibitions[0]
    assert item.id == "1"
    assert item.theme == "Modern"
    assert item.cover_image == ""
    assert item.start_date == "2024"
    assert item.exhibitor == "Curator"
    assert not item.is_for_sale
    assert item.price == 0


def test_matchers_keep_only_member_categories():
    client = make_client(lambda request: httpx.Response(200, json=CATALOG[:2]))
    feed = ExhibitionFeed(client, ["Modern"])

    state = asyncio.run(feed.activate())

    assert len(state.exhibitions) == 1
    assert state.exhibitions[0].theme == "Modern"


def test_requests_the_full_collection_without_query_parameters():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=CATALOG)

    feed = ExhibitionFeed(make_client(handler), ["Classic", "Art & Fashion"])
    state = asyncio.run(feed.activate())

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/api/exhibitions"
    assert not seen[0].url.params
    assert [item.id for item in state.exhibitions] == ["2", "3"]


def test_network_error_on_first_load_leaves_empty_list():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    feed = ExhibitionFeed(make_client(handler))
    state = asyncio.run(feed.activate())

    assert state.loading is False
    assert isinstance(state.error, httpx.ConnectError)
    assert state.status == "error"
    assert state.exhibitions == []


def test_failed_refetch_keeps_previous_results():
    calls = {"count": 0}

    def handler(request):
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(200, json=CATALOG)
        return httpx.Response(503, json={"message": "maintenance"})

    feed = ExhibitionFeed(make_client(handler))

    async def scenario():
        await feed.activate()
        before = list(feed.exhibitions)
        ran = await feed.update_matchers(["Modern"])
        return before, ran

    before, ran = asyncio.run(scenario())

    assert ran is True
    assert feed.loading is False
    assert isinstance(feed.error, httpx.HTTPStatusError)
    assert feed.error.response.status_code == 503
    assert feed.exhibitions == before
    assert len(feed.exhibitions) == 3


def test_success_after_failure_clears_error():
    responses = [httpx.Response(500), httpx.Response(200, json=CATALOG)]
    feed = ExhibitionFeed(make_client(lambda request: responses.pop(0)))

    async def scenario():
        await feed.activate()
        assert feed.error is not None
        await feed.refresh()

    asyncio.run(scenario())

    assert feed.error is None
    assert len(feed.exhibitions) == 3


def test_matcher_changes_are_compared_by_value():
    calls = {"count": 0}

    def handler(request):
        calls["count"] += 1
        return httpx.Response(200, json=CATALOG)

    feed = ExhibitionFeed(make_client(handler), ["Modern", "Classic"])

    async def scenario():
        await feed.activate()
        same_values = await feed.update_matchers(["Classic", "Modern"])
        same_again = await feed.update_matchers(list(("Modern", "Classic", "Modern")))
        changed = await feed.update_matchers(["Modern"])
        return same_values, same_again, changed

    same_values, same_again, changed = asyncio.run(scenario())

    assert same_values is False
    assert same_again is False
    assert changed is True
    assert calls["count"] == 2
    assert [item.id for item in feed.exhibitions] == ["1"]


def test_refetch_shows_stale_data_while_loading():
    observed = {}
    feed = None
    responses = [CATALOG, CATALOG[:1]]

    async def handler(request):
        if feed.exhibitions:
            observed["loading"] = feed.loading
            observed["count"] = len(feed.exhibitions)
        return httpx.Response(200, json=responses.pop(0))

    feed = ExhibitionFeed(make_client(handler))

    async def scenario():
        await feed.activate()
        await feed.refresh()

    asyncio.run(scenario())

    assert observed == {"loading": True, "count": 3}
    assert len(feed.exhibitions) == 1
    assert feed.loading is False


def test_stale_response_cannot_overwrite_newer_matchers():
    gates = {}
    started = []

    async def handler(request):
        index = len(started)
        started.append(index)
        await gates[index].wait()
        return httpx.Response(200, json=CATALOG)

    feed = ExhibitionFeed(make_client(handler), ["Modern"])

    async def scenario():
        gates[0] = asyncio.Event()
        gates[1] = asyncio.Event()
        first = asyncio.create_task(feed.activate())
        await wait_for(lambda: len(started) == 1)
        second = asyncio.create_task(feed.update_matchers(["Classic"]))
        await wait_for(lambda: len(started) == 2)

        gates[1].set()
        await second
        assert [item.theme for item in feed.exhibitions] == ["Classic"]
        assert feed.loading is False

        # The older request resolves last and must be ignored.
        gates[0].set()
        await first

    asyncio.run(scenario())

    assert [item.theme for item in feed.exhibitions] == ["Classic"]
    assert feed.loading is False
    assert feed.error is None


def test_response_after_close_is_ignored():
    release = {}
    started = []

    async def handler(request):
        started.append(request)
        await release["event"].wait()
        return httpx.Response(200, json=CATALOG)

    feed = ExhibitionFeed(make_client(handler))

    async def scenario():
        release["event"] = asyncio.Event()
        task = asyncio.create_task(feed.activate())
        await wait_for(lambda: len(started) == 1)
        feed.close()
        release["event"].set()
        await task

    asyncio.run(scenario())

    assert feed.closed is True
    assert feed.exhibitions == []
    assert feed.error is None


def test_non_list_payload_is_reported_as_error():
    feed = ExhibitionFeed(make_client(lambda request: httpx.Response(200, json={"items": CATALOG})))
    state = asyncio.run(feed.activate())

    assert isinstance(state.error, TypeError)
    assert state.exhibitions == []
    assert state.loading is False


def test_malformed_json_is_reported_as_error():
    feed = ExhibitionFeed(make_client(lambda request: httpx.Response(200, content=b"<html>oops</html>")))
    state = asyncio.run(feed.activate())

    assert state.error is not None
    assert state.loading is False


def test_null_payload_leaves_results_untouched():
    responses = [httpx.Response(200, json=CATALOG), httpx.Response(200, content=b"null", headers={"content-type": "application/json"})]
    feed = ExhibitionFeed(make_client(lambda request: responses.pop(0)))

    async def scenario():
        await feed.activate()
        await feed.refresh()

    asyncio.run(scenario())

    assert len(feed.exhibitions) == 3
    assert feed.error is None


def test_unauthorized_fetch_is_an_error_and_signals_session_expiry():
    signal = SessionSignal()
    feed = ExhibitionFeed(
        make_client(lambda request: httpx.Response(401, json={"message": "No session"}), signal=signal)
    )

    state = asyncio.run(feed.activate())

    assert isinstance(state.error, httpx.HTTPStatusError)
    assert state.error.response.status_code == 401
    assert signal.invalid is True


def test_one_odd_typed_record_does_not_sink_the_catalog():
    odd = [{"_id": 1, "category": "Modern"}, {"_id": "2", "title": 5, "category": "Modern"}, *CATALOG]
    feed = ExhibitionFeed(make_client(lambda request: httpx.Response(200, json=odd)))

    state = asyncio.run(feed.activate())

    assert state.error is None
    assert [item.id for item in state.exhibitions] == ["1", "2", "1", "2", "3"]
    assert state.exhibitions[1].title == "5"


@pytest.mark.parametrize(
    "matchers, expected",
    [
        (None, frozenset()),
        ([], frozenset()),
        ("Modern", frozenset({"Modern"})),
        (("Modern", "Modern", "Classic"), frozenset({"Modern", "Classic"})),
    ],
)
def test_normalize_matchers(matchers, expected):
    assert normalize_matchers(matchers) == expected


def test_filter_by_category_exact_membership():
    kept = filter_by_category(CATALOG, frozenset({"Art", "Fashion", "Art & Fashion"}))
    assert [record["_id"] for record in kept] == ["3"]
    assert filter_by_category(CATALOG, frozenset()) == CATALOG
