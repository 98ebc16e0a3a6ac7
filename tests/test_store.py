"""Tests del adaptador de store y del servicio de descubrimiento."""

from datetime import date

import pytest
from conftest import booking_row, listing_row

from vitrina.config import STORE_UNAVAILABLE_MESSAGE
from vitrina.database import get_supabase_client
from vitrina.discovery import DiscoveryService, ListingStore
from vitrina.errors import StoreError
from vitrina.models import SearchCriteria


async def test_fetch_active_listings_filters_server_side(fake_db, store):
    fake_db.seed(
        "listings",
        [listing_row("a"), listing_row("b", status="draft"), listing_row("c", status="inactive")],
    )
    snapshot = await store.fetch_active_listings()
    assert snapshot.ok
    assert [listing.id for listing in snapshot.items] == ["a"]


async def test_malformed_listing_rows_are_counted(fake_db, store):
    fake_db.seed("listings", [{"status": "active", "title": "sin id"}, listing_row("ok")])
    snapshot = await store.fetch_active_listings()
    assert [listing.id for listing in snapshot.items] == ["ok"]
    assert snapshot.skipped == 1


async def test_failure_returns_empty_snapshot_with_error(fake_db, store):
    fake_db.seed("listings", [listing_row("a")])
    fake_db.failing.add("listings")

    snapshot = await store.fetch_active_listings()

    assert snapshot.items == []
    assert isinstance(snapshot.error, StoreError)
    assert snapshot.error.operation == "listings.get_active"


async def test_reads_are_retried(fake_db, store):
    fake_db.failing.add("bookings")
    await store.fetch_active_bookings()
    assert fake_db.calls.count(("bookings", "select")) == store.retry_attempts


async def test_falls_back_to_unfiltered_read(fake_db, listing_repo, booking_repo):
    class FlakyListingRepo(type(listing_repo)):
        def get_active(self):
            raise RuntimeError("missing index")

    fake_db.seed(
        "listings",
        [listing_row("a"), listing_row("legacy", status=None), listing_row("d", status="draft")],
    )
    store = ListingStore(
        listing_repo=FlakyListingRepo(client=fake_db),
        booking_repo=booking_repo,
        retry_attempts=1,
        retry_wait_min=0,
        retry_wait_max=0,
    )

    snapshot = await store.fetch_active_listings()

    assert snapshot.ok
    assert sorted(listing.id for listing in snapshot.items) == ["a", "legacy"]


async def test_fetch_active_bookings(fake_db, store):
    fake_db.seed(
        "bookings",
        [
            booking_row("a", "2024-01-01", "2024-01-02", status="pending"),
            booking_row("b", "2024-01-01", "2024-01-02", status="cancelled"),
        ],
    )
    snapshot = await store.fetch_active_bookings()
    assert [b.listing_id for b in snapshot.items] == ["a"]


async def test_listing_feed_publishes_only_on_change(fake_db, store):
    fake_db.seed("listings", [listing_row("a")])
    feed = store.listing_feed(poll_interval=60)
    received = []
    feed.subscribe(received.append)

    assert await feed.refresh() is True
    assert await feed.refresh() is False

    fake_db.seed("listings", [listing_row("b")])
    assert await feed.refresh() is True

    assert [[listing.id for listing in batch] for batch in received] == [["a"], ["a", "b"]]
    feed.close()


async def test_listing_feed_keeps_last_value_on_error(fake_db, store):
    fake_db.seed("listings", [listing_row("a")])
    feed = store.listing_feed(poll_interval=60)
    await feed.refresh()

    fake_db.failing.update({"listings"})
    store.retry_attempts = 1
    assert await feed.refresh() is False
    assert feed.last_error is not None
    assert [listing.id for listing in feed.channel.latest] == ["a"]
    feed.close()


async def test_subscribe_starts_and_close_stops_polling(fake_db, store):
    fake_db.seed("listings", [listing_row("a")])
    received = []
    feed, subscription = store.subscribe(received.append, poll_interval=60)
    assert feed.running

    await feed.refresh()
    feed.close()

    assert not feed.running
    assert not subscription.active
    assert received and received[0][0].id == "a"


async def test_search_end_to_end(fake_db, store):
    fake_db.seed(
        "listings",
        [
            listing_row("L1", title="Cabaña", createdAt="2024-01-01T00:00:00Z"),
            listing_row("L2", title="Cabaña grande", createdAt="2024-01-02T00:00:00Z"),
        ],
    )
    fake_db.seed("bookings", [booking_row("L1", "2024-01-05", "2024-01-10")])

    service = DiscoveryService(store=store)
    result = await service.search(
        SearchCriteria(search_query="cabaña", check_in=date(2024, 1, 8), check_out=date(2024, 1, 12))
    )

    assert not result.degraded
    assert [listing.id for listing in result.listings] == ["L2"]
    assert result.total_active == 2


async def test_search_degrades_when_bookings_fail(fake_db, store):
    fake_db.seed("listings", [listing_row("L1")])
    fake_db.failing.add("bookings")

    service = DiscoveryService(store=store)
    result = await service.search(
        SearchCriteria(check_in=date(2024, 1, 8), check_out=date(2024, 1, 12))
    )

    assert result.error == STORE_UNAVAILABLE_MESSAGE
    assert [listing.id for listing in result.listings] == ["L1"]


async def test_search_skips_bookings_without_dates(fake_db, store):
    fake_db.seed("listings", [listing_row("L1")])
    service = DiscoveryService(store=store)
    await service.search(SearchCriteria())
    assert ("bookings", "select") not in fake_db.calls


async def test_search_with_store_down_returns_empty(fake_db, store):
    fake_db.failing.add("listings")
    service = DiscoveryService(store=store)
    result = await service.search(SearchCriteria())
    assert result.listings == []
    assert result.degraded


def test_supabase_client_requires_credentials(monkeypatch):
    monkeypatch.delenv("VITRINA_SUPABASE_URL", raising=False)
    monkeypatch.delenv("VITRINA_SUPABASE_KEY", raising=False)
    get_supabase_client.cache_clear()

    with pytest.raises(ValueError, match="VITRINA_SUPABASE_URL"):
        get_supabase_client()
