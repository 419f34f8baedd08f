import logging
from datetime import timedelta

import pytest

from jobengine.jobs.rfq_expiry import RfqExpiryJob
from tests.fakes import T0, FakeQuote, FakeRfq, FakeRfqStore


@pytest.mark.anyio
async def test_expires_only_active_rfqs_past_their_deadline():
    overdue = FakeRfq(expires_at=T0 - timedelta(days=1))
    future = FakeRfq(expires_at=T0 + timedelta(days=1))
    closed = FakeRfq(status="closed", expires_at=T0 - timedelta(days=2))
    open_ended = FakeRfq(expires_at=None)
    store = FakeRfqStore([overdue, future, closed, open_ended])

    summary = await RfqExpiryJob(store, batch_size=100, now=lambda: T0)()

    assert (summary.selected, summary.processed, summary.failed) == (1, 1, 0)
    assert store.items[overdue.id].status == "expired"
    assert store.items[future.id].status == "active"
    assert store.items[closed.id].status == "closed"
    assert store.items[open_ended.id].status == "active"


@pytest.mark.anyio
async def test_oldest_first_and_bounded():
    rfqs = [
        FakeRfq(expires_at=T0 - timedelta(hours=1), created_at=T0 - timedelta(days=10 - i))
        for i in range(5)
    ]
    store = FakeRfqStore(reversed(rfqs))

    summary = await RfqExpiryJob(store, batch_size=3, now=lambda: T0)()

    assert summary.selected == 3
    assert [item_id for item_id, _ in store.updates] == [r.id for r in rfqs[:3]]
    assert [store.items[r.id].status for r in rfqs] == ["expired"] * 3 + ["active"] * 2


@pytest.mark.anyio
async def test_update_failure_is_isolated():
    rfqs = [FakeRfq(expires_at=T0 - timedelta(hours=1), created_at=T0 - timedelta(days=3 - i)) for i in range(3)]
    store = FakeRfqStore(rfqs)
    store.fail_update_for = {rfqs[0].id}

    summary = await RfqExpiryJob(store, batch_size=100, now=lambda: T0)()

    assert (summary.processed, summary.failed) == (2, 1)
    assert store.items[rfqs[0].id].status == "active"


@pytest.mark.anyio
async def test_open_quotes_on_an_expired_rfq_are_expired_too(caplog):
    caplog.set_level(logging.INFO)
    overdue = FakeRfq(expires_at=T0 - timedelta(days=1))
    still_open = FakeRfq(expires_at=T0 + timedelta(days=1))
    quotes = [
        FakeQuote(rfq_id=overdue.id, status="pending"),
        FakeQuote(rfq_id=overdue.id, status="active"),
        FakeQuote(rfq_id=overdue.id, status="accepted"),
        FakeQuote(rfq_id=still_open.id, status="pending"),
    ]
    store = FakeRfqStore([overdue, still_open], quotes=quotes)

    await RfqExpiryJob(store, batch_size=100, now=lambda: T0)()

    assert [q.status for q in quotes] == ["expired", "expired", "accepted", "pending"]
    [line] = [r for r in caplog.records if getattr(r, "event", None) == "rfq.expired"]
    assert (line.rfqs, line.quotes) == (1, 2)


@pytest.mark.anyio
async def test_quote_cascade_failure_counts_against_that_rfq_only():
    rfqs = [FakeRfq(expires_at=T0 - timedelta(hours=1), created_at=T0 - timedelta(days=2 - i)) for i in range(2)]
    store = FakeRfqStore(rfqs, quotes=[FakeQuote(rfq_id=rfqs[1].id)])
    calls = []
    original = store.expire_quotes_for

    async def flaky(rfq_id):
        calls.append(rfq_id)
        if rfq_id == rfqs[0].id:
            raise ConnectionError("quotes table locked")
        return await original(rfq_id)

    store.expire_quotes_for = flaky

    summary = await RfqExpiryJob(store, batch_size=100, now=lambda: T0)()

    assert (summary.processed, summary.failed) == (1, 1)
    assert calls == [rfqs[0].id, rfqs[1].id]
    assert store.quotes[0].status == "expired"
