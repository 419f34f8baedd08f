import logging

import pytest

from jobengine.drain import DrainSummary, ItemResult, drain


def _select_from(items, seen_bounds=None):
    async def select(bound):
        if seen_bounds is not None:
            seen_bounds.append(bound)
        return list(items)

    return select


def _events(caplog, event):
    return [r for r in caplog.records if getattr(r, "event", None) == event]


@pytest.mark.anyio
async def test_failing_item_does_not_block_the_rest_of_the_batch(caplog):
    caplog.set_level(logging.INFO)
    acted = []

    async def action(item):
        acted.append(item)
        if item == 3:
            return ItemResult.failure("recipient rejected")
        return ItemResult.success()

    summary = await drain("demo", _select_from([1, 2, 3, 4, 5]), action)

    assert acted == [1, 2, 3, 4, 5]
    assert summary == DrainSummary(name="demo", selected=5, processed=4, failed=1)
    assert summary.processed == summary.selected - summary.failed

    failed = _events(caplog, "drain.item_failed")
    assert len(failed) == 1
    assert failed[0].item_id == "3"
    assert failed[0].reason == "recipient rejected"

    summaries = _events(caplog, "drain.summary")
    assert len(summaries) == 1
    assert (summaries[0].selected, summaries[0].processed, summaries[0].failed) == (5, 4, 1)


@pytest.mark.anyio
async def test_exceptions_from_the_action_become_item_failures(caplog):
    caplog.set_level(logging.INFO)

    async def action(item):
        if item in {"b", "d"}:
            raise ConnectionError(f"lost connection on {item}")
        return ItemResult.success()

    summary = await drain("demo", _select_from(["a", "b", "c", "d"]), action)

    assert (summary.processed, summary.failed) == (2, 2)
    reasons = [r.reason for r in _events(caplog, "drain.item_failed")]
    assert reasons == ["ConnectionError: lost connection on b", "ConnectionError: lost connection on d"]


@pytest.mark.anyio
async def test_empty_selection_logs_once_and_skips_summary(caplog):
    caplog.set_level(logging.INFO)

    async def action(item):  # pragma: no cover - never called
        raise AssertionError("no items to act on")

    summary = await drain("demo", _select_from([]), action)

    assert summary == DrainSummary(name="demo")
    assert len(_events(caplog, "drain.empty")) == 1
    assert _events(caplog, "drain.summary") == []


@pytest.mark.anyio
async def test_bound_is_passed_to_select_and_enforced():
    seen = []
    acted = []

    async def action(item):
        acted.append(item)
        return ItemResult.success()

    # A select that ignores its limit still cannot push past the bound.
    summary = await drain("demo", _select_from(range(150), seen), action, bound=100)

    assert seen == [100]
    assert summary.selected == 100
    assert acted == list(range(100))


@pytest.mark.anyio
async def test_unbounded_drain():
    seen = []

    async def action(item):
        return ItemResult.success()

    summary = await drain("demo", _select_from(range(250), seen), action, bound=None)

    assert seen == [None]
    assert summary.selected == 250


@pytest.mark.anyio
async def test_selection_errors_propagate_to_the_caller():
    async def select(bound):
        raise ConnectionError("query failed")

    async def action(item):  # pragma: no cover
        return ItemResult.success()

    with pytest.raises(ConnectionError):
        await drain("demo", select, action)


@pytest.mark.anyio
async def test_bound_must_be_positive():
    async def action(item):  # pragma: no cover
        return ItemResult.success()

    with pytest.raises(ValueError):
        await drain("demo", _select_from([1]), action, bound=0)


@pytest.mark.anyio
async def test_item_identity_uses_id_attribute(caplog):
    caplog.set_level(logging.INFO)

    class Row:
        def __init__(self, id):
            self.id = id

    async def action(item):
        return ItemResult.failure("nope")

    await drain("demo", _select_from([Row("n-1")]), action)

    assert _events(caplog, "drain.item_failed")[0].item_id == "n-1"
