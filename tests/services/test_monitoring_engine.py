"""
Tests for the polling loop.
"""
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from stockshock.exceptions import AuthenticationLostError, QueryError, RateLimitedError
from stockshock.models.interfaces import IItemSource
from stockshock.services.cooldown_manager import COOLDOWNS_FILE
from stockshock.services.item_evaluator import ItemEvaluator
from stockshock.services.monitoring_engine import StockMonitor


class StaticSource(IItemSource):
    """Yields fixed batches, optionally failing afterwards."""

    def __init__(self, batches, error=None, name="static"):
        self._batches = batches
        self._error = error
        self.name = name

    async def _generate(self):
        for batch in self._batches:
            yield batch
        if self._error:
            raise self._error

    def batches(self):
        return self._generate()


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def evaluator(product_helper, cooldown_manager, dispatcher):
    return ItemEvaluator(product_helper, cooldown_manager, dispatcher)


def make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep, basket_adder=None):
    return StockMonitor(store, evaluator, sources, cooldown_manager, dispatcher,
                        basket_adder=basket_adder, cycle_sleep_seconds=1, sleep=sleep)


@pytest.mark.asyncio
async def test_run_cycle_merges_basket_candidates(store, evaluator, cooldown_manager, dispatcher,
                                                  sleep, make_item, tmp_path):
    sources = [
        StaticSource([[make_item(product_id="1", availability_type="IN_STORE")]]),
        StaticSource([[make_item(product_id="2", availability_type="IN_STORE")],
                      [make_item(product_id="3", online_status=False, availability_type="NONE")]]),
    ]
    monitor = make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep)

    result = await monitor.run_cycle()

    assert set(result) == {"1", "2"}
    assert (tmp_path / COOLDOWNS_FILE).exists()


@pytest.mark.asyncio
async def test_run_cycle_prunes_expired_cooldowns(store, evaluator, cooldown_manager, dispatcher,
                                                  sleep, clock):
    cooldown_manager.set_cooldown("old", True, timedelta(minutes=5))
    clock.advance(minutes=10)
    monitor = make_monitor(store, evaluator, [], cooldown_manager, dispatcher, sleep)

    await monitor.run_cycle()

    assert cooldown_manager.cooldowns == {}


@pytest.mark.asyncio
async def test_basket_adder_success_is_recorded(store, evaluator, cooldown_manager, dispatcher,
                                                mock_notifier, sleep, make_item):
    basket_adder = MagicMock()
    basket_adder.create_cookies = AsyncMock(return_value=["cookie-1"])
    sources = [StaticSource([[make_item(product_id="1", availability_type="IN_STORE")]])]
    monitor = make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep, basket_adder)

    await monitor.run_cycle()

    basket_adder.create_cookies.assert_awaited_once()
    assert cooldown_manager.has_basket_cooldown("1")
    mock_notifier.notify_cookies.assert_awaited_once()

    # The basket cooldown keeps the product out of the next cycle
    assert await monitor.run_cycle() == {}
    assert basket_adder.create_cookies.await_count == 1


@pytest.mark.asyncio
async def test_failing_basket_adder_does_not_abort_cycle(store, evaluator, cooldown_manager, dispatcher,
                                                         sleep, make_item):
    basket_adder = MagicMock()
    basket_adder.create_cookies = AsyncMock(side_effect=[RuntimeError("login required"), ["c"]])
    sources = [StaticSource([[make_item(product_id="1", availability_type="IN_STORE"),
                              make_item(product_id="2", availability_type="IN_STORE")]])]
    monitor = make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep, basket_adder)

    await monitor.run_cycle()

    assert not cooldown_manager.has_basket_cooldown("1")
    assert cooldown_manager.has_basket_cooldown("2")


@pytest.mark.asyncio
async def test_authentication_loss_aborts_cycle(store, evaluator, cooldown_manager, dispatcher,
                                                mock_notifier, sleep, make_item):
    later_source = StaticSource([[make_item(product_id="2", availability_type="IN_STORE")]])
    sources = [
        StaticSource([[make_item(product_id="1", availability_type="IN_STORE")]],
                     error=AuthenticationLostError("WishlistItems", 401)),
        later_source,
    ]
    monitor = make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep)

    result = await monitor.run_cycle()

    assert result == {}
    assert monitor.authentication_lost
    mock_notifier.notify_admin.assert_awaited_once()
    # Mutations made before the failure stand
    assert cooldown_manager.has_cooldown("1")
    assert not cooldown_manager.has_cooldown("2")


@pytest.mark.asyncio
async def test_rate_limit_notifies_and_pauses(store, evaluator, cooldown_manager, dispatcher,
                                              mock_notifier, sleep):
    sources = [StaticSource([], error=RateLimitedError("SearchV4", 600))]
    monitor = make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep)

    await monitor.run_cycle()

    mock_notifier.notify_rate_limit.assert_awaited_once_with(600)
    sleep.assert_awaited_once_with(320)


@pytest.mark.asyncio
async def test_rate_limit_without_retry_after_uses_default_pause(store, evaluator, cooldown_manager,
                                                                 dispatcher, mock_notifier, sleep):
    sources = [StaticSource([], error=RateLimitedError("SearchV4"))]
    monitor = make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep)

    await monitor.run_cycle()

    mock_notifier.notify_rate_limit.assert_awaited_once_with(300)
    sleep.assert_awaited_once_with(300)


@pytest.mark.asyncio
async def test_query_error_skips_only_that_source(store, evaluator, cooldown_manager, dispatcher,
                                                  sleep, make_item):
    sources = [
        StaticSource([], error=QueryError("CategoryV4", 500)),
        StaticSource([[make_item(product_id="2", availability_type="IN_STORE")]]),
    ]
    monitor = make_monitor(store, evaluator, sources, cooldown_manager, dispatcher, sleep)

    result = await monitor.run_cycle()

    assert list(result) == ["2"]


@pytest.mark.asyncio
async def test_run_stops_after_max_cycles_and_persists(store, evaluator, cooldown_manager, dispatcher,
                                                       sleep, tmp_path):
    monitor = make_monitor(store, evaluator, [], cooldown_manager, dispatcher, sleep)

    await monitor.run(max_cycles=3)

    assert monitor.cycles == 3
    assert sleep.await_count == 2
    assert not monitor.running
    assert (tmp_path / COOLDOWNS_FILE).exists()


@pytest.mark.asyncio
async def test_stop_ends_loop_after_current_cycle(store, evaluator, cooldown_manager, dispatcher, sleep):
    monitor = make_monitor(store, evaluator, [], cooldown_manager, dispatcher, sleep)
    sleep.side_effect = lambda seconds: monitor.stop()

    await monitor.run()

    assert monitor.cycles == 1
