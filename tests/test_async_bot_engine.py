# tests/test_async_bot_engine.py

import pytest
from unittest.mock import AsyncMock, MagicMock

from async_bot_engine import AsyncArbitrageBot
from bundle_executor import BundleExecutor
from chain_manager_async import AsyncChainManager
from core.utils import NoArbitrageSubmitted
from opportunity_finder import OpportunityFinder
from reporter import Reporter


@pytest.fixture
def mock_config():
    return {
        "arbitrage_parameters": {"miner_reward_percentage": 90, "poll_interval_s": 0},
        "stop_conditions": {"max_cycles": 1},
    }


@pytest.fixture
def components():
    """Chain, finder, executor and reporter mocks wired the way main_async wires the real ones."""
    chain = MagicMock(spec=AsyncChainManager)
    chain.get_block_number = AsyncMock(return_value=500)
    finder = MagicMock(spec=OpportunityFinder)
    finder.evaluate_markets = AsyncMock(return_value=[])
    executor = MagicMock(spec=BundleExecutor)
    executor.take_crossed_markets = AsyncMock()
    reporter = MagicMock(spec=Reporter)
    return chain, finder, executor, reporter


def make_bot(config, components):
    chain, finder, executor, reporter = components
    return AsyncArbitrageBot(config, chain, finder, executor, {"0xtoken": []}, reporter=reporter)


@pytest.mark.asyncio
async def test_cycle_without_opportunities_skips_execution(mock_config, components):
    bot = make_bot(mock_config, components)
    _, _, executor, _ = components

    assert await bot.run_cycle(500) is None
    executor.take_crossed_markets.assert_not_awaited()


@pytest.mark.asyncio
async def test_cycle_reports_and_executes_ranked_list(mock_config, components, make_opportunity):
    _, finder, executor, reporter = components
    opportunities = [make_opportunity(300, suffix="1"), make_opportunity(100, suffix="2")]
    finder.evaluate_markets.return_value = opportunities
    executor.take_crossed_markets.return_value = opportunities[0]
    bot = make_bot(mock_config, components)

    submitted = await bot.run_cycle(500)

    assert submitted is opportunities[0]
    assert reporter.print_crossed_market.call_count == 2
    executor.take_crossed_markets.assert_awaited_once_with(opportunities, 500, 90)
    assert bot.bundles_submitted == 1


@pytest.mark.asyncio
async def test_exhaustion_is_logged_not_raised(mock_config, components, make_opportunity):
    _, finder, executor, _ = components
    finder.evaluate_markets.return_value = [make_opportunity(100)]
    executor.take_crossed_markets.side_effect = NoArbitrageSubmitted("No arbitrage submitted to relay")
    bot = make_bot(mock_config, components)

    assert await bot.run_cycle(500) is None
    assert bot.bundles_submitted == 0


@pytest.mark.asyncio
async def test_run_stops_after_max_cycles(mock_config, components):
    chain, finder, _, _ = components
    bot = make_bot(mock_config, components)

    await bot.run()

    assert bot.cycles_run == 1
    assert bot.last_block_number == 500
    finder.evaluate_markets.assert_awaited_once()
    assert bot.is_running is False


@pytest.mark.asyncio
async def test_same_block_is_not_scanned_twice(components):
    chain, finder, _, _ = components
    chain.get_block_number.side_effect = [500, 500, 501]
    config = {"arbitrage_parameters": {"poll_interval_s": 0}, "stop_conditions": {"max_cycles": 2}}
    bot = make_bot(config, components)

    await bot.run()

    assert [c.args[0] for c in finder.evaluate_markets.await_args_list] == [{"0xtoken": []}] * 2
    assert bot.last_block_number == 501
