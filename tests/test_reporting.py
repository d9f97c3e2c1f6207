# tests/test_reporting.py

from unittest.mock import MagicMock

from data_models import BundleLogData, SimulationResult
from reporter import Reporter
from trade_logger import CSV_HEADER, TradeLogger


def test_crossed_market_lines(make_opportunity):
    opportunity = make_opportunity(5 * 10**15, volume=10**18)

    text = Reporter.format_crossed_market(opportunity)

    lines = text.splitlines()
    assert lines[0] == "Profit: 0.005 Volume: 1"
    assert lines[1] == f"FakeSwap ({opportunity.buy_from_venue.address})"
    assert "=>" in lines[2]
    assert lines[3] == f"FakeSwap ({opportunity.sell_to_venue.address})"


def test_submission_line_has_miner_payment_and_gas_price(make_opportunity):
    simulation = SimulationResult(coinbase_diff=8 * 10**15, total_gas_used=200_000)

    text = Reporter.format_submission(make_opportunity(10**16), simulation)

    assert "profit sent to miner: 0.008" in text
    assert "effective gas price: 40 GWEI" in text


def test_reporter_uses_custom_levels(make_opportunity):
    logger = MagicMock()
    reporter = Reporter(logger=logger)

    reporter.print_crossed_market(make_opportunity(10))
    reporter.print_submission(make_opportunity(10), SimulationResult())

    logger.trade.assert_called_once()
    logger.success.assert_called_once()


def test_trade_logger_writes_header_and_rows(tmp_path):
    path = tmp_path / "bundles.csv"
    trade_logger = TradeLogger(str(path))

    trade_logger.log_bundle(BundleLogData(
        block_number=100, token_address="0xtoken", buy_from_venue="0xbuy", sell_to_venue="0xsell",
        volume=10**18, profit=5 * 10**15, status="SUBMITTED", miner_reward=4 * 10**15, gas_estimate=210_000,
    ))

    lines = path.read_text().splitlines()
    assert lines[0] == CSV_HEADER
    assert lines[1].endswith(",100,0xtoken,0xbuy,0xsell,1000000000000000000,5000000000000000,4000000000000000,210000,SUBMITTED")


def test_trade_logger_ignores_foreign_objects(tmp_path):
    path = tmp_path / "bundles.csv"
    trade_logger = TradeLogger(str(path))

    trade_logger.log_bundle({"status": "SUBMITTED"})

    lines = path.read_text().splitlines()
    assert lines[0] == CSV_HEADER
    assert len(lines) == 2  # header plus the error message row
