# reporter.py

from config.logging_config import get_logger
from core.utils import big_int_to_decimal
from data_models import Opportunity, SimulationResult


class Reporter:
    """Renders opportunities and submissions as human-readable log lines. Observational only."""

    def __init__(self, logger=None):
        self.log = logger or get_logger("arbitrage.report")

    @staticmethod
    def format_crossed_market(opportunity: Opportunity) -> str:
        buy = opportunity.buy_from_venue
        sell = opportunity.sell_to_venue
        return (
            f"Profit: {big_int_to_decimal(opportunity.profit)} Volume: {big_int_to_decimal(opportunity.volume)}\n"
            f"{buy.protocol} ({buy.address})\n"
            f"  {buy.tokens[0]} => {buy.tokens[1]}\n"
            f"{sell.protocol} ({sell.address})\n"
            f"  {sell.tokens[0]} => {sell.tokens[1]}\n"
        )

    @staticmethod
    def format_submission(opportunity: Opportunity, simulation: SimulationResult) -> str:
        return (
            f"Submitting bundle for {opportunity.token_address}: "
            f"send {opportunity.volume} WETH wei, expect {opportunity.profit} wei profit, "
            f"profit sent to miner: {big_int_to_decimal(simulation.coinbase_diff)}, "
            f"effective gas price: {big_int_to_decimal(simulation.effective_gas_price, 9)} GWEI"
        )

    def print_crossed_market(self, opportunity: Opportunity) -> None:
        self.log.trade(self.format_crossed_market(opportunity))

    def print_submission(self, opportunity: Opportunity, simulation: SimulationResult) -> None:
        self.log.success(self.format_submission(opportunity, simulation))
