# bundle_executor.py
from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence, Tuple

from config.logging_config import get_logger
from core.utils import (
    EstimationFailure,
    NoArbitrageSubmitted,
    QuoteFailure,
    RelayError,
    SimulationFailure,
    SuspiciousGasEstimate,
)
from data_models import BundleLogData, Opportunity
from reporter import Reporter
from risk_manager import RiskManager


class BundleExecutor:
    """
    Turns ranked opportunities into a privately relayed bundle.

    Each opportunity goes through build -> estimate -> simulate -> submit.
    Any failure before submission, expected or not, abandons that opportunity
    and the next one is tried; the first submission ends the cycle. Nothing is mutated on chain
    until a bundle is sent, so abandoning needs no cleanup.
    """

    def __init__(
        self,
        chain_manager: Any,
        relay: Any,
        risk_manager: RiskManager,
        weth_address: str,
        reporter: Optional[Reporter] = None,
        trade_logger: Optional[Any] = None,
    ):
        self.log = get_logger(__name__)
        self.chain_manager = chain_manager
        self.relay = relay
        self.risk_manager = risk_manager
        self.weth_address = weth_address
        self.reporter = reporter or Reporter()
        self.trade_logger = trade_logger

    # -------- Public API --------

    async def take_crossed_markets(
        self, opportunities: Sequence[Opportunity], block_number: int, miner_reward_percentage: int
    ) -> Opportunity:
        """
        Attempts opportunities in the given (profit-descending) order and returns
        the one whose bundle was submitted. Raises NoArbitrageSubmitted when none made it.
        """
        for opportunity in opportunities:
            entry = BundleLogData(
                block_number=block_number,
                token_address=opportunity.token_address,
                buy_from_venue=opportunity.buy_from_venue.address,
                sell_to_venue=opportunity.sell_to_venue.address,
                volume=opportunity.volume,
                profit=opportunity.profit,
                status="PENDING",
            )
            try:
                await self._attempt(opportunity, block_number, miner_reward_percentage, entry)
            except QuoteFailure as e:
                entry.status = "QUOTE_FAILED"
                self.log.warning("Could not build calls for token %s, skipping: %s", opportunity.token_address, e)
            except EstimationFailure as e:
                entry.status = "ESTIMATE_FAILED"
                self.log.warning("Estimate gas failure for %s, skipping: %s", opportunity, e)
            except SuspiciousGasEstimate as e:
                entry.status = "GAS_SUSPICIOUS"
                self.log.warning("Skipping token %s: %s", opportunity.token_address, e)
            except (SimulationFailure, RelayError) as e:
                entry.status = "SIMULATION_FAILED"
                self.log.warning("Simulation Error on token %s, skipping: %s", opportunity.token_address, e)
            except Exception as e:
                entry.status = "FAILED"
                self.log.error("Unexpected error on token %s, skipping: %s", opportunity.token_address, e, exc_info=True)
            else:
                entry.status = "SUBMITTED"
                return opportunity
            finally:
                self._record(entry)

        raise NoArbitrageSubmitted("No arbitrage submitted to relay")

    async def build_calls(self, opportunity: Opportunity) -> Tuple[List[str], List[str]]:
        """Buy leg routed into the sell venue, then the sell leg paying the executor contract."""
        buy_from = opportunity.buy_from_venue
        sell_to = opportunity.sell_to_venue

        buy_calls = await buy_from.sell_tokens_to_next_venue(self.weth_address, opportunity.volume, sell_to)
        intermediate = await buy_from.quote_out(self.weth_address, opportunity.token_address, opportunity.volume)
        sell_calldata = await sell_to.sell_tokens(
            opportunity.token_address, intermediate, self.chain_manager.executor_address
        )

        targets = [*buy_calls.targets, sell_to.address]
        payloads = [*buy_calls.data, sell_calldata]
        return targets, payloads

    # -------- Internals --------

    async def _attempt(
        self, opportunity: Opportunity, block_number: int, miner_reward_percentage: int, entry: BundleLogData
    ) -> None:
        self.log.info("Send this much WETH %d get this much profit %d", opportunity.volume, opportunity.profit)

        targets, payloads = await self.build_calls(opportunity)
        self.log.debug("targets=%s payloads=%s", targets, payloads)

        miner_reward = self.risk_manager.miner_reward(opportunity.profit, miner_reward_percentage)
        entry.miner_reward = miner_reward

        transaction = await self.chain_manager.build_executor_transaction(
            opportunity.volume, miner_reward, targets, payloads, gas_limit=self.risk_manager.draft_gas_limit
        )

        estimate = await self.chain_manager.estimate_gas(transaction)
        entry.gas_estimate = estimate
        transaction["gas"] = self.risk_manager.check_gas_estimate(estimate)

        signed_bundle = self.relay.sign_bundle([
            {"signer": self.chain_manager.executor_account, "transaction": transaction}
        ])

        simulation = await self.relay.simulate(signed_bundle, block_number + 1)
        if not simulation.ok:
            raise SimulationFailure(simulation.error or simulation.first_revert)

        self.reporter.print_submission(opportunity, simulation)
        await self._submit(signed_bundle, block_number)

    async def _submit(self, signed_bundle: List[str], block_number: int) -> None:
        """Best effort: a rejected target block is logged and does not change the outcome."""
        target_blocks = [block_number + 1, block_number + 2]
        results = await asyncio.gather(
            *(self.relay.send_raw_bundle(signed_bundle, target) for target in target_blocks),
            return_exceptions=True,
        )
        for target, result in zip(target_blocks, results):
            if isinstance(result, Exception):
                self.log.warning("Bundle submission for block %d failed: %s", target, result)

    def _record(self, entry: BundleLogData) -> None:
        if self.trade_logger is not None:
            self.trade_logger.log_bundle(entry)
