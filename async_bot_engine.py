import asyncio
import logging
import time
from typing import Dict, Any, List, Optional

from bundle_executor import BundleExecutor
from chain_manager_async import AsyncChainManager
from core.utils import NoArbitrageSubmitted
from opportunity_finder import OpportunityFinder
from reporter import Reporter
from venues import Venue

DEFAULT_MINER_REWARD_PERCENTAGE = 80


class AsyncArbitrageBot:
    """
    The core asynchronous bot engine. Once per new block it scans every token
    for crossed venues, reports what it found and hands the ranked list to the
    bundle executor.
    """
    def __init__(
        self,
        config: Dict[str, Any],
        chain_manager: AsyncChainManager,
        finder: OpportunityFinder,
        executor: BundleExecutor,
        markets_by_token: Dict[str, List[Venue]],
        reporter: Optional[Reporter] = None,
    ):
        self.config = config
        self.chain_manager = chain_manager
        self.finder = finder
        self.executor = executor
        self.markets_by_token = markets_by_token
        self.reporter = reporter or Reporter()

        # --- Bot Parameters ---
        self.params = self.config.get('arbitrage_parameters', {})
        self.poll_interval_s = self.params.get('poll_interval_s', 1.0)
        self.miner_reward_percentage = int(
            self.params.get('miner_reward_percentage', DEFAULT_MINER_REWARD_PERCENTAGE)
        )

        # --- Bot State ---
        self.is_running = False
        self.start_time = None
        self.last_block_number = None
        self.cycles_run = 0
        self.bundles_submitted = 0

    async def run(self):
        """The main async loop: one scan cycle per new block."""
        self.is_running = True
        self.start_time = time.time()
        logging.info(f"Starting arbitrage bot on {len(self.markets_by_token)} tokens...")

        while self.is_running:
            try:
                if self._check_stop_conditions():
                    self.is_running = False
                    continue

                block_number = await self.chain_manager.get_block_number()
                if block_number == self.last_block_number:
                    await asyncio.sleep(self.poll_interval_s)
                    continue

                self.last_block_number = block_number
                await self.run_cycle(block_number)

            except asyncio.CancelledError:
                logging.info("Bot run task was cancelled.")
                self.is_running = False
            except Exception as e:
                logging.error(f"An error occurred in the main bot loop: {e}", exc_info=True)
                self.is_running = False

        logging.info("Bot loop finished.")

    async def run_cycle(self, block_number: int) -> Optional[Any]:
        """Scans and attempts execution for one block. Returns the submitted opportunity, if any."""
        logging.info(f"--- Starting scan cycle for block {block_number} ---")
        self.cycles_run += 1

        opportunities = await self.finder.evaluate_markets(self.markets_by_token)
        if not opportunities:
            logging.info("No crossed markets in this cycle.")
            return None

        for opportunity in opportunities:
            self.reporter.print_crossed_market(opportunity)

        try:
            submitted = await self.executor.take_crossed_markets(
                opportunities, block_number, self.miner_reward_percentage
            )
        except NoArbitrageSubmitted as e:
            logging.warning(f"Block {block_number}: {e} ({len(opportunities)} opportunities abandoned).")
            return None

        self.bundles_submitted += 1
        return submitted

    def _check_stop_conditions(self) -> bool:
        stop_conditions = self.config.get('stop_conditions')
        if not stop_conditions: return False

        max_cycles = stop_conditions.get('max_cycles')
        if max_cycles is not None and self.cycles_run >= max_cycles:
            logging.info(f"Stop condition met: Maximum cycles ({max_cycles}) reached.")
            return True

        run_duration_s = stop_conditions.get('run_duration_s')
        if run_duration_s is not None and (time.time() - self.start_time) >= run_duration_s:
            logging.info(f"Stop condition met: Maximum run duration ({run_duration_s}s) reached.")
            return True

        return False
