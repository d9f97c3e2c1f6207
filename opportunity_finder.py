# opportunity_finder.py
"""
Finds two-venue WETH arbitrage for every token of a scan cycle.

1. Every venue is quoted at a small reference size in both directions and each
   ordered venue pair whose sell price beats the other's buy price is crossed.
2. For each crossed pair a fixed ladder of test volumes is walked upwards while
   profit keeps improving. The first worse volume triggers one midpoint probe
   between it and the best so far, then the walk stops.
3. Results under the profitability threshold are dropped, the rest are ranked
   by profit.
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from config.logging_config import get_logger
from core.utils import ETHER, QuoteFailure
from data_models import CrossedMarketPair, Opportunity, PricedVenue
from venues import Venue

REFERENCE_VOLUME = ETHER // 100
MIN_PROFIT = ETHER // 1000

# Ascending. The search assumes profit rises then falls over this ladder.
TEST_VOLUMES = [
    ETHER // 100,
    ETHER // 10,
    ETHER // 6,
    ETHER // 4,
    ETHER // 2,
    ETHER,
    ETHER * 2,
    ETHER * 5,
    ETHER * 10,
]


class OpportunityFinder:
    def __init__(
        self,
        weth_address: str,
        reference_volume: int = REFERENCE_VOLUME,
        test_volumes: Optional[Sequence[int]] = None,
        min_profit: int = MIN_PROFIT,
    ):
        self.log = get_logger(__name__)
        self.weth_address = weth_address
        self.reference_volume = int(reference_volume)
        self.test_volumes = [int(v) for v in (TEST_VOLUMES if test_volumes is None else test_volumes)]
        self.min_profit = int(min_profit)

    # -------- Crossing detection --------

    async def _price_venue(self, token_address: str, venue: Venue) -> Optional[PricedVenue]:
        try:
            buy_price = await venue.quote_in(self.weth_address, token_address, self.reference_volume)
            sell_price = await venue.quote_out(token_address, self.weth_address, self.reference_volume)
        except QuoteFailure as e:
            self.log.info("Dropping %s for token %s this cycle: %s", venue, token_address, e)
            return None
        return PricedVenue(venue=venue, buy_price=buy_price, sell_price=sell_price)

    async def price_venues(self, token_address: str, venues: Sequence[Venue]) -> List[PricedVenue]:
        """Quotes every venue at the reference size; venues that cannot price are left out."""
        priced = await asyncio.gather(*(self._price_venue(token_address, v) for v in venues))
        return [p for p in priced if p is not None]

    @staticmethod
    def find_crossed_pairs(priced_venues: Sequence[PricedVenue]) -> List[CrossedMarketPair]:
        crossed = []
        for buy_side in priced_venues:
            for sell_side in priced_venues:
                if sell_side.venue is buy_side.venue:
                    continue
                if sell_side.sell_price > buy_side.buy_price:
                    crossed.append(CrossedMarketPair(buy_from_venue=buy_side.venue, sell_to_venue=sell_side.venue))
        return crossed

    # -------- Volume search --------

    async def profit_at(self, pair: CrossedMarketPair, token_address: str, size: int) -> int:
        """WETH gained by buying with `size` on one venue and selling the tokens on the other."""
        tokens_out = await pair.buy_from_venue.quote_out(self.weth_address, token_address, size)
        proceeds = await pair.sell_to_venue.quote_out(token_address, self.weth_address, tokens_out)
        return proceeds - size

    async def refine_midpoint(
        self, pair: CrossedMarketPair, token_address: str, size: int, best: Tuple[int, int]
    ) -> Tuple[int, int]:
        """Single probe halfway between a losing size and the best one; not a full bisection."""
        best_volume, best_profit = best
        try_size = (size + best_volume) // 2
        try:
            try_profit = await self.profit_at(pair, token_address, try_size)
        except QuoteFailure as e:
            self.log.debug("Midpoint %d unpriceable for %s: %s", try_size, token_address, e)
            return best
        if try_profit > best_profit:
            return try_size, try_profit
        return best

    async def get_best_crossed_market(self, pair: CrossedMarketPair, token_address: str) -> Optional[Opportunity]:
        best: Optional[Tuple[int, int]] = None
        for size in self.test_volumes:
            try:
                profit = await self.profit_at(pair, token_address, size)
            except QuoteFailure as e:
                self.log.debug("Skipping size %d for %s: %s", size, token_address, e)
                continue

            if best is None or profit >= best[1]:
                best = (size, profit)
                continue

            best = await self.refine_midpoint(pair, token_address, size, best)
            break

        if best is None or best[1] <= 0:
            return None
        volume, profit = best
        return Opportunity(
            profit=profit,
            volume=volume,
            token_address=token_address,
            buy_from_venue=pair.buy_from_venue,
            sell_to_venue=pair.sell_to_venue,
        )

    # -------- Cycle entry point --------

    async def _evaluate_token(self, token_address: str, venues: Sequence[Venue]) -> List[Opportunity]:
        priced = await self.price_venues(token_address, venues)
        crossed = self.find_crossed_pairs(priced)
        if not crossed:
            return []
        self.log.info("Token %s: %d crossed pair(s) out of %d venues", token_address, len(crossed), len(priced))
        results = await asyncio.gather(*(self.get_best_crossed_market(pair, token_address) for pair in crossed))
        return [r for r in results if r is not None]

    async def evaluate_markets(self, markets_by_token: Dict[str, List[Venue]]) -> List[Opportunity]:
        """
        Returns every opportunity above the profitability threshold, most profitable first.
        """
        per_token = await asyncio.gather(
            *(self._evaluate_token(token, venues) for token, venues in markets_by_token.items())
        )
        opportunities = [
            opportunity
            for token_results in per_token
            for opportunity in token_results
            if opportunity.profit > self.min_profit
        ]
        opportunities.sort(key=lambda o: o.profit, reverse=True)
        self.log.info("Scan found %d profitable opportunities across %d tokens", len(opportunities), len(markets_by_token))
        return opportunities
