# risk_manager.py
"""
Gas-safety and payout policy for bundle attempts.
- rejects gas estimates above the sanity ceiling (a hint that the draft does something unexpected)
- pads the gas limit against state drift between estimation and inclusion
- computes the share of profit paid to the block builder
"""

import logging
from typing import Any, Dict

from core.utils import SuspiciousGasEstimate

GAS_ESTIMATE_CEILING = 1_400_000
GAS_LIMIT_MULTIPLIER = 2
DRAFT_GAS_LIMIT = 1_000_000


class RiskManager:
    def __init__(self, config: Dict[str, Any]):
        self.config = config or {}
        self.params = self.config.get("arbitrage_parameters", {}) or {}
        self.logger = logging.getLogger(__name__)

        self.gas_estimate_ceiling = int(self.params.get("gas_estimate_ceiling", GAS_ESTIMATE_CEILING))
        self.gas_limit_multiplier = int(self.params.get("gas_limit_multiplier", GAS_LIMIT_MULTIPLIER))
        self.draft_gas_limit = int(self.params.get("draft_gas_limit", DRAFT_GAS_LIMIT))

    def check_gas_estimate(self, estimate: int) -> int:
        """Returns the gas limit to use, or raises SuspiciousGasEstimate above the ceiling."""
        if estimate > self.gas_estimate_ceiling:
            self.logger.warning(f"EstimateGas succeeded, but suspiciously large: {estimate}")
            raise SuspiciousGasEstimate(estimate, self.gas_estimate_ceiling)
        return estimate * self.gas_limit_multiplier

    @staticmethod
    def miner_reward(profit: int, miner_reward_percentage: int) -> int:
        """Integer share of `profit` paid to the block builder."""
        if not 0 <= miner_reward_percentage <= 100:
            raise ValueError(f"miner_reward_percentage must be within 0..100, got {miner_reward_percentage}")
        return profit * miner_reward_percentage // 100
