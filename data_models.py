#data_models.py

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from venues import Venue


@dataclass(frozen=True)
class Opportunity:
    """The best trade found for one crossed pair: buy `token_address` with `volume` wei on one venue, sell on the other."""
    profit: int
    volume: int
    token_address: str
    buy_from_venue: Venue
    sell_to_venue: Venue


@dataclass(frozen=True)
class CrossedMarketPair:
    """Two venues where a buy-then-sell roundtrip is profitable at the reference size."""
    buy_from_venue: Venue
    sell_to_venue: Venue


@dataclass(frozen=True)
class PricedVenue:
    """Reference-size quotes of one venue for one token, in wei of the reference asset."""
    venue: Venue
    buy_price: int
    sell_price: int


@dataclass
class VenueCalls:
    """Ordered target/calldata pairs a venue needs executed."""
    targets: List[str] = field(default_factory=list)
    data: List[str] = field(default_factory=list)


@dataclass
class SimulationResult:
    """The parts of a relay bundle simulation the pipeline decides on."""
    coinbase_diff: int = 0
    total_gas_used: int = 0
    first_revert: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None
    results: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and self.first_revert is None

    @property
    def effective_gas_price(self) -> int:
        if self.total_gas_used == 0:
            return 0
        return self.coinbase_diff // self.total_gas_used


@dataclass
class BundleLogData:
    """A dataclass for structured bundle attempt entries."""
    block_number: int
    token_address: str
    buy_from_venue: str
    sell_to_venue: str
    volume: int
    profit: int
    status: str
    miner_reward: int = 0
    gas_estimate: int = 0

    def to_dict(self):
        return asdict(self)
