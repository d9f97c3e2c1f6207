# venues.py
"""
Liquidity venues the arbitrage core trades against.

`Venue` is the capability every venue kind provides: quoting in both directions
and building its own swap calldata. `UniswapV2Venue` covers constant-product
pairs (Uniswap V2, Sushiswap and other forks); quotes go through the protocol's
router view functions so no pricing math lives here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, List, Sequence

from web3 import AsyncWeb3, Web3

from core.utils import ConfigError, QuoteFailure
from data_models import VenueCalls

UNISWAP_V2_ROUTER_ABI = [
    {
        "name": "getAmountsOut",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "path", "type": "address[]"},
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "name": "getAmountsIn",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "amountOut", "type": "uint256"},
            {"name": "path", "type": "address[]"},
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
]

UNISWAP_V2_PAIR_ABI = [
    {
        "name": "swap",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "amount0Out", "type": "uint256"},
            {"name": "amount1Out", "type": "uint256"},
            {"name": "to", "type": "address"},
            {"name": "data", "type": "bytes"},
        ],
        "outputs": [],
    },
]

UNISWAP_V2_ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"


def same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


class Venue(ABC):
    """A liquidity source able to quote and execute trades between its two tokens."""

    def __init__(self, address: str, protocol: str, tokens: Sequence[str]):
        if len(tokens) != 2:
            raise ValueError(f"A venue trades exactly two tokens, got {len(tokens)} for {address}")
        self.address = Web3.to_checksum_address(address)
        self.protocol = protocol
        self.tokens = tuple(Web3.to_checksum_address(t) for t in tokens)

    def __repr__(self):
        return f"{type(self).__name__}({self.protocol}, {self.address})"

    def trades(self, token_address: str) -> bool:
        return any(same_address(t, token_address) for t in self.tokens)

    def other_token(self, token_address: str) -> str:
        if same_address(self.tokens[0], token_address):
            return self.tokens[1]
        if same_address(self.tokens[1], token_address):
            return self.tokens[0]
        raise QuoteFailure(f"{self.protocol} ({self.address}) does not trade {token_address}")

    def receives_directly(self, token_address: str) -> bool:
        """Whether tokens can be pushed to this venue ahead of its own swap call."""
        return False

    @abstractmethod
    async def quote_out(self, token_in: str, token_out: str, amount_in: int) -> int:
        """Amount of `token_out` received for `amount_in` of `token_in`."""

    @abstractmethod
    async def quote_in(self, token_in: str, token_out: str, amount_out: int) -> int:
        """Amount of `token_in` required to receive `amount_out` of `token_out`."""

    @abstractmethod
    async def sell_tokens(self, token_in: str, amount_in: int, recipient: str) -> str:
        """Calldata selling `amount_in` of `token_in`, proceeds delivered to `recipient`."""

    @abstractmethod
    async def sell_tokens_to_next_venue(self, token_in: str, amount_in: int, next_venue: "Venue") -> VenueCalls:
        """Target/calldata pairs selling `token_in` here with proceeds routed into `next_venue`."""


class UniswapV2Venue(Venue):
    """Constant-product pair; the pair accepts tokens transferred in before `swap`."""

    def __init__(self, w3: AsyncWeb3, address: str, tokens: Sequence[str],
                 router_address: str = UNISWAP_V2_ROUTER, protocol: str = "UniswapV2"):
        super().__init__(address, protocol, tokens)
        self.router_address = Web3.to_checksum_address(router_address)
        self._router = w3.eth.contract(address=self.router_address, abi=UNISWAP_V2_ROUTER_ABI)
        self._pair = w3.eth.contract(address=self.address, abi=UNISWAP_V2_PAIR_ABI)

    def receives_directly(self, token_address: str) -> bool:
        return self.trades(token_address)

    def _path(self, token_in: str, token_out: str) -> List[str]:
        if not (self.trades(token_in) and self.trades(token_out)) or same_address(token_in, token_out):
            raise QuoteFailure(f"{self.protocol} ({self.address}) cannot route {token_in} -> {token_out}")
        return [Web3.to_checksum_address(token_in), Web3.to_checksum_address(token_out)]

    async def quote_out(self, token_in: str, token_out: str, amount_in: int) -> int:
        path = self._path(token_in, token_out)
        try:
            amounts = await self._router.functions.getAmountsOut(amount_in, path).call()
        except Exception as e:
            raise QuoteFailure(f"{self.protocol} ({self.address}) getAmountsOut({amount_in}) failed: {e}") from e
        return int(amounts[-1])

    async def quote_in(self, token_in: str, token_out: str, amount_out: int) -> int:
        path = self._path(token_in, token_out)
        try:
            amounts = await self._router.functions.getAmountsIn(amount_out, path).call()
        except Exception as e:
            raise QuoteFailure(f"{self.protocol} ({self.address}) getAmountsIn({amount_out}) failed: {e}") from e
        return int(amounts[0])

    async def sell_tokens(self, token_in: str, amount_in: int, recipient: str) -> str:
        token_out = self.other_token(token_in)
        amount_out = await self.quote_out(token_in, token_out, amount_in)
        if same_address(token_in, self.tokens[0]):
            amount0_out, amount1_out = 0, amount_out
        else:
            amount0_out, amount1_out = amount_out, 0
        swap = self._pair.functions.swap(amount0_out, amount1_out, Web3.to_checksum_address(recipient), b"")
        return swap._encode_transaction_data()

    async def sell_tokens_to_next_venue(self, token_in: str, amount_in: int, next_venue: Venue) -> VenueCalls:
        token_out = self.other_token(token_in)
        if not next_venue.receives_directly(token_out):
            raise QuoteFailure(f"{next_venue} cannot receive {token_out} ahead of its swap")
        calldata = await self.sell_tokens(token_in, amount_in, next_venue.address)
        return VenueCalls(targets=[self.address], data=[calldata])


VENUE_KINDS = {
    "uniswap_v2": UniswapV2Venue,
}


def load_venues_from_config(w3: AsyncWeb3, markets: List[Dict[str, Any]]) -> List[Venue]:
    """Builds venue objects from the `markets` section of config.yaml."""
    venues = []
    for market in markets:
        kind = market.get("kind", "uniswap_v2")
        venue_class = VENUE_KINDS.get(kind)
        if venue_class is None:
            raise ConfigError(f"CRITICAL ERROR: Unsupported market kind '{kind}' for {market.get('address')}.")
        venues.append(venue_class(
            w3,
            market["address"],
            market["tokens"],
            router_address=market.get("router", UNISWAP_V2_ROUTER),
            protocol=market.get("protocol", "UniswapV2"),
        ))
    logging.info(f"Loaded {len(venues)} venues from config.")
    return venues


def group_markets_by_token(venues: List[Venue], weth_address: str) -> Dict[str, List[Venue]]:
    """Maps every non-WETH token to the venues trading it against WETH."""
    markets_by_token: Dict[str, List[Venue]] = defaultdict(list)
    for venue in venues:
        if not venue.trades(weth_address):
            logging.debug(f"Ignoring {venue}: it does not trade against WETH.")
            continue
        markets_by_token[venue.other_token(weth_address)].append(venue)
    return dict(markets_by_token)
