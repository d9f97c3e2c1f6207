# tests/conftest.py

import pytest

from config.logging_config import setup_custom_log_levels
setup_custom_log_levels()

from core.utils import QuoteFailure
from data_models import Opportunity, VenueCalls
from venues import Venue

WETH = "0x" + "ee" * 20
TOKEN = "0x" + "aa" * 20
OTHER_TOKEN = "0x" + "bb" * 20
EXECUTOR = "0x" + "cc" * 20


def table(mapping):
    """Quote function answering only the amounts listed in `mapping`."""
    def quote(amount):
        if amount not in mapping:
            raise QuoteFailure(f"no liquidity for {amount}")
        return mapping[amount]
    return quote


class FakeVenue(Venue):
    """
    Venue whose quotes come from per-direction callables, keyed by (token_in, token_out).
    Records every quote request so tests can check which sizes were probed.
    """
    def __init__(self, address, tokens=(TOKEN, WETH), quotes_out=None, quotes_in=None, protocol="FakeSwap"):
        super().__init__(address, protocol, tokens)
        self._quotes_out = {(a.lower(), b.lower()): f for (a, b), f in (quotes_out or {}).items()}
        self._quotes_in = {(a.lower(), b.lower()): f for (a, b), f in (quotes_in or {}).items()}
        self.calls = []

    def receives_directly(self, token_address):
        return self.trades(token_address)

    async def quote_out(self, token_in, token_out, amount_in):
        self.calls.append(("out", token_in.lower(), token_out.lower(), amount_in))
        quote = self._quotes_out.get((token_in.lower(), token_out.lower()))
        if quote is None:
            raise QuoteFailure(f"{self.address} cannot quote {token_in} -> {token_out}")
        return quote(amount_in)

    async def quote_in(self, token_in, token_out, amount_out):
        self.calls.append(("in", token_in.lower(), token_out.lower(), amount_out))
        quote = self._quotes_in.get((token_in.lower(), token_out.lower()))
        if quote is None:
            raise QuoteFailure(f"{self.address} cannot quote {token_in} -> {token_out}")
        return quote(amount_out)

    async def sell_tokens(self, token_in, amount_in, recipient):
        return f"sell:{amount_in}:{recipient.lower()}"

    async def sell_tokens_to_next_venue(self, token_in, amount_in, next_venue):
        return VenueCalls(targets=[self.address], data=[f"route:{amount_in}:{next_venue.address.lower()}"])

    def sizes_sold_for_weth(self, token_address):
        """Token amounts this venue was asked to sell for WETH, in call order."""
        return [c[3] for c in self.calls if c[0] == "out" and c[1] == token_address.lower() and c[2] == WETH]


@pytest.fixture
def make_opportunity():
    """Builds an Opportunity between two fake venues trading TOKEN 1:1 for WETH."""
    def _make(profit, volume=1000, token=TOKEN, suffix="1"):
        buy = FakeVenue("0x" + ("1" + suffix) * 20, tokens=(token, WETH),
                        quotes_out={(WETH, token): lambda a: a})
        sell = FakeVenue("0x" + ("2" + suffix) * 20, tokens=(token, WETH),
                         quotes_out={(token, WETH): lambda a: a})
        return Opportunity(profit=profit, volume=volume, token_address=token,
                           buy_from_venue=buy, sell_to_venue=sell)
    return _make
