# relay_client.py
"""
Minimal Flashbots-style private relay client.

Bundles go out as JSON-RPC (`eth_callBundle` to simulate, `eth_sendBundle` to
submit). Every request body is signed with the relay signing key and sent in
the `X-Flashbots-Signature` header as `<address>:<signature>`; that key only
identifies the searcher to the relay and holds no funds.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from core.utils import RelayError
from data_models import SimulationResult

DEFAULT_RELAY_URL = "https://relay.flashbots.net"


class FlashbotsRelay:
    def __init__(self, relay_signing_key: str, relay_url: str = DEFAULT_RELAY_URL,
                 session: Optional[aiohttp.ClientSession] = None, timeout_s: float = 10.0):
        self.relay_url = relay_url
        self.signer = Account.from_key(relay_signing_key)
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._request_id = 0

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def _signature_header(self, body: str) -> str:
        message = encode_defunct(text=Web3.to_hex(Web3.keccak(text=body)))
        signed = self.signer.sign_message(message)
        return f"{self.signer.address}:{Web3.to_hex(signed.signature)}"

    async def _post(self, method: str, params: List[Any]) -> Dict[str, Any]:
        self._request_id += 1
        body = json.dumps({"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params})
        headers = {
            "Content-Type": "application/json",
            "X-Flashbots-Signature": self._signature_header(body),
        }
        session = await self._get_session()
        try:
            async with session.post(self.relay_url, data=body, headers=headers) as response:
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise RelayError(f"{method} request to {self.relay_url} failed: {e}") from e
        if not isinstance(payload, dict):
            raise RelayError(f"{method} returned an unexpected payload: {payload!r}")
        return payload

    @staticmethod
    def sign_bundle(bundled_transactions: List[Dict[str, Any]]) -> List[str]:
        """
        Signs each `{"signer": account, "transaction": tx}` entry and returns
        the raw transactions as 0x-prefixed hex, in bundle order.
        """
        signed_bundle = []
        for entry in bundled_transactions:
            signed = entry["signer"].sign_transaction(entry["transaction"])
            signed_bundle.append(Web3.to_hex(signed.raw_transaction))
        return signed_bundle

    async def simulate(self, signed_bundle: List[str], target_block_number: int,
                       state_block: str = "latest") -> SimulationResult:
        payload = await self._post("eth_callBundle", [{
            "txs": signed_bundle,
            "blockNumber": hex(target_block_number),
            "stateBlockNumber": state_block,
        }])
        if "error" in payload:
            return SimulationResult(error=payload["error"])

        result = payload.get("result") or {}
        results = result.get("results", [])
        first_revert = next((tx for tx in results if "error" in tx or "revert" in tx), None)
        return SimulationResult(
            coinbase_diff=int(result.get("coinbaseDiff", 0)),
            total_gas_used=int(result.get("totalGasUsed", 0)),
            first_revert=first_revert,
            results=results,
        )

    async def send_raw_bundle(self, signed_bundle: List[str], target_block_number: int) -> Dict[str, Any]:
        payload = await self._post("eth_sendBundle", [{
            "txs": signed_bundle,
            "blockNumber": hex(target_block_number),
        }])
        if "error" in payload:
            raise RelayError(f"eth_sendBundle for block {target_block_number} rejected: {payload['error']}")
        result = payload.get("result") or {}
        logging.info(f"Bundle {result.get('bundleHash', '<no hash>')} submitted for block {target_block_number}")
        return result

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
