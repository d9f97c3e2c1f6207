import logging
from typing import Any, Dict, List

from eth_account import Account
from web3 import AsyncWeb3

from core.utils import ChainConnectionError, EstimationFailure

BUNDLE_EXECUTOR_ABI = [
    {
        "name": "uniswapWeth",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "_wethAmountToFirstMarket", "type": "uint256"},
            {"name": "_ethAmountToCoinbase", "type": "uint256"},
            {"name": "_targets", "type": "address[]"},
            {"name": "_payloads", "type": "bytes[]"},
        ],
        "outputs": [],
    },
]


class AsyncChainManager:
    """
    Asynchronous manager for all chain interactions.
    This class abstracts away web3, providing a clean async interface for
    the bot: block numbers, the executor contract's draft transaction and
    gas estimation on behalf of the executor wallet.
    """
    def __init__(self, config: Dict[str, Any], w3: AsyncWeb3 = None):
        self.config = config
        secrets = self.config['secrets']
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(secrets['ethereum_rpc_url']))
        self.executor_account = Account.from_key(secrets['private_key'])
        self.executor_contract = self.w3.eth.contract(
            address=self.w3.to_checksum_address(secrets['bundle_executor_address']),
            abi=BUNDLE_EXECUTOR_ABI,
        )
        self.chain_id = None
        logging.info(f"Executor wallet {self.executor_account.address}, contract {self.executor_contract.address}")

    @property
    def executor_address(self) -> str:
        return self.executor_contract.address

    async def connect(self):
        """Checks the RPC endpoint and caches the chain id."""
        logging.info("Connecting to Ethereum RPC...")
        if not await self.w3.is_connected():
            raise ChainConnectionError("Could not connect to the configured ETHEREUM_RPC_URL.")
        self.chain_id = await self.w3.eth.chain_id
        logging.info(f"Connected to chain {self.chain_id}.")

    async def get_block_number(self) -> int:
        return await self.w3.eth.block_number

    async def build_executor_transaction(self, volume: int, miner_reward: int, targets: List[str],
                                         payloads: List[str], gas_limit: int) -> Dict[str, Any]:
        """Draft `uniswapWeth` call at zero gas price, signed later by the relay client."""
        try:
            nonce = await self.w3.eth.get_transaction_count(self.executor_account.address)
            return await self.executor_contract.functions.uniswapWeth(
                volume, miner_reward, targets, payloads
            ).build_transaction({
                "from": self.executor_account.address,
                "chainId": self.chain_id or await self.w3.eth.chain_id,
                "nonce": nonce,
                "gas": gas_limit,
                "gasPrice": 0,
            })
        except Exception as e:
            raise EstimationFailure(f"could not draft executor transaction: {e}") from e

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        """Dry-runs the transaction; a revert becomes EstimationFailure."""
        # The draft gas limit would cap the node's answer, so it is left out.
        call = {k: v for k, v in transaction.items() if k != "gas"}
        try:
            return int(await self.w3.eth.estimate_gas({**call, "from": self.executor_account.address}))
        except Exception as e:
            raise EstimationFailure(str(e)) from e

    async def close(self):
        """Gracefully closes the RPC session."""
        provider = self.w3.provider
        if hasattr(provider, "disconnect"):
            await provider.disconnect()
        logging.info("RPC connection closed.")
