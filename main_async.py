import asyncio
import logging
import os
from dotenv import load_dotenv

from async_bot_engine import AsyncArbitrageBot, DEFAULT_MINER_REWARD_PERCENTAGE
from bundle_executor import BundleExecutor
from chain_manager_async import AsyncChainManager
from config.logging_config import setup_logging
from core.utils import ChainConnectionError, ConfigError, load_config
from opportunity_finder import MIN_PROFIT, REFERENCE_VOLUME, OpportunityFinder
from relay_client import FlashbotsRelay
from reporter import Reporter
from risk_manager import RiskManager
from trade_logger import TradeLogger
from venues import group_markets_by_token, load_venues_from_config

REQUIRED_SECRETS = {
    "ethereum_rpc_url": "ETHEREUM_RPC_URL",
    "private_key": "PRIVATE_KEY",
    "bundle_executor_address": "BUNDLE_EXECUTOR_ADDRESS",
    "flashbots_relay_signing_key": "FLASHBOTS_RELAY_SIGNING_KEY",
}


def inject_secrets(config: dict) -> dict:
    """
    Loads wallet and RPC secrets from the .env file and injects them into the config dictionary.
    """
    load_dotenv()
    logging.info("Loading secrets from .env file...")

    config['secrets'] = {}
    for key, env_var in REQUIRED_SECRETS.items():
        value = os.getenv(env_var)
        if not value:
            raise ConfigError(f"CRITICAL ERROR: {env_var} not found in .env file.")
        config['secrets'][key] = value

    # MINER_REWARD_PERCENTAGE in the environment wins over config.yaml
    params = config.setdefault('arbitrage_parameters', {})
    override = os.getenv("MINER_REWARD_PERCENTAGE")
    if override:
        try:
            params['miner_reward_percentage'] = int(override)
        except ValueError:
            raise ConfigError(f"CRITICAL ERROR: MINER_REWARD_PERCENTAGE must be an integer, got '{override}'.")
    params.setdefault('miner_reward_percentage', DEFAULT_MINER_REWARD_PERCENTAGE)
    if not 0 <= params['miner_reward_percentage'] <= 100:
        raise ConfigError("CRITICAL ERROR: MINER_REWARD_PERCENTAGE must be between 0 and 100.")

    logging.info(f"Miner reward percentage: {params['miner_reward_percentage']}%")
    return config


async def main():
    """
    The main entry point for the asynchronous bot.
    Initializes all components and starts the bot.
    """
    chain_manager = None
    relay = None
    try:
        # 1. Load configuration and secrets
        config = load_config()
        config = inject_secrets(config)
        params = config['arbitrage_parameters']
        network = config['network']

        # 2. Initialize components
        chain_manager = AsyncChainManager(config)
        relay = FlashbotsRelay(config['secrets']['flashbots_relay_signing_key'], network['relay_url'])
        risk_manager = RiskManager(config)
        reporter = Reporter()
        trade_logger = TradeLogger()

        # 3. Connect (this is where RPC errors are caught)
        await chain_manager.connect()

        venues = load_venues_from_config(chain_manager.w3, config['markets'])
        markets_by_token = group_markets_by_token(venues, network['weth_address'])

        finder = OpportunityFinder(
            network['weth_address'],
            reference_volume=params.get('reference_volume_wei', REFERENCE_VOLUME),
            test_volumes=params.get('test_volumes_wei'),
            min_profit=params.get('min_profit_wei', MIN_PROFIT),
        )
        executor = BundleExecutor(
            chain_manager, relay, risk_manager, network['weth_address'],
            reporter=reporter, trade_logger=trade_logger,
        )

        # 4. If initialization succeeds, create and run the bot
        bot = AsyncArbitrageBot(config, chain_manager, finder, executor, markets_by_token, reporter=reporter)

        bot_task = asyncio.create_task(bot.run())
        await bot_task

    except (ConfigError, ValueError) as e:
        logging.error(f"Configuration Error: {e}")
    except ChainConnectionError as e:
        logging.error(f"Connection Failed: {e}. Please check ETHEREUM_RPC_URL.")
    except Exception as e:
        logging.error(f"An unexpected error occurred during startup: {e}", exc_info=True)
    finally:
        if relay:
            await relay.close()
        if chain_manager:
            logging.info("Closing RPC connection...")
            await chain_manager.close()


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Shutdown signal received (Ctrl+C). Exiting gracefully.")
