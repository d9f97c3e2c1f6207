# utils.py

import os
from decimal import Decimal

import yaml

ETHER = 10 ** 18
GWEI = 10 ** 9


# --- Custom Exceptions ---
class ConfigError(Exception):
    """Custom exception for configuration file errors."""
    pass


class ChainConnectionError(Exception):
    """Raised when the RPC endpoint cannot be reached during startup."""
    pass


class QuoteFailure(Exception):
    """A venue could not price the requested amount."""
    pass


class EstimationFailure(Exception):
    """The draft transaction would revert during gas estimation."""
    pass


class SuspiciousGasEstimate(Exception):
    """Gas estimation succeeded but the estimate is above the configured ceiling."""
    def __init__(self, estimate: int, ceiling: int):
        super().__init__(f"gas estimate {estimate} exceeds ceiling {ceiling}")
        self.estimate = estimate
        self.ceiling = ceiling


class SimulationFailure(Exception):
    """The relay reported an error or a revert when simulating the bundle."""
    pass


class RelayError(Exception):
    """The relay answered with a JSON-RPC error or an unusable response."""
    pass


class NoArbitrageSubmitted(Exception):
    """Every opportunity of the cycle was abandoned before submission."""
    pass


# --- Formatting ---
def big_int_to_decimal(value: int, decimals: int = 18) -> Decimal:
    """Converts an integer amount in the smallest unit into a Decimal of whole units."""
    return Decimal(value) / (Decimal(10) ** decimals)


# --- Configuration Loading ---
REQUIRED_PARAMETERS = ['miner_reward_percentage', 'min_profit_wei', 'gas_estimate_ceiling']
REQUIRED_NETWORK_KEYS = ['weth_address', 'relay_url']


def validate_config(config):
    """Validates the structure of the config file."""
    if not isinstance(config, dict):
        raise ConfigError("CRITICAL ERROR: config.yaml must contain a mapping at the top level.")

    params = config.get("arbitrage_parameters")
    if not isinstance(params, dict):
        raise ConfigError("CRITICAL ERROR: Missing or invalid section 'arbitrage_parameters' in config.yaml.")
    for key in REQUIRED_PARAMETERS:
        if key not in params:
            raise ConfigError(f"CRITICAL ERROR: Missing required key '{key}' in 'arbitrage_parameters'.")

    percentage = params['miner_reward_percentage']
    if not isinstance(percentage, int) or not 0 <= percentage <= 100:
        raise ConfigError("CRITICAL ERROR: 'miner_reward_percentage' must be an integer between 0 and 100.")

    test_volumes = params.get('test_volumes_wei')
    if test_volumes is not None:
        if not test_volumes or list(test_volumes) != sorted(test_volumes):
            raise ConfigError("CRITICAL ERROR: 'test_volumes_wei' must be a non-empty ascending list.")

    network = config.get("network")
    if not isinstance(network, dict):
        raise ConfigError("CRITICAL ERROR: Missing or invalid section 'network' in config.yaml.")
    for key in REQUIRED_NETWORK_KEYS:
        if key not in network:
            raise ConfigError(f"CRITICAL ERROR: Missing required key '{key}' in 'network'.")

    markets = config.get("markets")
    if not isinstance(markets, list):
        raise ConfigError("CRITICAL ERROR: Missing or invalid section 'markets' in config.yaml.")
    for market in markets:
        if 'address' not in market or len(market.get('tokens', [])) != 2:
            raise ConfigError(f"CRITICAL ERROR: Market entry {market} needs an 'address' and two 'tokens'.")

    return True


def load_config(filepath: str = None):
    """Loads and validates the configuration file."""
    if filepath is None:
        base_dir = os.path.dirname(os.path.dirname(__file__))  # project root
        filepath = os.path.join(base_dir, "config", "config.yaml")
    try:
        with open(filepath, 'r') as f:
            config = yaml.safe_load(f)
        validate_config(config)
        return config
    except FileNotFoundError:
        raise ConfigError(f"CRITICAL ERROR: Configuration file '{filepath}' not found.")
    except yaml.YAMLError as e:
        raise ConfigError(f"CRITICAL ERROR: Could not decode '{filepath}'. YAML error: {e}")
