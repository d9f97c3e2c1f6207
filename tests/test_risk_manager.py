# tests/test_risk_manager.py

import pytest

from core.utils import SuspiciousGasEstimate
from risk_manager import RiskManager


@pytest.fixture
def mock_config():
    """Provides the gas section of the config with the default values spelled out."""
    return {
        "arbitrage_parameters": {
            "gas_estimate_ceiling": 1_400_000,
            "gas_limit_multiplier": 2,
            "draft_gas_limit": 1_000_000,
        }
    }


def test_gas_limit_doubles_estimate(mock_config):
    risk_manager = RiskManager(mock_config)

    assert risk_manager.check_gas_estimate(250_000) == 500_000


def test_estimate_at_ceiling_is_accepted(mock_config):
    risk_manager = RiskManager(mock_config)

    assert risk_manager.check_gas_estimate(1_400_000) == 2_800_000


def test_estimate_above_ceiling_is_suspicious(mock_config):
    risk_manager = RiskManager(mock_config)

    with pytest.raises(SuspiciousGasEstimate) as exc_info:
        risk_manager.check_gas_estimate(1_500_000)

    assert exc_info.value.estimate == 1_500_000
    assert exc_info.value.ceiling == 1_400_000


def test_defaults_without_config():
    risk_manager = RiskManager({})

    assert risk_manager.gas_estimate_ceiling == 1_400_000
    assert risk_manager.draft_gas_limit == 1_000_000


def test_miner_reward_is_integer_share_of_profit():
    assert RiskManager.miner_reward(10**18 + 7, 80) == (10**18 + 7) * 80 // 100
    assert RiskManager.miner_reward(99, 50) == 49
    assert RiskManager.miner_reward(1234, 0) == 0


def test_miner_reward_rejects_out_of_range_percentage():
    with pytest.raises(ValueError):
        RiskManager.miner_reward(100, 101)
