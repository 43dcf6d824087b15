import pytest

from portfolio_construction.config.engine_config import get_config
from portfolio_construction.models.portfolio import OptimizationParams, RiskProfileInputs
from tests.fixtures.synthetic_data import (
    conservative_universe,
    make_fund,
    random_universe,
    region_universe,
)


@pytest.fixture
def engine_config():
    return get_config()


@pytest.fixture
def balanced_inputs():
    return RiskProfileInputs(50, 50, 50, 50)


@pytest.fixture
def conservative_inputs():
    return RiskProfileInputs(20, 20, 20, 20)


@pytest.fixture
def default_params():
    return OptimizationParams(
        target_volatility=0.125,
        max_etfs=7,
        risk_aversion=1.5,
        fee_penalty=1.0,
        region_penalty=10.0,
        liquidity_penalty=2.0,
        target_region_mix={"US": 1.0},
        exclusion_threshold=0.005,
    )


@pytest.fixture
def us_funds():
    return [make_fund(t) for t in ("AAA", "BBB", "CCC", "DDD")]


@pytest.fixture
def conservative_funds():
    return conservative_universe()


@pytest.fixture
def region_funds():
    return region_universe()


@pytest.fixture
def many_funds():
    return random_universe(20, seed=7)
