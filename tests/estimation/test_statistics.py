import numpy as np
import pytest

from portfolio_construction.analytics.estimation.statistics import (
    build_industry_exclusion_matrix,
    build_region_matrix,
    compute_fee_penalties,
    compute_liquidity_penalties,
    compute_portfolio_statistics,
)
from portfolio_construction.models.portfolio import IndustryExclusion
from portfolio_construction.utils.exceptions import InvalidInputError
from tests.fixtures.synthetic_data import make_fund


def test_fee_penalties_are_ter():
    funds = [make_fund("A", ter=0.0003), make_fund("B", ter=0.002)]
    assert compute_fee_penalties(funds) == pytest.approx([0.0003, 0.002])


def test_liquidity_penalty_formula():
    big = make_fund("BIG", aum=9999.0, spread=0.001)
    tiny = make_fund("TINY", aum=0.0, spread=0.0)
    mid = make_fund("MID", aum=99.0, spread=0.0002)
    penalties = compute_liquidity_penalties([big, tiny, mid])
    assert penalties[0] == pytest.approx(0.05)
    assert penalties[1] == pytest.approx(0.5)
    assert penalties[2] == pytest.approx(0.5 * 0.5 + 0.5 * 0.02)


def test_liquidity_penalty_decreases_with_size():
    penalties = compute_liquidity_penalties([make_fund(t, aum=a) for t, a in
                                             [("S", 60.0), ("M", 600.0), ("L", 6000.0)]])
    assert penalties[0] > penalties[1] > penalties[2]


def test_region_and_exclusion_matrices():
    funds = [
        make_fund("A", regions={"US": 0.7, "EM": 0.3}, industries={"TOBACCO": 0.01}),
        make_fund("B", regions={"NL": 1.0}),
    ]
    regions = build_region_matrix(funds)
    assert regions.shape == (5, 2)
    assert regions[:, 0] == pytest.approx([0.0, 0.0, 0.7, 0.0, 0.3])
    assert regions[:, 1] == pytest.approx([1.0, 0.0, 0.0, 0.0, 0.0])

    excl = build_industry_exclusion_matrix(funds, [IndustryExclusion.TOBACCO, IndustryExclusion.GAMBLING])
    assert excl.shape == (2, 2)
    assert excl[0] == pytest.approx([0.01, 0.0])
    assert build_industry_exclusion_matrix(funds, []).shape == (0, 2)


def test_statistics_are_shrunk_and_annualized():
    funds = [make_fund("A", mean=0.01, vol=0.04), make_fund("B", mean=0.005, vol=0.02)]
    stats = compute_portfolio_statistics(funds, ["tobacco"])

    assert stats.tickers == ["A", "B"]
    assert stats.expected_returns == pytest.approx([0.00875 * 12, 0.00625 * 12])
    assert np.diag(stats.covariance_matrix) == pytest.approx([0.04 ** 2 * 12, 0.02 ** 2 * 12])
    assert np.allclose(stats.covariance_matrix, stats.covariance_matrix.T)
    assert stats.excluded_industries == [IndustryExclusion.TOBACCO]
    assert stats.industry_exclusion_matrix.shape == (1, 2)


def test_statistics_respect_config(engine_config):
    funds = [make_fund("A", mean=0.01, vol=0.04), make_fund("B", mean=0.005, vol=0.02)]
    engine_config['estimation']['return_shrinkage'] = 0.0
    engine_config['estimation']['periods_per_year'] = 1
    stats = compute_portfolio_statistics(funds, config=engine_config)
    assert stats.expected_returns == pytest.approx([0.01, 0.005])


def test_equilibrium_return_model(engine_config, default_params):
    funds = [make_fund("A"), make_fund("B", regions={"EM": 1.0})]
    engine_config['estimation']['return_model'] = 'equilibrium'

    with pytest.raises(InvalidInputError):
        compute_portfolio_statistics(funds, config=engine_config)

    stats = compute_portfolio_statistics(funds, config=engine_config, params=default_params)
    # all equilibrium weight on the US fund (the only one matching the target)
    expected = default_params.risk_aversion * stats.covariance_matrix @ np.array([1.0, 0.0])
    assert stats.expected_returns == pytest.approx(expected)


def test_unknown_return_model_and_empty_universe(engine_config):
    engine_config['estimation']['return_model'] = 'crystal_ball'
    with pytest.raises(InvalidInputError):
        compute_portfolio_statistics([make_fund("A"), make_fund("B")], config=engine_config)
    with pytest.raises(InvalidInputError):
        compute_portfolio_statistics([])
