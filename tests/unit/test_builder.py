import json

import numpy as np
import pytest

from portfolio_construction import optimize_portfolio
from portfolio_construction.analytics.estimation import compute_portfolio_statistics
from portfolio_construction.core.builder import build_optimized_portfolio
from portfolio_construction.models.portfolio import IndustryExclusion, OptimizationResult, Region
from portfolio_construction.reporting.console import format_portfolio_summary
from portfolio_construction.utils.exceptions import InvalidInputError
from tests.fixtures.synthetic_data import make_fund


@pytest.fixture
def built(us_funds, default_params):
    stats = compute_portfolio_statistics(us_funds, ["tobacco"])
    weights = np.array([0.4, 0.247, 0.35, 0.003])
    result = OptimizationResult(weights, 0.05, 42, converged=True, feasible=True, solver="projected_gradient")
    portfolio = build_optimized_portfolio(us_funds, weights, stats, default_params, ["tobacco"], result)
    return portfolio, stats


def test_dust_is_dropped_and_positions_sorted(built):
    portfolio, _ = built
    assert portfolio.tickers == ["AAA", "CCC", "BBB"]
    assert sum(portfolio.weights) == pytest.approx(1.0)
    assert max(portfolio.weights) <= 0.4 + 1e-12
    assert portfolio.weights == sorted(portfolio.weights, reverse=True)
    assert portfolio.n_positions == 3


def test_metrics_are_recomputed_on_retained_funds(built, us_funds):
    portfolio, stats = built
    idx = [0, 2, 1]
    w = np.array(portfolio.weights)
    cov = stats.covariance_matrix[np.ix_(idx, idx)]
    vol = float(np.sqrt(w @ cov @ w))

    assert portfolio.expected_volatility == pytest.approx(vol)
    assert portfolio.expected_return == pytest.approx(float(w @ stats.expected_returns[idx]))
    assert portfolio.sharpe_ratio == pytest.approx(portfolio.expected_return / vol)
    assert portfolio.total_fees == pytest.approx(0.001)
    assert portfolio.region_exposure[Region.US] == pytest.approx(1.0)

    contributions = sum(d.weight * d.marginal_volatility for d in portfolio.etf_details)
    assert contributions == pytest.approx(vol)
    assert portfolio.etf_details[0].volatility == pytest.approx(np.sqrt(stats.covariance_matrix[0, 0]))


def test_constraints_and_diagnostics_echoed(built, default_params):
    portfolio, _ = built
    c = portfolio.constraints
    assert c.excluded_industries == [IndustryExclusion.TOBACCO]
    assert c.volatility_cap == default_params.target_volatility
    assert c.max_etfs == default_params.max_etfs
    assert c.target_regions == [Region.US]
    assert portfolio.diagnostics['solver'] == "projected_gradient"
    assert portfolio.diagnostics['iterations'] == 42
    assert portfolio.diagnostics['candidate_funds'] == 4
    assert portfolio.approximate == (not portfolio.diagnostics['feasible'])


def test_serialization(built, tmp_path):
    portfolio, _ = built
    data = json.loads(portfolio.to_json())
    assert data['tickers'] == portfolio.tickers
    assert data['constraints']['excluded_industries'] == ["TOBACCO"]
    assert data['region_exposure']['US'] == pytest.approx(1.0)

    path = tmp_path / "portfolio.json"
    portfolio.save_json(str(path))
    assert json.loads(path.read_text(encoding="utf-8")) == data

    frame = portfolio.to_frame()
    assert list(frame.index) == portfolio.tickers
    assert frame['weight'].sum() == pytest.approx(1.0)


def test_console_summary(built):
    portfolio, _ = built
    lines = format_portfolio_summary(portfolio)
    text = "\n".join(lines)
    assert "OPTIMIZED PORTFOLIO" in text
    assert "AAA" in text
    assert "TOBACCO" in text


def test_length_mismatch_rejected(us_funds, default_params):
    stats = compute_portfolio_statistics(us_funds)
    with pytest.raises(InvalidInputError):
        build_optimized_portfolio(us_funds[:3], np.full(4, 0.25), stats, default_params)


def test_constant_return_funds_report_zero_sharpe(balanced_inputs):
    funds = [make_fund(t, vol=0.0) for t in ("Z1", "Z2", "Z3")]
    portfolio = optimize_portfolio(funds, balanced_inputs)

    assert sum(portfolio.weights) == pytest.approx(1.0)
    assert portfolio.expected_volatility < 1e-12
    assert portfolio.sharpe_ratio == 0.0
    assert all(d.marginal_volatility == 0.0 for d in portfolio.etf_details)
    data = json.loads(portfolio.to_json())
    assert data['sharpe_ratio'] == 0.0
