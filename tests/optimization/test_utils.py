import numpy as np
import pytest

from portfolio_construction.analytics.optimization import marginal_volatility, portfolio_statistics


def test_statistics_on_risky_portfolio():
    w = np.array([0.5, 0.5])
    ret, vol, sharpe = portfolio_statistics(w, np.array([0.08, 0.04]), np.diag([0.04, 0.01]))
    assert ret == pytest.approx(0.06)
    assert vol == pytest.approx(np.sqrt(0.0125))
    assert sharpe == pytest.approx(0.06 / np.sqrt(0.0125))
    assert (w * marginal_volatility(w, np.diag([0.04, 0.01]))).sum() == pytest.approx(vol)


@pytest.mark.parametrize("cov", [np.zeros((3, 3)), np.full((3, 3), 1e-35)])
def test_riskless_portfolio_has_zero_sharpe(cov):
    w = np.full(3, 1.0 / 3)
    ret, vol, sharpe = portfolio_statistics(w, np.full(3, 0.03), cov)

    assert ret == pytest.approx(0.03)
    assert vol < 1e-12
    assert sharpe == 0.0
    assert np.array_equal(marginal_volatility(w, cov), np.zeros(3))
