"""
Optimization Utilities
======================
Obiettivo penalizzato mean-variance, gradiente analitico e metriche di portafoglio.

Objective (maximized):
    μᵀw − λ·wᵀΣw − α·feeᵀw − β·‖A_reg·w − t_reg‖² − γ·illiqᵀw
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from portfolio_construction.models.portfolio import OptimizationParams, PortfolioStatistics

# volatility at or below this is treated as zero (float noise on constant returns)
VOL_EPS = 1e-12


def portfolio_return(weights: np.ndarray, expected_returns: np.ndarray) -> float:
    return float(weights @ expected_returns)


def portfolio_volatility(weights: np.ndarray, covariance_matrix: np.ndarray) -> float:
    """sqrt(wᵀΣw), floored at 0 against negative float noise."""
    variance = float(weights @ covariance_matrix @ weights)
    return float(np.sqrt(max(variance, 0.0)))


def portfolio_statistics(
    weights: np.ndarray,
    expected_returns: np.ndarray,
    covariance_matrix: np.ndarray,
    risk_free_rate: float = 0.0,
) -> Tuple[float, float, float]:
    """Calcola (return, volatility, sharpe); sharpe = 0 when volatility is below VOL_EPS."""
    ret = portfolio_return(weights, expected_returns)
    vol = portfolio_volatility(weights, covariance_matrix)
    sharpe = (ret - risk_free_rate) / vol if vol > VOL_EPS else 0.0
    return ret, vol, sharpe


def marginal_volatility(weights: np.ndarray, covariance_matrix: np.ndarray) -> np.ndarray:
    """
    Marginal Contribution to Risk.

    MCR_i = (Σw)_i / σ_p; w_i * MCR_i sums to σ_p.
    """
    vol = portfolio_volatility(weights, covariance_matrix)
    if vol <= VOL_EPS:
        return np.zeros_like(weights, dtype=float)
    return (covariance_matrix @ weights) / vol


def region_deviation(
    weights: np.ndarray,
    statistics: PortfolioStatistics,
    params: OptimizationParams,
) -> np.ndarray:
    """A_reg·w − t_reg."""
    return statistics.region_matrix @ weights - params.region_targets


def objective_value(
    weights: np.ndarray,
    statistics: PortfolioStatistics,
    params: OptimizationParams,
) -> float:
    deviation = region_deviation(weights, statistics, params)
    return float(
        weights @ statistics.expected_returns
        - params.risk_aversion * (weights @ statistics.covariance_matrix @ weights)
        - params.fee_penalty * (weights @ statistics.fee_penalties)
        - params.region_penalty * (deviation @ deviation)
        - params.liquidity_penalty * (weights @ statistics.liquidity_penalties)
    )


def objective_gradient(
    weights: np.ndarray,
    statistics: PortfolioStatistics,
    params: OptimizationParams,
) -> np.ndarray:
    """μ − 2λΣw − α·fee − 2β·A_regᵀ(A_reg·w − t_reg) − γ·illiq."""
    deviation = region_deviation(weights, statistics, params)
    return (
        statistics.expected_returns
        - 2.0 * params.risk_aversion * (statistics.covariance_matrix @ weights)
        - params.fee_penalty * statistics.fee_penalties
        - 2.0 * params.region_penalty * (statistics.region_matrix.T @ deviation)
        - params.liquidity_penalty * statistics.liquidity_penalties
    )
