"""
Portfolio Statistics Estimator
==============================
Builds the numeric inputs of the optimizer from a (pre-filtered) fund universe:
shrunk covariance, shrunk expected returns, fee/liquidity penalties and the
region / industry-exclusion exposure matrices.
"""

from typing import Any, Dict, Optional, Sequence

import numpy as np

from portfolio_construction.analytics.estimation.shrinkage import (
    align_return_history,
    equilibrium_weights,
    implied_equilibrium_returns,
    sample_covariance,
    sample_means,
    shrink_covariance,
    shrink_expected_returns,
)
from portfolio_construction.config.loader import resolve_config
from portfolio_construction.models.portfolio import (
    FundRecord,
    IndustryExclusion,
    OptimizationParams,
    PortfolioStatistics,
    REGIONS,
    parse_industry,
)
from portfolio_construction.utils.exceptions import InvalidInputError
from portfolio_construction.utils.logger import get_logger

logger = get_logger(__name__)

# AUM (millions) at which the size penalty reaches zero
AUM_PENALTY_SCALE = 10000.0


def compute_fee_penalties(funds: Sequence[FundRecord]) -> np.ndarray:
    """TER per fund, as a fraction."""
    return np.array([f.ter for f in funds], dtype=float)


def compute_liquidity_penalties(funds: Sequence[FundRecord]) -> np.ndarray:
    """
    Illiquidity score per fund.

    0.5 * max(0, 1 - log(aum+1)/log(10000)) + 0.5 * spread*100:
    lower AUM and wider spreads both increase the penalty.
    """
    aum = np.array([f.aum for f in funds], dtype=float)
    spread = np.array([f.avg_spread for f in funds], dtype=float)
    aum_penalty = np.maximum(0.0, 1.0 - np.log1p(aum) / np.log(AUM_PENALTY_SCALE))
    spread_penalty = spread * 100.0
    return 0.5 * aum_penalty + 0.5 * spread_penalty


def build_region_matrix(funds: Sequence[FundRecord]) -> np.ndarray:
    """5 x n matrix, rows in Region order."""
    return np.array(
        [[f.region_exposure[r] for f in funds] for r in REGIONS], dtype=float
    ).reshape(len(REGIONS), len(funds))


def build_industry_exclusion_matrix(
    funds: Sequence[FundRecord],
    industry_exclusions: Sequence[IndustryExclusion],
) -> np.ndarray:
    """m x n matrix, one row per requested exclusion (0 rows if none)."""
    return np.array(
        [[f.exposure_to(ind) for f in funds] for ind in industry_exclusions], dtype=float
    ).reshape(len(industry_exclusions), len(funds))


def compute_portfolio_statistics(
    funds: Sequence[FundRecord],
    industry_exclusions: Sequence[Any] = (),
    config: Optional[Dict[str, Any]] = None,
    params: Optional[OptimizationParams] = None,
) -> PortfolioStatistics:
    """
    Calcola le statistiche annualizzate per l'ottimizzatore.

    Args:
        funds: Pre-filtered universe (order defines the weight vector)
        industry_exclusions: Categories the investor excluded
        config: Engine config (defaults from config.engine_config)
        params: Required only for the 'equilibrium' return model

    Returns:
        PortfolioStatistics
    """
    if not funds:
        raise InvalidInputError("funds", "cannot estimate statistics for an empty universe")

    est = resolve_config(config)['estimation']
    periods = est['periods_per_year']
    exclusions = []
    for ind in industry_exclusions:
        ind = parse_industry(ind)
        if ind not in exclusions:
            exclusions.append(ind)

    returns = align_return_history(funds)
    cov = sample_covariance(returns)
    cov = shrink_covariance(cov, est['covariance_shrinkage'], est['default_avg_correlation'])
    cov = cov * periods

    region_matrix = build_region_matrix(funds)

    model = est['return_model']
    if model == 'shrunk_mean':
        means = sample_means(funds, truncate=est['truncate_returns_for_mean'])
        expected = shrink_expected_returns(means, est['return_shrinkage']) * periods
    elif model == 'equilibrium':
        if params is None:
            raise InvalidInputError("params", "the equilibrium return model needs OptimizationParams")
        w_eq = equilibrium_weights(region_matrix, params.region_targets)
        expected = implied_equilibrium_returns(cov, params.risk_aversion, w_eq)
    else:
        raise InvalidInputError("return_model", f"unknown model {model!r}")

    stats = PortfolioStatistics(
        tickers=[f.ticker for f in funds],
        expected_returns=expected,
        covariance_matrix=cov,
        fee_penalties=compute_fee_penalties(funds),
        liquidity_penalties=compute_liquidity_penalties(funds),
        region_matrix=region_matrix,
        industry_exclusion_matrix=build_industry_exclusion_matrix(funds, exclusions),
        excluded_industries=exclusions,
    )
    logger.debug(
        f"Statistics for {stats.n_funds} funds over {len(returns)} months "
        f"(return model: {model}, exclusions: {[e.value for e in exclusions]})"
    )
    return stats
