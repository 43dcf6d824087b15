"""
Portfolio Builder
=================
Final stage: drop dust positions, recompute realized metrics on the retained
funds and package the OptimizedPortfolio.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import numpy as np

from portfolio_construction.analytics.optimization.projection import (
    check_feasibility,
    drop_small_positions,
)
from portfolio_construction.analytics.optimization.utils import (
    marginal_volatility,
    portfolio_statistics,
)
from portfolio_construction.config.loader import resolve_config
from portfolio_construction.models.portfolio import (
    AppliedConstraints,
    FundDetail,
    FundRecord,
    OptimizationParams,
    OptimizationResult,
    OptimizedPortfolio,
    PortfolioStatistics,
    REGIONS,
    parse_industry,
)
from portfolio_construction.utils.exceptions import InvalidInputError


def build_optimized_portfolio(
    funds: Sequence[FundRecord],
    weights: np.ndarray,
    statistics: PortfolioStatistics,
    params: OptimizationParams,
    industry_exclusions: Sequence[Any] = (),
    result: Optional[OptimizationResult] = None,
    config: Optional[Dict[str, Any]] = None,
) -> OptimizedPortfolio:
    """
    Package the final allocation.

    Args:
        funds: Universe in the same order as `statistics`
        weights: Optimizer weights over that universe
        statistics: Estimator output used by the optimizer
        params: Parameters actually applied
        industry_exclusions: Excluded categories (echoed back)
        result: Optimizer result, for diagnostics and the approximate flag
        config: Engine config

    Returns:
        OptimizedPortfolio with positions sorted by descending weight
    """
    if len(funds) != statistics.n_funds or len(weights) != statistics.n_funds:
        raise InvalidInputError(
            "funds/weights",
            f"{len(funds)} funds and {len(weights)} weights for {statistics.n_funds} statistics columns",
        )
    cfg = resolve_config(config)
    opt = cfg['optimizer']

    threshold = max(opt['min_display_weight'], params.min_weight)
    final = drop_small_positions(weights, threshold, params.max_weight)

    retained = np.flatnonzero(final > 0)
    retained = retained[np.argsort(-final[retained], kind="stable")]
    sub = statistics.subset(retained)
    w = final[retained]

    expected_return, volatility, sharpe = portfolio_statistics(
        w, sub.expected_returns, sub.covariance_matrix
    )
    mcr = marginal_volatility(w, sub.covariance_matrix)
    region_exposure = {region: float(sub.region_matrix[i] @ w) for i, region in enumerate(REGIONS)}
    total_fees = float(w @ sub.fee_penalties)

    details = []
    for pos, idx in enumerate(retained):
        fund = funds[idx]
        details.append(FundDetail(
            ticker=fund.ticker,
            name=fund.name,
            weight=float(w[pos]),
            expected_return=float(sub.expected_returns[pos]),
            volatility=float(np.sqrt(max(sub.covariance_matrix[pos, pos], 0.0))),
            marginal_volatility=float(mcr[pos]),
            ter=fund.ter,
        ))

    feasible = check_feasibility(final, statistics, params, cfg)
    converged = result.converged if result is not None else True

    constraints = AppliedConstraints(
        excluded_industries=[parse_industry(i) for i in industry_exclusions],
        volatility_cap=params.target_volatility,
        max_etfs=params.max_etfs,
        target_regions=params.target_regions,
        max_weight=params.max_weight,
        exclusion_threshold=params.exclusion_threshold,
    )

    diagnostics = {
        'solver': result.solver if result is not None else None,
        'iterations': result.iterations if result is not None else 0,
        'converged': converged,
        'feasible': feasible,
        'objective': result.objective if result is not None else None,
        'candidate_funds': statistics.n_funds,
    }

    return OptimizedPortfolio(
        tickers=[d.ticker for d in details],
        weights=[d.weight for d in details],
        expected_return=expected_return,
        expected_volatility=volatility,
        sharpe_ratio=sharpe,
        region_exposure=region_exposure,
        total_fees=total_fees,
        constraints=constraints,
        etf_details=details,
        approximate=not (converged and feasible),
        diagnostics=diagnostics,
    )
