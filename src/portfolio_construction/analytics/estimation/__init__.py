from .shrinkage import (
    align_return_history,
    sample_means,
    sample_covariance,
    average_correlation,
    constant_correlation_target,
    shrink_covariance,
    shrink_expected_returns,
    equilibrium_weights,
    implied_equilibrium_returns,
)
from .statistics import (
    compute_fee_penalties,
    compute_liquidity_penalties,
    build_region_matrix,
    build_industry_exclusion_matrix,
    compute_portfolio_statistics,
)

__all__ = [
    "align_return_history",
    "sample_means",
    "sample_covariance",
    "average_correlation",
    "constant_correlation_target",
    "shrink_covariance",
    "shrink_expected_returns",
    "equilibrium_weights",
    "implied_equilibrium_returns",
    "compute_fee_penalties",
    "compute_liquidity_penalties",
    "build_region_matrix",
    "build_industry_exclusion_matrix",
    "compute_portfolio_statistics",
]
