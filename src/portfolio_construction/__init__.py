"""
Portfolio Construction Engine
=============================
Turns an investor risk profile and a fund universe into a constrained,
risk-adjusted allocation.

Main Components:
    - decision: Risk profile mapping, questionnaire normalization
    - data: Pre-filter, catalog loading, sample universe
    - analytics.estimation: Shrunk covariance / expected returns, penalties
    - analytics.optimization: Projected gradient, projections, solvers
    - core: Portfolio builder and pipeline orchestration
    - reporting: Console output
    - config: Engine configuration and file loader
    - models: Type-safe data structures
    - utils: Logging, exceptions

Example:
    >>> from portfolio_construction import optimize_portfolio, RiskProfileInputs
    >>> from portfolio_construction.data.definitions.catalog import build_sample_universe
    >>> inputs = RiskProfileInputs(50, 50, 60, 40, regions_selected=["US"])
    >>> portfolio = optimize_portfolio(build_sample_universe(seed=7), inputs)
"""

__version__ = "1.0.0"

from portfolio_construction.core.pipeline import optimize_portfolio
from portfolio_construction.models.portfolio import (
    FundRecord,
    IndustryExclusion,
    OptimizedPortfolio,
    Region,
    RiskProfileInputs,
)
from portfolio_construction.utils.exceptions import (
    InvalidInputError,
    NoEligibleFundsError,
    NoEligibleFundsReason,
)

__all__ = [
    "optimize_portfolio",
    "FundRecord",
    "IndustryExclusion",
    "OptimizedPortfolio",
    "Region",
    "RiskProfileInputs",
    "InvalidInputError",
    "NoEligibleFundsError",
    "NoEligibleFundsReason",
]
