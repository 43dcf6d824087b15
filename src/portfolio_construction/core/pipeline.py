"""
Pipeline Module
===============
Orchestratore: profilo di rischio → portafoglio ottimizzato.

Stages (strict forward data flow, no state between calls):
1. RiskProfileMapper: inputs → OptimizationParams
2. Pre-filter: hard constraints on the universe
3. StatisticsEstimator: eligible funds → PortfolioStatistics
4. ConstrainedOptimizer: statistics + params → weights
5. PortfolioBuilder: weights → OptimizedPortfolio
"""

from typing import Any, Dict, Optional, Sequence, Union

from portfolio_construction.analytics.estimation.statistics import compute_portfolio_statistics
from portfolio_construction.analytics.optimization.constrained import optimize_weights
from portfolio_construction.analytics.optimization.solvers import PortfolioSolver
from portfolio_construction.config.loader import resolve_config
from portfolio_construction.core.builder import build_optimized_portfolio
from portfolio_construction.data.universe import select_eligible_funds
from portfolio_construction.decision.risk_profile import build_optimization_params
from portfolio_construction.models.portfolio import (
    FundRecord,
    OptimizedPortfolio,
    RiskProfileInputs,
    parse_industry,
)

# === LOGGING ===
from portfolio_construction.utils.logger import get_logger, log_performance
logger = get_logger(__name__)


@log_performance(logger)
def optimize_portfolio(
    funds: Sequence[FundRecord],
    risk_profile_inputs: RiskProfileInputs,
    industry_exclusions: Optional[Sequence[Any]] = None,
    config: Optional[Dict[str, Any]] = None,
    solver: Optional[Union[str, PortfolioSolver]] = None,
) -> OptimizedPortfolio:
    """
    Costruisce il portafoglio ottimizzato per un profilo di rischio.

    Args:
        funds: De-duplicated fund universe
        risk_profile_inputs: Normalized investor profile
        industry_exclusions: Excluded categories; None uses the profile's own
        config: Engine config (defaults from config.engine_config)
        solver: Solver name or instance (default from config)

    Returns:
        OptimizedPortfolio

    Raises:
        NoEligibleFundsError: no fund survives the hard constraints
    """
    cfg = resolve_config(config)
    if industry_exclusions is None:
        exclusions = list(risk_profile_inputs.industry_exclusions)
    else:
        exclusions = [parse_industry(i) for i in industry_exclusions]

    params = build_optimization_params(risk_profile_inputs, cfg)
    logger.info(
        f"Constructing portfolio from {len(funds)} funds "
        f"(regions: {[r.value for r in risk_profile_inputs.regions_selected] or 'default mix'}, "
        f"exclusions: {[e.value for e in exclusions] or 'none'})"
    )

    eligible = select_eligible_funds(funds, params, exclusions, cfg)
    statistics = compute_portfolio_statistics(eligible, exclusions, cfg, params)
    result = optimize_weights(statistics, params, solver, cfg)
    portfolio = build_optimized_portfolio(
        eligible, result.weights, statistics, params, exclusions, result, cfg
    )

    if portfolio.approximate:
        logger.warning(
            f"Portfolio is approximate (converged={result.converged}, "
            f"feasible={portfolio.diagnostics['feasible']})"
        )
    logger.info(
        f"Portfolio: {portfolio.n_positions} funds, return {portfolio.expected_return:.2%}, "
        f"volatility {portfolio.expected_volatility:.2%}, Sharpe {portfolio.sharpe_ratio:.2f}"
    )
    return portfolio
