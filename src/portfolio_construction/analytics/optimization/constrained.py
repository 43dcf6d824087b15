"""
Constrained Optimizer
=====================
Continuous solve → full feasible projection → cardinality reduction.

The continuous solver ignores the fund-count limit (the exact problem is
combinatorial). Cardinality is a greedy post-hoc step: keep the K largest
weights, then re-project on the retained funds only, so no dropped fund
can come back.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

import numpy as np

from portfolio_construction.analytics.optimization.projection import (
    apply_cardinality_constraint,
    feasibility_violations,
    project_onto_feasible_set,
    renormalize_with_cap,
)
from portfolio_construction.analytics.optimization.solvers import PortfolioSolver, get_solver
from portfolio_construction.analytics.optimization.utils import objective_value
from portfolio_construction.config.loader import resolve_config
from portfolio_construction.models.portfolio import (
    OptimizationParams,
    OptimizationResult,
    PortfolioStatistics,
)
from portfolio_construction.utils.logger import get_logger

logger = get_logger(__name__)


def optimize_weights(
    statistics: PortfolioStatistics,
    params: OptimizationParams,
    solver: Optional[Union[str, PortfolioSolver]] = None,
    config: Optional[Dict[str, Any]] = None,
) -> OptimizationResult:
    """
    Ottimizzazione vincolata completa (senza filtro di visualizzazione).

    Args:
        statistics: Estimator output
        params: Optimizer parameters
        solver: Solver instance or name (default from config)
        config: Engine config

    Returns:
        OptimizationResult with `continuous_weights` (pre-truncation) and
        final `weights`, both over the statistics' fund order.
    """
    cfg = resolve_config(config)
    if solver is None or isinstance(solver, str):
        solver = get_solver(solver, cfg)

    logger.info(
        f"Optimizing {statistics.n_funds} funds with {solver.name} "
        f"(σ*={params.target_volatility:.3f}, λ={params.risk_aversion:.2f}, K={params.max_etfs})"
    )
    raw = solver.solve(statistics, params)

    continuous = project_onto_feasible_set(raw.weights, statistics, params, cfg)
    weights = apply_cardinality_constraint(continuous, params.max_etfs)

    support = np.flatnonzero(weights > 0)
    if 0 < support.size < statistics.n_funds:
        refined = project_onto_feasible_set(weights[support], statistics.subset(support), params, cfg)
        weights = np.zeros_like(weights)
        weights[support] = refined
    weights = renormalize_with_cap(weights, params.max_weight)

    violations = feasibility_violations(weights, statistics, params, cfg)
    if violations:
        logger.warning(f"Constraints not fully satisfied, returning closest allocation: {violations}")

    return OptimizationResult(
        weights=weights,
        objective=objective_value(weights, statistics, params),
        iterations=raw.iterations,
        converged=raw.converged,
        feasible=not violations,
        solver=raw.solver,
        message=raw.message,
        continuous_weights=continuous,
    )
