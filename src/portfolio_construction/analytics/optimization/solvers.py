"""
Solver Strategies
=================
Continuous solvers for the penalized mean-variance program.

Every backend satisfies the same contract:
    solve(statistics, params) -> OptimizationResult

- ProjectedGradientSolver: default, pure numpy
- ScipySLSQPSolver: optional backend on scipy.optimize.minimize (SLSQP),
  with the volatility cap and exclusion rows as explicit constraints

Solvers are cardinality-unaware; see constrained.optimize_weights.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import numpy as np
from scipy.optimize import minimize

from portfolio_construction.analytics.optimization.projection import (
    check_feasibility,
    project_onto_simple_feasible_set,
)
from portfolio_construction.analytics.optimization.utils import (
    objective_gradient,
    objective_value,
)
from portfolio_construction.config.loader import resolve_config
from portfolio_construction.models.portfolio import (
    OptimizationParams,
    OptimizationResult,
    PortfolioStatistics,
)
from portfolio_construction.utils.exceptions import InvalidInputError
from portfolio_construction.utils.logger import get_logger

logger = get_logger(__name__)


class PortfolioSolver(ABC):
    """Base class for continuous solvers."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = resolve_config(config)
        self.options = self.config['optimizer']

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this solver."""
        pass

    @abstractmethod
    def solve(self, statistics: PortfolioStatistics, params: OptimizationParams) -> OptimizationResult:
        """
        Solve the continuous program.

        Args:
            statistics: Estimator output
            params: Optimizer parameters

        Returns:
            OptimizationResult (weights before the full projection)
        """
        pass


# =========================
# PROJECTED GRADIENT
# =========================

class ProjectedGradientSolver(PortfolioSolver):
    """
    Projected gradient ascent with backtracking line search.

    Uniform start; stops when the objective moves by less than `tolerance`
    or after `max_iterations` (returning the last iterate, not converged).
    """

    @property
    def name(self) -> str:
        return "projected_gradient"

    def _line_search(
        self,
        weights: np.ndarray,
        gradient: np.ndarray,
        current: float,
        statistics: PortfolioStatistics,
        params: OptimizationParams,
    ) -> float:
        # First step whose projected candidate improves the objective
        step = self.options['initial_step']
        for _ in range(self.options['max_backtracks']):
            candidate = project_onto_simple_feasible_set(weights + step * gradient, params.max_weight)
            if objective_value(candidate, statistics, params) > current:
                return step
            step *= self.options['backtrack_factor']
        return step

    def solve(self, statistics: PortfolioStatistics, params: OptimizationParams) -> OptimizationResult:
        n = statistics.n_funds
        if n == 0:
            raise InvalidInputError("statistics", "no funds to optimize")

        weights = np.full(n, 1.0 / n)
        previous = -np.inf
        converged = False
        iterations = self.options['max_iterations']

        for iteration in range(self.options['max_iterations']):
            current = objective_value(weights, statistics, params)
            if abs(current - previous) < self.options['tolerance']:
                converged = True
                iterations = iteration + 1
                break
            previous = current

            gradient = objective_gradient(weights, statistics, params)
            step = self._line_search(weights, gradient, current, statistics, params)
            weights = project_onto_simple_feasible_set(weights + step * gradient, params.max_weight)

        if converged:
            message = f"Converged in {iterations} iterations"
            logger.debug(message)
        else:
            message = f"No convergence after {iterations} iterations, returning last iterate"
            logger.warning(message)

        return OptimizationResult(
            weights=weights,
            objective=objective_value(weights, statistics, params),
            iterations=iterations,
            converged=converged,
            feasible=check_feasibility(weights, statistics, params, self.config),
            solver=self.name,
            message=message,
        )


# =========================
# SCIPY SLSQP
# =========================

class ScipySLSQPSolver(PortfolioSolver):
    """
    SLSQP on the same objective (minimize the negated objective).

    On failure falls back to the projected-gradient iterate, flagged as not
    converged.
    """

    @property
    def name(self) -> str:
        return "slsqp"

    def solve(self, statistics: PortfolioStatistics, params: OptimizationParams) -> OptimizationResult:
        n = statistics.n_funds
        if n == 0:
            raise InvalidInputError("statistics", "no funds to optimize")

        cov = statistics.covariance_matrix
        bounds = [(0.0, params.max_weight) for _ in range(n)]
        constraints = [
            {"type": "eq", "fun": lambda w: np.sum(w) - 1.0},
            {"type": "ineq", "fun": lambda w: params.target_volatility ** 2 - w @ cov @ w},
        ]
        for row in statistics.industry_exclusion_matrix:
            constraints.append(
                {"type": "ineq", "fun": lambda w, row=row: params.exclusion_threshold - row @ w}
            )
        x0 = np.ones(n) / n

        res = minimize(
            lambda w: -objective_value(w, statistics, params),
            x0,
            jac=lambda w: -objective_gradient(w, statistics, params),
            method="SLSQP",
            bounds=bounds,
            constraints=constraints,
            options={"maxiter": self.options['max_iterations'], "ftol": self.options['tolerance']},
        )

        if not res.success:
            logger.warning(f"SLSQP optimization failed: {res.message}")
            fallback = ProjectedGradientSolver(self.config).solve(statistics, params)
            fallback.solver = self.name
            fallback.converged = False
            fallback.message = f"FALLBACK projected gradient. {res.message}"
            return fallback

        weights = np.clip(res.x, 0.0, None)
        weights = weights / weights.sum()
        return OptimizationResult(
            weights=weights,
            objective=objective_value(weights, statistics, params),
            iterations=int(res.nit),
            converged=True,
            feasible=check_feasibility(weights, statistics, params, self.config),
            solver=self.name,
            message=str(res.message),
        )


SOLVERS: Dict[str, Type[PortfolioSolver]] = {
    "projected_gradient": ProjectedGradientSolver,
    "slsqp": ScipySLSQPSolver,
}


def get_solver(name: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> PortfolioSolver:
    """Instantiate a solver by name (default: the configured one)."""
    cfg = resolve_config(config)
    name = name or cfg['optimizer']['solver']
    try:
        solver_cls = SOLVERS[name]
    except KeyError:
        raise InvalidInputError("solver", f"unknown solver {name!r}, choose from {sorted(SOLVERS)}") from None
    return solver_cls(cfg)
