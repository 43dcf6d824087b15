from .utils import (
    portfolio_return,
    portfolio_volatility,
    portfolio_statistics,
    marginal_volatility,
    objective_value,
    objective_gradient,
)
from .projection import (
    project_onto_simplex,
    project_onto_simple_feasible_set,
    reduce_volatility,
    enforce_exclusions,
    check_feasibility,
    feasibility_violations,
    project_onto_feasible_set,
    apply_cardinality_constraint,
    renormalize_with_cap,
    drop_small_positions,
)
from .solvers import (
    PortfolioSolver,
    ProjectedGradientSolver,
    ScipySLSQPSolver,
    SOLVERS,
    get_solver,
)
from .constrained import optimize_weights

__all__ = [
    "portfolio_return",
    "portfolio_volatility",
    "portfolio_statistics",
    "marginal_volatility",
    "objective_value",
    "objective_gradient",
    "project_onto_simplex",
    "project_onto_simple_feasible_set",
    "reduce_volatility",
    "enforce_exclusions",
    "check_feasibility",
    "feasibility_violations",
    "project_onto_feasible_set",
    "apply_cardinality_constraint",
    "renormalize_with_cap",
    "drop_small_positions",
    "PortfolioSolver",
    "ProjectedGradientSolver",
    "ScipySLSQPSolver",
    "SOLVERS",
    "get_solver",
    "optimize_weights",
]
