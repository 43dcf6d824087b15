"""
Feasible-Set Projections
========================
Proiezioni sul simplesso, riduzione della volatilità, esclusioni settoriali,
cardinalità e check di fattibilità.

Upper bound: the simple projection clips to [0, max_weight] and then projects
onto the simplex. When the clipped vector sums to less than 1 the simplex
step adds mass back and can push a coordinate slightly above max_weight.
This is the accepted behaviour of the gradient iterations (changing it would
move their fixed points); final weights go through renormalize_with_cap,
which enforces the cap exactly whenever K * max_weight >= 1.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np

from portfolio_construction.analytics.optimization.utils import portfolio_volatility
from portfolio_construction.config.loader import resolve_config
from portfolio_construction.models.portfolio import OptimizationParams, PortfolioStatistics


# =========================
# SIMPLEX / BOX
# =========================

def project_onto_simplex(v: np.ndarray) -> np.ndarray:
    """
    Euclidean projection onto {w : Σw = 1, w >= 0}.

    Sorted-threshold algorithm (Duchi et al., 2008): sort descending, take the
    largest index whose cumulative-average threshold is still below the
    coordinate, subtract that threshold, clip at 0.
    """
    v = np.asarray(v, dtype=float)
    if v.size == 0:
        return v.copy()
    u = np.sort(v)[::-1]
    thresholds = (np.cumsum(u) - 1.0) / np.arange(1, v.size + 1)
    rho = np.nonzero(u > thresholds)[0][-1]
    return np.maximum(v - thresholds[rho], 0.0)


def project_onto_simple_feasible_set(weights: np.ndarray, max_weight: float) -> np.ndarray:
    """Clip to [0, max_weight], then project onto the simplex."""
    return project_onto_simplex(np.clip(weights, 0.0, max_weight))


# =========================
# VOLATILITY / EXCLUSIONS
# =========================

def reduce_volatility(
    weights: np.ndarray,
    covariance_matrix: np.ndarray,
    target_volatility: float,
    decay: float = 0.95,
    floor: float = 0.1,
) -> np.ndarray:
    """
    Scale down the risky positions until volatility is within target.

    Risky = marginal contribution (Σw)_i above the portfolio variance. Their
    weights are multiplied by a factor shrinking from 1.0 toward `floor` in
    `decay` steps, renormalizing each candidate. Returns the first candidate
    within target, else the lowest-volatility one tried.
    """
    weights = np.asarray(weights, dtype=float)
    best_vol = portfolio_volatility(weights, covariance_matrix)
    if best_vol <= target_volatility:
        return weights

    marginal = covariance_matrix @ weights
    risky = marginal > weights @ marginal
    if not risky.any():
        return weights

    best = weights
    scale = 1.0
    while scale > floor:
        scale = max(scale * decay, floor)
        candidate = np.where(risky, weights * scale, weights)
        total = candidate.sum()
        if total <= 0:
            break
        candidate = candidate / total
        vol = portfolio_volatility(candidate, covariance_matrix)
        if vol <= target_volatility:
            return candidate
        if vol < best_vol:
            best, best_vol = candidate, vol
    return best


def enforce_exclusions(
    weights: np.ndarray,
    exclusion_matrix: np.ndarray,
    threshold: float,
) -> np.ndarray:
    """
    Cut the holdings that drive an excluded-industry row above threshold.

    The overage is split evenly across the exposed holdings; each weight is
    reduced by (overage / n_violators) / exposure_i, floored at 0.
    """
    weights = np.array(weights, dtype=float)
    for row in np.atleast_2d(exclusion_matrix):
        exposure = float(row @ weights)
        if exposure <= threshold:
            continue
        violators = np.flatnonzero((row > 0) & (weights > 0))
        if violators.size == 0:
            continue
        reduction = (exposure - threshold) / violators.size
        weights[violators] = np.maximum(0.0, weights[violators] - reduction / row[violators])
    return weights


# =========================
# FEASIBILITY
# =========================

def feasibility_violations(
    weights: np.ndarray,
    statistics: PortfolioStatistics,
    params: OptimizationParams,
    config: Optional[Dict[str, Any]] = None,
) -> List[str]:
    """Human-readable list of violated constraints (empty when feasible)."""
    opt = resolve_config(config)['optimizer']
    weights = np.asarray(weights, dtype=float)
    violations = []

    if (weights < -opt['nonnegativity_tolerance']).any():
        violations.append(f"negative weight {weights.min():.2e}")

    total = weights.sum()
    if abs(total - 1.0) > opt['sum_tolerance']:
        violations.append(f"weights sum to {total:.6f}")

    if (weights > params.max_weight + opt['upper_bound_tolerance']).any():
        violations.append(f"weight {weights.max():.4f} above cap {params.max_weight:.4f}")

    vol = portfolio_volatility(weights, statistics.covariance_matrix)
    if vol > opt['volatility_slack'] * params.target_volatility:
        violations.append(f"volatility {vol:.4f} above target {params.target_volatility:.4f}")

    if statistics.industry_exclusion_matrix.shape[0]:
        exposures = statistics.industry_exclusion_matrix @ weights
        limit = opt['exclusion_slack'] * params.exclusion_threshold
        for industry, exposure in zip(statistics.excluded_industries, exposures):
            if exposure > limit:
                violations.append(
                    f"{industry.value} exposure {exposure:.4f} above {params.exclusion_threshold:.4f}"
                )

    return violations


def check_feasibility(
    weights: np.ndarray,
    statistics: PortfolioStatistics,
    params: OptimizationParams,
    config: Optional[Dict[str, Any]] = None,
) -> bool:
    return not feasibility_violations(weights, statistics, params, config)


def project_onto_feasible_set(
    weights: np.ndarray,
    statistics: PortfolioStatistics,
    params: OptimizationParams,
    config: Optional[Dict[str, Any]] = None,
) -> np.ndarray:
    """
    Full projection: box+simplex, volatility reduction, exclusion cuts,
    renormalization; repeated until feasible or the cycle budget runs out.

    Also used to validate externally supplied candidate weights. The result
    may still be infeasible for conflicting constraints; callers check.
    """
    opt = resolve_config(config)['optimizer']
    weights = np.asarray(weights, dtype=float).copy()
    has_exclusions = statistics.industry_exclusion_matrix.shape[0] > 0

    for _ in range(opt['max_projection_iterations']):
        weights = project_onto_simple_feasible_set(weights, params.max_weight)

        if portfolio_volatility(weights, statistics.covariance_matrix) > params.target_volatility:
            weights = reduce_volatility(
                weights,
                statistics.covariance_matrix,
                params.target_volatility,
                opt['volatility_scale_decay'],
                opt['volatility_scale_floor'],
            )

        if has_exclusions:
            weights = enforce_exclusions(
                weights, statistics.industry_exclusion_matrix, params.exclusion_threshold
            )

        total = weights.sum()
        if total > 0:
            weights = weights / total

        if check_feasibility(weights, statistics, params, config):
            break

    return weights


# =========================
# CARDINALITY / CLEAN-UP
# =========================

def apply_cardinality_constraint(weights: np.ndarray, max_etfs: int) -> np.ndarray:
    """
    Keep the `max_etfs` largest weights, zero the rest, renormalize.

    Ties keep the lower index.
    """
    weights = np.clip(np.asarray(weights, dtype=float), 0.0, None)
    keep = np.argsort(-weights, kind="stable")[:max_etfs]
    result = np.zeros_like(weights)
    result[keep] = weights[keep]
    total = result.sum()
    if total > 0:
        result = result / total
    return result


def renormalize_with_cap(weights: np.ndarray, max_weight: float) -> np.ndarray:
    """
    Rescale the non-zero weights to sum to 1 without exceeding max_weight.

    Positions that would exceed the cap are fixed at the cap and the rest is
    redistributed proportionally (water-filling). The support never grows.
    Plain renormalization when the support is too small for the cap.
    """
    weights = np.clip(np.asarray(weights, dtype=float), 0.0, None)
    support = weights > 0
    n_support = int(support.sum())
    if n_support == 0:
        return weights
    if n_support * max_weight < 1.0:
        return weights / weights.sum()

    capped = np.zeros_like(support)
    result = np.zeros_like(weights)
    for _ in range(n_support):
        free = support & ~capped
        remaining = 1.0 - max_weight * capped.sum()
        scaled = weights[free] / weights[free].sum() * remaining
        over = scaled > max_weight
        if not over.any():
            result[free] = scaled
            break
        capped[np.flatnonzero(free)[over]] = True
    result[capped] = max_weight
    return result


def drop_small_positions(weights: np.ndarray, min_weight: float, max_weight: float) -> np.ndarray:
    """Zero positions below `min_weight` (keeping at least the largest) and renormalize."""
    weights = np.clip(np.asarray(weights, dtype=float), 0.0, None)
    if not (weights > 0).any():
        return weights
    kept = np.where(weights >= min_weight, weights, 0.0)
    if not (kept > 0).any():
        largest = int(np.argmax(weights))
        kept[largest] = weights[largest]
    return renormalize_with_cap(kept, max_weight)
