"""
Shrinkage Estimators
====================
Covarianza e rendimenti attesi con shrinkage verso target stabili.

La covarianza campionaria è rumorosa con poche osservazioni mensili.
Lo shrinkage verso un target riduce l'estimation error.

Metodo: shrunk = θ * Target + (1-θ) * Sample
"""

from typing import Sequence

import numpy as np
import pandas as pd

from portfolio_construction.models.portfolio import FundRecord
from portfolio_construction.utils.exceptions import InvalidInputError


# =========================
# RETURN HISTORY
# =========================

def align_return_history(funds: Sequence[FundRecord]) -> pd.DataFrame:
    """
    Return series truncated to the shortest common length.

    Keeps the most recent observations; one column per fund, in fund order.
    """
    if not funds:
        raise InvalidInputError("funds", "need at least one fund")
    min_len = min(f.history_length for f in funds)
    if min_len < 2:
        raise InvalidInputError("monthly_returns", f"need at least 2 observations, shortest has {min_len}")

    data = np.column_stack([np.asarray(f.monthly_returns[-min_len:], dtype=float) for f in funds])
    return pd.DataFrame(data, columns=[f.ticker for f in funds])


def sample_means(funds: Sequence[FundRecord], truncate: bool = False) -> np.ndarray:
    """Monthly sample mean per fund (full history unless `truncate`)."""
    if truncate:
        return align_return_history(funds).mean().values
    return np.array([np.mean(f.monthly_returns) for f in funds], dtype=float)


# =========================
# COVARIANCE
# =========================

def sample_covariance(returns: pd.DataFrame) -> np.ndarray:
    """Unbiased (n-1) sample covariance."""
    return returns.cov(ddof=1).values


def average_correlation(covariance: np.ndarray, default: float = 0.3) -> float:
    """
    Mean off-diagonal correlation implied by a covariance matrix.

    Pairs involving a zero-variance series count as uncorrelated.
    """
    n = covariance.shape[0]
    if n < 2:
        return default
    std = np.sqrt(np.clip(np.diag(covariance), 0.0, None))
    denom = np.outer(std, std)
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = np.where(denom > 0, covariance / denom, 0.0)
    off_diagonal = ~np.eye(n, dtype=bool)
    return float(corr[off_diagonal].mean())


def constant_correlation_target(covariance: np.ndarray, avg_corr: float) -> np.ndarray:
    """Same diagonal as the sample, off-diagonals avg_corr * sqrt(var_i * var_j)."""
    variances = np.clip(np.diag(covariance), 0.0, None)
    std = np.sqrt(variances)
    target = avg_corr * np.outer(std, std)
    np.fill_diagonal(target, variances)
    return target


def shrink_covariance(
    covariance: np.ndarray,
    intensity: float = 0.4,
    default_avg_correlation: float = 0.3,
) -> np.ndarray:
    """
    Ledoit-Wolf style shrinkage toward the constant-correlation target.

    Intensity is a fixed constant, not estimated from the sample.
    """
    if not 0.0 <= intensity <= 1.0:
        raise InvalidInputError("covariance_shrinkage", f"must be in [0, 1], got {intensity}")
    avg_corr = average_correlation(covariance, default_avg_correlation)
    target = constant_correlation_target(covariance, avg_corr)
    shrunk = intensity * target + (1.0 - intensity) * covariance
    # Symmetric by construction; remove float asymmetry
    return (shrunk + shrunk.T) / 2.0


# =========================
# EXPECTED RETURNS
# =========================

def shrink_expected_returns(means: np.ndarray, intensity: float = 0.5) -> np.ndarray:
    """Shrink each mean toward the cross-sectional grand mean."""
    if not 0.0 <= intensity <= 1.0:
        raise InvalidInputError("return_shrinkage", f"must be in [0, 1], got {intensity}")
    means = np.asarray(means, dtype=float)
    grand_mean = means.mean()
    return intensity * grand_mean + (1.0 - intensity) * means


def equilibrium_weights(region_matrix: np.ndarray, region_targets: np.ndarray) -> np.ndarray:
    """
    Pesi di equilibrio: score di allineamento regionale normalizzato.

    Equal weights when no fund overlaps the target mix.
    """
    scores = region_targets @ region_matrix
    total = scores.sum()
    n = region_matrix.shape[1]
    if total > 0:
        return scores / total
    return np.full(n, 1.0 / n)


def implied_equilibrium_returns(
    covariance: np.ndarray,
    risk_aversion: float,
    weights: np.ndarray,
) -> np.ndarray:
    """Reverse optimization: Π = λ Σ w_eq."""
    return risk_aversion * covariance @ weights
