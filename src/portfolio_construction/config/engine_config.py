"""
Engine Configuration
====================
Costanti centralizzate del motore di costruzione portafoglio.
Modifica questo file (o passa un file JSON/YAML via config.loader)
senza toccare il codice degli stage.
"""

import copy
from typing import Any, Dict


# =========================
# STATISTICS ESTIMATION
# =========================
# Shrinkage intensities and annualization for the estimator.

ESTIMATION_CONFIG = {
    'periods_per_year': 12,                  # Monthly return series
    'covariance_shrinkage': 0.4,             # θ toward constant-correlation target
    'return_shrinkage': 0.5,                 # θ_ret toward cross-sectional grand mean
    'default_avg_correlation': 0.3,          # Used when fewer than two funds
    'return_model': 'shrunk_mean',           # 'shrunk_mean' | 'equilibrium'
    'truncate_returns_for_mean': False,      # Means on full history, covariance on common window
}


# =========================
# PRE-FILTER THRESHOLDS
# =========================
# Hard filter applied before estimation; rejected funds never reach the optimizer.

FILTER_THRESHOLDS = {
    'min_region_exposure': 0.10,             # Fund must hold >=10% in some selected region
    'max_excluded_exposure': 0.05,           # Non-ESG funds above 5% in an excluded category
    'min_aum': 50.0,                         # Millions
    'max_avg_spread': 0.005,                 # 0.5%
    'min_history_months': 36,
}


# =========================
# OPTIMIZER
# =========================

OPTIMIZER_CONFIG = {
    'solver': 'projected_gradient',          # 'projected_gradient' | 'slsqp'
    'max_iterations': 1000,
    'tolerance': 1e-6,                       # Objective change for early stop
    'initial_step': 1.0,
    'backtrack_factor': 0.5,
    'max_backtracks': 20,
    'max_projection_iterations': 100,
    'volatility_scale_decay': 0.95,
    'volatility_scale_floor': 0.1,
    'min_display_weight': 0.005,             # Positions below 0.5% are dropped

    # Feasibility tolerances
    'nonnegativity_tolerance': 1e-6,
    'sum_tolerance': 1e-4,
    'upper_bound_tolerance': 1e-6,
    'volatility_slack': 1.01,
    'exclusion_slack': 1.01,
}


# =========================
# PARAMETER DEFAULTS
# =========================
# Penalties and bounds assigned by the risk profile mapper.

PARAMETER_DEFAULTS = {
    'fee_penalty': 1.0,                      # α - fees matter linearly
    'region_penalty': 10.0,                  # β - moderate penalty for region deviation
    'liquidity_penalty': 2.0,                # γ - penalize illiquid funds
    'exclusion_threshold': 0.005,            # ε - max 0.5% exposure to excluded industries
    'min_weight': 0.0,
    'max_weight': 0.4,                       # Max 40% in a single fund
    'min_etfs': 3,
    'max_etfs_cap': 12,
    'default_region_mix': {
        'NL': 0.02,
        'EU_EX_NL': 0.13,
        'US': 0.60,
        'DEV_EX_US_EU': 0.15,
        'EM': 0.10,
    },
}


# =========================
# EDGE CASE RULES
# =========================

EDGE_CASE_RULES = {
    'low_risk_score': 30,                    # score < 30 and horizon < 30 → defensive
    'low_horizon': 30,
    'defensive_volatility_cap': 0.08,
    'defensive_min_risk_aversion': 2.0,
    'expert_experience': 80,                 # experience > 80 → more funds
    'expert_extra_etfs': 2,
    'expert_min_weight': 0.02,
    'many_regions': 4,
    'many_regions_penalty': 5.0,             # Relaxed
    'single_region_penalty': 20.0,           # Strict adherence
}


def get_config() -> Dict[str, Any]:
    """
    Get current engine configuration as a nested dictionary.

    Returns a deep copy: callers may mutate it freely.
    """
    return copy.deepcopy({
        'estimation': ESTIMATION_CONFIG,
        'filters': FILTER_THRESHOLDS,
        'optimizer': OPTIMIZER_CONFIG,
        'parameters': PARAMETER_DEFAULTS,
        'edge_cases': EDGE_CASE_RULES,
    })
