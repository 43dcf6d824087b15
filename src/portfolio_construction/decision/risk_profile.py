"""
Risk Profile Mapper
===================
Maps a normalized investor profile (0-100 scores) to optimizer parameters.

Formulas:
- risk_score = 0.40*tolerance + 0.30*capacity + 0.20*horizon + 0.10*experience
- σ* = 5% + 15% * score/100
- K = round(3 + 7 * experience/100), clamped to [3, 12]
- λ = 2.0 * (1 - score/100) + 0.5

All functions are pure and total.
"""

import math
from typing import Any, Dict, Iterable, Optional

from portfolio_construction.config.loader import resolve_config
from portfolio_construction.models.portfolio import (
    OptimizationParams,
    Region,
    REGIONS,
    RiskProfileInputs,
    RiskScore,
    _coerce_enum_list,
    parse_region,
)
from portfolio_construction.utils.logger import get_logger

logger = get_logger(__name__)

SCORE_WEIGHTS = {
    'tolerance': 0.40,
    'capacity': 0.30,
    'horizon': 0.20,
    'experience': 0.10,
}


def _round_half_up(x: float) -> int:
    # round() is banker's rounding: 6.5 -> 6
    return int(math.floor(x + 0.5))


def compute_risk_score(inputs: RiskProfileInputs) -> RiskScore:
    """Composite risk score, clamped to [0, 100]."""
    overall = (
        SCORE_WEIGHTS['tolerance'] * inputs.risk_tolerance
        + SCORE_WEIGHTS['capacity'] * inputs.risk_capacity
        + SCORE_WEIGHTS['horizon'] * inputs.investment_horizon
        + SCORE_WEIGHTS['experience'] * inputs.investor_experience
    )
    return RiskScore(
        overall=max(0.0, min(100.0, overall)),
        tolerance=inputs.risk_tolerance,
        capacity=inputs.risk_capacity,
        horizon=inputs.investment_horizon,
        experience=inputs.investor_experience,
    )


def compute_target_volatility(risk_score: float) -> float:
    """Annualized volatility cap, ~5% (conservative) to ~20% (aggressive)."""
    return 0.05 + 0.15 * (risk_score / 100.0)


def compute_max_etfs(experience_score: float, min_etfs: int = 3, max_etfs: int = 12) -> int:
    """Maximum number of funds: simpler portfolios for beginners."""
    k = _round_half_up(3 + 7 * (experience_score / 100.0))
    return max(min_etfs, min(max_etfs, k))


def compute_risk_aversion(risk_score: float) -> float:
    """λ, from ~2.5 (score 0) down to ~0.5 (score 100)."""
    return 2.0 * (1.0 - risk_score / 100.0) + 0.5


def compute_target_region_mix(
    selected_regions: Iterable[Any],
    default_mix: Optional[Dict[str, float]] = None,
) -> Dict[Region, float]:
    """
    Target region mix.

    No selection → global cap-weighted approximation; otherwise equal
    weight among the selected regions and 0 elsewhere. Unknown codes are
    skipped with a warning.
    """
    selected = _coerce_enum_list(selected_regions, parse_region, "region", [])

    if not selected:
        if default_mix is None:
            default_mix = resolve_config(None)['parameters']['default_region_mix']
        return {r: float(default_mix.get(r.value, 0.0)) for r in REGIONS}

    equal_weight = 1.0 / len(selected)
    return {r: (equal_weight if r in selected else 0.0) for r in REGIONS}


def map_risk_profile_to_params(
    inputs: RiskProfileInputs,
    config: Optional[Dict[str, Any]] = None,
) -> OptimizationParams:
    """Map a risk profile to the full optimizer parameter set (before edge cases)."""
    defaults = resolve_config(config)['parameters']
    score = compute_risk_score(inputs)

    params = OptimizationParams(
        target_volatility=compute_target_volatility(score.overall),
        max_etfs=compute_max_etfs(
            inputs.investor_experience, defaults['min_etfs'], defaults['max_etfs_cap']
        ),
        risk_aversion=compute_risk_aversion(score.overall),
        fee_penalty=defaults['fee_penalty'],
        region_penalty=defaults['region_penalty'],
        liquidity_penalty=defaults['liquidity_penalty'],
        target_region_mix=compute_target_region_mix(
            inputs.regions_selected, defaults['default_region_mix']
        ),
        exclusion_threshold=defaults['exclusion_threshold'],
        min_weight=defaults['min_weight'],
        max_weight=defaults['max_weight'],
    )
    logger.debug(
        f"Risk score {score.overall:.1f} → σ*={params.target_volatility:.3f}, "
        f"λ={params.risk_aversion:.2f}, K={params.max_etfs}"
    )
    return params


def adjust_params_for_edge_cases(
    params: OptimizationParams,
    inputs: RiskProfileInputs,
    config: Optional[Dict[str, Any]] = None,
) -> OptimizationParams:
    """
    Bounded overrides for special profiles. Returns a new params object.

    - short horizon + low risk → volatility cap and risk aversion floor
    - expert investors → up to 2 more funds, 2% minimum position
    - many regions → relaxed region penalty; single region → strict
    """
    cfg = resolve_config(config)
    rules = cfg['edge_cases']
    changes: Dict[str, Any] = {}

    score = compute_risk_score(inputs)
    if score.overall < rules['low_risk_score'] and inputs.investment_horizon < rules['low_horizon']:
        changes['target_volatility'] = min(params.target_volatility, rules['defensive_volatility_cap'])
        changes['risk_aversion'] = max(params.risk_aversion, rules['defensive_min_risk_aversion'])

    if inputs.investor_experience > rules['expert_experience']:
        changes['max_etfs'] = min(
            params.max_etfs + rules['expert_extra_etfs'], cfg['parameters']['max_etfs_cap']
        )
        changes['min_weight'] = rules['expert_min_weight']

    n_regions = len(inputs.regions_selected)
    if n_regions >= rules['many_regions']:
        changes['region_penalty'] = rules['many_regions_penalty']
    elif n_regions == 1:
        changes['region_penalty'] = rules['single_region_penalty']

    if changes:
        logger.debug(f"Edge-case adjustments: {changes}")
    return params.with_overrides(**changes)


def build_optimization_params(
    inputs: RiskProfileInputs,
    config: Optional[Dict[str, Any]] = None,
) -> OptimizationParams:
    """map_risk_profile_to_params followed by adjust_params_for_edge_cases."""
    params = map_risk_profile_to_params(inputs, config)
    return adjust_params_for_edge_cases(params, inputs, config)
