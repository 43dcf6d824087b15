"""
Assessment Normalizer
=====================
Converte le risposte del questionario in RiskProfileInputs (punteggi 0-100).

Unknown answers fall back to the neutral score 50 and are reported both as
a WARNING log record and in RiskProfileInputs.warnings.
"""

from typing import Any, Dict, List, Mapping, Optional

from portfolio_construction.models.portfolio import (
    IndustryExclusion,
    Region,
    RiskProfileInputs,
    parse_industry,
    parse_region,
)
from portfolio_construction.utils.logger import get_logger

logger = get_logger(__name__)

NEUTRAL_SCORE = 50.0


# =========================
# LOOKUP TABLES
# =========================

TOLERANCE_SCORES = {
    'very-conservative': 10,
    'conservative': 30,
    'moderate': 50,
    'aggressive': 70,
    'very-aggressive': 90,
}

HORIZON_SCORES = {
    'less-than-1': 10,
    '1-3': 25,
    '3-5': 45,
    '5-10': 65,
    '10-20': 85,
    'more-than-20': 95,
}

EXPERIENCE_SCORES = {
    'none': 10,
    'limited': 30,
    'moderate': 50,
    'experienced': 70,
    'expert': 90,
}

# Risk capacity adjustments around the neutral 50
INCOME_STABILITY_BONUS = {
    'very-stable': 15,
    'stable': 10,
    'somewhat-stable': 5,
    'unstable': -10,
    'very-unstable': -20,
}

EMERGENCY_FUND_BONUS = {
    'more-than-6': 15,
    '3-6': 10,
    '1-3': 0,
    'less-than-1': -15,
    'none': -25,
}

DEBT_LEVEL_BONUS = {
    'none': 15,
    'low': 5,
    'moderate': -5,
    'high': -15,
    'very-high': -25,
}

INCOME_RANGE_BONUS = {
    'less-20k': -10,
    '20-40k': -5,
    '40-60k': 0,
    '60-100k': 5,
    '100-150k': 10,
    'more-150k': 15,
}

REGION_SLUGS = {
    'netherlands': Region.NL,
    'europe-ex-nl': Region.EU_EX_NL,
    'united-states': Region.US,
    'developed-ex-us-europe': Region.DEV_EX_US_EU,
    'emerging-markets': Region.EM,
}

EXCLUSION_SLUGS = {
    'tobacco': IndustryExclusion.TOBACCO,
    'fossil-fuels': IndustryExclusion.FOSSIL_FUELS,
    'defense-industry': IndustryExclusion.WEAPONS,
    'weapons': IndustryExclusion.WEAPONS,
    'gambling': IndustryExclusion.GAMBLING,
    'alcohol': IndustryExclusion.ALCOHOL,
    'nuclear': IndustryExclusion.NUCLEAR,
}

# Screening preferences, not industry categories
NON_INDUSTRY_ANSWERS = {'NO_ESG_SCREEN', 'no-esg-screen', 'non-esg-funds'}


def _lookup(table: Mapping[str, float], answer: Any, label: str, warnings: List[str]) -> float:
    if answer in table:
        return float(table[answer])
    msg = f"Unmapped {label} answer {answer!r}, using neutral {NEUTRAL_SCORE:.0f}"
    logger.warning(msg)
    warnings.append(msg)
    return NEUTRAL_SCORE


def _bonus(table: Mapping[str, int], answer: Any, label: str, warnings: List[str]) -> int:
    if answer is None:
        return 0
    if answer in table:
        return table[answer]
    msg = f"Unmapped {label} answer {answer!r}, no capacity adjustment"
    logger.warning(msg)
    warnings.append(msg)
    return 0


def compute_risk_capacity(answers: Mapping[str, Any], warnings: Optional[List[str]] = None) -> float:
    """
    Risk capacity from the financial situation.

    Higher income, lower debt and a better emergency fund mean more capacity.
    """
    warnings = warnings if warnings is not None else []
    capacity = NEUTRAL_SCORE
    capacity += _bonus(INCOME_STABILITY_BONUS, answers.get('incomeStability'), 'income stability', warnings)
    capacity += _bonus(EMERGENCY_FUND_BONUS, answers.get('emergencyFund'), 'emergency fund', warnings)
    capacity += _bonus(DEBT_LEVEL_BONUS, answers.get('debtLevel'), 'debt level', warnings)
    capacity += _bonus(INCOME_RANGE_BONUS, answers.get('incomeRange'), 'income range', warnings)
    return max(0.0, min(100.0, capacity))


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _parse_regions(values: Any, warnings: List[str]) -> List[Region]:
    regions: List[Region] = []
    for value in _as_list(values):
        region = REGION_SLUGS.get(value)
        if region is None:
            try:
                region = parse_region(value)
            except ValueError:
                msg = f"Unmapped region answer {value!r} ignored"
                logger.warning(msg)
                warnings.append(msg)
                continue
        if region not in regions:
            regions.append(region)
    return regions


def _parse_exclusions(values: Any, warnings: List[str]) -> List[IndustryExclusion]:
    exclusions: List[IndustryExclusion] = []
    for value in _as_list(values):
        if value in NON_INDUSTRY_ANSWERS:
            continue
        industry = EXCLUSION_SLUGS.get(value)
        if industry is None:
            try:
                industry = parse_industry(value)
            except ValueError:
                msg = f"Unmapped exclusion answer {value!r} ignored"
                logger.warning(msg)
                warnings.append(msg)
                continue
        if industry not in exclusions:
            exclusions.append(industry)
    return exclusions


def assessment_to_risk_profile(answers: Mapping[str, Any]) -> RiskProfileInputs:
    """
    Convert questionnaire answers to a risk profile.

    Expected keys (all optional): riskTolerance, timeHorizon,
    investmentExperience, incomeStability, emergencyFund, debtLevel,
    incomeRange, geographicFocus, esgExclusions.
    """
    warnings: List[str] = []

    tolerance = _lookup(TOLERANCE_SCORES, answers.get('riskTolerance'), 'risk tolerance', warnings)
    horizon = _lookup(HORIZON_SCORES, answers.get('timeHorizon'), 'time horizon', warnings)
    experience = _lookup(
        EXPERIENCE_SCORES, answers.get('investmentExperience'), 'investment experience', warnings
    )
    capacity = compute_risk_capacity(answers, warnings)

    return RiskProfileInputs(
        risk_tolerance=tolerance,
        risk_capacity=capacity,
        investment_horizon=horizon,
        investor_experience=experience,
        regions_selected=_parse_regions(answers.get('geographicFocus'), warnings),
        industry_exclusions=_parse_exclusions(answers.get('esgExclusions'), warnings),
        warnings=warnings,
    )


def summarize_profile(inputs: RiskProfileInputs) -> Dict[str, Any]:
    """Plain-dict view of a profile (for logs and CLI output)."""
    return {
        'risk_tolerance': inputs.risk_tolerance,
        'risk_capacity': inputs.risk_capacity,
        'investment_horizon': inputs.investment_horizon,
        'investor_experience': inputs.investor_experience,
        'regions_selected': [r.value for r in inputs.regions_selected],
        'industry_exclusions': [i.value for i in inputs.industry_exclusions],
        'warnings': list(inputs.warnings),
    }
