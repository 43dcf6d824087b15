import logging

import pytest

from portfolio_construction.decision.assessment import (
    assessment_to_risk_profile,
    compute_risk_capacity,
    summarize_profile,
)
from portfolio_construction.models.portfolio import IndustryExclusion, Region


ANSWERS = {
    'riskTolerance': 'moderate',
    'timeHorizon': '10-20',
    'investmentExperience': 'experienced',
    'incomeStability': 'stable',
    'emergencyFund': '3-6',
    'debtLevel': 'low',
    'incomeRange': '60-100k',
    'geographicFocus': ['united-states', 'emerging-markets'],
    'esgExclusions': ['tobacco', 'defense-industry', 'NO_ESG_SCREEN'],
}


def test_full_questionnaire_maps_to_profile():
    inputs = assessment_to_risk_profile(ANSWERS)
    assert inputs.risk_tolerance == 50
    assert inputs.investment_horizon == 85
    assert inputs.investor_experience == 70
    assert inputs.risk_capacity == 80
    assert inputs.regions_selected == [Region.US, Region.EM]
    assert inputs.industry_exclusions == [IndustryExclusion.TOBACCO, IndustryExclusion.WEAPONS]
    assert inputs.warnings == []


def test_unknown_answer_falls_back_to_neutral(caplog):
    answers = dict(ANSWERS, riskTolerance='yolo')
    with caplog.at_level(logging.WARNING):
        inputs = assessment_to_risk_profile(answers)
    assert inputs.risk_tolerance == 50
    assert any('yolo' in w for w in inputs.warnings)
    assert 'yolo' in caplog.text


def test_missing_answers_are_neutral():
    inputs = assessment_to_risk_profile({})
    assert inputs.risk_tolerance == 50
    assert inputs.risk_capacity == 50
    assert inputs.regions_selected == []
    assert inputs.industry_exclusions == []


def test_risk_capacity_is_clamped():
    worst = {'incomeStability': 'very-unstable', 'emergencyFund': 'none',
             'debtLevel': 'very-high', 'incomeRange': 'less-20k'}
    best = {'incomeStability': 'very-stable', 'emergencyFund': 'more-than-6',
            'debtLevel': 'none', 'incomeRange': 'more-150k'}
    assert compute_risk_capacity(worst) == 0.0
    assert compute_risk_capacity(best) == 100.0


def test_region_codes_and_single_values_accepted():
    inputs = assessment_to_risk_profile({'geographicFocus': 'NL', 'esgExclusions': 'fossil-fuels'})
    assert inputs.regions_selected == [Region.NL]
    assert inputs.industry_exclusions == [IndustryExclusion.FOSSIL_FUELS]


def test_unmapped_region_is_reported():
    inputs = assessment_to_risk_profile({'geographicFocus': ['moon', 'united-states']})
    assert inputs.regions_selected == [Region.US]
    assert len([w for w in inputs.warnings if 'moon' in w]) == 1


def test_summarize_profile_is_plain():
    summary = summarize_profile(assessment_to_risk_profile(ANSWERS))
    assert summary['regions_selected'] == ['US', 'EM']
    assert summary['industry_exclusions'] == ['TOBACCO', 'WEAPONS']
    assert summary['risk_capacity'] == pytest.approx(80)
