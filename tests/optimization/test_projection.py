import numpy as np
import pytest

from portfolio_construction.analytics.optimization import (
    apply_cardinality_constraint,
    check_feasibility,
    drop_small_positions,
    enforce_exclusions,
    feasibility_violations,
    portfolio_volatility,
    project_onto_feasible_set,
    project_onto_simple_feasible_set,
    project_onto_simplex,
    reduce_volatility,
    renormalize_with_cap,
)
from portfolio_construction.models.portfolio import (
    IndustryExclusion,
    OptimizationParams,
    PortfolioStatistics,
)


COV3 = np.diag([0.04, 0.01, 0.0025])


def make_stats(cov=COV3, exclusion_rows=None):
    n = cov.shape[0]
    region = np.zeros((5, n))
    region[2] = 1.0
    rows = np.zeros((0, n)) if exclusion_rows is None else np.atleast_2d(exclusion_rows)
    return PortfolioStatistics(
        tickers=[f"F{i}" for i in range(n)],
        expected_returns=np.full(n, 0.08),
        covariance_matrix=cov,
        fee_penalties=np.zeros(n),
        liquidity_penalties=np.zeros(n),
        region_matrix=region,
        industry_exclusion_matrix=rows,
        excluded_industries=[IndustryExclusion.TOBACCO] * rows.shape[0],
    )


def make_params(target_volatility=0.1, max_weight=0.6, max_etfs=3):
    return OptimizationParams(
        target_volatility=target_volatility,
        max_etfs=max_etfs,
        risk_aversion=1.0,
        fee_penalty=1.0,
        region_penalty=10.0,
        liquidity_penalty=2.0,
        target_region_mix={"US": 1.0},
        exclusion_threshold=0.005,
        max_weight=max_weight,
    )


def test_simplex_projection_known_value():
    p = project_onto_simplex(np.array([0.5, 0.2, -0.1]))
    assert p == pytest.approx([0.5 + 0.4 / 3, 0.2 + 0.4 / 3, -0.1 + 0.4 / 3])
    assert project_onto_simplex(np.array([2.0, 0.0])) == pytest.approx([1.0, 0.0])


def test_simplex_projection_is_idempotent_and_optimal():
    rng = np.random.default_rng(3)
    for _ in range(20):
        v = rng.normal(0.0, 1.0, 8)
        p = project_onto_simplex(v)
        assert p.sum() == pytest.approx(1.0)
        assert (p >= 0).all()
        assert project_onto_simplex(p) == pytest.approx(p)
        # KKT: v - p is constant on the support and not larger off it
        shift = v - p
        support = p > 0
        assert np.ptp(shift[support]) < 1e-12
        assert (shift[~support] <= shift[support][0] + 1e-12).all()


def test_box_simplex_projection_is_idempotent_on_feasible_points():
    rng = np.random.default_rng(11)
    for _ in range(20):
        p = renormalize_with_cap(rng.dirichlet(np.ones(6)), 0.3)
        assert p.max() <= 0.3 + 1e-12
        once = project_onto_simple_feasible_set(p, 0.3)
        assert once == pytest.approx(p)
        assert project_onto_simple_feasible_set(once, 0.3) == pytest.approx(once)


def test_clip_then_project_may_exceed_cap():
    # clipped mass is redistributed by the simplex step
    p = project_onto_simple_feasible_set(np.array([0.9, 0.1, 0.0]), 0.4)
    assert p.sum() == pytest.approx(1.0)
    assert p[0] > 0.4
    capped = renormalize_with_cap(p, 0.4)
    assert capped.max() <= 0.4 + 1e-12
    assert capped.sum() == pytest.approx(1.0)


def test_renormalize_with_cap_water_filling():
    w = renormalize_with_cap(np.array([0.7, 0.2, 0.1, 0.0]), 0.4)
    assert w == pytest.approx([0.4, 0.4, 0.2, 0.0])
    # support too small for the cap: plain renormalization
    assert renormalize_with_cap(np.array([0.3, 0.1, 0.0]), 0.4) == pytest.approx([0.75, 0.25, 0.0])
    assert renormalize_with_cap(np.zeros(3), 0.4) == pytest.approx([0.0, 0.0, 0.0])


def test_cardinality_keeps_largest_with_stable_ties():
    w = apply_cardinality_constraint(np.array([0.1, 0.3, 0.2, 0.4]), 2)
    assert w == pytest.approx([0.0, 0.3 / 0.7, 0.0, 0.4 / 0.7])
    ties = apply_cardinality_constraint(np.full(4, 0.25), 2)
    assert ties == pytest.approx([0.5, 0.5, 0.0, 0.0])
    assert apply_cardinality_constraint(np.array([0.6, 0.4]), 5) == pytest.approx([0.6, 0.4])


def test_drop_small_positions():
    w = drop_small_positions(np.array([0.5, 0.497, 0.003]), 0.005, 1.0)
    assert w[2] == 0.0
    assert w.sum() == pytest.approx(1.0)
    # everything below threshold: the largest survives
    assert drop_small_positions(np.array([0.004, 0.001]), 0.005, 0.4) == pytest.approx([1.0, 0.0])


def test_reduce_volatility_scales_risky_positions():
    w = np.array([0.5, 0.0, 0.5])
    cov = np.diag([0.04, 0.01, 0.0025])
    assert portfolio_volatility(w, cov) > 0.08
    reduced = reduce_volatility(w, cov, 0.08)
    assert portfolio_volatility(reduced, cov) <= 0.08
    assert reduced.sum() == pytest.approx(1.0)
    assert reduced[0] < 0.5
    assert reduced[1] == 0.0


def test_reduce_volatility_returns_best_effort_when_unreachable():
    w = np.array([0.5, 0.0, 0.5])
    cov = np.diag([0.04, 0.01, 0.0025])
    reduced = reduce_volatility(w, cov, 0.01, decay=0.95, floor=0.1)
    assert portfolio_volatility(reduced, cov) < portfolio_volatility(w, cov)
    assert reduced[0] == pytest.approx(0.05 / 0.55)


def test_reduce_volatility_noop_within_target():
    w = np.array([0.2, 0.3, 0.5])
    assert reduce_volatility(w, COV3, 0.5) is w


def test_enforce_exclusions_single_holder_hits_threshold():
    row = np.array([[0.02, 0.0, 0.0]])
    w = enforce_exclusions(np.array([0.5, 0.3, 0.2]), row, 0.005)
    assert w[0] == pytest.approx(0.25)
    assert row[0] @ w == pytest.approx(0.005)
    assert w[1:] == pytest.approx([0.3, 0.2])


def test_enforce_exclusions_splits_overage():
    row = np.array([[0.02, 0.0, 0.01]])
    before = np.array([0.5, 0.3, 0.2])
    w = enforce_exclusions(before, row, 0.005)
    assert (w >= 0).all()
    assert row[0] @ w < row[0] @ before
    assert w[0] == pytest.approx(0.5 - 0.0035 / 0.02)
    assert w[1] == 0.3


def test_feasibility_violations_lists_problems():
    stats = make_stats(exclusion_rows=[0.0, 0.06, 0.0])
    params = make_params(target_volatility=0.05, max_weight=0.5)
    problems = feasibility_violations(np.array([0.7, 0.3, 0.1]), stats, params)
    joined = " ".join(problems)
    assert "sum" in joined
    assert "cap" in joined
    assert "volatility" in joined
    assert "TOBACCO" in joined
    assert not check_feasibility(np.array([0.7, 0.3, 0.1]), stats, params)


def test_feasible_set_projection_reduces_volatility():
    stats = make_stats()
    params = make_params(target_volatility=0.1, max_weight=0.6)
    w = project_onto_feasible_set(np.array([0.8, 0.1, 0.1]), stats, params)
    assert w.sum() == pytest.approx(1.0)
    assert w.max() <= 0.6 + 1e-6
    assert portfolio_volatility(w, stats.covariance_matrix) <= 0.1 * 1.01
    assert check_feasibility(w, stats, params)


def test_feasible_set_projection_enforces_exclusions_and_cap():
    stats = make_stats(exclusion_rows=[0.0, 0.06, 0.0])
    params = make_params(target_volatility=0.5, max_weight=0.6)
    w = project_onto_feasible_set(np.array([0.8, 0.1, 0.1]), stats, params)
    assert w.sum() == pytest.approx(1.0, abs=1e-4)
    assert w.max() <= 0.6 + 1e-6
    assert stats.industry_exclusion_matrix[0] @ w <= 0.005 * 1.01
    assert check_feasibility(w, stats, params)


def test_feasible_set_projection_keeps_feasible_point():
    stats = make_stats()
    params = make_params(target_volatility=0.2, max_weight=0.6)
    w0 = np.array([0.3, 0.3, 0.4])
    assert project_onto_feasible_set(w0, stats, params) == pytest.approx(w0)
