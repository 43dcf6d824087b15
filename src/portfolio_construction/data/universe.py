"""
Fund Universe
=============
Pre-filter (hard constraints), catalog loading and an injectable TTL cache.

The pre-filter runs BEFORE statistics estimation: the optimizer never sees a
fund rejected here.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from portfolio_construction.config.loader import read_structured_file, resolve_config
from portfolio_construction.models.portfolio import (
    FundRecord,
    IndustryExclusion,
    OptimizationParams,
    parse_industry,
)
from portfolio_construction.utils.exceptions import NoEligibleFundsError, NoEligibleFundsReason
from portfolio_construction.utils.logger import get_logger

logger = get_logger(__name__)


# ================================================================================
# PRE-FILTER
# ================================================================================

@dataclass
class ScreeningReport:
    """Outcome of the pre-filter: kept funds and the reason each rejected fund failed."""
    eligible: List[FundRecord]
    rejected: Dict[str, NoEligibleFundsReason] = field(default_factory=dict)

    def rejection_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for reason in self.rejected.values():
            counts[reason.value] = counts.get(reason.value, 0) + 1
        return counts

    def dominant_reason(self) -> NoEligibleFundsReason:
        """Single reason shared by every rejection, else MULTIPLE_CONSTRAINTS."""
        reasons = set(self.rejected.values())
        if not reasons:
            return NoEligibleFundsReason.EMPTY_UNIVERSE
        if len(reasons) == 1:
            return reasons.pop()
        return NoEligibleFundsReason.MULTIPLE_CONSTRAINTS


def _rejection_reason(
    fund: FundRecord,
    params: OptimizationParams,
    exclusions: Sequence[IndustryExclusion],
    thresholds: Dict[str, Any],
) -> Optional[NoEligibleFundsReason]:
    # Regions with a non-zero target; the default mix covers all five
    selected = params.target_regions
    if selected and not any(fund.region_exposure[r] > thresholds['min_region_exposure'] for r in selected):
        return NoEligibleFundsReason.NO_REGION_MATCH

    if not fund.esg_compliant and any(
        fund.exposure_to(ind) > thresholds['max_excluded_exposure'] for ind in exclusions
    ):
        return NoEligibleFundsReason.INDUSTRY_EXCLUSIONS

    if fund.aum < thresholds['min_aum'] or fund.avg_spread > thresholds['max_avg_spread']:
        return NoEligibleFundsReason.INSUFFICIENT_LIQUIDITY

    if fund.history_length < thresholds['min_history_months']:
        return NoEligibleFundsReason.INSUFFICIENT_HISTORY

    return None


def screen_universe(
    funds: Sequence[FundRecord],
    params: OptimizationParams,
    industry_exclusions: Sequence[Any] = (),
    config: Optional[Dict[str, Any]] = None,
) -> ScreeningReport:
    """Apply the hard filters and record why each rejected fund failed."""
    thresholds = resolve_config(config)['filters']
    exclusions = [parse_industry(i) for i in industry_exclusions]

    report = ScreeningReport(eligible=[])
    for fund in funds:
        reason = _rejection_reason(fund, params, exclusions, thresholds)
        if reason is None:
            report.eligible.append(fund)
        else:
            report.rejected[fund.ticker] = reason
            logger.debug(f"Filtered out {fund.ticker}: {reason.value}")

    logger.info(f"Pre-filter kept {len(report.eligible)}/{len(funds)} funds")
    return report


def filter_etfs_by_constraints(
    funds: Sequence[FundRecord],
    params: OptimizationParams,
    industry_exclusions: Sequence[Any] = (),
    config: Optional[Dict[str, Any]] = None,
) -> List[FundRecord]:
    """Funds passing every hard constraint, in input order."""
    return screen_universe(funds, params, industry_exclusions, config).eligible


def select_eligible_funds(
    funds: Sequence[FundRecord],
    params: OptimizationParams,
    industry_exclusions: Sequence[Any] = (),
    config: Optional[Dict[str, Any]] = None,
) -> List[FundRecord]:
    """
    Pre-filter and fail fast when nothing usable is left.

    Raises:
        NoEligibleFundsError: empty result, or every remaining fund exceeds
            the exclusion threshold for some requested category (no
            combination of them can comply).
    """
    if not funds:
        raise NoEligibleFundsError(NoEligibleFundsReason.EMPTY_UNIVERSE)

    report = screen_universe(funds, params, industry_exclusions, config)
    if not report.eligible:
        raise NoEligibleFundsError(report.dominant_reason(), rejected=report.rejection_counts())

    for ind in (parse_industry(i) for i in industry_exclusions):
        lowest = min(f.exposure_to(ind) for f in report.eligible)
        if lowest > params.exclusion_threshold:
            raise NoEligibleFundsError(
                NoEligibleFundsReason.EXCLUSION_INFEASIBLE,
                details={
                    "industry": ind.value,
                    "lowest_exposure": f"{lowest:.2%}",
                    "threshold": f"{params.exclusion_threshold:.2%}",
                },
            )

    return report.eligible


# ================================================================================
# CATALOG LOADING
# ================================================================================

class FundUniverseCache:
    """
    TTL cache for loaded universes.

    Injected by the caller; `clock` is injectable for tests.
    """

    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, List[FundRecord]]] = {}

    def get(self, key: Hashable) -> Optional[List[FundRecord]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, funds = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return list(funds)

    def put(self, key: Hashable, funds: Sequence[FundRecord]) -> None:
        self._entries[key] = (self._clock(), list(funds))

    def get_or_load(self, key: Hashable, loader: Callable[[], Sequence[FundRecord]]) -> List[FundRecord]:
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Universe cache hit: {key}")
            return cached
        funds = list(loader())
        self.put(key, funds)
        return list(funds)

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


def parse_fund_universe(data: Any) -> List[FundRecord]:
    """Fund records from a parsed catalog (list, or mapping with a 'funds' key)."""
    if isinstance(data, dict):
        data = data.get("funds")
    if not isinstance(data, list):
        raise ValueError("Fund catalog must be a list of funds or a mapping with a 'funds' list.")

    funds = [FundRecord.from_dict(entry) for entry in data]
    seen = set()
    for fund in funds:
        if fund.ticker in seen:
            raise ValueError(f"Duplicate ticker in fund catalog: {fund.ticker}")
        seen.add(fund.ticker)
    return funds


def load_fund_universe(path: str, cache: Optional[FundUniverseCache] = None) -> List[FundRecord]:
    """Load a JSON/YAML fund catalog, optionally through a TTL cache."""
    def _load() -> List[FundRecord]:
        funds = parse_fund_universe(read_structured_file(path))
        logger.info(f"Loaded {len(funds)} funds from {path}")
        return funds

    if cache is None:
        return _load()
    return cache.get_or_load(str(Path(path).resolve()), _load)
