"""
Models Module
=============
Dataclasses per type safety e validazione strutturale del motore di costruzione.

Structures flowing between the stages:
- FundRecord: immutable catalog entry (one candidate fund)
- RiskProfileInputs / RiskScore: normalized investor profile
- OptimizationParams: numeric parameters derived from the profile
- PortfolioStatistics: estimator output consumed by the optimizer
- OptimizationResult: raw solver output
- OptimizedPortfolio: final packaged allocation
"""

from dataclasses import dataclass, field, asdict, replace
from typing import List, Dict, Optional, Tuple, Any, Iterable, Mapping, Sequence
from enum import Enum
import json

import numpy as np
import pandas as pd

from portfolio_construction.utils.exceptions import InvalidInputError
from portfolio_construction.utils.logger import get_logger

logger = get_logger(__name__)


# ================================================================================
# ENUMS
# ================================================================================

class Region(str, Enum):
    """
    Regioni geografiche (tassonomia chiusa).

    The declaration order is the row order of every region matrix.
    """
    NL = "NL"
    EU_EX_NL = "EU_EX_NL"
    US = "US"
    DEV_EX_US_EU = "DEV_EX_US_EU"   # Developed ex-US/EU (Japan, UK, ...)
    EM = "EM"                       # Emerging markets


class IndustryExclusion(str, Enum):
    """Industry categories an investor can exclude."""
    TOBACCO = "TOBACCO"
    FOSSIL_FUELS = "FOSSIL_FUELS"
    WEAPONS = "WEAPONS"
    GAMBLING = "GAMBLING"
    ALCOHOL = "ALCOHOL"
    NUCLEAR = "NUCLEAR"


class AssetClass(str, Enum):
    """Asset class of a fund."""
    EQUITY = "equity"
    BOND = "bond"
    COMMODITY = "commodity"
    MIXED = "mixed"


REGIONS: Tuple[Region, ...] = tuple(Region)


def parse_region(value: Any) -> Region:
    """Coerce a region code (case-insensitive) to Region; raise ValueError if unknown."""
    if isinstance(value, Region):
        return value
    try:
        return Region(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Unknown region: {value!r}") from None


def parse_industry(value: Any) -> IndustryExclusion:
    """Coerce an industry code (case-insensitive, '-' or ' ' accepted) to IndustryExclusion."""
    if isinstance(value, IndustryExclusion):
        return value
    code = str(value).strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return IndustryExclusion(code)
    except ValueError:
        raise ValueError(f"Unknown industry exclusion: {value!r}") from None


def _coerce_enum_list(values: Iterable[Any], parser, label: str, warnings: List[str]) -> list:
    # dedup keeps first occurrence; unknown codes are reported, not raised
    result = []
    for value in values or []:
        try:
            item = parser(value)
        except ValueError:
            msg = f"Unmapped {label} {value!r} ignored"
            logger.warning(msg)
            warnings.append(msg)
            continue
        if item not in result:
            result.append(item)
    return result


# ================================================================================
# FUND CATALOG
# ================================================================================

_FUND_KEY_ALIASES = {
    "assetClass": "asset_class",
    "avgSpread": "avg_spread",
    "avgDailyVolume": "avg_daily_volume",
    "regionExposure": "region_exposure",
    "industryExposure": "industry_exposure",
    "esgCompliant": "esg_compliant",
    "monthlyReturns": "monthly_returns",
}


@dataclass(frozen=True)
class FundRecord:
    """
    Fund del catalogo (immutabile).

    Units:
    - ter: annual fraction (0.0003 = 3 bp)
    - avg_spread: fraction (0.0001 = 1 bp)
    - aum: millions
    """
    ticker: str
    name: str
    asset_class: AssetClass
    ter: float
    avg_spread: float
    aum: float
    avg_daily_volume: float
    region_exposure: Dict[Region, float]
    industry_exposure: Dict[IndustryExclusion, float] = field(default_factory=dict)
    esg_compliant: bool = False
    monthly_returns: Tuple[float, ...] = ()
    domicile: Optional[str] = None
    currency: Optional[str] = None
    ucits: Optional[bool] = None
    replication: Optional[str] = None
    hedged: Optional[bool] = None

    def __post_init__(self):
        if not self.ticker:
            raise ValueError("FundRecord requires a ticker")
        if self.ter < 0:
            raise ValueError(f"{self.ticker}: ter must be >= 0, got {self.ter}")
        if self.avg_spread < 0:
            raise ValueError(f"{self.ticker}: avg_spread must be >= 0, got {self.avg_spread}")
        if self.aum < 0:
            raise ValueError(f"{self.ticker}: aum must be >= 0, got {self.aum}")

        # Frozen dataclass: normalizza via object.__setattr__
        object.__setattr__(self, "asset_class", AssetClass(self.asset_class))

        regions = {r: 0.0 for r in REGIONS}
        for key, value in (self.region_exposure or {}).items():
            if value < 0:
                raise ValueError(f"{self.ticker}: negative exposure to {key}")
            regions[parse_region(key)] = float(value)
        object.__setattr__(self, "region_exposure", regions)

        industries = {}
        for key, value in (self.industry_exposure or {}).items():
            if value < 0:
                raise ValueError(f"{self.ticker}: negative exposure to {key}")
            industries[parse_industry(key)] = float(value)
        object.__setattr__(self, "industry_exposure", industries)

        object.__setattr__(self, "monthly_returns", tuple(float(r) for r in self.monthly_returns))

        total = sum(regions.values())
        if abs(total - 1.0) > 0.05:
            logger.debug(f"{self.ticker}: region exposures sum to {total:.3f}")

    @property
    def history_length(self) -> int:
        """Number of monthly observations."""
        return len(self.monthly_returns)

    def exposure_to(self, industry: IndustryExclusion) -> float:
        """Exposure to an industry category (0 if unknown)."""
        return self.industry_exposure.get(industry, 0.0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FundRecord":
        """Build from a catalog entry; accepts camelCase or snake_case keys."""
        kwargs = {_FUND_KEY_ALIASES.get(k, k): v for k, v in data.items()}
        known = set(cls.__dataclass_fields__)
        unknown = set(kwargs) - known
        if unknown:
            raise ValueError(f"Unknown fund fields: {sorted(unknown)}")
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["asset_class"] = self.asset_class.value
        d["region_exposure"] = {r.value: v for r, v in self.region_exposure.items()}
        d["industry_exposure"] = {i.value: v for i, v in self.industry_exposure.items()}
        d["monthly_returns"] = list(self.monthly_returns)
        return d


# ================================================================================
# RISK PROFILE
# ================================================================================

@dataclass
class RiskProfileInputs:
    """
    Profilo di rischio normalizzato (punteggi 0-100).

    Validazione:
    - punteggi fuori [0, 100] vengono clampati con warning
    - regioni/esclusioni sconosciute vengono scartate con warning
    """
    risk_tolerance: float
    risk_capacity: float
    investment_horizon: float
    investor_experience: float
    regions_selected: List[Region] = field(default_factory=list)
    industry_exclusions: List[IndustryExclusion] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self):
        for name in ("risk_tolerance", "risk_capacity", "investment_horizon", "investor_experience"):
            value = float(getattr(self, name))
            if not 0.0 <= value <= 100.0:
                msg = f"{name}={value} outside [0, 100], clamped"
                logger.warning(msg)
                self.warnings.append(msg)
                value = min(100.0, max(0.0, value))
            setattr(self, name, value)

        self.regions_selected = _coerce_enum_list(
            self.regions_selected, parse_region, "region", self.warnings
        )
        self.industry_exclusions = _coerce_enum_list(
            self.industry_exclusions, parse_industry, "industry exclusion", self.warnings
        )


@dataclass
class RiskScore:
    """Composite risk score with its components."""
    overall: float
    tolerance: float
    capacity: float
    horizon: float
    experience: float


# ================================================================================
# OPTIMIZATION PARAMETERS
# ================================================================================

@dataclass
class OptimizationParams:
    """
    Parametri numerici dell'ottimizzatore.

    target_region_mix need not sum to 1; missing regions are filled with 0.
    """
    target_volatility: float
    max_etfs: int
    risk_aversion: float
    fee_penalty: float
    region_penalty: float
    liquidity_penalty: float
    target_region_mix: Dict[Region, float]
    exclusion_threshold: float
    min_weight: float = 0.0
    max_weight: float = 0.4

    def __post_init__(self):
        if int(self.max_etfs) != self.max_etfs or self.max_etfs < 1:
            raise InvalidInputError("max_etfs", f"must be an integer >= 1, got {self.max_etfs}")
        self.max_etfs = int(self.max_etfs)
        if self.risk_aversion <= 0:
            raise InvalidInputError("risk_aversion", f"must be > 0, got {self.risk_aversion}")
        if self.target_volatility <= 0:
            raise InvalidInputError("target_volatility", f"must be > 0, got {self.target_volatility}")
        for name in ("fee_penalty", "region_penalty", "liquidity_penalty", "exclusion_threshold"):
            if getattr(self, name) < 0:
                raise InvalidInputError(name, f"must be >= 0, got {getattr(self, name)}")
        if not 0.0 <= self.min_weight <= self.max_weight <= 1.0:
            raise InvalidInputError(
                "min_weight/max_weight",
                f"need 0 <= min_weight <= max_weight <= 1, got [{self.min_weight}, {self.max_weight}]",
            )

        mix = {r: 0.0 for r in REGIONS}
        for key, value in (self.target_region_mix or {}).items():
            if value < 0:
                raise InvalidInputError("target_region_mix", f"negative target for {key}: {value}")
            mix[parse_region(key)] = float(value)
        self.target_region_mix = mix

    @property
    def region_targets(self) -> np.ndarray:
        """Target region vector in Region order."""
        return np.array([self.target_region_mix[r] for r in REGIONS], dtype=float)

    @property
    def target_regions(self) -> List[Region]:
        """Regions with a non-zero target."""
        return [r for r in REGIONS if self.target_region_mix[r] > 0]

    def with_overrides(self, **changes) -> "OptimizationParams":
        """Copy with some fields replaced (re-validated)."""
        return replace(self, **changes)


# ================================================================================
# STATISTICS
# ================================================================================

@dataclass
class PortfolioStatistics:
    """
    Input numerici dell'ottimizzatore (annualizzati).

    Shapes: n funds, 5 regions, m excluded categories.
    """
    tickers: List[str]
    expected_returns: np.ndarray          # (n,)
    covariance_matrix: np.ndarray         # (n, n)
    fee_penalties: np.ndarray             # (n,)
    liquidity_penalties: np.ndarray       # (n,)
    region_matrix: np.ndarray             # (5, n)
    industry_exclusion_matrix: np.ndarray  # (m, n)
    excluded_industries: List[IndustryExclusion] = field(default_factory=list)

    def __post_init__(self):
        n = len(self.tickers)
        self.expected_returns = np.asarray(self.expected_returns, dtype=float)
        self.covariance_matrix = np.asarray(self.covariance_matrix, dtype=float)
        self.fee_penalties = np.asarray(self.fee_penalties, dtype=float)
        self.liquidity_penalties = np.asarray(self.liquidity_penalties, dtype=float)
        self.region_matrix = np.asarray(self.region_matrix, dtype=float).reshape(len(REGIONS), n)
        self.industry_exclusion_matrix = np.asarray(
            self.industry_exclusion_matrix, dtype=float
        ).reshape(-1, n)

        for name in ("expected_returns", "fee_penalties", "liquidity_penalties"):
            if getattr(self, name).shape != (n,):
                raise InvalidInputError(name, f"expected shape ({n},), got {getattr(self, name).shape}")
        if self.covariance_matrix.shape != (n, n):
            raise InvalidInputError(
                "covariance_matrix", f"expected shape ({n}, {n}), got {self.covariance_matrix.shape}"
            )
        if len(self.excluded_industries) != self.industry_exclusion_matrix.shape[0]:
            raise InvalidInputError(
                "industry_exclusion_matrix",
                f"{self.industry_exclusion_matrix.shape[0]} rows for "
                f"{len(self.excluded_industries)} excluded industries",
            )

    @property
    def n_funds(self) -> int:
        return len(self.tickers)

    def subset(self, indices: Sequence[int]) -> "PortfolioStatistics":
        """Statistics restricted to the funds at `indices` (in that order)."""
        idx = np.asarray(indices, dtype=int)
        return PortfolioStatistics(
            tickers=[self.tickers[i] for i in idx],
            expected_returns=self.expected_returns[idx],
            covariance_matrix=self.covariance_matrix[np.ix_(idx, idx)],
            fee_penalties=self.fee_penalties[idx],
            liquidity_penalties=self.liquidity_penalties[idx],
            region_matrix=self.region_matrix[:, idx],
            industry_exclusion_matrix=self.industry_exclusion_matrix[:, idx],
            excluded_industries=list(self.excluded_industries),
        )


# ================================================================================
# OPTIMIZER OUTPUT
# ================================================================================

@dataclass
class OptimizationResult:
    """
    Output grezzo del solver.

    `continuous_weights` is the solution before cardinality reduction;
    `weights` is the post-processed vector over the same fund order.
    """
    weights: np.ndarray
    objective: float
    iterations: int
    converged: bool
    feasible: bool
    solver: str
    message: str = ""
    continuous_weights: Optional[np.ndarray] = None

    @property
    def approximate(self) -> bool:
        """True when the run did not converge or the weights fail the feasibility check."""
        return not (self.converged and self.feasible)


@dataclass
class FundDetail:
    """Per-fund line of the final portfolio."""
    ticker: str
    name: str
    weight: float
    expected_return: float
    volatility: float
    marginal_volatility: float
    ter: float


@dataclass
class AppliedConstraints:
    """Constraints echoed back with the result."""
    excluded_industries: List[IndustryExclusion]
    volatility_cap: float
    max_etfs: int
    target_regions: List[Region]
    max_weight: float
    exclusion_threshold: float


@dataclass
class OptimizedPortfolio:
    """
    Portafoglio finale.

    Weights are one-to-one with tickers and sum to 1.
    """
    tickers: List[str]
    weights: List[float]
    expected_return: float
    expected_volatility: float
    sharpe_ratio: float
    region_exposure: Dict[Region, float]
    total_fees: float
    constraints: AppliedConstraints
    etf_details: List[FundDetail]
    approximate: bool = False
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.tickers) != len(self.weights):
            raise ValueError(
                f"tickers ({len(self.tickers)}) e weights ({len(self.weights)}) devono avere stessa lunghezza"
            )

    @property
    def n_positions(self) -> int:
        return len(self.tickers)

    @property
    def allocation(self) -> Dict[str, float]:
        """Ticker -> weight mapping."""
        return dict(zip(self.tickers, self.weights))

    def to_dict(self) -> Dict[str, Any]:
        """Converte in dict JSON-serializable."""
        return {
            "tickers": list(self.tickers),
            "weights": [float(w) for w in self.weights],
            "expected_return": float(self.expected_return),
            "expected_volatility": float(self.expected_volatility),
            "sharpe_ratio": float(self.sharpe_ratio),
            "region_exposure": {r.value: float(v) for r, v in self.region_exposure.items()},
            "total_fees": float(self.total_fees),
            "constraints": {
                "excluded_industries": [i.value for i in self.constraints.excluded_industries],
                "volatility_cap": float(self.constraints.volatility_cap),
                "max_etfs": int(self.constraints.max_etfs),
                "target_regions": [r.value for r in self.constraints.target_regions],
                "max_weight": float(self.constraints.max_weight),
                "exclusion_threshold": float(self.constraints.exclusion_threshold),
            },
            "etf_details": [asdict(d) for d in self.etf_details],
            "approximate": bool(self.approximate),
            "diagnostics": dict(self.diagnostics),
        }

    def to_json(self, indent: int = 2) -> str:
        """Serializza in JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save_json(self, filepath: str) -> None:
        """Salva su file JSON."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())

    def to_frame(self) -> pd.DataFrame:
        """Per-fund breakdown as a DataFrame indexed by ticker."""
        frame = pd.DataFrame([asdict(d) for d in self.etf_details])
        if frame.empty:
            return frame
        return frame.set_index("ticker")
