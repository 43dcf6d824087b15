"""
Sample Fund Catalog
===================
Universo ETF di esempio (12 fondi) con rendimenti mensili sintetici.

Used by the CLI when no catalog file is given and by the test fixtures.
Return series are generated from an explicit seed: the same seed always
yields the same universe.
"""

from typing import List, Optional

import numpy as np

from portfolio_construction.models.portfolio import FundRecord


# Monthly (mean, vol) by "asset type-risk level"
RETURN_PROFILES = {
    "US Equity-Moderate": (0.009, 0.045),
    "US Equity-High": (0.010, 0.055),
    "US Equity-Low": (0.007, 0.035),
    "US Growth-High": (0.011, 0.060),
    "International Equity-Moderate": (0.007, 0.042),
    "International Equity-High": (0.008, 0.050),
    "Emerging Markets-High": (0.009, 0.055),
    "Fixed Income-Low": (0.003, 0.015),
    "Fixed Income-Moderate": (0.004, 0.020),
    "Bonds-Low": (0.003, 0.012),
    "Technology-High": (0.012, 0.065),
}
DEFAULT_RETURN_PROFILE = (0.008, 0.045)

AUTOCORRELATION = 0.1


def generate_monthly_returns(
    asset_type: str,
    risk_level: str,
    periods: int = 60,
    rng: Optional[np.random.Generator] = None,
) -> List[float]:
    """
    Rendimenti mensili sintetici con leggera autocorrelazione.

    r_t = mean + 0.1 * r_{t-1} + shock, shock ~ U(-√3·vol, √3·vol)
    (uniform shock with standard deviation `vol`).
    """
    rng = rng if rng is not None else np.random.default_rng()
    mean, vol = RETURN_PROFILES.get(f"{asset_type}-{risk_level}", DEFAULT_RETURN_PROFILE)

    shocks = (rng.random(periods) - 0.5) * 2 * vol * np.sqrt(3.0)
    returns = []
    prev = 0.0
    for shock in shocks:
        ret = mean + AUTOCORRELATION * prev + shock
        returns.append(float(ret))
        prev = ret
    return returns


# ter and avg_spread as fractions, aum in millions
SAMPLE_CATALOG = [
    # Large Cap US Equity
    {"ticker": "VOO", "name": "Vanguard S&P 500 ETF", "asset_class": "equity",
     "ter": 0.0003, "avg_spread": 0.0001, "aum": 350000, "avg_daily_volume": 5000000,
     "region_exposure": {"US": 1.0},
     "industry_exposure": {"FOSSIL_FUELS": 0.04, "WEAPONS": 0.01},
     "esg_compliant": False, "returns": ("US Equity", "Moderate")},
    {"ticker": "VTI", "name": "Vanguard Total Stock Market ETF", "asset_class": "equity",
     "ter": 0.0003, "avg_spread": 0.0001, "aum": 400000, "avg_daily_volume": 4000000,
     "region_exposure": {"US": 1.0},
     "industry_exposure": {"FOSSIL_FUELS": 0.03, "WEAPONS": 0.01},
     "esg_compliant": False, "returns": ("US Equity", "Moderate")},
    {"ticker": "QQQ", "name": "Invesco QQQ Trust", "asset_class": "equity",
     "ter": 0.0020, "avg_spread": 0.0001, "aum": 250000, "avg_daily_volume": 50000000,
     "region_exposure": {"US": 1.0},
     "industry_exposure": {},
     "esg_compliant": False, "returns": ("US Growth", "High")},

    # International Equity
    {"ticker": "VXUS", "name": "Vanguard Total International Stock ETF", "asset_class": "equity",
     "ter": 0.0007, "avg_spread": 0.0005, "aum": 70000, "avg_daily_volume": 4000000,
     "region_exposure": {"NL": 0.01, "EU_EX_NL": 0.40, "DEV_EX_US_EU": 0.35, "EM": 0.24},
     "industry_exposure": {"FOSSIL_FUELS": 0.05},
     "esg_compliant": False, "returns": ("International Equity", "Moderate")},
    {"ticker": "VEA", "name": "Vanguard FTSE Developed Markets ETF", "asset_class": "equity",
     "ter": 0.0005, "avg_spread": 0.0004, "aum": 100000, "avg_daily_volume": 10000000,
     "region_exposure": {"NL": 0.02, "EU_EX_NL": 0.45, "DEV_EX_US_EU": 0.53},
     "industry_exposure": {"FOSSIL_FUELS": 0.04},
     "esg_compliant": False, "returns": ("International Equity", "Moderate")},
    {"ticker": "VWO", "name": "Vanguard FTSE Emerging Markets ETF", "asset_class": "equity",
     "ter": 0.0008, "avg_spread": 0.0008, "aum": 90000, "avg_daily_volume": 15000000,
     "region_exposure": {"EM": 1.0},
     "industry_exposure": {"FOSSIL_FUELS": 0.08},
     "esg_compliant": False, "returns": ("Emerging Markets", "High")},

    # Technology
    {"ticker": "VGT", "name": "Vanguard Information Technology ETF", "asset_class": "equity",
     "ter": 0.0010, "avg_spread": 0.0003, "aum": 60000, "avg_daily_volume": 1000000,
     "region_exposure": {"US": 0.95, "DEV_EX_US_EU": 0.03, "EM": 0.02},
     "industry_exposure": {},
     "esg_compliant": False, "returns": ("Technology", "High")},

    # Bonds
    {"ticker": "BND", "name": "Vanguard Total Bond Market ETF", "asset_class": "bond",
     "ter": 0.0003, "avg_spread": 0.0002, "aum": 95000, "avg_daily_volume": 6000000,
     "region_exposure": {"US": 1.0},
     "industry_exposure": {},
     "esg_compliant": False, "returns": ("Bonds", "Low")},
    {"ticker": "AGG", "name": "iShares Core U.S. Aggregate Bond ETF", "asset_class": "bond",
     "ter": 0.0003, "avg_spread": 0.0002, "aum": 100000, "avg_daily_volume": 7000000,
     "region_exposure": {"US": 1.0},
     "industry_exposure": {},
     "esg_compliant": False, "returns": ("Bonds", "Low")},
    {"ticker": "BNDX", "name": "Vanguard Total International Bond ETF", "asset_class": "bond",
     "ter": 0.0007, "avg_spread": 0.0005, "aum": 75000, "avg_daily_volume": 1000000,
     "region_exposure": {"NL": 0.02, "EU_EX_NL": 0.60, "DEV_EX_US_EU": 0.35, "EM": 0.03},
     "industry_exposure": {},
     "esg_compliant": False, "hedged": True, "returns": ("Fixed Income", "Low")},

    # ESG
    {"ticker": "ESGV", "name": "Vanguard ESG U.S. Stock ETF", "asset_class": "equity",
     "ter": 0.0009, "avg_spread": 0.0008, "aum": 8000, "avg_daily_volume": 500000,
     "region_exposure": {"US": 1.0},
     "industry_exposure": {},
     "esg_compliant": True, "returns": ("US Equity", "Moderate")},
    {"ticker": "VSGX", "name": "Vanguard ESG International Stock ETF", "asset_class": "equity",
     "ter": 0.0012, "avg_spread": 0.0010, "aum": 5000, "avg_daily_volume": 200000,
     "region_exposure": {"NL": 0.01, "EU_EX_NL": 0.42, "DEV_EX_US_EU": 0.54, "EM": 0.03},
     "industry_exposure": {},
     "esg_compliant": True, "returns": ("International Equity", "Moderate")},
]


def build_sample_universe(seed: int = 42, periods: int = 60) -> List[FundRecord]:
    """Sample catalog with reproducible synthetic returns."""
    rng = np.random.default_rng(seed)
    funds = []
    for entry in SAMPLE_CATALOG:
        entry = dict(entry)
        asset_type, risk_level = entry.pop("returns")
        funds.append(FundRecord(
            domicile="US",
            currency="USD",
            ucits=False,
            replication="physical",
            hedged=entry.pop("hedged", False),
            monthly_returns=tuple(generate_monthly_returns(asset_type, risk_level, periods, rng)),
            **entry,
        ))
    return funds
