"""
Output Module
=============
Stampa a console del portafoglio ottimizzato.
"""

from typing import List

from portfolio_construction.models.portfolio import OptimizedPortfolio


def format_portfolio_summary(portfolio: OptimizedPortfolio) -> List[str]:
    """Summary lines (no printing) for a portfolio."""
    lines = [
        "=" * 70,
        "                   OPTIMIZED PORTFOLIO",
        "=" * 70,
        "",
        f"{'Ticker':<8} {'Name':<40} {'Weight':>8} {'TER':>7}",
        "-" * 70,
    ]
    for d in portfolio.etf_details:
        lines.append(f"{d.ticker:<8} {d.name[:40]:<40} {d.weight:>8.2%} {d.ter:>7.2%}")

    lines.extend([
        "-" * 70,
        f"Expected return:      {portfolio.expected_return:>8.2%}",
        f"Expected volatility:  {portfolio.expected_volatility:>8.2%}"
        f"  (cap {portfolio.constraints.volatility_cap:.2%})",
        f"Sharpe ratio:         {portfolio.sharpe_ratio:>8.2f}",
        f"Total fees (TER):     {portfolio.total_fees:>8.3%}",
        "",
        "Region exposure:",
    ])
    for region, exposure in portfolio.region_exposure.items():
        lines.append(f"   • {region.value:<14} {exposure:>7.1%}")

    excluded = [i.value for i in portfolio.constraints.excluded_industries]
    lines.append("")
    lines.append(f"Excluded industries: {', '.join(excluded) if excluded else 'none'}")
    if portfolio.approximate:
        lines.append("Note: constraints only approximately satisfied")
    lines.append("=" * 70)
    return lines


def print_portfolio_summary(portfolio: OptimizedPortfolio) -> None:
    print("\n".join(format_portfolio_summary(portfolio)))
