#!/usr/bin/env python3
"""
Portfolio Construction CLI Entry Point
======================================
Minimal CLI wrapper around optimize_portfolio().

Usage:
    python -m scripts.build_portfolio --tolerance 60 --capacity 50 --horizon 70 --experience 40
    python -m scripts.build_portfolio --regions US EM --exclude TOBACCO --json out.json
    python -m scripts.build_portfolio --universe catalog.yaml --config engine.yaml
"""

import sys
import os
import argparse
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent.parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from portfolio_construction.config.engine_config import get_config
from portfolio_construction.config.loader import load_config_file, build_runtime_config
from portfolio_construction.core.pipeline import optimize_portfolio
from portfolio_construction.data.definitions.catalog import build_sample_universe
from portfolio_construction.data.universe import load_fund_universe
from portfolio_construction.decision.assessment import summarize_profile
from portfolio_construction.models.portfolio import RiskProfileInputs
from portfolio_construction.reporting.console import print_portfolio_summary
from portfolio_construction.utils.exceptions import NoEligibleFundsError
from portfolio_construction.utils.logger import set_console_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build an optimized ETF portfolio")
    parser.add_argument("--tolerance", type=float, default=50.0, help="Risk tolerance score (0-100)")
    parser.add_argument("--capacity", type=float, default=50.0, help="Risk capacity score (0-100)")
    parser.add_argument("--horizon", type=float, default=50.0, help="Investment horizon score (0-100)")
    parser.add_argument("--experience", type=float, default=50.0, help="Investor experience score (0-100)")
    parser.add_argument("--regions", nargs="*", default=[], help="Selected regions (NL EU_EX_NL US DEV_EX_US_EU EM)")
    parser.add_argument("--exclude", nargs="*", default=[], help="Excluded industries (e.g. TOBACCO FOSSIL_FUELS)")
    parser.add_argument("--universe", default=None, help="Fund catalog JSON/YAML (default: sample catalog)")
    parser.add_argument("--seed", type=int, default=42, help="Seed for the sample catalog returns")
    parser.add_argument("--solver", default=None, help="Solver name (projected_gradient, slsqp)")
    parser.add_argument("--config", default=None, help="Path to JSON/YAML engine config")
    parser.add_argument("--json", dest="json_path", default=None, help="Write the result to this JSON file")
    parser.add_argument("--log-level", default=None, help="Console log level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def main(argv=None):
    """Run portfolio construction with the given arguments."""
    args = build_parser().parse_args(argv)
    if args.log_level:
        set_console_level(args.log_level)

    config = get_config()
    config_path = args.config or os.environ.get("PORTFOLIO_CONFIG_PATH")
    if config_path:
        config = build_runtime_config(load_config_file(config_path), base=config)
        print(f"Using external config: {config_path}")

    if args.universe:
        funds = load_fund_universe(args.universe)
    else:
        funds = build_sample_universe(seed=args.seed)

    inputs = RiskProfileInputs(
        risk_tolerance=args.tolerance,
        risk_capacity=args.capacity,
        investment_horizon=args.horizon,
        investor_experience=args.experience,
        regions_selected=args.regions,
        industry_exclusions=args.exclude,
    )
    profile = summarize_profile(inputs)
    print(f"Profile: {profile}")

    try:
        portfolio = optimize_portfolio(funds, inputs, config=config, solver=args.solver)
    except NoEligibleFundsError as e:
        print(f"\nCannot construct a portfolio: {e.user_message}")
        return 2

    print_portfolio_summary(portfolio)

    if args.json_path:
        Path(args.json_path).parent.mkdir(parents=True, exist_ok=True)
        portfolio.save_json(args.json_path)
        print(f"Saved: {args.json_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
