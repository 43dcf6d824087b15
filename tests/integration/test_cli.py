import json
import logging

import yaml

from portfolio_construction.core import pipeline
from portfolio_construction.utils.logger import set_console_level
from scripts.build_portfolio import main


def test_cli_builds_sample_portfolio(tmp_path, capsys):
    out = tmp_path / "out" / "portfolio.json"
    code = main(["--tolerance", "60", "--horizon", "70", "--seed", "3", "--json", str(out)])

    assert code == 0
    printed = capsys.readouterr().out
    assert "OPTIMIZED PORTFOLIO" in printed
    data = json.loads(out.read_text(encoding="utf-8"))
    assert abs(sum(data['weights']) - 1.0) < 1e-9


def test_cli_reports_no_eligible_funds(capsys):
    code = main(["--regions", "NL"])
    assert code == 2
    assert "No funds match your selected regions." in capsys.readouterr().out


def test_cli_reads_config_file(tmp_path, capsys):
    cfg = tmp_path / "engine.yaml"
    cfg.write_text(yaml.safe_dump({"parameters": {"max_weight": 0.3}}), encoding="utf-8")
    out = tmp_path / "portfolio.json"

    code = main(["--config", str(cfg), "--json", str(out)])
    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data['constraints']['max_weight'] == 0.3
    assert max(data['weights']) <= 0.3 + 1e-9
    assert "Using external config" in capsys.readouterr().out


def test_cli_log_level_quiets_engine_console():
    try:
        code = main(["--log-level", "WARNING", "--seed", "5"])
        assert code == 0
        console = [h for h in pipeline.logger.handlers if h.__class__ is logging.StreamHandler]
        assert console and all(h.level == logging.WARNING for h in console)
    finally:
        set_console_level(logging.INFO)
