import logging

import pytest

from portfolio_construction.models import portfolio as models_module
from portfolio_construction.models.portfolio import RiskProfileInputs
from portfolio_construction.utils.logger import (
    get_logger,
    log_performance,
    set_console_level,
    setup_logger,
)

ENGINE_HANDLER = '_portfolio_construction_handler'


def engine_handlers(logger):
    return [h for h in logger.handlers if getattr(h, ENGINE_HANDLER, False)]


def test_models_warnings_use_engine_logger(caplog):
    assert len(engine_handlers(models_module.logger)) == 1
    with caplog.at_level(logging.WARNING):
        RiskProfileInputs(50, 50, 50, 50, regions_selected=["ATLANTIS"])
    record = next(r for r in caplog.records if "ATLANTIS" in r.getMessage())
    assert record.name == "portfolio_construction.models.portfolio"


def test_setup_is_idempotent_and_keeps_foreign_handlers():
    logger = get_logger("portfolio_construction.tests.idempotent")
    foreign = logging.NullHandler()
    logger.addHandler(foreign)

    setup_logger("portfolio_construction.tests.idempotent")
    assert len(engine_handlers(logger)) == 1
    assert foreign in logger.handlers
    logger.removeHandler(foreign)


def test_console_level_from_environment(monkeypatch):
    monkeypatch.setenv("PORTFOLIO_LOG_LEVEL", "warning")
    logger = setup_logger("portfolio_construction.tests.env_level")
    assert engine_handlers(logger)[0].level == logging.WARNING


def test_file_logging_only_when_directory_given(tmp_path, monkeypatch):
    monkeypatch.delenv("PORTFOLIO_LOG_DIR", raising=False)
    assert len(setup_logger("portfolio_construction.tests.nofile").handlers) == 1

    logger = setup_logger("portfolio_construction.tests.file", log_dir=str(tmp_path / "logs"))
    logger.debug("written to file")
    for handler in engine_handlers(logger):
        handler.flush()
    files = list((tmp_path / "logs").glob("portfolio_construction_tests_file_*.log"))
    assert len(files) == 1
    assert "written to file" in files[0].read_text(encoding="utf-8")
    setup_logger("portfolio_construction.tests.file")  # closes the file handler


def test_set_console_level_updates_existing_loggers():
    logger = get_logger("portfolio_construction.tests.level")
    try:
        assert set_console_level("ERROR") == logging.ERROR
        assert engine_handlers(logger)[0].level == logging.ERROR
        # unknown names fall back to INFO
        assert set_console_level("chatty") == logging.INFO
    finally:
        set_console_level(logging.INFO)


def test_scipy_loggers_are_quieted():
    assert logging.getLogger("scipy").level == logging.WARNING
    assert logging.getLogger("scipy.optimize").level == logging.WARNING


def test_log_performance_reports_and_reraises(caplog):
    logger = get_logger("portfolio_construction.tests.perf")

    @log_performance(logger)
    def double(x):
        return 2 * x

    @log_performance(logger)
    def broken():
        raise ValueError("boom")

    with caplog.at_level(logging.INFO):
        assert double(3) == 6
        with pytest.raises(ValueError):
            broken()
    assert "double completed in" in caplog.text
    assert "broken failed after" in caplog.text
    assert "ValueError: boom" in caplog.text
