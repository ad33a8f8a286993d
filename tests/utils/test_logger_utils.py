from __future__ import annotations

import logging
import warnings
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import pytest

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

NAMESPACE = "GoogleTransTest"


@pytest.fixture
def fresh_logger_utils(monkeypatch: pytest.MonkeyPatch) -> Iterator[logging.Logger]:
    monkeypatch.setattr(LoggerUtils, "_instance", None)
    monkeypatch.setattr(LoggerUtils, "_configured", False)
    monkeypatch.setattr(LoggerUtils, "_LOGGER_NAMESPACE", NAMESPACE)
    monkeypatch.setattr(warnings, "showwarning", warnings.showwarning)
    namespace_logger: logging.Logger = logging.getLogger(NAMESPACE)
    yield namespace_logger
    for handler in list(namespace_logger.handlers):
        namespace_logger.removeHandler(handler)
        handler.close()


def test_get_logger_is_namespaced(fresh_logger_utils: logging.Logger) -> None:
    assert LoggerUtils.get_logger("core.trans.translator").name == f"{NAMESPACE}.core.trans.translator"
    assert LoggerUtils.get_logger() is fresh_logger_utils


def test_singleton_configures_handlers_once(fresh_logger_utils: logging.Logger) -> None:
    first = LoggerUtils(use_null_console=True)
    second = LoggerUtils(use_null_console=True)

    assert first is second
    assert len(fresh_logger_utils.handlers) == 1


def test_file_logging_writes_debug_records(fresh_logger_utils: logging.Logger, tmp_path: Path) -> None:
    log_file: Path = tmp_path / "googletrans.log"
    LoggerUtils(log_file, level="DEBUG", use_null_console=True)

    LoggerUtils.get_logger("test").debug("tkk refreshed")

    for handler in fresh_logger_utils.handlers:
        handler.flush()
    assert any(isinstance(handler, RotatingFileHandler) for handler in fresh_logger_utils.handlers)
    assert "tkk refreshed" in log_file.read_text(encoding="utf-8")


def test_set_level_and_unknown_level(fresh_logger_utils: logging.Logger) -> None:
    utils = LoggerUtils(use_null_console=True)

    utils.set_level("warning")
    assert utils.get_level().name == "WARNING"

    utils.set_level("LOUD")  # type: ignore[arg-type]
    assert utils.get_level().value == logging.INFO
    assert fresh_logger_utils.level == logging.INFO


def test_warnings_are_routed_to_log(fresh_logger_utils: logging.Logger, caplog: pytest.LogCaptureFixture) -> None:
    _ = fresh_logger_utils
    LoggerUtils(use_null_console=True)

    with warnings.catch_warnings():
        warnings.simplefilter("always")
        warnings.showwarning = LoggerUtils._instance.warning_to_log  # type: ignore[union-attr]
        warnings.warn("deprecated option", DeprecationWarning, stacklevel=1)

    assert any("DeprecationWarning: deprecated option" in rec.getMessage() for rec in caplog.records)
