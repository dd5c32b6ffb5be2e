"""Unit tests for log formatting."""

import logging

from shared.logging.logging_setup import ANSI_RESET, ColorLogger, ConsoleFormatter, ZonedFormatter, build_logging_config


def _record(level: int, msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("knowledge_core", level, __file__, 1, msg, args, None)
    record.__dict__.update(extra)
    return record


def test_warnings_and_errors_are_marked() -> None:
    formatter = ZonedFormatter(tz_name="UTC", fmt="%(message)s")

    assert formatter.format(_record(logging.INFO, "indexed %d chunks", 3)) == "indexed 3 chunks"
    assert formatter.format(_record(logging.WARNING, "cooling down")) == "⚠️ cooling down"
    assert formatter.format(_record(logging.ERROR, "document %s failed", "doc-1")) == "⛔ document doc-1 failed"


def test_marking_leaves_the_record_untouched() -> None:
    record = _record(logging.ERROR, "document %s failed", "doc-1")

    ZonedFormatter(tz_name="UTC", fmt="%(message)s").format(record)

    assert record.msg == "document %s failed"
    assert record.args == ("doc-1",)


def test_timestamps_use_configured_zone() -> None:
    record = _record(logging.INFO, "tick")
    record.created = 0

    formatter = ZonedFormatter(tz_name="Europe/Berlin", fmt="%(asctime)s", datefmt="%H:%M")

    assert formatter.format(record) == "01:00"


def test_console_colors_explicit_and_by_level() -> None:
    formatter = ConsoleFormatter(tz_name="UTC", fmt="%(message)s")

    assert formatter.format(_record(logging.INFO, "plain")) == "plain"
    assert formatter.format(_record(logging.INFO, "done", color="green")) == f"\033[32mdone{ANSI_RESET}"
    assert formatter.format(_record(logging.WARNING, "slow")).startswith("\033[33m")


def test_color_keyword_reaches_the_record(caplog) -> None:
    logger = ColorLogger(logging.getLogger("knowledge_core.color"))

    with caplog.at_level(logging.INFO, logger="knowledge_core.color"):
        logger.info("Document %s indexed", "doc-1", color="cyan")

    assert caplog.records[-1].getMessage() == "Document doc-1 indexed"
    assert caplog.records[-1].color == "cyan"


def test_config_writes_plain_file_and_colored_console(tmp_path) -> None:
    config = build_logging_config(log_file=str(tmp_path / "core.log"), tz_name="UTC", level=logging.DEBUG)

    assert config["handlers"]["file"]["filename"].endswith("core.log")
    assert config["formatters"]["console"]["()"] is ConsoleFormatter
    assert config["root"]["level"] == logging.DEBUG
