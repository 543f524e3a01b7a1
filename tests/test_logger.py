import pytest

from reactornet.logger import (
    FatalError,
    Logger,
    LogLevel,
    log_debug,
    log_error,
    log_fatal,
    log_info,
)


def test_instance_is_shared():
    first = Logger.instance()
    first.set_level(LogLevel.FATAL)
    second = Logger.instance()
    assert second.level == LogLevel.FATAL
    second.set_level(LogLevel.INFO)
    assert first.level == LogLevel.INFO


def test_set_level_accepts_int():
    logger = Logger.instance()
    logger.set_level(1)
    assert logger.level is LogLevel.ERROR


def test_log_info_prefix_and_message(capsys):
    log_info("value=%d name=%s\n", 5, "x")
    out = capsys.readouterr().out
    assert out.startswith("[INFO]print time:")
    assert "value=5 name=x" in out


def test_log_error_prefix(capsys):
    log_error("bad thing")
    out = capsys.readouterr().out
    assert out.startswith("[ERROR]")
    assert "bad thing" in out


def test_log_fatal_raises(capsys):
    with pytest.raises(FatalError, match="boom 3"):
        log_fatal("boom %d\n", 3)
    assert capsys.readouterr().out.startswith("[FATAL]")


def test_log_debug_silent_when_disabled(capsys):
    logger = Logger.instance()
    logger.debug_enabled = False
    log_debug("hidden")
    assert capsys.readouterr().out == ""


def test_log_debug_when_enabled(capsys):
    logger = Logger.instance()
    logger.debug_enabled = True
    try:
        log_debug("shown %s", "here")
    finally:
        logger.debug_enabled = False
    out = capsys.readouterr().out
    assert out.startswith("[DEBUG]")
    assert "shown here" in out


def test_long_message_is_truncated(capsys):
    log_info("a" * 2000)
    out = capsys.readouterr().out
    assert "a" * 1023 in out
    assert "a" * 1024 not in out