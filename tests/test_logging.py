"""Tests for logging utilities."""

import logging

import pytest

from deploy_helper.logging import (
    DEBUG_FORMAT,
    DEFAULT_FORMAT,
    TRACE,
    TRACE_FORMAT,
    configure_logging,
    format_for_level,
    get_level_from_name,
    get_level_from_verbosity,
    host_scope,
    task_timer,
)


class TestLevels:
    """Tests for verbosity and level-name conversion."""

    @pytest.mark.parametrize(
        "verbosity,expected",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (3, TRACE), (7, TRACE)],
    )
    def test_verbosity(self, verbosity, expected):
        assert get_level_from_verbosity(verbosity) == expected

    def test_level_names(self):
        assert get_level_from_name("trace") == TRACE
        assert get_level_from_name("DEBUG") == logging.DEBUG
        assert get_level_from_name("error") == logging.ERROR

    def test_invalid_level_name(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            get_level_from_name("loud")

    def test_trace_level_name(self):
        assert logging.getLevelName(TRACE) == "TRACE"

    def test_format_for_level(self):
        assert format_for_level(logging.WARNING) == DEFAULT_FORMAT
        assert format_for_level(logging.INFO) == DEFAULT_FORMAT
        assert format_for_level(logging.DEBUG) == DEBUG_FORMAT
        assert format_for_level(TRACE) == TRACE_FORMAT


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_default(self):
        configure_logging()
        assert logging.root.level == logging.WARNING
        assert len(logging.root.handlers) == 1

    def test_console_format_follows_level(self):
        configure_logging(level=logging.DEBUG)
        assert logging.root.level == logging.DEBUG
        assert logging.root.handlers[0].formatter._fmt == DEBUG_FORMAT

    def test_reconfigure_replaces_handlers(self):
        configure_logging(level=logging.INFO)
        configure_logging(level=logging.INFO)
        assert len(logging.root.handlers) == 1

    def test_console_logs_to_stderr(self, capsys):
        configure_logging(level=logging.INFO)
        logging.getLogger("deploy_helper.test.stderr").info("to stderr")
        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert "to stderr" not in captured.out

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "deploy.log"
        configure_logging(level=logging.WARNING, log_file=str(log_file), file_level=logging.DEBUG)

        logging.getLogger("deploy_helper.test.file").debug("file only")
        for handler in logging.root.handlers:
            handler.flush()

        assert logging.root.level == logging.DEBUG
        contents = log_file.read_text()
        assert "file only" in contents
        assert "deploy_helper.test.file:" in contents


class TestHostScope:
    """Tests for host_scope context manager."""

    def test_success(self, caplog):
        logger = logging.getLogger("deploy_helper.test.host")
        logger.setLevel(logging.INFO)

        with host_scope(logger, "Deploy web", "web01"):
            pass

        assert "Running tasks on web01 (deployment=Deploy web)" in caplog.text
        assert "Finished web01 in" in caplog.text

    def test_failure(self, caplog):
        logger = logging.getLogger("deploy_helper.test.host.failure")
        logger.setLevel(logging.INFO)

        with pytest.raises(RuntimeError):
            with host_scope(logger, "Deploy web", "web01"):
                raise RuntimeError("exit status 2")

        assert "Aborted web01 after" in caplog.text
        assert "exit status 2" in caplog.text
        assert "Finished web01" not in caplog.text


class TestTaskTimer:
    """Tests for task_timer context manager."""

    def test_completed(self, caplog):
        logger = logging.getLogger("deploy_helper.test.timer")
        logger.setLevel(logging.DEBUG)

        with task_timer(logger, "Install packages"):
            pass

        assert "Task 'Install packages' completed in" in caplog.text

    def test_failed(self, caplog):
        logger = logging.getLogger("deploy_helper.test.timer.failure")
        logger.setLevel(logging.DEBUG)

        with pytest.raises(RuntimeError):
            with task_timer(logger, "Migrate"):
                raise RuntimeError("boom")

        assert "Task 'Migrate' failed in" in caplog.text
