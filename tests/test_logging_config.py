"""
Tests for the logging setup
"""

import io
import logging

import pytest

from construction_stages.logging_config import StageLogFormatter, get_logger, setup_logging


class TestStageLogFormatter:
    """Tests for StageLogFormatter"""

    def _record(self, **extra):
        record = logging.LogRecord(
            "construction_stages.repository", logging.INFO, __file__, 1, "Created construction stage", None, None
        )
        record.__dict__.update(extra)
        return record

    def test_appends_stage_id(self):
        line = StageLogFormatter().format(self._record(stage_id=7))
        assert line.endswith("[construction_stages.repository] Created construction stage (stage=7)")

    def test_without_stage_id(self):
        line = StageLogFormatter().format(self._record())
        assert line.endswith("Created construction stage")
        assert "stage=" not in line


class TestSetupLogging:
    """Tests for setup_logging"""

    def test_console_defaults_to_stderr(self, capsys):
        setup_logging(level="INFO")
        get_logger("test").info("hello")
        captured = capsys.readouterr()
        assert "hello" in captured.err
        assert captured.out == ""

    def test_server_loggers_share_handlers(self):
        stream = io.StringIO()
        setup_logging(level="INFO", stream=stream)
        logging.getLogger("uvicorn.error").info("Application startup complete.")
        get_logger("server").warning("Using database x.db")
        output = stream.getvalue()
        assert "[uvicorn.error] Application startup complete." in output
        assert "[construction_stages.server] Using database x.db" in output

    def test_access_log_quiet_unless_debug(self):
        setup_logging(level="INFO", stream=io.StringIO())
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

        setup_logging(level="DEBUG", stream=io.StringIO())
        assert logging.getLogger("uvicorn.access").level == logging.DEBUG

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "stages.log"
        setup_logging(level="INFO", log_file=str(log_file), stream=io.StringIO())
        get_logger("test").info("Created construction stage", extra={"stage_id": 3})
        for handler in logging.getLogger("construction_stages").handlers:
            handler.flush()
        assert "Created construction stage (stage=3)" in log_file.read_text()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
