"""
Tests for structured logging
"""

import json
import logging
import tempfile
from pathlib import Path

from budget_ledger.logging_config import (
    JSONFormatter, setup_logging, get_logger, log_action, ROOT_LOGGER_NAME
)


class TestLogging:

    def teardown_method(self):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    def test_get_logger_uses_package_namespace(self):
        assert get_logger("balances").name == "budget_ledger.balances"
        assert get_logger("budget_ledger.balances").name == "budget_ledger.balances"
        assert get_logger().name == ROOT_LOGGER_NAME

    def test_json_formatter_includes_structured_fields(self):
        record = logging.LogRecord("budget_ledger.test", logging.INFO, __file__, 1, "hello", (), None)
        record.budget_code = "family"
        record.action = "transfer"
        record.extra = {"amount": "5"}

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["budget_code"] == "family"
        assert entry["action"] == "transfer"
        assert entry["extra"] == {"amount": "5"}
        assert "resource" not in entry

    def test_log_action_writes_json_lines(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = Path(temp_dir) / "ledger.log"
            setup_logging("INFO", "json", str(log_file))
            logger = get_logger("test")

            log_action(logger, "info", "Bank created", budget_code="family",
                       action="create_bank", resource="bank:1")
            log_action(logger, "debug", "hidden")

            for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
                handler.flush()
            lines = log_file.read_text().splitlines()

            assert len(lines) == 1
            entry = json.loads(lines[0])
            assert entry["logger"] == "budget_ledger.test"
            assert entry["resource"] == "bank:1"

            self.teardown_method()

    def test_setup_logging_replaces_handlers(self):
        setup_logging("DEBUG", "text")
        logger = setup_logging("WARNING", "text")

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
