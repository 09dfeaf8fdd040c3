"""Tests for substack.core.logging."""

import json
import logging

import pytest
import structlog
from structlog.testing import capture_logs

from substack.core.logging import LogContext, bind_context, configure_logging, get_logger, log_step


class TestLogStep:
    def test_start_and_end(self):
        with capture_logs() as logs:
            with log_step("dispatch.unit", unit="build") as step:
                step["outputs"] = ["imageDigest"]

        events = [entry["event"] for entry in logs]
        assert events == ["dispatch.unit.start", "dispatch.unit.end"]
        end = logs[-1]
        assert end["unit"] == "build"
        assert end["outputs"] == ["imageDigest"]
        assert end["duration_ms"] >= 0

    def test_error_is_logged_and_reraised(self):
        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                with log_step("dispatch.unit"):
                    raise RuntimeError("boom")

        error = logs[-1]
        assert error["event"] == "dispatch.unit.error"
        assert error["log_level"] == "error"
        assert error["error_type"] == "RuntimeError"
        assert error["error_message"] == "boom"


class TestContext:
    def test_log_context_binds_and_unbinds(self):
        with LogContext(stack="dev", substack="build"):
            assert structlog.contextvars.get_contextvars() == {"stack": "dev", "substack": "build"}
        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_async_log_context(self):
        async with LogContext(unit="deploy"):
            assert structlog.contextvars.get_contextvars()["unit"] == "deploy"
        assert "unit" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    def test_json_output_carries_context(self, capsys):
        configure_logging(level="INFO", json_format=True, service="substack-test")
        bind_context(stack="dev")
        get_logger("substack.test").info("reference.created", identity="dev.build")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "reference.created"
        assert record["identity"] == "dev.build"
        assert record["stack"] == "dev"
        assert record["service.name"] == "substack-test"
        assert record["log.level"] == "info"
        assert "@timestamp" in record

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        get_logger("substack.test").info("hidden")
        assert "hidden" not in capsys.readouterr().err
        assert logging.getLogger().level == logging.WARNING
