"""Tests for smera.core.logging module."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import pytest

from smera.core.logging import (
    SENSITIVE_PATTERNS,
    SmeraLogger,
    SyncContext,
    _add_context,
    _sanitize_event_dict,
    _sanitize_value,
    configure_logging,
    get_current_context,
    get_logger,
    with_context,
)


def read_json_lines(path: Path) -> list[dict[str, Any]]:
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


class TestSensitivePatterns:
    """Tests for sensitive field redaction."""

    def test_known_sensitive_patterns(self):
        assert "token" in SENSITIVE_PATTERNS
        assert "authorization" in SENSITIVE_PATTERNS
        assert "password" in SENSITIVE_PATTERNS

    @pytest.mark.parametrize("key", ["api_token", "Authorization", "BEARER", "db_password"])
    def test_sensitive_keys_redacted(self, key: str):
        assert _sanitize_value(key, "abc123") == "[REDACTED]"

    def test_safe_values_preserved(self):
        assert _sanitize_value("operation_id", "op_1") == "op_1"
        assert _sanitize_value("retries", 2) == 2

    def test_nested_dicts_sanitized(self):
        event_dict = {
            "event": "request_sent",
            "headers": {"authorization": "Bearer abc", "accept": "application/json"},
        }

        result = _sanitize_event_dict(None, "info", event_dict)

        assert result["headers"]["authorization"] == "[REDACTED]"
        assert result["headers"]["accept"] == "application/json"


class TestSmeraLogger:
    def test_get_logger_binds_component(self):
        logger = get_logger("queue", store="sqlite")
        assert isinstance(logger, SmeraLogger)
        assert logger._context == {"component": "queue", "store": "sqlite"}

    def test_bind_returns_new_logger(self):
        logger = get_logger("queue")
        bound = logger.bind(operation_id="op_1")
        assert bound is not logger
        assert "operation_id" not in logger._context
        assert bound._context["operation_id"] == "op_1"


class TestConfigureLogging:
    def test_both_requires_file_path(self):
        with pytest.raises(ValueError, match="file_path"):
            configure_logging(format="both")

    def test_sets_root_level_and_replaces_handlers(self, tmp_path: Path):
        configure_logging(level="DEBUG", format="console")
        configure_logging(level="ERROR", format="json", file_path=tmp_path / "smera.log")

        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert len(root.handlers) == 1

    def test_both_adds_console_and_file_handlers(self, tmp_path: Path):
        configure_logging(format="both", file_path=tmp_path / "logs" / "smera.log")
        assert len(logging.getLogger().handlers) == 2
        assert (tmp_path / "logs").is_dir()

    def test_json_file_output(self, tmp_path: Path):
        log_file = tmp_path / "smera.log"
        configure_logging(level="INFO", format="json", file_path=log_file)

        get_logger("queue").info("queue_operation_enqueued", operation_id="op_1", token="t0p")
        get_logger("queue").debug("below_threshold")

        entries = read_json_lines(log_file)
        assert len(entries) == 1
        entry = entries[0]
        assert entry["event"] == "queue_operation_enqueued"
        assert entry["component"] == "queue"
        assert entry["operation_id"] == "op_1"
        assert entry["token"] == "[REDACTED]"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_timestamps_can_be_disabled(self, tmp_path: Path):
        log_file = tmp_path / "smera.log"
        configure_logging(format="json", file_path=log_file, include_timestamps=False)
        get_logger("sync").info("replay_started")
        assert "timestamp" not in read_json_lines(log_file)[0]

    def test_module_logger_follows_reconfiguration(self, tmp_path: Path):
        logger = get_logger("sync")
        configure_logging(level="ERROR", format="json", file_path=tmp_path / "a.log")
        logger.info("dropped")
        configure_logging(level="INFO", format="json", file_path=tmp_path / "b.log")
        logger.info("kept")

        assert read_json_lines(tmp_path / "a.log") == []
        assert [e["event"] for e in read_json_lines(tmp_path / "b.log")] == ["kept"]

    def test_console_output(self, capsys: pytest.CaptureFixture[str]):
        configure_logging(level="INFO", format="console", include_timestamps=False)
        get_logger("sync.connectivity").warning("connectivity_lost")
        captured = capsys.readouterr()
        assert "connectivity_lost" in captured.err
        assert "sync.connectivity" in captured.err


class TestSyncContext:
    def test_defaults(self):
        ctx = SyncContext()
        assert ctx.workspace_id is None
        assert len(ctx.run_id) == 32
        assert ctx.to_dict() == {"run_id": ctx.run_id, "component": "unknown"}

    def test_with_helpers_return_copies(self):
        ctx = SyncContext(component="sync.replay")
        scoped = ctx.with_workspace("S1").with_component("cli")
        assert ctx.workspace_id is None
        assert scoped.workspace_id == "S1"
        assert scoped.component == "cli"
        assert scoped.run_id == ctx.run_id

    def test_with_context_sets_and_restores(self):
        assert get_current_context() is None
        outer = SyncContext(workspace_id="S1")
        inner = SyncContext(workspace_id="S2")
        with with_context(outer):
            with with_context(inner):
                assert get_current_context() is inner
            assert get_current_context() is outer
        assert get_current_context() is None

    def test_with_context_restores_on_exception(self):
        with pytest.raises(RuntimeError):
            with with_context(SyncContext()):
                raise RuntimeError("boom")
        assert get_current_context() is None

    def test_add_context_keeps_explicit_values(self):
        ctx = SyncContext(workspace_id="S1", component="sync.replay")
        with with_context(ctx):
            result = _add_context(None, "info", {"event": "x", "component": "queue"})
        assert result["workspace_id"] == "S1"
        assert result["run_id"] == ctx.run_id
        assert result["component"] == "queue"

    def test_context_in_log_output(self, tmp_path: Path):
        log_file = tmp_path / "smera.log"
        configure_logging(format="json", file_path=log_file)
        ctx = SyncContext(workspace_id="S9")
        with with_context(ctx):
            get_logger("sync.replay").warning("replay_completed")

        entry = read_json_lines(log_file)[0]
        assert entry["workspace_id"] == "S9"
        assert entry["run_id"] == ctx.run_id

    async def test_context_isolated_across_tasks(self):
        seen: dict[str, str | None] = {}

        async def worker(workspace_id: str) -> None:
            with with_context(SyncContext(workspace_id=workspace_id)):
                await asyncio.sleep(0)
                current = get_current_context()
                seen[workspace_id] = current.workspace_id if current else None

        await asyncio.gather(worker("S1"), worker("S2"))
        assert seen == {"S1": "S1", "S2": "S2"}
