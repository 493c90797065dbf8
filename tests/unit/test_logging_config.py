"""Unit tests for log correlation and formatting."""

import io
import json
import logging
import sys
import uuid

import pytest

from voiceowl.logging_config import (
    NO_ID,
    CorrelationFilter,
    JsonFormatter,
    bind_workflow,
    configure_logging,
    current_workflow_id,
    request_id_var,
    text_formatter,
)
from voiceowl.orchestration import AutoProgressionScheduler


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("voiceowl.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    CorrelationFilter().filter(record)
    return record


@pytest.fixture
def root_handler():
    """Install the service handler on a buffer and remove it afterwards."""
    root = logging.getLogger()
    level = root.level
    installed = []

    def _install(**kwargs):
        stream = io.StringIO()
        installed.append(configure_logging(stream=stream, **kwargs))
        return stream

    yield _install
    for handler in installed:
        root.removeHandler(handler)
    root.setLevel(level)


class TestCorrelation:
    def test_defaults_to_placeholder(self):
        record = _record()
        assert record.request_id == NO_ID
        assert record.workflow_id == NO_ID

    def test_bound_ids(self):
        wid = uuid.uuid4()
        token = request_id_var.set("req-1")
        try:
            with bind_workflow(wid):
                assert current_workflow_id() == str(wid)
                record = _record()
        finally:
            request_id_var.reset(token)
        assert record.request_id == "req-1"
        assert record.workflow_id == str(wid)
        assert current_workflow_id() is None

    def test_explicit_extra_wins(self):
        with bind_workflow("bound"):
            record = _record(workflow_id="explicit")
        assert record.workflow_id == "explicit"


class TestFormatters:
    def test_json_line(self):
        with bind_workflow("wf-9"):
            record = _record("Workflow %s", reviewed_by="ana", duration_ms=1.5)
        record.args = ("created",)
        payload = json.loads(JsonFormatter(service="svc", environment="production").format(record))
        assert payload["message"] == "Workflow created"
        assert payload["service"] == "svc"
        assert payload["environment"] == "production"
        assert payload["workflow_id"] == "wf-9"
        assert payload["reviewed_by"] == "ana"
        assert payload["duration_ms"] == 1.5
        assert "request_id" not in payload

    def test_json_stringifies_unserializable_extras(self):
        wid = uuid.uuid4()
        payload = json.loads(JsonFormatter().format(_record(record_ref=wid)))
        assert payload["record_ref"] == str(wid)

    def test_json_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "voiceowl.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )
        CorrelationFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in payload["exception"]

    def test_text_line_shows_ids(self):
        with bind_workflow("wf-1"):
            line = text_formatter().format(_record("moved"))
        assert "req=- wf=wf-1 moved" in line


class TestConfigureLogging:
    def test_production_writes_json(self, root_handler):
        stream = root_handler(environment="production", service="voiceowl-test")
        logging.getLogger("voiceowl.test").info("ready")
        line = stream.getvalue().strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "ready"
        assert payload["service"] == "voiceowl-test"

    def test_reconfigure_replaces_own_handler_only(self, root_handler):
        root = logging.getLogger()
        foreign = logging.NullHandler()
        root.addHandler(foreign)
        try:
            first = root_handler()
            second = root_handler(environment="production")
            logging.getLogger("voiceowl.test").warning("once")
            assert first.getvalue() == ""
            assert "once" in second.getvalue()
            assert foreign in root.handlers
        finally:
            root.removeHandler(foreign)

    def test_debug_overrides_level(self, root_handler):
        root_handler(log_level="ERROR", debug=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_quiets_sql_logging(self, root_handler):
        root_handler()
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestTimerContext:
    @pytest.mark.asyncio
    async def test_timer_callback_runs_bound_to_record(self):
        scheduler = AutoProgressionScheduler()
        record_id = uuid.uuid4()
        seen = []

        async def callback(rid):
            seen.append(current_workflow_id())

        task = scheduler.schedule(record_id, 0.0, callback)
        await task
        await scheduler.shutdown()
        assert seen == [str(record_id)]
