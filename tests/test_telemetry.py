"""Tests for telemetry setup and advisor spans."""

import logging
from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from slc_advisor.telemetry import (
    TelemetryConfig,
    init_telemetry,
    is_telemetry_enabled,
    record_error,
    shutdown_telemetry,
    tool_span,
    turn_span,
)
from slc_advisor.telemetry.config import ExporterType


@pytest.fixture
def exporter():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    with patch("slc_advisor.telemetry.spans.get_tracer", return_value=provider.get_tracer("test")):
        yield exporter


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    shutdown_telemetry()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestTelemetryConfig:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("OTEL_TRACES_EXPORTER", "console")
        config = TelemetryConfig.from_env()
        assert config.log_level == "DEBUG"
        assert config.traces_exporter is ExporterType.CONSOLE

    def test_unknown_exporter_disables_export(self, monkeypatch):
        monkeypatch.setenv("OTEL_TRACES_EXPORTER", "zipkin")
        assert TelemetryConfig.from_env().traces_exporter is ExporterType.NONE

    def test_init_without_export(self, restore_logging):
        init_telemetry(TelemetryConfig(log_level="WARNING"))
        assert logging.getLogger("slc_advisor").level == logging.WARNING
        assert is_telemetry_enabled() is False


class TestSpans:
    def test_turn_span_attributes(self, exporter):
        with turn_span("canvas-1", "Hello", thread_id="t1"):
            pass

        (span,) = exporter.get_finished_spans()
        assert span.name == "turn"
        assert span.attributes["canvas.id"] == "canvas-1"
        assert span.attributes["turn.message_length"] == 5
        assert span.status.status_code is StatusCode.OK

    def test_tool_span_records_failure(self, exporter):
        with pytest.raises(RuntimeError):
            with tool_span("update_purpose", modifies_canvas=True):
                raise RuntimeError("disk full")

        (span,) = exporter.get_finished_spans()
        assert span.name == "tool:update_purpose"
        assert span.attributes["tool.modifies_canvas"] is True
        assert span.status.status_code is StatusCode.ERROR

    def test_record_error(self, exporter):
        with turn_span("canvas-1", "Hi") as span:
            record_error(span, ValueError("bad input"))

        (finished,) = exporter.get_finished_spans()
        assert finished.attributes["error.type"] == "ValueError"
        assert finished.attributes["error.message"] == "bad input"
