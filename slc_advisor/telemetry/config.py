"""Telemetry configuration and initialization.

Reads logging and tracing settings from the environment, configures the
root logger, and wires Strands' OpenTelemetry support when it is enabled.
"""

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

_telemetry_initialized = False
_strands_telemetry = None

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_NOISY_LOGGERS = ("urllib3", "botocore", "boto3", "httpx", "lancedb")


class ExporterType(Enum):
    """Supported trace exporters."""

    OTLP = "otlp"
    CONSOLE = "console"
    NONE = "none"


@dataclass
class TelemetryConfig:
    """Configuration for logging and tracing."""

    log_level: str = "INFO"
    service_name: str = "slc-advisor"
    otlp_endpoint: str = "http://localhost:4317"
    traces_exporter: ExporterType = ExporterType.NONE
    otel_disabled: bool = False

    @classmethod
    def from_env(cls) -> "TelemetryConfig":
        """Create config from environment variables."""
        exporter_str = os.getenv("OTEL_TRACES_EXPORTER", "none").lower()
        try:
            exporter = ExporterType(exporter_str)
        except ValueError:
            logger.warning(f"Unknown exporter type '{exporter_str}', disabling trace export")
            exporter = ExporterType.NONE

        otel_disabled = os.getenv("OTEL_SDK_DISABLED", "false").lower() in ("true", "1", "yes")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            service_name=os.getenv("OTEL_SERVICE_NAME", "slc-advisor"),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"),
            traces_exporter=exporter,
            otel_disabled=otel_disabled,
        )


def _setup_logging(config: TelemetryConfig) -> None:
    """Configure the root logger with a single structured console handler."""
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(console_handler)

    logging.getLogger("strands").setLevel(level)
    logging.getLogger("slc_advisor").setLevel(level)

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("opentelemetry.context").setLevel(logging.CRITICAL)

    logger.info(f"Logging configured: level={config.log_level}")


def _setup_strands_telemetry(config: TelemetryConfig) -> Any:
    """Initialize Strands telemetry with an OpenTelemetry tracer provider.

    Returns the StrandsTelemetry instance, or None when tracing is disabled
    or unavailable.
    """
    if config.otel_disabled or config.traces_exporter == ExporterType.NONE:
        logger.info("Trace export disabled")
        return None

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import SERVICE_NAME, Resource
        from opentelemetry.sdk.trace import TracerProvider
        from strands.telemetry import StrandsTelemetry
    except ImportError:
        logger.warning("OpenTelemetry SDK not available; install 'strands-agents[otel]'")
        return None

    try:
        tracer_provider = TracerProvider(resource=Resource.create({SERVICE_NAME: config.service_name}))
        trace.set_tracer_provider(tracer_provider)
        telemetry = StrandsTelemetry(tracer_provider=tracer_provider)

        if config.traces_exporter == ExporterType.OTLP:
            telemetry.setup_otlp_exporter(endpoint=config.otlp_endpoint)
            logger.info(f"OTLP exporter configured: endpoint={config.otlp_endpoint}")
        elif config.traces_exporter == ExporterType.CONSOLE:
            telemetry.setup_console_exporter()
            logger.info("Console exporter configured")

        return telemetry
    except Exception as e:
        logger.warning(f"Failed to initialize OpenTelemetry: {e}")
        return None


def init_telemetry(config: TelemetryConfig | None = None) -> None:
    """Initialize logging and tracing once per process.

    Args:
        config: Optional configuration. If not provided, reads from environment.
    """
    global _telemetry_initialized, _strands_telemetry

    if _telemetry_initialized:
        logger.debug("Telemetry already initialized, skipping")
        return

    if config is None:
        config = TelemetryConfig.from_env()

    _setup_logging(config)
    _strands_telemetry = _setup_strands_telemetry(config)
    _telemetry_initialized = True

    logger.info(
        f"Telemetry initialized: service={config.service_name}, "
        f"exporter={config.traces_exporter.value}, otel_disabled={config.otel_disabled}"
    )


def shutdown_telemetry() -> None:
    """Reset telemetry state so a later init_telemetry() reconfigures."""
    global _telemetry_initialized, _strands_telemetry

    if not _telemetry_initialized:
        return

    _telemetry_initialized = False
    _strands_telemetry = None
    logger.info("Telemetry shutdown complete")


def is_telemetry_enabled() -> bool:
    """Check if tracing is initialized and exporting."""
    return _telemetry_initialized and _strands_telemetry is not None
