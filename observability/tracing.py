"""Optional tracing using Logfire/OpenTelemetry.

When enabled, each ingestion run becomes a span with its stage counts
attached, and outgoing aiohttp requests (feed fetches, webhooks) are
instrumented as child spans.

Requirements:
    pip install logfire

Enable via configuration:
    ENABLE_LOGFIRE=true
    LOGFIRE_TOKEN=your-token  # Optional for cloud dashboard

Usage:
    >>> from observability.tracing import setup_tracing, trace_operation
    >>> setup_tracing(enabled=True, service_name="prism")
    >>> with trace_operation("cluster", {"articles": 120}) as attrs:
    ...     attrs["clusters"] = 7
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generator

logger = logging.getLogger(__name__)


@dataclass
class TracingContext:
    """Process-wide tracing state."""
    enabled: bool = False
    service_name: str = "prism"
    token: str = ""
    _logfire_configured: bool = field(default=False, init=False)


_context = TracingContext()


def setup_tracing(
    enabled: bool = False,
    service_name: str = "prism",
    token: str = "",
) -> TracingContext:
    """Configure Logfire and instrument the aiohttp client.

    Tracing is silently disabled (with a warning) when logfire is not
    installed or fails to configure.
    """
    _context.enabled = enabled
    _context.service_name = service_name
    _context.token = token

    if not enabled:
        logger.debug("Tracing disabled")
        return _context

    try:
        import logfire

        logfire.configure(service_name=service_name, token=token or None)
        logfire.instrument_aiohttp_client()

        _context._logfire_configured = True
        logger.info("Logfire tracing enabled | service=%s", service_name)

    except ImportError:
        logger.warning("Logfire not installed. Tracing disabled.")
        _context.enabled = False
    except Exception as e:
        logger.error("Failed to configure Logfire: %s", e)
        _context.enabled = False

    return _context


@contextmanager
def trace_operation(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[dict[str, Any], None, None]:
    """Span around an operation; a no-op when tracing is disabled.

    Yields:
        Dict whose entries are attached to the span when the block exits
    """
    start_time = datetime.now()
    result_attrs: dict[str, Any] = {}

    try:
        if _context.enabled and _context._logfire_configured:
            import logfire

            with logfire.span(name, **(attributes or {})) as span:
                yield result_attrs
                for key, value in result_attrs.items():
                    span.set_attribute(key, value)
        else:
            yield result_attrs
    finally:
        duration = (datetime.now() - start_time).total_seconds()
        logger.debug("Operation '%s' completed in %.2fs", name, duration)
