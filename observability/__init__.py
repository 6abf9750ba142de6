"""Logging and optional tracing.

setup_logging / set_run_context / clear_context:
    Console + rotating file logging with run ID propagation.

setup_tracing / trace_operation:
    Optional Logfire spans (ENABLE_LOGFIRE=true, pip install logfire).

Example:
    >>> from observability import setup_tracing, trace_operation
    >>> setup_tracing(enabled=True, service_name="prism")
    >>> with trace_operation("fetch_feeds"):
    ...     pass
"""

from observability.logging import clear_context, set_run_context, setup_logging
from observability.tracing import TracingContext, setup_tracing, trace_operation

__all__ = [
    "setup_logging",
    "set_run_context",
    "clear_context",
    "setup_tracing",
    "trace_operation",
    "TracingContext",
]
