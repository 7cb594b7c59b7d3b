"""
Observability for the attendance import pipeline.

Provides:
- Structured logging with correlation IDs
- In-memory metrics for runs, employees and days
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
)

from core.observability.logging import (
    CorrelationContext,
    configure_logging,
    get_correlation_context,
    get_logger,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    # Logging
    "CorrelationContext",
    "configure_logging",
    "get_correlation_context",
    "get_logger",
    "with_correlation",
]
