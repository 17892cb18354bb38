"""OpenTelemetry instrumentation and observability utilities."""

from party_planner.observability.config import configure_logging, setup_observability
from party_planner.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
