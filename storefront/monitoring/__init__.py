"""Monitoring and observability package."""
from .health import HealthCheck, HealthCheckError
from .logging import setup_logging
from .metrics import metrics, track_operation

__all__ = ["metrics", "track_operation", "setup_logging", "HealthCheck", "HealthCheckError"]
