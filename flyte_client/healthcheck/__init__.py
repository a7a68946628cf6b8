"""Pack health-check server and checks."""
from __future__ import annotations

from .checks import default_check, flyte_api_check, flyte_api_health_check
from .server import DEFAULT_PORT, Health, HealthCheck, HealthCheckServer

__all__ = [
    "DEFAULT_PORT",
    "Health",
    "HealthCheck",
    "HealthCheckServer",
    "default_check",
    "flyte_api_check",
    "flyte_api_health_check",
]
