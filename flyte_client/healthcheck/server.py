# SPDX-License-Identifier: Apache-2.0
"""HTTP server reporting pack health checks and Prometheus metrics."""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Sequence, Tuple, Union

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

log = logging.getLogger(__name__)

DEFAULT_PORT = 8090


@dataclass(slots=True)
class Health:
    healthy: bool
    status: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"healthy": self.healthy, "status": self.status}


HealthResult = Tuple[str, Health]
HealthCheck = Callable[[], Union[HealthResult, Awaitable[HealthResult]]]


async def run_checks(checks: Sequence[HealthCheck]) -> Dict[str, Health]:
    results: Dict[str, Health] = {}
    for idx, check in enumerate(checks):
        try:
            outcome = check()
            if inspect.isawaitable(outcome):
                outcome = await outcome
            name, health = outcome
        except Exception as exc:
            name = getattr(check, "__name__", f"check-{idx}")
            log.exception("health check %s failed", name)
            health = Health(healthy=False, status=str(exc))
        results[name] = health
    return results


class HealthCheckServer:
    """Serves ``GET /`` with the result of every check and ``GET /metrics``.

    ``/`` answers 200 when all checks are healthy (or none are registered) and
    500 otherwise.
    """

    def __init__(self, checks: Sequence[HealthCheck], *, host: str = "0.0.0.0", port: int = DEFAULT_PORT):
        self.checks: List[HealthCheck] = list(checks)
        self.host = host
        self._port = port
        self._runner: web.AppRunner | None = None

    @property
    def port(self) -> int:
        if not self._runner or not self._runner.addresses:
            return self._port
        return self._runner.addresses[0][1]

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self._handle_health)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self) -> None:
        if self._runner is not None:
            return
        runner = web.AppRunner(self.build_app())
        await runner.setup()
        site = web.TCPSite(runner, self.host, self._port)
        await site.start()
        self._runner = runner
        log.info("health check server listening on %s:%s", self.host, self.port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    async def _handle_health(self, request: web.Request) -> web.Response:
        if not self.checks:
            log.info("no health checks registered")
            return web.Response(status=200)
        results = await run_checks(self.checks)
        status = 200 if all(health.healthy for health in results.values()) else 500
        return web.json_response({name: health.to_dict() for name, health in results.items()}, status=status)

    async def _handle_metrics(self, request: web.Request) -> web.Response:
        return web.Response(body=generate_latest(), headers={"Content-Type": CONTENT_TYPE_LATEST})
