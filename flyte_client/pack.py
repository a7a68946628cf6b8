# SPDX-License-Identifier: Apache-2.0
"""Pack runtime: registration, action handling and observed events."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Sequence

from .api.base import RemoteClient
from .api.data import WireEvent
from .api.http import HttpClient
from .config import ClientConfig, from_environment
from .dispatcher import DEFAULT_POLLING_INTERVAL, ActionDispatcher, FatalHook
from .healthcheck import DEFAULT_PORT, HealthCheck, HealthCheckServer, default_check, flyte_api_check
from .messages import Event, PackDef
from .metrics import REGISTRATION_ATTEMPTS
from .registration import to_wire_pack

log = logging.getLogger(__name__)

DEFAULT_REGISTER_RETRY_WAIT = 3.0


class Pack:
    def __init__(
        self,
        pack_def: PackDef,
        client: RemoteClient,
        health_checks: Sequence[HealthCheck] = (),
        *,
        labels: Optional[Dict[str, str]] = None,
        polling_interval: float = DEFAULT_POLLING_INTERVAL,
        register_retry_wait: float = DEFAULT_REGISTER_RETRY_WAIT,
        start_health_check: bool = True,
        health_port: int = DEFAULT_PORT,
        on_fatal: Optional[FatalHook] = None,
    ):
        self.pack_def = pack_def
        self.client = client
        self.labels = labels or {}
        self.register_retry_wait = register_retry_wait
        self.start_health_check = start_health_check
        self.dispatcher = ActionDispatcher(client, polling_interval=polling_interval, on_fatal=on_fatal)
        self.health_server = HealthCheckServer(list(health_checks) or [default_check], port=health_port)
        self.registered = False

    async def register(self) -> None:
        await self.client.create_pack(to_wire_pack(self.pack_def, self.labels))

    async def start(self) -> None:
        """Register with the flyte api, retrying until it succeeds, then start handling actions."""
        attempt = 0
        while True:
            attempt += 1
            try:
                await self.register()
            except Exception as exc:
                REGISTRATION_ATTEMPTS.labels("error").inc()
                log.error(
                    "cannot register pack %s (attempt %d): %s; retrying in %ss",
                    self.pack_def.name,
                    attempt,
                    exc,
                    self.register_retry_wait,
                )
                await asyncio.sleep(self.register_retry_wait)
                continue
            REGISTRATION_ATTEMPTS.labels("ok").inc()
            break
        self.registered = True
        log.info("pack %s registered after %d attempt(s)", self.pack_def.name, attempt)
        self.dispatcher.start(self.pack_def.commands)
        if self.start_health_check:
            await self.health_server.start()

    async def send_event(self, event: Event) -> None:
        """Send an observed event. Errors from the flyte api are raised unchanged."""
        await self.client.post_event(WireEvent(event=event.name, payload=event.payload))

    async def close(self) -> None:
        await self.dispatcher.stop()
        await self.health_server.stop()
        await self.client.close()


def create_pack(
    pack_def: PackDef,
    config: Optional[ClientConfig] = None,
    health_checks: Sequence[HealthCheck] = (),
    **kwargs,
) -> Pack:
    """Build a pack talking to the flyte api described by ``config`` (the environment by default)."""
    cfg = config or from_environment()
    client = HttpClient(cfg.api_url, timeout=cfg.timeout_s, jwt=cfg.jwt, insecure=cfg.insecure)
    checks = list(health_checks) or [default_check]
    checks.append(flyte_api_check(client))
    kwargs.setdefault("polling_interval", cfg.polling_interval_s)
    kwargs.setdefault("register_retry_wait", cfg.register_retry_wait_s)
    kwargs.setdefault("health_port", cfg.health_port)
    return Pack(pack_def, client, checks, labels=cfg.labels, **kwargs)
