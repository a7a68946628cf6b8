# SPDX-License-Identifier: Apache-2.0
"""Built-in health checks."""
from __future__ import annotations

import asyncio

import aiohttp

from flyte_client.api.base import RemoteClient

from .server import Health, HealthCheck, HealthResult

FLYTE_API_CHECK_TIMEOUT = 5.0


def default_check() -> HealthResult:
    return "DefaultCheck", Health(healthy=True, status="Pack is running.")


async def flyte_api_health_check(client: RemoteClient) -> Health:
    """Report on reachability of the flyte api.

    Always healthy: an unreachable api is reported in the status but does not
    mark the pack itself as unhealthy.
    """
    try:
        url = await client.health_check_url()
    except Exception as exc:
        return Health(
            healthy=True,
            status=f"cannot perform flyte-api healthcheck. error getting flyte-api healthcheck url. error: '{exc}'",
        )
    timeout = aiohttp.ClientTimeout(total=FLYTE_API_CHECK_TIMEOUT)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as resp:
                status = resp.status
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        return Health(healthy=True, status=f"error in http call to flyte-api: '{exc!r}'. url: '{url}'")
    if status != 200:
        return Health(
            healthy=True,
            status=f"flyte-api is not responding as expected. http status: '{status}'. url: '{url}'",
        )
    return Health(healthy=True, status=f"flyte-api is up and responding to requests. url: '{url}'")


def flyte_api_check(client: RemoteClient) -> HealthCheck:
    async def check() -> HealthResult:
        return "FlyteApiCheck", await flyte_api_health_check(client)

    return check
