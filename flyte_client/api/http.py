# SPDX-License-Identifier: Apache-2.0
"""aiohttp implementation of the flyte api client."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .base import RemoteClient
from .data import Action, Link, WireEvent, WirePack, find_url_by_rel, parse_links
from .errors import ApiError, PackNotFoundError

log = logging.getLogger(__name__)

API_VERSION = "v1"


class HttpClient(RemoteClient):
    def __init__(self, api_url: str, *, timeout: float = 10.0, jwt: str | None = None, insecure: bool = False):
        self.base_url = f"{api_url.rstrip('/')}/{API_VERSION}"
        self.timeout = timeout
        self.jwt = jwt
        self.insecure = insecure
        self.events_url: str | None = None
        self.take_action_url: str | None = None
        self._api_links: Dict[str, List[Link]] | None = None
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()

    async def _ensure(self) -> aiohttp.ClientSession:
        async with self._lock:
            if self._session is not None:
                return self._session
            # aiohttp treats a zero total timeout as no timeout
            timeout = aiohttp.ClientTimeout(total=self.timeout or None)
            connector = aiohttp.TCPConnector(ssl=False) if self.insecure else None
            self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
            return self._session

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.jwt:
            headers["Authorization"] = f"Bearer {self.jwt}"
        return headers

    async def _post(self, url: str, body: Any) -> tuple[int, str]:
        session = await self._ensure()
        data = json.dumps(body).encode("utf-8")
        try:
            async with session.post(url, data=data, headers=self._headers()) as resp:
                return resp.status, await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ApiError(f"error posting to {url}: {exc!r}") from exc

    async def _get_json(self, url: str) -> Any:
        session = await self._ensure()
        try:
            async with session.get(url, headers=self._headers()) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise ApiError(f"error getting {url}: status={resp.status} body={body[:200]}")
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ApiError(f"error getting {url}: {exc!r}") from exc

    async def api_links(self) -> Dict[str, List[Link]]:
        if self._api_links is None:
            raw = await self._get_json(self.base_url)
            if not isinstance(raw, dict):
                raise ApiError(f"unexpected api links document from {self.base_url}: {raw!r}")
            self._api_links = {key: parse_links(value) for key, value in raw.items() if isinstance(value, list)}
            log.debug("fetched api links from %s", self.base_url)
        return self._api_links

    async def create_pack(self, pack: WirePack) -> None:
        links = await self.api_links()
        packs_url = find_url_by_rel(links.get("links", []), "pack/listPacks")
        status, body = await self._post(packs_url, pack.to_dict())
        if status != 201:
            raise ApiError(f"pack {pack.name} not created, status={status} body={body[:200]}")
        try:
            registered_pack = json.loads(body)
        except ValueError as exc:
            raise ApiError(f"could not deserialise pack registration response: {body[:200]!r}") from exc
        if not isinstance(registered_pack, dict):
            raise ApiError(f"could not deserialise pack registration response: {body[:200]!r}")
        registered = parse_links(registered_pack.get("links"))
        self.events_url = find_url_by_rel(registered, "event")
        self.take_action_url = find_url_by_rel(registered, "takeAction")
        log.info("registered pack %s at %s", pack.name, packs_url)

    async def post_event(self, event: WireEvent) -> None:
        if self.events_url is None:
            raise ApiError("events url not initialised - the pack must be registered first")
        status, body = await self._post(self.events_url, event.to_dict())
        if status != 202:
            raise ApiError(f"event {event.event} not accepted, status={status} body={body[:200]}")

    async def take_action(self) -> Optional[Action]:
        if self.take_action_url is None:
            raise ApiError("take action url not initialised - the pack must be registered first")
        status, body = await self._post(self.take_action_url, None)
        if status == 200:
            try:
                return Action.from_json(body)
            except ValueError as exc:
                raise ApiError(f"could not deserialise action: {exc}") from exc
        if status == 204:
            return None
        if status == 404:
            raise PackNotFoundError(f"resource not found at {self.take_action_url}")
        raise ApiError(f"error taking action from {self.take_action_url}, status={status} body={body[:200]}")

    async def complete_action(self, action: Action, event: WireEvent) -> None:
        result_url = action.result_url()
        status, body = await self._post(result_url, event.to_dict())
        if status != 202:
            raise ApiError(
                f"action result {event.event} not processed by {result_url}, status={status} body={body[:200]}"
            )

    async def health_check_url(self) -> str:
        links = await self.api_links()
        return find_url_by_rel(links.get("links", []), "info/health")

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None
