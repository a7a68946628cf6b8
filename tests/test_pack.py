# SPDX-License-Identifier: Apache-2.0
"""Pack startup sequencing and observed events."""
from __future__ import annotations

import asyncio

import pytest

from flyte_client.api.data import WireEvent
from flyte_client.api.errors import ApiError
from flyte_client.config import ClientConfig
from flyte_client.messages import Command, Event, EventDef, PackDef
from flyte_client.pack import Pack, create_pack
from tests.fakes import FakeClient, make_action, wait_for

DONE = EventDef(name="Done")
OBSERVED = EventDef(name="Observed")


def _pack_def(commands=None) -> PackDef:
    if commands is None:
        commands = [Command(name="echo", handler=lambda raw: Event(event_def=DONE), output_events=[DONE])]
    return PackDef(name="TestPack", commands=commands, event_defs=[OBSERVED], labels={"env": "test"})


def _pack(client: FakeClient, pack_def: PackDef | None = None, **kwargs) -> Pack:
    kwargs.setdefault("register_retry_wait", 0)
    kwargs.setdefault("polling_interval", 0.01)
    kwargs.setdefault("start_health_check", False)
    return Pack(pack_def or _pack_def(), client, **kwargs)


@pytest.mark.asyncio
async def test_start_registers_pack_then_handles_actions():
    client = FakeClient([make_action("echo")])
    pack = _pack(client)
    await pack.start()
    try:
        await wait_for(lambda: client.completed)
    finally:
        await pack.close()

    assert pack.registered
    assert [p.name for p in client.packs] == ["TestPack"]
    assert client.packs[0].labels == {"env": "test"}
    assert client.completed[0][1].event == "Done"
    assert client.closed


@pytest.mark.asyncio
async def test_registration_is_retried_until_it_succeeds_before_polling_starts():
    client = FakeClient(create_failures=3)
    pack = _pack(client)
    await asyncio.wait_for(pack.start(), timeout=2)
    try:
        assert client.create_calls == 4
        assert client.take_calls_at_create == [0, 0, 0, 0]
        assert len(client.packs) == 1
        await wait_for(lambda: client.take_calls > 0)
    finally:
        await pack.close()


@pytest.mark.asyncio
async def test_start_does_not_return_while_registration_keeps_failing():
    client = FakeClient(create_failures=10_000)
    pack = _pack(client, register_retry_wait=0.01)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(pack.start(), timeout=0.2)

    assert client.create_calls > 1
    assert client.take_calls == 0
    assert not pack.registered


@pytest.mark.asyncio
async def test_pack_without_commands_registers_but_does_not_poll():
    client = FakeClient([make_action("echo")])
    pack = _pack(client, _pack_def(commands=[]))
    await pack.start()
    await asyncio.sleep(0.05)
    await pack.close()

    assert len(client.packs) == 1
    assert client.take_calls == 0


@pytest.mark.asyncio
async def test_send_event_posts_observed_event():
    client = FakeClient()
    pack = _pack(client)

    await pack.send_event(Event(event_def=OBSERVED, payload={"id": 7}))

    assert client.events == [WireEvent(event="Observed", payload={"id": 7})]


@pytest.mark.asyncio
async def test_send_event_raises_the_underlying_error_unchanged():
    client = FakeClient()
    error = ApiError("event not accepted")
    client.post_event_error = error
    pack = _pack(client)

    with pytest.raises(ApiError) as info:
        await pack.send_event(Event(event_def=OBSERVED, payload={"id": 7}))

    assert info.value is error
    assert client.events == []


@pytest.mark.asyncio
async def test_health_check_server_starts_after_registration():
    client = FakeClient()
    pack = _pack(client, start_health_check=True, health_port=0)
    await pack.start()
    try:
        assert pack.health_server.port != 0
    finally:
        await pack.close()


def test_create_pack_uses_configuration():
    config = ClientConfig(
        api_url="http://flyte:8080",
        labels={"env": "prod"},
        timeout_s=4,
        jwt="token",
        polling_interval_s=1.5,
        register_retry_wait_s=0.5,
        health_port=9000,
    )

    pack = create_pack(_pack_def(), config)

    assert pack.client.base_url == "http://flyte:8080/v1"
    assert pack.client.timeout == 4
    assert pack.client.jwt == "token"
    assert pack.labels == {"env": "prod"}
    assert pack.dispatcher.polling_interval == 1.5
    assert pack.register_retry_wait == 0.5
    assert pack.health_server.port == 9000
    assert len(pack.health_server.checks) == 2
