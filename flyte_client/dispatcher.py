# SPDX-License-Identifier: Apache-2.0
"""Action polling loop and per-action command execution."""
from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import time
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Tuple

from .api.base import RemoteClient
from .api.data import Action, WireEvent
from .api.errors import PackNotFoundError
from .messages import Command, CommandHandler, Event, is_fatal, new_fatal_event
from .metrics import ACTIONS_COMPLETED, ACTIONS_TAKEN, COMPLETION_FAILURES, HANDLER_LATENCY, POLL_ERRORS

log = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL = 5.0

# metric label for commands with no registered handler
UNKNOWN_COMMAND = "<unknown>"

FatalHook = Callable[[Exception], None]


def exit_process(exc: Exception) -> None:
    raise SystemExit(1) from exc


class ActionDispatcher:
    """Takes actions from the flyte api one at a time and runs each in its own task.

    A failing handler only ever affects its own action: it is completed with a
    fatal event and polling carries on. The only thing that stops polling is the
    pack registration disappearing, which is handed to ``on_fatal``.
    """

    def __init__(
        self,
        client: RemoteClient,
        *,
        polling_interval: float = DEFAULT_POLLING_INTERVAL,
        on_fatal: Optional[FatalHook] = None,
    ):
        self.client = client
        self.polling_interval = polling_interval
        self._on_fatal = on_fatal or exit_process
        self._handlers: Mapping[str, CommandHandler] = MappingProxyType({})
        self._task: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def handlers(self) -> Mapping[str, CommandHandler]:
        return self._handlers

    @property
    def in_flight(self) -> frozenset[asyncio.Task]:
        return frozenset(self._inflight)

    @property
    def polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, commands: Iterable[Command]) -> Optional[asyncio.Task]:
        if self._task is not None:
            return self._task
        self._handlers = MappingProxyType({command.name: command.handler for command in commands})
        if not self._handlers:
            log.info("pack declares no commands; not polling for actions")
            return None
        self._task = asyncio.create_task(self._run(), name="action-poller")
        log.info("polling for actions for %d commands: %s", len(self._handlers), ", ".join(self._handlers))
        return self._task

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            action = await self.get_next_action()
            if action is None:
                return
            self.dispatch(action)

    def dispatch(self, action: Action) -> asyncio.Task:
        task = asyncio.create_task(self.handle_action(action), name=f"action-{action.command}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def get_next_action(self) -> Optional[Action]:
        """Poll until an action is available.

        Returns ``None`` only when the pack registration is gone, after the
        fatal hook has run.
        """
        while True:
            try:
                action = await self.client.take_action()
            except PackNotFoundError as exc:
                log.critical("pack not found while polling for actions, exiting: %s", exc)
                self._on_fatal(exc)
                return None
            except Exception as exc:
                POLL_ERRORS.inc()
                log.warning("could not take action: %s", exc)
                await asyncio.sleep(self.polling_interval)
                continue
            if action is None:
                await asyncio.sleep(self.polling_interval)
                continue
            ACTIONS_TAKEN.inc()
            log.debug("took action for command %s", action.command)
            return action

    async def handle_action(self, action: Action) -> None:
        handler = self._handlers.get(action.command)
        if handler is None:
            message = f"no handler could be found for command {action.command!r} in {sorted(self._handlers)}"
            log.error(message)
            await self.complete_action(action, new_fatal_event(message), outcome="no_handler", label=UNKNOWN_COMMAND)
            return
        event, outcome = await self._invoke(handler, action)
        await self.complete_action(action, event, outcome=outcome)

    async def _invoke(self, handler: CommandHandler, action: Action) -> Tuple[Event, str]:
        start = time.perf_counter()
        try:
            if inspect.iscoroutinefunction(handler):
                result = await handler(action.input)
            else:
                result = await asyncio.to_thread(handler, action.input)
                if inspect.isawaitable(result):
                    result = await result
        except (asyncio.CancelledError, KeyboardInterrupt):
            raise
        except BaseException as exc:
            log.warning("command handler for %r raised: %s", action.command, exc, exc_info=True)
            return new_fatal_event(str(exc)), "fatal"
        finally:
            HANDLER_LATENCY.labels(action.command).observe((time.perf_counter() - start) * 1000)
        if not isinstance(result, Event):
            message = f"command handler for {action.command!r} returned {type(result).__name__}, expected an Event"
            log.error(message)
            return new_fatal_event(message), "fatal"
        return result, "fatal" if is_fatal(result) else "event"

    async def complete_action(
        self, action: Action, event: Event, *, outcome: str = "event", label: Optional[str] = None
    ) -> None:
        label = label or action.command
        wire_event = WireEvent(event=event.name, payload=event.payload)
        try:
            await self.client.complete_action(action, wire_event)
        except Exception as exc:
            COMPLETION_FAILURES.labels(label).inc()
            log.error("could not complete action %s with event %s: %s", action.command, event.name, exc)
            return
        ACTIONS_COMPLETED.labels(label, outcome).inc()
