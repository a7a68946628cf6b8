# SPDX-License-Identifier: Apache-2.0
"""Pack-author facing definitions: commands, event definitions and events."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

FATAL_EVENT_NAME = "FATAL"


@dataclass(slots=True)
class EventDef:
    name: str
    help_url: Optional[str] = None


@dataclass(slots=True)
class Event:
    """Output of a command handler, or an event the pack observed on its own."""

    event_def: EventDef
    payload: Any = None

    @property
    def name(self) -> str:
        return self.event_def.name


CommandHandler = Callable[[bytes], Union[Event, Awaitable[Event]]]


@dataclass(slots=True)
class Command:
    name: str
    handler: CommandHandler
    output_events: List[EventDef] = field(default_factory=list)
    help_url: Optional[str] = None


@dataclass(slots=True)
class PackDef:
    name: str
    commands: List[Command] = field(default_factory=list)
    event_defs: List[EventDef] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
    help_url: Optional[str] = None


def new_fatal_event(payload: Any) -> Event:
    """Preferred way for handlers to report a failure they cannot recover from."""
    return Event(event_def=EventDef(name=FATAL_EVENT_NAME), payload=payload)


def is_fatal(event: Event) -> bool:
    return event.name == FATAL_EVENT_NAME
