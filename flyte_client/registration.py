# SPDX-License-Identifier: Apache-2.0
"""Conversion of a pack definition into its registration document."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .api.data import Link, WireCommand, WireEventDef, WirePack
from .messages import Command, EventDef, PackDef

HELP_REL = "help"


def _help_links(url: Optional[str]) -> List[Link]:
    return [Link(href=url, rel=HELP_REL)] if url else []


def _add_event_defs(event_defs: Iterable[EventDef], seen: Dict[str, WireEventDef]) -> List[str]:
    names = []
    for event_def in event_defs:
        seen[event_def.name] = WireEventDef(name=event_def.name, links=_help_links(event_def.help_url))
        names.append(event_def.name)
    return names


def convert_commands(commands: Iterable[Command], seen: Dict[str, WireEventDef]) -> List[WireCommand]:
    return [
        WireCommand(
            name=command.name,
            events=_add_event_defs(command.output_events, seen),
            links=_help_links(command.help_url),
        )
        for command in commands
    ]


def to_wire_pack(pack_def: PackDef, labels: Optional[Dict[str, str]] = None) -> WirePack:
    """Build the registration document.

    Event definitions are the union, keyed by name, of the pack's own event
    definitions and every command's output events; the pack's own definitions
    take precedence.
    """
    seen: Dict[str, WireEventDef] = {}
    commands = convert_commands(pack_def.commands, seen)
    _add_event_defs(pack_def.event_defs, seen)
    return WirePack(
        name=pack_def.name,
        labels={**pack_def.labels, **(labels or {})},
        events=list(seen.values()),
        commands=commands,
        links=_help_links(pack_def.help_url),
    )
