# SPDX-License-Identifier: Apache-2.0
"""Wire representations exchanged with the flyte api."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .errors import LinkNotFoundError

_WHITESPACE = re.compile(r"[ \t\n\r]*")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


_STRICT = json.JSONDecoder(parse_constant=_reject_constant)


def _skip(text: str, idx: int) -> int:
    return _WHITESPACE.match(text, idx).end()


def raw_members(text: str) -> Dict[str, str]:
    """Split a JSON object document into the untouched source text of each member value."""
    idx = _skip(text, 0)
    if text[idx : idx + 1] != "{":
        raise ValueError("expected a JSON object")
    idx = _skip(text, idx + 1)
    members: Dict[str, str] = {}
    if text[idx : idx + 1] == "}":
        idx += 1
    else:
        while True:
            if text[idx : idx + 1] != '"':
                raise ValueError(f"expected a member name at offset {idx}")
            key, idx = _STRICT.raw_decode(text, idx)
            idx = _skip(text, idx)
            if text[idx : idx + 1] != ":":
                raise ValueError(f"expected ':' at offset {idx}")
            idx = _skip(text, idx + 1)
            _, end = _STRICT.raw_decode(text, idx)
            members[key] = text[idx:end]
            idx = _skip(text, end)
            separator = text[idx : idx + 1]
            idx = _skip(text, idx + 1)
            if separator == "}":
                break
            if separator != ",":
                raise ValueError(f"expected ',' or '}}' at offset {idx}")
    if _skip(text, idx) != len(text):
        raise ValueError("trailing data after JSON object")
    return members


@dataclass(slots=True)
class Link:
    href: str
    rel: str

    def to_dict(self) -> Dict[str, str]:
        return {"href": self.href, "rel": self.rel}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Link":
        return cls(href=data.get("href", ""), rel=data.get("rel", ""))


def parse_links(items: Optional[Iterable[Dict[str, Any]]]) -> List[Link]:
    return [Link.from_dict(item) for item in items or []]


def find_url_by_rel(links: Iterable[Link], rel: str) -> str:
    """Return the href of the first link whose rel ends with ``rel``."""
    links = list(links)
    for link in links:
        if link.rel.endswith(rel):
            return link.href
    raise LinkNotFoundError(f"could not find link with rel {rel!r} in {links}")


@dataclass(slots=True)
class WireEvent:
    event: str
    payload: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event, "payload": self.payload}


@dataclass(slots=True)
class WireEventDef:
    name: str
    links: List[Link] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.links:
            data["links"] = [link.to_dict() for link in self.links]
        return data


@dataclass(slots=True)
class WireCommand:
    name: str
    events: List[str] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "events": list(self.events)}
        if self.links:
            data["links"] = [link.to_dict() for link in self.links]
        return data


@dataclass(slots=True)
class WirePack:
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    events: List[WireEventDef] = field(default_factory=list)
    commands: List[WireCommand] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "events": [event.to_dict() for event in self.events],
            "links": [link.to_dict() for link in self.links],
        }
        if self.labels:
            data["labels"] = dict(self.labels)
        if self.commands:
            data["commands"] = [command.to_dict() for command in self.commands]
        return data


@dataclass(slots=True)
class Action:
    """A unit of work handed out by the server.

    ``input`` stays as raw JSON bytes; decoding is left to the command handler.
    """

    command: str
    input: bytes = b"null"
    links: List[Link] = field(default_factory=list)

    @classmethod
    def from_json(cls, text: str) -> "Action":
        """Decode an action document, keeping the input exactly as the server sent it."""
        members = raw_members(text)
        links = _STRICT.decode(members["links"]) if "links" in members else None
        command = _STRICT.decode(members["command"]) if "command" in members else ""
        if not isinstance(command, str):
            raise ValueError(f"action command must be a string, got {command!r}")
        if links is not None and not isinstance(links, list):
            raise ValueError(f"action links must be a list, got {links!r}")
        return cls(
            command=command,
            input=members.get("input", "null").encode("utf-8"),
            links=parse_links(links),
        )

    def result_url(self) -> str:
        return find_url_by_rel(self.links, "actionResult")
