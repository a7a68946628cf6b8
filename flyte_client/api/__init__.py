"""Remote endpoint client for the flyte api."""
from __future__ import annotations

from .base import RemoteClient
from .data import Action, Link, WireCommand, WireEvent, WireEventDef, WirePack, find_url_by_rel
from .errors import ApiError, LinkNotFoundError, PackNotFoundError
from .http import HttpClient

__all__ = [
    "Action",
    "ApiError",
    "HttpClient",
    "Link",
    "LinkNotFoundError",
    "PackNotFoundError",
    "RemoteClient",
    "WireCommand",
    "WireEvent",
    "WireEventDef",
    "WirePack",
    "find_url_by_rel",
]
