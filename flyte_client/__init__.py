# SPDX-License-Identifier: Apache-2.0
"""Client library for writing flyte packs."""
from __future__ import annotations

from .app import run
from .config import ClientConfig, ConfigError, from_environment, load_config
from .dispatcher import ActionDispatcher
from .messages import FATAL_EVENT_NAME, Command, Event, EventDef, PackDef, new_fatal_event
from .pack import Pack, create_pack
from .serialization import decode_input

__all__ = [
    "ActionDispatcher",
    "ClientConfig",
    "Command",
    "ConfigError",
    "Event",
    "EventDef",
    "FATAL_EVENT_NAME",
    "Pack",
    "PackDef",
    "create_pack",
    "decode_input",
    "from_environment",
    "load_config",
    "new_fatal_event",
    "run",
]
