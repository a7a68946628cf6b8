# SPDX-License-Identifier: Apache-2.0
"""Helpers for command handlers decoding action input."""
from __future__ import annotations

import json
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


def decode_input(raw: bytes | bytearray | str, into: Optional[Callable[..., T]] = None) -> Any:
    """Decode the raw JSON input of an action.

    When ``into`` is given and the input is a JSON object, it is called with the
    object's fields as keyword arguments, e.g. a dataclass.
    """
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    data = json.loads(raw) if raw else None
    if into is None:
        return data
    if not isinstance(data, dict):
        raise TypeError(f"cannot decode {type(data).__name__} input into {getattr(into, '__name__', into)}")
    return into(**data)
