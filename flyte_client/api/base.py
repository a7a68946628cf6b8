# SPDX-License-Identifier: Apache-2.0
"""Contract for clients talking to the flyte api."""
from __future__ import annotations

import abc
from typing import Optional

from .data import Action, WireEvent, WirePack


class RemoteClient(abc.ABC):
    @abc.abstractmethod
    async def create_pack(self, pack: WirePack) -> None:
        """Register the pack; afterwards events can be posted and actions taken."""

    @abc.abstractmethod
    async def post_event(self, event: WireEvent) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def take_action(self) -> Optional[Action]:
        """Return the next pending action, or ``None`` if nothing is pending.

        Raises ``PackNotFoundError`` once the registration is gone.
        """

    @abc.abstractmethod
    async def complete_action(self, action: Action, event: WireEvent) -> None:
        raise NotImplementedError

    async def health_check_url(self) -> str:  # pragma: no cover - optional
        raise NotImplementedError

    async def close(self) -> None:
        """Optional teardown."""
