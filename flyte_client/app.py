"""Run a pack until the process is asked to stop."""
from __future__ import annotations

import asyncio
import logging
import signal

from .pack import Pack

log = logging.getLogger("flyte_client")


async def run_async(pack: Pack, stop_event: asyncio.Event | None = None) -> None:
    await pack.start()
    if stop_event is None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows fallback
                pass

    await stop_event.wait()
    log.info("shutdown requested")
    await pack.close()


def run(pack: Pack, *, level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        asyncio.run(run_async(pack))
    except KeyboardInterrupt:
        pass
