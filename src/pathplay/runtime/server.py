from __future__ import annotations

import contextlib
import logging
import socket
import threading
import time
from dataclasses import dataclass

import uvicorn

from ..core.settings import PlaybackSettings
from .app import create_app

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathplayServer:
    host: str
    port: int
    url: str
    server: uvicorn.Server
    thread: threading.Thread

    def stop(self, *, timeout_s: float = 5.0) -> None:
        self.server.should_exit = True
        self.thread.join(timeout=timeout_s)


def _find_free_port(host: str) -> int:
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind((host, 0))
        return int(s.getsockname()[1])


def run(
    *,
    host: str = "127.0.0.1",
    port: int = 0,
    settings: PlaybackSettings | None = None,
    live: bool = True,
    log_level: str = "info",
    access_log: bool = False,
) -> PathplayServer:
    """Start the playback API in a background thread.

    Notes:
    - `port=0` means "pick a free port".
    - Uvicorn's per-request access log is off by default because renderers poll
      `/api/playback/positions` every tick.
    """

    if port == 0:
        port = _find_free_port(host)

    app = create_app(settings, live=live)

    config = uvicorn.Config(app, host=host, port=port, log_level=log_level, access_log=access_log)
    server = uvicorn.Server(config)

    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    # Give it a moment so a subsequent client probe doesn't race with startup.
    time.sleep(0.05)

    url = f"http://{host}:{port}/"
    logger.info("pathplay serving on %s", url)
    return PathplayServer(host=host, port=port, url=url, server=server, thread=thread)
