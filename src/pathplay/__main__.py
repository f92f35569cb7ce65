from __future__ import annotations

import argparse
import logging
import sys

from .core.settings import PlaybackSettings
from .runtime.server import run


def main() -> None:
    p = argparse.ArgumentParser(prog="pathplay", description="pathplay: position history playback service")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--api-url", default=None, help="Base URL of the fleet API (overrides PATHPLAY_API_URL)")
    p.add_argument("--max-points", type=int, default=None, help="Downsample budget per track")
    p.add_argument("--tick-ms", type=int, default=None, help="Playback tick interval in milliseconds")
    p.add_argument("--time-range", default=None, help="Default history range preset, e.g. 3h or 7d")
    p.add_argument("--no-live", action="store_true", help="Do not poll live positions")
    p.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])
    args = p.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )

    try:
        settings = PlaybackSettings.from_env().with_overrides(
            api_base_url=args.api_url,
            max_points_per_track=args.max_points,
            tick_interval_ms=args.tick_ms,
            default_time_range=args.time_range,
        )
    except ValueError as ex:
        p.error(str(ex))

    srv = run(host=args.host, port=args.port, settings=settings, live=not args.no_live, log_level=args.log_level)
    print(srv.url)

    # Block forever (so it behaves like a normal CLI server)
    import time

    while True:
        time.sleep(3600)


if __name__ == "__main__":
    main()
