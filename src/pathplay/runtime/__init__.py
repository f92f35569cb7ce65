from __future__ import annotations

from .app import create_app
from .server import PathplayServer, run

__all__ = ["create_app", "PathplayServer", "run"]
