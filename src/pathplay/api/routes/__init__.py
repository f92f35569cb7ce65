from __future__ import annotations

from .playback import mount_playback_api

__all__ = ["mount_playback_api"]
