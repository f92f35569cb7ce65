from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.view import PlaybackView
from .routes import mount_playback_api


def create_api_app(view: PlaybackView, *, lifespan: Any = None) -> FastAPI:
    app = FastAPI(title="pathplay", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    mount_playback_api(app, view)

    @app.get("/healthz")
    async def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/events")
    async def events() -> dict:
        # Minimal polling endpoint.
        return {
            "revision": view.revision(),
            "status": view.get_playback_state().status.value,
        }

    return app


__all__ = ["create_api_app"]
