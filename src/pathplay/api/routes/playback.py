from __future__ import annotations

import asyncio
from typing import Any

from fastapi import FastAPI, HTTPException, Query

from ...core.coordinator import track_stats
from ...core.errors import FetchError
from ...core.samples import TIME_RANGE_PRESETS
from ...core.view import PlaybackView
from ..serializers import (
    bounds_to_item,
    entity_to_item,
    live_to_item,
    playback_state_to_item,
    sample_to_item,
    track_to_meta_item,
    track_to_path_item,
)


def _parse_number(body: dict, key: str) -> float:
    if key not in body:
        raise HTTPException(status_code=400, detail=f"Missing field: {key}")
    raw = body.get(key)
    if isinstance(raw, bool):
        raise HTTPException(status_code=400, detail=f"Invalid {key}")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid {key}")


def mount_playback_api(app: FastAPI, view: PlaybackView) -> None:
    """Mount the playback query/control surface consumed by the map renderer.

    Handlers are `async def` on purpose: they run on the event loop thread, the
    same thread that ticks the clock and completes track loads.
    """

    def state_item() -> dict[str, Any]:
        state = view.get_playback_state()
        return playback_state_to_item(state, progress=view.coordinator.progress(state.cursor))

    def selection_item() -> dict[str, Any]:
        reg = view.registry
        return {
            "entityIds": list(reg.selection),
            "loadStates": {eid: reg.load_state(eid) for eid in reg.selection},
            "colors": {eid: reg.path_color(eid) for eid in reg.selection},
            "bounds": bounds_to_item(view.get_bounds()),
            "center": sample_to_item(view.focus()),
            "revision": view.revision(),
        }

    @app.get("/api/entities")
    async def list_entities() -> list[dict[str, Any]]:
        return [entity_to_item(e, view.registry) for e in view.entities()]

    @app.post("/api/entities/refresh")
    async def refresh_entities() -> list[dict[str, Any]]:
        try:
            entities = await view.refresh_entities()
        except FetchError as ex:
            raise HTTPException(status_code=502, detail=str(ex))
        return [entity_to_item(e, view.registry) for e in entities]

    @app.get("/api/stats")
    async def position_stats() -> dict[str, Any]:
        try:
            return await view.position_stats()
        except FetchError as ex:
            raise HTTPException(status_code=502, detail=str(ex))

    @app.get("/api/playback/selection")
    async def get_selection() -> dict[str, Any]:
        return selection_item()

    @app.put("/api/playback/selection")
    async def set_selection(body: dict) -> dict[str, Any]:
        ids = body.get("entityIds")
        if not isinstance(ids, list):
            raise HTTPException(status_code=400, detail="entityIds must be a list")
        tasks = view.select(str(i) for i in ids)
        if body.get("wait"):
            await asyncio.gather(*tasks)
        return selection_item()

    @app.post("/api/playback/reload")
    async def reload_selection(body: dict | None = None) -> dict[str, Any]:
        tasks = view.reload()
        if body and body.get("wait"):
            await asyncio.gather(*tasks)
        return selection_item()

    @app.get("/api/playback/range")
    async def get_range() -> dict[str, Any]:
        tr = view.current_time_range()
        return {
            "preset": view.time_range_preset,
            "start": float(tr.start),
            "end": float(tr.end),
            "presets": [{"value": v, "label": label, "seconds": s} for v, label, s in TIME_RANGE_PRESETS],
        }

    @app.put("/api/playback/range")
    async def set_range(body: dict) -> dict[str, Any]:
        preset = body.get("preset")
        if not isinstance(preset, str):
            raise HTTPException(status_code=400, detail="preset is required")
        try:
            tasks = view.set_time_range(preset)
        except ValueError as ex:
            raise HTTPException(status_code=400, detail=str(ex))
        if body.get("wait"):
            await asyncio.gather(*tasks)
        return await get_range()

    @app.get("/api/playback/bounds")
    async def get_bounds() -> dict[str, Any]:
        return {"bounds": bounds_to_item(view.get_bounds())}

    @app.get("/api/playback/state")
    async def get_state() -> dict[str, Any]:
        return state_item()

    @app.get("/api/playback/speeds")
    async def get_speeds() -> dict[str, Any]:
        return {
            "presets": view.settings.speed_options(),
            "current": float(view.get_playback_state().speed_factor),
            "tickIntervalMs": int(view.settings.tick_interval_ms),
        }

    @app.get("/api/playback/positions")
    async def get_positions(ids: list[str] | None = Query(default=None)) -> dict[str, Any]:
        resolved = view.resolve_positions(ids)
        return {
            "state": state_item(),
            "positions": {eid: sample_to_item(s) for eid, s in resolved.items()},
        }

    @app.post("/api/playback/play")
    async def play() -> dict[str, Any]:
        view.play()
        return state_item()

    @app.post("/api/playback/pause")
    async def pause() -> dict[str, Any]:
        view.pause()
        return state_item()

    @app.post("/api/playback/seek")
    async def seek(body: dict) -> dict[str, Any]:
        try:
            view.seek(_parse_number(body, "time"))
        except ValueError as ex:
            raise HTTPException(status_code=400, detail=str(ex))
        return state_item()

    @app.post("/api/playback/speed")
    async def set_speed(body: dict) -> dict[str, Any]:
        try:
            view.set_speed(_parse_number(body, "speedFactor"))
        except ValueError as ex:
            raise HTTPException(status_code=400, detail=str(ex))
        return state_item()

    @app.get("/api/tracks/{entity_id}")
    async def get_track_meta(entity_id: str) -> dict[str, Any]:
        track = view.registry.get_track(entity_id)
        if track is None:
            raise HTTPException(status_code=404, detail="Unknown track")
        return track_to_meta_item(track, view.registry, track_stats(track))

    @app.get("/api/tracks/{entity_id}/path")
    async def get_track_path(entity_id: str) -> dict[str, Any]:
        track = view.registry.get_track(entity_id)
        if track is None:
            raise HTTPException(status_code=404, detail="Unknown track")
        return track_to_path_item(track)

    @app.get("/api/live")
    async def get_live() -> dict[str, Any]:
        return {
            "enabled": bool(view.live.enabled),
            "updatedAt": view.live.updated_at,
            "positions": [live_to_item(p) for p in view.live.latest().values()],
        }

    @app.patch("/api/live")
    async def update_live(body: dict) -> dict[str, Any]:
        if "enabled" not in body:
            raise HTTPException(status_code=400, detail="Missing field: enabled")
        view.live.enabled = bool(body.get("enabled"))
        return await get_live()
