from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from ..core.errors import FetchError
from ..core.samples import LivePosition, PositionSample, TrackedEntity, parse_instant

logger = logging.getLogger(__name__)


def _coord(value: Any) -> float | None:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def sample_from_payload(item: dict[str, Any], *, timestamp_keys: tuple[str, ...] = ("recordedAt", "timestamp")) -> PositionSample | None:
    """Map one API position record to a PositionSample.

    Accepts both `{"position": {"x", "y", "z"}}` and flat `posX/posY/posZ`
    records. The timestamp is passed through raw; it is validated at indexing.
    """
    pos = item.get("position")
    if isinstance(pos, dict):
        x, y, z = _coord(pos.get("x")), _coord(pos.get("y")), _coord(pos.get("z"))
    else:
        x, y, z = _coord(item.get("posX")), _coord(item.get("posY")), _coord(item.get("posZ"))
    if x is None or y is None or z is None:
        return None

    ts: Any = None
    for key in timestamp_keys:
        if item.get(key) is not None:
            ts = item[key]
            break
    return PositionSample(timestamp=ts, x=x, y=y, z=z)


class FleetApiClient:
    """Async HTTP client for the fleet dashboard API (position history + live feed)."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3001",
        *,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout_s, transport=transport)

    async def __aenter__(self) -> FleetApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, *, params: dict[str, Any] | None = None, what: str) -> dict[str, Any]:
        try:
            res = await self._client.get(path, params=params)
        except httpx.HTTPError as ex:
            raise FetchError(f"Failed to get {what}: {ex}") from ex
        if res.status_code >= 400:
            raise FetchError(f"Failed to get {what}: {res.status_code} {res.text}", status_code=res.status_code)
        try:
            data = res.json()
        except ValueError as ex:
            raise FetchError(f"Failed to get {what}: invalid JSON body") from ex
        if not isinstance(data, dict):
            raise FetchError(f"Failed to get {what}: unexpected response shape")
        return data

    async def fetch_entity_positions(self, entity_id: str, start: float, end: float) -> list[PositionSample]:
        eid = str(entity_id).strip()
        if not eid:
            raise ValueError("entity_id cannot be empty")
        data = await self._get_json(
            f"/positions/{eid}/range",
            params={"start": int(math.floor(start)), "end": int(math.ceil(end))},
            what=f"positions for {eid}",
        )
        out: list[PositionSample] = []
        skipped = 0
        for item in data.get("positions") or []:
            sample = sample_from_payload(item) if isinstance(item, dict) else None
            if sample is None:
                skipped += 1
                continue
            out.append(sample)
        if skipped:
            logger.debug("Skipped %d malformed position records for %s", skipped, eid)
        return out

    async def fetch_entity_list(self) -> list[TrackedEntity]:
        data = await self._get_json("/positions/players", what="tracked players")
        out: list[TrackedEntity] = []
        for item in data.get("players") or []:
            if not isinstance(item, dict) or not item.get("playerId"):
                continue
            count = item.get("positionCount")
            out.append(
                TrackedEntity(
                    entity_id=str(item["playerId"]),
                    last_seen_at=parse_instant(item.get("lastSeen")),
                    name=(str(item["playerName"]) if item.get("playerName") else None),
                    first_seen_at=parse_instant(item.get("firstSeen")),
                    sample_count=int(count) if isinstance(count, (int, float)) else 0,
                )
            )
        return out

    async def fetch_live_entity_positions(self) -> list[LivePosition]:
        data = await self._get_json("/online", what="online players")
        generated_at = data.get("generatedAt")
        out: list[LivePosition] = []
        for item in data.get("players") or []:
            if not isinstance(item, dict) or not item.get("playerId"):
                continue
            if item.get("isOnline") not in (True, 1):
                continue
            sample = sample_from_payload(item, timestamp_keys=("lastUpdate", "recordedAt"))
            if sample is None:
                continue
            if sample.timestamp is None:
                sample = PositionSample(timestamp=generated_at, x=sample.x, y=sample.y, z=sample.z)
            out.append(
                LivePosition(
                    entity_id=str(item["playerId"]),
                    sample=sample,
                    name=(str(item["playerName"]) if item.get("playerName") else None),
                    is_alive=item.get("isAlive") not in (False, 0),
                )
            )
        return out

    async def fetch_position_stats(self) -> dict[str, Any]:
        data = await self._get_json("/positions/stats", what="position stats")
        return {
            "totalPositions": int(data.get("totalPositions") or 0),
            "uniquePlayers": int(data.get("uniquePlayers") or 0),
            "oldestRecord": parse_instant(data.get("oldestRecord")),
            "newestRecord": parse_instant(data.get("newestRecord")),
        }
