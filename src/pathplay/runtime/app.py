from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..api import create_api_app
from ..core.errors import FetchError
from ..core.settings import PlaybackSettings
from ..core.view import FleetSource, PlaybackView
from ..sdk.client import FleetApiClient

logger = logging.getLogger(__name__)


def create_app(
    settings: PlaybackSettings | None = None,
    source: FleetSource | None = None,
    *,
    live: bool = True,
    refresh_on_startup: bool = True,
) -> FastAPI:
    """Create the API app around a fresh playback view.

    When no `source` is given, a `FleetApiClient` for `settings.api_base_url`
    is created and closed with the app.
    """

    settings = settings or PlaybackSettings.from_env()
    owned_client: FleetApiClient | None = None
    if source is None:
        owned_client = FleetApiClient(settings.api_base_url, timeout_s=settings.request_timeout_s)
        source = owned_client

    view = PlaybackView(source, settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        view.start(live=live)
        if refresh_on_startup:
            try:
                await view.refresh_entities()
            except FetchError as ex:
                # The entity list can be refreshed later through the API.
                logger.warning("Could not fetch tracked entities at startup: %s", ex)
        try:
            yield
        finally:
            await view.stop()
            if owned_client is not None:
                await owned_client.aclose()

    app = create_api_app(view, lifespan=lifespan)
    app.state.view = view
    return app
