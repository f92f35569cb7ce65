import asyncio
import sys

from pathplay import FleetApiClient, PlaybackSettings, PlaybackView


async def main(entity_ids: list[str]) -> None:
    settings = PlaybackSettings.from_env().with_overrides(tick_interval_ms=50, default_speed=60.0)

    async with FleetApiClient(settings.api_base_url, timeout_s=settings.request_timeout_s) as client:
        view = PlaybackView(client, settings)
        view.start(live=False)

        await asyncio.gather(*view.select(entity_ids))
        bounds = view.get_bounds()
        if bounds is None:
            print("No position history for", ", ".join(entity_ids))
            await view.stop()
            return

        print(f"Replaying {bounds.duration:.0f}s of history for {len(entity_ids)} entities")
        view.play()
        while view.get_playback_state().is_playing:
            await asyncio.sleep(settings.tick_interval_ms / 1000.0)
            cursor = view.get_playback_state().cursor
            for eid, sample in view.resolve_positions().items():
                if sample is not None:
                    print(f"{cursor:.0f} {eid}: x={sample.x:.1f} z={sample.z:.1f}")

        await view.stop()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:] or ["player-1"]))
