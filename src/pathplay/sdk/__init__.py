from __future__ import annotations

from .client import FleetApiClient, sample_from_payload

__all__ = [
    "FleetApiClient",
    "sample_from_payload",
]
