"""Dispatch core services."""

from ride_dispatch.services.broadcaster import DispatchBroadcaster, all_known_drivers
from ride_dispatch.services.resolver import AcceptanceResolver
from ride_dispatch.services.sweeper import RideSweeper, SweepReport

__all__ = [
    "AcceptanceResolver",
    "DispatchBroadcaster",
    "RideSweeper",
    "SweepReport",
    "all_known_drivers",
]
