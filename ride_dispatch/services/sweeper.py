"""Ride sweeper - force-completes rides that outlived the allowed duration."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ride_dispatch.config import get_settings
from ride_dispatch.errors import PreconditionFailedError
from ride_dispatch.models.booking import BookingStatus
from ride_dispatch.models.driver import Driver, DriverStatus
from ride_dispatch.state.store import BOOKINGS, DRIVERS, GuardedWrite, Store
from ride_dispatch.utils.logging import RideEventLogger
from ride_dispatch.utils.timeutils import utcnow


@dataclass
class SweepReport:
    """Outcome of a single sweep cycle."""

    started_at: datetime
    cutoff: datetime
    completed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def selected(self) -> int:
        return len(self.completed) + len(self.skipped) + len(self.failed)


class RideSweeper:
    """
    Periodically finishes rides whose driver has been on ride too long.

    Each cycle takes a fresh snapshot of stale drivers and closes every
    driver/booking pair in its own commit. A pair that fails is logged and
    left for the next cycle.
    """

    def __init__(
        self,
        store: Store,
        ride_duration: timedelta | None = None,
        interval_seconds: float | None = None,
    ):
        settings = get_settings()
        self.store = store
        if ride_duration is None:
            ride_duration = timedelta(minutes=settings.ride_duration_minutes)
        if interval_seconds is None:
            interval_seconds = settings.sweep_interval_seconds
        self.ride_duration = ride_duration
        self.interval_seconds = interval_seconds
        self.logger = RideEventLogger("ride_sweeper")

        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self, now: datetime | None = None) -> SweepReport:
        """Run one sweep cycle."""
        now = now or utcnow()
        report = SweepReport(started_at=now, cutoff=now - self.ride_duration)

        stale = tuple(await self.store.find_stale_drivers(report.cutoff))

        for driver in stale:
            try:
                await self._finish_ride(driver, now)
            except PreconditionFailedError as e:
                # Released or reassigned since the snapshot
                report.skipped.append(driver.id)
                self.logger.log_rejection(
                    action="sweep",
                    reason="state_changed",
                    driver_id=driver.id,
                    booking_id=driver.current_ride,
                    collection=e.write.collection,
                )
            except Exception as e:
                report.failed.append(driver.id)
                self.logger.log_error(
                    error=str(e),
                    driver_id=driver.id,
                    booking_id=driver.current_ride,
                    error_type=type(e).__name__,
                )
            else:
                report.completed.append(driver.id)

        if report.selected:
            self.logger.logger.info(
                "sweep_completed",
                cutoff=report.cutoff.isoformat(),
                completed=len(report.completed),
                skipped=len(report.skipped),
                failed=len(report.failed),
            )
        return report

    async def _finish_ride(self, driver: Driver, now: datetime) -> None:
        booking_id = driver.current_ride
        if booking_id is None:
            raise ValueError(f"Driver {driver.id} is on ride without a current booking")

        await self.store.commit(
            [
                GuardedWrite(
                    DRIVERS,
                    driver.id,
                    expect={"status": DriverStatus.ON_RIDE, "current_ride": booking_id},
                    changes={"status": DriverStatus.WAITING, "current_ride": None},
                ),
                GuardedWrite(
                    BOOKINGS,
                    booking_id,
                    expect={"status": BookingStatus.ON_RIDE, "assigned_driver": driver.id},
                    changes={"status": BookingStatus.FINISHED},
                ),
            ],
            now=now,
        )
        self.logger.log_transition(action="finish", driver_id=driver.id, booking_id=booking_id)

    def start(self) -> None:
        """Start sweeping in the background."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        self.logger.logger.info(
            "sweeper_started",
            ride_duration_s=self.ride_duration.total_seconds(),
            interval_s=self.interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the background loop and wait for the current cycle."""
        if self._task is None:
            return

        self._stop_event.set()
        await self._task
        self._task = None
        self.logger.logger.info("sweeper_stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.sweep()
            except Exception as e:
                # Deferred to the next cycle
                self.logger.log_error(error=str(e), error_type=type(e).__name__)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
