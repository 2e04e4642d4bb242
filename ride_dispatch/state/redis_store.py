"""Redis-backed store for drivers and bookings."""

import json
from datetime import datetime
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError, WatchError

from ride_dispatch.config import get_settings
from ride_dispatch.errors import TransientStoreError
from ride_dispatch.models.booking import Booking
from ride_dispatch.models.driver import Driver, DriverStatus
from ride_dispatch.state.store import BOOKINGS, DRIVERS, GuardedWrite, Store, apply_writes, is_stale
from ride_dispatch.utils.logging import get_logger
from ride_dispatch.utils.timeutils import parse_timestamp

logger = get_logger(__name__)

ON_RIDE_INDEX = "drivers:on_ride"


class RedisStore(Store):
    """
    Drivers and bookings as JSON documents in Redis.

    Layout:
        driver:{id} / booking:{id}   JSON documents
        drivers / bookings           sets of known ids
        broadcast:{driver_id}        set of booking ids broadcast to the driver
        drivers:on_ride              sorted set of on-ride drivers by updated_at

    Commits are optimistic transactions: the touched documents are WATCHed,
    guards are evaluated on the watched values and the writes go out in a
    single MULTI/EXEC. A concurrent change aborts EXEC and the commit starts
    over with fresh values.
    """

    def __init__(self, redis_url: str | None = None, commit_retries: int | None = None) -> None:
        settings = get_settings()
        self.redis_client: redis.Redis | None = None
        self.redis_url = redis_url or settings.redis_url
        self.commit_retries = commit_retries or settings.commit_retries

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self.redis_client is None:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("redis_connected", url=self.redis_url)

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("redis_disconnected")

    async def close(self) -> None:
        await self.disconnect()

    async def _client(self) -> redis.Redis:
        if not self.redis_client:
            await self.connect()
        return self.redis_client

    @staticmethod
    def _key(collection: str, record_id: str) -> str:
        """Generate Redis key for a document."""
        return f"{collection}:{record_id}"

    @staticmethod
    def _broadcast_key(driver_id: str) -> str:
        return f"broadcast:{driver_id}"

    def _index(
        self,
        pipe: Any,
        collection: str,
        before: dict[str, Any] | None,
        after: dict[str, Any],
    ) -> None:
        """Queue secondary index updates for a document change."""
        record_id = after["id"]

        if collection == DRIVERS:
            if after["status"] == DriverStatus.ON_RIDE.value:
                score = parse_timestamp(after["updated_at"]).timestamp()
                pipe.zadd(ON_RIDE_INDEX, {record_id: score})
            else:
                pipe.zrem(ON_RIDE_INDEX, record_id)
            return

        old = set(before["broadcast_list"]) if before else set()
        new = set(after["broadcast_list"])
        for driver_id in old - new:
            pipe.srem(self._broadcast_key(driver_id), record_id)
        for driver_id in new - old:
            pipe.sadd(self._broadcast_key(driver_id), record_id)

    async def _insert(self, collection: str, record: dict[str, Any]) -> None:
        client = await self._client()
        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(self._key(collection, record["id"]), json.dumps(record))
                pipe.sadd(f"{collection}s", record["id"])
                self._index(pipe, collection, None, record)
                await pipe.execute()
        except RedisError as e:
            raise TransientStoreError(str(e)) from e

    async def insert_driver(self, driver: Driver) -> Driver:
        await self._insert(DRIVERS, driver.model_dump(mode="json"))
        logger.debug("driver_inserted", driver_id=driver.id)
        return driver

    async def insert_booking(self, booking: Booking) -> Booking:
        await self._insert(BOOKINGS, booking.model_dump(mode="json"))
        logger.debug("booking_inserted", booking_id=booking.id)
        return booking

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        client = await self._client()
        try:
            value = await client.get(self._key(collection, record_id))
        except RedisError as e:
            raise TransientStoreError(str(e)) from e
        return json.loads(value) if value else None

    async def _get_many(self, collection: str, ids: list[str]) -> list[dict[str, Any]]:
        if not ids:
            return []
        client = await self._client()
        try:
            values = await client.mget([self._key(collection, i) for i in ids])
        except RedisError as e:
            raise TransientStoreError(str(e)) from e
        return [json.loads(value) for value in values if value]

    async def list_driver_ids(self) -> list[str]:
        client = await self._client()
        try:
            return sorted(await client.smembers(f"{DRIVERS}s"))
        except RedisError as e:
            raise TransientStoreError(str(e)) from e

    async def find_bookings_broadcast_to(self, driver_id: str) -> list[Booking]:
        client = await self._client()
        try:
            booking_ids = sorted(await client.smembers(self._broadcast_key(driver_id)))
        except RedisError as e:
            raise TransientStoreError(str(e)) from e

        records = await self._get_many(BOOKINGS, booking_ids)
        return [Booking(**r) for r in records if driver_id in r["broadcast_list"]]

    async def find_stale_drivers(self, cutoff: datetime) -> list[Driver]:
        client = await self._client()
        try:
            driver_ids = await client.zrangebyscore(
                ON_RIDE_INDEX, "-inf", f"({cutoff.timestamp()}"
            )
        except RedisError as e:
            raise TransientStoreError(str(e)) from e

        # The index only narrows the scan; live documents decide
        records = await self._get_many(DRIVERS, list(driver_ids))
        return [Driver(**r) for r in records if is_stale(r, cutoff)]

    async def commit(
        self,
        writes: list[GuardedWrite],
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        now = self._now(now)
        client = await self._client()
        keys = [self._key(w.collection, w.record_id) for w in writes]

        for attempt in range(self.commit_retries):
            try:
                async with client.pipeline(transaction=True) as pipe:
                    await pipe.watch(*keys)
                    current = []
                    for key in keys:
                        value = await pipe.get(key)
                        current.append(json.loads(value) if value else None)

                    updated = apply_writes(writes, current, now)

                    pipe.multi()
                    for write, key, before, after in zip(writes, keys, current, updated):
                        pipe.set(key, json.dumps(after))
                        self._index(pipe, write.collection, before, after)
                    await pipe.execute()
                return updated
            except WatchError:
                logger.debug("commit_retry", attempt=attempt + 1, keys=keys)
            except RedisError as e:
                raise TransientStoreError(str(e)) from e

        raise TransientStoreError(
            f"Commit on {', '.join(keys)} aborted after {self.commit_retries} attempts"
        )

    async def flush(self) -> None:
        """Delete every key in the current database."""
        client = await self._client()
        await client.flushdb()
