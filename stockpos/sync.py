# stockpos/sync.py
import asyncio
import json
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from stockpos.models.outbox import OutboxEntry
from stockpos.store import PRODUCTS, SALES, TableStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _plain(table) -> Dict[str, Dict[str, Any]]:
    return {row_id: dict(row) for row_id, row in table.items()}


class Outbox:
    """Durable queue of sync snapshots waiting for delivery."""

    def __init__(self, session_factory: sessionmaker, retry_base: float = 2.0, retry_max: float = 300.0):
        self.session_factory = session_factory
        self.retry_base = retry_base
        self.retry_max = retry_max

    def enqueue(self, body: bytes, now: Optional[datetime] = None) -> str:
        """Store a snapshot as the only entry, replacing older ones.

        Every entry is a full snapshot, so delivered and undelivered older
        entries are both redundant. A replaced undelivered entry hands its
        retry schedule to the new one.
        """
        now = now or _utcnow()
        key = str(uuid.uuid4())
        with self.session_factory() as db, db.begin():
            previous = (
                db.query(OutboxEntry)
                .filter(OutboxEntry.delivered_at.is_(None))
                .order_by(OutboxEntry.id.desc())
                .first()
            )
            attempts = previous.attempts if previous is not None else 0
            next_attempt_at = now
            if previous is not None and previous.next_attempt_at and previous.next_attempt_at > now:
                next_attempt_at = previous.next_attempt_at

            db.query(OutboxEntry).delete(synchronize_session=False)
            db.add(OutboxEntry(idempotency_key=key, body=body, attempts=attempts, next_attempt_at=next_attempt_at))
        return key

    def count(self) -> int:
        with self.session_factory() as db:
            return db.query(OutboxEntry).count()

    def due(self, now: Optional[datetime] = None) -> List[Tuple[int, str, bytes]]:
        now = now or _utcnow()
        with self.session_factory() as db:
            entries = (
                db.query(OutboxEntry)
                .filter(OutboxEntry.delivered_at.is_(None), OutboxEntry.next_attempt_at <= now)
                .order_by(OutboxEntry.id.asc())
                .all()
            )
            return [(e.id, e.idempotency_key, e.body) for e in entries]

    def pending(self) -> int:
        with self.session_factory() as db:
            return db.query(OutboxEntry).filter(OutboxEntry.delivered_at.is_(None)).count()

    def backoff(self, attempts: int) -> timedelta:
        return timedelta(seconds=min(self.retry_base * 2 ** (attempts - 1), self.retry_max))

    def mark_delivered(self, entry_id: int, now: Optional[datetime] = None) -> None:
        with self.session_factory() as db, db.begin():
            entry = db.get(OutboxEntry, entry_id)
            if entry is not None:
                entry.delivered_at = now or _utcnow()
                entry.last_error = None

    def mark_failed(self, entry_id: int, error: str, now: Optional[datetime] = None) -> None:
        now = now or _utcnow()
        with self.session_factory() as db, db.begin():
            entry = db.get(OutboxEntry, entry_id)
            if entry is None:
                return
            entry.attempts = (entry.attempts or 0) + 1
            entry.next_attempt_at = now + self.backoff(entry.attempts)
            entry.last_error = error


class SyncClient:
    """Pushes the whole local snapshot to the sync endpoint.

    Without an outbox a push is a single fire-and-forget POST whose failures
    are logged and dropped. With an outbox the snapshot is stored first and
    delivered with an Idempotency-Key, retried with exponential backoff by
    retry_forever().
    """

    def __init__(
        self,
        store: TableStore,
        url: str,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        outbox: Optional[Outbox] = None,
    ):
        self.store = store
        self.url = url
        self.timeout = timeout
        self.outbox = outbox
        self._transport = transport
        # One delivery pass at a time per outbox
        self._flush_lock = asyncio.Lock()

    def build_payload(self, now_ms: Optional[int] = None) -> Dict[str, Any]:
        return {
            "products": _plain(self.store.get_table(PRODUCTS)),
            "sales": _plain(self.store.get_table(SALES)),
            "timestamp": now_ms if now_ms is not None else int(time.time() * 1000),
        }

    @staticmethod
    def serialize(payload: Dict[str, Any]) -> bytes:
        return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")

    async def push(self) -> bool:
        body = self.serialize(self.build_payload())
        if self.outbox is not None:
            try:
                await run_in_threadpool(self.outbox.enqueue, body)
                return await self.flush()
            except SQLAlchemyError as e:
                logger.warning(f"Sync outbox unavailable: {e}")
                return False

        response = await self._post(body)
        if response is None:
            return False
        if not response.is_success:
            # The endpoint's answer is not interpreted in best-effort mode
            logger.warning(f"Sync endpoint answered {response.status_code}")
        return True

    async def flush(self, now: Optional[datetime] = None) -> bool:
        """Deliver every due outbox entry; True when nothing is left pending."""
        if self.outbox is None:
            return True
        outbox = self.outbox
        async with self._flush_lock:
            for entry_id, key, body in await run_in_threadpool(outbox.due, now):
                response = await self._post(body, {"Idempotency-Key": key})
                if response is not None and response.is_success:
                    await run_in_threadpool(outbox.mark_delivered, entry_id, now)
                    continue
                error = "network error" if response is None else f"HTTP {response.status_code}"
                await run_in_threadpool(outbox.mark_failed, entry_id, error, now)
                logger.warning(f"Sync delivery {key} failed ({error}), scheduled for retry")
            return await run_in_threadpool(outbox.pending) == 0

    async def retry_forever(self, interval: float) -> None:
        """Re-run flush() every `interval` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            try:
                await self.flush()
            except SQLAlchemyError as e:
                logger.warning(f"Sync outbox unavailable: {e}")

    async def _post(self, body: bytes, extra_headers: Optional[Dict[str, str]] = None) -> Optional[httpx.Response]:
        headers = {"Content-Type": "application/json"}
        if extra_headers:
            headers.update(extra_headers)
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                return await client.post(self.url, content=body, headers=headers)
            except httpx.RequestError as e:
                logger.warning(f"Sync push to {self.url} failed: {e}")
                return None
