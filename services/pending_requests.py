import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from models.staff import ClockAction, PendingRequest, StaffSnapshot


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PendingRequestStore:
    """
    Per-phone "awaiting location" state plus the per-phone lock that
    serializes event handling for that phone.

    Only the conversation engine writes here. All methods run on the event
    loop thread, so plain dict operations are atomic per key.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds and ttl_seconds > 0 else None
        self._clock = clock
        self._requests: Dict[str, PendingRequest] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_waiters: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._requests)

    def put(
        self, phone: str, action: ClockAction, staff_snapshot: StaffSnapshot
    ) -> PendingRequest:
        # Last command wins; any earlier request is replaced
        now = self._clock()
        pending = PendingRequest(
            phone_number=phone,
            action=action,
            staff_snapshot=staff_snapshot,
            created_at=now,
            expires_at=(now + timedelta(seconds=self.ttl_seconds)) if self.ttl_seconds else None,
        )
        self._requests[phone] = pending
        return pending

    def get(self, phone: str) -> Optional[PendingRequest]:
        return self._requests.get(phone)

    def remove(self, phone: str) -> None:
        self._requests.pop(phone, None)

    def is_expired(self, pending: PendingRequest, now: Optional[datetime] = None) -> bool:
        if pending.expires_at is None:
            return False
        return (now or self._clock()) > pending.expires_at

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Drop expired requests whose phone is not being handled right now."""
        now = now or self._clock()
        expired = [
            phone
            for phone, pending in self._requests.items()
            if phone not in self._locks and self.is_expired(pending, now)
        ]
        for phone in expired:
            del self._requests[phone]
        return len(expired)

    @asynccontextmanager
    async def lock(self, phone: str):
        lock = self._locks.get(phone)
        if lock is None:
            lock = self._locks[phone] = asyncio.Lock()
        self._lock_waiters[phone] = self._lock_waiters.get(phone, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_waiters[phone] -= 1
            if self._lock_waiters[phone] == 0:
                del self._lock_waiters[phone]
                del self._locks[phone]
