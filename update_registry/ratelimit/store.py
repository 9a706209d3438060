"""Fixed-window rate limiting with a self-cleaning, in-process counter table.

Each client key owns one counter per window. Read-modify-write of an entry
happens under the lock of the key's stripe, so concurrent requests for the
same key cannot both slip under the limit while requests for different keys
rarely contend. A background sweep purges entries that have been idle for
longer than ``max_entry_age_ms``.

A sweep racing a request for the same key can drop a live counter. That
only ever admits more requests, never fewer, and is accepted.
"""

import asyncio
import logging
import math
import threading
import time
import zlib
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from update_registry.config import Settings

logger = logging.getLogger(__name__)

MillisClock = Callable[[], float]

DEFAULT_STRIPES = 64

UNKNOWN_CLIENT = "unknown"


def wall_clock_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


@dataclass(frozen=True)
class RateLimitPolicy:
    """A named limit applied per client.

    Attributes:
        name: Policy name, also the key namespace.
        max_requests: Requests admitted per window.
        window_ms: Window length in milliseconds.
    """

    name: str
    max_requests: int
    window_ms: int

    def key_for(self, client: str) -> str:
        return f"{self.name}:{client}"


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit check.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Requests admitted per window.
        remaining: Requests left in the current window.
        reset: Epoch seconds at which the window ends.
        retry_after: Seconds until a new window starts.
    """

    allowed: bool
    limit: int
    remaining: int
    reset: int
    retry_after: int

    def headers(self) -> dict[str, str]:
        """``X-RateLimit-*`` headers describing this result."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


@dataclass
class _Entry:
    count: int
    window_start_ms: float


def default_policies(settings: Settings) -> dict[str, RateLimitPolicy]:
    """Build the public, admin and CI policies from settings."""
    window_ms = settings.rate_limit_window_ms
    return {
        "public": RateLimitPolicy("public", settings.rate_limit_public, window_ms),
        "admin": RateLimitPolicy("admin", settings.rate_limit_admin, window_ms),
        "ci": RateLimitPolicy("ci", settings.rate_limit_ci, window_ms),
    }


def _first_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def client_key(
    headers: Mapping[str, str],
    peer: Optional[str] = None,
    api_key_id: Optional[str] = None,
    trust_forwarded_headers: bool = True,
) -> str:
    """Derive the rate-limit identity of a request.

    Precedence: authenticated API key, first ``X-Forwarded-For`` hop,
    ``CF-Connecting-IP``, ``X-Real-IP``, the socket peer, then the
    ``unknown`` sentinel. Never raises on missing headers.

    Args:
        headers: Request headers (case-insensitive mapping).
        peer: Socket peer address, if known.
        api_key_id: Verified API key id, if the request is authenticated.
        trust_forwarded_headers: Whether proxy headers may be used.

    Returns:
        ``key:<id>`` or ``ip:<address>``.
    """
    if api_key_id:
        return f"key:{api_key_id}"

    if trust_forwarded_headers:
        forwarded = _first_value(headers, "x-forwarded-for")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return f"ip:{first_hop}"
        for name in ("cf-connecting-ip", "x-real-ip"):
            value = _first_value(headers, name)
            if value:
                return f"ip:{value}"

    if peer:
        return f"ip:{peer}"
    return f"ip:{UNKNOWN_CLIENT}"


class RateLimitStore:
    """Fixed-window counters keyed by client, safe for concurrent use.

    Attributes:
        max_entry_age_ms: Idle age after which the sweep drops an entry.
        sweep_interval_seconds: Delay between background sweeps.
    """

    def __init__(
        self,
        clock: MillisClock = wall_clock_ms,
        sweep_interval_seconds: float = 300,
        max_entry_age_ms: float = 120_000,
        stripes: int = DEFAULT_STRIPES,
    ) -> None:
        """Initialize the store.

        Args:
            clock: Epoch-milliseconds clock (injected for tests).
            sweep_interval_seconds: Delay between background sweeps.
            max_entry_age_ms: Idle age after which entries are purged;
                normally twice the longest policy window.
            stripes: Number of lock stripes.
        """
        if stripes < 1:
            raise ValueError("stripes must be at least 1")
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._locks = [threading.Lock() for _ in range(stripes)]
        self.sweep_interval_seconds = sweep_interval_seconds
        self.max_entry_age_ms = max_entry_age_ms
        self._sweep_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, settings: Settings, clock: MillisClock = wall_clock_ms) -> "RateLimitStore":
        """Create a store whose purge age covers every configured policy."""
        longest = max(policy.window_ms for policy in default_policies(settings).values())
        return cls(
            clock=clock,
            sweep_interval_seconds=settings.rate_limit_sweep_interval_seconds,
            max_entry_age_ms=2 * longest,
        )

    def _lock_for(self, key: str) -> threading.Lock:
        return self._locks[zlib.crc32(key.encode("utf-8")) % len(self._locks)]

    def check(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        """Count a request against ``key`` and decide whether to admit it.

        Args:
            key: Client key, already namespaced by policy.
            limit: Requests admitted per window.
            window_ms: Window length in milliseconds.

        Returns:
            The decision with the values for the rate-limit headers.
        """
        with self._lock_for(key):
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or now - entry.window_start_ms >= window_ms:
                entry = _Entry(count=1, window_start_ms=now)
                self._entries[key] = entry
                allowed = True
            elif entry.count >= limit:
                allowed = False
            else:
                entry.count += 1
                allowed = True

            window_end = entry.window_start_ms + window_ms
            remaining = max(0, limit - entry.count) if allowed else 0

        return RateLimitResult(
            allowed=allowed,
            limit=limit,
            remaining=remaining,
            reset=math.ceil(window_end / 1000),
            retry_after=max(1, math.ceil((window_end - now) / 1000)),
        )

    def check_policy(self, policy: RateLimitPolicy, client: str) -> RateLimitResult:
        """Check a client against a named policy."""
        return self.check(policy.key_for(client), policy.max_requests, policy.window_ms)

    def purge_expired(self, now_ms: Optional[float] = None) -> int:
        """Drop entries idle for longer than ``max_entry_age_ms``.

        Only the stripe of the entry being removed is locked, and only for
        the re-check and delete.

        Returns:
            Number of purged entries.
        """
        now = self._clock() if now_ms is None else now_ms
        purged = 0
        for key, entry in list(self._entries.items()):
            if now - entry.window_start_ms <= self.max_entry_age_ms:
                continue
            with self._lock_for(key):
                current = self._entries.get(key)
                if current is not None and now - current.window_start_ms > self.max_entry_age_ms:
                    del self._entries[key]
                    purged += 1
        return purged

    def get_state(self, key: str) -> Optional[tuple[int, float]]:
        """Current ``(count, window_start_ms)`` of a key, for debugging."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.count, entry.window_start_ms

    def reset(self, key: str) -> None:
        with self._lock_for(key):
            self._entries.pop(key, None)

    def clear(self) -> None:
        for lock in self._locks:
            lock.acquire()
        try:
            self._entries.clear()
        finally:
            for lock in self._locks:
                lock.release()

    def __len__(self) -> int:
        return len(self._entries)

    async def start(self) -> None:
        """Start the background sweep."""
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_worker())
            logger.info(f"Rate limit sweep started (every {self.sweep_interval_seconds}s)")

    async def close(self) -> None:
        """Stop the background sweep."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
            logger.info("Rate limit sweep stopped")

    async def _sweep_worker(self) -> None:
        """Purge stale entries on a fixed interval until cancelled."""
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                purged = self.purge_expired()
                if purged:
                    logger.debug(f"Purged {purged} stale rate limit entries")
            except Exception as e:
                logger.error(f"Rate limit sweep error: {e}")
