"""In-memory live price cache, filled by the price feed."""

import math
import threading
from dataclasses import dataclass, field
from datetime import datetime

from portfolio_dashboard.config import FX_FALLBACK_RATE, FX_RATE_KEY


@dataclass(frozen=True)
class PriceSnapshot:
    price: float
    change: float | None = None
    change_pct: float | None = None
    fetched_at: datetime = field(default_factory=datetime.now)


class LivePriceCache:
    """Thread-safe map of lookup key -> last fetched PriceSnapshot.

    Keys are scheme codes, ticker symbols and the FX rate key. Entries live for
    the whole process and are only replaced by a newer fetch of the same key.
    """

    def __init__(
        self, fx_key: str = FX_RATE_KEY, fx_fallback: float = FX_FALLBACK_RATE
    ):
        self._store: dict[str, PriceSnapshot] = {}
        self._fx_key = fx_key
        self._fx_fallback = fx_fallback
        self._lock = threading.Lock()

    def get(self, key: str | None) -> PriceSnapshot | None:
        if not key:
            return None
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, snapshot: PriceSnapshot) -> None:
        with self._lock:
            self._store[key] = snapshot

    def price(self, key: str | None) -> float | None:
        """Usable live price for ``key``, or None to fall back to cost basis."""
        snapshot = self.get(key)
        if snapshot is None:
            return None
        price = snapshot.price
        if price is None or not math.isfinite(price) or price <= 0:
            return None
        return price

    def fx_rate(self) -> float:
        return self.price(self._fx_key) or self._fx_fallback

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def snapshot(self) -> dict[str, PriceSnapshot]:
        with self._lock:
            return dict(self._store)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
