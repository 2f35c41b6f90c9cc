"""InMemoryLockStore 実装"""

from __future__ import annotations

import asyncio
import time

from .exceptions import StoreOperationError
from .store import LockStore, ttl_to_millis


class _Entry:
    __slots__ = ("value", "expires_at")

    def __init__(self, value: str, ttl: float) -> None:
        self.value = value
        self.expires_at = time.monotonic() + ttl_to_millis(ttl) / 1000

    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class InMemoryLockStore(LockStore):
    """テスト・単一インスタンス用インメモリストア。

    available を False にすると全操作が StoreOperationError となり、
    到達不能なレプリカを再現できる。
    """

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self.available = True
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    def _check_available(self) -> None:
        if not self.available:
            raise StoreOperationError(f"Store unavailable: {self.name}")

    def _live(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is not None and entry.is_expired():
            del self._entries[key]
            return None
        return entry

    async def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        async with self._lock:
            self._check_available()
            if self._live(key) is not None:
                return False
            self._entries[key] = _Entry(value, ttl)
            return True

    async def delete_if_match(self, key: str, value: str) -> bool:
        async with self._lock:
            self._check_available()
            entry = self._live(key)
            if entry is None or entry.value != value:
                return False
            del self._entries[key]
            return True

    async def extend_if_match(self, key: str, value: str, ttl: float) -> bool:
        async with self._lock:
            self._check_available()
            entry = self._live(key)
            if entry is None or entry.value != value:
                return False
            self._entries[key] = _Entry(value, ttl)
            return True

    def get(self, key: str) -> str | None:
        """現在の値を返す。期限切れ・未設定の場合は None。"""
        entry = self._live(key)
        return entry.value if entry is not None else None

    def ttl(self, key: str) -> float | None:
        """残り TTL を秒で返す。キーが無い場合は None。"""
        entry = self._live(key)
        if entry is None:
            return None
        return max(0.0, entry.expires_at - time.monotonic())
