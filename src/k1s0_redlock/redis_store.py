"""Redis バックエンドの LockStore 実装"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from .exceptions import StoreOperationError
from .store import LockStore, ttl_to_millis

# 値が一致する場合のみ削除する
_DELETE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
else
    return 0
end
"""

# 値が一致する場合のみ TTL (ms) を再設定する
_EXTEND_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("PEXPIRE", KEYS[1], ARGV[2])
else
    return 0
end
"""


class RedisLockStore(LockStore):
    """redis.asyncio クライアントを用いた LockStore。

    条件付き削除・延長は Lua スクリプトでサーバー側で不可分に実行する。
    """

    def __init__(self, client: redis.Redis, *, owns_client: bool = False) -> None:
        self._client = client
        self._owns_client = owns_client
        self._delete = client.register_script(_DELETE_SCRIPT)
        self._extend = client.register_script(_EXTEND_SCRIPT)

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisLockStore:
        """URL から接続を生成する。生成した接続は close() で閉じられる。"""
        return cls(redis.from_url(url, **kwargs), owns_client=True)

    @property
    def client(self) -> redis.Redis:
        return self._client

    async def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        try:
            result = await self._client.set(key, value, nx=True, px=ttl_to_millis(ttl))
        except (RedisError, OSError) as e:
            raise StoreOperationError(f"SET NX failed for {key!r}: {e}", cause=e) from e
        return bool(result)

    async def delete_if_match(self, key: str, value: str) -> bool:
        try:
            result = await self._delete(keys=[key], args=[value])
        except (RedisError, OSError) as e:
            raise StoreOperationError(f"Conditional delete failed for {key!r}: {e}", cause=e) from e
        return bool(result)

    async def extend_if_match(self, key: str, value: str, ttl: float) -> bool:
        try:
            result = await self._extend(keys=[key], args=[value, ttl_to_millis(ttl)])
        except (RedisError, OSError) as e:
            raise StoreOperationError(f"Conditional extend failed for {key!r}: {e}", cause=e) from e
        return bool(result)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
