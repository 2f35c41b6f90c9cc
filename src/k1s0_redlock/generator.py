"""Mutex ファクトリ"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from types import TracebackType
from typing import Any

from .exceptions import RedlockError, RedlockErrorCodes
from .models import MutexConfig, quorum_for
from .mutex import Mutex
from .redis_store import RedisLockStore
from .settings import RedlockSettings
from .store import LockStore


class LockGenerator:
    """固定のストア集合に束縛された Mutex を生成するファクトリ。

    クォーラムは生成時のストア数から一度だけ算出する。
    """

    def __init__(
        self,
        stores: Sequence[LockStore],
        config: MutexConfig | None = None,
        *,
        key_prefix: str = "",
        owns_stores: bool = False,
    ) -> None:
        if not stores:
            raise RedlockError(RedlockErrorCodes.INVALID_CONFIG, "at least one store is required")
        self._stores: tuple[LockStore, ...] = tuple(stores)
        self._config = config or MutexConfig()
        self._quorum = quorum_for(len(self._stores))
        self._key_prefix = key_prefix
        self._owns_stores = owns_stores

    @classmethod
    def from_settings(cls, settings: RedlockSettings) -> LockGenerator:
        """設定の各エンドポイントに RedisLockStore を生成する。"""
        stores = [
            RedisLockStore.from_url(endpoint.url, socket_timeout=endpoint.socket_timeout)
            for endpoint in settings.endpoints
        ]
        return cls(
            stores,
            settings.to_mutex_config(),
            key_prefix=settings.key_prefix,
            owns_stores=True,
        )

    @property
    def stores(self) -> tuple[LockStore, ...]:
        return self._stores

    @property
    def quorum(self) -> int:
        return self._quorum

    @property
    def config(self) -> MutexConfig:
        return self._config

    def new_mutex(self, name: str, config: MutexConfig | None = None, **overrides: Any) -> Mutex:
        """名前付き Mutex を生成する。

        Args:
            name: ロック対象リソース名（key_prefix が付与される）
            config: 既定設定の代わりに使う設定
            **overrides: MutexConfig のフィールド（expiry, tries, retry_delay,
                drift_factor, token_generator）
        """
        base = config or self._config
        if overrides:
            base = dataclasses.replace(base, **overrides)
        return Mutex(f"{self._key_prefix}{name}", self._stores, base, self._quorum)

    async def close(self) -> None:
        """生成元が所有するストアの接続を閉じる。"""
        if self._owns_stores:
            for store in self._stores:
                await store.close()

    async def __aenter__(self) -> LockGenerator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
