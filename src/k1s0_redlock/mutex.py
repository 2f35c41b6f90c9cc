"""クォーラム方式の分散 Mutex"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from types import TracebackType

from .exceptions import (
    LockAcquisitionError,
    LockNotHeldError,
    TokenGenerationError,
)
from .fanout import fan_out
from .models import MutexConfig
from .store import LockStore

logger = logging.getLogger(__name__)


class Mutex:
    """N 個の独立したストア上に構築された分散 Mutex（Redlock）。

    lock() で過半数のストアにトークンを書き込めた場合のみロックを保持する。
    有効期限 until は往復時間とクロックドリフト分を差し引いた保守的な値となる。

    1 つのインスタンスは単一の所有者から使う前提で、内部状態の排他制御は行わない。
    ストアの集合は複数インスタンス間で共有してよい（読み取り専用）。
    """

    def __init__(
        self,
        name: str,
        stores: Sequence[LockStore],
        config: MutexConfig,
        quorum: int,
    ) -> None:
        self._name = name
        self._stores = tuple(stores)
        self._config = config
        self._quorum = quorum
        self._value: str | None = None
        self._until: datetime | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> MutexConfig:
        return self._config

    @property
    def quorum(self) -> int:
        return self._quorum

    @property
    def value(self) -> str | None:
        """現在の所有トークン。未取得の場合は None。"""
        return self._value

    @property
    def until(self) -> datetime | None:
        """ロックの有効期限 (UTC)。未取得の場合は None。"""
        return self._until

    @property
    def locked(self) -> bool:
        return self.validity() > 0

    def validity(self) -> float:
        """有効期限までの残り秒数。未取得・期限切れの場合は 0.0。"""
        if self._value is None or self._until is None:
            return 0.0
        remaining = (self._until - datetime.now(timezone.utc)).total_seconds()
        return max(0.0, remaining)

    def _new_token(self) -> str:
        try:
            return self._config.token_generator()
        except TokenGenerationError:
            raise
        except Exception as e:
            raise TokenGenerationError(f"Token generator failed: {e}", cause=e) from e

    def _deadline(self, elapsed: float) -> datetime | None:
        validity = self._config.expiry - elapsed - self._config.drift
        if validity <= 0:
            return None
        return datetime.now(timezone.utc) + timedelta(seconds=validity)

    async def lock(self) -> None:
        """ロックを取得する。

        Raises:
            TokenGenerationError: トークン生成に失敗した場合（リトライしない）
            LockAcquisitionError: tries 回の試行すべてでクォーラムに達しなかった場合
        """
        value = self._new_token()
        expiry = self._config.expiry

        for attempt in range(self._config.tries):
            if attempt > 0:
                await asyncio.sleep(self._config.retry_delay(attempt))

            start = time.monotonic()
            acquired = await fan_out(
                self._stores, lambda store: store.set_if_absent(self._name, value, expiry)
            )
            elapsed = time.monotonic() - start
            until = self._deadline(elapsed)

            if acquired >= self._quorum and until is not None:
                self._value = value
                self._until = until
                logger.info(
                    "Lock acquired",
                    extra={"lock": self._name, "attempt": attempt + 1, "stores": acquired},
                )
                return

            logger.debug(
                "Lock attempt failed",
                extra={
                    "lock": self._name,
                    "attempt": attempt + 1,
                    "stores": acquired,
                    "quorum": self._quorum,
                    "elapsed": elapsed,
                },
            )
            await fan_out(self._stores, lambda store: store.delete_if_match(self._name, value))

        logger.warning(
            "Lock acquisition exhausted",
            extra={"lock": self._name, "tries": self._config.tries},
        )
        raise LockAcquisitionError(self._name, self._config.tries)

    async def unlock(self) -> bool:
        """ロックを解放する。クォーラム以上のストアで削除できた場合に True。

        失敗時はトークンを保持したままにするので、呼び出し側で再試行できる。

        Raises:
            LockNotHeldError: ロックを取得していない場合
        """
        value = self._require_value()
        released = await fan_out(
            self._stores, lambda store: store.delete_if_match(self._name, value)
        )
        if released < self._quorum:
            logger.warning(
                "Lock release did not reach quorum",
                extra={"lock": self._name, "stores": released, "quorum": self._quorum},
            )
            return False
        self._value = None
        self._until = None
        logger.info("Lock released", extra={"lock": self._name, "stores": released})
        return True

    async def extend(self) -> bool:
        """ロックの TTL を expiry まで延長する。成功時は until も更新する。

        Raises:
            LockNotHeldError: ロックを取得していない場合
        """
        value = self._require_value()
        expiry = self._config.expiry
        start = time.monotonic()
        extended = await fan_out(
            self._stores, lambda store: store.extend_if_match(self._name, value, expiry)
        )
        until = self._deadline(time.monotonic() - start)
        if extended < self._quorum or until is None:
            logger.warning(
                "Lock extend did not reach quorum",
                extra={"lock": self._name, "stores": extended, "quorum": self._quorum},
            )
            return False
        self._until = until
        logger.debug("Lock extended", extra={"lock": self._name, "stores": extended})
        return True

    def _require_value(self) -> str:
        if self._value is None:
            raise LockNotHeldError(self._name)
        return self._value

    async def __aenter__(self) -> Mutex:
        await self.lock()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._value is not None:
            await self.unlock()

    def __repr__(self) -> str:
        return f"Mutex(name={self._name!r}, quorum={self._quorum}, locked={self.locked})"
