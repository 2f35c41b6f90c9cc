"""ロック設定"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field

from .exceptions import RedlockError, RedlockErrorCodes
from .token import TokenGenerator, generate_token

RetryDelay = Callable[[int], float]

DEFAULT_EXPIRY = 8.0
DEFAULT_TRIES = 32
DEFAULT_RETRY_DELAY = 0.5
DEFAULT_DRIFT_FACTOR = 0.01


def constant_delay(seconds: float) -> RetryDelay:
    """試行回数によらず一定の待機時間を返すポリシー。"""
    if seconds < 0:
        raise RedlockError(RedlockErrorCodes.INVALID_CONFIG, "retry delay must be >= 0")

    def delay(attempt: int) -> float:
        return seconds

    return delay


def backoff_delay(
    initial: float = 0.05,
    multiplier: float = 2.0,
    max_delay: float = 2.0,
    jitter: bool = True,
) -> RetryDelay:
    """上限付き指数バックオフのポリシー。jitter 有効時は ±10% の揺らぎを加える。"""

    def delay(attempt: int) -> float:
        base = initial * (multiplier ** max(attempt - 1, 0))
        capped = min(base, max_delay)
        if jitter:
            return capped * (0.9 + random.random() * 0.2)
        return capped

    return delay


def quorum_for(replicas: int) -> int:
    """レプリカ数からクォーラム floor(N/2)+1 を求める。"""
    return replicas // 2 + 1


@dataclass(frozen=True)
class MutexConfig:
    """Mutex の調整パラメータ。時間はすべて秒。"""

    expiry: float = DEFAULT_EXPIRY
    tries: int = DEFAULT_TRIES
    retry_delay: RetryDelay = field(default_factory=lambda: constant_delay(DEFAULT_RETRY_DELAY))
    drift_factor: float = DEFAULT_DRIFT_FACTOR
    token_generator: TokenGenerator = generate_token

    def __post_init__(self) -> None:
        if self.expiry <= 0:
            raise RedlockError(RedlockErrorCodes.INVALID_CONFIG, "expiry must be > 0")
        if self.tries < 1:
            raise RedlockError(RedlockErrorCodes.INVALID_CONFIG, "tries must be >= 1")
        if not 0 <= self.drift_factor < 1:
            raise RedlockError(
                RedlockErrorCodes.INVALID_CONFIG, "drift_factor must be in [0, 1)"
            )

    @property
    def drift(self) -> float:
        """有効期限から差し引く安全マージン（秒）。"""
        return self.expiry * self.drift_factor
