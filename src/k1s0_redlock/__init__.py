"""k1s0 redlock library."""

from .exceptions import (
    LockAcquisitionError,
    LockNotHeldError,
    RedlockError,
    RedlockErrorCodes,
    StoreOperationError,
    TokenGenerationError,
)
from .fanout import fan_out
from .generator import LockGenerator
from .memory import InMemoryLockStore
from .models import MutexConfig, backoff_delay, constant_delay, quorum_for
from .mutex import Mutex
from .redis_store import RedisLockStore
from .settings import RedisEndpoint, RedlockSettings, load_settings
from .store import LockStore
from .token import generate_token

__all__ = [
    "LockGenerator",
    "Mutex",
    "MutexConfig",
    "LockStore",
    "InMemoryLockStore",
    "RedisLockStore",
    "RedisEndpoint",
    "RedlockSettings",
    "load_settings",
    "fan_out",
    "generate_token",
    "constant_delay",
    "backoff_delay",
    "quorum_for",
    "RedlockError",
    "RedlockErrorCodes",
    "TokenGenerationError",
    "LockAcquisitionError",
    "LockNotHeldError",
    "StoreOperationError",
]
