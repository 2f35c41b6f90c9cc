"""LockStore 実装・ファンアウト・トークン生成のユニットテスト"""

import asyncio
import base64

import pytest
from k1s0_redlock import (
    InMemoryLockStore,
    RedlockErrorCodes,
    StoreOperationError,
    TokenGenerationError,
    backoff_delay,
    constant_delay,
    fan_out,
    generate_token,
)


def test_generate_token_is_128_bit_base64() -> None:
    """トークンは 16 バイトの base64 文字列であること。"""
    token = generate_token()
    assert len(base64.standard_b64decode(token)) == 16
    assert token != generate_token()


def test_generate_token_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    """乱数源の失敗は TokenGenerationError。"""

    def broken(n: int) -> bytes:
        raise OSError("no entropy")

    monkeypatch.setattr("k1s0_redlock.token.secrets.token_bytes", broken)
    with pytest.raises(TokenGenerationError) as exc_info:
        generate_token()
    assert exc_info.value.code == RedlockErrorCodes.TOKEN_GENERATION
    assert str(exc_info.value).startswith("TOKEN_GENERATION_ERROR: ")


def test_constant_delay() -> None:
    delay = constant_delay(0.25)
    assert delay(1) == 0.25
    assert delay(10) == 0.25


def test_backoff_delay_no_jitter() -> None:
    """ジッターなしの指数バックオフと上限。"""
    delay = backoff_delay(initial=0.1, multiplier=2.0, max_delay=0.5, jitter=False)
    assert delay(1) == pytest.approx(0.1)
    assert delay(2) == pytest.approx(0.2)
    assert delay(3) == pytest.approx(0.4)
    assert delay(4) == pytest.approx(0.5)


def test_backoff_delay_with_jitter() -> None:
    delay = backoff_delay(initial=1.0, multiplier=1.0, max_delay=30.0, jitter=True)
    for _ in range(50):
        assert 0.9 <= delay(1) <= 1.1


async def test_fan_out_counts_successes_and_absorbs_errors() -> None:
    """例外を送出したストアは失敗として数えられること。"""
    stores = [InMemoryLockStore() for _ in range(4)]
    stores[1].available = False
    stores[2].available = False
    count = await fan_out(stores, lambda store: store.set_if_absent("k", "v", 1.0))
    assert count == 2


async def test_fan_out_waits_for_every_store() -> None:
    """遅いストアも含め全ストアの完了を待つこと。"""
    finished: list[int] = []

    async def op(index: int) -> bool:
        await asyncio.sleep(0.01 * index)
        finished.append(index)
        return True

    stores = [InMemoryLockStore(name=str(i)) for i in range(3)]
    count = await fan_out(stores, lambda store: op(int(store.name)))
    assert count == 3
    assert sorted(finished) == [0, 1, 2]


async def test_memory_set_if_absent() -> None:
    store = InMemoryLockStore()
    assert await store.set_if_absent("k", "a", 1.0) is True
    assert await store.set_if_absent("k", "b", 1.0) is False
    assert store.get("k") == "a"


async def test_memory_expired_key_can_be_set() -> None:
    store = InMemoryLockStore()
    await store.set_if_absent("k", "a", 0.01)
    await asyncio.sleep(0.03)
    assert store.get("k") is None
    assert await store.set_if_absent("k", "b", 1.0) is True


async def test_memory_conditional_delete_and_extend() -> None:
    store = InMemoryLockStore()
    await store.set_if_absent("k", "a", 0.5)
    assert await store.extend_if_match("k", "b", 10.0) is False
    assert store.ttl("k") <= 0.5
    assert await store.extend_if_match("k", "a", 10.0) is True
    assert store.ttl("k") > 9.0
    assert await store.delete_if_match("k", "b") is False
    assert await store.delete_if_match("k", "a") is True
    assert await store.delete_if_match("k", "a") is False


async def test_memory_unavailable() -> None:
    store = InMemoryLockStore(name="replica-1")
    store.available = False
    with pytest.raises(StoreOperationError, match="replica-1"):
        await store.set_if_absent("k", "a", 1.0)
