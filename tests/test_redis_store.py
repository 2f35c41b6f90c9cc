"""RedisLockStore のユニットテスト（fakeredis 使用）"""

import pytest
from k1s0_redlock import (
    LockAcquisitionError,
    LockGenerator,
    MutexConfig,
    RedisLockStore,
    RedlockErrorCodes,
    StoreOperationError,
    constant_delay,
)

fakeredis = pytest.importorskip("fakeredis")


def make_store(server=None) -> RedisLockStore:
    return RedisLockStore(fakeredis.FakeAsyncRedis(server=server or fakeredis.FakeServer()))


async def test_set_if_absent_with_ttl() -> None:
    """SET NX PX で設定され TTL がミリ秒で付くこと。"""
    store = make_store()
    assert await store.set_if_absent("k", "a", 2.0) is True
    assert await store.set_if_absent("k", "b", 2.0) is False
    assert await store.client.get("k") == b"a"
    assert 0 < await store.client.pttl("k") <= 2000


async def test_delete_if_match() -> None:
    """値が一致する場合のみ削除されること。"""
    pytest.importorskip("lupa")
    store = make_store()
    await store.set_if_absent("k", "a", 2.0)
    assert await store.delete_if_match("k", "b") is False
    assert await store.client.get("k") == b"a"
    assert await store.delete_if_match("k", "a") is True
    assert await store.client.get("k") is None


async def test_extend_if_match() -> None:
    """値が一致する場合のみ TTL が更新されること。"""
    pytest.importorskip("lupa")
    store = make_store()
    await store.set_if_absent("k", "a", 1.0)
    assert await store.extend_if_match("k", "b", 30.0) is False
    assert await store.client.pttl("k") <= 1000
    assert await store.extend_if_match("k", "a", 30.0) is True
    assert await store.client.pttl("k") > 1000


async def test_connection_error_is_wrapped() -> None:
    """接続エラーは StoreOperationError になること。"""
    server = fakeredis.FakeServer()
    server.connected = False
    store = make_store(server)
    with pytest.raises(StoreOperationError) as exc_info:
        await store.set_if_absent("k", "a", 1.0)
    assert exc_info.value.code == RedlockErrorCodes.STORE_OPERATION


async def test_mutex_over_redis_replicas() -> None:
    """3 台の Redis 上で取得・延長・解放できること。"""
    pytest.importorskip("lupa")
    stores = [make_store() for _ in range(3)]
    generator = LockGenerator(stores, MutexConfig(expiry=2.0, tries=1))
    mutex = generator.new_mutex("orders")

    await mutex.lock()
    for store in stores:
        assert await store.client.get("orders") == mutex.value.encode()

    assert await mutex.extend() is True
    assert await mutex.unlock() is True
    for store in stores:
        assert await store.client.get("orders") is None


async def test_mutex_over_redis_with_unreachable_majority() -> None:
    """過半数の Redis に到達できない場合は取得できないこと。"""
    pytest.importorskip("lupa")
    down = fakeredis.FakeServer()
    down.connected = False
    stores = [make_store(), make_store(down), make_store(down)]
    mutex = LockGenerator(
        stores, MutexConfig(tries=2, retry_delay=constant_delay(0.0))
    ).new_mutex("orders")

    with pytest.raises(LockAcquisitionError):
        await mutex.lock()
    assert await stores[0].client.get("orders") is None
