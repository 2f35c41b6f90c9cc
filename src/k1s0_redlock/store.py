"""LockStore 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod


def ttl_to_millis(ttl: float) -> int:
    """秒単位の TTL をミリ秒に変換する。最小値は 1ms。"""
    return max(1, int(round(ttl * 1000)))


class LockStore(ABC):
    """ロック用キーバリューストア。

    各操作はストア上で不可分に実行されなければならない。
    失敗時は例外を送出してよく、ファンアウト側で失敗として数えられる。
    """

    @abstractmethod
    async def set_if_absent(self, key: str, value: str, ttl: float) -> bool:
        """キーが存在しない場合のみ TTL 付きで値を設定する。"""
        ...

    @abstractmethod
    async def delete_if_match(self, key: str, value: str) -> bool:
        """現在値が value と一致する場合のみキーを削除する。"""
        ...

    @abstractmethod
    async def extend_if_match(self, key: str, value: str, ttl: float) -> bool:
        """現在値が value と一致する場合のみ TTL を再設定する。"""
        ...

    async def close(self) -> None:
        """ストアが保持する接続を解放する。"""
