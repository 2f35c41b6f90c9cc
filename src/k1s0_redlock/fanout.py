"""全ストアへの並行ファンアウト"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from .store import LockStore

logger = logging.getLogger(__name__)

StoreOperation = Callable[[LockStore], Awaitable[bool]]


async def fan_out(stores: Sequence[LockStore], operation: StoreOperation) -> int:
    """全ストアに operation を並行実行し、True を返したストア数を返す。

    全タスクの完了を待つ。クォーラム到達による早期終了やタスク単位の
    タイムアウトは行わない。個々のストアの例外はログに記録して失敗として数える。
    """

    async def run(index: int, store: LockStore) -> bool:
        try:
            return bool(await operation(store))
        except Exception as e:
            logger.warning(
                "Lock store operation failed",
                extra={"store_index": index, "error": str(e)},
            )
            return False

    async with asyncio.TaskGroup() as group:
        tasks = [group.create_task(run(i, store)) for i, store in enumerate(stores)]
    return sum(1 for task in tasks if task.result())
