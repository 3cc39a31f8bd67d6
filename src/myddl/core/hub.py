"""ChangeHub -- 内存中的变更广播器

每个订阅者持有一个 asyncio.Queue，支持 subscribe/unsubscribe/broadcast。
DataStore 在每次成功变更后广播 StoreChange，界面层订阅后自行刷新。
"""

import asyncio
from collections import defaultdict

from .models.change import StoreChange
from .models.enums import EntityKind

# 订阅全部实体类型时使用的键
ALL_KINDS = "*"


class ChangeHub:
    """变更广播器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        # 实体类型（或 ALL_KINDS） -> set of asyncio.Queue
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    def subscribe(self, kind: EntityKind | None = None) -> asyncio.Queue:
        """订阅变更通知

        Args:
            kind: 只关心的实体类型；None 表示订阅全部

        Returns:
            asyncio.Queue 实例，新的 StoreChange 会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers[_key(kind)].add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue, kind: EntityKind | None = None) -> None:
        """取消订阅

        Args:
            queue: 之前订阅时返回的队列
            kind: 订阅时传入的实体类型
        """
        key = _key(kind)
        self._subscribers[key].discard(queue)
        if not self._subscribers[key]:
            del self._subscribers[key]

    def subscriber_count(self) -> int:
        return sum(len(queues) for queues in self._subscribers.values())

    def broadcast(self, change: StoreChange) -> None:
        """向关心该实体类型的所有订阅者广播变更

        队列已满的订阅者视为失联，直接移除。
        """
        for key in (change.kind.value, ALL_KINDS):
            dead_queues = []
            for queue in self._subscribers.get(key, set()):
                try:
                    queue.put_nowait(change)
                except asyncio.QueueFull:
                    dead_queues.append(queue)

            for q in dead_queues:
                self._subscribers[key].discard(q)
            if key in self._subscribers and not self._subscribers[key]:
                del self._subscribers[key]


def _key(kind: EntityKind | None) -> str:
    return ALL_KINDS if kind is None else kind.value
