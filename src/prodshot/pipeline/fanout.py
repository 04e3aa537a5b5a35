"""并发扇出/扇入：每个调用独立捕获异常并转为 None，互不牵连。"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from prodshot.core import get_logger

T = TypeVar("T")
R = TypeVar("R")

logger = get_logger(__name__)


async def gather_settled(
    items: Sequence[T],
    call: Callable[[T], Awaitable[Optional[R]]],
    *,
    stage: str,
    key: Callable[[T], object] = repr,
) -> List[Optional[R]]:
    """并发执行 call(item)，等待全部结束；结果与 items 位置一一对应。"""

    async def _guarded(item: T) -> Optional[R]:
        try:
            result = await call(item)
        except Exception as exc:
            logger.warning("%s call failed for frame %s: %s", stage, key(item), exc)
            return None
        if result is None:
            logger.warning("%s call returned no image for frame %s", stage, key(item))
        return result

    return list(await asyncio.gather(*(_guarded(item) for item in items)))
