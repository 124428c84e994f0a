"""
Per-client news subscriptions.

Each subscribed socket owns one polling task that pushes the latest
headlines immediately and then on a fixed interval until the client
unsubscribes or disconnects.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List

from ..providers.base import FetchError, NewsProvider

logger = logging.getLogger(__name__)

Emitter = Callable[..., Awaitable[Any]]


def error_payload(message: str) -> Dict[str, str]:
    return {
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class NewsSubscriptionManager:
    """
    Owns the polling timers for news subscribers.

    Usage:
        feed = NewsSubscriptionManager(provider, sio.emit)
        await feed.subscribe(sid)
        ...
        await feed.unsubscribe(sid)
    """

    def __init__(
        self,
        provider: NewsProvider,
        emit: Emitter,
        interval_seconds: float = 60.0,
    ):
        self.provider = provider
        self._emit = emit
        self.interval_seconds = interval_seconds
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def subscribers(self) -> List[str]:
        return list(self._tasks)

    def is_subscribed(self, sid: str) -> bool:
        task = self._tasks.get(sid)
        return task is not None and not task.done()

    async def fetch_once(self) -> List[Dict[str, Any]]:
        """Stateless on-demand fetch; raises FetchError."""
        items = await self.provider.fetch_latest()
        return [item.to_dict() for item in items]

    async def subscribe(self, sid: str) -> bool:
        """Start pushing news to ``sid``. Returns False if already subscribed."""
        if self.is_subscribed(sid):
            return False
        task = asyncio.create_task(self._run_subscription(sid), name=f"news-feed-{sid}")
        self._tasks[sid] = task
        task.add_done_callback(lambda t, sid=sid: self._forget(sid, t))
        logger.info("News subscription started for %s", sid)
        return True

    async def unsubscribe(self, sid: str) -> bool:
        task = self._tasks.pop(sid, None)
        if task is None:
            return False
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("News subscription stopped for %s", sid)
        return True

    async def shutdown(self) -> None:
        for sid in list(self._tasks):
            await self.unsubscribe(sid)

    def _forget(self, sid: str, task: asyncio.Task) -> None:
        if self._tasks.get(sid) is task:
            self._tasks.pop(sid, None)

    async def _run_subscription(self, sid: str) -> None:
        while True:
            await self._push(sid)
            await asyncio.sleep(self.interval_seconds)

    async def _push(self, sid: str) -> None:
        try:
            items = await self.fetch_once()
        except FetchError as exc:
            logger.warning("News fetch failed for %s: %s", sid, exc)
        except Exception:
            logger.exception("Unexpected error while fetching news for %s", sid)
        else:
            await self._safe_emit("news", items, sid)
            return
        await self._safe_emit("error", error_payload("Unable to fetch the latest news right now."), sid)

    async def _safe_emit(self, event: str, data: Any, sid: str) -> None:
        try:
            await self._emit(event, data, to=sid)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to emit %s to %s: %s", event, sid, exc)
