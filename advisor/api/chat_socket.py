"""
Socket.IO chat transport.

Maps the UI's socket events onto the session tracker, the news feed and the
market analyst. Every handler catches at its boundary so nothing escapes into
the event dispatcher and clients never see a stack trace.
"""

import logging
from typing import Any, Dict, List, Optional

import socketio

from ..core.prompts import FALLBACK_REPLY
from ..core.session import SessionContextTracker
from ..logging_config import bind_session
from ..providers.base import FetchError
from ..providers.llm.base import ProviderError
from ..services.market_analysis import MarketAnalyst
from ..services.news_feed import NewsSubscriptionManager, error_payload
from ..types import MalformedPayload

logger = logging.getLogger(__name__)

NEWS_UNAVAILABLE = "The news feed is not configured on this server."


class ChatSocketServer:
    """Registers the chat event handlers on an ``AsyncServer``."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        tracker: SessionContextTracker,
        welcome_message: str,
        news_feed: Optional[NewsSubscriptionManager] = None,
        market_analyst: Optional[MarketAnalyst] = None,
    ):
        self.sio = sio
        self.tracker = tracker
        self.welcome_message = welcome_message
        self.news_feed = news_feed
        self.market_analyst = market_analyst
        self._register_handlers()

    def _register_handlers(self) -> None:
        handlers = {
            "connect": self.handle_connect,
            "disconnect": self.handle_disconnect,
            "context-update": self.handle_context_update,
            "input": self.handle_input,
            "subscribe-news": self.handle_subscribe_news,
            "unsubscribe-news": self.handle_unsubscribe_news,
            "get-news": self.handle_get_news,
            "market-analysis": self.handle_market_analysis,
        }
        for event, handler in handlers.items():
            self.sio.on(event, handler)

    async def _send_error(self, sid: str, message: str) -> None:
        await self.sio.emit("error", error_payload(message), to=sid)

    # ---------------------------
    # Lifecycle
    # ---------------------------
    async def handle_connect(self, sid: str, environ: Dict[str, Any], auth: Any = None) -> None:
        bind_session(sid)
        self.tracker.on_connect(sid)
        logger.info("Client connected")
        await self.sio.emit("output", self.welcome_message, to=sid)
        await self.sio.emit("status", "connected", to=sid)

    async def handle_disconnect(self, sid: str, reason: Any = None) -> None:
        bind_session(sid)
        if self.news_feed:
            await self.news_feed.unsubscribe(sid)
        self.tracker.on_disconnect(sid)
        logger.info("Client disconnected (%s)", reason or "client")

    # ---------------------------
    # Chat
    # ---------------------------
    async def handle_context_update(self, sid: str, data: Any) -> None:
        bind_session(sid)
        try:
            self.tracker.on_context_update(sid, data)
        except MalformedPayload as exc:
            logger.warning("Rejected context update: %s", exc)
            await self._send_error(sid, "Invalid wallet context update.")
            return
        await self.sio.emit("status", "context-updated", to=sid)

    async def handle_input(self, sid: str, data: Any) -> None:
        bind_session(sid)
        logger.debug("Received input")
        try:
            reply = await self.tracker.on_inbound_message(sid, data)
        except MalformedPayload as exc:
            logger.warning("Rejected input: %s", exc)
            await self._send_error(sid, "Could not understand that message.")
            return
        except Exception as exc:  # noqa: BLE001
            logger.error("Input handling failed: %s", exc, exc_info=True)
            await self.sio.emit("output", FALLBACK_REPLY, to=sid)
            return
        await self.sio.emit("output", reply, to=sid)

    # ---------------------------
    # News
    # ---------------------------
    async def handle_subscribe_news(self, sid: str, data: Any = None) -> None:
        bind_session(sid)
        if not self.news_feed:
            await self._send_error(sid, NEWS_UNAVAILABLE)
            return
        if await self.news_feed.subscribe(sid):
            await self.sio.emit("status", "news-subscribed", to=sid)

    async def handle_unsubscribe_news(self, sid: str, data: Any = None) -> None:
        bind_session(sid)
        if self.news_feed and await self.news_feed.unsubscribe(sid):
            await self.sio.emit("status", "news-unsubscribed", to=sid)

    async def handle_get_news(self, sid: str, data: Any = None) -> None:
        bind_session(sid)
        if not self.news_feed:
            await self._send_error(sid, NEWS_UNAVAILABLE)
            return
        try:
            items: List[Dict[str, Any]] = await self.news_feed.fetch_once()
        except FetchError as exc:
            logger.warning("On-demand news fetch failed: %s", exc)
            await self._send_error(sid, "Unable to fetch the latest news right now.")
            return
        await self.sio.emit("news", items, to=sid)

    async def handle_market_analysis(self, sid: str, data: Any = None) -> None:
        bind_session(sid)
        if not self.market_analyst:
            await self._send_error(sid, NEWS_UNAVAILABLE)
            return
        await self.sio.emit("status", "analysis-started", to=sid)
        try:
            analysis = await self.market_analyst.run()
        except FetchError as exc:
            logger.warning("Market analysis news fetch failed: %s", exc)
            await self._send_error(sid, "Unable to fetch the latest news right now.")
            return
        except ProviderError as exc:
            logger.error("Market analysis model call failed: %s", exc)
            await self.sio.emit("output", FALLBACK_REPLY, to=sid)
            return
        await self.sio.emit("output", analysis.render(), to=sid)
