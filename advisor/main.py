import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import socketio
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api import health, news
from .api.chat_socket import ChatSocketServer
from .config import Settings, settings as default_settings
from .core import PersonaManager, SessionContextTracker, TurnKind, budgets_from_settings
from .logging_config import bind_request, setup_logging
from .providers import CryptoPanicProvider, NewsProvider
from .providers.llm import LLMProvider, get_llm_provider
from .services import MarketAnalyst, NewsSubscriptionManager

http_logger = structlog.stdlib.get_logger("http")


def build_api(
    settings: Optional[Settings] = None,
    llm_provider: Optional[LLMProvider] = None,
    news_provider: Optional[NewsProvider] = None,
    sio: Optional[socketio.AsyncServer] = None,
) -> FastAPI:
    """Wire providers, tracker and feeds into a FastAPI app.

    Raises ValueError when the configured model provider has no API key or a
    persona the wired services need is missing.
    """
    settings = settings or default_settings
    if llm_provider is None:
        if not settings.has_llm_key:
            raise ValueError(f"No API key configured for LLM provider '{settings.llm_provider}'")
        llm_provider = get_llm_provider(settings)
    if news_provider is None and settings.has_news_key:
        news_provider = CryptoPanicProvider(
            api_key=settings.cryptopanic_news_api_key,
            base_url=settings.cryptopanic_base_url,
        )
    sio = sio or socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.cors_allowed_origins,
    )

    persona_manager = PersonaManager()
    required = ["crypto_advisor"]
    if news_provider is not None:
        required += MarketAnalyst.PERSONAS
    missing = [name for name in required if not persona_manager.has_persona(name)]
    if missing:
        raise ValueError(f"Missing persona definitions: {', '.join(missing)}")

    budgets = budgets_from_settings(settings)
    tracker = SessionContextTracker(
        llm_provider=llm_provider,
        base_prompt=persona_manager.get_persona("crypto_advisor").system_prompt,
        budgets=budgets,
        temperature=settings.temperature,
    )

    news_feed = None
    market_analyst = None
    if news_provider is not None:
        news_feed = NewsSubscriptionManager(
            news_provider,
            sio.emit,
            interval_seconds=settings.news_poll_interval_seconds,
        )
        market_analyst = MarketAnalyst(
            llm_provider=llm_provider,
            news_provider=news_provider,
            persona_manager=persona_manager,
            budget=budgets[TurnKind.INTRODUCTION],
            headline_count=settings.news_headline_count,
            temperature=settings.temperature,
        )

    chat_server = ChatSocketServer(
        sio,
        tracker,
        welcome_message=settings.welcome_message,
        news_feed=news_feed,
        market_analyst=market_analyst,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if news_feed is not None:
            await news_feed.shutdown()
        await llm_provider.close()
        close_news = getattr(news_provider, "close", None)
        if close_news is not None:
            await close_news()

    app = FastAPI(
        title="Crypto Advisor Chat",
        description="Wallet-aware crypto advisor over Socket.IO",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        bind_request(request_id)

        start = time.perf_counter()
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        http_logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return response

    app.include_router(health.router, tags=["Health"])
    app.include_router(news.router, tags=["News"])

    app.state.settings = settings
    app.state.llm_provider = llm_provider
    app.state.news_provider = news_provider
    app.state.tracker = tracker
    app.state.news_feed = news_feed
    app.state.market_analyst = market_analyst
    app.state.chat_server = chat_server

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "Crypto Advisor Chat",
            "version": "0.1.0",
            "socket_path": "/socket.io",
            "news_enabled": news_provider is not None,
            "personas": persona_manager.list_personas(),
            "health": "/healthz",
        }

    return app


def create_app(settings: Optional[Settings] = None) -> socketio.ASGIApp:
    """ASGI entrypoint: Socket.IO in front, FastAPI for everything else."""
    settings = settings or default_settings
    setup_logging(settings.log_level)
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.cors_allowed_origins,
    )
    api = build_api(settings, sio=sio)
    return socketio.ASGIApp(sio, other_asgi_app=api)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "advisor.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower()
    )
