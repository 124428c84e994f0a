#!/usr/bin/env python3
"""Terminal front-end for trying the advisor without the web UI"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from .config import settings
from .core import PersonaManager, SessionContextTracker, TurnKind, budgets_from_settings
from .logging_config import setup_logging
from .providers import CryptoPanicProvider, FetchError
from .providers.llm import ProviderError, get_llm_provider
from .providers.llm.base import user
from .services import MarketAnalyst

CLI_SESSION = "cli"


def build_tracker(llm_provider) -> SessionContextTracker:
    personas = PersonaManager()
    return SessionContextTracker(
        llm_provider=llm_provider,
        base_prompt=personas.get_persona("crypto_advisor").system_prompt,
        budgets=budgets_from_settings(settings),
        temperature=settings.temperature,
    )


def print_history(tracker: SessionContextTracker) -> None:
    print("\nConversation History:")
    for msg in tracker.transcript(CLI_SESSION)[1:]:
        print(f"{msg.role}: {msg.content}\n")


async def cli_chat(wallet_file: Optional[str] = None):
    """Interactive chat mode"""
    llm_provider = get_llm_provider(settings)
    tracker = build_tracker(llm_provider)
    tracker.on_connect(CLI_SESSION)

    print("\n🤖 Crypto Advisor Chat")
    print('Type "exit" to quit, "clear" to reset conversation, "history" to see conversation history')
    print("-" * 40)
    print(settings.welcome_message)

    try:
        if wallet_file:
            with open(wallet_file, "r", encoding="utf-8") as f:
                context = json.load(f)
            reply = await tracker.on_inbound_message(CLI_SESSION, {"context": context})
            print(f"\n🤖 Assistant: {reply}")

        while True:
            user_input = (await asyncio.to_thread(input, "\n💬 You: ")).strip()

            if user_input.lower() in ["exit", "quit", "q"]:
                break
            if user_input.lower() == "clear":
                tracker.reset_conversation(CLI_SESSION)
                print("\nConversation cleared.")
                continue
            if user_input.lower() == "history":
                print_history(tracker)
                continue
            if not user_input:
                continue

            reply = await tracker.on_inbound_message(CLI_SESSION, {"message": user_input})
            print(f"\n🤖 Assistant: {reply}")
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        tracker.on_disconnect(CLI_SESSION)
        await llm_provider.close()

    print("\nGoodbye! 👋")


async def cli_ping() -> int:
    """Send one short prompt to the configured model provider"""
    llm_provider = get_llm_provider(settings)
    print(f"Testing {settings.llm_provider} connection...")
    try:
        reply = await llm_provider.complete(
            [user("Hello, this is a test message. Please respond with a short greeting.")],
            model=settings.quick_model,
            max_tokens=50,
            temperature=settings.temperature,
        )
        print(f"Response received: {reply}")
        return 0
    except ProviderError as e:
        print(f"❌ Error testing connection: {e}")
        return 1
    finally:
        await llm_provider.close()


def _news_provider() -> CryptoPanicProvider:
    if not settings.has_news_key:
        raise SystemExit("CRYPTOPANIC_NEWS_API_KEY is not set")
    return CryptoPanicProvider(settings.cryptopanic_news_api_key, settings.cryptopanic_base_url)


async def cli_news(limit: int) -> int:
    provider = _news_provider()
    try:
        items = await provider.fetch_latest()
    except FetchError as e:
        print(f"❌ Error: {e}")
        return 1
    finally:
        await provider.close()

    for i, item in enumerate(items[:limit], 1):
        print(f"{i:2d}. {item.title}")
        print(f"    {item.source} · {item.published_at}")
        print(f"    {item.url}")
    return 0


async def cli_analysis() -> int:
    news_provider = _news_provider()
    llm_provider = get_llm_provider(settings)
    analyst = MarketAnalyst(
        llm_provider=llm_provider,
        news_provider=news_provider,
        persona_manager=PersonaManager(),
        budget=budgets_from_settings(settings)[TurnKind.INTRODUCTION],
        headline_count=settings.news_headline_count,
        temperature=settings.temperature,
    )
    try:
        analysis = await analyst.run()
    except (FetchError, ProviderError) as e:
        print(f"❌ Error: {e}")
        return 1
    finally:
        await news_provider.close()
        await llm_provider.close()

    print(analysis.render())
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Crypto Advisor CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    chat_parser = subparsers.add_parser("chat", help="Interactive chat mode")
    chat_parser.add_argument(
        "--wallet",
        help="JSON file with a wallet snapshot (walletAddress, chainName, totalValue, assets)",
    )

    subparsers.add_parser("ping", help="Check the model provider connection")

    news_parser = subparsers.add_parser("news", help="Print the latest headlines")
    news_parser.add_argument("--limit", type=int, default=10, help="Number of headlines to show")

    subparsers.add_parser("analysis", help="Run the news-driven market analysis")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    setup_logging("WARNING", json_logs=False, stream=sys.stderr)

    try:
        if args.command == "chat":
            asyncio.run(cli_chat(args.wallet))
            return 0
        if args.command == "ping":
            return asyncio.run(cli_ping())
        if args.command == "news":
            return asyncio.run(cli_news(args.limit))
        if args.command == "analysis":
            return asyncio.run(cli_analysis())
    except ValueError as e:
        print(f"❌ {e}")
        return 1
    return 1


if __name__ == "__main__":
    sys.exit(main())
