from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/healthz")
async def health_check(request: Request) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    state = request.app.state
    provider_status: Dict[str, Any] = {}

    provider_status["llm"] = await state.llm_provider.health_check()

    news_provider = getattr(state, "news_provider", None)
    if news_provider is not None:
        provider_status["news"] = await news_provider.health_check()
    else:
        provider_status["news"] = {"status": "unavailable", "reason": "News feed not configured"}

    all_healthy = all(
        status["status"] in ["healthy", "unavailable"]
        for status in provider_status.values()
    )

    return {
        "status": "healthy" if all_healthy and provider_status["llm"]["status"] == "healthy" else "degraded",
        "providers": provider_status,
        "active_sessions": state.tracker.active_sessions,
    }
