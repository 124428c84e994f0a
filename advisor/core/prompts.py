"""Prompt rendering for the wallet-aware advisor."""

import math
from decimal import Decimal
from typing import List, Optional

from ..types import Asset, EnvelopeContext, WalletContext, percent_change

INITIAL_ANALYSIS_PREFIX = "📊 Initial Analysis:\n\n"
FALLBACK_REPLY = "Sorry, I encountered an error processing your request."


def render_system_prompt(base_prompt: str, context: WalletContext) -> str:
    """System message for a session; depends only on the merged context."""
    return (
        f"{base_prompt.rstrip()}\n\n"
        "Current wallet context:\n"
        f"- Wallet address: {context.wallet_address or 'Not connected'}\n"
        f"- Chain: {context.selected_chain or 'Not selected'}\n"
        f"- Balance: {context.balance or 'Unknown'}"
    )


def _format_amount(value: Optional[float]) -> str:
    """Quantity as received, in plain notation (no rounding, no exponent)."""
    if value is None or not math.isfinite(value):
        return "Unknown"
    return format(Decimal(repr(value)), ",f")


def _format_usd(value: Optional[float]) -> str:
    if value is None or not math.isfinite(value):
        return "Unknown"
    return f"${value:,.2f}"


def render_asset_line(asset: Asset) -> str:
    change = percent_change(asset)
    change_text = f"{change}%" if change is not None else "N/A"
    return (
        f"- {asset.name or asset.symbol} ({asset.symbol}): "
        f"balance {_format_amount(asset.balance)}, "
        f"value {_format_usd(asset.value)}, "
        f"24h change {change_text}"
    )


def render_portfolio_summary_request(context: EnvelopeContext) -> str:
    """Synthetic user turn that introduces the wallet to the model."""
    lines: List[str] = [
        "Here is my current wallet:",
        f"Wallet address: {context.wallet_address}",
        f"Chain: {context.chain_name}",
        f"Total value: {context.total_value or 'Unknown'}",
    ]
    if context.assets:
        lines.append("Assets:")
        lines.extend(render_asset_line(asset) for asset in context.assets)
    else:
        lines.append("Assets: none reported")
    lines.append(
        "Please give me a summary of this portfolio and point out the biggest 24h movers."
    )
    return "\n".join(lines)
