import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Asset(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", description="Full token name")
    symbol: str = Field(default="", description="Token symbol (e.g. ETH, USDC)")
    balance: Optional[float] = Field(default=None, description="Quantity held, as reported by the client")
    value: Optional[float] = Field(default=None, description="Current position value in USD")
    price: Optional[float] = Field(default=None, description="Current unit price in USD")
    price_24: Optional[float] = Field(default=None, description="Unit price 24 hours ago in USD")


def percent_change(asset: Asset) -> Optional[str]:
    """24h price change formatted to two decimals, or None when undefined."""
    if asset.price is None or not asset.price_24:
        return None
    if not (math.isfinite(asset.price) and math.isfinite(asset.price_24)):
        return None
    change = (asset.price - asset.price_24) / asset.price_24 * 100
    return f"{change:.2f}"


class WalletContext(BaseModel):
    """Wallet state the client has shared with us for one session."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    wallet_address: Optional[str] = Field(
        default=None,
        validation_alias="walletAddress",
        description="Connected wallet address",
    )
    selected_chain: Optional[str] = Field(
        default=None,
        validation_alias="selectedChain",
        description="Chain identifier selected in the UI",
    )
    balance: Optional[str] = Field(default=None, description="Total wallet value as reported by the client")
    assets: Optional[List[Asset]] = Field(default=None, description="Individual holdings")

    @field_validator("balance", mode="before")
    @classmethod
    def _balance_as_string(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def is_empty(self) -> bool:
        return not self.model_fields_set

    def merge(self, partial: "WalletContext") -> "WalletContext":
        """Shallow union; fields present in ``partial`` win."""
        merged: Dict[str, Any] = {}
        for source in (self, partial):
            for name in source.model_fields_set:
                merged[name] = getattr(source, name)
        return WalletContext.model_validate(merged)
