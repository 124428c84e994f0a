import json
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .portfolio import Asset


class MalformedPayload(ValueError):
    """Inbound ``input`` payload could not be parsed into an envelope."""


class EnvelopeContext(BaseModel):
    """Wallet snapshot carried by an ``input`` envelope."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    wallet_address: str = Field(validation_alias="walletAddress")
    chain_name: str = Field(validation_alias="chainName")
    total_value: Optional[str] = Field(default=None, validation_alias="totalValue")
    assets: List[Asset] = Field(default_factory=list)

    @field_validator("total_value", mode="before")
    @classmethod
    def _total_as_string(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class InboundEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    context: Optional[EnvelopeContext] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def _require_content(self) -> "InboundEnvelope":
        if self.context is None and self.message is None:
            raise ValueError("envelope must carry a context object or a message")
        return self


def parse_envelope(raw_payload: Union[str, bytes, dict]) -> InboundEnvelope:
    """Decode the client's ``input`` payload.

    The UI sends a JSON string; already-decoded objects are accepted too.
    Raises MalformedPayload on anything else.
    """
    data: Any = raw_payload
    if isinstance(raw_payload, (str, bytes)):
        try:
            data = json.loads(raw_payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedPayload(f"input is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedPayload("input must be a JSON object")

    try:
        return InboundEnvelope.model_validate(data)
    except ValidationError as exc:
        raise MalformedPayload(f"invalid input envelope: {exc.error_count()} error(s)") from exc
