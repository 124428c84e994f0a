from typing import Any, Dict

from pydantic import BaseModel, Field


class NewsItem(BaseModel):
    """Headline returned by the news provider."""
    title: str
    url: str
    source: str = Field(description="Publisher display name")
    published_at: str = Field(description="Publication timestamp as reported upstream")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
