"""Data models for the LLM adapter layer.

Field names are snake_case in Python and camelCase on the wire, matching the
browser client's payloads.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ProviderName = Literal["openai", "anthropic"]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        protected_namespaces=(),
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ModelInfo(_WireModel):
    id: str
    provider: ProviderName
    name: str
    max_tokens: int
    input_price_per_token: float
    output_price_per_token: float


class CompletionRequest(_WireModel):
    prompt: str = Field(min_length=1)
    model_id: str = Field(min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_tokens: int = Field(default=2000, gt=0)
    # Items are {"name", "content"} objects but stay unvalidated here: a
    # malformed document degrades the prompt instead of rejecting the request.
    documents: list[Any] = Field(default_factory=list)
    system_message: str | None = None


class Usage(_WireModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class CompletionResponse(_WireModel):
    content: str
    usage: Usage
