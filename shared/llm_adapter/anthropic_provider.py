"""
Anthropic Messages API adapter.

Unlike OpenAI, Anthropic takes the system prompt as a separate field and the
user turn as an array of content blocks, so attached documents become one
text block each between an introduction block and the user's request.
Token usage comes back split into input/output counts; the total is derived.
"""

from __future__ import annotations

import logging
from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from shared.errors import VendorError, describe_vendor_body
from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.documents import document_sections, fallback_text
from shared.llm_adapter.models import (
    CompletionRequest,
    CompletionResponse,
    ModelInfo,
    Usage,
)
from shared.observability.metrics import vendor_latency

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_MESSAGE = (
    "You are a helpful assistant for Earth Science researchers. When the user "
    "provides document content, use it to inform your response and refer to "
    "the documents by name where relevant."
)
NO_CONTENT = "No response content"

DEFAULT_MODEL_FAMILY = "claude-3"
CONTEXT_WINDOW = 200_000

# USD per token: (input, output)
_PRICING: dict[str, tuple[float, float]] = {
    "claude-3-opus-20240229": (0.000015, 0.000075),
    "claude-3-sonnet-20240229": (0.000003, 0.000015),
    "claude-3-haiku-20240307": (0.00000025, 0.00000125),
    "claude-3-5-sonnet-20240620": (0.000003, 0.000015),
    "claude-3-5-sonnet-20241022": (0.000003, 0.000015),
    "claude-3-5-haiku-20241022": (0.0000008, 0.000004),
    "claude-3-7-sonnet-20250219": (0.000003, 0.000015),
}
_DEFAULT_PRICING = (0.000003, 0.000015)


def display_name_from_id(model_id: str) -> str:
    """``claude-3-opus-20240229`` -> ``Claude 3 Opus 20240229``."""
    return " ".join(token.capitalize() for token in model_id.split("-") if token)


def build_user_blocks(request: CompletionRequest) -> list[dict[str, Any]]:
    """Content blocks for the single user turn sent to the Messages API."""
    if not request.documents:
        return [{"type": "text", "text": request.prompt}]
    try:
        sections = document_sections(request.prompt, request.documents)
    except Exception:
        logger.warning(
            "Could not build document blocks for %d documents, using fallback",
            len(request.documents),
            exc_info=True,
        )
        return [{"type": "text", "text": fallback_text(request.prompt)}]
    return [{"type": "text", "text": section} for section in sections]


class AnthropicProvider(LLMProvider):

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 120.0,
        model_family: str = DEFAULT_MODEL_FAMILY,
        http_client=None,
    ) -> None:
        self._model_family = model_family
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        try:
            with vendor_latency.labels(self.name, "complete").time():
                response = await self._client.messages.create(
                    model=request.model_id,
                    system=request.system_message or DEFAULT_SYSTEM_MESSAGE,
                    messages=[{"role": "user", "content": build_user_blocks(request)}],
                    max_tokens=request.max_tokens,
                    temperature=request.temperature,
                )
        except anthropic.APIStatusError as exc:
            raise VendorError(
                self.name, describe_vendor_body(exc.body, exc.response.text), exc.status_code
            ) from exc
        except anthropic.APIError as exc:
            raise VendorError(self.name, exc.message) from exc

        try:
            first = response.content[0] if response.content else None
            text = getattr(first, "text", None)
            input_tokens = response.usage.input_tokens or 0
            output_tokens = response.usage.output_tokens or 0
            return CompletionResponse(
                content=text or NO_CONTENT,
                usage=Usage(
                    prompt_tokens=input_tokens,
                    completion_tokens=output_tokens,
                    total_tokens=input_tokens + output_tokens,
                ),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise VendorError(self.name, f"Unexpected response shape: {exc}") from exc

    async def list_models(self) -> list[ModelInfo]:
        models: list[ModelInfo] = []
        try:
            with vendor_latency.labels(self.name, "list_models").time():
                async for model in self._client.models.list():
                    if not model.id.startswith(self._model_family):
                        continue
                    input_price, output_price = _PRICING.get(model.id, _DEFAULT_PRICING)
                    models.append(
                        ModelInfo(
                            id=model.id,
                            provider="anthropic",
                            name=getattr(model, "display_name", None)
                            or display_name_from_id(model.id),
                            max_tokens=CONTEXT_WINDOW,
                            input_price_per_token=input_price,
                            output_price_per_token=output_price,
                        )
                    )
        except anthropic.APIStatusError as exc:
            raise VendorError(
                self.name, describe_vendor_body(exc.body, exc.response.text), exc.status_code
            ) from exc
        except anthropic.APIError as exc:
            raise VendorError(self.name, exc.message) from exc
        return models

    async def aclose(self) -> None:
        await self._client.close()
