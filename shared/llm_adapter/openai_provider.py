"""
OpenAI chat-completions adapter.

Translates the proxy's CompletionRequest into one system turn plus one user
turn, and filters the vendor model list down to the chat-capable ``gpt-``
family. SDK retries are disabled; a vendor failure surfaces on the first
attempt.
"""

from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

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
    "You are a helpful assistant for Earth Science researchers drafting and "
    "reviewing research papers."
)
DOCUMENTS_SYSTEM_NOTE = (
    " The user has attached documents; use their content to inform your answer."
)

MODEL_PREFIX = "gpt-"
TOP_TIER_TOKEN = "gpt-4"

# (max_tokens, input price, output price)
_TOP_TIER = (8192, 0.03, 0.06)
_STANDARD = (4096, 0.0015, 0.002)


class OpenAIProvider(LLMProvider):
    """
    OpenAI Chat Completions adapter.

    ``http_client`` is passed straight to the SDK; tests hand in an
    ``httpx.AsyncClient`` backed by a mock transport.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 120.0,
        http_client=None,
    ) -> None:
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        messages = [
            {"role": "system", "content": self._system_prompt(request)},
            {"role": "user", "content": self._user_content(request)},
        ]

        try:
            with vendor_latency.labels(self.name, "complete").time():
                response = await self._client.chat.completions.create(
                    model=request.model_id,
                    temperature=request.temperature,
                    max_tokens=request.max_tokens,
                    messages=messages,
                )
        except openai.APIStatusError as exc:
            raise VendorError(
                self.name, describe_vendor_body(exc.body, exc.response.text), exc.status_code
            ) from exc
        except openai.APIError as exc:
            raise VendorError(self.name, exc.message) from exc

        try:
            content = response.choices[0].message.content or ""
            usage = response.usage
            return CompletionResponse(
                content=content,
                usage=Usage(
                    prompt_tokens=usage.prompt_tokens if usage else 0,
                    completion_tokens=usage.completion_tokens if usage else 0,
                    total_tokens=usage.total_tokens if usage else 0,
                ),
            )
        except (AttributeError, IndexError, TypeError, ValueError) as exc:
            raise VendorError(self.name, f"Unexpected response shape: {exc}") from exc

    async def list_models(self) -> list[ModelInfo]:
        models: list[ModelInfo] = []
        try:
            with vendor_latency.labels(self.name, "list_models").time():
                async for model in self._client.models.list():
                    if not model.id.startswith(MODEL_PREFIX) or "instruct" in model.id:
                        continue
                    max_tokens, input_price, output_price = (
                        _TOP_TIER if TOP_TIER_TOKEN in model.id else _STANDARD
                    )
                    models.append(
                        ModelInfo(
                            id=model.id,
                            provider="openai",
                            name=model.id,
                            max_tokens=max_tokens,
                            input_price_per_token=input_price,
                            output_price_per_token=output_price,
                        )
                    )
        except openai.APIStatusError as exc:
            raise VendorError(
                self.name, describe_vendor_body(exc.body, exc.response.text), exc.status_code
            ) from exc
        except openai.APIError as exc:
            raise VendorError(self.name, exc.message) from exc
        return models

    async def aclose(self) -> None:
        await self._client.close()

    @staticmethod
    def _system_prompt(request: CompletionRequest) -> str:
        if request.system_message:
            return request.system_message
        if request.documents:
            return DEFAULT_SYSTEM_MESSAGE + DOCUMENTS_SYSTEM_NOTE
        return DEFAULT_SYSTEM_MESSAGE

    @staticmethod
    def _user_content(request: CompletionRequest) -> str:
        if not request.documents:
            return request.prompt
        try:
            return "\n\n".join(document_sections(request.prompt, request.documents))
        except Exception:
            logger.warning(
                "Could not format %d attached documents, sending prompt only",
                len(request.documents),
                exc_info=True,
            )
            return fallback_text(request.prompt)
