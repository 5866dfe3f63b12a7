"""
Provider registry -- routes a model id to exactly one vendor adapter and
aggregates model listings across vendors.

Routing rule: a model id starting with the Anthropic family token (default
``claude``) goes to Anthropic, every other id goes to OpenAI. There is no
explicit provider field on a completion request.

Listing is best-effort: each provider is queried concurrently and a provider
that fails contributes zero models instead of failing the whole listing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from shared.errors import VendorError
from shared.llm_adapter.anthropic_provider import AnthropicProvider
from shared.llm_adapter.base import LLMProvider
from shared.llm_adapter.models import ModelInfo
from shared.llm_adapter.openai_provider import OpenAIProvider
from shared.observability.metrics import provider_failures

logger = logging.getLogger(__name__)

DEFAULT_ANTHROPIC_PREFIX = "claude"

# Listing order of the aggregated model list.
PROVIDER_ORDER = ("openai", "anthropic")


class ProviderRegistry:
    """Read-only mapping of provider name to adapter, built once at startup."""

    def __init__(
        self,
        providers: Mapping[str, LLMProvider],
        anthropic_prefix: str = DEFAULT_ANTHROPIC_PREFIX,
    ) -> None:
        self._providers = dict(providers)
        self._anthropic_prefix = anthropic_prefix

    @property
    def provider_names(self) -> list[str]:
        return [name for name in PROVIDER_ORDER if name in self._providers]

    def provider_name_for(self, model_id: str) -> str:
        if model_id.startswith(self._anthropic_prefix):
            return "anthropic"
        return "openai"

    def for_model(self, model_id: str) -> LLMProvider:
        name = self.provider_name_for(model_id)
        provider = self._providers.get(name)
        if provider is None:
            raise VendorError(name, "provider is not configured (missing API key)")
        return provider

    async def list_all_models(self) -> list[ModelInfo]:
        names = self.provider_names
        results = await asyncio.gather(
            *(self._providers[name].list_models() for name in names),
            return_exceptions=True,
        )

        models: list[ModelInfo] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                provider_failures.labels(name, "list_models").inc()
                logger.warning("Error fetching %s models: %s", name, result)
                continue
            models.extend(result)
        return models

    async def aclose(self) -> None:
        for name, provider in self._providers.items():
            try:
                await provider.aclose()
            except Exception as exc:
                logger.warning("Error closing %s provider: %s", name, exc)


def build_registry(
    openai_api_key: str = "",
    anthropic_api_key: str = "",
    openai_base_url: str | None = None,
    anthropic_base_url: str | None = None,
    anthropic_prefix: str = DEFAULT_ANTHROPIC_PREFIX,
    anthropic_model_family: str | None = None,
    timeout: float = 120.0,
) -> ProviderRegistry:
    """
    Construct one adapter per vendor that has an API key.

    A vendor without a key is left out: its models are not listed and
    completions routed to it fail with VendorError.
    """
    providers: dict[str, LLMProvider] = {}

    if openai_api_key:
        providers["openai"] = OpenAIProvider(
            api_key=openai_api_key,
            base_url=openai_base_url,
            timeout=timeout,
        )
    else:
        logger.warning("OPENAI_API_KEY not set; OpenAI provider disabled")

    if anthropic_api_key:
        kwargs = {}
        if anthropic_model_family:
            kwargs["model_family"] = anthropic_model_family
        providers["anthropic"] = AnthropicProvider(
            api_key=anthropic_api_key,
            base_url=anthropic_base_url,
            timeout=timeout,
            **kwargs,
        )
    else:
        logger.warning("ANTHROPIC_API_KEY not set; Anthropic provider disabled")

    logger.info(
        "LLM providers initialized: %s (anthropic prefix=%s)",
        ", ".join(providers) or "none",
        anthropic_prefix,
    )
    return ProviderRegistry(providers, anthropic_prefix=anthropic_prefix)
