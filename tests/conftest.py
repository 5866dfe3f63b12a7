"""Shared fixtures: fake collaborators and vendor mock transports."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from services.llm_proxy.config import ProxyConfig
from services.llm_proxy.main import create_app
from shared.errors import AuthenticationError
from shared.llm_adapter import (
    AnthropicProvider,
    CompletionRequest,
    CompletionResponse,
    LLMProvider,
    ModelInfo,
    OpenAIProvider,
    ProviderRegistry,
    Usage,
)

VALID_TOKEN = "valid-session-token"
AUTH_HEADERS = {"Authorization": f"Bearer {VALID_TOKEN}"}


class FakeVerifier:
    def __init__(self, valid_tokens: set[str] | None = None) -> None:
        self.valid_tokens = valid_tokens or {VALID_TOKEN}
        self.calls: list[str] = []

    async def verify(self, token: str) -> dict[str, Any]:
        self.calls.append(token)
        if token not in self.valid_tokens:
            raise AuthenticationError("invalid JWT")
        return {"id": "user-123", "email": "geo@example.org"}


class FakeProvider(LLMProvider):
    """In-memory provider recording every call."""

    def __init__(
        self,
        name: str,
        models: list[ModelInfo] | None = None,
        content: str = "fake completion",
        list_error: Exception | None = None,
        complete_error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self.name = name
        self._models = models or []
        self._content = content
        self._list_error = list_error
        self._complete_error = complete_error
        self._close_error = close_error
        self.closed = False
        self.complete_calls: list[CompletionRequest] = []
        self.list_calls = 0

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.complete_calls.append(request)
        if self._complete_error:
            raise self._complete_error
        return CompletionResponse(
            content=self._content,
            usage=Usage(prompt_tokens=3, completion_tokens=4, total_tokens=7),
        )

    async def list_models(self) -> list[ModelInfo]:
        self.list_calls += 1
        if self._list_error:
            raise self._list_error
        return list(self._models)

    async def aclose(self) -> None:
        self.closed = True
        if self._close_error:
            raise self._close_error


def make_model(model_id: str, provider: str) -> ModelInfo:
    return ModelInfo(
        id=model_id,
        provider=provider,
        name=model_id,
        max_tokens=8192,
        input_price_per_token=0.01,
        output_price_per_token=0.02,
    )


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def request_json(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


def anthropic_message(text: str | None, input_tokens: int, output_tokens: int) -> dict[str, Any]:
    content = [{"type": "text", "text": text}] if text is not None else []
    return {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-sonnet-20240229",
        "content": content,
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }


def openai_completion(text: str, prompt_tokens: int, completion_tokens: int, total_tokens: int) -> dict[str, Any]:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": total_tokens,
        },
    }


def anthropic_provider(handler: Callable[[httpx.Request], httpx.Response]) -> AnthropicProvider:
    return AnthropicProvider(api_key="sk-ant-test", http_client=mock_http_client(handler))


def openai_provider(handler: Callable[[httpx.Request], httpx.Response]) -> OpenAIProvider:
    return OpenAIProvider(api_key="sk-openai-test", http_client=mock_http_client(handler))


@pytest.fixture
def config() -> ProxyConfig:
    return ProxyConfig(
        openai_api_key="sk-openai-test",
        anthropic_api_key="sk-ant-test",
        openai_base_url=None,
        anthropic_base_url=None,
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon-key",
        anthropic_model_prefix="claude",
        anthropic_model_family="claude-3",
        request_timeout=5.0,
        log_level="INFO",
    )


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def openai_fake() -> FakeProvider:
    return FakeProvider("openai", models=[make_model("gpt-4", "openai")], content="from openai")


@pytest.fixture
def anthropic_fake() -> FakeProvider:
    return FakeProvider(
        "anthropic",
        models=[make_model("claude-3-opus-20240229", "anthropic")],
        content="from anthropic",
    )


@pytest.fixture
def client(config, verifier, openai_fake, anthropic_fake) -> TestClient:
    registry = ProviderRegistry({"openai": openai_fake, "anthropic": anthropic_fake})
    app = create_app(config=config, registry=registry, verifier=verifier)
    return TestClient(app)
