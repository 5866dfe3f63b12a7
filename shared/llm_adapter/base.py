"""Abstract base class that all LLM providers must implement."""

from __future__ import annotations

from abc import ABC, abstractmethod

from shared.llm_adapter.models import CompletionRequest, CompletionResponse, ModelInfo


class LLMProvider(ABC):
    """
    Contract for LLM vendor adapters.

    Every implementation MUST:
    - Raise VendorError (never a raw SDK exception) from complete()
    - Return a fully populated CompletionResponse including token counts
    - Return only ModelInfo entries tagged with its own provider name
    """

    name: str

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send a completion request and return the normalized response."""

    @abstractmethod
    async def list_models(self) -> list[ModelInfo]:
        """List the vendor models this proxy offers to clients."""

    async def aclose(self) -> None:
        """Release network resources held by the vendor client."""
