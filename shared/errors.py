"""
Error taxonomy shared by the proxy router and provider adapters.

Each error knows its HTTP status and how to render itself as the JSON
envelope returned to the browser client: always at least ``{"error": ...}``.
"""

from __future__ import annotations

import json
from typing import Any


class ProxyError(Exception):
    """Base class for every error the proxy turns into a JSON response."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class AuthenticationError(ProxyError):
    """Missing, malformed or rejected bearer token."""

    status_code = 401

    def __init__(self, details: str) -> None:
        super().__init__("Unauthorized", details)


class ValidationError(ProxyError):
    """Missing required fields, bad field values or an unknown action."""

    status_code = 400


class MalformedRequestError(ProxyError):
    status_code = 400

    def __init__(self, details: str, error_position: int | None = None) -> None:
        super().__init__("Invalid JSON in request body", details)
        self.error_position = error_position

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["errorPosition"] = self.error_position
        return payload


class VendorError(ProxyError):
    """An upstream LLM vendor failed during a completion call."""

    status_code = 502

    def __init__(
        self,
        provider: str,
        message: str,
        vendor_status: int | None = None,
    ) -> None:
        label = _PROVIDER_LABELS.get(provider, provider)
        if vendor_status is not None:
            text = f"{label} API error: {vendor_status} - {message}"
        else:
            text = f"{label} API error: {message}"
        super().__init__(text)
        self.provider = provider
        self.vendor_status = vendor_status


_PROVIDER_LABELS = {"openai": "OpenAI", "anthropic": "Anthropic"}


def describe_vendor_body(body: object, raw_text: str) -> str:
    """Vendor error body as JSON when the SDK parsed it, else the raw text."""
    if isinstance(body, (dict, list)):
        return json.dumps(body)
    if isinstance(body, str) and body:
        return body
    return raw_text or "empty response body"
