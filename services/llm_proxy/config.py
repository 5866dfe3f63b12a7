from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ProxyConfig:
    openai_api_key: str
    anthropic_api_key: str
    openai_base_url: str | None
    anthropic_base_url: str | None
    supabase_url: str
    supabase_anon_key: str
    anthropic_model_prefix: str
    anthropic_model_family: str
    request_timeout: float
    log_level: str

    @classmethod
    def from_env(cls) -> ProxyConfig:
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
            openai_base_url=os.environ.get("OPENAI_BASE_URL") or None,
            anthropic_base_url=os.environ.get("ANTHROPIC_BASE_URL") or None,
            supabase_url=os.environ["SUPABASE_URL"].rstrip("/"),
            supabase_anon_key=os.environ["SUPABASE_ANON_KEY"],
            anthropic_model_prefix=os.environ.get("ANTHROPIC_MODEL_PREFIX", "claude"),
            anthropic_model_family=os.environ.get("ANTHROPIC_MODEL_FAMILY", "claude-3"),
            request_timeout=float(os.environ.get("LLM_REQUEST_TIMEOUT", "120") or 120),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )
