"""
LLM Proxy Service -- single entry point for the writing assistant frontend.

Responsibilities:
1. POST /            -- action dispatch: {"action": "models" | "complete", ...}
2. POST /models      -- path variant of action "models" (GET accepted too)
3. POST /completion  -- path variant of action "complete"
4. OPTIONS (any)     -- CORS pre-flight, answered "ok" without auth
5. GET  /health, GET /metrics

Every non-OPTIONS proxy request is authenticated with the caller's Supabase
bearer token before the body is parsed. Completions are routed to one vendor
by model id prefix; model listings are merged best-effort across vendors.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.errors import (
    MalformedRequestError,
    ProxyError,
    ValidationError,
)
from shared.llm_adapter import CompletionRequest, ProviderRegistry, build_registry
from shared.logging.logger import setup_logging
from shared.observability.metrics import (
    llm_tokens,
    metrics_response,
    provider_failures,
    proxy_requests,
)
from services.llm_proxy.auth import (
    IdentityVerifier,
    SupabaseAuthVerifier,
    extract_bearer_token,
)
from services.llm_proxy.config import ProxyConfig

SERVICE_NAME = "llm_proxy"

ACTIONS = ("models", "complete")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}

_EXCERPT_RADIUS = 20

logger = logging.getLogger(SERVICE_NAME)


@asynccontextmanager
async def lifespan(application: FastAPI):
    state = application.state
    owned_registry = state.registry is None
    # Environment config is only required for collaborators built here
    if state.config is None and (owned_registry or state.verifier is None):
        state.config = ProxyConfig.from_env()
    cfg: ProxyConfig | None = state.config
    setup_logging(SERVICE_NAME, cfg.log_level if cfg else None)

    if owned_registry:
        state.registry = build_registry(
            openai_api_key=cfg.openai_api_key,
            anthropic_api_key=cfg.anthropic_api_key,
            openai_base_url=cfg.openai_base_url,
            anthropic_base_url=cfg.anthropic_base_url,
            anthropic_prefix=cfg.anthropic_model_prefix,
            anthropic_model_family=cfg.anthropic_model_family,
            timeout=cfg.request_timeout,
        )

    http_client: httpx.AsyncClient | None = None
    if state.verifier is None:
        http_client = httpx.AsyncClient(timeout=cfg.request_timeout)
        state.verifier = SupabaseAuthVerifier(
            cfg.supabase_url, cfg.supabase_anon_key, http_client
        )

    logger.info("LLM proxy ready (providers: %s)", ", ".join(state.registry.provider_names))
    yield

    logger.info("Shutting down")
    if owned_registry:
        await state.registry.aclose()
    if http_client:
        await http_client.aclose()


def create_app(
    config: ProxyConfig | None = None,
    registry: ProviderRegistry | None = None,
    verifier: IdentityVerifier | None = None,
) -> FastAPI:
    """
    Build the proxy application.

    Collaborators passed in are used as-is; anything left as None is built
    from the environment when the app starts.
    """
    app = FastAPI(
        title="Earth Science Assistant - LLM Proxy",
        version="0.1.0",
        description="Authenticated multi-provider completion and model listing proxy",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.registry = registry
    app.state.verifier = verifier

    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            return PlainTextResponse("ok", headers=CORS_HEADERS)
        response = await call_next(request)
        for key, value in CORS_HEADERS.items():
            response.headers[key] = value
        return response

    @app.get("/health")
    async def health():
        registry = app.state.registry
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "providers": registry.provider_names if registry else [],
        }

    @app.get("/metrics")
    async def metrics():
        return metrics_response()

    @app.post("/")
    async def dispatch(request: Request):
        return await _handle(request, action=None)

    @app.api_route("/models", methods=["GET", "POST"])
    async def models(request: Request):
        return await _handle(request, action="models")

    @app.post("/completion")
    async def completion(request: Request):
        return await _handle(request, action="complete")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Unrouted paths and wrong methods still answer with an error envelope
        proxy_requests.labels("invalid", str(exc.status_code)).inc()
        return JSONResponse(
            content={"error": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    return app


async def _handle(request: Request, action: str | None) -> JSONResponse:
    label = action or "invalid"
    try:
        user = await _authenticate(request)
        body = {} if action == "models" else await _read_json(request)

        if action is None:
            action = body.get("action")
            if action in ACTIONS:
                label = action

        if action == "models":
            payload = await _list_models(request)
        elif action == "complete":
            payload = await _complete(request, body, user)
        else:
            raise ValidationError(
                f"Invalid action: {action!r}",
                details=f"Supported actions: {', '.join(ACTIONS)}",
            )
        status = 200
    except ProxyError as exc:
        log = logger.warning if exc.status_code >= 500 else logger.info
        log("%s request rejected (%d): %s", label, exc.status_code, exc.message)
        status = exc.status_code
        payload = exc.to_payload()
    except Exception as exc:
        logger.exception("Unhandled error in %s request", label)
        status = 500
        payload = {"error": "Internal server error", "details": str(exc)}

    proxy_requests.labels(label, str(status)).inc()
    return JSONResponse(content=payload, status_code=status)


async def _authenticate(request: Request) -> dict[str, Any]:
    token = extract_bearer_token(request.headers.get("authorization"))
    user = await request.app.state.verifier.verify(token)
    logger.debug("Authenticated user %s", user.get("id"))
    return user


async def _read_json(request: Request) -> dict[str, Any]:
    """Parse the body, reporting where a malformed payload broke."""
    raw = await request.body()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedRequestError(
            f"Body is not valid UTF-8 at byte {exc.start}", error_position=exc.start
        ) from exc

    try:
        body = json.loads(text)
    except json.JSONDecodeError as exc:
        byte_offset = len(text[: exc.pos].encode("utf-8"))
        start = max(0, exc.pos - _EXCERPT_RADIUS)
        excerpt = text[start : exc.pos + _EXCERPT_RADIUS]
        raise MalformedRequestError(
            f"{exc.msg} at byte {byte_offset} near {excerpt!r}",
            error_position=byte_offset,
        ) from exc

    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


async def _list_models(request: Request) -> dict[str, Any]:
    registry: ProviderRegistry = request.app.state.registry
    models = await registry.list_all_models()
    return {"models": [model.to_wire() for model in models]}


async def _complete(
    request: Request, body: dict[str, Any], user: dict[str, Any]
) -> dict[str, Any]:
    prompt = body.get("prompt")
    model_id = body.get("modelId")
    if not isinstance(prompt, str) or not prompt or not isinstance(model_id, str) or not model_id:
        raise ValidationError(
            "Missing required parameters",
            details="prompt and modelId must be non-empty strings",
        )

    fields = {k: v for k, v in body.items() if k != "action" and v is not None}
    try:
        completion_request = CompletionRequest.model_validate(fields)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid request parameters", details=_describe_validation(exc)
        ) from exc

    registry: ProviderRegistry = request.app.state.registry
    provider = registry.for_model(completion_request.model_id)
    logger.info(
        "Completion for user %s via %s (model=%s, documents=%d)",
        user.get("id"),
        provider.name,
        completion_request.model_id,
        len(completion_request.documents),
    )

    try:
        response = await provider.complete(completion_request)
    except Exception:
        provider_failures.labels(provider.name, "complete").inc()
        raise

    llm_tokens.labels(provider.name, "prompt").inc(response.usage.prompt_tokens)
    llm_tokens.labels(provider.name, "completion").inc(response.usage.completion_tokens)
    return response.to_wire()


def _describe_validation(exc: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
