# Copyright 2025 KTTC AI (https://github.com/kttc-ai)
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""FastAPI server for askall.

Provides the fan-out REST API, the OpenAI streaming endpoint and the
static web interface.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, cast

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import (
    FileResponse,
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    StreamingResponse,
)
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from askall import __version__
from askall.core.models import AskRequest, ProviderName, aggregate_to_dict
from askall.llm import OpenAIProvider, build_provider
from askall.llm.prompts import load_summarize_config
from askall.orchestration import FanoutOrchestrator, format_sse, stream_events
from askall.orchestration.orchestrator import ProviderFactory
from askall.usage import UsageLog
from askall.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Matches the 1mb JSON body limit of the web UI
MAX_BODY_BYTES = 1024 * 1024


class DrawRequest(BaseModel):
    """Request model for image generation."""

    prompt: Any = Field(default=None, description="Image description")
    size: str = Field(default="1024x1024", description="Image size, e.g. 1024x1024")


_FALLBACK_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>askall</title></head>
<body>
<h1>askall</h1>
<p>No web UI found. POST a JSON body to <code>/api/ask</code>, e.g.
<code>{"prompt": "Hello", "providers": {"openai": true}}</code>.</p>
</body>
</html>
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown events."""
    settings: Settings = app.state.settings
    enabled = settings.enabled_providers()
    for provider in ProviderName:
        if not enabled[provider.value]:
            logger.warning(f"{provider.label} disabled: no API key configured")
    logger.info(f"✅ askall server ready (providers: {enabled})")

    yield

    logger.info("Shutting down askall server...")


def create_app(
    settings: Settings | None = None,
    provider_factory: ProviderFactory | None = None,
) -> FastAPI:
    """Create FastAPI application.

    Args:
        settings: Application settings (global settings if None)
        provider_factory: Adapter factory, replaceable in tests

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    provider_factory = provider_factory or build_provider

    app = FastAPI(
        title="askall",
        description="Ask several LLM providers the same question at once",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.provider_factory = provider_factory
    app.state.usage_log = UsageLog(capacity=settings.usage_log_size)
    app.state.orchestrator = FanoutOrchestrator(
        settings,
        provider_factory=provider_factory,
        usage_log=app.state.usage_log,
    )

    _configure_middleware(app)
    _register_routes(app)
    _mount_static_files(app, settings.public_dir)

    return app


def _configure_middleware(app: FastAPI) -> None:
    """Configure CORS and the request body limit."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def limit_body_size(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > MAX_BODY_BYTES:
            return JSONResponse(status_code=413, content={"error": "Request body too large"})
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.debug(f"Rejected request body: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})


def _mount_static_files(app: FastAPI, public_dir: Path) -> None:
    """Serve the web UI directory if it exists."""
    if public_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(public_dir)), name="public")


def _register_routes(app: FastAPI) -> None:
    """Register all API routes."""

    @app.get("/", response_class=HTMLResponse)
    def root() -> Response:
        """Serve main web UI page."""
        index = app.state.settings.public_dir / "index.html"
        if index.is_file():
            return FileResponse(index)
        return HTMLResponse(_FALLBACK_HTML)

    @app.post("/api/ask")
    async def ask(request: AskRequest) -> JSONResponse:
        """Fan a prompt out to every requested provider."""
        if not request.has_prompt:
            return JSONResponse(status_code=400, content={"error": "Missing prompt"})
        orchestrator: FanoutOrchestrator = app.state.orchestrator
        result = await orchestrator.dispatch(request)
        return JSONResponse(content=aggregate_to_dict(result))

    @app.post("/api/stream")
    async def stream(request: AskRequest) -> Response:
        """Stream an OpenAI completion as Server-Sent Events."""
        if not request.has_prompt:
            return PlainTextResponse("Missing prompt", status_code=400)
        return StreamingResponse(
            _sse(request, app.state.settings, app.state.provider_factory),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    @app.post("/api/draw")
    async def draw(request: DrawRequest) -> dict[str, Any]:
        """Generate an image with OpenAI; failures are reported in the body."""
        return await _handle_draw(app, request)

    @app.get("/api/providers")
    def providers() -> dict[str, bool]:
        """Report which providers have an API key configured."""
        settings: Settings = app.state.settings
        return settings.enabled_providers()

    @app.get("/api/usage")
    def usage() -> dict[str, Any]:
        """Recent provider calls, most recent first."""
        return {"entries": app.state.usage_log.entries()}

    @app.get("/api/summarize/config")
    def summarize_config() -> dict[str, Any]:
        """Prompt pieces the web UI uses to build a summary request."""
        return load_summarize_config().to_dict()


async def _sse(
    request: AskRequest, settings: Settings, provider_factory: ProviderFactory
) -> AsyncGenerator[str, None]:
    async for event in stream_events(request, settings, provider_factory=provider_factory):
        yield format_sse(event)


async def _handle_draw(app: FastAPI, request: DrawRequest) -> dict[str, Any]:
    """Handle image generation."""
    if not isinstance(request.prompt, str) or not request.prompt.strip():
        return {"ok": False, "error": "Missing prompt"}

    settings: Settings = app.state.settings
    started_at = time.monotonic()
    try:
        adapter = cast(OpenAIProvider, app.state.provider_factory(ProviderName.OPENAI, settings))
        image = await adapter.draw(request.prompt, size=request.size)
    except Exception as e:
        logger.warning(f"Image generation failed: {e}")
        return {"ok": False, "error": str(e) or type(e).__name__}

    latency_ms = int((time.monotonic() - started_at) * 1000)
    app.state.usage_log.record(
        {
            "provider": ProviderName.OPENAI.value,
            "endpoint": "images.generate",
            "ok": True,
            "latencyMs": latency_ms,
        }
    )
    return {"ok": True, "image": image, "latencyMs": latency_ms}


def run_server(host: str = "127.0.0.1", port: int = 3000, reload: bool = False) -> None:
    """Run the askall server.

    Args:
        host: Host to bind to (default: 127.0.0.1 for security).
              Use 0.0.0.0 to bind to all interfaces.
        port: Port to listen on
        reload: Enable auto-reload for development
    """
    import uvicorn

    # The HTTP surface has no authentication
    if host == "0.0.0.0":  # nosec B104  # Intentional check with user warning
        logger.warning(
            "⚠️  Binding to 0.0.0.0 exposes the server to all network interfaces. "
            "Use 127.0.0.1 for local-only access."
        )

    logger.info(f"Starting askall on http://{host}:{port}")

    uvicorn.run(
        "askall.webui.server:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    run_server(reload=True)
