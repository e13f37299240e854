"""
Widget Gateway Service

A FastAPI service the chat widget posts visitor messages to.

Features:
- One endpoint for all five providers
- Error payloads carrying kind and retryable flag so the widget can offer
  a retry button
- Known-model listing for the settings screen
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource

from .core.config import load_config
from .core.dispatcher import GatewayDispatcher
from .core.errors import ErrorKind, GatewayError
from .models.request import ChatRequest, Provider

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CONFIGURATION: 500,
}


class ChatBody(BaseModel):
    """Request body posted by the widget."""
    message: str = Field(..., description="Visitor message")
    provider: Optional[str] = Field(default=None, description="Provider override")
    system_prompt: Optional[str] = Field(default=None, description="System instructions")
    model: Optional[str] = Field(default=None, description="Model or deployment override")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "What projects have you worked on?",
                "provider": "anthropic",
            }
        }
    )


class ErrorBody(BaseModel):
    kind: str
    message: str
    retryable: bool
    debug_info: Optional[str] = None


class ChatResult(BaseModel):
    """Response body returned to the widget."""
    success: bool
    reply: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    error: Optional[ErrorBody] = None


_dispatcher: Optional[GatewayDispatcher] = None


def get_dispatcher() -> GatewayDispatcher:
    """Return the process-wide dispatcher, building it on first use."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = GatewayDispatcher(load_config(os.getenv("WIDGET_GATEWAY_CONFIG")))
    return _dispatcher


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Setup OpenTelemetry
    otel_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    resource = Resource.create({"service.name": "widget-gateway"})
    provider = TracerProvider(resource=resource)
    processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_endpoint))
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)

    get_dispatcher()
    logger.info("Widget gateway service started")
    yield
    logger.info("Widget gateway service stopped")


app = FastAPI(
    title="Widget Gateway Service",
    description="Single-shot chat completions for the website chat widget",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instrument with OpenTelemetry
FastAPIInstrumentor.instrument_app(app)

tracer = trace.get_tracer(__name__)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/chat", response_model=ChatResult)
async def chat(body: ChatBody, dispatcher: GatewayDispatcher = Depends(get_dispatcher)):
    """
    Send one visitor message to the configured provider.

    Failures are returned with an HTTP status derived from the error kind
    and a body the widget can render directly.
    """
    provider = body.provider or dispatcher.settings.default_provider

    with tracer.start_as_current_span("chat") as span:
        span.set_attribute("provider", provider)

        result = await dispatcher.dispatch(ChatRequest(
            provider=provider,
            user_message=body.message,
            system_prompt=body.system_prompt,
            model_hint=body.model,
        ))

        if isinstance(result, GatewayError):
            span.set_attribute("error.kind", result.kind.value)
            span.set_attribute("error.retryable", result.retryable)
            payload = ChatResult(
                success=False,
                provider=result.provider,
                error=ErrorBody(**result.to_dict(include_debug=dispatcher.settings.debug)),
            )
            return JSONResponse(
                status_code=ERROR_STATUS.get(result.kind, 502),
                content=payload.model_dump(exclude_none=True),
            )

        span.set_attribute("model", result.model or "")
        return ChatResult(
            success=True,
            reply=result.text,
            provider=result.provider,
            model=result.model,
        )


@app.get("/providers")
async def list_providers(dispatcher: GatewayDispatcher = Depends(get_dispatcher)):
    """List providers and whether each one is configured."""
    return {"providers": dispatcher.list_providers()}


@app.get("/models")
async def list_models(
    provider: Optional[str] = Query(default=None),
    dispatcher: GatewayDispatcher = Depends(get_dispatcher),
):
    """List known models for a provider (defaults to the configured one)."""
    provider = Provider.resolve(provider or dispatcher.settings.default_provider)
    return {"provider": provider.value, "models": dispatcher.list_models(provider)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8090")))
