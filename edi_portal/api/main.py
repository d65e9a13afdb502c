"""FastAPI application for the EDI document portal.

Production-ready API with:
- EDI document search and invoice lookup (live API or mock data)
- OpenAI chat, streaming chat, analysis and query parsing
- Tool-calling assistant with per-conversation history
- Health checks and Prometheus metrics

Services are built once in create_app and shared by every request.

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from edi_portal.ai.service import AIChatService
from edi_portal.api.errors import (
    APIError,
    api_error_handler,
    unhandled_error_response,
    validation_error_handler,
)
from edi_portal.api.routes import ai, assistant, documents
from edi_portal.assistant.conversation import ConversationStore, InMemoryConversationStore
from edi_portal.assistant.service import AIAssistantService
from edi_portal.documents.base import DocumentSource
from edi_portal.documents.factory import create_document_source
from edi_portal.llm.client import OpenAIChatClient
from edi_portal.shared import metrics
from edi_portal.shared.config import Settings, get_settings

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    uptime: float
    environment: str
    version: str
    service: str


def configure_logging(settings: Settings) -> None:
    """Configure stdlib logging for the service."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


UNMATCHED_ENDPOINT = "unmatched"


def route_template(request: Request) -> str:
    """Path template of the route that handled the request."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if isinstance(path, str) else UNMATCHED_ENDPOINT


def create_app(
    settings: Settings | None = None,
    *,
    document_source: DocumentSource | None = None,
    llm_client: OpenAIChatClient | None = None,
    conversation_store: ConversationStore | None = None,
) -> FastAPI:
    """Build the FastAPI application and its services.

    Args:
        settings: Application settings (read from the environment if omitted)
        document_source: Document source override (configured source if omitted)
        llm_client: OpenAI client override
        conversation_store: Conversation store override (in-memory if omitted)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="EDI Document Portal",
        description="EDI document search and AI assistant API",
        version=settings.service_version,
    )

    document_source = document_source or create_document_source(settings)
    llm_client = llm_client or OpenAIChatClient(settings)
    conversation_store = conversation_store or InMemoryConversationStore()

    app.state.settings = settings
    app.state.started_at = time.time()
    app.state.document_source = document_source
    app.state.ai_service = AIChatService(settings, llm_client, document_source)
    app.state.assistant_service = AIAssistantService(
        settings, llm_client, document_source, conversation_store
    )

    @app.middleware("http")
    async def error_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Turn unexpected exceptions into a generic 500 response."""
        try:
            return await call_next(request)
        except Exception as e:
            return unhandled_error_response(request, e)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Conversation-Id"],
    )

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Middleware to collect request metrics.

        Tracks:
        - Request count by method, endpoint, and status
        - Request duration by method and endpoint

        The endpoint label is the route template, so path parameters such as
        conversation ids do not create new series.
        """
        # Skip metrics for /metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        endpoint = route_template(request)

        metrics.http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).inc()

        metrics.http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint,
        ).observe(duration)

        return response

    app.add_exception_handler(APIError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_error_handler  # type: ignore[arg-type]
    )

    @app.get("/", tags=["Health"])
    def root() -> dict[str, object]:
        """Service banner with the main endpoint groups."""
        return {
            "message": "EDI Document Portal API",
            "version": settings.service_version,
            "endpoints": {
                "health": "/api/health",
                "ai": "/api/ai",
                "assistant": "/api/assistant",
                "docs": "/api/docs",
                "metrics": "/metrics",
            },
        }

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    def health_check() -> HealthResponse:
        """Health check endpoint for liveness probe.

        Returns:
            Health status information
        """
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(UTC).isoformat(),
            uptime=time.time() - app.state.started_at,
            environment=settings.environment,
            version=settings.service_version,
            service=settings.service_name,
        )

    @app.get("/metrics", tags=["Monitoring"])
    def get_metrics() -> Response:
        """Prometheus metrics endpoint.

        Returns:
            Prometheus metrics in text format
        """
        metrics_data, content_type = metrics.get_metrics()
        return Response(content=metrics_data, media_type=content_type)

    app.include_router(documents.router)
    app.include_router(ai.router)
    app.include_router(assistant.router)

    logger.info(
        f"Service {settings.service_name} {settings.service_version} "
        f"ready ({settings.environment}, source={document_source.source_name})"
    )
    return app


app = create_app()
