"""AI chat endpoints.

Chat, streaming chat, business analysis and natural-language query parsing
over the OpenAI chat service.
"""

import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from openai import OpenAIError
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from edi_portal.ai.service import AIChatService, AnalysisError, QueryParseError
from edi_portal.api.dependencies import get_ai_service, get_app_settings
from edi_portal.api.errors import APIError
from edi_portal.api.sse import sse_frame, sse_response, sse_sentinel
from edi_portal.documents.base import DocumentSourceError
from edi_portal.documents.schema import DocumentQueryParams
from edi_portal.llm.client import LLMError
from edi_portal.shared.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["AI"])


class HistoryMessage(BaseModel):
    """Prior chat message supplied by the client."""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Body of POST /api/ai/chat."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: Any = None
    messages: list[HistoryMessage] | None = None
    include_edi_context: bool = Field(False, alias="includeEDIContext")


class ChatStreamRequest(BaseModel):
    """Body of POST /api/ai/chat/stream."""

    messages: list[HistoryMessage] | None = None


class ParseQueryRequest(BaseModel):
    """Body of POST /api/ai/parse-query."""

    query: Any = None


def _success(data: dict[str, Any]) -> dict[str, Any]:
    return {"status": "success", "data": data}


def _provider_error(e: Exception) -> APIError:
    return APIError(str(e) or e.__class__.__name__)


@router.post("/chat")
def chat(
    request: ChatRequest,
    service: AIChatService = Depends(get_ai_service),  # noqa: B008
) -> dict[str, Any]:
    """Send a message to the AI assistant.

    Body: {message: string, messages?: [{role, content}], includeEDIContext?: boolean}
    """
    if not request.message or not isinstance(request.message, str):
        raise APIError(
            "Message is required and must be a string", status_code=status.HTTP_400_BAD_REQUEST
        )
    if not request.message.strip():
        raise APIError("Message cannot be empty", status_code=status.HTTP_400_BAD_REQUEST)

    logger.info(f'Chat request: "{request.message[:50]}..."')

    edi_context = service.build_edi_context() if request.include_edi_context else None
    history = [message.model_dump() for message in request.messages or []]

    try:
        result = service.chat_with_edi_context(request.message, history, edi_context)
    except (LLMError, OpenAIError) as e:
        raise _provider_error(e) from e

    return _success({"message": result.content, "usage": result.usage, "model": result.model})


@router.post("/chat/stream")
def chat_stream(
    request: ChatStreamRequest,
    service: AIChatService = Depends(get_ai_service),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> StreamingResponse:
    """Send a conversation and stream the reply as Server-Sent Events.

    Frames: {"content": "..."} per text delta, then the done sentinel.
    Failures are reported in-band as {"error": "..."}.
    """
    if request.messages is None:
        raise APIError("Messages array is required", status_code=status.HTTP_400_BAD_REQUEST)

    messages = [message.model_dump() for message in request.messages]
    logger.info(f"Streaming chat with {len(messages)} messages")

    def generate() -> Iterator[str]:
        try:
            for chunk in service.chat_stream(messages):
                yield sse_frame({"content": chunk})
            yield sse_sentinel(settings.sse_done_sentinel)
        except Exception as e:
            logger.error(f"Streaming error: {e}")
            yield sse_frame({"error": str(e) or "Unknown error"})

    return sse_response(generate())


@router.post("/analyze")
def analyze_documents(
    params: DocumentQueryParams | None = None,
    service: AIChatService = Depends(get_ai_service),  # noqa: B008
) -> dict[str, Any]:
    """Generate a business intelligence analysis of EDI documents.

    Body: document search filters. Selection, notes and sort order default to
    filtered documents with notes, newest activity first.
    """
    logger.info("Analysis request received")
    params = params or DocumentQueryParams()
    params = params.model_copy(
        update={
            "select_filtered": params.select_filtered or "Y",
            "with_notes": params.with_notes is not False,
            "sort_by": params.sort_by or "transactionLastDateTime",
            "sort_dir": params.sort_dir or "desc",
        }
    )

    try:
        result = service.analyze_documents(params)
    except (AnalysisError, DocumentSourceError, LLMError, OpenAIError) as e:
        raise _provider_error(e) from e

    return _success(
        {
            "analysis": result.analysis,
            "metadata": {
                "documentCount": result.document_count,
                "model": result.model,
                "usage": result.usage,
                "generatedAt": datetime.now(UTC).isoformat(),
            },
        }
    )


@router.post("/parse-query")
def parse_query(
    request: ParseQueryRequest,
    service: AIChatService = Depends(get_ai_service),  # noqa: B008
) -> dict[str, Any]:
    """Parse a natural-language query into document search parameters."""
    if not request.query or not isinstance(request.query, str) or not request.query.strip():
        raise APIError(
            "Query is required and must be a string", status_code=status.HTTP_400_BAD_REQUEST
        )

    try:
        params = service.parse_search_query(request.query)
    except (QueryParseError, LLMError, OpenAIError) as e:
        raise _provider_error(e) from e

    return _success(
        {"query": request.query, "params": params.model_dump(by_alias=True, exclude_none=True)}
    )


@router.get("/health")
def health(
    service: AIChatService = Depends(get_ai_service),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> dict[str, Any]:
    """Report whether the AI provider is configured."""
    configured = service.is_configured()
    return _success(
        {
            "available": configured,
            "provider": "openai",
            "model": settings.openai_model,
            "configured": configured,
            "message": (
                "OpenAI service is available"
                if configured
                else "OpenAI API key not configured. Set OPENAI_API_KEY in your environment."
            ),
        }
    )


@router.get("/config")
def get_config(
    service: AIChatService = Depends(get_ai_service),  # noqa: B008
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> dict[str, Any]:
    """Current AI configuration, without secrets."""
    return _success(
        {
            "provider": "openai",
            "model": settings.openai_model,
            "maxTokens": settings.openai_max_tokens,
            "configured": service.is_configured(),
        }
    )
