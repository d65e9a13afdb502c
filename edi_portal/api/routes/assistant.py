"""Tool-calling assistant endpoints."""

import logging
import time
from collections.abc import Iterator
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from openai import OpenAIError
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from edi_portal.api.dependencies import get_assistant_service
from edi_portal.api.errors import APIError
from edi_portal.api.sse import sse_frame, sse_response
from edi_portal.assistant.service import AIAssistantService
from edi_portal.llm.client import LLMError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["Assistant"])


class AssistantChatRequest(BaseModel):
    """Body of the assistant chat endpoints."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    conversation_id: str | None = None
    message: Any = None


def _resolve_request(request: AssistantChatRequest) -> tuple[str, str]:
    """Validate the message and pick the conversation id (generated when absent)."""
    if not request.message or not isinstance(request.message, str):
        raise APIError("Message is required", status_code=status.HTTP_400_BAD_REQUEST)
    conversation_id = request.conversation_id or f"conv-{int(time.time() * 1000)}"
    return conversation_id, request.message


@router.post("/chat")
def chat(
    request: AssistantChatRequest,
    assistant: AIAssistantService = Depends(get_assistant_service),  # noqa: B008
) -> dict[str, Any]:
    """Send a message to the assistant and wait for the final answer."""
    conversation_id, message = _resolve_request(request)
    logger.info(f"Processing chat message for conversation: {conversation_id}")

    try:
        reply = assistant.send_message(conversation_id, message)
    except (LLMError, OpenAIError) as e:
        raise APIError(str(e) or e.__class__.__name__) from e

    return {
        "successful": True,
        "data": {
            "response": reply.response,
            "toolsUsed": reply.tools_used,
            "conversationId": conversation_id,
        },
    }


@router.post("/chat/stream")
def chat_stream(
    request: AssistantChatRequest,
    assistant: AIAssistantService = Depends(get_assistant_service),  # noqa: B008
) -> StreamingResponse:
    """Send a message and stream the turn as Server-Sent Events.

    Frames are {"type": "content"|"tool"|"done"|"error", "data": ...}. The
    conversation id is returned in the X-Conversation-Id header.
    """
    conversation_id, message = _resolve_request(request)
    logger.info(f"Processing streaming chat for conversation: {conversation_id}")

    def generate() -> Iterator[str]:
        try:
            for event in assistant.send_message_stream(conversation_id, message):
                yield sse_frame(event.model_dump())
        except Exception as e:
            logger.error(f"Streaming error: {e}")
            yield sse_frame({"type": "error", "data": {"message": str(e) or "Unknown error"}})

    return sse_response(generate(), headers={"X-Conversation-Id": conversation_id})


@router.get("/conversation/{conversation_id}/history")
def get_history(
    conversation_id: str,
    assistant: AIAssistantService = Depends(get_assistant_service),  # noqa: B008
) -> dict[str, Any]:
    """Get a conversation's history, without the system prompt."""
    messages = assistant.get_history(conversation_id)
    return {
        "successful": True,
        "data": {
            "conversationId": conversation_id,
            "messages": [message.model_dump(exclude_none=True) for message in messages],
        },
    }


@router.delete("/conversation/{conversation_id}")
def clear_conversation(
    conversation_id: str,
    assistant: AIAssistantService = Depends(get_assistant_service),  # noqa: B008
) -> dict[str, Any]:
    """Clear a conversation's history."""
    assistant.clear_conversation(conversation_id)
    return {"successful": True, "messages": ["Conversation cleared successfully"]}
