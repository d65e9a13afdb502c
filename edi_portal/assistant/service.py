"""Tool-calling EDI assistant.

Each turn sends the conversation history plus the tool schema to the model.
When the model asks for tools, they are executed one after another against the
document source, their results are appended as tool messages and the model is
called again. The turn ends with the first reply that carries no tool calls, or
when the iteration ceiling is reached.
"""

import logging
from collections.abc import Iterator
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from edi_portal.assistant.conversation import ChatMessage, ConversationStore
from edi_portal.assistant.tools import (
    ToolArgumentsError,
    ToolExecutor,
    parse_tool_arguments,
    tool_definitions,
)
from edi_portal.documents.base import DocumentSource
from edi_portal.llm.client import LLMNotConfiguredError, OpenAIChatClient
from edi_portal.shared import metrics
from edi_portal.shared.config import Settings

logger = logging.getLogger(__name__)


def build_system_prompt(today: date | None = None) -> str:
    """System prompt seeded into every new conversation."""
    today = today or date.today()
    return f"""You are an EDI (Electronic Data Interchange) expert assistant helping users \
manage and understand their B2B transaction data.

You have access to tools to retrieve invoice data and search documents. When users ask questions:

**Tool Usage:**
1. **For specific invoice number queries** -> use getInvoiceByNumber tool
   - Example: "What is the status of invoice 406412?"
2. **For general document queries** -> use searchDocuments tool
   - Examples: "Show me documents from last 2 weeks", "Invoices with errors"

**Date Calculations (CRITICAL):**
Today's date: {today.isoformat()}
- "last 2 weeks" = startDate: 14 days ago at 00:00:00.000Z, endDate: today at 23:59:59.999Z
- "last month" = startDate: 30 days ago at 00:00:00.000Z, endDate: today at 23:59:59.999Z
- "this week" = startDate: Monday of current week at 00:00:00.000Z, endDate: today at 23:59:59.999Z
- "yesterday" = startDate: yesterday at 00:00:00.000Z, endDate: yesterday at 23:59:59.999Z
Always use ISO 8601 timestamps (YYYY-MM-DDTHH:mm:ss.sssZ) for startDate and endDate.

**When to Ask for Clarification:**
- Invoice number is incomplete or unclear
- A trading partner name is mentioned but you don't have the partner ID
- The user says "that invoice" or "those documents" without prior context
- Ambiguous date ranges (e.g., "a while ago")
Do NOT ask for time periods, document types or status keywords; map them yourself.

**Document Type Codes:** 810 = Invoice, 850 = Purchase Order (PO), \
856 = Advanced Shipping Notice (ASN), 997 = Functional Acknowledgment

**Transaction Statuses:** SENT, RECEIVED, ERROR, ERROR-HANDLED, IN_PROGRESS

**Response Format:**
- Provide clear summaries with key metrics and document counts
- Highlight important patterns (high error rates, unusual volumes, etc.)
- Use bullet points for readability
- Be conversational but concise"""


class AssistantReply(BaseModel):
    """Final result of a blocking assistant turn."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    response: str
    tools_used: list[str] = Field(default_factory=list)


class StreamEvent(BaseModel):
    """One event of a streamed assistant turn.

    Attributes:
        type: content (text delta), tool (tool about to run), done (turn finished)
            or error (turn aborted)
        data: Text delta, {"name", "args"} for tools, {"message"} for errors, None for done
    """

    type: Literal["content", "tool", "done", "error"]
    data: Any = None


class AIAssistantService:
    """EDI assistant using OpenAI function calling over the document source."""

    def __init__(
        self,
        settings: Settings,
        llm_client: OpenAIChatClient,
        document_source: DocumentSource,
        store: ConversationStore,
    ) -> None:
        """Initialize assistant.

        Args:
            settings: Application settings (iteration ceiling, token limit)
            llm_client: Shared OpenAI chat client
            document_source: Source the tools search
            store: Conversation store
        """
        self.settings = settings
        self.llm_client = llm_client
        self.store = store
        self.executor = ToolExecutor(document_source)
        self.max_iterations = settings.assistant_max_iterations

    def is_configured(self) -> bool:
        return self.llm_client.is_available()

    def _ensure_configured(self) -> None:
        if not self.is_configured():
            raise LLMNotConfiguredError()

    def _request(self, conversation_id: str) -> dict[str, Any]:
        conversation = self.store.get_or_create(conversation_id, build_system_prompt())
        return {
            "messages": conversation.openai_messages(),
            "tools": tool_definitions(),
            "max_tokens": self.settings.assistant_max_tokens,
            "temperature": 0.7,
        }

    def _run_tool_calls(self, conversation_id: str, tool_calls: list[dict[str, Any]]) -> None:
        """Execute tool calls in order, appending one tool message per call."""
        for tool_call in tool_calls:
            function = tool_call["function"]
            result = self.executor.execute(function["name"], function["arguments"])
            self.store.append(
                conversation_id,
                ChatMessage(
                    role="tool",
                    tool_call_id=tool_call["id"],
                    name=function["name"],
                    content=result.model_dump_json(),
                ),
            )

    def send_message(self, conversation_id: str, message: str) -> AssistantReply:
        """Run one blocking assistant turn.

        Args:
            conversation_id: Conversation to continue (created if unknown)
            message: User message

        Returns:
            AssistantReply with the final text and the names of tools used

        Raises:
            LLMNotConfiguredError: If no OpenAI API key is configured
        """
        self._ensure_configured()

        with self.store.lock(conversation_id):
            self.store.get_or_create(conversation_id, build_system_prompt())
            self.store.append(conversation_id, ChatMessage(role="user", content=message))

            tools_used: list[str] = []
            response_text = ""
            iteration = 0
            finished = False

            while iteration < self.max_iterations:
                iteration += 1
                logger.info(f"Iteration {iteration} - Sending request to OpenAI")

                completion = self.llm_client.create_completion(**self._request(conversation_id))
                reply = completion.choices[0].message
                tool_calls = [
                    {
                        "id": tool_call.id,
                        "type": "function",
                        "function": {
                            "name": tool_call.function.name,
                            "arguments": tool_call.function.arguments,
                        },
                    }
                    for tool_call in (reply.tool_calls or [])
                    if tool_call.type == "function"
                ]

                if tool_calls:
                    logger.info(f"AI requested {len(tool_calls)} tool calls")
                    response_text = reply.content or ""
                    self.store.append(
                        conversation_id,
                        ChatMessage(role="assistant", content=response_text, tool_calls=tool_calls),
                    )
                    tools_used.extend(call["function"]["name"] for call in tool_calls)
                    self._run_tool_calls(conversation_id, tool_calls)
                    continue

                response_text = reply.content or ""
                self.store.append(
                    conversation_id, ChatMessage(role="assistant", content=response_text)
                )
                finished = True
                break

            if not finished:
                logger.warning(f"Max iterations reached for conversation {conversation_id}")
            metrics.assistant_iterations.observe(iteration)

        return AssistantReply(response=response_text, tools_used=tools_used)

    def send_message_stream(self, conversation_id: str, message: str) -> Iterator[StreamEvent]:
        """Run one assistant turn, yielding events as the model streams.

        Text deltas are yielded as they arrive. Tool-call fragments are
        accumulated by index and executed once the model's reply is complete.
        The last event is always of type done.

        Args:
            conversation_id: Conversation to continue (created if unknown)
            message: User message

        Yields:
            StreamEvent objects

        Raises:
            LLMNotConfiguredError: If no OpenAI API key is configured
        """
        self._ensure_configured()

        with self.store.lock(conversation_id):
            self.store.get_or_create(conversation_id, build_system_prompt())
            self.store.append(conversation_id, ChatMessage(role="user", content=message))

            iteration = 0
            finished = False

            while iteration < self.max_iterations:
                iteration += 1
                logger.info(f"Iteration {iteration} - Streaming request to OpenAI")

                content = ""
                pending: dict[int, dict[str, Any]] = {}

                for chunk in self.llm_client.stream_completion(**self._request(conversation_id)):
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta

                    for fragment in delta.tool_calls or []:
                        call = pending.setdefault(
                            fragment.index,
                            {
                                "id": "",
                                "type": "function",
                                "function": {"name": "", "arguments": ""},
                            },
                        )
                        if fragment.id:
                            call["id"] = fragment.id
                        if fragment.function is not None:
                            if fragment.function.name:
                                call["function"]["name"] = fragment.function.name
                            if fragment.function.arguments:
                                call["function"]["arguments"] += fragment.function.arguments

                    if delta.content:
                        content += delta.content
                        yield StreamEvent(type="content", data=delta.content)

                if pending:
                    tool_calls = [pending[index] for index in sorted(pending)]
                    self.store.append(
                        conversation_id,
                        ChatMessage(role="assistant", content=content, tool_calls=tool_calls),
                    )
                    for tool_call in tool_calls:
                        yield StreamEvent(
                            type="tool",
                            data={
                                "name": tool_call["function"]["name"],
                                "args": _display_arguments(
                                    tool_call["function"]["name"],
                                    tool_call["function"]["arguments"],
                                ),
                            },
                        )
                        self._run_tool_calls(conversation_id, [tool_call])
                    continue

                self.store.append(conversation_id, ChatMessage(role="assistant", content=content))
                finished = True
                break

            if not finished:
                logger.warning(f"Max iterations reached for conversation {conversation_id}")
            metrics.assistant_iterations.observe(iteration)

        yield StreamEvent(type="done", data=None)

    def get_history(self, conversation_id: str) -> list[ChatMessage]:
        """Return the conversation's messages without the system prompt.

        Unknown ids yield an empty list.
        """
        conversation = self.store.get(conversation_id)
        if conversation is None:
            return []
        return [message for message in conversation.messages if message.role != "system"]

    def clear_conversation(self, conversation_id: str) -> None:
        """Remove the conversation and its history entirely.

        Waits for a turn in progress on the same conversation to finish.
        """
        with self.store.lock(conversation_id):
            self.store.delete(conversation_id)
        logger.info(f"Cleared conversation {conversation_id}")


def _display_arguments(tool_name: str, raw_arguments: str) -> Any:
    """Tool arguments as shown to the client: validated fields, or the raw string."""
    try:
        return parse_tool_arguments(tool_name, raw_arguments).model_dump(
            by_alias=True, exclude_none=True
        )
    except ToolArgumentsError:
        return raw_arguments
