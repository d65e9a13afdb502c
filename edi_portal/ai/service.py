"""AI chat service for EDI document conversations and analysis.

Wraps the OpenAI chat client with EDI-specific prompts:
- Plain and streaming chat
- Chat with a snapshot of recent EDI documents as context
- Business analysis of a document search, returned as structured JSON
- Natural-language search query parsing into DocumentQueryParams
"""

import json
import logging
import re
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from edi_portal.ai import prompts
from edi_portal.documents.base import DocumentSource, DocumentSourceError
from edi_portal.documents.schema import DocumentQueryParams
from edi_portal.llm.client import OpenAIChatClient
from edi_portal.shared.config import Settings

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response generated"


class AnalysisError(Exception):
    """Raised when a business analysis cannot be produced."""


class QueryParseError(Exception):
    """Raised when a natural-language query cannot be turned into search parameters."""


class ChatResult(BaseModel):
    """Result of a chat completion.

    Attributes:
        content: Assistant reply text
        usage: Token usage reported by the provider
        model: Model that produced the reply
    """

    content: str
    usage: dict[str, Any] | None = None
    model: str


class AnalysisResult(BaseModel):
    """Result of a business analysis request."""

    analysis: dict[str, Any]
    usage: dict[str, Any] | None = None
    model: str
    document_count: int


def parse_json_response(response_text: str) -> Any:
    """Extract and parse JSON from an LLM response.

    Handles markdown code blocks and surrounding prose.

    Raises:
        json.JSONDecodeError: If no valid JSON found
    """
    fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", response_text)
    if fenced:
        return json.loads(fenced.group(1).strip())

    start = response_text.find("{")
    end = response_text.rfind("}")
    if start >= 0 and end > start:
        return json.loads(response_text[start : end + 1])

    return json.loads(response_text.strip())


def _usage(completion: Any) -> dict[str, Any] | None:
    usage = getattr(completion, "usage", None)
    if usage is None:
        return None
    if isinstance(usage, dict):
        return usage
    return usage.model_dump()


class AIChatService:
    """EDI-aware chat service on top of the OpenAI client."""

    def __init__(
        self, settings: Settings, llm_client: OpenAIChatClient, document_source: DocumentSource
    ) -> None:
        """Initialize chat service.

        Args:
            settings: Application settings
            llm_client: Shared OpenAI chat client
            document_source: Source used for EDI context and analysis
        """
        self.settings = settings
        self.llm_client = llm_client
        self.document_source = document_source

    def is_configured(self) -> bool:
        """Check if the LLM provider is configured."""
        return self.llm_client.is_available()

    def chat(self, messages: list[dict[str, Any]]) -> ChatResult:
        """Send a conversation to the model and return its reply.

        Args:
            messages: Role-tagged messages (system/user/assistant)

        Returns:
            ChatResult with reply text, usage and model name
        """
        logger.info(f"Sending chat request with {len(messages)} messages")
        completion = self.llm_client.create_completion(
            messages, max_tokens=self.settings.openai_max_tokens, temperature=0.7
        )
        content = completion.choices[0].message.content or NO_RESPONSE
        logger.info(f"Received response ({len(content)} characters)")
        return ChatResult(
            content=content,
            usage=_usage(completion),
            model=getattr(completion, "model", None) or self.llm_client.model,
        )

    def build_edi_context(self) -> dict[str, Any] | None:
        """Fetch a snapshot of recent documents to ground a chat.

        Returns:
            Context summary, or None if the documents could not be fetched
        """
        params = DocumentQueryParams(
            select_filtered="Y",
            sort_by="transactionLastDateTime",
            sort_dir="desc",
            page_size=50,
        )
        try:
            documents = self.document_source.get_documents(params)
        except DocumentSourceError as e:
            logger.warning(f"Failed to fetch EDI context: {e}")
            return None

        return {
            "totalDocuments": documents.total_count,
            "recentDocuments": len(documents.data),
            "summary": f"{len(documents.data)} recent EDI transactions",
            "sampleDocuments": [
                document.model_dump(by_alias=True) for document in documents.data[:5]
            ],
        }

    def chat_with_edi_context(
        self,
        message: str,
        history: list[dict[str, Any]] | None = None,
        edi_context: dict[str, Any] | None = None,
    ) -> ChatResult:
        """Chat with the EDI expert system prompt and optional data context.

        Args:
            message: New user message
            history: Prior user/assistant messages
            edi_context: Optional document snapshot from build_edi_context

        Returns:
            ChatResult for the new message
        """
        system_prompt = prompts.EDI_EXPERT_SYSTEM_PROMPT
        if edi_context:
            system_prompt += (
                f"\n\nCurrent EDI Data Context:\n{json.dumps(edi_context, indent=2)}"
            )

        messages = [
            {"role": "system", "content": system_prompt},
            *(history or []),
            {"role": "user", "content": message},
        ]
        return self.chat(messages)

    def chat_stream(self, messages: list[dict[str, Any]]) -> Iterator[str]:
        """Stream the model's reply as text deltas.

        Args:
            messages: Role-tagged messages

        Yields:
            Non-empty content fragments in arrival order
        """
        for chunk in self.llm_client.stream_completion(
            messages, max_tokens=self.settings.openai_max_tokens, temperature=0.7
        ):
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    def analyze_documents(self, params: DocumentQueryParams) -> AnalysisResult:
        """Generate a business analysis of the documents matching params.

        Args:
            params: Document search parameters

        Returns:
            AnalysisResult with the parsed analysis JSON

        Raises:
            AnalysisError: If no documents match or the model output is not valid JSON
        """
        logger.info("Starting EDI document analysis")
        document_data = self.document_source.get_documents(params)

        if not document_data.successful or not document_data.data:
            raise AnalysisError("No documents found for analysis")

        logger.info(f"Analyzing {len(document_data.data)} documents")
        document_json = json.dumps(document_data.model_dump(by_alias=True), indent=2)
        full_prompt = (
            f"{prompts.ANALYSIS_PROMPT}\n\n"
            f"Now analyze the following EDI document data:\n\n"
            f"```json\n{document_json}\n```\n\n"
            f"Provide the complete business analysis in the specified JSON format."
        )

        completion = self.llm_client.create_completion(
            [{"role": "user", "content": full_prompt}],
            max_tokens=self.settings.analysis_max_tokens,
            temperature=0.3,
        )
        response_text = completion.choices[0].message.content or ""
        logger.info(f"Analysis complete ({len(response_text)} characters)")

        try:
            analysis = parse_json_response(response_text)
        except json.JSONDecodeError as e:
            raise AnalysisError(f"Model returned invalid analysis JSON: {e}") from e
        if not isinstance(analysis, dict):
            raise AnalysisError("Model returned invalid analysis JSON: expected an object")

        return AnalysisResult(
            analysis=analysis,
            usage=_usage(completion),
            model=getattr(completion, "model", None) or self.llm_client.model,
            document_count=len(document_data.data),
        )

    def parse_search_query(self, query: str) -> DocumentQueryParams:
        """Convert a natural-language query into search parameters.

        Unmentioned sort and selection options default to filtered documents
        with notes, newest activity first.

        Args:
            query: Free-text search request

        Returns:
            Parsed DocumentQueryParams

        Raises:
            QueryParseError: If the model output cannot be parsed
        """
        logger.info(f'Parsing search query: "{query}"')
        today = datetime.now(UTC)
        system_prompt = prompts.QUERY_PARSER_PROMPT.format(
            today=today.strftime("%Y-%m-%d"),
            today_long=today.strftime("%A, %B %d, %Y"),
            document_types=prompts.DOCUMENT_TYPES,
        )

        completion = self.llm_client.create_completion(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": query},
            ],
            max_tokens=500,
            temperature=0.1,
        )
        response_text = completion.choices[0].message.content or "{}"
        logger.info(f"Parse response: {response_text}")

        try:
            parsed = parse_json_response(response_text)
            if not isinstance(parsed, dict):
                raise ValueError("expected a JSON object")
            params = DocumentQueryParams.model_validate(parsed)
        except (ValueError, ValidationError) as e:
            logger.error(f"Query parsing error: {e}")
            raise QueryParseError(f"Failed to parse search query: {e}") from e

        defaults = {
            "select_filtered": "Y",
            "with_notes": True,
            "sort_by": "transactionLastDateTime",
            "sort_dir": "desc",
        }
        missing = {key: value for key, value in defaults.items() if getattr(params, key) is None}
        params = params.model_copy(update=missing)

        logger.info(f"Parsed parameters: {params.to_query()}")
        return params
