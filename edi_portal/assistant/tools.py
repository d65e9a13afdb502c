"""Tools the assistant model may call, and their executor.

Two tools are exposed to the model:
- getInvoiceByNumber: invoice lookup by invoice number
- searchDocuments: filtered document search

Tool arguments arrive as a JSON string written by the model. They are parsed
into a pydantic model per tool; malformed or out-of-schema arguments are
rejected with a failed ToolResult that the model sees as the tool output.
"""

import json
import logging
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from edi_portal.documents.base import DocumentSource, DocumentSourceError
from edi_portal.documents.schema import DocumentQueryParams
from edi_portal.shared import metrics

logger = logging.getLogger(__name__)

GET_INVOICE_BY_NUMBER = "getInvoiceByNumber"
SEARCH_DOCUMENTS = "searchDocuments"


class ToolResult(BaseModel):
    """Outcome of one tool call, sent back to the model as JSON."""

    success: bool
    data: Any | None = None
    error: str | None = None


class _ToolArguments(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class GetInvoiceByNumberArgs(_ToolArguments):
    invoice_number: str = Field(min_length=1)


class SearchDocumentsArgs(_ToolArguments):
    document_type: Literal["810", "850", "856", "997"] | None = None
    source: str | None = None
    destination: str | None = None
    transaction_status: (
        Literal["SENT", "RECEIVED", "ERROR", "IN_PROGRESS", "ERROR-HANDLED"] | None
    ) = None
    start_date: str | None = None
    end_date: str | None = None
    page_size: int | None = Field(None, ge=1)

    def to_query_params(self) -> DocumentQueryParams:
        return DocumentQueryParams(**self.model_dump(exclude_none=True))


_ARGUMENT_MODELS: dict[str, type[_ToolArguments]] = {
    GET_INVOICE_BY_NUMBER: GetInvoiceByNumberArgs,
    SEARCH_DOCUMENTS: SearchDocumentsArgs,
}


class ToolArgumentsError(ValueError):
    """Raised when a tool call carries arguments that do not match its schema."""


def parse_tool_arguments(tool_name: str, raw_arguments: str | None) -> _ToolArguments:
    """Parse the model's JSON argument string for a tool.

    Args:
        tool_name: Name of the tool being called
        raw_arguments: JSON-encoded argument object (empty means no arguments)

    Returns:
        Validated argument model for the tool

    Raises:
        ToolArgumentsError: If the tool is unknown or the arguments are invalid
    """
    model = _ARGUMENT_MODELS.get(tool_name)
    if model is None:
        raise ToolArgumentsError(f"Unknown tool: {tool_name}")

    try:
        payload = json.loads(raw_arguments) if raw_arguments and raw_arguments.strip() else {}
    except json.JSONDecodeError as e:
        raise ToolArgumentsError(f"Invalid JSON arguments for {tool_name}: {e}") from e
    if not isinstance(payload, dict):
        raise ToolArgumentsError(f"Arguments for {tool_name} must be a JSON object")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ToolArgumentsError(f"Invalid arguments for {tool_name}: {e}") from e


def tool_definitions(today: date | None = None) -> list[dict[str, Any]]:
    """OpenAI tool schema for the assistant.

    Args:
        today: Date quoted to the model for relative date ranges (defaults to today)

    Returns:
        List of function tool definitions
    """
    today = today or date.today()
    return [
        {
            "type": "function",
            "function": {
                "name": GET_INVOICE_BY_NUMBER,
                "description": (
                    "Retrieve detailed information about an invoice by its invoice number. "
                    "Use this when the user asks about a specific invoice."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "invoiceNumber": {
                            "type": "string",
                            "description": (
                                'The invoice number to search for (e.g., "22406412_3285897" '
                                'or "406412")'
                            ),
                        }
                    },
                    "required": ["invoiceNumber"],
                },
            },
        },
        {
            "type": "function",
            "function": {
                "name": SEARCH_DOCUMENTS,
                "description": (
                    "Search for EDI documents with flexible filtering. Use this when users ask "
                    "about documents, transactions, or want summaries over time periods.\n\n"
                    "IMPORTANT Date Handling:\n"
                    '- If user mentions "last X days/weeks/months", calculate startDate and '
                    "endDate automatically\n"
                    f"- Today is {today.isoformat()}\n"
                    '- "last 2 weeks" = startDate: 14 days ago, endDate: today\n'
                    '- "last month" = startDate: 30 days ago, endDate: today\n'
                    '- "this week" = startDate: Monday of this week, endDate: today\n\n'
                    "IMPORTANT: If critical parameters are ambiguous or missing (like a specific "
                    "trading partner), ask the user for clarification before calling this "
                    "function."
                ),
                "parameters": {
                    "type": "object",
                    "properties": {
                        "documentType": {
                            "type": "string",
                            "description": (
                                "Document type code. 810=Invoice, 850=Purchase Order (PO), "
                                "856=Advanced Shipping Notice (ASN), "
                                "997=Functional Acknowledgment. Leave empty to search all types."
                            ),
                            "enum": ["810", "850", "856", "997"],
                        },
                        "source": {
                            "type": "string",
                            "description": (
                                "Source trading partner ID (the sender). Use this when user "
                                "asks about documents FROM a specific partner."
                            ),
                        },
                        "destination": {
                            "type": "string",
                            "description": (
                                "Destination trading partner ID (the receiver). Use this when "
                                "user asks about documents TO a specific partner."
                            ),
                        },
                        "transactionStatus": {
                            "type": "string",
                            "description": (
                                "Transaction status filter. SENT, RECEIVED, ERROR, "
                                "IN_PROGRESS, or ERROR-HANDLED. Leave empty to search all "
                                "statuses."
                            ),
                            "enum": ["SENT", "RECEIVED", "ERROR", "IN_PROGRESS", "ERROR-HANDLED"],
                        },
                        "startDate": {
                            "type": "string",
                            "description": (
                                "Start date as ISO 8601 timestamp (YYYY-MM-DDTHH:mm:ss.sssZ), "
                                "e.g. 2025-12-01T00:00:00.000Z."
                            ),
                        },
                        "endDate": {
                            "type": "string",
                            "description": (
                                "End date as ISO 8601 timestamp (YYYY-MM-DDTHH:mm:ss.sssZ), "
                                "e.g. 2025-12-14T23:59:59.999Z."
                            ),
                        },
                        "pageSize": {
                            "type": "number",
                            "description": (
                                "Maximum number of documents to return. Default is 50. Use 100 "
                                'for "all" or "full list" requests.'
                            ),
                        },
                    },
                    "required": [],
                },
            },
        },
    ]


class ToolExecutor:
    """Runs assistant tool calls against a document source."""

    def __init__(self, document_source: DocumentSource) -> None:
        self.document_source = document_source

    def execute(self, tool_name: str, raw_arguments: str | None) -> ToolResult:
        """Execute one tool call.

        Never raises: bad arguments, document source failures and unexpected
        errors are all reported as a failed ToolResult.

        Args:
            tool_name: Name of the tool requested by the model
            raw_arguments: JSON-encoded arguments from the model

        Returns:
            ToolResult with the search envelope or an error message
        """
        logger.info(f"Executing tool: {tool_name} with args: {raw_arguments}")

        try:
            arguments = parse_tool_arguments(tool_name, raw_arguments)
        except ToolArgumentsError as e:
            logger.warning(f"Rejected tool call: {e}")
            metrics.assistant_tool_calls_total.labels(tool=tool_name, status="rejected").inc()
            return ToolResult(success=False, error=str(e))

        try:
            if isinstance(arguments, GetInvoiceByNumberArgs):
                response = self.document_source.get_invoice_by_number(arguments.invoice_number)
            elif isinstance(arguments, SearchDocumentsArgs):
                response = self.document_source.get_documents(arguments.to_query_params())
            else:
                return ToolResult(success=False, error=f"Unknown tool: {tool_name}")
        except DocumentSourceError as e:
            logger.error(f"Tool execution error: {e}")
            metrics.assistant_tool_calls_total.labels(tool=tool_name, status="failed").inc()
            return ToolResult(success=False, error=str(e))
        except Exception as e:
            # Every tool call must be answered with a tool message
            logger.exception(f"Unexpected error in tool {tool_name}")
            metrics.assistant_tool_calls_total.labels(tool=tool_name, status="failed").inc()
            return ToolResult(success=False, error=f"Tool {tool_name} failed: {e}")

        metrics.assistant_tool_calls_total.labels(tool=tool_name, status="success").inc()
        return ToolResult(success=True, data=response.model_dump(by_alias=True))
