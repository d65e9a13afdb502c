"""EDI document models: query parameters, trimmed summaries and the response envelope.

Field names follow the external EDI API (camelCase on the wire) while Python code
uses snake_case attributes.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

INVOICE_DOCUMENT_TYPE = "810"


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentQueryParams(CamelModel):
    """Filter, sort and pagination options for a document search.

    Every field is optional. Absent or blank fields are left out of the
    outbound query entirely.
    """

    start_date: str | None = Field(None, description="ISO 8601 start timestamp")
    end_date: str | None = Field(None, description="ISO 8601 end timestamp")
    source: str | None = Field(None, description="Source trading partner id")
    destination: str | None = Field(None, description="Destination trading partner id")
    document_type: str | None = Field(None, description="Document type code (810, 850, ...)")
    transaction_status: str | None = Field(None, description="Transaction status filter")
    select_filtered: Literal["Y", "N"] | None = None
    with_notes: bool | None = None
    sort_by: str | None = None
    sort_dir: Literal["asc", "desc"] | None = None
    page: int | None = Field(None, ge=1)
    page_size: int | None = Field(None, ge=1)
    extensions: str | None = Field(
        None, description='JSON extension predicate, e.g. {"INVOICE_NUMBER": "123"}'
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_query(self) -> dict[str, str]:
        """Build upstream query parameters, omitting every unset field."""
        upstream_names = {
            "start_date": "startDate",
            "end_date": "endDate",
            "source": "source",
            "destination": "destination",
            "document_type": "docType",
            "transaction_status": "transactionStatus",
            "select_filtered": "selectFiltered",
            "with_notes": "withNotes",
            "sort_by": "sortBy",
            "sort_dir": "sortDir",
            "page": "page",
            "page_size": "pageSize",
            "extensions": "extensions",
        }
        query: dict[str, str] = {}
        for field_name, param_name in upstream_names.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            if isinstance(value, bool):
                query[param_name] = "true" if value else "false"
            else:
                query[param_name] = str(value)
        return query


class InvoiceQueryParams(CamelModel):
    """Parameters of an invoice lookup."""

    invoice_number: str

    @field_validator("invoice_number")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Invoice number is required")
        return value


class DocumentSummary(CamelModel):
    """Display-friendly projection of an upstream EDI document record."""

    wfid: int | None = None
    source_id: str | None = None
    source_name: str | None = None
    destination_id: str | None = None
    destination_name: str | None = None
    document_type: str | None = None
    reference: str | None = None
    document_status: str | None = None
    transaction_status: str | None = None
    transaction_status_reason: str | None = None
    direction: str | None = Field(None, description="I (inbound) or O (outbound)")
    document_creation_date: int | None = Field(None, description="Epoch milliseconds")
    transaction_last_date_time: int | None = Field(None, description="Epoch milliseconds")
    inbound_message_filename: str | None = None
    outbound_message_filename: str | None = None
    interchange_number: str | None = None
    group_number: str | None = None
    transaction_number: str | None = None
    invoice_number: str | None = None


class DocumentApiResponse(CamelModel):
    """Response envelope returned for every document search."""

    errors: list[str] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    successful: bool = True
    current_page: int = 1
    total_count: int = 0
    data: list[DocumentSummary] = Field(default_factory=list)
    api_version: str | None = None
