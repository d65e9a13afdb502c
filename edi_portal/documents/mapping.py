"""Mapping of verbose upstream EDI records to trimmed document summaries."""

from typing import Any

from edi_portal.documents.schema import DocumentApiResponse, DocumentSummary

INVOICE_NUMBER_EXTENSION = "INVOICE_NUMBER"

_SUMMARY_FIELDS = (
    "wfid",
    "sourceId",
    "sourceName",
    "destinationId",
    "destinationName",
    "documentType",
    "reference",
    "documentStatus",
    "transactionStatus",
    "transactionStatusReason",
    "direction",
    "documentCreationDate",
    "transactionLastDateTime",
    "inboundMessageFilename",
    "outboundMessageFilename",
    "interchangeNumber",
    "groupNumber",
    "transactionNumber",
)


def extract_invoice_number(doc_extensions: Any) -> str | None:
    """Pull the invoice number out of a docExtensions list.

    Both key spellings used by the upstream API are accepted:
    ``{"name", "value"}`` and ``{"extensionName", "extensionValue"}``.

    Args:
        doc_extensions: The record's docExtensions value (may be missing or malformed)

    Returns:
        Invoice number, or None if no INVOICE_NUMBER extension is present
    """
    if not isinstance(doc_extensions, list):
        return None

    for extension in doc_extensions:
        if not isinstance(extension, dict):
            continue
        name = extension.get("name") or extension.get("extensionName")
        if name == INVOICE_NUMBER_EXTENSION:
            return extension.get("value") or extension.get("extensionValue") or None
    return None


def to_summary(document: dict[str, Any]) -> DocumentSummary:
    """Project one upstream document record onto the summary shape."""
    fields = {name: document.get(name) for name in _SUMMARY_FIELDS}
    fields["invoiceNumber"] = extract_invoice_number(document.get("docExtensions"))
    return DocumentSummary.model_validate(fields)


def to_response(payload: dict[str, Any]) -> DocumentApiResponse:
    """Map the upstream response body to the trimmed response envelope."""
    documents = payload.get("data") or []
    return DocumentApiResponse(
        errors=payload.get("errors") or [],
        messages=payload.get("messages") or [],
        successful=bool(payload.get("successful", False)),
        current_page=payload.get("currentPage") or 1,
        total_count=payload.get("totalCount") or 0,
        data=[to_summary(document) for document in documents],
        api_version=payload.get("apiVersion"),
    )
