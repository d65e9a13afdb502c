"""Unit tests for document query parameters and summary mapping.

Tests cover:
- Upstream query building (omitted fields, renamed docType, booleans)
- Invoice number extraction from both extension key spellings
- Projection of verbose upstream records onto summaries
- Response envelope mapping and camelCase serialization
"""

from typing import Any

import pytest
from pydantic import ValidationError

from edi_portal.documents.mapping import extract_invoice_number, to_response, to_summary
from edi_portal.documents.schema import DocumentApiResponse, DocumentQueryParams


@pytest.fixture
def upstream_record() -> dict[str, Any]:
    """Verbose upstream record with fields the summary drops."""
    return {
        "wfid": 3285897,
        "sourceId": "PRODUXINC",
        "sourceName": "Produx Inc",
        "destinationId": "MAXXMART",
        "destinationName": "Maxx Mart",
        "documentType": "810",
        "reference": "406412",
        "documentStatus": "OK",
        "transactionStatus": "SENT",
        "transactionStatusReason": "",
        "direction": "O",
        "documentCreationDate": 1734000000000,
        "transactionLastDateTime": 1734000300000,
        "inboundMessageFilename": "in.txt",
        "outboundMessageFilename": "out.txt",
        "interchangeNumber": "000000003",
        "groupNumber": "3",
        "transactionNumber": "1",
        "rawPayload": "ISA*00*...",
        "docNotes": [{"note": "internal"}],
        "docExtensions": [
            {"name": "PO_NUMBER", "value": "PO-1"},
            {"name": "INVOICE_NUMBER", "value": "22406412_3285897"},
        ],
    }


def test_to_query_omits_unset_fields() -> None:
    """Only fields that were set end up in the upstream query."""
    params = DocumentQueryParams(destination="MAXXMART", page_size=25)

    assert params.to_query() == {"destination": "MAXXMART", "pageSize": "25"}


def test_to_query_renames_document_type_and_formats_booleans() -> None:
    """documentType is sent as docType and booleans as lowercase strings."""
    params = DocumentQueryParams(
        document_type="810", with_notes=True, select_filtered="Y", sort_dir="desc"
    )

    query = params.to_query()

    assert query["docType"] == "810"
    assert "documentType" not in query
    assert query["withNotes"] == "true"
    assert query["selectFiltered"] == "Y"
    assert query["sortDir"] == "desc"


def test_blank_strings_are_treated_as_absent() -> None:
    """Empty or whitespace-only values are dropped."""
    params = DocumentQueryParams(source="", destination="   ", start_date="")

    assert params.source is None
    assert params.destination is None
    assert params.to_query() == {}


def test_query_params_accept_camel_case() -> None:
    """Parameters validate from the camelCase wire names."""
    params = DocumentQueryParams.model_validate(
        {"documentType": "850", "transactionStatus": "ERROR", "pageSize": 10}
    )

    assert params.document_type == "850"
    assert params.transaction_status == "ERROR"
    assert params.page_size == 10


@pytest.mark.parametrize("field", ["page", "page_size"])
def test_pagination_must_be_positive(field: str) -> None:
    """page and pageSize start at 1."""
    with pytest.raises(ValidationError):
        DocumentQueryParams(**{field: 0})


def test_sort_dir_is_restricted() -> None:
    """sortDir only accepts asc or desc."""
    with pytest.raises(ValidationError):
        DocumentQueryParams(sort_dir="sideways")  # type: ignore[arg-type]


def test_extract_invoice_number_name_value() -> None:
    """Extensions written as name/value are understood."""
    extensions = [{"name": "INVOICE_NUMBER", "value": "406412"}]

    assert extract_invoice_number(extensions) == "406412"


def test_extract_invoice_number_extension_name_value() -> None:
    """Extensions written as extensionName/extensionValue are understood."""
    extensions = [
        {"extensionName": "OTHER", "extensionValue": "x"},
        {"extensionName": "INVOICE_NUMBER", "extensionValue": "INV-9"},
    ]

    assert extract_invoice_number(extensions) == "INV-9"


@pytest.mark.parametrize(
    "extensions",
    [None, "not-a-list", [], [{"name": "PO_NUMBER", "value": "1"}], ["bogus"]],
)
def test_extract_invoice_number_missing(extensions: Any) -> None:
    """Missing or malformed extensions yield no invoice number."""
    assert extract_invoice_number(extensions) is None


def test_to_summary_keeps_only_summary_fields(upstream_record: dict[str, Any]) -> None:
    """Summaries carry the listed fields plus the derived invoice number."""
    summary = to_summary(upstream_record)
    dumped = summary.model_dump(by_alias=True)

    assert summary.wfid == 3285897
    assert summary.destination_id == "MAXXMART"
    assert summary.transaction_last_date_time == 1734000300000
    assert summary.invoice_number == "22406412_3285897"
    assert "rawPayload" not in dumped
    assert "docNotes" not in dumped
    assert "docExtensions" not in dumped
    assert dumped["invoiceNumber"] == "22406412_3285897"


def test_to_summary_without_extensions(upstream_record: dict[str, Any]) -> None:
    """Records without extensions get a null invoice number."""
    del upstream_record["docExtensions"]

    assert to_summary(upstream_record).invoice_number is None


def test_to_response_maps_envelope(upstream_record: dict[str, Any]) -> None:
    """Envelope fields are copied and every record is trimmed."""
    payload = {
        "errors": [],
        "messages": ["ok"],
        "successful": True,
        "currentPage": 2,
        "totalCount": 41,
        "data": [upstream_record, {**upstream_record, "wfid": 1, "docExtensions": []}],
        "apiVersion": "1.4.2",
    }

    response = to_response(payload)

    assert isinstance(response, DocumentApiResponse)
    assert response.successful is True
    assert response.current_page == 2
    assert response.total_count == 41
    assert response.api_version == "1.4.2"
    assert response.messages == ["ok"]
    assert [d.wfid for d in response.data] == [3285897, 1]
    assert response.data[1].invoice_number is None


def test_to_response_with_missing_data() -> None:
    """An envelope without data maps to an empty list."""
    response = to_response({"successful": False, "errors": ["boom"]})

    assert response.data == []
    assert response.successful is False
    assert response.errors == ["boom"]


def test_response_serializes_camel_case() -> None:
    """The envelope is exposed with camelCase keys."""
    dumped = DocumentApiResponse(total_count=3, current_page=1).model_dump(by_alias=True)

    assert dumped["totalCount"] == 3
    assert dumped["currentPage"] == 1
    assert "apiVersion" in dumped
