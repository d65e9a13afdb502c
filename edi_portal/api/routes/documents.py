"""EDI document endpoints."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from edi_portal.api.dependencies import get_document_source
from edi_portal.api.errors import APIError
from edi_portal.documents.base import DocumentSource, DocumentSourceError, InvalidQueryError
from edi_portal.documents.schema import DocumentApiResponse, DocumentQueryParams

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/docs", tags=["Documents"])

UPSTREAM_HINT = (
    "Check backend logs for more details. The external EDI API may not be accessible."
)


def document_query(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    source: str | None = Query(None),
    destination: str | None = Query(None),
    document_type: str | None = Query(None, alias="documentType"),
    transaction_status: str | None = Query(None, alias="transactionStatus"),
    select_filtered: Literal["Y", "N"] | None = Query(None, alias="selectFiltered"),
    with_notes: bool | None = Query(None, alias="withNotes"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: Literal["asc", "desc"] | None = Query(None, alias="sortDir"),
    page: int | None = Query(None, ge=1),
    page_size: int | None = Query(None, ge=1, alias="pageSize"),
) -> DocumentQueryParams:
    """Collect document search filters from the query string."""
    return DocumentQueryParams(
        start_date=start_date,
        end_date=end_date,
        source=source,
        destination=destination,
        document_type=document_type,
        transaction_status=transaction_status,
        select_filtered=select_filtered,
        with_notes=with_notes,
        sort_by=sort_by,
        sort_dir=sort_dir,
        page=page,
        page_size=page_size,
    )


@router.get("", response_model=DocumentApiResponse)
def get_documents(
    params: DocumentQueryParams = Depends(document_query),  # noqa: B008
    source: DocumentSource = Depends(get_document_source),  # noqa: B008
) -> DocumentApiResponse:
    """Fetch EDI documents with optional filters.

    Query parameters: startDate, endDate, source, destination, documentType,
    transactionStatus, selectFiltered, withNotes, sortBy, sortDir, page, pageSize.
    Parameters that are not given are not forwarded upstream.
    """
    logger.info(f"Received document search: {params.to_query()}")
    try:
        result = source.get_documents(params)
    except DocumentSourceError as e:
        raise APIError(str(e), messages=[UPSTREAM_HINT]) from e

    logger.info(f"Successfully returned {len(result.data)} documents")
    return result


@router.get("/invoice/", response_model=DocumentApiResponse, include_in_schema=False)
@router.get("/invoice/{invoice_number}", response_model=DocumentApiResponse)
def get_invoice_by_number(
    invoice_number: str = "",
    source: DocumentSource = Depends(get_document_source),  # noqa: B008
) -> DocumentApiResponse:
    """Search for a specific invoice by invoice number.

    Example: /api/docs/invoice/406412_3285897
    """
    try:
        result = source.get_invoice_by_number(invoice_number)
    except InvalidQueryError as e:
        raise APIError(str(e), status_code=status.HTTP_400_BAD_REQUEST) from e
    except DocumentSourceError as e:
        raise APIError(str(e), messages=[UPSTREAM_HINT]) from e

    logger.info(f"Invoice search returned {len(result.data)} result(s)")
    return result
