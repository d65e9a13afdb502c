"""Mock document source for development without access to the EDI API.

Serves a small seeded data set and applies the same partner, document type
and status filters the upstream API would.
"""

import logging
import time

from edi_portal.documents.base import DocumentSource
from edi_portal.documents.schema import DocumentApiResponse, DocumentQueryParams, DocumentSummary
from edi_portal.shared import metrics

logger = logging.getLogger(__name__)

MOCK_API_VERSION = "mock-v1.0.0"
MOCK_MESSAGE = "This is mock data for testing. Set APP_USE_MOCK_DATA=false to use real API."

_HOUR_MS = 3_600_000


def _seed_documents(now_ms: int) -> list[DocumentSummary]:
    """Build the seeded documents with timestamps relative to now."""
    seeds = [
        {
            "wfid": 3285897,
            "sourceId": "PRODUXINC",
            "sourceName": "Produx Inc",
            "destinationId": "MAXXMART",
            "destinationName": "Maxx Mart",
            "documentType": "810",
            "reference": "406412",
            "transactionStatus": "SENT",
            "transactionStatusReason": "",
            "direction": "O",
            "hoursAgo": 1,
            "inboundMessageFilename": "ProduxInc_OB_INV_810_MaxxMart.txt",
            "outboundMessageFilename": "PRODUXINC_MAXXMART_810.txt",
            "interchangeNumber": "000000003",
            "groupNumber": "3",
            "transactionNumber": "1",
            "invoiceNumber": "INV-2024-0001",
        },
        {
            "wfid": 3285874,
            "sourceId": "PRODUXINC",
            "sourceName": "Produx Inc",
            "destinationId": "MAXXMART",
            "destinationName": "Maxx Mart",
            "documentType": "810",
            "reference": "406413",
            "transactionStatus": "SENT",
            "transactionStatusReason": "",
            "direction": "O",
            "hoursAgo": 2,
            "inboundMessageFilename": "ProduxInc_OB_INV_810_MaxxMart.txt",
            "outboundMessageFilename": "PRODUXINC_MAXXMART_810.txt",
            "interchangeNumber": "000000002",
            "groupNumber": "2",
            "transactionNumber": "1",
            "invoiceNumber": "INV-2024-0002",
        },
        {
            "wfid": 3285806,
            "sourceId": "ACMECORP",
            "sourceName": "ACME Corporation",
            "destinationId": "BIGBOX",
            "destinationName": "Big Box Store",
            "documentType": "850",
            "reference": "500123",
            "transactionStatus": "RECEIVED",
            "transactionStatusReason": "",
            "direction": "I",
            "hoursAgo": 3,
            "inboundMessageFilename": "ACME_PO_850_BigBox.txt",
            "outboundMessageFilename": None,
            "interchangeNumber": "000000001",
            "groupNumber": "1",
            "transactionNumber": "1",
            "invoiceNumber": None,
        },
        {
            "wfid": 3285786,
            "sourceId": "PRODUXINC",
            "sourceName": "Produx Inc",
            "destinationId": "RETAILCO",
            "destinationName": "Retail Co",
            "documentType": "810",
            "reference": "406414",
            "transactionStatus": "ERROR",
            "transactionStatusReason": "Connection timeout",
            "direction": "O",
            "hoursAgo": 4,
            "inboundMessageFilename": "ProduxInc_OB_INV_810_RetailCo.txt",
            "outboundMessageFilename": None,
            "interchangeNumber": None,
            "groupNumber": None,
            "transactionNumber": None,
            "invoiceNumber": "INV-2024-0003",
        },
        {
            "wfid": 3285776,
            "sourceId": "TECHSUPPLY",
            "sourceName": "Tech Supply Co",
            "destinationId": "BIGBOX",
            "destinationName": "Big Box Store",
            "documentType": "856",
            "reference": "700456",
            "transactionStatus": "SENT",
            "transactionStatusReason": "",
            "direction": "O",
            "hoursAgo": 5,
            "inboundMessageFilename": "TechSupply_ASN_856_BigBox.txt",
            "outboundMessageFilename": "TECHSUPPLY_BIGBOX_856.txt",
            "interchangeNumber": "000000005",
            "groupNumber": "5",
            "transactionNumber": "1",
            "invoiceNumber": None,
        },
    ]

    documents = []
    for seed in seeds:
        timestamp = now_ms - seed.pop("hoursAgo") * _HOUR_MS
        documents.append(
            DocumentSummary.model_validate(
                {
                    **seed,
                    "documentStatus": "OK",
                    "documentCreationDate": timestamp,
                    "transactionLastDateTime": timestamp,
                }
            )
        )
    return documents


def _contains(value: str | None, needle: str) -> bool:
    return value is not None and needle.lower() in value.lower()


class MockDocumentSource(DocumentSource):
    """Document source serving seeded in-memory documents."""

    @property
    def source_name(self) -> str:
        return "mock"

    def is_available(self) -> bool:
        return True

    def get_documents(self, params: DocumentQueryParams) -> DocumentApiResponse:
        """Filter the seeded documents with the given parameters.

        Partner ids match case-insensitively by substring; document type and
        transaction status must match exactly. Other parameters are ignored.
        """
        logger.info(f"Returning mock data with params: {params.to_query()}")

        filtered = _seed_documents(int(time.time() * 1000))

        if params.destination:
            filtered = [d for d in filtered if _contains(d.destination_id, params.destination)]
        if params.source:
            filtered = [d for d in filtered if _contains(d.source_id, params.source)]
        if params.document_type:
            filtered = [d for d in filtered if d.document_type == params.document_type]
        if params.transaction_status:
            filtered = [d for d in filtered if d.transaction_status == params.transaction_status]

        metrics.edi_api_requests_total.labels(source=self.source_name, status="success").inc()
        return DocumentApiResponse(
            errors=[],
            messages=[MOCK_MESSAGE],
            successful=True,
            current_page=1,
            total_count=len(filtered),
            data=filtered,
            api_version=MOCK_API_VERSION,
        )
