"""Abstract base class for EDI document sources.

Enables switching between the live EDI API and the seeded mock data set
while keeping one interface for the HTTP routes and the assistant tools.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python
"""

import json
import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError

from edi_portal.documents.mapping import INVOICE_NUMBER_EXTENSION
from edi_portal.documents.schema import (
    INVOICE_DOCUMENT_TYPE,
    DocumentApiResponse,
    DocumentQueryParams,
    InvoiceQueryParams,
)
from edi_portal.shared.config import Settings

logger = logging.getLogger(__name__)


class DocumentSourceError(Exception):
    """Base error for document source failures."""


class InvalidQueryError(DocumentSourceError):
    """Raised when a query is rejected before any network call."""


class EDIConnectionError(DocumentSourceError):
    """Raised when the external EDI API cannot be reached."""


class EDIUpstreamError(DocumentSourceError):
    """Raised when the external EDI API answers with an error or non-JSON body.

    Attributes:
        status_code: Upstream HTTP status, if a response was received
        content_type: Upstream content type, if a response was received
    """

    def __init__(
        self, message: str, status_code: int | None = None, content_type: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.content_type = content_type


class DocumentSource(ABC):
    """Abstract base class for EDI document sources.

    Example implementations:
    - EDIApiDocumentSource: calls the external EDI API over HTTP
    - MockDocumentSource: filters an in-memory seeded data set
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize source with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    def get_documents(self, params: DocumentQueryParams) -> DocumentApiResponse:
        """Search documents.

        Args:
            params: Filter, sort and pagination options

        Returns:
            Response envelope with trimmed document summaries

        Raises:
            DocumentSourceError: If the search cannot be performed
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this source is configured and usable.

        Returns:
            True if the source can serve requests
        """
        pass

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Get source name for logging/metrics.

        Returns:
            Source identifier (e.g., 'edi-api', 'mock')
        """
        pass

    def get_invoice_by_number(self, invoice_number: str) -> DocumentApiResponse:
        """Search for an invoice by invoice number.

        Wraps get_documents with a fixed invoice filter: document type 810,
        filtered selection with notes, an INVOICE_NUMBER extension predicate,
        newest activity first.

        Args:
            invoice_number: Invoice number to look up

        Returns:
            Response envelope with matching invoices

        Raises:
            InvalidQueryError: If invoice_number is empty
        """
        try:
            query = InvoiceQueryParams(invoice_number=invoice_number)
        except ValidationError as e:
            raise InvalidQueryError("Invoice number is required") from e

        logger.info(f"Searching for invoice: {query.invoice_number}")
        params = DocumentQueryParams(
            select_filtered="Y",
            with_notes=True,
            extensions=json.dumps({INVOICE_NUMBER_EXTENSION: query.invoice_number}),
            sort_by="transactionLastDateTime",
            sort_dir="desc",
            document_type=INVOICE_DOCUMENT_TYPE,
        )
        return self.get_documents(params)
