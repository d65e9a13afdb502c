"""EDI API document source.

Calls the external EDI document API with a single GET per search and
trims its verbose records down to document summaries.

Upstream endpoint: GET <base>/v1/1/docs
"""

import logging
import time

import httpx
from pydantic import ValidationError

from edi_portal.documents.base import (
    DocumentSource,
    EDIConnectionError,
    EDIUpstreamError,
)
from edi_portal.documents.mapping import to_response
from edi_portal.documents.schema import DocumentApiResponse, DocumentQueryParams
from edi_portal.shared import metrics
from edi_portal.shared.config import Settings

logger = logging.getLogger(__name__)

DOCS_PATH = "/v1/1/docs"
CONNECTION_ERROR_MESSAGE = (
    "Cannot connect to external EDI API. Please verify the API is running and accessible."
)


class EDIApiDocumentSource(DocumentSource):
    """Document source backed by the external EDI API.

    Sends HTTP Basic credentials when both username and password are configured.
    Stateless across calls apart from the pooled httpx client.
    """

    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        """Initialize EDI API source.

        Args:
            settings: Application settings
            client: Optional preconfigured httpx client
        """
        super().__init__(settings)
        self._base_url = settings.edi_api_base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=settings.edi_api_timeout_seconds)

    @property
    def source_name(self) -> str:
        """Get source name for logging/metrics.

        Returns:
            Source identifier 'edi-api'
        """
        return "edi-api"

    def is_available(self) -> bool:
        """Check if a base URL is configured.

        Returns:
            True if the EDI API base URL is set
        """
        return bool(self._base_url)

    @property
    def docs_url(self) -> str:
        """Full URL of the upstream document search endpoint."""
        return f"{self._base_url}{DOCS_PATH}"

    def build_url(self, params: DocumentQueryParams) -> str:
        """Build the full request URL for a search.

        Args:
            params: Search parameters

        Returns:
            URL with only the set parameters in its query string
        """
        query = params.to_query()
        if not query:
            return self.docs_url
        return str(httpx.URL(self.docs_url, params=query))

    def _auth(self) -> httpx.BasicAuth | None:
        if self.settings.edi_api_username and self.settings.edi_api_password:
            return httpx.BasicAuth(self.settings.edi_api_username, self.settings.edi_api_password)
        return None

    def get_documents(self, params: DocumentQueryParams) -> DocumentApiResponse:
        """Fetch documents from the EDI API and return the trimmed envelope.

        Args:
            params: Search parameters

        Returns:
            Response envelope with document summaries

        Raises:
            EDIConnectionError: If the API cannot be reached
            EDIUpstreamError: If the API returns a non-2xx, non-JSON or malformed response
        """
        url = self.build_url(params)
        logger.info(f"Fetching documents from: {url}")

        start_time = time.time()
        try:
            response = self._client.get(
                url,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                auth=self._auth(),
            )
        except httpx.TransportError as e:
            logger.error(f"Error fetching documents: {e}")
            metrics.edi_api_requests_total.labels(
                source=self.source_name, status="connection_error"
            ).inc()
            raise EDIConnectionError(CONNECTION_ERROR_MESSAGE) from e
        finally:
            metrics.edi_api_request_duration_seconds.observe(time.time() - start_time)

        content_type = response.headers.get("content-type")
        logger.info(f"Response status: {response.status_code} {response.reason_phrase}")
        logger.debug(f"Response content-type: {content_type}")

        if not response.is_success:
            logger.error(f"Error response body: {response.text[:500]}")
            metrics.edi_api_requests_total.labels(
                source=self.source_name, status="upstream_error"
            ).inc()
            raise EDIUpstreamError(
                f"External API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                content_type=content_type,
            )

        if not content_type or "application/json" not in content_type:
            logger.error(f"Expected JSON but got: {response.text[:500]}")
            metrics.edi_api_requests_total.labels(
                source=self.source_name, status="upstream_error"
            ).inc()
            raise EDIUpstreamError(
                f"External API returned non-JSON response (content-type: {content_type})",
                status_code=response.status_code,
                content_type=content_type,
            )

        try:
            payload = response.json()
        except ValueError as e:
            metrics.edi_api_requests_total.labels(
                source=self.source_name, status="upstream_error"
            ).inc()
            raise EDIUpstreamError(
                f"External API returned invalid JSON: {e}",
                status_code=response.status_code,
                content_type=content_type,
            ) from e

        if not isinstance(payload, dict):
            metrics.edi_api_requests_total.labels(
                source=self.source_name, status="upstream_error"
            ).inc()
            raise EDIUpstreamError(
                "External API returned an unexpected JSON body",
                status_code=response.status_code,
                content_type=content_type,
            )

        try:
            result = to_response(payload)
        except ValidationError as e:
            logger.error(f"Unexpected document record shape: {e}")
            metrics.edi_api_requests_total.labels(
                source=self.source_name, status="upstream_error"
            ).inc()
            raise EDIUpstreamError(
                "External API returned malformed document data",
                status_code=response.status_code,
                content_type=content_type,
            ) from e

        metrics.edi_api_requests_total.labels(source=self.source_name, status="success").inc()
        logger.info(f"Successfully fetched {len(result.data)} documents")
        return result
