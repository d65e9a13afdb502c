"""Selection of the document source from configuration."""

import logging

from edi_portal.documents.api_source import EDIApiDocumentSource
from edi_portal.documents.base import DocumentSource
from edi_portal.documents.mock_source import MockDocumentSource
from edi_portal.shared.config import Settings

logger = logging.getLogger(__name__)


def create_document_source(settings: Settings) -> DocumentSource:
    """Create the document source selected by configuration.

    Uses the seeded mock source when settings.use_mock_data is set, otherwise
    the live EDI API.

    Args:
        settings: Application settings

    Returns:
        Configured document source instance
    """
    if settings.use_mock_data:
        logger.info("Running in MOCK DATA mode")
        return MockDocumentSource(settings)

    source = EDIApiDocumentSource(settings)
    if not source.is_available():
        logger.warning(
            "EDI API source is not fully available. Check APP_EDI_API_BASE_URL."
        )
    logger.info(f"Using EDI API at {settings.edi_api_base_url}")
    return source
