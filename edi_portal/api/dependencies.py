"""FastAPI dependency providers.

Services are constructed once in create_app and stored on app.state; these
providers hand them to route handlers.
"""

from fastapi import Request

from edi_portal.ai.service import AIChatService
from edi_portal.assistant.service import AIAssistantService
from edi_portal.documents.base import DocumentSource
from edi_portal.shared.config import Settings


def get_app_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def get_document_source(request: Request) -> DocumentSource:
    source: DocumentSource = request.app.state.document_source
    return source


def get_ai_service(request: Request) -> AIChatService:
    service: AIChatService = request.app.state.ai_service
    return service


def get_assistant_service(request: Request) -> AIAssistantService:
    service: AIAssistantService = request.app.state.assistant_service
    return service
