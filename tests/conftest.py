"""Shared fixtures: test settings and fake OpenAI SDK objects."""

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from edi_portal.api.main import create_app
from edi_portal.documents.mock_source import MockDocumentSource
from edi_portal.llm.client import OpenAIChatClient
from edi_portal.shared.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings with a dummy OpenAI key and no .env file."""
    return Settings(_env_file=None, openai_api_key="sk-test", environment="development")


@pytest.fixture
def unconfigured_settings() -> Settings:
    """Settings without an OpenAI key."""
    return Settings(_env_file=None, openai_api_key=None)


@pytest.fixture
def mock_source(settings: Settings) -> MockDocumentSource:
    """Seeded in-memory document source."""
    return MockDocumentSource(settings)


@pytest.fixture
def openai_sdk() -> MagicMock:
    """Stand-in for the OpenAI SDK client (chat.completions.create)."""
    return MagicMock()


@pytest.fixture
def llm_client(settings: Settings, openai_sdk: MagicMock) -> OpenAIChatClient:
    """Chat client wired to the fake SDK."""
    return OpenAIChatClient(settings, client=openai_sdk)


@pytest.fixture
def make_completion() -> Callable[..., Any]:
    """Build a ChatCompletion-like object."""

    def _make(content: str | None = "", tool_calls: list[Any] | None = None) -> Any:
        message = SimpleNamespace(content=content, tool_calls=tool_calls)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=None,
            model="gpt-4o",
        )

    return _make


@pytest.fixture
def make_tool_call() -> Callable[..., Any]:
    """Build a function tool call as returned on a completion message."""

    def _make(call_id: str, name: str, arguments: str) -> Any:
        return SimpleNamespace(
            id=call_id,
            type="function",
            function=SimpleNamespace(name=name, arguments=arguments),
        )

    return _make


@pytest.fixture
def make_chunk() -> Callable[..., Any]:
    """Build a streamed ChatCompletionChunk-like object."""

    def _make(content: str | None = None, tool_calls: list[Any] | None = None) -> Any:
        delta = SimpleNamespace(content=content, tool_calls=tool_calls)
        return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])

    return _make


@pytest.fixture
def make_fragment() -> Callable[..., Any]:
    """Build a streamed tool-call fragment."""

    def _make(
        index: int,
        call_id: str | None = None,
        name: str | None = None,
        arguments: str | None = None,
    ) -> Any:
        return SimpleNamespace(
            index=index,
            id=call_id,
            function=SimpleNamespace(name=name, arguments=arguments),
        )

    return _make


@pytest.fixture
def client(
    settings: Settings, mock_source: MockDocumentSource, llm_client: OpenAIChatClient
) -> TestClient:
    """Test client for an app on mock data and the fake SDK."""
    app = create_app(settings, document_source=mock_source, llm_client=llm_client)
    return TestClient(app)


@pytest.fixture
def unconfigured_client(unconfigured_settings: Settings) -> TestClient:
    """Test client for an app without an OpenAI key."""
    app = create_app(
        unconfigured_settings,
        document_source=MockDocumentSource(unconfigured_settings),
        llm_client=OpenAIChatClient(unconfigured_settings),
    )
    return TestClient(app)
