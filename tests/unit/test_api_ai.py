"""Unit tests for the /api/ai endpoints.

Tests cover:
- Chat request validation and replies
- EDI context injection
- SSE streaming framing and in-band errors
- Analysis, query parsing, health and config
"""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

from fastapi import status
from fastapi.testclient import TestClient

from edi_portal.llm.client import NOT_CONFIGURED_MESSAGE


def sse_payloads(body: str) -> list[str]:
    """Split an event-stream body into its data payloads."""
    return [
        frame.removeprefix("data: ")
        for frame in body.split("\n\n")
        if frame.startswith("data: ")
    ]


class TestChat:
    """Test POST /api/ai/chat."""

    def test_missing_message(self, client: TestClient) -> None:
        response = client.post("/api/ai/chat", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "status": "error",
            "errors": ["Message is required and must be a string"],
        }

    def test_non_string_message(self, client: TestClient) -> None:
        response = client.post("/api/ai/chat", json={"message": 42})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["Message is required and must be a string"]

    def test_blank_message(self, client: TestClient) -> None:
        response = client.post("/api/ai/chat", json={"message": "   "})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["Message cannot be empty"]

    def test_chat_reply(
        self,
        client: TestClient,
        openai_sdk: MagicMock,
        make_completion: Callable[..., Any],
    ) -> None:
        openai_sdk.chat.completions.create.return_value = make_completion("An 810 is an invoice.")

        response = client.post(
            "/api/ai/chat",
            json={
                "message": "What is an 810?",
                "messages": [{"role": "user", "content": "hello"}],
            },
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "success"
        assert data["data"]["message"] == "An 810 is an invoice."
        assert data["data"]["model"] == "gpt-4o"

        messages = openai_sdk.chat.completions.create.call_args.kwargs["messages"]
        assert [m["role"] for m in messages] == ["system", "user", "user"]
        assert "Current EDI Data Context" not in messages[0]["content"]

    def test_chat_with_edi_context(
        self,
        client: TestClient,
        openai_sdk: MagicMock,
        make_completion: Callable[..., Any],
    ) -> None:
        openai_sdk.chat.completions.create.return_value = make_completion("5 documents.")

        response = client.post(
            "/api/ai/chat", json={"message": "How many documents?", "includeEDIContext": True}
        )

        assert response.status_code == status.HTTP_200_OK
        system_prompt = openai_sdk.chat.completions.create.call_args.kwargs["messages"][0][
            "content"
        ]
        assert "Current EDI Data Context" in system_prompt
        assert '"totalDocuments": 5' in system_prompt

    def test_invalid_history_role(self, client: TestClient) -> None:
        response = client.post(
            "/api/ai/chat",
            json={"message": "hi", "messages": [{"role": "wizard", "content": "x"}]},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["status"] == "error"

    def test_not_configured(self, unconfigured_client: TestClient) -> None:
        response = unconfigured_client.post("/api/ai/chat", json={"message": "hi"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"status": "error", "errors": [NOT_CONFIGURED_MESSAGE]}

    def test_provider_failure(self, client: TestClient, openai_sdk: MagicMock) -> None:
        openai_sdk.chat.completions.create.side_effect = RuntimeError("boom")

        response = client.post("/api/ai/chat", json={"message": "hi"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"status": "error", "errors": ["Internal server error"]}


class TestChatStream:
    """Test POST /api/ai/chat/stream."""

    def test_missing_messages(self, client: TestClient) -> None:
        response = client.post("/api/ai/chat/stream", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["Messages array is required"]

    def test_stream_frames(
        self,
        client: TestClient,
        openai_sdk: MagicMock,
        make_chunk: Callable[..., Any],
    ) -> None:
        openai_sdk.chat.completions.create.return_value = iter(
            [make_chunk("Hel"), make_chunk("lo")]
        )

        response = client.post(
            "/api/ai/chat/stream", json={"messages": [{"role": "user", "content": "hi"}]}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        payloads = sse_payloads(response.text)
        assert payloads[:-1] == [json.dumps({"content": "Hel"}), json.dumps({"content": "lo"})]
        assert payloads[-1] == "[DONE]"

    def test_stream_error_in_band(self, unconfigured_client: TestClient) -> None:
        """Failures after the stream starts are reported as an error frame."""
        response = unconfigured_client.post(
            "/api/ai/chat/stream", json={"messages": [{"role": "user", "content": "hi"}]}
        )

        assert response.status_code == status.HTTP_200_OK
        payloads = sse_payloads(response.text)
        assert payloads == [json.dumps({"error": NOT_CONFIGURED_MESSAGE})]


class TestAnalyze:
    """Test POST /api/ai/analyze."""

    def test_analysis(
        self,
        client: TestClient,
        openai_sdk: MagicMock,
        make_completion: Callable[..., Any],
    ) -> None:
        openai_sdk.chat.completions.create.return_value = make_completion(
            '{"summary": {"headline": "Two invoices sent"}}'
        )

        response = client.post("/api/ai/analyze", json={"destination": "MAXXMART"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["analysis"] == {"summary": {"headline": "Two invoices sent"}}
        assert data["metadata"]["documentCount"] == 2
        assert data["metadata"]["model"] == "gpt-4o"
        assert "generatedAt" in data["metadata"]

    def test_analysis_without_body(
        self,
        client: TestClient,
        openai_sdk: MagicMock,
        make_completion: Callable[..., Any],
    ) -> None:
        openai_sdk.chat.completions.create.return_value = make_completion('{"summary": {}}')

        response = client.post("/api/ai/analyze")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["metadata"]["documentCount"] == 5

    def test_analysis_no_documents(self, client: TestClient) -> None:
        response = client.post("/api/ai/analyze", json={"destination": "NOBODY"})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["errors"] == ["No documents found for analysis"]


class TestParseQuery:
    """Test POST /api/ai/parse-query."""

    def test_parse_query(
        self,
        client: TestClient,
        openai_sdk: MagicMock,
        make_completion: Callable[..., Any],
    ) -> None:
        openai_sdk.chat.completions.create.return_value = make_completion(
            '{"documentType": "810", "destination": "MAXXMART"}'
        )

        response = client.post("/api/ai/parse-query", json={"query": "invoices to maxxmart"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["query"] == "invoices to maxxmart"
        assert data["params"] == {
            "documentType": "810",
            "destination": "MAXXMART",
            "selectFiltered": "Y",
            "withNotes": True,
            "sortBy": "transactionLastDateTime",
            "sortDir": "desc",
        }

    def test_missing_query(self, client: TestClient) -> None:
        response = client.post("/api/ai/parse-query", json={})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"] == ["Query is required and must be a string"]


class TestHealthAndConfig:
    """Test GET /api/ai/health and /api/ai/config."""

    def test_health_configured(self, client: TestClient) -> None:
        data = client.get("/api/ai/health").json()["data"]

        assert data["available"] is True
        assert data["configured"] is True
        assert data["provider"] == "openai"

    def test_health_not_configured(self, unconfigured_client: TestClient) -> None:
        response = unconfigured_client.get("/api/ai/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["configured"] is False

    def test_config_has_no_secrets(self, client: TestClient) -> None:
        response = client.get("/api/ai/config")

        data = response.json()["data"]
        assert data == {
            "provider": "openai",
            "model": "gpt-4o",
            "maxTokens": 4000,
            "configured": True,
        }
        assert "sk-test" not in response.text
