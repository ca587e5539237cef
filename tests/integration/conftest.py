import asyncio
from collections.abc import Generator

import httpx
import pytest

from docassembly.client import DocumentClient
from tests.fakes import MockService


@pytest.fixture
def mock_service() -> MockService:
    return MockService(host="dws.test")


@pytest.fixture
def http_client(mock_service: MockService) -> Generator[httpx.AsyncClient, None, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(mock_service))
    try:
        yield client
    finally:
        asyncio.run(client.aclose())


@pytest.fixture
def document_client(http_client: httpx.AsyncClient) -> DocumentClient:
    return DocumentClient("integration-key", base_url="https://dws.test", http_client=http_client)
