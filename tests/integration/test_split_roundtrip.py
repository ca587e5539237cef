import asyncio
import io

import pdfplumber

from docassembly.build import PageRange
from docassembly.client import DocumentClient
from docassembly.pdf.page_counter import count_pdf_pages
from tests.fakes import FakeTransport


def _pdfplumber_pages(data: bytes) -> int:
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        return len(pdf.pages)


class TestSplitRoundTrip:
    def test_six_pages_into_halves(
        self, page_range_transport: FakeTransport, six_page_pdf_bytes: bytes
    ) -> None:
        client = DocumentClient("key", transport=page_range_transport)

        first, second = asyncio.run(
            client.split(six_page_pdf_bytes, [PageRange(0, 2), PageRange(3, 5)])
        )

        assert count_pdf_pages(first.buffer) == 3
        assert count_pdf_pages(second.buffer) == 3
        assert _pdfplumber_pages(first.buffer) == 3
        assert first.mime_type == second.mime_type == "application/pdf"

    def test_each_range_gets_its_own_upload(
        self, page_range_transport: FakeTransport, six_page_pdf_bytes: bytes
    ) -> None:
        client = DocumentClient("key", transport=page_range_transport)

        asyncio.run(client.split(six_page_pdf_bytes, [PageRange(0, 0), PageRange(1, -1)]))

        sent = sorted(
            request.data["instructions"]["parts"][0]["pages"]["start"]  # type: ignore[index]
            for request in page_range_transport.requests
        )
        assert sent == [0, 1]
        for payloads in page_range_transport.payloads:
            assert payloads == {"file0": six_page_pdf_bytes}


class TestPageEditingRoundTrip:
    def test_delete_then_count(
        self, page_range_transport: FakeTransport, six_page_pdf_bytes: bytes
    ) -> None:
        client = DocumentClient("key", transport=page_range_transport)

        output = asyncio.run(client.delete_pages(six_page_pdf_bytes, [0, -1]))

        assert count_pdf_pages(output.buffer) == _pdfplumber_pages(output.buffer) == 4

    def test_add_pages_then_count(
        self, page_range_transport: FakeTransport, multi_page_pdf_bytes: bytes
    ) -> None:
        client = DocumentClient("key", transport=page_range_transport)

        output = asyncio.run(client.add_page(multi_page_pdf_bytes, count=3, index=1))

        assert count_pdf_pages(output.buffer) == 5
