import asyncio
import io
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from docassembly.exceptions import ValidationError
from docassembly.inputs import (
    BufferInput,
    BytesInput,
    FilePathInput,
    NormalizedFile,
    UrlInput,
    is_remote_file_input,
    is_url,
    normalize_file_input,
    validate_file_input,
)

Handler = Callable[[httpx.Request], httpx.Response]


def _normalize(file_input: object, handler: Handler | None = None) -> NormalizedFile:
    async def run() -> NormalizedFile:
        if handler is None:
            return await normalize_file_input(file_input)  # type: ignore[arg-type]
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await normalize_file_input(
                file_input, http_client=client  # type: ignore[arg-type]
            )

    return asyncio.run(run())


class TestUrlDetection:
    @pytest.mark.parametrize(
        "value",
        ["https://example.com/a.pdf", "http://localhost:8080/files/1"],
    )
    def test_http_urls(self, value: str) -> None:
        assert is_url(value)

    @pytest.mark.parametrize(
        "value",
        ["/tmp/a.pdf", "relative/a.pdf", "ftp://example.com/a.pdf", "https://"],
    )
    def test_non_urls(self, value: str) -> None:
        assert not is_url(value)

    def test_remote_inputs(self) -> None:
        assert is_remote_file_input("https://example.com/a.pdf")
        assert is_remote_file_input(UrlInput("https://example.com/a.pdf"))
        assert not is_remote_file_input(FilePathInput("https://example.com/a.pdf"))
        assert not is_remote_file_input(b"%PDF")


class TestValidateFileInput:
    def test_accepts_supported_shapes(self, tmp_path: Path) -> None:
        assert validate_file_input("doc.pdf")
        assert validate_file_input(tmp_path / "doc.pdf")
        assert validate_file_input(b"%PDF")
        assert validate_file_input(bytearray(b"%PDF"))
        assert validate_file_input(BufferInput(b"%PDF"))
        assert validate_file_input(io.BytesIO(b"%PDF"))

    def test_rejects_unsupported_shapes(self) -> None:
        assert not validate_file_input("")
        assert not validate_file_input(None)
        assert not validate_file_input(42)
        assert not validate_file_input({"path": "doc.pdf"})


class TestLocalFiles:
    def test_path_string_is_streamed(self, tmp_path: Path) -> None:
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF-1.4 local")

        normalized = _normalize(str(path))

        assert normalized.filename == "report.pdf"
        assert normalized.is_stream
        assert normalized.read_bytes() == b"%PDF-1.4 local"

    def test_path_object(self, tmp_path: Path) -> None:
        path = tmp_path / "scan.pdf"
        path.write_bytes(b"%PDF scan")

        normalized = _normalize(path)

        assert normalized.filename == "scan.pdf"
        assert normalized.read_bytes() == b"%PDF scan"

    def test_missing_file(self, tmp_path: Path) -> None:
        missing = tmp_path / "missing.pdf"
        with pytest.raises(ValidationError, match="File not found") as excinfo:
            _normalize(str(missing))
        assert excinfo.value.details == {"file_path": str(missing)}

    def test_file_path_input_never_fetches(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("a file path must not be fetched")

        with pytest.raises(ValidationError, match="File not found"):
            _normalize(FilePathInput("https://example.com/a.pdf"), handler)


class TestInMemoryInputs:
    def test_bytes_named_buffer(self) -> None:
        normalized = _normalize(b"%PDF raw")
        assert normalized.filename == "buffer"
        assert normalized.data == b"%PDF raw"
        assert not normalized.is_stream

    def test_bytearray_named_data_bin(self) -> None:
        normalized = _normalize(bytearray(b"\x00\x01"))
        assert normalized.filename == "data.bin"
        assert normalized.data == b"\x00\x01"

    def test_memoryview_is_copied(self) -> None:
        normalized = _normalize(memoryview(b"view"))
        assert normalized.data == b"view"

    def test_buffer_input_keeps_filename(self) -> None:
        normalized = _normalize(
            BufferInput(b"<p>hi</p>", filename="index.html", content_type="text/html")
        )
        assert normalized.filename == "index.html"
        assert normalized.content_type == "text/html"

    def test_buffer_input_default_name(self) -> None:
        assert _normalize(BufferInput(b"%PDF")).filename == "buffer"

    def test_bytes_input_default_name(self) -> None:
        assert _normalize(BytesInput(bytearray(b"abc"))).filename == "data.bin"


class TestStreams:
    def test_unnamed_stream(self) -> None:
        normalized = _normalize(io.BytesIO(b"%PDF stream"))
        assert normalized.filename == "file"
        assert normalized.read_bytes() == b"%PDF stream"

    def test_named_stream_uses_basename(self, tmp_path: Path) -> None:
        path = tmp_path / "contract.pdf"
        path.write_bytes(b"%PDF contract")

        with path.open("rb") as stream:
            normalized = _normalize(stream)
            assert normalized.filename == "contract.pdf"


class TestRemoteFiles:
    def test_fetches_url_string(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "https://files.example.com/docs/q3%20report.pdf"
            return httpx.Response(
                200, content=b"%PDF remote", headers={"content-type": "application/pdf"}
            )

        normalized = _normalize("https://files.example.com/docs/q3%20report.pdf", handler)

        assert normalized.data == b"%PDF remote"
        assert normalized.filename == "q3 report.pdf"
        assert normalized.content_type == "application/pdf"

    def test_url_input_without_path_is_download(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"data")

        normalized = _normalize(UrlInput("https://files.example.com"), handler)

        assert normalized.filename == "download"

    def test_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        with pytest.raises(ValidationError, match="Failed to fetch URL: 404 Not Found") as excinfo:
            _normalize("https://files.example.com/gone.pdf", handler)
        assert excinfo.value.details == {
            "url": "https://files.example.com/gone.pdf",
            "status": 404,
            "status_text": "Not Found",
        }

    def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(
            ValidationError, match="Failed to fetch URL: https://files.example.com/a.pdf"
        ):
            _normalize("https://files.example.com/a.pdf", handler)


class TestInvalidInputs:
    @pytest.mark.parametrize("value", [None, 42, 3.5, {"path": "doc.pdf"}])
    def test_rejected(self, value: object) -> None:
        with pytest.raises(ValidationError, match="Invalid file input provided") as excinfo:
            _normalize(value)
        assert excinfo.value.details == {"input_type": type(value).__name__}
