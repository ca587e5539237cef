"""Turns every supported file input into a NormalizedFile."""

import asyncio
from pathlib import Path, PurePosixPath
from typing import BinaryIO
from urllib.parse import unquote, urlparse

import httpx

from docassembly.exceptions import ValidationError
from docassembly.inputs.models import (
    BufferInput,
    BytesInput,
    FileInput,
    FilePathInput,
    NormalizedFile,
    UrlInput,
)
from docassembly.logging.logger import Log

STRUCTURED_INPUTS = (FilePathInput, BufferInput, BytesInput, UrlInput)


def is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_remote_file_input(value: object) -> bool:
    if isinstance(value, UrlInput):
        return True
    return isinstance(value, str) and is_url(value)


def validate_file_input(value: object) -> bool:
    """Cheap shape check performed when an input is registered."""
    if isinstance(value, str):
        return bool(value)
    if isinstance(value, (Path, bytes, bytearray, memoryview)):
        return True
    if isinstance(value, STRUCTURED_INPUTS):
        return True
    return _is_binary_stream(value)


async def normalize_file_input(
    file_input: FileInput,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> NormalizedFile:
    """Normalize ``file_input`` into a named byte source.

    Raises:
        ValidationError: if the input shape is unsupported, a local file is
            missing or unreadable, or a remote file cannot be fetched.
    """
    if isinstance(file_input, str):
        if is_url(file_input):
            return await fetch_url(file_input, http_client=http_client)
        return await _from_path(Path(file_input))
    if isinstance(file_input, Path):
        return await _from_path(file_input)
    if isinstance(file_input, bytes):
        return NormalizedFile(data=file_input, filename="buffer")
    if isinstance(file_input, (bytearray, memoryview)):
        return NormalizedFile(data=bytes(file_input), filename="data.bin")
    if isinstance(file_input, FilePathInput):
        return await _from_path(Path(file_input.path))
    if isinstance(file_input, BufferInput):
        return NormalizedFile(
            data=bytes(file_input.buffer),
            filename=file_input.filename or "buffer",
            content_type=file_input.content_type,
        )
    if isinstance(file_input, BytesInput):
        return NormalizedFile(
            data=bytes(file_input.data),
            filename=file_input.filename or "data.bin",
            content_type=file_input.content_type,
        )
    if isinstance(file_input, UrlInput):
        return await fetch_url(file_input.url, http_client=http_client)
    if _is_binary_stream(file_input):
        return _from_stream(file_input)  # type: ignore[arg-type]

    raise ValidationError(
        "Invalid file input provided",
        {"input_type": type(file_input).__name__},
    )


async def fetch_url(
    url: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> NormalizedFile:
    """Download ``url`` completely and return it as owned bytes."""
    Log.debug(f"Fetching remote file {url}")
    try:
        if http_client is not None:
            response = await http_client.get(url, follow_redirects=True)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await client.get(url)
    except httpx.HTTPError as exc:
        raise ValidationError(
            f"Failed to fetch URL: {url}",
            {"url": url, "error": str(exc)},
        ) from exc

    if not response.is_success:
        raise ValidationError(
            f"Failed to fetch URL: {response.status_code} {response.reason_phrase}",
            {
                "url": url,
                "status": response.status_code,
                "status_text": response.reason_phrase,
            },
        )

    content = response.content
    Log.debug(f"Fetched {len(content)} bytes from {url}")
    return NormalizedFile(
        data=content,
        filename=filename_from_url(url) or "download",
        content_type=response.headers.get("content-type"),
    )


def filename_from_url(url: str) -> str | None:
    name = PurePosixPath(unquote(urlparse(url).path)).name
    return name or None


async def _from_path(path: Path) -> NormalizedFile:
    exists = await asyncio.to_thread(path.is_file)
    if not exists:
        raise ValidationError(f"File not found: {path}", {"file_path": str(path)})
    try:
        stream = await asyncio.to_thread(path.open, "rb")
    except OSError as exc:
        raise ValidationError(
            f"Failed to read file: {path}",
            {"file_path": str(path), "error": str(exc)},
        ) from exc
    return NormalizedFile(data=stream, filename=path.name)


def _from_stream(stream: BinaryIO) -> NormalizedFile:
    name = getattr(stream, "name", None)
    filename = Path(name).name if isinstance(name, str) and name else "file"
    return NormalizedFile(data=stream, filename=filename)


def _is_binary_stream(value: object) -> bool:
    read = getattr(value, "read", None)
    return callable(read) and not isinstance(value, (str, bytes))
