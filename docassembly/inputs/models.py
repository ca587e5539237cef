from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union


@dataclass(frozen=True)
class FilePathInput:
    """Local file, even when the path looks like a URL."""

    path: str | Path
    type: str = "file-path"


@dataclass(frozen=True)
class BufferInput:
    """In-memory bytes with an optional filename."""

    buffer: bytes
    filename: str | None = None
    content_type: str | None = None
    type: str = "buffer"


@dataclass(frozen=True)
class BytesInput:
    """Mutable byte array or memory view with an optional filename."""

    data: bytearray | memoryview
    filename: str | None = None
    content_type: str | None = None
    type: str = "uint8array"


@dataclass(frozen=True)
class UrlInput:
    """Remote file fetched over HTTP(S)."""

    url: str
    type: str = "url"


StructuredInput = FilePathInput | BufferInput | BytesInput | UrlInput

FileInput = Union[
    str,
    Path,
    bytes,
    bytearray,
    memoryview,
    BinaryIO,
    FilePathInput,
    BufferInput,
    BytesInput,
    UrlInput,
]


@dataclass
class NormalizedFile:
    """Named byte source ready to be attached to a multipart request.

    ``data`` is either owned bytes or a binary stream that may only be read
    once.
    """

    data: bytes | BinaryIO
    filename: str
    content_type: str | None = None

    @property
    def is_stream(self) -> bool:
        return not isinstance(self.data, bytes)

    def read_bytes(self) -> bytes:
        """Materialize the payload, consuming and closing a stream."""
        if isinstance(self.data, bytes):
            return self.data
        stream = self.data
        try:
            content = stream.read()
        finally:
            stream.close()
        self.data = content
        return content

    def close(self) -> None:
        if not isinstance(self.data, bytes):
            self.data.close()
