"""Minimal PDF page counter.

Walks the object graph just far enough to read the declared page total:
catalog -> root /Pages -> /Count. Encrypted files, compressed
cross-reference streams and object streams are not supported.
"""

import asyncio
import re

from docassembly.exceptions import ValidationError
from docassembly.inputs.models import NormalizedFile

OBJECT_END = b"endobj"
OBJECT_HEADER = re.compile(rb"(?<!\d)(\d+)[ \t\r\n\f\0]+(\d+)[ \t\r\n\f\0]+obj\b")
PAGES_REFERENCE = re.compile(
    rb"/Pages[ \t\r\n\f\0]*(?<!\d)(\d+)[ \t\r\n\f\0]+(\d+)[ \t\r\n\f\0]+R"
)
PAGE_COUNT = re.compile(rb"/Count[ \t\r\n\f\0]+(\d+)")

ObjectId = tuple[int, int]


async def count_pages(source: NormalizedFile) -> int:
    """Return the page count of ``source``, materializing it if it is a stream."""
    data = await asyncio.to_thread(source.read_bytes) if source.is_stream else source.read_bytes()
    return count_pdf_pages(data, source.filename)


def count_pdf_pages(data: bytes, filename: str = "document") -> int:
    """Return the page count declared by the root page tree of a PDF.

    Raises:
        ValidationError: if any link of catalog -> pages -> count is missing.
    """
    details: dict[str, object] = {"filename": filename}

    objects = _collect_objects(data)
    if not objects:
        raise ValidationError("Could not find any objects in PDF", details)

    catalog = _find_catalog(objects)
    if catalog is None:
        raise ValidationError("Could not find /Catalog object in PDF", details)

    reference = PAGES_REFERENCE.search(catalog)
    if reference is None:
        raise ValidationError("Could not find /Pages reference in /Catalog", details)

    pages_id = (int(reference.group(1)), int(reference.group(2)))
    pages = objects.get(pages_id)
    if pages is None:
        raise ValidationError(
            "Could not find root /Pages object",
            {**details, "object": f"{pages_id[0]} {pages_id[1]} R"},
        )

    count = PAGE_COUNT.search(pages)
    if count is None:
        raise ValidationError("Could not find /Count in root /Pages object", details)
    return int(count.group(1))


def _collect_objects(data: bytes) -> dict[ObjectId, bytes]:
    # Each chunk ends where an object closes, so patterns only ever see one
    # object body at a time.
    objects: dict[ObjectId, bytes] = {}
    for chunk in data.split(OBJECT_END):
        header = OBJECT_HEADER.search(chunk)
        if header is None:
            continue
        object_id = (int(header.group(1)), int(header.group(2)))
        objects[object_id] = chunk[header.end():]
    return objects


def _find_catalog(objects: dict[ObjectId, bytes]) -> bytes | None:
    for content in objects.values():
        if b"/Type" in content and b"/Catalog" in content:
            return content
    return None
