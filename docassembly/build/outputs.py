"""Output descriptors and their factories."""

from dataclasses import dataclass, field
from enum import Enum

from docassembly.build.parts import PageRange
from docassembly.exceptions import ValidationError

IMAGE_FORMATS = ("png", "jpeg", "jpg", "webp")
OFFICE_FORMATS = ("docx", "xlsx", "pptx")
HTML_LAYOUTS = ("page", "reflow")


class OutputType(str, Enum):
    PDF = "pdf"
    PDFA = "pdfa"
    PDFUA = "pdfua"
    IMAGE = "image"
    DOCX = "docx"
    XLSX = "xlsx"
    PPTX = "pptx"
    JSON_CONTENT = "json-content"
    HTML = "html"
    MARKDOWN = "markdown"


TEXT_OUTPUTS = frozenset({OutputType.HTML, OutputType.MARKDOWN})

MIME_TYPES: dict[OutputType, tuple[str, str]] = {
    OutputType.PDF: ("application/pdf", "output.pdf"),
    OutputType.PDFA: ("application/pdf", "output.pdf"),
    OutputType.PDFUA: ("application/pdf", "output.pdf"),
    OutputType.DOCX: (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "output.docx",
    ),
    OutputType.XLSX: (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "output.xlsx",
    ),
    OutputType.PPTX: (
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "output.pptx",
    ),
    OutputType.HTML: ("text/html", "output.html"),
    OutputType.MARKDOWN: ("text/markdown", "output.md"),
    OutputType.JSON_CONTENT: ("application/json", "output.json"),
}

IMAGE_MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "webp": "image/webp",
}


@dataclass(frozen=True)
class Output:
    type: OutputType
    options: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {"type": self.type.value, **self.options}


def _compact(**values: object) -> dict[str, object]:
    return {key: value for key, value in values.items() if value is not None}


def _document_options(
    metadata: dict[str, object] | None,
    labels: list[dict[str, object]] | None,
    user_password: str | None,
    owner_password: str | None,
    user_permissions: list[str] | None,
    optimize: dict[str, object] | None,
) -> dict[str, object]:
    return _compact(
        metadata=metadata,
        labels=labels,
        user_password=user_password,
        owner_password=owner_password,
        user_permissions=user_permissions,
        optimize=optimize,
    )


def pdf(
    *,
    metadata: dict[str, object] | None = None,
    labels: list[dict[str, object]] | None = None,
    user_password: str | None = None,
    owner_password: str | None = None,
    user_permissions: list[str] | None = None,
    optimize: dict[str, object] | None = None,
) -> Output:
    """Plain PDF output."""
    return Output(
        OutputType.PDF,
        _document_options(
            metadata, labels, user_password, owner_password, user_permissions, optimize
        ),
    )


def pdfa(
    *,
    conformance: str | None = None,
    vectorization: bool | None = None,
    rasterization: bool | None = None,
    metadata: dict[str, object] | None = None,
    labels: list[dict[str, object]] | None = None,
    user_password: str | None = None,
    owner_password: str | None = None,
    user_permissions: list[str] | None = None,
    optimize: dict[str, object] | None = None,
) -> Output:
    """PDF/A output; ``conformance`` picks the level, e.g. ``pdfa-2b``."""
    options = _compact(
        conformance=conformance,
        vectorization=vectorization,
        rasterization=rasterization,
    )
    options.update(
        _document_options(
            metadata, labels, user_password, owner_password, user_permissions, optimize
        )
    )
    return Output(OutputType.PDFA, options)


def pdfua(
    *,
    metadata: dict[str, object] | None = None,
    labels: list[dict[str, object]] | None = None,
    user_password: str | None = None,
    owner_password: str | None = None,
    user_permissions: list[str] | None = None,
    optimize: dict[str, object] | None = None,
) -> Output:
    """PDF/UA output."""
    return Output(
        OutputType.PDFUA,
        _document_options(
            metadata, labels, user_password, owner_password, user_permissions, optimize
        ),
    )


def image(
    format: str = "png",
    *,
    pages: PageRange | None = None,
    width: int | None = None,
    height: int | None = None,
    dpi: int | None = None,
) -> Output:
    """Rendered page images; needs at least one of dpi, width or height."""
    if format not in IMAGE_FORMATS:
        raise ValidationError(
            f"Unsupported image format '{format}'. Choose from: {list(IMAGE_FORMATS)}"
        )
    if not (dpi or width or height):
        raise ValidationError(
            "Image output requires at least one of the following options: dpi, height, width"
        )
    return Output(
        OutputType.IMAGE,
        _compact(
            format=format,
            pages=pages.to_dict() if pages else None,
            width=width,
            height=height,
            dpi=dpi,
        ),
    )


def office(format: str) -> Output:
    """Office document output: docx, xlsx or pptx."""
    if format not in OFFICE_FORMATS:
        raise ValidationError(
            f"Unsupported office format '{format}'. Choose from: {list(OFFICE_FORMATS)}"
        )
    return Output(OutputType(format))


def json_content(
    *,
    plain_text: bool | None = None,
    structured_text: bool | None = None,
    key_value_pairs: bool | None = None,
    tables: bool | None = None,
    language: str | list[str] | None = None,
) -> Output:
    """Extracted content as JSON; each flag enables one kind of extraction."""
    return Output(
        OutputType.JSON_CONTENT,
        _compact(
            plainText=plain_text,
            structuredText=structured_text,
            keyValuePairs=key_value_pairs,
            tables=tables,
            language=language,
        ),
    )


def html(layout: str = "page") -> Output:
    """HTML output with ``page`` or ``reflow`` layout."""
    if layout not in HTML_LAYOUTS:
        raise ValidationError(
            f"Unsupported HTML layout '{layout}'. Choose from: {list(HTML_LAYOUTS)}"
        )
    return Output(OutputType.HTML, {"layout": layout})


def markdown() -> Output:
    """Markdown output."""
    return Output(OutputType.MARKDOWN)


def get_mime_type(output: Output) -> tuple[str, str]:
    """Return ``(mime_type, filename)`` for the document ``output`` produces."""
    if output.type is OutputType.IMAGE:
        image_format = str(output.options.get("format", "png"))
        mime_type = IMAGE_MIME_TYPES.get(image_format, "application/octet-stream")
        return mime_type, f"output.{image_format}"
    return MIME_TYPES.get(output.type, ("application/octet-stream", "output"))
