"""High-level client for the document service.

Single-step operations build and run a one-off workflow and raise on
failure. Operations that address pages by index read the page count first
and reject bad indices before anything is sent.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

import httpx

from docassembly.build import actions, outputs
from docassembly.build.outputs import Output
from docassembly.build.parts import FilePart, NewPagePart, PageRange, Part
from docassembly.config.settings import Settings
from docassembly.exceptions import ClientError, ValidationError
from docassembly.inputs.models import BufferInput, FileInput
from docassembly.inputs.normalizer import normalize_file_input
from docassembly.logging.logger import Log
from docassembly.pdf.page_counter import count_pages
from docassembly.transport.base import BaseTransport
from docassembly.transport.httpx_transport import DEFAULT_BASE_URL, ApiKey, HttpxTransport
from docassembly.transport.models import RequestConfig
from docassembly.workflow.builder import WorkflowBuilder
from docassembly.workflow.models import (
    BufferOutput,
    JsonContentOutput,
    WorkflowOutput,
    WorkflowResult,
)
from docassembly.workflow.stages import WorkflowInitialStage, WorkflowWithOutputStage

IMAGE_CONVERSION_DPI = 300

# Higher levels trade image quality for size; 1 is the lowest quality.
COMPRESSION_LEVELS: dict[str, dict[str, object]] = {
    "low": {"imageOptimizationQuality": 4},
    "medium": {"imageOptimizationQuality": 3},
    "high": {"imageOptimizationQuality": 2},
    "maximum": {"imageOptimizationQuality": 1, "mrcCompression": True},
}


class DocumentClient:
    """Entry point: workflows plus common single-step operations."""

    def __init__(
        self,
        api_key: ApiKey,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 60.0,
        transport: BaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValidationError("API key is required")
        if not isinstance(api_key, str) and not callable(api_key):
            raise ValidationError(
                "API key must be a string or an async function returning a string"
            )
        self._base_url = base_url
        self._http_client = http_client
        self._transport = transport or HttpxTransport(
            api_key=api_key,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            client=http_client,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def workflow(self, timeout: float | None = None) -> WorkflowInitialStage:
        """Start a new staged workflow."""
        builder = WorkflowBuilder(self._transport, http_client=self._http_client, timeout=timeout)
        return WorkflowInitialStage(builder)

    async def get_account_info(self) -> dict[str, object]:
        """Return the account and subscription details of the API key."""
        response = await self._transport.send(
            RequestConfig(endpoint="/account/info", method="GET", response_type="json")
        )
        return response.data  # type: ignore[return-value]

    async def convert(self, file: FileInput, target_format: str) -> WorkflowOutput:
        """Convert ``file`` to ``target_format`` (pdf, pdfa, docx, png, html, ...)."""
        output = _conversion_output(target_format)
        return await self._run(self.workflow().add_file_part(file).output(output))

    async def ocr(self, file: FileInput, language: str | list[str]) -> BufferOutput:
        """Return ``file`` as a searchable PDF."""
        stage = self.workflow().add_file_part(file).apply_action(actions.ocr(language))
        return await self._run_binary(stage.output_pdf())

    async def watermark_text(self, file: FileInput, text: str, **options: Any) -> BufferOutput:
        """Stamp a text watermark on every page."""
        action = actions.watermark_text(text, **options)
        stage = self.workflow().add_file_part(file).apply_action(action)
        return await self._run_binary(stage.output_pdf())

    async def watermark_image(
        self, file: FileInput, image: FileInput, **options: Any
    ) -> BufferOutput:
        """Stamp an image watermark on every page."""
        action = actions.watermark_image(image, **options)
        stage = self.workflow().add_file_part(file).apply_action(action)
        return await self._run_binary(stage.output_pdf())

    async def flatten(
        self, file: FileInput, annotation_ids: list[str | int] | None = None
    ) -> BufferOutput:
        """Flatten annotations into the page content."""
        stage = self.workflow().add_file_part(file).apply_action(actions.flatten(annotation_ids))
        return await self._run_binary(stage.output_pdf())

    async def apply_instant_json(self, file: FileInput, instant_json: FileInput) -> BufferOutput:
        """Import Instant JSON annotations into ``file``."""
        action = actions.apply_instant_json(instant_json)
        stage = self.workflow().add_file_part(file).apply_action(action)
        return await self._run_binary(stage.output_pdf())

    async def apply_xfdf(self, file: FileInput, xfdf: FileInput, **options: Any) -> BufferOutput:
        """Import XFDF annotations into ``file``."""
        action = actions.apply_xfdf(xfdf, **options)
        stage = self.workflow().add_file_part(file).apply_action(action)
        return await self._run_binary(stage.output_pdf())

    async def create_redactions_text(
        self, file: FileInput, text: str, **options: Any
    ) -> BufferOutput:
        """Create (but do not apply) redactions for ``text``."""
        action = actions.create_redactions_text(text, **options)
        stage = self.workflow().add_file_part(file).apply_action(action)
        return await self._run_binary(stage.output_pdf())

    async def create_redactions_regex(
        self, file: FileInput, regex: str, **options: Any
    ) -> BufferOutput:
        """Create (but do not apply) redactions for ``regex`` matches."""
        action = actions.create_redactions_regex(regex, **options)
        stage = self.workflow().add_file_part(file).apply_action(action)
        return await self._run_binary(stage.output_pdf())

    async def create_redactions_preset(
        self, file: FileInput, preset: str, **options: Any
    ) -> BufferOutput:
        """Create (but do not apply) redactions for a built-in ``preset``."""
        action = actions.create_redactions_preset(preset, **options)
        stage = self.workflow().add_file_part(file).apply_action(action)
        return await self._run_binary(stage.output_pdf())

    async def apply_redactions(self, file: FileInput) -> BufferOutput:
        """Apply the redactions already present in ``file``."""
        stage = self.workflow().add_file_part(file).apply_action(actions.apply_redactions())
        return await self._run_binary(stage.output_pdf())

    async def extract_text(self, file: FileInput) -> object:
        """Return the plain-text JSON extraction of ``file``."""
        stage = self.workflow().add_file_part(file).output_json(plain_text=True)
        output = await self._run(stage)
        if not isinstance(output, JsonContentOutput):
            raise ClientError("Unexpected output type for text extraction")
        return output.data

    async def merge(
        self, files: Sequence[FileInput], output_format: str = "pdf"
    ) -> WorkflowOutput:
        """Concatenate ``files`` in order and convert the result to ``output_format``."""
        if len(files) < 2:
            raise ValidationError("At least 2 files are required for merge operation")
        output = _conversion_output(output_format)
        stage = self.workflow().add_file_part(files[0])
        for file in files[1:]:
            stage = stage.add_file_part(file)
        return await self._run(stage.output(output))

    async def compress(self, file: FileInput, level: str = "medium") -> BufferOutput:
        """Re-encode the PDF with the image optimization preset for ``level``."""
        optimize = COMPRESSION_LEVELS.get(level)
        if optimize is None:
            raise ValidationError(
                f"Unsupported compression level '{level}'. "
                f"Choose from: {list(COMPRESSION_LEVELS)}",
                {"level": level},
            )
        stage = self.workflow().add_file_part(file).output_pdf(optimize=dict(optimize))
        return await self._run_binary(stage)

    async def rotate(
        self,
        file: FileInput,
        angle: int,
        pages: PageRange | None = None,
    ) -> BufferOutput:
        """Rotate the whole document, or only ``pages`` when given."""
        action = actions.rotate(angle)
        if pages is None:
            stage = self.workflow().add_file_part(file, actions=[action]).output_pdf()
            return await self._run_binary(stage)

        source, page_count = await self._load_pdf(file)
        start, end = resolve_page_range(pages, page_count)
        parts: list[Part] = []
        if start > 0:
            parts.append(FilePart(source, pages=PageRange(0, start - 1)))
        parts.append(FilePart(source, pages=PageRange(start, end), actions=(action,)))
        if end < page_count - 1:
            parts.append(FilePart(source, pages=PageRange(end + 1, page_count - 1)))
        return await self._run_binary(self._pdf_workflow(parts))

    async def add_page(
        self,
        file: FileInput,
        count: int = 1,
        index: int | None = None,
    ) -> BufferOutput:
        """Insert ``count`` blank pages before page ``index``, or at the end."""
        if count < 1:
            raise ValidationError("Page count must be at least 1", {"count": count})
        if index is None:
            parts: list[Part] = [FilePart(file), NewPagePart(page_count=count)]
            return await self._run_binary(self._pdf_workflow(parts))

        source, page_count = await self._load_pdf(file)
        if index < 0 or index > page_count:
            raise ValidationError(
                f"Index {index} is out of bounds for a document with {page_count} pages",
                {"index": index, "page_count": page_count},
            )
        blank = NewPagePart(page_count=count)
        if index == 0:
            parts = [blank, FilePart(source)]
        elif index == page_count:
            parts = [FilePart(source), blank]
        else:
            parts = [
                FilePart(source, pages=PageRange(0, index - 1)),
                blank,
                FilePart(source, pages=PageRange(index, page_count - 1)),
            ]
        return await self._run_binary(self._pdf_workflow(parts))

    async def split(
        self,
        file: FileInput,
        page_ranges: Sequence[PageRange],
    ) -> list[BufferOutput]:
        """Produce one PDF per page range, building all of them concurrently."""
        if not page_ranges:
            raise ValidationError("At least one page range is required for splitting")

        source, page_count = await self._load_pdf(file)
        resolved = [resolve_page_range(page_range, page_count) for page_range in page_ranges]
        stages = [
            self._pdf_workflow([FilePart(source, pages=PageRange(start, end))])
            for start, end in resolved
        ]
        Log.info(
            f"Splitting {page_count}-page document into {len(stages)} range(s)",
            page_count=page_count,
            ranges=len(stages),
        )
        results: list[WorkflowResult] = await asyncio.gather(
            *(stage.execute() for stage in stages)
        )

        failures = [(index, result) for index, result in enumerate(results) if not result.success]
        if failures:
            errors = [_first_error(result) for _, result in failures]
            raise ClientError(
                f"{len(failures)} of {len(results)} split ranges failed",
                "SPLIT_ERROR",
                {
                    "failures": [
                        {
                            "range_index": index,
                            "range": page_ranges[index].to_dict(),
                            "error": str(error),
                        }
                        for (index, _), error in zip(failures, errors)
                    ]
                },
            ) from errors[0]

        return [_expect_binary(result.output) for result in results]

    async def duplicate_pages(
        self,
        file: FileInput,
        page_indices: Sequence[int],
    ) -> BufferOutput:
        """Build a document from the given pages, in order, repeats allowed."""
        if not page_indices:
            raise ValidationError("At least one page index is required")

        source, page_count = await self._load_pdf(file)
        indices = [resolve_page_index(index, page_count) for index in page_indices]
        parts: list[Part] = [FilePart(source, pages=PageRange(index, index)) for index in indices]
        return await self._run_binary(self._pdf_workflow(parts))

    async def delete_pages(
        self,
        file: FileInput,
        page_indices: Sequence[int],
    ) -> BufferOutput:
        """Remove the given pages; at least one page must remain."""
        if not page_indices:
            raise ValidationError("At least one page index is required")

        source, page_count = await self._load_pdf(file)
        deleted = {resolve_page_index(index, page_count) for index in page_indices}
        if len(deleted) == page_count:
            raise ValidationError(
                "Cannot delete all pages of a document", {"page_count": page_count}
            )
        parts: list[Part] = [
            FilePart(source, pages=PageRange(start, end))
            for start, end in kept_page_ranges(deleted, page_count)
        ]
        return await self._run_binary(self._pdf_workflow(parts))

    async def _load_pdf(self, file: FileInput) -> tuple[BufferInput, int]:
        # Read once into memory so every part gets its own byte source.
        normalized = await normalize_file_input(file, http_client=self._http_client)
        page_count = await count_pages(normalized)
        data = normalized.read_bytes()
        Log.debug(f"{normalized.filename} has {page_count} pages")
        source = BufferInput(
            buffer=data,
            filename=normalized.filename,
            content_type=normalized.content_type,
        )
        return source, page_count

    def _pdf_workflow(self, parts: Sequence[Part]) -> WorkflowWithOutputStage:
        stage = self.workflow().add_part(parts[0])
        for part in parts[1:]:
            stage = stage.add_part(part)
        return stage.output_pdf()

    async def _run(self, stage: WorkflowWithOutputStage) -> WorkflowOutput:
        result = await stage.execute()
        if not result.success or result.output is None:
            raise _first_error(result)
        return result.output

    async def _run_binary(self, stage: WorkflowWithOutputStage) -> BufferOutput:
        return _expect_binary(await self._run(stage))


def build_client(settings: Settings) -> DocumentClient:
    """Build a DocumentClient from application settings."""
    Log.configure(settings.log_level)
    return DocumentClient(
        settings.dws_api_key,
        base_url=settings.dws_base_url,
        timeout_seconds=settings.dws_timeout_seconds,
    )


def resolve_page_index(index: int, page_count: int) -> int:
    """Turn a possibly negative page index into an absolute, validated one."""
    resolved = page_count + index if index < 0 else index
    if not 0 <= resolved < page_count:
        raise ValidationError(
            f"Page index {index} is out of bounds for a document with {page_count} pages",
            {"index": index, "page_count": page_count},
        )
    return resolved


def resolve_page_range(page_range: PageRange, page_count: int) -> tuple[int, int]:
    """Return absolute ``(start, end)`` for ``page_range``, both inclusive."""
    details: dict[str, object] = {"range": page_range.to_dict(), "page_count": page_count}
    start = page_count + page_range.start if page_range.start < 0 else page_range.start
    end = page_count + page_range.end if page_range.end < 0 else page_range.end
    if not 0 <= start < page_count:
        raise ValidationError(
            f"Page range start {page_range.start} is out of bounds "
            f"for a document with {page_count} pages",
            details,
        )
    if not 0 <= end < page_count:
        raise ValidationError(
            f"Page range end {page_range.end} is out of bounds "
            f"for a document with {page_count} pages",
            details,
        )
    if start > end:
        raise ValidationError(
            f"Page range start {page_range.start} is after end {page_range.end}",
            details,
        )
    return start, end


def kept_page_ranges(deleted: set[int], page_count: int) -> list[tuple[int, int]]:
    """Contiguous inclusive ranges of the pages not in ``deleted``."""
    ranges: list[tuple[int, int]] = []
    start: int | None = None
    for index in range(page_count):
        if index in deleted:
            if start is not None:
                ranges.append((start, index - 1))
                start = None
        elif start is None:
            start = index
    if start is not None:
        ranges.append((start, page_count - 1))
    return ranges


def _conversion_output(target_format: str) -> Output:
    target = target_format.lower()
    if target == "pdf":
        return outputs.pdf()
    if target == "pdfa":
        return outputs.pdfa()
    if target == "pdfua":
        return outputs.pdfua()
    if target in outputs.OFFICE_FORMATS:
        return outputs.office(target)
    if target in outputs.IMAGE_FORMATS:
        return outputs.image(target, dpi=IMAGE_CONVERSION_DPI)
    if target == "html":
        return outputs.html("page")
    if target == "markdown":
        return outputs.markdown()
    raise ValidationError(
        f"Unsupported target format: {target_format}", {"target_format": target_format}
    )


def _first_error(result: WorkflowResult) -> ClientError:
    if result.errors:
        return result.errors[0].error
    return ClientError("Workflow completed without output", "WORKFLOW_ERROR")


def _expect_binary(output: WorkflowOutput | None) -> BufferOutput:
    if not isinstance(output, BufferOutput):
        raise ClientError(
            "Expected a binary document output",
            "WORKFLOW_ERROR",
            {"output_type": type(output).__name__},
        )
    return output
