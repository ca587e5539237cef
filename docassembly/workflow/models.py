from collections.abc import Callable
from dataclasses import dataclass, field

from docassembly.exceptions import ClientError

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class BufferOutput:
    """Binary document: PDF variants, images and office formats."""

    buffer: bytes
    mime_type: str
    filename: str


@dataclass(frozen=True)
class JsonContentOutput:
    """Extracted content returned by a json-content output."""

    data: object


@dataclass(frozen=True)
class ContentOutput:
    """Text document: HTML or Markdown."""

    content: str
    mime_type: str
    filename: str


WorkflowOutput = BufferOutput | JsonContentOutput | ContentOutput


@dataclass(frozen=True)
class WorkflowError:
    step: int
    error: ClientError


@dataclass
class WorkflowResult:
    success: bool = False
    output: WorkflowOutput | None = None
    errors: list[WorkflowError] = field(default_factory=list)


@dataclass
class DryRunResult:
    success: bool = False
    analysis: dict[str, object] | None = None
    errors: list[WorkflowError] = field(default_factory=list)
