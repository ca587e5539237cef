from dataclasses import dataclass, field

from docassembly.inputs.models import NormalizedFile


@dataclass
class RequestConfig:
    """One call to the document service."""

    endpoint: str
    method: str = "POST"
    data: dict[str, object] | None = None
    files: dict[str, NormalizedFile] | None = None
    response_type: str = "bytes"
    timeout: float | None = None


@dataclass
class ApiResponse:
    data: object
    status: int
    headers: dict[str, str] = field(default_factory=dict)
