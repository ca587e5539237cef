from docassembly.inputs.models import (
    BufferInput,
    BytesInput,
    FileInput,
    FilePathInput,
    NormalizedFile,
    UrlInput,
)
from docassembly.inputs.normalizer import (
    is_remote_file_input,
    is_url,
    normalize_file_input,
    validate_file_input,
)

__all__ = [
    "BufferInput",
    "BytesInput",
    "FileInput",
    "FilePathInput",
    "NormalizedFile",
    "UrlInput",
    "is_remote_file_input",
    "is_url",
    "normalize_file_input",
    "validate_file_input",
]
