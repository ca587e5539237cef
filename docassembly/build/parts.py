from dataclasses import dataclass, field

from docassembly.build.actions import Action
from docassembly.inputs.models import FileInput


@dataclass(frozen=True)
class PageRange:
    """Inclusive page index range; negative indices count from the end."""

    start: int = 0
    end: int = -1

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class FilePart:
    """A document file, optionally restricted to a page range."""

    file: FileInput
    pages: PageRange | None = None
    password: str | None = None
    content_type: str | None = None
    actions: tuple[Action, ...] = ()
    type: str = "file"


@dataclass(frozen=True)
class HtmlPart:
    """HTML markup rendered into pages, with its referenced assets."""

    html: FileInput
    assets: tuple[FileInput, ...] = ()
    layout: dict[str, object] | None = None
    actions: tuple[Action, ...] = ()
    type: str = "html"


@dataclass(frozen=True)
class NewPagePart:
    """Blank pages."""

    page_count: int = 1
    layout: dict[str, object] | None = None
    actions: tuple[Action, ...] = ()
    type: str = "new-page"


@dataclass(frozen=True)
class DocumentPart:
    """A document already stored on the service, referenced by id."""

    document_id: str
    layer: str | None = None
    pages: PageRange | None = None
    password: str | None = None
    actions: tuple[Action, ...] = ()
    type: str = "document"


Part = FilePart | HtmlPart | NewPagePart | DocumentPart


@dataclass
class CompiledBuild:
    """Instruction tree plus the payloads its reference keys point to."""

    instructions: dict[str, object]
    files: dict[str, FileInput] = field(default_factory=dict)
