from docassembly.build import actions, outputs
from docassembly.build.actions import Action, ActionKind
from docassembly.build.compiler import InstructionCompiler
from docassembly.build.outputs import Output, OutputType, get_mime_type
from docassembly.build.parts import (
    CompiledBuild,
    DocumentPart,
    FilePart,
    HtmlPart,
    NewPagePart,
    PageRange,
    Part,
)

__all__ = [
    "Action",
    "ActionKind",
    "CompiledBuild",
    "DocumentPart",
    "FilePart",
    "HtmlPart",
    "InstructionCompiler",
    "NewPagePart",
    "Output",
    "OutputType",
    "PageRange",
    "Part",
    "actions",
    "get_mime_type",
    "outputs",
]
