"""Compiles parts, actions and an output into build instructions."""

import copy
from collections.abc import Iterator
from contextlib import contextmanager

from docassembly.build.actions import Action
from docassembly.build.outputs import Output, OutputType
from docassembly.build.parts import (
    CompiledBuild,
    DocumentPart,
    FilePart,
    HtmlPart,
    NewPagePart,
    Part,
)
from docassembly.exceptions import ValidationError
from docassembly.inputs.models import FileInput
from docassembly.inputs.normalizer import validate_file_input


class InstructionCompiler:
    """Accumulates build state and serializes it into a key-referencing tree.

    Every payload gets the next key from a single counter at the moment it is
    added, so keys follow insertion order and are never reused.
    """

    def __init__(self) -> None:
        self._parts: list[dict[str, object]] = []
        self._actions: list[dict[str, object]] = []
        self._output: Output | None = None
        self._files: dict[str, FileInput] = {}
        self._key_index = 0

    @property
    def part_count(self) -> int:
        return len(self._parts)

    @property
    def output(self) -> Output | None:
        return self._output

    def add_part(self, part: Part) -> None:
        with self._registration():
            if isinstance(part, FilePart):
                node = self._file_part(part)
            elif isinstance(part, HtmlPart):
                node = self._html_part(part)
            elif isinstance(part, NewPagePart):
                node = self._new_page_part(part)
            elif isinstance(part, DocumentPart):
                node = self._document_part(part)
            else:
                raise ValidationError(
                    "Unsupported part", {"part_type": type(part).__name__}
                )
        self._parts.append(node)

    def add_action(self, action: Action, scope: str = "document") -> dict[str, object]:
        """Register ``action``; document-scope actions join the top-level list."""
        if scope not in ("document", "part"):
            raise ValidationError(f"Unknown action scope '{scope}'", {"scope": scope})
        with self._registration():
            node = self._action(action)
        if scope == "document":
            self._actions.append(node)
        return node

    def set_output(self, output: Output) -> None:
        self._output = output

    def compile(self) -> CompiledBuild:
        """Return a deep copy of the instruction tree and the file registry.

        Raises:
            ValidationError: if no part has been added.
        """
        if not self._parts:
            raise ValidationError("At least one part must be added to build a document")

        instructions: dict[str, object] = {"parts": copy.deepcopy(self._parts)}
        if self._actions:
            instructions["actions"] = copy.deepcopy(self._actions)
        output = self._output or Output(OutputType.PDF)
        instructions["output"] = copy.deepcopy(output.to_dict())
        return CompiledBuild(instructions=instructions, files=dict(self._files))

    @contextmanager
    def _registration(self) -> Iterator[None]:
        # A rejected part or action must not leave payloads behind.
        key_index, files = self._key_index, dict(self._files)
        try:
            yield
        except ValidationError:
            self._key_index, self._files = key_index, files
            raise

    def _register(self, file_input: FileInput, tag: str) -> str:
        if not validate_file_input(file_input):
            raise ValidationError(
                "Invalid file input provided",
                {"input_type": type(file_input).__name__},
            )
        key = f"{tag}{self._key_index}"
        self._key_index += 1
        self._files[key] = file_input
        return key

    def _part_actions(self, node: dict[str, object], actions: tuple[Action, ...]) -> None:
        if actions:
            node["actions"] = [self.add_action(action, scope="part") for action in actions]

    def _file_part(self, part: FilePart) -> dict[str, object]:
        node: dict[str, object] = {"file": self._register(part.file, "file")}
        if part.pages is not None:
            node["pages"] = part.pages.to_dict()
        if part.password:
            node["password"] = part.password
        if part.content_type:
            node["content_type"] = part.content_type
        self._part_actions(node, part.actions)
        return node

    def _html_part(self, part: HtmlPart) -> dict[str, object]:
        node: dict[str, object] = {"html": self._register(part.html, "html")}
        if part.assets:
            node["assets"] = [self._register(asset, "asset") for asset in part.assets]
        if part.layout:
            node["layout"] = dict(part.layout)
        self._part_actions(node, part.actions)
        return node

    def _new_page_part(self, part: NewPagePart) -> dict[str, object]:
        if part.page_count < 1:
            raise ValidationError(
                "New page count must be at least 1", {"page_count": part.page_count}
            )
        node: dict[str, object] = {"page": "new", "pageCount": part.page_count}
        if part.layout:
            node["layout"] = dict(part.layout)
        self._part_actions(node, part.actions)
        return node

    def _document_part(self, part: DocumentPart) -> dict[str, object]:
        document: dict[str, object] = {"id": part.document_id}
        if part.layer:
            document["layer"] = part.layer
        node: dict[str, object] = {"document": document}
        if part.pages is not None:
            node["pages"] = part.pages.to_dict()
        if part.password:
            node["password"] = part.password
        self._part_actions(node, part.actions)
        return node

    def _action(self, action: Action) -> dict[str, object]:
        node: dict[str, object] = {"type": action.kind.wire_type, **action.options}
        field_name = action.kind.file_field
        if field_name is not None:
            if action.file is None:
                raise ValidationError(
                    f"Action '{action.kind.wire_type}' requires a file",
                    {"action": action.kind.name},
                )
            node[field_name] = self._register(action.file, "file")
        return node
