"""Staged front end of the workflow builder.

Each stage exposes only the calls that are legal at that point and returns
the next stage: parts first, then document actions and an output, then
execution. All stages of one workflow share a single WorkflowBuilder.
"""

from collections.abc import Iterable
from typing import Any

from docassembly.build import outputs
from docassembly.build.actions import Action
from docassembly.build.outputs import Output
from docassembly.build.parts import (
    CompiledBuild,
    DocumentPart,
    FilePart,
    HtmlPart,
    NewPagePart,
    PageRange,
    Part,
)
from docassembly.inputs.models import FileInput
from docassembly.workflow.builder import WorkflowBuilder
from docassembly.workflow.models import DryRunResult, ProgressCallback, WorkflowResult


class _Stage:
    def __init__(self, builder: WorkflowBuilder) -> None:
        self._builder = builder


class WorkflowInitialStage(_Stage):
    """Empty workflow: only parts can be added."""

    def add_part(self, part: Part) -> "WorkflowWithPartsStage":
        self._builder.add_part(part)
        return WorkflowWithPartsStage(self._builder)

    def add_file_part(
        self,
        file: FileInput,
        *,
        pages: PageRange | None = None,
        password: str | None = None,
        content_type: str | None = None,
        actions: Iterable[Action] | None = None,
    ) -> "WorkflowWithPartsStage":
        return self.add_part(
            FilePart(
                file=file,
                pages=pages,
                password=password,
                content_type=content_type,
                actions=tuple(actions or ()),
            )
        )

    def add_html_part(
        self,
        html: FileInput,
        *,
        assets: Iterable[FileInput] | None = None,
        layout: dict[str, object] | None = None,
        actions: Iterable[Action] | None = None,
    ) -> "WorkflowWithPartsStage":
        return self.add_part(
            HtmlPart(
                html=html,
                assets=tuple(assets or ()),
                layout=layout,
                actions=tuple(actions or ()),
            )
        )

    def add_new_page(
        self,
        *,
        page_count: int = 1,
        layout: dict[str, object] | None = None,
        actions: Iterable[Action] | None = None,
    ) -> "WorkflowWithPartsStage":
        return self.add_part(
            NewPagePart(page_count=page_count, layout=layout, actions=tuple(actions or ()))
        )

    def add_document_part(
        self,
        document_id: str,
        *,
        layer: str | None = None,
        pages: PageRange | None = None,
        password: str | None = None,
        actions: Iterable[Action] | None = None,
    ) -> "WorkflowWithPartsStage":
        return self.add_part(
            DocumentPart(
                document_id=document_id,
                layer=layer,
                pages=pages,
                password=password,
                actions=tuple(actions or ()),
            )
        )


class _OutputSelection(_Stage):
    def output(self, output: Output) -> "WorkflowWithOutputStage":
        self._builder.set_output(output)
        return WorkflowWithOutputStage(self._builder)

    def output_pdf(self, **options: Any) -> "WorkflowWithOutputStage":
        return self.output(outputs.pdf(**options))

    def output_pdfa(self, **options: Any) -> "WorkflowWithOutputStage":
        return self.output(outputs.pdfa(**options))

    def output_pdfua(self, **options: Any) -> "WorkflowWithOutputStage":
        return self.output(outputs.pdfua(**options))

    def output_image(self, format: str = "png", **options: Any) -> "WorkflowWithOutputStage":
        return self.output(outputs.image(format, **options))

    def output_office(self, format: str) -> "WorkflowWithOutputStage":
        return self.output(outputs.office(format))

    def output_json(self, **options: Any) -> "WorkflowWithOutputStage":
        return self.output(outputs.json_content(**options))

    def output_html(self, layout: str = "page") -> "WorkflowWithOutputStage":
        return self.output(outputs.html(layout))

    def output_markdown(self) -> "WorkflowWithOutputStage":
        return self.output(outputs.markdown())


class WorkflowWithPartsStage(WorkflowInitialStage, _OutputSelection):
    """At least one part added: more parts, document actions or an output."""

    def compile(self) -> CompiledBuild:
        """Return the instructions and payload keys built so far."""
        return self._builder.compile()

    def apply_actions(self, actions: Iterable[Action]) -> "WorkflowWithPartsStage":
        self._builder.apply_actions(actions)
        return self

    def apply_action(self, action: Action) -> "WorkflowWithPartsStage":
        return self.apply_actions([action])


class WorkflowWithOutputStage(_OutputSelection):
    """Output selected: the workflow can be executed or analyzed."""

    async def execute(
        self,
        *,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> WorkflowResult:
        return await self._builder.execute(timeout=timeout, on_progress=on_progress)

    async def dry_run(self, *, timeout: float | None = None) -> DryRunResult:
        return await self._builder.dry_run(timeout=timeout)
