"""Mutable core shared by the workflow stages: compiles and dispatches builds."""

import asyncio
from collections.abc import Iterable

import httpx

from docassembly.build.actions import Action
from docassembly.build.compiler import InstructionCompiler
from docassembly.build.outputs import (
    TEXT_OUTPUTS,
    Output,
    OutputType,
    get_mime_type,
)
from docassembly.build.parts import CompiledBuild, Part
from docassembly.exceptions import ClientError, ValidationError
from docassembly.inputs.models import FileInput, NormalizedFile
from docassembly.inputs.normalizer import normalize_file_input
from docassembly.logging.logger import Log
from docassembly.transport.base import BaseTransport
from docassembly.transport.models import RequestConfig
from docassembly.workflow.models import (
    BufferOutput,
    ContentOutput,
    DryRunResult,
    JsonContentOutput,
    ProgressCallback,
    WorkflowError,
    WorkflowOutput,
    WorkflowResult,
)

BUILD_ENDPOINT = "/build"
ANALYZE_ENDPOINT = "/analyze_build"
TOTAL_STEPS = 3


class WorkflowBuilder:
    """Owns the compiler state of one build job and runs it once."""

    def __init__(
        self,
        transport: BaseTransport,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._transport = transport
        self._http_client = http_client
        self._timeout = timeout
        self._compiler = InstructionCompiler()
        self._executed = False

    @property
    def executed(self) -> bool:
        return self._executed

    def add_part(self, part: Part) -> None:
        self._ensure_not_executed()
        self._compiler.add_part(part)

    def apply_actions(self, actions: Iterable[Action]) -> None:
        self._ensure_not_executed()
        for action in actions:
            self._compiler.add_action(action, scope="document")

    def set_output(self, output: Output) -> None:
        self._ensure_not_executed()
        self._compiler.set_output(output)

    def compile(self) -> CompiledBuild:
        return self._compiler.compile()

    async def execute(
        self,
        *,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> WorkflowResult:
        """Compile, upload and build the document.

        Usage errors (no parts, already executed) are raised. Everything that
        fails after compilation is reported in ``WorkflowResult.errors``.
        """
        self._ensure_not_executed()
        compiled = self._compiler.compile()
        self._executed = True
        output = self._compiler.output or Output(OutputType.PDF)

        result = WorkflowResult()
        step = 0
        try:
            step = self._report(1, on_progress)
            files = await self._prepare_files(compiled.files)

            step = self._report(2, on_progress)
            Log.info(
                f"Building {self._compiler.part_count} part(s) "
                f"with {len(files)} file(s) into {output.type.value}",
                parts=self._compiler.part_count,
                files=len(files),
                output=output.type.value,
            )
            response = await self._transport.send(
                RequestConfig(
                    endpoint=BUILD_ENDPOINT,
                    method="POST",
                    data={"instructions": compiled.instructions},
                    files=files,
                    response_type=_response_type(output),
                    timeout=self._resolve_timeout(timeout),
                )
            )

            step = self._report(3, on_progress)
            result.output = _wrap_output(output, response.data)
            result.success = True
        except Exception as exc:
            Log.error(f"Workflow failed at step {step}: {exc}")
            result.errors.append(
                WorkflowError(step, ClientError.wrap(exc, f"Workflow failed at step {step}"))
            )
        return result

    async def dry_run(self, *, timeout: float | None = None) -> DryRunResult:
        """Ask the service to analyze the build without producing a document."""
        self._ensure_not_executed()
        compiled = self._compiler.compile()
        self._executed = True

        result = DryRunResult()
        try:
            response = await self._transport.send(
                RequestConfig(
                    endpoint=ANALYZE_ENDPOINT,
                    method="POST",
                    data={"instructions": compiled.instructions},
                    response_type="json",
                    timeout=self._resolve_timeout(timeout),
                )
            )
            result.analysis = response.data  # type: ignore[assignment]
            result.success = True
        except Exception as exc:
            Log.error(f"Dry run failed: {exc}")
            result.errors.append(WorkflowError(0, ClientError.wrap(exc, "Dry run failed")))
        return result

    def _ensure_not_executed(self) -> None:
        if self._executed:
            raise ValidationError(
                "This workflow has already been executed. "
                "Create a new workflow builder for additional operations."
            )

    def _resolve_timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._timeout

    async def _prepare_files(self, files: dict[str, FileInput]) -> dict[str, NormalizedFile]:
        keys = list(files)
        normalized = await asyncio.gather(
            *(normalize_file_input(files[key], http_client=self._http_client) for key in keys),
            return_exceptions=True,
        )
        failures = [item for item in normalized if isinstance(item, BaseException)]
        if failures:
            for item in normalized:
                if isinstance(item, NormalizedFile):
                    item.close()
            raise failures[0]
        return dict(zip(keys, normalized))  # type: ignore[arg-type]

    @staticmethod
    def _report(step: int, on_progress: ProgressCallback | None) -> int:
        if on_progress is not None:
            on_progress(step, TOTAL_STEPS)
        return step


def _response_type(output: Output) -> str:
    if output.type is OutputType.JSON_CONTENT:
        return "json"
    if output.type in TEXT_OUTPUTS:
        return "text"
    return "bytes"


def _wrap_output(output: Output, data: object) -> WorkflowOutput:
    if output.type is OutputType.JSON_CONTENT:
        return JsonContentOutput(data=data)
    mime_type, filename = get_mime_type(output)
    if output.type in TEXT_OUTPUTS:
        content = data.decode("utf-8") if isinstance(data, bytes) else str(data)
        return ContentOutput(content=content, mime_type=mime_type, filename=filename)
    buffer = bytes(data)  # type: ignore[call-overload]
    return BufferOutput(buffer=buffer, mime_type=mime_type, filename=filename)
