from docassembly.workflow.builder import WorkflowBuilder
from docassembly.workflow.models import (
    BufferOutput,
    ContentOutput,
    DryRunResult,
    JsonContentOutput,
    WorkflowError,
    WorkflowOutput,
    WorkflowResult,
)
from docassembly.workflow.stages import (
    WorkflowInitialStage,
    WorkflowWithOutputStage,
    WorkflowWithPartsStage,
)

__all__ = [
    "BufferOutput",
    "ContentOutput",
    "DryRunResult",
    "JsonContentOutput",
    "WorkflowBuilder",
    "WorkflowError",
    "WorkflowInitialStage",
    "WorkflowOutput",
    "WorkflowResult",
    "WorkflowWithOutputStage",
    "WorkflowWithPartsStage",
]
