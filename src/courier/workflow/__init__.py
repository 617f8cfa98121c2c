"""Workflow orchestration for chat-driven agent tasks."""

from .orchestrator import WorkflowOrchestrator, WorkflowOutcome, WorkflowResult, WorkflowState

__all__ = ["WorkflowOrchestrator", "WorkflowOutcome", "WorkflowResult", "WorkflowState"]
