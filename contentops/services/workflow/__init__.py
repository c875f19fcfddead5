"""Multi-phase content enrichment workflow."""

from contentops.services.workflow.orchestrator import WorkflowOrchestrator, run_workflow

__all__ = ["WorkflowOrchestrator", "run_workflow"]
