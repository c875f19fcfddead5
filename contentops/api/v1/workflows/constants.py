"""Constants for workflow routes."""

WORKFLOW_NOT_FOUND_DETAIL = "Workflow not found"
WORKFLOW_NOT_RUNNING_DETAIL = "Workflow is not running in this process"
WORKFLOW_ALREADY_FINISHED_DETAIL = "Workflow has already finished"

SSE_MEDIA_TYPE = "text/event-stream"
SSE_EVENT_NAME = "state"
