"""Custom exception classes for the application."""

from typing import Any


class ContentOpsError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Workflow Errors
class WorkflowError(ContentOpsError):
    """Base class for workflow errors."""

    pass


class WorkflowNotFoundError(WorkflowError):
    """Workflow not found."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow not found: {workflow_id}")


class WorkflowCancelledError(WorkflowError):
    """Workflow was cancelled by its caller."""

    def __init__(self) -> None:
        super().__init__("Workflow cancelled")


class ContentGenerationError(WorkflowError):
    """Base class for content generation job failures."""

    pass


class JobCreationError(ContentGenerationError):
    """The content job could not be submitted."""

    def __init__(self, reason: str | None = None) -> None:
        message = "Failed to create content generation job"
        super().__init__(f"{message}: {reason}" if reason else message)


class JobFailedError(ContentGenerationError):
    """The content job reported a failure; the backend message is kept verbatim."""

    def __init__(self, message: str | None = None, job_id: str | None = None) -> None:
        super().__init__(message or "Content generation failed", {"job_id": job_id})


class JobTimeoutError(ContentGenerationError):
    """The content job did not finish within the polling budget."""

    def __init__(self, job_id: str, attempts: int) -> None:
        super().__init__(
            "Content generation timed out",
            {"job_id": job_id, "attempts": attempts},
        )


class EnhancementAnalysisError(WorkflowError):
    """Local content analysis failed."""

    pass


class InterlinkingError(WorkflowError):
    """Interlinking analysis failed."""

    pass


# Crawl Errors
class CrawlError(ContentOpsError):
    """Base class for site crawl errors."""

    pass


class CrawlItemParseError(CrawlError):
    """A repository item could not be parsed into a page."""

    def __init__(self, item_id: str | None, message: str) -> None:
        super().__init__(f"Failed to parse item {item_id or '<unknown>'}: {message}")


class CrawlCollectionError(CrawlError):
    """A collection could not be crawled."""

    def __init__(self, collection_id: str, message: str) -> None:
        super().__init__(f"Failed to crawl collection {collection_id}: {message}")


# External API Errors
class ExternalAPIError(ContentOpsError):
    """Error calling external API."""

    def __init__(self, api_name: str, message: str) -> None:
        self.api_name = api_name
        super().__init__(f"{api_name} API error: {message}")


class RateLimitExceededError(ExternalAPIError):
    """Rate limit exceeded for external API."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "Rate limit exceeded")


class APIKeyMissingError(ExternalAPIError):
    """API key not configured."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "API key not configured")


class ImageGenerationError(ExternalAPIError):
    """Image generation request failed."""

    def __init__(self, message: str) -> None:
        super().__init__("Image generation", message)


# Configuration Errors
class LinkSourceCatalogError(ContentOpsError):
    """The external link-source catalog is missing or malformed."""

    pass
