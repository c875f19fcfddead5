"""Workflow configuration and state schemas."""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from contentops.schemas.content import ContentAnalysisResult

WorkflowPhase = Literal[
    "idle",
    "content_generation",
    "image_generation",
    "content_enhancement",
    "interlinking",
    "publishing_preparation",
    "completed",
    "failed",
]
PhaseStatus = Literal["pending", "running", "completed", "failed"]
TERMINAL_PHASES: frozenset[str] = frozenset({"completed", "failed"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SiteCredentials(BaseModel):
    """Credentials for the site content repository."""

    api_token: str = Field(min_length=1)
    site_id: str = Field(min_length=1)


class WorkflowConfig(BaseModel):
    """Immutable input for one workflow run."""

    model_config = {"frozen": True}

    topic: str = Field(min_length=1, max_length=500)
    keywords: list[str] = Field(default_factory=list)
    target_audience: str | None = None
    tone: str = "professional"
    word_count: int = Field(default=1500, ge=100, le=10000)
    quality_level: Literal["standard", "high", "premium"] = "high"

    generate_featured_image: bool = True
    generate_content_images: bool = False
    image_style: Literal["photographic", "illustration", "digital_art", "minimalist"] = (
        "photographic"
    )

    optimize_for_seo: bool = True
    generate_structured_data: bool = True

    crawl_website: bool = True
    max_internal_links: int = Field(default=5, ge=0, le=50)
    max_external_links: int = Field(default=3, ge=0, le=50)
    include_cluster_links: bool = True
    deep_interlinking: bool = False

    target_platform: Literal["webflow", "wordpress", "shopify"] = "webflow"
    site_credentials: SiteCredentials | None = None

    @property
    def primary_keyword(self) -> str:
        return self.keywords[0] if self.keywords else ""


class GeneratedImage(BaseModel):
    """An image returned by the image service."""

    url: str
    alt_text: str
    width: int
    height: int
    placement: Literal["featured", "thumbnail", "inline"]
    prompt: str | None = None


class AppliedLink(BaseModel):
    """A hyperlink actually inserted into the content."""

    anchor_text: str
    url: str
    type: Literal["internal", "external", "cluster"]
    placement: str
    reason: str = ""


class ContentGenerationResult(BaseModel):
    status: PhaseStatus = "pending"
    job_id: str | None = None
    content: str | None = None
    title: str | None = None
    excerpt: str | None = None
    word_count: int | None = None
    seo_data: dict[str, Any] | None = None
    error: str | None = None


class ImageGenerationResult(BaseModel):
    status: PhaseStatus = "pending"
    featured_image: GeneratedImage | None = None
    thumbnail_image: GeneratedImage | None = None
    content_images: list[GeneratedImage] = Field(default_factory=list)
    error: str | None = None


class ContentEnhancementResult(BaseModel):
    status: PhaseStatus = "pending"
    analysis: ContentAnalysisResult | None = None
    slug: str | None = None
    seo_title: str | None = None
    meta_description: str | None = None
    keywords: list[str] = Field(default_factory=list)
    structured_data: dict[str, Any] | None = None
    error: str | None = None


class InterlinkingResult(BaseModel):
    status: PhaseStatus = "pending"
    applied_links: list[AppliedLink] = Field(default_factory=list)
    linked_content: str | None = None
    pages_crawled: int = 0
    clusters_found: int = 0
    internal_opportunities: int = 0
    external_opportunities: int = 0
    recommendations: list[str] = Field(default_factory=list)
    error: str | None = None


class FieldValidation(BaseModel):
    """Presence check of the publishable fields."""

    is_valid: bool
    missing_required: list[str] = Field(default_factory=list)
    missing_recommended: list[str] = Field(default_factory=list)
    missing_optional: list[str] = Field(default_factory=list)


class ContentScore(BaseModel):
    overall: int = Field(ge=0, le=100)
    readability: int = Field(ge=0, le=100)
    seo: int = Field(ge=0, le=100)
    quality: int = Field(ge=0, le=100)
    interlinking: int = Field(ge=0, le=100)
    images: int = Field(ge=0, le=100)


class PublishingReadiness(BaseModel):
    is_ready: bool
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class PublishingPreparationResult(BaseModel):
    status: PhaseStatus = "pending"
    field_validation: FieldValidation | None = None
    content_score: ContentScore | None = None
    readiness: PublishingReadiness | None = None
    error: str | None = None


class WorkflowState(BaseModel):
    """Complete state of one workflow run."""

    id: str
    topic: str
    phase: WorkflowPhase = "idle"
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    started_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None
    error: str | None = None

    content_generation: ContentGenerationResult = Field(default_factory=ContentGenerationResult)
    image_generation: ImageGenerationResult = Field(default_factory=ImageGenerationResult)
    content_enhancement: ContentEnhancementResult = Field(
        default_factory=ContentEnhancementResult
    )
    interlinking: InterlinkingResult = Field(default_factory=InterlinkingResult)
    publishing_preparation: PublishingPreparationResult = Field(
        default_factory=PublishingPreparationResult
    )

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES


class WorkflowStartResponse(BaseModel):
    """Response for a workflow accepted for background execution."""

    workflow_id: str
    phase: WorkflowPhase
    progress: float
    status_url: str
    events_url: str


class WorkflowCancelResponse(BaseModel):
    """Response for an accepted cancellation request."""

    workflow_id: str
    cancelled: bool
    phase: WorkflowPhase
