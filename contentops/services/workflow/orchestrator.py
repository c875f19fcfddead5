"""Five-phase content enrichment workflow.

Phases run strictly in order and each owns a fixed progress band:

1. content_generation (0-20): submit a generation job and poll it
2. image_generation (20-40): featured, thumbnail and inline images
3. content_enhancement (40-60): local analysis and SEO metadata
4. interlinking (60-80): crawl, index, cluster, recommend and apply links
5. publishing_preparation (80-100): field validation, score, readiness

Phases 1, 3 and 5 are critical and end the run as ``failed``. Phases 2 and 4
are best-effort: their failure is recorded in their own result and the run
continues.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from typing import Any

from contentops.config import settings
from contentops.core.exceptions import (
    EnhancementAnalysisError,
    ExternalAPIError,
    InterlinkingError,
    JobCreationError,
    WorkflowCancelledError,
    WorkflowError,
)
from contentops.core.ids import generate_workflow_id
from contentops.core.logging import get_workflow_logger
from contentops.integrations.content_jobs import ContentJobClient, ContentJobStatus
from contentops.integrations.image_generation import (
    ImageClient,
    ImageRequest,
    build_featured_prompt,
    build_inline_prompt,
    build_thumbnail_prompt,
)
from contentops.integrations.site_repository import SiteContentRepository
from contentops.schemas.workflow import (
    ContentEnhancementResult,
    ContentGenerationResult,
    GeneratedImage,
    ImageGenerationResult,
    InterlinkingResult,
    PublishingPreparationResult,
    SiteCredentials,
    WorkflowConfig,
    WorkflowState,
)
from contentops.services.content_analysis import ContentQualityScorer
from contentops.services.interlinking.cluster_analyzer import ClusterAnalyzer
from contentops.services.interlinking.crawler import SiteCrawler, build_content_loader
from contentops.services.interlinking.engine import InterlinkingEngine
from contentops.services.interlinking.external_links import (
    ExternalLinkFinder,
    LinkSourceCatalog,
)
from contentops.services.interlinking.indexer import ContentIndexer
from contentops.services.interlinking.link_applier import LinkApplier
from contentops.services.interlinking.models import DraftContent
from contentops.services.seo_metadata import (
    extract_topics,
    generate_meta_description,
    generate_seo_title,
    generate_slug,
    generate_structured_data,
)
from contentops.services.text_utils import (
    build_excerpt,
    count_words,
    heading_texts,
    html_to_text,
)
from contentops.services.workflow.events import StateObserver, WorkflowEventBus
from contentops.services.workflow.phases import CRITICAL_PHASES, PHASE_BANDS, PhaseOutcome
from contentops.services.workflow.polling import poll_until_complete
from contentops.services.workflow.readiness import (
    assess_readiness,
    score_content,
    validate_fields,
)

RepositoryFactory = Callable[[SiteCredentials], SiteContentRepository]
PhaseRunner = Callable[[], Awaitable[PhaseOutcome[Any]]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _default_repository_factory(credentials: SiteCredentials) -> SiteContentRepository:
    return SiteContentRepository(api_token=credentials.api_token)


class WorkflowOrchestrator:
    """Run one workflow for one ``WorkflowConfig``.

    The orchestrator exclusively owns its ``WorkflowState``. Every mutation is
    published on ``events``; observers only ever see deep copies.
    """

    def __init__(
        self,
        config: WorkflowConfig,
        *,
        job_client: ContentJobClient | None = None,
        image_client: ImageClient | None = None,
        repository_factory: RepositoryFactory | None = None,
        link_catalog: LinkSourceCatalog | None = None,
        events: WorkflowEventBus | None = None,
        on_state_change: StateObserver | None = None,
        workflow_id: str | None = None,
        poll_interval_seconds: float | None = None,
        max_poll_attempts: int | None = None,
        job_timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Workflow input
            job_client: Open content job client; one is created per run if omitted
            image_client: Open image client; one is created per run if omitted
            repository_factory: Builds a site repository from credentials
            link_catalog: External link-source catalog, packaged one if omitted
            events: Event bus to publish on
            on_state_change: Observer subscribed before the run starts
            workflow_id: Explicit run id
            poll_interval_seconds: Pause between job status requests
            max_poll_attempts: Maximum job status requests
            job_timeout_seconds: Optional wall-clock bound for job polling
        """
        self.config = config
        self.job_client = job_client
        self.image_client = image_client
        self.repository_factory = repository_factory or _default_repository_factory
        self.link_catalog = link_catalog
        self.events = events or WorkflowEventBus()
        if on_state_change is not None:
            self.events.subscribe(on_state_change)

        self.poll_interval_seconds = (
            settings.content_job_poll_interval_seconds
            if poll_interval_seconds is None
            else poll_interval_seconds
        )
        self.max_poll_attempts = max_poll_attempts or settings.content_job_max_poll_attempts
        self.job_timeout_seconds = (
            settings.content_job_timeout_seconds
            if job_timeout_seconds is None
            else job_timeout_seconds
        )

        self.scorer = ContentQualityScorer()
        self.indexer = ContentIndexer()
        self.cluster_analyzer = ClusterAnalyzer()

        self.state = WorkflowState(id=workflow_id or generate_workflow_id(), topic=config.topic)
        self.logger = get_workflow_logger(__name__, self.state.id)
        self._cancel_event = asyncio.Event()

    @property
    def workflow_id(self) -> str:
        return self.state.id

    @property
    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def snapshot(self) -> WorkflowState:
        return self.state.model_copy(deep=True)

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        return self.events.subscribe(observer)

    def cancel(self) -> None:
        """Request cancellation; the run ends as failed at the next checkpoint."""
        if not self._cancel_event.is_set():
            self.logger.info("Workflow cancellation requested")
        self._cancel_event.set()

    async def execute(self) -> WorkflowState:
        """Run all phases and return the final state.

        Phase failures are reported through the returned state, never raised.
        """
        if self.state.phase != "idle":
            raise WorkflowError(f"Workflow {self.workflow_id} has already been executed")

        self.logger.info("Starting workflow", extra={"topic": self.config.topic})
        try:
            async with AsyncExitStack() as stack:
                job_client = self.job_client or await stack.enter_async_context(
                    ContentJobClient()
                )
                image_client = self.image_client or await stack.enter_async_context(
                    ImageClient()
                )
                phases: list[tuple[str, PhaseRunner]] = [
                    ("content_generation", lambda: self._generate_content(job_client)),
                    ("image_generation", lambda: self._generate_images(image_client)),
                    ("content_enhancement", self._enhance_content),
                    ("interlinking", self._interlink),
                    ("publishing_preparation", self._prepare_publishing),
                ]
                for phase, runner in phases:
                    outcome = await self._run_phase(phase, runner)
                    if outcome.is_fatal:
                        cause = outcome.cause or WorkflowError(f"Phase {phase} failed")
                        await self._fail(phase, cause)
                        return self.snapshot()
        except asyncio.CancelledError:
            self.logger.warning("Workflow task cancelled", extra={"phase": self.state.phase})
            self._cancel_event.set()
            await self._fail(self.state.phase, WorkflowCancelledError())
            raise

        completed_at = _utcnow()
        await self._update(phase="completed", progress=100, completed_at=completed_at)
        self.logger.info(
            "Workflow completed",
            extra={
                "duration_seconds": round(
                    (completed_at - self.state.started_at).total_seconds(), 2
                ),
            },
        )
        return self.snapshot()

    async def _run_phase(self, phase: str, runner: PhaseRunner) -> PhaseOutcome[Any]:
        if self._cancel_event.is_set():
            return PhaseOutcome.fatal(WorkflowCancelledError())

        try:
            outcome = await runner()
        except WorkflowCancelledError as e:
            return PhaseOutcome.fatal(e)
        except Exception as e:
            if phase in CRITICAL_PHASES:
                return PhaseOutcome.fatal(e)
            self.logger.warning(
                "Best-effort phase failed, continuing workflow",
                extra={"phase": phase, "error": str(e)},
            )
            result = getattr(self.state, phase).model_copy(
                update={"status": "failed", "error": str(e)}
            )
            await self._update(progress=PHASE_BANDS[phase][1], **{phase: result})
            return PhaseOutcome.degraded(result, e)

        if outcome.kind == "degraded":
            self.logger.warning(
                "Phase degraded",
                extra={"phase": phase, "error": str(outcome.cause)},
            )
        return outcome

    async def _fail(self, phase: str, cause: Exception) -> None:
        message = str(cause)
        self.logger.error("Workflow failed", extra={"phase": phase, "error": message})
        updates: dict[str, Any] = {"phase": "failed", "error": message, "completed_at": _utcnow()}
        if phase in PHASE_BANDS:
            updates[phase] = getattr(self.state, phase).model_copy(
                update={"status": "failed", "error": message}
            )
        await self._update(**updates)

    async def _update(self, **changes: Any) -> None:
        """Apply changes, keep progress non-decreasing and publish a snapshot."""
        if "progress" in changes:
            requested = min(100.0, float(changes["progress"]))
            changes["progress"] = max(self.state.progress, requested)
        for key, value in changes.items():
            setattr(self.state, key, value)
        self.state.updated_at = _utcnow()
        self.logger.debug(
            "Workflow state updated",
            extra={"phase": self.state.phase, "progress": self.state.progress},
        )
        await self.events.publish(self.state)

    # Phase 1

    def _job_payload(self) -> dict[str, Any]:
        config = self.config
        return {
            "topic": config.topic,
            "keywords": list(config.keywords),
            "target_audience": config.target_audience,
            "tone": config.tone,
            "word_count": config.word_count,
            "quality_level": config.quality_level,
            "use_enhanced": True,
            "use_semantic_keywords": True,
            "use_quality_scoring": True,
        }

    async def _generate_content(
        self, job_client: ContentJobClient
    ) -> PhaseOutcome[ContentGenerationResult]:
        await self._update(
            phase="content_generation",
            content_generation=ContentGenerationResult(status="running"),
        )
        try:
            job = await job_client.create_job(self._job_payload())
        except ExternalAPIError as e:
            raise JobCreationError(e.message) from e

        await self._update(
            progress=10,
            content_generation=ContentGenerationResult(status="running", job_id=job.job_id),
        )

        async def on_tick(attempt: int, status: ContentJobStatus | None) -> None:
            percent = status.progress_percentage if status else 0.0
            progress = max(
                10 + percent * 0.1,
                10 + 10 * attempt / self.max_poll_attempts,
            )
            await self._update(progress=min(20.0, progress))

        try:
            status = await poll_until_complete(
                job_client,
                job.job_id,
                interval_seconds=self.poll_interval_seconds,
                max_attempts=self.max_poll_attempts,
                cancel_event=self._cancel_event,
                deadline_seconds=self.job_timeout_seconds,
                on_tick=on_tick,
            )
        except WorkflowCancelledError:
            await self._cancel_remote_job(job_client, job.job_id)
            raise

        result = status.result
        content = str(result.get("content") or "")
        text = html_to_text(content)
        generated = ContentGenerationResult(
            status="completed",
            job_id=job.job_id,
            content=content,
            title=result.get("title") or None,
            excerpt=result.get("excerpt") or build_excerpt(text) or None,
            word_count=int(result.get("word_count") or count_words(text)),
            seo_data=result.get("seo_data") or None,
        )
        await self._update(progress=20, content_generation=generated)
        self.logger.info(
            "Content generated",
            extra={"job_id": job.job_id, "word_count": generated.word_count},
        )
        return PhaseOutcome.ok(generated)

    async def _cancel_remote_job(self, job_client: ContentJobClient, job_id: str) -> None:
        try:
            acknowledged = await job_client.cancel_job(job_id)
        except Exception as e:
            self.logger.warning(
                "Failed to cancel content job",
                extra={"job_id": job_id, "error": str(e)},
            )
            return
        self.logger.info(
            "Content job cancellation sent",
            extra={"job_id": job_id, "acknowledged": acknowledged},
        )

    # Phase 2

    def _image_requests(self) -> list[tuple[str, ImageRequest, str]]:
        config = self.config
        requests: list[tuple[str, ImageRequest, str]] = []
        if config.generate_featured_image:
            requests.append(
                (
                    "featured",
                    ImageRequest(
                        prompt=build_featured_prompt(config.topic, list(config.keywords)),
                        style=config.image_style,
                        aspect_ratio="16:9",
                        width=settings.featured_image_width,
                        height=settings.featured_image_height,
                        tags=list(config.keywords),
                    ),
                    f"Featured image for {config.topic}",
                )
            )
            size = settings.thumbnail_image_size
            requests.append(
                (
                    "thumbnail",
                    ImageRequest(
                        prompt=build_thumbnail_prompt(config.topic),
                        style=config.image_style,
                        aspect_ratio="1:1",
                        width=size,
                        height=size,
                    ),
                    f"Thumbnail for {config.topic}",
                )
            )
        if config.generate_content_images:
            headings = heading_texts(self.state.content_generation.content, level=2)
            for heading in headings[: settings.content_image_count]:
                requests.append(
                    (
                        "inline",
                        ImageRequest(
                            prompt=build_inline_prompt(config.topic, heading),
                            style=config.image_style,
                            aspect_ratio="16:9",
                            width=settings.featured_image_width,
                            height=settings.featured_image_height,
                        ),
                        heading,
                    )
                )
        return requests

    async def _generate_images(
        self, image_client: ImageClient
    ) -> PhaseOutcome[ImageGenerationResult]:
        if not self.config.generate_featured_image and not self.config.generate_content_images:
            skipped = ImageGenerationResult(status="completed")
            await self._update(phase="image_generation", progress=40, image_generation=skipped)
            return PhaseOutcome.ok(skipped)

        await self._update(
            phase="image_generation",
            progress=20,
            image_generation=ImageGenerationResult(status="running"),
        )
        requests = self._image_requests()
        outcomes = await asyncio.gather(
            *(image_client.generate_image(request) for _, request, _ in requests),
            return_exceptions=True,
        )

        result = ImageGenerationResult(status="completed")
        errors: list[Exception] = []
        for (placement, request, alt_text), outcome in zip(requests, outcomes):
            if isinstance(outcome, Exception):
                self.logger.warning(
                    "Image generation failed",
                    extra={"placement": placement, "error": str(outcome)},
                )
                errors.append(outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            if outcome is None:
                continue

            image = GeneratedImage(
                url=outcome.url,
                alt_text=alt_text,
                width=outcome.width,
                height=outcome.height,
                placement=placement,
                prompt=request.prompt,
            )
            if placement == "featured":
                result.featured_image = image
            elif placement == "thumbnail":
                result.thumbnail_image = image
            else:
                result.content_images.append(image)

        if errors:
            result.status = "failed"
            result.error = str(errors[0])
        await self._update(progress=40, image_generation=result)
        self.logger.info(
            "Images generated",
            extra={
                "has_featured": result.featured_image is not None,
                "has_thumbnail": result.thumbnail_image is not None,
                "inline": len(result.content_images),
                "failures": len(errors),
            },
        )
        if errors:
            return PhaseOutcome.degraded(result, errors[0])
        return PhaseOutcome.ok(result)

    # Phase 3

    async def _enhance_content(self) -> PhaseOutcome[ContentEnhancementResult]:
        await self._update(
            phase="content_enhancement",
            progress=40,
            content_enhancement=ContentEnhancementResult(status="running"),
        )
        config = self.config
        content = self.state.content_generation.content or ""
        title = self.state.content_generation.title or config.topic
        keywords = list(config.keywords)
        featured = self.state.image_generation.featured_image
        featured_url = featured.url if featured else None

        meta_description = generate_meta_description(content, keywords)
        try:
            analysis = self.scorer.analyze_content(
                content,
                title=title,
                meta_description=meta_description,
                keywords=keywords,
                target_keyword=config.primary_keyword or None,
                featured_image=featured_url,
            )
        except Exception as e:
            raise EnhancementAnalysisError(f"Content analysis failed: {e}") from e

        structured_data = None
        if config.generate_structured_data:
            structured_data = generate_structured_data(
                title,
                keywords,
                description=meta_description,
                image_url=featured_url,
            )

        enhanced = ContentEnhancementResult(
            status="completed",
            analysis=analysis,
            slug=generate_slug(title),
            seo_title=generate_seo_title(
                title, keywords, append_keyword=config.optimize_for_seo
            ),
            meta_description=meta_description,
            keywords=keywords,
            structured_data=structured_data,
        )
        await self._update(progress=60, content_enhancement=enhanced)
        self.logger.info(
            "Content enhanced",
            extra={
                "seo_score": analysis.seo_score,
                "quality_score": analysis.quality_score,
                "readability_score": analysis.readability_score,
            },
        )
        return PhaseOutcome.ok(enhanced)

    # Phase 4

    async def _interlink(self) -> PhaseOutcome[InterlinkingResult]:
        config = self.config
        credentials = config.site_credentials
        if not config.crawl_website or credentials is None:
            skipped = InterlinkingResult(status="completed")
            await self._update(phase="interlinking", progress=80, interlinking=skipped)
            return PhaseOutcome.ok(skipped)

        await self._update(
            phase="interlinking",
            progress=60,
            interlinking=InterlinkingResult(status="running"),
        )
        try:
            result = await self._build_links(credentials)
        except InterlinkingError:
            raise
        except Exception as e:
            raise InterlinkingError(f"Interlinking failed: {e}") from e

        await self._update(progress=80, interlinking=result)
        self.logger.info(
            "Interlinking completed",
            extra={
                "pages_crawled": result.pages_crawled,
                "clusters": result.clusters_found,
                "applied_links": len(result.applied_links),
            },
        )
        return PhaseOutcome.ok(result)

    async def _build_links(self, credentials: SiteCredentials) -> InterlinkingResult:
        config = self.config
        content = self.state.content_generation.content or ""
        title = self.state.content_generation.title or config.topic
        draft = DraftContent(
            title=title,
            content=content,
            keywords=list(config.keywords),
            topics=extract_topics(title, content),
        )

        async with self.repository_factory(credentials) as repository:
            crawled = await SiteCrawler(repository).crawl_website(credentials.site_id)
            await self._update(progress=65)

            indexed = self.indexer.index_content(crawled.pages)
            await self._update(progress=70)

            clusters = self.cluster_analyzer.analyze_clusters(indexed)
            await self._update(progress=73)

            deep = config.deep_interlinking or settings.interlinking_deep_analysis
            engine = InterlinkingEngine(
                max_internal_links=config.max_internal_links,
                include_cluster_links=config.include_cluster_links,
                content_loader=build_content_loader(repository) if deep else None,
            )
            analysis = await engine.analyze_interlinking(draft, indexed)
            await self._update(progress=76)

        finder = ExternalLinkFinder(self.link_catalog)
        external = finder.find_external_links(draft, max_links=config.max_external_links)
        await self._update(progress=78)

        applied = LinkApplier().apply(
            content,
            analysis.all_links,
            external.opportunities,
            max_internal=config.max_internal_links,
            max_external=config.max_external_links,
        )
        return InterlinkingResult(
            status="completed",
            applied_links=applied.applied_links,
            linked_content=applied.content,
            pages_crawled=crawled.total_pages,
            clusters_found=clusters.total_clusters,
            internal_opportunities=len(analysis.all_links),
            external_opportunities=len(external.opportunities),
            recommendations=clusters.recommendations,
        )

    # Phase 5

    async def _prepare_publishing(self) -> PhaseOutcome[PublishingPreparationResult]:
        await self._update(
            phase="publishing_preparation",
            progress=80,
            publishing_preparation=PublishingPreparationResult(status="running"),
        )
        validation = validate_fields(self.state)
        await self._update(progress=85)

        score = score_content(self.state)
        await self._update(progress=90)

        readiness = assess_readiness(validation, score)
        prepared = PublishingPreparationResult(
            status="completed",
            field_validation=validation,
            content_score=score,
            readiness=readiness,
        )
        await self._update(progress=95, publishing_preparation=prepared)
        self.logger.info(
            "Publishing preparation completed",
            extra={
                "is_ready": readiness.is_ready,
                "overall_score": score.overall,
                "issues": len(readiness.issues),
            },
        )
        return PhaseOutcome.ok(prepared)


async def run_workflow(
    config: WorkflowConfig,
    on_state_change: StateObserver | None = None,
    **kwargs: Any,
) -> WorkflowState:
    """Build an orchestrator for ``config`` and run it to completion."""
    orchestrator = WorkflowOrchestrator(config, on_state_change=on_state_change, **kwargs)
    return await orchestrator.execute()
