"""Publishing readiness: field presence, aggregate score and the readiness gate."""

from __future__ import annotations

from contentops.schemas.workflow import (
    ContentScore,
    FieldValidation,
    PublishingReadiness,
    WorkflowState,
)

DEFAULT_SUB_SCORE = 50
TARGET_LINK_COUNT = 8

WEIGHT_READABILITY = 0.2
WEIGHT_SEO = 0.3
WEIGHT_QUALITY = 0.25
WEIGHT_INTERLINKING = 0.15
WEIGHT_IMAGES = 0.1


def _publishable_fields(state: WorkflowState) -> dict[str, object]:
    generated = state.content_generation
    images = state.image_generation
    enhancement = state.content_enhancement
    return {
        "title": generated.title,
        "content": generated.content,
        "slug": enhancement.slug,
        "seo_title": enhancement.seo_title,
        "meta_description": enhancement.meta_description,
        "excerpt": generated.excerpt,
        "featured_image": images.featured_image.url if images.featured_image else None,
        "thumbnail_image": images.thumbnail_image.url if images.thumbnail_image else None,
        "keywords": enhancement.keywords,
    }


REQUIRED_FIELDS = ("title", "content", "slug")
RECOMMENDED_FIELDS = ("seo_title", "meta_description", "excerpt", "featured_image")
OPTIONAL_FIELDS = ("thumbnail_image", "keywords")


def validate_fields(state: WorkflowState) -> FieldValidation:
    """Report which publishable fields are empty."""
    fields = _publishable_fields(state)

    def missing(names: tuple[str, ...]) -> list[str]:
        return [name for name in names if not fields.get(name)]

    missing_required = missing(REQUIRED_FIELDS)
    return FieldValidation(
        is_valid=not missing_required,
        missing_required=missing_required,
        missing_recommended=missing(RECOMMENDED_FIELDS),
        missing_optional=missing(OPTIONAL_FIELDS),
    )


def score_content(state: WorkflowState) -> ContentScore:
    """Weighted aggregate of the analysis scores, link coverage and imagery.

    Analysis scores missing because enhancement did not run count as 50.
    """
    analysis = state.content_enhancement.analysis
    readability = analysis.readability_score if analysis else DEFAULT_SUB_SCORE
    seo = analysis.seo_score if analysis else DEFAULT_SUB_SCORE
    quality = analysis.quality_score if analysis else DEFAULT_SUB_SCORE

    applied = len(state.interlinking.applied_links)
    interlinking = round(min(100.0, applied / TARGET_LINK_COUNT * 100))
    images = 100 if state.image_generation.featured_image else 0

    overall = (
        readability * WEIGHT_READABILITY
        + seo * WEIGHT_SEO
        + quality * WEIGHT_QUALITY
        + interlinking * WEIGHT_INTERLINKING
        + images * WEIGHT_IMAGES
    )
    return ContentScore(
        overall=max(0, min(100, int(overall + 0.5))),
        readability=readability,
        seo=seo,
        quality=quality,
        interlinking=interlinking,
        images=images,
    )


def assess_readiness(validation: FieldValidation, score: ContentScore) -> PublishingReadiness:
    """Only missing required fields block publishing; the rest is advisory."""
    issues: list[str] = []
    warnings: list[str] = []
    suggestions: list[str] = []

    if validation.missing_required:
        issues.append(f"Missing required fields: {', '.join(validation.missing_required)}")
    if validation.missing_recommended:
        warnings.append(
            f"Missing recommended fields: {', '.join(validation.missing_recommended)}"
        )
    if score.overall < 50:
        warnings.append(
            f"Low content score ({score.overall}). Consider improving content quality."
        )

    if score.seo < 60:
        suggestions.append("Improve SEO score by adding more keywords and optimizing meta tags.")
    if score.interlinking < 50:
        suggestions.append("Add more internal and external links to improve SEO.")
    if score.images == 0:
        suggestions.append("Add a featured image for better engagement.")
    if score.readability < 60:
        suggestions.append("Improve readability with shorter sentences and simpler words.")

    return PublishingReadiness(
        is_ready=not issues,
        issues=issues,
        warnings=warnings,
        suggestions=suggestions,
    )
