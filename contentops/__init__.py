"""Content operations pipeline: generation, enrichment, interlinking and readiness."""

__version__ = "0.1.0"
