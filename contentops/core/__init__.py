"""Core infrastructure: logging, exceptions, Redis and identifiers."""
