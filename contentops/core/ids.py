"""Identifier helpers."""

from __future__ import annotations

import secrets
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def generate_workflow_id(prefix: str = "workflow") -> str:
    """Return ``<prefix>_<millis>_<random>``, e.g. ``workflow_1718000000000_k3j9x2m1q``."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}_{millis}_{suffix}"
