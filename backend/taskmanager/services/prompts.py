"""Prompt input sanitization and fingerprinting."""

from __future__ import annotations

import hashlib
import re

DEFAULT_PROMPT_MAX_LENGTH = 1000
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_prompt_input(text: str, *, max_length: int = DEFAULT_PROMPT_MAX_LENGTH) -> str:
    """Drop control characters, neutralize fences and braces, then bound the length.

    Control characters go first so that removing them cannot join two
    backtick runs into a new fence.
    """
    cleaned = _CONTROL_CHARS_RE.sub("", text)
    cleaned = cleaned.replace("```", "").replace("{", "(").replace("}", ")")
    return cleaned[: max(max_length, 0)].strip()


def hash_prompt(prompt: str) -> str:
    """Return the SHA-256 hex digest of the prompt."""
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()
