"""Error taxonomy for the ingestion/translation pipeline.

Errors are caught at the narrowest scope that still lets the run move forward:
per source, per item, per field. Only programmer faults escape a run.
"""

from __future__ import annotations

from typing import Optional


class AIWireError(Exception):
    """Base class for pipeline errors"""
    pass


class SourceUnavailable(AIWireError):
    """A source could not be fetched or parsed; the run continues without it."""

    def __init__(self, source_name: str, reason: str):
        super().__init__(f"{source_name}: {reason}")
        self.source_name = source_name
        self.reason = reason


class ExtractionFailed(AIWireError):
    """An item produced no usable content and is dropped."""
    pass


class TranslationError(AIWireError):
    def __init__(self, message: str, *, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class TranslationTransient(TranslationError):
    """Retryable provider failure (timeouts, 5xx, malformed payloads)."""
    pass


class TranslationNoOp(TranslationTransient):
    """Provider returned the source text or text without target-script characters."""
    pass


class TranslationRateLimited(TranslationError):
    """Provider refused because of rate limiting. Never retried; aborts the run's translation phase."""
    pass


class PersistenceConflict(AIWireError):
    """Unique-key violation on insert. Treated as 'already exists'."""
    pass


class ConfigMissing(AIWireError):
    """No run settings record exists."""
    pass
