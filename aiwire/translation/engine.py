"""Field-level translation with retry, provider fallback and marker preservation.

translate_text() never raises for ordinary provider trouble: it returns an
unsuccessful TranslationOutcome once every provider is exhausted. The one
exception is TranslationRateLimited, which propagates so the caller can stop
the rest of the run's translation work.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from aiwire.errors import TranslationNoOp, TranslationRateLimited, TranslationTransient
from aiwire.translation.markers import protect, restore
from aiwire.translation.providers import TranslationProvider
from aiwire.translation.text_utils import chunk_text, has_letters, has_target_script, normalize_text

logger = logging.getLogger(__name__)

TITLE_ONLY = "title_only"
ALL_FIELDS = "all_fields"


@dataclass(frozen=True)
class TranslationOutcome:
    text: str
    provider: Optional[str]
    success: bool


@dataclass(frozen=True)
class ArticleTranslation:
    title: TranslationOutcome
    body: TranslationOutcome
    summary: TranslationOutcome
    policy: str = TITLE_ONLY

    @property
    def accepted(self) -> bool:
        """Whether the record may be marked translated under the policy."""
        if self.policy == ALL_FIELDS:
            return self.title.success and self.body.success and self.summary.success
        return self.title.success

    def stored_text(self, outcome: TranslationOutcome) -> str:
        # Failed body/summary are stored empty under title_only
        return outcome.text if outcome.success else ""


class TranslationEngine:
    def __init__(
        self,
        providers: Sequence[TranslationProvider],
        *,
        target_language: str = "zh-CN",
        retries: int = 3,
        backoff_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not providers:
            raise ValueError("TranslationEngine needs at least one provider")
        self.providers: List[TranslationProvider] = list(providers)
        self.target_language = target_language
        self.retries = max(1, retries)
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep

    def translate_text(self, text: Optional[str]) -> TranslationOutcome:
        source = normalize_text(text)
        if not source:
            return TranslationOutcome(text="", provider=None, success=True)
        if not has_letters(source):
            # Numbers, symbols, URLs only: nothing to translate
            return TranslationOutcome(text=source, provider=None, success=True)

        protected = protect(source)
        for provider in self.providers:
            translated = self._with_retries(provider, source, protected)
            if translated is not None:
                return TranslationOutcome(text=translated, provider=provider.name, success=True)
            logger.warning(f"Provider {provider.name} exhausted; trying next provider")
        logger.error(f"All translation providers failed for text starting {source[:60]!r}")
        return TranslationOutcome(text="", provider=None, success=False)

    def _with_retries(self, provider: TranslationProvider, source: str, protected) -> Optional[str]:
        for attempt in range(1, self.retries + 1):
            try:
                return self._translate_once(provider, source, protected)
            except TranslationRateLimited:
                logger.error(f"Provider {provider.name} rate limited; aborting translation work")
                raise
            except TranslationTransient as e:
                logger.warning(f"{provider.name} attempt {attempt}/{self.retries} failed: {e}")
                if attempt < self.retries:
                    self.sleep(self.backoff_seconds * attempt)
        return None

    def _translate_once(self, provider: TranslationProvider, source: str, protected) -> str:
        chunks = chunk_text(protected.text, provider.max_chars)
        translated = "\n\n".join(
            provider.translate(chunk, target=self.target_language).strip() for chunk in chunks
        )
        restored, missing = restore(translated, protected)
        if missing:
            raise TranslationTransient(f"{missing} formatting marker(s) lost", provider=provider.name)
        restored = normalize_text(restored)
        if restored == source:
            raise TranslationNoOp("output identical to input", provider=provider.name)
        if has_target_script(restored, self.target_language) is False:
            raise TranslationNoOp(f"output has no {self.target_language} characters", provider=provider.name)
        return restored

    def translate_article(self, article, policy: str = TITLE_ONLY) -> ArticleTranslation:
        """Translate title, body and summary of one article.

        Title goes first; when it fails the remaining fields are not sent.
        """
        title = self.translate_text(article.title)
        if not title.success or not title.text:
            failed = TranslationOutcome(text="", provider=None, success=False)
            return ArticleTranslation(title=failed, body=failed, summary=failed, policy=policy)
        body = self.translate_text(article.body)
        summary = self.translate_text(article.summary)
        return ArticleTranslation(title=title, body=body, summary=summary, policy=policy)
