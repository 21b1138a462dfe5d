"""Translation providers behind one interface.

Each provider maps its HTTP failures onto the translation error taxonomy:
429 -> TranslationRateLimited (never retried), everything else that can go
wrong on the wire -> TranslationTransient.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from aiwire.errors import TranslationRateLimited, TranslationTransient
from aiwire.ingestion.http import build_session

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Tuple[float, float] = (5.0, 30.0)


class TranslationProvider:
    name: str = "base"
    # Longest text accepted in one request
    max_chars: int = 2000

    def translate(self, text: str, *, target: str, source: str = "auto") -> str:
        raise NotImplementedError


def _check_response(provider: str, resp: requests.Response) -> None:
    if resp.status_code == 429:
        retry_after = resp.headers.get("Retry-After")
        detail = f" (Retry-After: {retry_after})" if retry_after else ""
        raise TranslationRateLimited(f"{provider} rate limited{detail}", provider=provider)
    if resp.status_code >= 400:
        raise TranslationTransient(f"{provider} HTTP {resp.status_code}: {resp.text[:200]}", provider=provider)


class GoogleTranslateProvider(TranslationProvider):
    """Public translate.googleapis.com endpoint (client=gtx)."""

    name = "google"
    max_chars = 1800
    endpoint = "https://translate.googleapis.com/translate_a/single"

    def __init__(self, *, session: Optional[requests.Session] = None, timeout: Tuple[float, float] = DEFAULT_TIMEOUT):
        self.session = session or build_session()
        self.timeout = timeout

    def translate(self, text: str, *, target: str, source: str = "auto") -> str:
        params = {"client": "gtx", "sl": source, "tl": target, "dt": "t", "q": text}
        try:
            resp = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TranslationTransient(f"google request failed: {e}", provider=self.name) from e
        _check_response(self.name, resp)
        try:
            data = resp.json()
            segments = data[0] or []
            return "".join(seg[0] for seg in segments if seg and seg[0])
        except (ValueError, TypeError, IndexError) as e:
            raise TranslationTransient(f"google returned an unexpected payload: {e}", provider=self.name) from e


def libretranslate_language(code: str) -> str:
    """LibreTranslate uses bare language codes ('zh', not 'zh-CN'); Traditional Chinese is 'zt'."""
    code = (code or "").strip()
    if code.lower() in ("zh-tw", "zh-hant"):
        return "zt"
    return code.split("-")[0].lower()


class LibreTranslateProvider(TranslationProvider):
    name = "libre"
    max_chars = 2000

    def __init__(
        self,
        url: str,
        *,
        api_key: str = "",
        session: Optional[requests.Session] = None,
        timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
    ):
        endpoint = url.rstrip("/")
        if not endpoint.endswith("/translate"):
            endpoint += "/translate"
        self.endpoint = endpoint
        self.api_key = api_key
        self.session = session or build_session()
        self.timeout = timeout

    def translate(self, text: str, *, target: str, source: str = "auto") -> str:
        payload: Dict[str, Any] = {
            "q": text,
            "source": source if source == "auto" else libretranslate_language(source),
            "target": libretranslate_language(target),
            "format": "text",
        }
        if self.api_key:
            payload["api_key"] = self.api_key
        try:
            resp = self.session.post(
                self.endpoint,
                json=payload,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TranslationTransient(f"libre request failed: {e}", provider=self.name) from e
        _check_response(self.name, resp)
        try:
            data = resp.json()
        except ValueError as e:
            raise TranslationTransient(f"libre returned non-JSON ({resp.status_code})", provider=self.name) from e
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str):
            raise TranslationTransient("libre response had no translatedText", provider=self.name)
        return translated


def build_providers(config, *, session: Optional[requests.Session] = None) -> List[TranslationProvider]:
    """Instantiate providers in configured fallback order."""
    session = session or build_session(max_redirects=config.http_max_redirects, user_agent=config.user_agent)
    providers: List[TranslationProvider] = []
    for name in config.translation_providers:
        if name == "google":
            providers.append(GoogleTranslateProvider(session=session))
        elif name == "libre":
            if not config.libretranslate_url:
                logger.info("Skipping LibreTranslate provider: no LIBRETRANSLATE_URL")
                continue
            providers.append(
                LibreTranslateProvider(config.libretranslate_url, api_key=config.libretranslate_api_key, session=session)
            )
        else:
            raise ValueError(f"Unknown translation provider: {name}")
    return providers
