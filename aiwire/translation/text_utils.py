"""Text helpers for translation: normalization, chunking, script detection."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

_NBSP = chr(0xA0)
_ZERO_WIDTH_SPACE = chr(0x200B)

_INLINE_SPACE = re.compile(f"[ \t{_NBSP}{_ZERO_WIDTH_SPACE}]+")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_SENTENCE_END = re.compile(r"(?<=[.!?;。！？；])[ \t]+")
_LETTER = re.compile(r"[^\W\d_]")


def _script(*ranges: Tuple[int, int]) -> re.Pattern:
    return re.compile("[" + "".join(f"{chr(lo)}-{chr(hi)}" for lo, hi in ranges) + "]")


# Script each target language is expected to produce (keyed by primary subtag)
TARGET_SCRIPTS = {
    "zh": _script((0x3400, 0x4DBF), (0x4E00, 0x9FFF)),
    "ja": _script((0x3040, 0x30FF), (0x4E00, 0x9FFF)),
    "ko": _script((0xAC00, 0xD7AF)),
    "ru": _script((0x0400, 0x04FF)),
    "uk": _script((0x0400, 0x04FF)),
    "el": _script((0x0370, 0x03FF)),
    "ar": _script((0x0600, 0x06FF)),
    "he": _script((0x0590, 0x05FF)),
    "hi": _script((0x0900, 0x097F)),
    "th": _script((0x0E00, 0x0E7F)),
}


def normalize_text(text: Optional[str]) -> str:
    """Unify newlines, squeeze inline whitespace, cap blank runs at one blank line."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.split("\n")]
    return _EXTRA_NEWLINES.sub("\n\n", "\n".join(lines)).strip()


def has_letters(text: str) -> bool:
    return bool(_LETTER.search(text or ""))


def target_script(language: str) -> Optional[re.Pattern]:
    primary = (language or "").split("-")[0].lower()
    return TARGET_SCRIPTS.get(primary)


def has_target_script(text: str, language: str) -> Optional[bool]:
    """True/False when the target has a known script, None when it can't be judged."""
    pattern = target_script(language)
    if pattern is None:
        return None
    return bool(pattern.search(text or ""))


def _hard_split(text: str, max_chars: int) -> List[str]:
    pieces: List[str] = []
    current = ""
    for word in text.split(" "):
        while len(word) > max_chars:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:max_chars])
            word = word[max_chars:]
        candidate = f"{current} {word}" if current else word
        if len(candidate) > max_chars:
            pieces.append(current)
            current = word
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def _units(text: str) -> List[Tuple[str, str]]:
    """(separator-before, sentence) pairs; separators keep paragraph and line structure."""
    units: List[Tuple[str, str]] = []
    for p_idx, paragraph in enumerate(text.split("\n\n")):
        for l_idx, line in enumerate(paragraph.split("\n")):
            for s_idx, sentence in enumerate(s for s in _SENTENCE_END.split(line) if s):
                if s_idx > 0:
                    sep = " "
                elif l_idx > 0:
                    sep = "\n"
                elif p_idx > 0:
                    sep = "\n\n"
                else:
                    sep = ""
                units.append((sep, sentence))
    return units


def chunk_text(text: str, max_chars: int) -> List[str]:
    """Split on sentence boundaries into chunks no longer than max_chars."""
    if len(text) <= max_chars:
        return [text]
    chunks: List[str] = []
    current = ""
    for sep, sentence in _units(text):
        if len(sentence) > max_chars:
            if current:
                chunks.append(current)
                current = ""
            chunks.extend(_hard_split(sentence, max_chars))
            continue
        candidate = f"{current}{sep}{sentence}" if current else sentence
        if len(candidate) > max_chars:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)
    return [c.strip() for c in chunks if c.strip()]
