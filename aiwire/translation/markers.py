"""Swap formatting markers for opaque tokens around a provider call.

Line prefixes ("## ", "- ", "> ") and "**" emphasis delimiters become tokens
like ⟦H0⟧ / ⟦E1⟧ that translation services pass through untouched; restore()
puts the original markers back.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Tuple

_LINE_MARKER = re.compile(r"^(#{1,6} |- |> )", re.MULTILINE)
_EMPHASIS = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*")
# Providers sometimes add spaces inside the brackets; line tokens also swallow
# whatever whitespace the provider leaves after them.
_TOKEN = re.compile(r"⟦\s*([HLQE])\s*(\d+)\s*⟧")

_LINE_KINDS = {"#": "H", "-": "L", ">": "Q"}


@dataclass
class ProtectedText:
    text: str
    markers: Dict[int, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.markers)


def protect(text: str) -> ProtectedText:
    markers: Dict[int, str] = {}

    def _line(m: re.Match) -> str:
        idx = len(markers)
        markers[idx] = m.group(1)
        return f"⟦{_LINE_KINDS[m.group(1)[0]]}{idx}⟧ "

    def _emphasis(m: re.Match) -> str:
        start = len(markers)
        markers[start] = "**"
        markers[start + 1] = "**"
        return f"⟦E{start}⟧{m.group(1)}⟦E{start + 1}⟧"

    out = _LINE_MARKER.sub(_line, text)
    out = _EMPHASIS.sub(_emphasis, out)
    return ProtectedText(text=out, markers=markers)


def restore(text: str, protected: ProtectedText) -> Tuple[str, int]:
    """Return (restored_text, number_of_markers_missing)."""
    seen = set()
    pieces = []
    pos = 0
    for m in _TOKEN.finditer(text):
        idx = int(m.group(2))
        original = protected.markers.get(idx)
        pieces.append(text[pos:m.start()])
        pos = m.end()
        if original is None or idx in seen:
            continue
        seen.add(idx)
        if m.group(1) in ("H", "L", "Q"):
            # Drop the space the provider kept after the token; the marker carries its own
            while pos < len(text) and text[pos] in " \t":
                pos += 1
        pieces.append(original)
    pieces.append(text[pos:])
    missing = len(protected.markers) - len(seen)
    return "".join(pieces), missing
