"""Text normalization shared by quote extraction and transcript matching.

Normalized text is lowercased, every character that is not a word
character becomes a space, and whitespace runs collapse to one space.
Each normalized character remembers which original character produced it,
so spans found in normalized text can be reported against the original.
"""

import re
from dataclasses import dataclass

_WORD_CHAR = re.compile(r"\w")


@dataclass(frozen=True)
class NormalizedText:
    """Normalized text plus a map back to the original string.

    offsets[i] is the index in ``original`` of the character that produced
    normalized character i. A collapsed separator maps to the first
    character of the whitespace/punctuation run it replaced.
    """

    original: str
    text: str
    offsets: tuple[int, ...]

    @property
    def words(self) -> list[str]:
        """Normalized text split into words."""
        return self.text.split(" ") if self.text else []

    def to_original_span(self, start: int, end: int) -> tuple[int, int]:
        """Map a half-open normalized span to a half-open original span.

        The original span starts at the first character that produced
        ``text[start]`` and ends just after the character that produced
        ``text[end - 1]``.
        """
        if not 0 <= start < end <= len(self.text):
            raise ValueError(
                f"Invalid normalized span [{start}, {end}) for text of length {len(self.text)}"
            )
        return self.offsets[start], self.offsets[end - 1] + 1

    def original_slice(self, start: int, end: int) -> str:
        """Original substring covering the normalized span [start, end)."""
        orig_start, orig_end = self.to_original_span(start, end)
        return self.original[orig_start:orig_end]


def normalize_with_offsets(text: str) -> NormalizedText:
    """Normalize text and keep the normalized-to-original offset map.

    Args:
        text: Original text.

    Returns:
        NormalizedText with the normalized string and per-character offsets.
    """
    chars: list[str] = []
    offsets: list[int] = []
    gap_start: int | None = None

    for index, char in enumerate(text):
        # lower() may expand one character into several
        for lowered in char.lower():
            if _WORD_CHAR.match(lowered):
                if gap_start is not None and chars:
                    chars.append(" ")
                    offsets.append(gap_start)
                gap_start = None
                chars.append(lowered)
                offsets.append(index)
            elif gap_start is None:
                gap_start = index

    return NormalizedText(original=text, text="".join(chars), offsets=tuple(offsets))


def normalize_text(text: str) -> str:
    """Normalize text for comparison.

    Args:
        text: Text to normalize.

    Returns:
        Lowercased text with punctuation replaced by spaces and
        whitespace collapsed and trimmed.
    """
    return normalize_with_offsets(text).text
