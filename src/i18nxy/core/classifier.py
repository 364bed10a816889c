"""Decide whether a piece of text contains Chinese script worth extracting."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from enum import Enum

logger = logging.getLogger(__name__)

# Unicode ranges treated as Chinese script, including CJK and full-width punctuation.
_BASE = "\u4e00-\u9fa5"
_EXT_A = "\u9fa6-\u9fef"
_COMPAT = "\ufa0c-\ufa29"
_PUNCT = (
    "\u3000-\u303f"
    "\uff01-\uff0f"
    "\uff1a-\uff20"
    "\uff3b-\uff40"
    "\uff5b-\uff65"
    "\u2000-\u206f"
)
_CHARS = _BASE + _EXT_A + _COMPAT + _PUNCT

_RE_CHAR = re.compile(f"[{_CHARS}]")
_RE_ALL = re.compile(f"^[{_CHARS}\\s]+$")
_RE_RUN = re.compile(f"[{_CHARS}]+")


class MatchPolicy(str, Enum):
    """How much of a string must be Chinese for it to match."""
    ALL = "all"
    ANY = "any"


def _is_blank(text: str | None) -> bool:
    return not text or not text.strip()


def is_all_chinese(text: str | None) -> bool:
    """True if every non-whitespace character is Chinese script."""
    if _is_blank(text):
        return False
    return bool(_RE_ALL.match(text))  # type: ignore[arg-type]


def contains_chinese(text: str | None) -> bool:
    """True if at least one character is Chinese script."""
    if _is_blank(text):
        return False
    return bool(_RE_CHAR.search(text))  # type: ignore[arg-type]


def looks_like_comment(text: str) -> bool:
    """Heuristic: text that is (or ends in) a JS line or block comment."""
    stripped = text.strip()
    if stripped.startswith("//"):
        return True
    if "/*" in text and "*/" in text:
        return True
    if "//" in text:
        # "http://..." and friends: only exclude when nothing Chinese precedes the marker
        head = text.split("//", 1)[0]
        return not contains_chinese(head)
    return False


class TextClassifier:
    """Policy plus exclusion rules, applied to one text at a time.

    Exclusion always wins: an excluded text never matches, whatever the policy.
    """

    def __init__(
        self,
        policy: MatchPolicy = MatchPolicy.ANY,
        *,
        exclude_comments: bool = False,
        exclude_patterns: Iterable[str | re.Pattern[str]] = (),
    ) -> None:
        self.policy = MatchPolicy(policy)
        self.exclude_comments = exclude_comments
        self.exclude_patterns: list[re.Pattern[str]] = [
            p if isinstance(p, re.Pattern) else re.compile(p) for p in exclude_patterns
        ]

    def is_excluded(self, text: str) -> bool:
        for pattern in self.exclude_patterns:
            if pattern.search(text):
                return True
        return self.exclude_comments and looks_like_comment(text)

    def classify(self, text: str | None) -> bool:
        """Return True if *text* counts as Chinese text under this classifier."""
        if text is None or _is_blank(text):
            return False
        if self.is_excluded(text):
            logger.debug("Excluded: %.20s", text)
            return False
        if self.policy is MatchPolicy.ALL:
            return is_all_chinese(text)
        return contains_chinese(text)

    def extract_segments(self, text: str | None) -> list[str]:
        """Return the Chinese fragments of *text*.

        ALL yields every maximal run of Chinese characters; ANY yields the
        whole text as one segment when it contains Chinese at all.
        """
        if text is None or _is_blank(text):
            return []
        if self.is_excluded(text):
            return []
        if self.policy is MatchPolicy.ALL:
            return _RE_RUN.findall(text)
        return [text] if contains_chinese(text) else []


def classify(text: str | None, policy: MatchPolicy = MatchPolicy.ANY) -> bool:
    """Classify *text* with no exclusion rules."""
    return TextClassifier(policy).classify(text)


def extract_segments(text: str | None, policy: MatchPolicy = MatchPolicy.ANY) -> list[str]:
    """Extract Chinese segments from *text* with no exclusion rules."""
    return TextClassifier(policy).extract_segments(text)
