"""Replace scanned text matches with translation-function calls.

The rewriter never regenerates code from the tree. Each match becomes an
:class:`Edit` over the original bytes, and the edits are spliced in from the
end of the file backwards, so everything between matches is kept exactly as
written (including comments, formatting and line numbers).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from i18nxy.core.parser import SourceTree
from i18nxy.core.replacement import ReplacementFormatter
from i18nxy.core.scanner import MatchKind, QuoteStyle, TextMatch
from i18nxy.errors import RewriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edit:
    start_byte: int
    end_byte: int
    text: str


@dataclass
class RewriteResult:
    code: str
    extracted: list[tuple[str, str]] = field(default_factory=list)
    has_replaced: bool = False
    skipped: int = 0

    @property
    def has_extracted(self) -> bool:
        return bool(self.extracted)


class TreeRewriter:
    """Turns ``(match, key)`` pairs into edits and applies them."""

    def __init__(self, formatter: ReplacementFormatter | None = None) -> None:
        self.formatter = formatter or ReplacementFormatter()

    def build_edit(self, match: TextMatch, key: str) -> Edit:
        """Return the edit replacing *match* with a call for *key*.

        Raises:
            RewriteError: If the match cannot be replaced.
        """
        if not key:
            raise RewriteError(f"No key for {match.value!r}")
        fmt = self.formatter
        handle = match.handle

        if match.kind is MatchKind.STRING_LITERAL:
            # Inside a JSX container the braces are already there.
            return Edit(handle.start_byte, handle.end_byte, fmt.call(key, match.quote))

        if match.kind is MatchKind.TEMPLATE_SEGMENT:
            template = match.template
            if template is None:
                raise RewriteError(f"Template segment without template at line {match.line}")
            if template.is_static:
                return Edit(
                    template.start_byte, template.end_byte, fmt.call(key, QuoteStyle.BACKTICK),
                )
            return Edit(handle.start_byte, handle.end_byte, fmt.template(key))

        if match.kind is MatchKind.MARKUP_TEXT:
            return Edit(handle.start_byte, handle.end_byte, fmt.jsx(key))

        if match.kind is MatchKind.MARKUP_ATTRIBUTE:
            return Edit(handle.start_byte, handle.end_byte, fmt.jsx(key, match.quote))

        raise RewriteError(f"Unsupported match kind: {match.kind}")

    def rewrite(
        self,
        tree: SourceTree,
        matches: Sequence[TextMatch],
        keys: Sequence[str],
        *,
        extract: bool = True,
        replace: bool = True,
    ) -> RewriteResult:
        """Rewrite *tree* using one key per match.

        Extraction (collecting ``(text, key)`` pairs) and replacement are
        independent; a match that fails to rewrite is logged and skipped.
        """
        if len(matches) != len(keys):
            raise ValueError(f"Got {len(keys)} keys for {len(matches)} matches")

        extracted = [(m.value, k) for m, k in zip(matches, keys)] if extract else []
        if not replace:
            return RewriteResult(code=tree.source.decode("utf-8"), extracted=extracted)

        edits: list[Edit] = []
        skipped = 0
        for match, key in zip(matches, keys):
            try:
                edits.append(self.build_edit(match, key))
            except RewriteError as e:
                logger.warning("Skipping match at line %d: %s", match.line, e)
                skipped += 1

        applied, dropped = _drop_overlaps(edits)
        for edit in dropped:
            logger.warning("Skipping overlapping edit at byte %d", edit.start_byte)
        code = apply_edits(tree.source, applied)
        return RewriteResult(
            code=code,
            extracted=extracted,
            has_replaced=bool(applied),
            skipped=skipped + len(dropped),
        )


def _drop_overlaps(edits: list[Edit]) -> tuple[list[Edit], list[Edit]]:
    kept: list[Edit] = []
    dropped: list[Edit] = []
    last_end = -1
    for edit in sorted(edits, key=lambda e: (e.start_byte, e.end_byte)):
        if edit.start_byte < last_end:
            dropped.append(edit)
            continue
        kept.append(edit)
        last_end = edit.end_byte
    return kept, dropped


def apply_edits(source: bytes, edits: Sequence[Edit]) -> str:
    """Splice non-overlapping *edits* into *source* and decode the result."""
    out = bytearray(source)
    for edit in sorted(edits, key=lambda e: e.start_byte, reverse=True):
        out[edit.start_byte:edit.end_byte] = edit.text.encode("utf-8")
    return out.decode("utf-8")
