"""Walk a parsed source tree and report every literal that holds Chinese text."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from tree_sitter import Node

from i18nxy.core.classifier import TextClassifier
from i18nxy.core.parser import ParserOptions, SourceTree, parse_source

logger = logging.getLogger(__name__)


class MatchKind(str, Enum):
    """The four syntactic positions that can carry translatable text."""
    STRING_LITERAL = "StringLiteral"
    TEMPLATE_SEGMENT = "TemplateSegment"
    MARKUP_TEXT = "MarkupText"
    MARKUP_ATTRIBUTE = "MarkupAttribute"


class QuoteStyle(str, Enum):
    SINGLE = "'"
    DOUBLE = '"'
    BACKTICK = "`"


@dataclass(frozen=True)
class NodeHandle:
    """Locates the bytes a match replaces, plus the id of the node they belong to."""
    node_id: int
    start_byte: int
    end_byte: int
    line: int  # 1-based
    column: int  # 0-based, in bytes
    segment: int = -1  # template segment index, -1 for whole nodes


@dataclass(frozen=True)
class TemplateInfo:
    """The template literal enclosing a TemplateSegment match."""
    start_byte: int
    end_byte: int
    segment_count: int
    expression_count: int

    @property
    def is_static(self) -> bool:
        return self.segment_count == 1 and self.expression_count == 0


@dataclass(frozen=True)
class TextMatch:
    """A single piece of Chinese text found in the tree.

    For TemplateSegment and MarkupText the handle spans the text with its
    surrounding whitespace trimmed, so the whitespace survives a rewrite.
    """
    kind: MatchKind
    value: str
    handle: NodeHandle
    quote: QuoteStyle
    parent_type: str = ""
    template: TemplateInfo | None = None

    @property
    def line(self) -> int:
        return self.handle.line


_RE_ESCAPE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-7]{1,3}|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}
_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}


def _unescape(match: re.Match[str]) -> str:
    seq = match.group(1)
    if seq.startswith("u{"):
        return chr(int(seq[2:-1], 16))
    if seq[0] in "ux" and len(seq) > 1:
        return chr(int(seq[1:], 16))
    if seq[0] in "01234567":
        return chr(int(seq, 8))
    if seq in _LINE_CONTINUATIONS:
        return ""
    return _SIMPLE_ESCAPES.get(seq, seq)


def decode_string_literal(raw: str) -> str:
    """Decode the body of a JS string literal (quotes already removed)."""
    if "\\" not in raw:
        return raw
    decoded = _RE_ESCAPE.sub(_unescape, raw)
    # \uD83D\uDE00 style pairs come out as two lone surrogates; unpaired ones become U+FFFD
    return decoded.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


# Parents where a string is syntax rather than a value, so a call can't replace it.
_NON_VALUE_PARENTS = {"literal_type", "import_require_clause", "enum_body"}
# Statements whose `source` field is a module specifier.
_MODULE_SOURCE_PARENTS = {"import_statement", "export_statement"}
# (parent type, field name) pairs naming a property or member key.
_KEY_FIELDS = {
    ("pair", "key"),
    ("pair_pattern", "key"),
    ("method_definition", "name"),
    ("field_definition", "property"),
    ("public_field_definition", "name"),
    ("property_signature", "name"),
    ("method_signature", "name"),
    ("abstract_method_signature", "name"),
    ("enum_assignment", "name"),
}


def _is_value_position(node: Node) -> bool:
    parent = node.parent
    if parent is None:
        return True
    if parent.type in _NON_VALUE_PARENTS:
        return False
    if parent.type in _MODULE_SOURCE_PARENTS:
        source = parent.child_by_field_name("source")
        return source is None or source.id != node.id
    for parent_type, field in _KEY_FIELDS:
        if parent.type == parent_type:
            key = parent.child_by_field_name(field)
            if key is not None and key.id == node.id:
                return False
    return True


class TreeScanner:
    """Single-pass, source-ordered scanner over a :class:`SourceTree`."""

    def __init__(self, classifier: TextClassifier | None = None) -> None:
        self.classifier = classifier or TextClassifier()

    def scan(self, tree: SourceTree) -> list[TextMatch]:
        matches: list[TextMatch] = []
        visited: set[int] = set()
        self._source = tree.source

        # Explicit stack, children pushed in reverse so they pop in source order.
        stack: list[Node] = [tree.root]
        while stack:
            node = stack.pop()
            if node.id in visited:
                continue
            visited.add(node.id)

            if node.type == "string":
                self._visit_string(node, matches)
            elif node.type == "template_string":
                self._visit_template(node, matches)
            elif node.type == "jsx_text":
                self._visit_jsx_text(node, matches)
            elif node.type == "jsx_attribute":
                self._visit_jsx_attribute(node, matches, visited)

            stack.extend(reversed(node.children))

        logger.debug("Scanner found %d matches", len(matches))
        return matches

    # ── helpers ──

    def _text(self, start: int, end: int) -> str:
        return self._source[start:end].decode("utf-8")

    def _handle(self, node_id: int, start: int, end: int, segment: int = -1) -> NodeHandle:
        line_start = self._source.rfind(b"\n", 0, start) + 1
        line = self._source.count(b"\n", 0, start) + 1
        return NodeHandle(node_id, start, end, line, start - line_start, segment)

    def _trimmed_span(self, start: int, end: int) -> tuple[int, int, str]:
        """Shrink [start, end) to exclude surrounding whitespace."""
        raw = self._text(start, end)
        value = raw.strip()
        if not value:
            return start, start, ""
        lead = raw[: len(raw) - len(raw.lstrip())]
        trail = raw[len(raw.rstrip()):]
        return (
            start + len(lead.encode("utf-8")),
            end - len(trail.encode("utf-8")),
            value,
        )

    @staticmethod
    def _quote_of(node: Node) -> QuoteStyle:
        return QuoteStyle.DOUBLE if node.text.startswith(b'"') else QuoteStyle.SINGLE

    # ── node kinds ──

    def _visit_string(self, node: Node, matches: list[TextMatch]) -> None:
        if not _is_value_position(node):
            return
        value = decode_string_literal(self._text(node.start_byte + 1, node.end_byte - 1))
        if not self.classifier.classify(value):
            return
        matches.append(TextMatch(
            kind=MatchKind.STRING_LITERAL,
            value=value,
            handle=self._handle(node.id, node.start_byte, node.end_byte),
            quote=self._quote_of(node),
            parent_type=node.parent.type if node.parent is not None else "",
        ))

    def _visit_template(self, node: Node, matches: list[TextMatch]) -> None:
        substitutions = [c for c in node.children if c.type == "template_substitution"]
        info = TemplateInfo(
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            segment_count=len(substitutions) + 1,
            expression_count=len(substitutions),
        )
        bounds: list[tuple[int, int]] = []
        cursor = node.start_byte + 1
        for sub in substitutions:
            bounds.append((cursor, sub.start_byte))
            cursor = sub.end_byte
        bounds.append((cursor, node.end_byte - 1))

        for index, (start, end) in enumerate(bounds):
            if not self.classifier.classify(self._text(start, end)):
                continue
            span_start, span_end, value = self._trimmed_span(start, end)
            matches.append(TextMatch(
                kind=MatchKind.TEMPLATE_SEGMENT,
                value=value,
                handle=self._handle(node.id, span_start, span_end, index),
                quote=QuoteStyle.BACKTICK,
                parent_type=node.parent.type if node.parent is not None else "",
                template=info,
            ))

    def _visit_jsx_text(self, node: Node, matches: list[TextMatch]) -> None:
        span_start, span_end, value = self._trimmed_span(node.start_byte, node.end_byte)
        if not value or not self.classifier.classify(value):
            return
        matches.append(TextMatch(
            kind=MatchKind.MARKUP_TEXT,
            value=value,
            handle=self._handle(node.id, span_start, span_end),
            quote=QuoteStyle.SINGLE,
            parent_type=node.parent.type if node.parent is not None else "",
        ))

    def _visit_jsx_attribute(
        self, node: Node, matches: list[TextMatch], visited: set[int],
    ) -> None:
        value_node = node.named_children[-1] if node.named_child_count > 1 else None
        if value_node is None or value_node.type != "string":
            return
        # The value is reported here, not again as a plain string literal.
        visited.add(value_node.id)
        value = self._text(value_node.start_byte + 1, value_node.end_byte - 1)
        if not self.classifier.classify(value):
            return
        matches.append(TextMatch(
            kind=MatchKind.MARKUP_ATTRIBUTE,
            value=value,
            handle=self._handle(value_node.id, value_node.start_byte, value_node.end_byte),
            quote=self._quote_of(value_node),
            parent_type=node.type,
        ))


def scan_source(
    code: str,
    options: ParserOptions | None = None,
    classifier: TextClassifier | None = None,
) -> list[TextMatch]:
    """Parse *code* and return its matches."""
    return TreeScanner(classifier).scan(parse_source(code, options))
