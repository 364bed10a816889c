"""Parse JavaScript / TypeScript / JSX / TSX source with tree-sitter.

The grammar is picked from two capability flags: ``jsx`` (embedded markup)
and ``typescript`` (type annotations). TypeScript without JSX uses the plain
``typescript`` grammar, since ``<T>expr`` casts are ambiguous with JSX.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from i18nxy.errors import ParseError

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts")


@dataclass(frozen=True)
class ParserOptions:
    """Grammar capabilities needed for a source file."""
    jsx: bool = True
    typescript: bool = False


@dataclass
class SourceTree:
    """A parsed file: the tree-sitter tree plus the exact bytes it was built from.

    The bytes are kept because the printer rewrites the file by splicing
    replacement text into them.
    """
    tree: Tree
    source: bytes
    options: ParserOptions

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text_of(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8")


def infer_parser_options(path: str | Path) -> ParserOptions:
    """Derive grammar capabilities from a file extension."""
    suffix = Path(path).suffix.lower()
    return ParserOptions(
        jsx=suffix in (".js", ".jsx", ".mjs", ".cjs", ".tsx"),
        typescript=suffix in (".ts", ".tsx", ".mts", ".cts"),
    )


@lru_cache(maxsize=None)
def _language(options: ParserOptions) -> Language:
    if options.typescript:
        if options.jsx:
            return Language(tree_sitter_typescript.language_tsx())
        return Language(tree_sitter_typescript.language_typescript())
    # The JavaScript grammar always understands JSX.
    return Language(tree_sitter_javascript.language())


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def parse_source(code: str, options: ParserOptions | None = None) -> SourceTree:
    """Parse *code* into a :class:`SourceTree`.

    Raises:
        ParseError: If the code contains syntax errors.
    """
    options = options or ParserOptions()
    source = code.encode("utf-8")
    parser = Parser(_language(options))
    tree = parser.parse(source)

    if tree.root_node.has_error:
        bad = _first_error(tree.root_node) or tree.root_node
        row, col = bad.start_point
        raise ParseError(f"Syntax error at line {row + 1}, column {col + 1}")

    logger.debug(
        "Parsed %d bytes (jsx=%s, typescript=%s)", len(source), options.jsx, options.typescript,
    )
    return SourceTree(tree=tree, source=source, options=options)


def parse_file(path: str | Path, options: ParserOptions | None = None) -> SourceTree:
    """Read and parse a UTF-8 source file, inferring options from its suffix."""
    path = Path(path)
    code = path.read_text(encoding="utf-8")
    return parse_source(code, options or infer_parser_options(path))
