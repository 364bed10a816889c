"""Insert the import statement for the translation function into a module."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from tree_sitter import Node

from i18nxy.core.parser import ParserOptions, SourceTree, parse_source

if TYPE_CHECKING:
    from i18nxy.config import I18nConfig

logger = logging.getLogger(__name__)


class InsertPosition(str, Enum):
    AFTER_IMPORTS = "afterImports"
    BEFORE_IMPORTS = "beforeImports"
    TOP_OF_FILE = "topOfFile"


def _local_import_names(stmt: Node) -> set[str]:
    names: set[str] = set()
    for clause in stmt.named_children:
        if clause.type != "import_clause":
            continue
        for part in clause.named_children:
            if part.type == "identifier":
                names.add(part.text.decode("utf-8"))
            elif part.type == "namespace_import":
                for ident in part.named_children:
                    names.add(ident.text.decode("utf-8"))
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    local = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                    if local is not None:
                        names.add(local.text.decode("utf-8"))
    return names


def _declared_names(stmt: Node) -> set[str]:
    names: set[str] = set()
    for declarator in stmt.named_children:
        if declarator.type != "variable_declarator":
            continue
        name = declarator.child_by_field_name("name")
        if name is not None and name.type == "identifier":
            names.add(name.text.decode("utf-8"))
    return names


def _is_directive(stmt: Node) -> bool:
    return (
        stmt.type == "expression_statement"
        and stmt.named_child_count == 1
        and stmt.named_children[0].type == "string"
    )


def module_bindings(tree: SourceTree) -> set[str]:
    """Names bound at module level by imports or variable declarations."""
    names: set[str] = set()
    for stmt in tree.root.named_children:
        if stmt.type == "import_statement":
            names |= _local_import_names(stmt)
        elif stmt.type in ("lexical_declaration", "variable_declaration"):
            names |= _declared_names(stmt)
    return names


class ImportManager:
    """Adds ``import { $t } from '...'`` style statements where missing.

    ``imports`` maps a function name to the full statement that provides it.
    """

    def __init__(
        self,
        imports: dict[str, str] | None = None,
        *,
        enabled: bool = True,
        position: InsertPosition | str = InsertPosition.AFTER_IMPORTS,
    ) -> None:
        self.imports = dict(imports or {})
        self.enabled = enabled
        self.position = InsertPosition(position)

    @classmethod
    def from_config(cls, config: I18nConfig) -> ImportManager:
        auto = config.replacement.auto_import
        return cls(
            {name: spec.import_statement for name, spec in auto.imports.items()},
            enabled=auto.enabled,
            position=auto.insert_position,
        )

    def has_import(self, code: str, name: str, options: ParserOptions | None = None) -> bool:
        return name in module_bindings(parse_source(code, options))

    def _insert_offset(self, tree: SourceTree) -> tuple[int, bool]:
        """Byte offset for the new statement, and whether it goes after a node."""
        body = tree.root.named_children
        imports = [n for n in body if n.type == "import_statement"]
        if self.position is InsertPosition.AFTER_IMPORTS and imports:
            return imports[-1].end_byte, True
        if self.position is InsertPosition.BEFORE_IMPORTS and imports:
            return imports[0].start_byte, False
        # A #! line and "use strict"-style directives must stay first.
        prologue = None
        for node in body:
            if node.type == "hash_bang_line" or _is_directive(node):
                prologue = node
                continue
            break
        if prologue is not None:
            return prologue.end_byte, True
        return 0, False

    def add_import(self, code: str, name: str, options: ParserOptions | None = None) -> str:
        """Return *code* with the import for *name* added, if it was missing."""
        if not self.enabled:
            return code
        statement = self.imports.get(name)
        if not statement:
            logger.warning("No import statement configured for %s", name)
            return code

        tree = parse_source(code, options)
        if name in module_bindings(tree):
            return code

        offset, after = self._insert_offset(tree)
        text = f"\n{statement}" if after else f"{statement}\n"
        source = tree.source
        logger.debug("Adding import for %s at byte %d", name, offset)
        return (source[:offset] + text.encode("utf-8") + source[offset:]).decode("utf-8")
