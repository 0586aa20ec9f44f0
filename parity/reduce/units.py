"""
Removable units of a Python program.

A unit is addressed by its AST path: a tuple of ``(field, index)`` steps from
the module root. Paths are only meaningful for the exact source they were
collected from, so callers collect again after every accepted edit.
"""
from __future__ import annotations

import ast
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterator, List, Optional, Sequence, Tuple

from parity.oracles.types import ProgramSource

Path = Tuple[Tuple[str, int], ...]

DEFAULT_STATEMENT_DENYLIST = frozenset({"Return", "Break", "Continue", "Pass"})

_DECLARATION_TYPES = (
    ast.ClassDef,
    ast.FunctionDef,
    ast.AsyncFunctionDef,
    ast.Import,
    ast.ImportFrom,
    ast.Assign,
    ast.AnnAssign,
)
_MEMBER_TYPES = (
    ast.FunctionDef,
    ast.AsyncFunctionDef,
    ast.ClassDef,
    ast.Assign,
    ast.AnnAssign,
)
_FUNCTION_TYPES = (ast.FunctionDef, ast.AsyncFunctionDef)


class UnitError(Exception):
    """Base exception for unit collection and removal."""


class UnitParseError(UnitError):
    """Raised when a program cannot be parsed into units."""


class UnitRemovalError(UnitError):
    """Raised when a unit path does not resolve in the given program."""


class UnitKind(str, Enum):
    DECLARATION = "declaration"
    MEMBER = "member"
    STATEMENT = "statement"


GRANULARITY_ORDER = (UnitKind.DECLARATION, UnitKind.MEMBER, UnitKind.STATEMENT)


@dataclass(frozen=True)
class RemovableUnit:
    kind: UnitKind
    path: Path
    label: str
    line: int
    end_line: int

    def __str__(self) -> str:
        return f"{self.kind.value} {self.label} (lines {self.line}-{self.end_line})"


def _label(node: ast.AST) -> str:
    name = getattr(node, "name", None)
    if name:
        return f"{type(node).__name__} {name}"
    return type(node).__name__


def _child_blocks(node: ast.AST) -> Iterator[Tuple[Path, ast.AST, str, List[ast.stmt]]]:
    """Yield (path to block owner, owner, block field, statements) for every
    block directly nested in node, in document order."""
    def own(field):
        block = getattr(node, field, None)
        if isinstance(block, list) and block and isinstance(block[0], ast.stmt):
            yield (), node, field, block

    yield from own("body")
    for j, handler in enumerate(getattr(node, "handlers", None) or []):
        yield (("handlers", j),), handler, "body", handler.body
    for j, case in enumerate(getattr(node, "cases", None) or []):
        yield (("cases", j),), case, "body", case.body
    yield from own("orelse")
    yield from own("finalbody")


class UnitParser:
    """Collects removable units and produces reduced programs."""

    def __init__(self, entry_point: str = "Program.main",
                 statement_denylist: Optional[Sequence[str]] = None):
        self.entry_point = entry_point
        parts = entry_point.split(".")
        self.entry_declaration = parts[0]
        self.entry_member = parts[1] if len(parts) > 1 else None
        self.statement_denylist: FrozenSet[str] = (
            frozenset(statement_denylist) if statement_denylist is not None
            else DEFAULT_STATEMENT_DENYLIST
        )

    def parse(self, source: ProgramSource) -> ast.Module:
        try:
            return ast.parse(source.text)
        except (SyntaxError, ValueError) as e:
            raise UnitParseError(f"Cannot parse program: {e}") from e

    # -- collection ----------------------------------------------------------

    def collect(self, source: ProgramSource, kind: UnitKind) -> List[RemovableUnit]:
        """Return the units of one granularity level in document order."""
        tree = self.parse(source)
        if kind == UnitKind.DECLARATION:
            units = self._declarations(tree)
        elif kind == UnitKind.MEMBER:
            units = self._members(tree)
        else:
            units = list(self._statements(tree))
        return units

    def count(self, source: ProgramSource) -> int:
        """Number of removable units across every granularity level."""
        return sum(len(self.collect(source, kind)) for kind in GRANULARITY_ORDER)

    def _is_entry_declaration(self, node: ast.AST) -> bool:
        expected = ast.ClassDef if self.entry_member else _FUNCTION_TYPES
        return isinstance(node, expected) and node.name == self.entry_declaration

    def _unit(self, kind: UnitKind, path: Path, node: ast.AST) -> RemovableUnit:
        return RemovableUnit(
            kind=kind,
            path=path,
            label=_label(node),
            line=getattr(node, "lineno", 0),
            end_line=getattr(node, "end_lineno", 0) or getattr(node, "lineno", 0),
        )

    def _declarations(self, tree: ast.Module) -> List[RemovableUnit]:
        return [
            self._unit(UnitKind.DECLARATION, (("body", i),), node)
            for i, node in enumerate(tree.body)
            if isinstance(node, _DECLARATION_TYPES) and not self._is_entry_declaration(node)
        ]

    def _members(self, tree: ast.Module) -> List[RemovableUnit]:
        units = []
        for i, node in enumerate(tree.body):
            if isinstance(node, ast.ClassDef):
                is_entry_class = self.entry_member is not None and node.name == self.entry_declaration
                units.extend(self._class_members(node, (("body", i),), is_entry_class))
        return units

    def _class_members(self, cls: ast.ClassDef, prefix: Path, is_entry_class: bool) -> List[RemovableUnit]:
        units = []
        for j, member in enumerate(cls.body):
            if not isinstance(member, _MEMBER_TYPES):
                continue
            if is_entry_class and isinstance(member, _FUNCTION_TYPES) and member.name == self.entry_member:
                continue
            path = prefix + (("body", j),)
            units.append(self._unit(UnitKind.MEMBER, path, member))
            if isinstance(member, ast.ClassDef):
                units.extend(self._class_members(member, path, False))
        return units

    def _statements(self, tree: ast.Module) -> Iterator[RemovableUnit]:
        for i, node in enumerate(tree.body):
            yield from self._function_statements(node, (("body", i),))

    def _function_statements(self, node: ast.AST, path: Path) -> Iterator[RemovableUnit]:
        if isinstance(node, _FUNCTION_TYPES):
            yield from self._block_statements(node, node.body, path, "body")
        elif isinstance(node, ast.ClassDef):
            for j, member in enumerate(node.body):
                yield from self._function_statements(member, path + (("body", j),))

    def _block_statements(self, parent: ast.AST, block: List[ast.stmt], owner: Path,
                          field: str) -> Iterator[RemovableUnit]:
        # A lone pass that removal would put straight back is not a unit.
        placeholder_only = (
            len(block) == 1 and isinstance(block[0], ast.Pass) and self._needs_placeholder(parent, field)
        )
        for k, stmt in enumerate(block):
            path = owner + ((field, k),)
            if type(stmt).__name__ not in self.statement_denylist and not placeholder_only:
                yield self._unit(UnitKind.STATEMENT, path, stmt)
            for prefix, child_parent, child_field, child in _child_blocks(stmt):
                yield from self._block_statements(child_parent, child, path + prefix, child_field)

    # -- removal -------------------------------------------------------------

    def remove(self, source: ProgramSource, unit: RemovableUnit) -> ProgramSource:
        """Return a new program with the unit deleted."""
        tree = self.parse(source)
        parent: ast.AST = tree
        try:
            for field, index in unit.path[:-1]:
                parent = getattr(parent, field)[index]
            field, index = unit.path[-1]
            block = getattr(parent, field)
            del block[index]
        except (AttributeError, IndexError, TypeError) as e:
            raise UnitRemovalError(f"Unit {unit} does not resolve: {e}") from e

        if not block and self._needs_placeholder(parent, field):
            block.append(ast.Pass())
        ast.fix_missing_locations(tree)
        return ProgramSource(text=ast.unparse(tree) + "\n", origin=source.origin)

    @staticmethod
    def _needs_placeholder(parent: ast.AST, field: str) -> bool:
        if isinstance(parent, ast.Module):
            return False
        if field == "body":
            return True
        if field == "finalbody":
            # try/finally without handlers would be left with no clauses
            return not getattr(parent, "handlers", None)
        return False
