"""
Structural Parser — builds the call tree from indented lines.

Two passes:

1. Flat pass: classify every non-blank line, in document order.
2. Structuring pass: attach each node to the nearest preceding open node
   with a smaller indent. A node with no such ancestor starts a new root,
   which must be a method call with an explicit group.

Method calls written without a group inherit the group of their nearest
method-call ancestor. Aliases come from an ``AliasCounter`` threaded
through the parse so that documents can be parsed in isolation or share
one counter across a batch.
"""

import itertools
import logging
import threading
from typing import Iterable, List, Mapping, Optional

from codesque.errors import line_error
from codesque.lines import classify_line, is_empty_line
from codesque.nodes import MethodCall, Node, component_parent

logger = logging.getLogger(__name__)


class AliasCounter:
    """Thread-safe source of diagram participant aliases (C1, C2, ...)."""

    def __init__(self, prefix: str = "C", start: int = 1):
        self._prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_alias(self) -> str:
        with self._lock:
            return f"{self._prefix}{next(self._counter)}"


class Parser:
    def __init__(self, lines: Iterable[str],
                 paths: Optional[Mapping[str, str]] = None,
                 aliases: Optional[AliasCounter] = None):
        self.lines: List[str] = list(lines)
        self.paths: Mapping[str, str] = paths or {}
        self.aliases = aliases or AliasCounter()

    # ─── Flat pass ────────────────────────────────────────────────

    def parse_all_nodes(self) -> List[Node]:
        """Classify every non-blank line; raise on the first unknown one."""
        nodes: List[Node] = []
        for index, value in enumerate(self.lines):
            if is_empty_line(value):
                continue
            node = classify_line(index, value, self.aliases.next_alias)
            if node is None:
                raise line_error(index, f"Unknown statement '{value}'", value)
            nodes.append(node)
        return nodes

    # ─── Structuring pass ─────────────────────────────────────────

    def structure_nodes(self, nodes: List[Node]) -> List[MethodCall]:
        roots: List[MethodCall] = []
        open_nodes: List[Node] = []

        for node in nodes:
            while open_nodes and open_nodes[-1].indent >= node.indent:
                open_nodes.pop()

            if open_nodes:
                self._attach(open_nodes[-1], node)
            else:
                roots.append(self._check_root(node))

            open_nodes.append(node)

        return roots

    def _check_root(self, node: Node) -> MethodCall:
        if not isinstance(node, MethodCall):
            raise line_error(
                node.line_index,
                "Top-level statement must be a component in the format 'Group#component()'",
                node.line_value,
            )
        if not node.group:
            raise line_error(node.line_index,
                             "Top-level statement missing component group name",
                             node.line_value)
        return node

    def _attach(self, parent: Node, node: Node) -> None:
        parent.children.append(node)
        node.parent = parent

        if isinstance(node, MethodCall) and not node.group:
            ancestor = component_parent(node)
            # roots always carry a group, so an ancestor call exists here
            node.group = ancestor.group

    # ─── Enrichment ───────────────────────────────────────────────

    def resolve_paths(self, nodes: List[Node]) -> None:
        if not self.paths:
            return
        for node in nodes:
            if isinstance(node, MethodCall):
                node.path = self.paths.get(node.identifier)

    def parse(self) -> List[MethodCall]:
        """Parse the whole document and return its top-level calls in order."""
        nodes = self.parse_all_nodes()
        roots = self.structure_nodes(nodes)
        self.resolve_paths(nodes)
        logger.debug("Parsed %d node(s) into %d root(s)", len(nodes), len(roots))
        return roots


def parse_lines(lines: Iterable[str],
                paths: Optional[Mapping[str, str]] = None,
                aliases: Optional[AliasCounter] = None) -> List[MethodCall]:
    return Parser(lines, paths=paths, aliases=aliases).parse()


def parse_text(text: str,
               paths: Optional[Mapping[str, str]] = None,
               aliases: Optional[AliasCounter] = None) -> List[MethodCall]:
    """Parse a whole document given as a single string."""
    return parse_lines(text.splitlines(), paths=paths, aliases=aliases)
