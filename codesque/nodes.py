"""
Call Tree — typed nodes produced by the call-notation parser.

One node per non-blank source line. Variants form a closed set:

- MethodCall   ``Group#method(): call comment < return comment``
- Loop         ``loop <note>``
- Conditional  ``if <note>``
- Alternative  ``else [<note>]``

All variants are blocks (they open and close a region in the diagram);
only MethodCall is a component (a participant lane).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# ──────────────────────────────────────────────────────────────────
# Dataclasses
# ──────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class Node:
    line_index: int
    line_value: str
    indent: int
    parent: Optional["Node"] = field(default=None, repr=False)
    children: List["Node"] = field(default_factory=list, repr=False)

    @property
    def line_number(self) -> int:
        return self.line_index + 1


@dataclass(eq=False)
class MethodCall(Node):
    method: str = ""
    group: Optional[str] = None
    call_comment: Optional[str] = None
    return_comment: Optional[str] = None
    alias: str = ""
    path: Optional[str] = None

    @property
    def component(self) -> str:
        """Human-facing participant label."""
        return f"{self.method}()"

    @property
    def identifier(self) -> str:
        return f"{self.group}#{self.method}"

    @property
    def description(self) -> Optional[str]:
        return self.call_comment


@dataclass(eq=False)
class Loop(Node):
    note: str = ""


@dataclass(eq=False)
class Conditional(Node):
    note: str = ""


@dataclass(eq=False)
class Alternative(Node):
    note: Optional[str] = None


BLOCK_TYPES = (MethodCall, Loop, Conditional, Alternative)


# ──────────────────────────────────────────────────────────────────
# Capabilities
# ──────────────────────────────────────────────────────────────────

def is_block(node: Node) -> bool:
    return isinstance(node, BLOCK_TYPES)


def is_component(node: Node) -> bool:
    return isinstance(node, MethodCall)


def component_parent(node: Node) -> Optional[MethodCall]:
    """Nearest ancestor that is a component, skipping loops and branches."""
    parent = node.parent
    while parent is not None and not is_component(parent):
        parent = parent.parent
    return parent


def walk(node: Node):
    """Yield a node and all of its descendants in document order."""
    yield node
    for child in node.children:
        yield from walk(child)


def to_text(node: Node) -> str:
    """Canonical single-line source form of a node, without indentation."""
    if isinstance(node, MethodCall):
        statement = f"{node.group}#" if node.group else ""
        statement += node.component
        if node.call_comment:
            statement += f": {node.call_comment}"
        if node.return_comment:
            statement += f" < {node.return_comment}"
        return statement
    if isinstance(node, Loop):
        return f"loop {node.note}"
    if isinstance(node, Conditional):
        return f"if {node.note}"
    if isinstance(node, Alternative):
        return f"else {node.note}" if node.note else "else"
    raise TypeError(f"Unsupported node type: {type(node).__name__}")


# ──────────────────────────────────────────────────────────────────
# JSON Serialization
# ──────────────────────────────────────────────────────────────────

_KINDS = {
    MethodCall: "call",
    Loop: "loop",
    Conditional: "if",
    Alternative: "else",
}


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Serialize a node and its subtree to a JSON-compatible dict."""
    data: Dict[str, Any] = {
        "kind": _KINDS[type(node)],
        "line": node.line_number,
        "indent": node.indent,
    }
    if isinstance(node, MethodCall):
        data.update(
            alias=node.alias,
            group=node.group,
            method=node.method,
            call_comment=node.call_comment,
            return_comment=node.return_comment,
            path=node.path,
        )
    else:
        data["note"] = node.note
    data["children"] = [node_to_dict(child) for child in node.children]
    return data


def to_json(roots: List[MethodCall]) -> List[Dict[str, Any]]:
    return [node_to_dict(root) for root in roots]
