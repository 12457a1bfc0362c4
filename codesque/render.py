"""
Call tree renderers.

- ``render_node_graph`` / ``render_tree``: indented plain-text re-serialisation
  of the tree, one line per node. Useful for eyeballing what the parser built.
- ``render_plantuml``: the PlantUML sequence-diagram document, one section
  per top-level call with grouped participant boxes and nested
  call / return / loop / alt markup.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from codesque.errors import line_error
from codesque.nodes import (
    Alternative, Conditional, Loop, MethodCall, Node,
    component_parent, is_block, to_text, walk,
)

PARTICIPANT_PADDING = 4
BOX_PADDING = 8


# ─── Debug tree ───────────────────────────────────────────────────

def render_node_graph(node: Node) -> str:
    result = " " * node.indent + to_text(node) + "\n"
    for child in node.children:
        result += render_node_graph(child)
    return result


def render_tree(roots: List[MethodCall]) -> str:
    return "".join(render_node_graph(root) for root in roots)


# ─── Participants ─────────────────────────────────────────────────

@dataclass
class Participants:
    """Distinct components of one root's subtree, grouped in first-seen order."""
    groups: Dict[str, List[MethodCall]] = field(default_factory=dict)
    aliases: Dict[str, str] = field(default_factory=dict)

    def add(self, node: MethodCall) -> None:
        components = self.groups.setdefault(node.group, [])
        if node.identifier not in self.aliases:
            self.aliases[node.identifier] = node.alias
            components.append(node)

    def alias_for(self, node: MethodCall) -> str:
        """Alias of the declared participant for this call's component."""
        return self.aliases.get(node.identifier, node.alias)


def collect_participants(root: Node) -> Participants:
    participants = Participants()
    for node in walk(root):
        if isinstance(node, MethodCall):
            participants.add(node)
    return participants


def _participant_line(node: MethodCall) -> str:
    line = f'participant "{node.component}" as {node.alias}'
    if node.path:
        line += f" [[{node.path}]]"
    return line


def render_participants(participants: Participants) -> List[str]:
    lines: List[str] = []
    for group, components in participants.groups.items():
        lines.append(f'box "{group}"')
        lines.extend(_participant_line(node) for node in components)
        lines.append("end box")
    return lines


# ─── Call graph ───────────────────────────────────────────────────

def _start_markup(node: Node, participants: Participants,
                  preceding: Optional[Node] = None) -> List[str]:
    if isinstance(node, MethodCall):
        alias = participants.alias_for(node)
        lines = []
        caller = component_parent(node)
        if caller is not None:
            arrow = f"{participants.alias_for(caller)} -> {alias}"
            if node.call_comment:
                arrow += f": {node.call_comment}"
            lines.append(arrow)
        lines.append(f"activate {alias}")
        return lines
    if isinstance(node, Loop):
        return [f"loop {node.note}"]
    if isinstance(node, Conditional):
        return [f"alt if {node.note}"]
    if isinstance(node, Alternative):
        # a branch with no if before it opens its own alt region
        if not isinstance(preceding, (Conditional, Alternative)):
            return [f"alt {node.note}" if node.note else "alt else"]
        return [f"else {node.note}" if node.note else "else"]
    raise TypeError(f"Unsupported node type: {type(node).__name__}")


def _end_markup(node: Node, participants: Participants,
                following: Optional[Node]) -> List[str]:
    if isinstance(node, MethodCall):
        alias = participants.alias_for(node)
        lines = []
        caller = component_parent(node)
        if caller is not None:
            arrow = f"{alias} --> {participants.alias_for(caller)}"
            if node.return_comment:
                arrow += f": {node.return_comment}"
            lines.append(arrow)
        lines.append(f"deactivate {alias}")
        return lines
    if isinstance(node, Loop):
        return ["end loop"]
    if isinstance(node, (Conditional, Alternative)):
        # an else chained after this branch continues the same alt region
        if isinstance(following, Alternative):
            return []
        return ["end"]
    raise TypeError(f"Unsupported node type: {type(node).__name__}")


def render_call_graph(node: Node, participants: Participants,
                      preceding: Optional[Node] = None,
                      following: Optional[Node] = None) -> List[str]:
    if not is_block(node):
        return []
    lines = _start_markup(node, participants, preceding)
    children = node.children
    for i, child in enumerate(children):
        before = children[i - 1] if i > 0 else None
        after = children[i + 1] if i + 1 < len(children) else None
        lines.extend(render_call_graph(child, participants, before, after))
    lines.extend(_end_markup(node, participants, following))
    return lines


# ─── Document ─────────────────────────────────────────────────────

def render_root(root: MethodCall) -> List[str]:
    lines = [f"== {root.description or root.component} =="]
    participants = collect_participants(root)
    lines.extend(render_participants(participants))
    lines.extend(render_call_graph(root, participants))
    return lines


def render_plantuml(roots: List[MethodCall]) -> str:
    """Render parsed roots as a PlantUML sequence-diagram document."""
    if not roots:
        raise line_error(0, "No components found")

    first = roots[0]
    lines = [
        "@startuml",
        f"skinparam ParticipantPadding {PARTICIPANT_PADDING}",
        f"skinparam BoxPadding {BOX_PADDING}",
        f"title {first.group}#{first.component}",
    ]
    for root in roots:
        lines.extend(render_root(root))
    lines.append("@enduml")
    return "\n".join(lines)
