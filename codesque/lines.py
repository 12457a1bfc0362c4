"""
Line Classifier — turns one line of call notation into a typed node.

Classifiers are tried in a fixed priority order; the first match wins.
Blank lines are recognised separately by ``is_empty_line`` and never
become nodes.
"""

import re
from typing import Callable, List, Optional

from codesque.nodes import Alternative, Conditional, Loop, MethodCall, Node

AliasFactory = Callable[[], str]


# ─── Patterns ─────────────────────────────────────────────────────

_IDENT = r'[A-Za-z$_][A-Za-z0-9$_]*'

EMPTY_PATTERN = re.compile(r'^\s*$')

METHOD_PATTERN = re.compile(
    r'^(\s*)'
    rf'(?:({_IDENT})#)?'
    rf'({_IDENT})\(\)'
    r'(?:\s*:\s*(.*?))?'
    r'(?:\s*<\s*(.*?))?'
    r'\s*$'
)

LOOP_PATTERN = re.compile(r'^(\s*)loop\s+(.*?)\s*$')

IF_PATTERN = re.compile(r'^(\s*)if\s+(.*?)\s*$')

ELSE_PATTERN = re.compile(r'^(\s*)else(?:\s+(.*?))?\s*$')


# ─── Classifiers ──────────────────────────────────────────────────

def is_empty_line(line_value: str) -> bool:
    return EMPTY_PATTERN.match(line_value) is not None


def _blank_to_none(text: Optional[str]) -> Optional[str]:
    return text if text else None


def parse_method_call(line_index: int, line_value: str,
                      next_alias: AliasFactory) -> Optional[Node]:
    m = METHOD_PATTERN.match(line_value)
    if not m:
        return None
    indent, group, method, call_comment, return_comment = m.groups()
    return MethodCall(
        line_index=line_index,
        line_value=line_value,
        indent=len(indent),
        method=method,
        group=group,
        call_comment=_blank_to_none(call_comment),
        return_comment=_blank_to_none(return_comment),
        alias=next_alias(),
    )


def parse_loop(line_index: int, line_value: str,
               next_alias: AliasFactory) -> Optional[Node]:
    m = LOOP_PATTERN.match(line_value)
    if not m:
        return None
    return Loop(line_index=line_index, line_value=line_value,
                indent=len(m.group(1)), note=m.group(2))


def parse_conditional(line_index: int, line_value: str,
                      next_alias: AliasFactory) -> Optional[Node]:
    m = IF_PATTERN.match(line_value)
    if not m:
        return None
    return Conditional(line_index=line_index, line_value=line_value,
                       indent=len(m.group(1)), note=m.group(2))


def parse_alternative(line_index: int, line_value: str,
                      next_alias: AliasFactory) -> Optional[Node]:
    m = ELSE_PATTERN.match(line_value)
    if not m:
        return None
    return Alternative(line_index=line_index, line_value=line_value,
                       indent=len(m.group(1)), note=_blank_to_none(m.group(2)))


LINE_CLASSIFIERS: List[Callable[[int, str, AliasFactory], Optional[Node]]] = [
    parse_method_call,
    parse_loop,
    parse_conditional,
    parse_alternative,
]


def classify_line(line_index: int, line_value: str,
                  next_alias: AliasFactory) -> Optional[Node]:
    """Return the node for a non-blank line, or None if no variant matches.

    ``next_alias`` is only called when a method call is recognised, so
    aliases stay dense across a document.
    """
    for classifier in LINE_CLASSIFIERS:
        node = classifier(line_index, line_value, next_alias)
        if node is not None:
            return node
    return None
