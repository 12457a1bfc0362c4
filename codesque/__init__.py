"""Indented call notation to PlantUML sequence diagrams.

Parses lines such as ``Billing#charge(): charge card < receipt`` nested by
indentation, with ``loop``/``if``/``else`` blocks, into a call tree and
renders it as a PlantUML sequence-diagram document.
"""

__version__ = "0.3.0"

from codesque.errors import ParseError, RenderError
from codesque.parser import AliasCounter, Parser, parse_lines, parse_text
from codesque.render import render_plantuml, render_tree

__all__ = [
    "AliasCounter",
    "ParseError",
    "Parser",
    "RenderError",
    "parse_lines",
    "parse_text",
    "render_plantuml",
    "render_tree",
]
