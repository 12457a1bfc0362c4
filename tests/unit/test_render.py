"""
Unit tests for the debug tree and PlantUML renderers.
"""

import pytest

from codesque.errors import ParseError
from codesque.parser import parse_text
from codesque.render import collect_participants, render_plantuml, render_tree


def puml_lines(source, **kwargs):
    return render_plantuml(parse_text(source, **kwargs)).split("\n")


def test_render_tree():
    roots = parse_text("A#f(): start\n\n  B#g(): work < done\n  loop x\n    if y\n    else\n")

    assert render_tree(roots) == (
        "A#f(): start\n"
        "  B#g(): work < done\n"
        "  loop x\n"
        "    if y\n"
        "    else\n"
    )


def test_render_tree_shows_inherited_group():
    roots = parse_text("A#f()\n  g(): go")

    assert render_tree(roots) == "A#f()\n  A#g(): go\n"


def test_document_for_single_call():
    assert puml_lines("A#f(): start\n  B#g(): work < done") == [
        "@startuml",
        "skinparam ParticipantPadding 4",
        "skinparam BoxPadding 8",
        "title A#f()",
        "== start ==",
        'box "A"',
        'participant "f()" as C1',
        "end box",
        'box "B"',
        'participant "g()" as C2',
        "end box",
        "activate C1",
        "C1 -> C2: work",
        "activate C2",
        "C2 --> C1: done",
        "deactivate C2",
        "deactivate C1",
        "@enduml",
    ]


def test_return_without_comment_is_unlabelled():
    lines = puml_lines("A#f()\n  B#g(): go")

    assert "C1 -> C2: go" in lines
    assert "C2 --> C1" in lines


def test_repeated_calls_share_first_declared_alias():
    """One participant per component; every arrow targets its alias."""
    lines = puml_lines(
        "A#f(): go\n"
        "  B#g(): first\n"
        "    C#h()\n"
        "  B#g(): second\n"
        "    C#h()\n"
    )

    assert [l for l in lines if l.startswith("participant")] == [
        'participant "f()" as C1',
        'participant "g()" as C2',
        'participant "h()" as C3',
    ]
    assert lines.count("C1 -> C2: first") == 1
    assert lines.count("C1 -> C2: second") == 1
    assert lines.count("C2 -> C3") == 2
    assert lines.count("C3 --> C2") == 2
    assert lines.count("activate C2") == 2
    assert lines.count("deactivate C2") == 2
    assert not any("C4" in l or "C5" in l for l in lines)


def test_recursive_call_reactivates_same_participant():
    lines = puml_lines("A#f(): go\n  f()")

    assert lines.count('participant "f()" as C1') == 1
    assert "C1 -> C1" in lines
    assert lines.count("activate C1") == 2


def test_groups_in_first_seen_order():
    lines = puml_lines(
        "A#f(): go\n"
        "  Zed#x()\n"
        "  Bee#y()\n"
        "  Zed#z()\n"
    )

    start = lines.index("== go ==") + 1
    assert lines[start:start + 10] == [
        'box "A"',
        'participant "f()" as C1',
        "end box",
        'box "Zed"',
        'participant "x()" as C2',
        'participant "z()" as C4',
        "end box",
        'box "Bee"',
        'participant "y()" as C3',
        "end box",
    ]


def test_participant_hyperlink():
    lines = puml_lines("A#f()\n  B#g()", paths={"B#g": "B%23g.svg"})

    assert 'participant "g()" as C2 [[B%23g.svg]]' in lines
    assert 'participant "f()" as C1' in lines


def test_loop_wraps_children():
    lines = puml_lines("A#f()\n  loop each item\n    B#g()")

    start = lines.index("loop each item")
    assert lines[start:start + 7] == [
        "loop each item",
        "C1 -> C2",
        "activate C2",
        "C2 --> C1",
        "deactivate C2",
        "end loop",
        "deactivate C1",
    ]


def test_if_else_chain_is_one_alt_region():
    lines = puml_lines(
        "A#f()\n"
        "  if a\n"
        "    B#x()\n"
        "  else if b\n"
        "    B#y()\n"
        "  else\n"
        "    B#z()\n"
        "  B#w()\n"
    )

    assert [l for l in lines if l.startswith("alt")] == ["alt if a"]
    assert [l for l in lines if l.startswith("else")] == ["else if b", "else"]
    assert lines.count("end") == 1
    assert lines.index("alt if a") < lines.index("else if b") < lines.index("else") < lines.index("end")
    assert lines.index("end") < lines.index("C1 -> C5")


def test_if_without_else_closes_itself():
    lines = puml_lines("A#f()\n  if a\n    B#x()\n  B#y()")

    assert lines.count("alt if a") == 1
    assert lines.count("end") == 1
    assert lines.index("end") < lines.index("C1 -> C3")


def test_nested_alt_inside_else():
    lines = puml_lines(
        "A#f()\n"
        "  if a\n"
        "    B#x()\n"
        "  else\n"
        "    if b\n"
        "      B#y()\n"
    )

    assert lines.count("end") == 2
    assert [l for l in lines if l.startswith("alt")] == ["alt if a", "alt if b"]


def test_else_without_if_opens_own_alt_region():
    lines = puml_lines("A#f()\n  B#g()\n  else\n    C#h()")

    assert lines.count("alt else") == 1
    assert not any(l.startswith("else") for l in lines)
    assert lines.count("end") == 1
    assert lines.index("alt else") < lines.index("C1 -> C3") < lines.index("end")


def test_else_chain_without_if_stays_one_region():
    lines = puml_lines("A#f()\n  else when idle\n    B#x()\n  else\n    B#y()")

    assert [l for l in lines if l.startswith("alt")] == ["alt when idle"]
    assert [l for l in lines if l.startswith("else")] == ["else"]
    assert lines.count("end") == 1


def test_one_section_per_root():
    lines = puml_lines("A#f(): first\n  B#g()\nC#h(): second\n")

    assert lines[3] == "title A#f()"
    assert [l for l in lines if l.startswith("==")] == ["== first ==", "== second =="]
    second = lines.index("== second ==")
    assert lines[second + 1:second + 4] == ['box "C"', 'participant "h()" as C3', "end box"]


def test_section_without_description_uses_component():
    assert "== f() ==" in puml_lines("A#f()")


def test_no_roots_fails():
    with pytest.raises(ParseError) as exc_info:
        render_plantuml([])

    assert exc_info.value.line_number == 1
    assert "No components found" in str(exc_info.value)


def test_collect_participants_deduplicates_by_identifier():
    root = parse_text("A#f()\n  B#g()\n  loop x\n    B#g()\n    A#f()")[0]
    participants = collect_participants(root)

    assert list(participants.groups) == ["A", "B"]
    assert [n.alias for n in participants.groups["A"]] == ["C1"]
    assert [n.alias for n in participants.groups["B"]] == ["C2"]
    assert participants.aliases == {"A#f": "C1", "B#g": "C2"}
