"""Export of a machine description to Graphviz DOT."""

from __future__ import annotations

from smalldb.machine.description import MachineDescription

DEFAULT_FILL_COLOR = "#eeeeee"
UNDEFINED_FILL_COLOR = "#ffccaa"

_HEADER = [
    "#",
    "# State machine visualization",
    "#",
    '# Use "dot -Tpng this-file.dot -o this-file.png" to compile.',
    "#",
    "digraph structs {",
    "\trankdir = LR;",
    "\tmargin = 0;",
    "\tbgcolor = transparent;",
    "\tedge [ arrowtail=none, arrowhead=normal, arrowsize=0.6, fontsize=8 ];",
    '\tnode [ shape=box, fontsize=9, style="rounded,filled", fontname="sans", fillcolor="#eeeeee" ];',
    '\tgraph [ shape=none, color=blueviolet, fontcolor=blueviolet, fontsize=9, fontname="sans" ];',
    "",
    '\tBEGIN [ label="", shape=circle, color=black, fillcolor=black, penwidth=0, width=0.25, style=filled ];',
    '\tnode [ shape=ellipse, fontsize=9, style="filled", fontname="sans", fillcolor="#eeeeee", penwidth=2 ];',
]

_END_NODE = '\tEND [ label="", shape=doublecircle, color=black, fillcolor=black, penwidth=1.8, width=0.20, style=filled ];'


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _node_id(state: str) -> str:
    return _quote(f"s_{state}")


def export_dot(description: MachineDescription) -> str:
    """Render states as nodes and transitions as labelled edges.

    States used by transitions but missing from the declared states are
    still drawn, highlighted as undefined. The output depends only on the
    description, so it is safe for snapshot comparisons.
    """
    lines = list(_HEADER)

    for name, state in description.states.items():
        lines.append(
            f"\t{_node_id(name)} [ label={_quote(state.display_label)}, "
            f"fillcolor={_quote(state.color or DEFAULT_FILL_COLOR)} ];"
        )

    have_final_state = False
    for action in description.actions.values():
        label = _quote(action.display_label)
        for source, transition in action.transitions.items():
            src = "BEGIN" if not source else _node_id(source)
            for target in transition.targets or ():
                if not target:
                    dst = "END"
                    have_final_state = True
                else:
                    dst = _node_id(target)
                lines.append(f"\t{src} -> {dst} [ label={label} ];")
    lines.append("")

    for name in description.undefined_states():
        undefined_label = _quote(name)[:-1] + '\\n(undefined)"'
        lines.append(f"\t{_node_id(name)} [ label={undefined_label}, fillcolor={_quote(UNDEFINED_FILL_COLOR)} ];")

    if have_final_state:
        lines.append(_END_NODE)
        lines.append("")

    lines.append("}")
    return "\n".join(lines) + "\n"
