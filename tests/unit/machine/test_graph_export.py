from __future__ import annotations

from smalldb.machine.description import Action, MachineDescription, State, Transition
from smalldb.machine.graph import export_dot


def test_export_is_deterministic(article_definition):
    first = export_dot(MachineDescription.from_config(article_definition))
    second = export_dot(MachineDescription.from_config(article_definition))

    assert first == second
    assert first.startswith("#\n# State machine visualization\n")
    assert first.endswith("}\n")


def test_states_become_nodes_and_transitions_edges(article_definition):
    dot = export_dot(MachineDescription.from_config(article_definition))
    lines = dot.splitlines()

    assert '\t"s_draft" [ label="Draft", fillcolor="#ffffcc" ];' in lines
    assert '\t"s_published" [ label="Published", fillcolor="#ccffcc" ];' in lines
    assert '\tBEGIN -> "s_draft" [ label="Create" ];' in lines
    assert '\t"s_draft" -> "s_published" [ label="Publish" ];' in lines
    assert '\t"s_draft" -> "s_draft" [ label="edit" ];' in lines
    assert '\t"s_draft" -> END [ label="Delete" ];' in lines
    assert any(line.startswith("\tEND [") for line in lines)
    assert "(undefined)" not in dot


def test_end_node_only_when_some_target_is_empty():
    description = MachineDescription.from_config(
        {
            "states": {"draft": {}},
            "actions": {"create": {"transitions": {"": {"targets": ["draft"]}}}},
        }
    )

    dot = export_dot(description)

    assert "END" not in dot
    assert '\t"s_draft" [ label="draft", fillcolor="#eeeeee" ];' in dot.splitlines()


def test_undeclared_states_are_flagged_not_fatal():
    description = MachineDescription.from_config(
        {
            "states": {"draft": {}},
            "actions": {"archive": {"transitions": {"draft": {"targets": ["archived"]}}}},
        }
    )

    lines = export_dot(description).splitlines()

    assert '\t"s_draft" -> "s_archived" [ label="archive" ];' in lines
    assert '\t"s_archived" [ label="archived\\n(undefined)", fillcolor="#ffccaa" ];' in lines


def test_malformed_description_still_exports():
    description = MachineDescription(
        states={},
        actions={"broken": Action("broken", transitions={"ghost": Transition(targets=None)})},
    )

    lines = export_dot(description).splitlines()

    assert '\t"s_ghost" [ label="ghost\\n(undefined)", fillcolor="#ffccaa" ];' in lines


def test_labels_are_escaped():
    description = MachineDescription(
        states={"odd": State("odd", label='Say "hi"')},
        actions={},
    )

    assert '\t"s_odd" [ label="Say \\"hi\\"", fillcolor="#eeeeee" ];' in export_dot(description).splitlines()


def test_missing_target_is_drawn_as_end():
    description = MachineDescription(
        states={"draft": State("draft")},
        actions={"delete": Action("delete", transitions={"draft": Transition(targets=(None,))})},
    )

    dot = export_dot(description)

    assert '\t"s_draft" -> END [ label="delete" ];' in dot.splitlines()
    assert any(line.startswith("\tEND [") for line in dot.splitlines())
    assert "(undefined)" not in dot


def test_missing_source_is_drawn_as_begin():
    description = MachineDescription(
        states={"draft": State("draft")},
        actions={"create": Action("create", transitions={None: Transition(targets=("draft",))})},
    )

    dot = export_dot(description)

    assert '\tBEGIN -> "s_draft" [ label="create" ];' in dot.splitlines()
    assert "(undefined)" not in dot


def test_set_targets_are_exported_in_stable_order():
    description = MachineDescription(
        states={"a": State("a"), "b": State("b"), "c": State("c")},
        actions={"go": Action("go", transitions={"a": Transition(targets={"c", "b"})})},
    )

    lines = [line for line in export_dot(description).splitlines() if " -> " in line]

    assert lines == ['\t"s_a" -> "s_b" [ label="go" ];', '\t"s_a" -> "s_c" [ label="go" ];']
