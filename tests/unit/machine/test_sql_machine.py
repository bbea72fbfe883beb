from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy import insert

from smalldb.core.exceptions import (
    IllegalTransitionError,
    InvalidIdError,
    MachineConfigurationError,
    NotFoundError,
    PermissionDeniedError,
)
from smalldb.machine.description import ReturnSemantics
from smalldb.machine.sql_machine import SqlMachine


def test_create_publish_and_delete_article(article_machine):
    article_id, returns = article_machine.invoke_transition(None, "create", "Hello")
    assert returns is ReturnSemantics.NEW_ID
    assert article_machine.get_state(article_id) == "draft"

    assert article_machine.invoke_transition(article_id, "publish") == (True, ReturnSemantics.VALUE)
    assert article_machine.get_state(article_id) == "published"

    with pytest.raises(IllegalTransitionError):
        article_machine.invoke_transition(article_id, "delete")


def test_delete_ends_in_initial_state(article_machine):
    article_id, _ = article_machine.invoke_transition(None, "create", "Short lived")

    article_machine.invoke_transition(article_id, "delete")

    assert article_machine.get_state(article_id) == ""
    with pytest.raises(NotFoundError):
        article_machine.get_properties(article_id)


def test_permissions_are_checked(backend, article_machine_class):
    backend.register_machine_type("restricted_article", article_machine_class, granted=set())
    machine = backend.get_machine("restricted_article")
    article_id, _ = machine.invoke_transition(None, "create", "Locked")

    with pytest.raises(PermissionDeniedError):
        machine.invoke_transition(article_id, "publish")
    assert list(machine.available_transitions(article_id)) == ["edit", "delete"]


def test_get_state_of_missing_or_empty_id(article_machine):
    assert article_machine.get_state(None) == ""
    assert article_machine.get_state(()) == ""
    assert article_machine.get_state(999) == ""


def test_get_properties(article_machine):
    article_id, _ = article_machine.invoke_transition(None, "create", "Properties")

    assert article_machine.get_properties(article_id) == {"id": article_id, "title": "Properties", "status": "draft"}
    properties, state = article_machine.get_properties_with_state(article_id)
    assert properties["title"] == "Properties"
    assert state == "draft"


def test_get_properties_of_missing_instance(article_machine):
    with pytest.raises(NotFoundError):
        article_machine.get_properties(None)
    with pytest.raises(NotFoundError):
        article_machine.get_properties(12345)


def test_describe_id_and_malformed_ids(article_machine):
    assert article_machine.describe_id() == ["id"]

    with pytest.raises(InvalidIdError, match="Malformed"):
        article_machine.get_state((1, 2))


class TaggingMachine(SqlMachine):
    table = "article_tags"
    definition = {
        "states": {"proposed": {}, "approved": {}},
        "actions": {"approve": {"transitions": {"proposed": {"targets": ["approved"]}}}},
    }

    def state_select(self, table):
        return table.c.status

    def approve(self, id):
        article_id, tag = id
        table = self.get_table()
        with self.db_engine.begin() as conn:
            conn.execute(
                table.update()
                .where(table.c.article_id == article_id, table.c.tag == tag)
                .values(status="approved")
            )
        return True


def test_compound_primary_key(backend, sqlite_engine, article_tags_table):
    with sqlite_engine.begin() as conn:
        conn.execute(insert(article_tags_table).values(article_id=1, tag="python", status="proposed"))
    backend.register_machine_type("article_tag", TaggingMachine)
    machine = backend.get_machine("article_tag")

    assert machine.describe_id() == ["article_id", "tag"]
    assert machine.get_state((1, "python")) == "proposed"

    machine.invoke_transition((1, "python"), "approve")

    assert machine.get_state((1, "python")) == "approved"
    with pytest.raises(InvalidIdError):
        machine.get_state(1)


def test_definition_file_registration_argument(backend, tmp_path):
    path = tmp_path / "tags.json"
    path.write_text(
        '{"actions": {"approve": {"transitions": {"proposed": {"targets": ["approved", "rejected"]}}}}}',
        encoding="utf-8",
    )
    backend.register_machine_type("tag_from_file", TaggingMachine, definition_file=str(path))

    machine = backend.get_machine("tag_from_file")

    assert machine.describe_action("approve").transitions["proposed"].targets == ("approved", "rejected")


def test_missing_transition_method_fails_at_registration(backend):
    class Incomplete(SqlMachine):
        table = "articles"
        definition = {"actions": {"archive": {"transitions": {"published": {"targets": ["archived"]}}}}}

        def state_select(self, table):
            return table.c.status

    backend.register_machine_type("incomplete", Incomplete)

    with pytest.raises(MachineConfigurationError, match="archive"):
        backend.get_machine("incomplete")


def test_export_dot_from_machine(article_machine):
    assert 'BEGIN -> "s_draft"' in article_machine.export_dot()


def test_relative_definition_file_uses_definitions_dir(backend, tmp_path, monkeypatch):
    import smalldb.machine.sql_machine as sql_machine

    (tmp_path / "tags.json").write_text(
        '{"actions": {"approve": {"transitions": {"proposed": {"targets": ["approved"]}}}}}',
        encoding="utf-8",
    )
    monkeypatch.setattr(sql_machine, "get_config", lambda: SimpleNamespace(MACHINE_DEFINITIONS_DIR=str(tmp_path)))
    backend.register_machine_type("tag_relative", TaggingMachine, definition_file="tags.json")

    assert backend.get_machine("tag_relative").all_actions() == ["approve"]
