from __future__ import annotations

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine
from sqlalchemy.pool import StaticPool

from smalldb.backend import Backend
from smalldb.machine.sql_machine import SqlMachine

ARTICLE_DEFINITION = {
    "states": {
        "draft": {"label": "Draft", "description": "Not visible to readers.", "color": "#ffffcc"},
        "published": {"label": "Published", "color": "#ccffcc"},
    },
    "actions": {
        "create": {
            "label": "Create",
            "returns": "new_id",
            "transitions": {"": {"targets": ["draft"]}},
            "block": {
                "inputs": {"title": None},
                "outputs": {"id": "id", "article": "properties", "state": "state"},
            },
        },
        "publish": {
            "label": "Publish",
            "transitions": {"draft": {"targets": ["published"], "permissions": "editor"}},
            "block": {
                "inputs": {"id": None},
                "outputs": {"ok": "return_value", "state": "state"},
            },
        },
        "edit": {
            "transitions": {
                "draft": {"targets": ["draft"]},
                "published": {"targets": ["published"]},
            },
        },
        "delete": {
            "label": "Delete",
            "transitions": {"draft": {"targets": [""]}},
        },
    },
}

metadata = MetaData()

articles = Table(
    "articles",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String(200), nullable=False),
    Column("status", String(20), nullable=False),
)

article_tags = Table(
    "article_tags",
    metadata,
    Column("article_id", Integer, primary_key=True),
    Column("tag", String(50), primary_key=True),
    Column("status", String(20), nullable=False),
)


class ArticleMachine(SqlMachine):
    table = "articles"
    definition = ARTICLE_DEFINITION

    def __init__(self, backend, machine_type, **args):
        self.granted = set(args.pop("granted", {"editor"}))
        super().__init__(backend, machine_type, **args)

    def state_select(self, table):
        return table.c.status

    def check_permissions(self, permissions, id):
        return permissions in self.granted

    def create(self, id, title):
        with self.db_engine.begin() as conn:
            result = conn.execute(articles.insert().values(title=title, status="draft"))
        return result.inserted_primary_key[0]

    def publish(self, id):
        with self.db_engine.begin() as conn:
            conn.execute(articles.update().where(articles.c.id == id).values(status="published"))
        return True

    def edit(self, id, title):
        with self.db_engine.begin() as conn:
            conn.execute(articles.update().where(articles.c.id == id).values(title=title))
        return title

    def delete(self, id):
        with self.db_engine.begin() as conn:
            conn.execute(articles.delete().where(articles.c.id == id))


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def backend(sqlite_engine):
    backend = Backend(engine=sqlite_engine)
    backend.register_machine_type("article", ArticleMachine)
    return backend


@pytest.fixture
def article_machine(backend) -> ArticleMachine:
    return backend.get_machine("article")


@pytest.fixture
def article_definition():
    return ARTICLE_DEFINITION


@pytest.fixture
def article_machine_class():
    return ArticleMachine


@pytest.fixture
def article_tags_table():
    return article_tags
