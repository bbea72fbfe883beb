"""Machine type whose instances are rows of one SQL table."""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import MetaData, Select, Table, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement

from smalldb.core.config import get_config
from smalldb.core.exceptions import DatabaseError, InvalidIdError, MachineConfigurationError, NotFoundError
from smalldb.database.db import get_engine
from smalldb.machine.base import Machine
from smalldb.machine.contracts import InstanceId, is_empty_id
from smalldb.machine.description import MachineDescription, load_machine_description

if TYPE_CHECKING:
    from smalldb.backend import Backend

logger = logging.getLogger(__name__)

_STATE_COLUMN = "_smalldb_state"


class SqlMachine(Machine):
    """State and properties are loaded with SELECTs over :attr:`table`.

    Subclasses name the table, say how the state is computed from a row
    (:meth:`state_select`) and implement the transition methods. The
    description comes from the ``definition`` / ``definition_file``
    registration arguments or from the :attr:`definition` class attribute.
    """

    table: ClassVar[str] = ""
    definition: ClassVar[Mapping[str, Any] | None] = None

    def __init__(self, backend: "Backend | None", machine_type: str, **args: Any) -> None:
        self.db_engine: Engine = backend.engine if backend is not None else get_engine()
        self._table: Table | None = None
        self._pk_columns: list[str] | None = None
        super().__init__(backend, machine_type, **args)

    def initialize_machine(self, **args: Any) -> MachineDescription:
        if not self.table:
            raise MachineConfigurationError(f"Machine {self.machine_type} does not define its table.")
        if args.get("definition_file"):
            path = Path(args["definition_file"])
            if not path.is_absolute():
                path = Path(get_config().MACHINE_DEFINITIONS_DIR) / path
            return load_machine_description(path)
        definition = args.get("definition", self.definition)
        if definition is None:
            raise MachineConfigurationError(f"Machine {self.machine_type} has no definition.")
        return MachineDescription.from_config(definition)

    def check_permissions(self, permissions: Any, id: InstanceId) -> bool:
        return True

    def flush_cache(self) -> None:
        self._table = None
        self._pk_columns = None

    def get_table(self) -> Table:
        if self._table is None:
            try:
                self._table = Table(self.table, MetaData(), autoload_with=self.db_engine)
            except SQLAlchemyError as exc:
                raise DatabaseError(f"Cannot load table {self.table}: {exc}") from exc
        return self._table

    def describe_id(self) -> list[str]:
        """Columns of the primary key, in key order.

        A simple key gives something like ``["id"]``.
        """
        if self._pk_columns is None:
            constraint = inspect(self.db_engine).get_pk_constraint(self.table)
            columns = list(constraint.get("constrained_columns") or [])
            if not columns:
                raise MachineConfigurationError(f"Table {self.table} has no primary key.")
            self._pk_columns = columns
        return self._pk_columns

    def create_query(self) -> Select:
        return select().select_from(self.get_table())

    @abstractmethod
    def state_select(self, table: Table) -> ColumnElement:
        """Single column expression evaluating to the state of a row."""
        raise NotImplementedError

    def properties_select(self, table: Table) -> list[ColumnElement]:
        return list(table.c)

    def where_primary_key(self, query: Select, id: InstanceId) -> Select:
        """Restrict ``query`` to the row identified by ``id``."""
        if is_empty_id(id):
            raise InvalidIdError("Empty ID.")
        values = tuple(id) if isinstance(id, (tuple, list)) else (id,)
        columns = self.describe_id()
        if len(values) != len(columns):
            raise InvalidIdError("Malformed ID.")
        table = self.get_table()
        for column, value in zip(columns, values):
            query = query.where(table.c[column] == value)
        return query

    def get_state(self, id: InstanceId) -> str:
        if is_empty_id(id):
            return ""
        table = self.get_table()
        query = self.where_primary_key(
            self.create_query().add_columns(self.state_select(table).label(_STATE_COLUMN)), id
        ).limit(1)
        try:
            with self.db_engine.connect() as conn:
                state = conn.execute(query).scalar()
        except SQLAlchemyError as exc:
            logger.exception("machine.get_state.failed", extra={"event": "machine.get_state.failed"})
            raise DatabaseError(str(exc)) from exc
        return "" if state is None else str(state)

    def get_properties(self, id: InstanceId) -> dict[str, Any]:
        properties, _ = self._load_properties(id, with_state=False)
        return properties

    def get_properties_with_state(self, id: InstanceId) -> tuple[dict[str, Any], str]:
        """Properties and state of the instance loaded by a single query."""
        return self._load_properties(id, with_state=True)

    def _load_properties(self, id: InstanceId, with_state: bool) -> tuple[dict[str, Any], str]:
        if is_empty_id(id):
            raise NotFoundError("State machine instance does not exist.")
        table = self.get_table()
        query = self.create_query().add_columns(*self.properties_select(table))
        if with_state:
            query = query.add_columns(self.state_select(table).label(_STATE_COLUMN))
        query = self.where_primary_key(query, id).limit(1)
        try:
            with self.db_engine.connect() as conn:
                row = conn.execute(query).mappings().first()
        except SQLAlchemyError as exc:
            logger.exception("machine.get_properties.failed", extra={"event": "machine.get_properties.failed"})
            raise DatabaseError(str(exc)) from exc
        if row is None:
            raise NotFoundError("State machine instance not found.")
        properties = dict(row)
        state = properties.pop(_STATE_COLUMN, None) if with_state else None
        return properties, "" if state is None else str(state)
