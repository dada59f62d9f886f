# stockpos/store.py
"""In-memory table store with per-table change listeners.

Rows are plain dicts of cells and are never mutated in place: every write
installs a fresh dict. Snapshots handed to readers and listeners are read-only
proxies over those dicts, so they stay valid after later writes.
"""
import itertools
import logging
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

PRODUCTS = "products"
SALES = "sales"
TABLES = (PRODUCTS, SALES)

Row = Mapping[str, Any]
TableSnapshot = Mapping[str, Row]
TableListener = Callable[[str, TableSnapshot], None]
TablesListener = Callable[[FrozenSet[str], "TableStore"], None]


class UnknownTableError(KeyError):
    """Raised for a table name the store was not created with."""


class TableStore:
    def __init__(self, tables: Iterable[str] = TABLES):
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {name: {} for name in tables}
        self._table_listeners: Dict[int, Tuple[str, TableListener]] = {}
        self._tables_listeners: Dict[int, TablesListener] = {}
        self._listener_ids = itertools.count(1)

        # Transaction state
        self._depth = 0
        self._changed: set = set()
        self._backup: Dict[str, Dict[str, Dict[str, Any]]] = {}

    @property
    def table_names(self) -> Tuple[str, ...]:
        return tuple(self._tables)

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        try:
            return self._tables[table]
        except KeyError:
            raise UnknownTableError(table) from None

    def _writable(self, table: str) -> Dict[str, Dict[str, Any]]:
        rows = self._table(table)
        # Shallow copy is enough to roll back: row dicts are replaced, never edited
        if table not in self._backup:
            self._backup[table] = dict(rows)
        self._changed.add(table)
        return rows

    # ---- READS ----
    def get_table(self, table: str) -> TableSnapshot:
        rows = self._table(table)
        return MappingProxyType({row_id: MappingProxyType(row) for row_id, row in rows.items()})

    def get_tables(self) -> Dict[str, TableSnapshot]:
        return {name: self.get_table(name) for name in self._tables}

    def get_row(self, table: str, row_id: str) -> Optional[Row]:
        row = self._table(table).get(row_id)
        return MappingProxyType(row) if row is not None else None

    def get_cell(self, table: str, row_id: str, field: str) -> Any:
        row = self._table(table).get(row_id)
        return None if row is None else row.get(field)

    def has_row(self, table: str, row_id: str) -> bool:
        return row_id in self._table(table)

    # ---- WRITES ----
    def set_row(self, table: str, row_id: str, fields: Mapping[str, Any]) -> None:
        with self.transaction():
            self._writable(table)[row_id] = dict(fields)

    def set_cell(self, table: str, row_id: str, field: str, value: Any) -> None:
        with self.transaction():
            rows = self._writable(table)
            row = dict(rows.get(row_id, {}))
            row[field] = value
            rows[row_id] = row

    def del_row(self, table: str, row_id: str) -> None:
        if row_id not in self._table(table):
            return
        with self.transaction():
            del self._writable(table)[row_id]

    def set_table(self, table: str, rows: Mapping[str, Mapping[str, Any]]) -> None:
        with self.transaction():
            current = self._writable(table)
            current.clear()
            current.update({row_id: dict(cells) for row_id, cells in rows.items()})

    def set_tables(self, tables: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> None:
        with self.transaction():
            for name, rows in tables.items():
                self.set_table(name, rows)

    @contextmanager
    def transaction(self) -> Iterator["TableStore"]:
        """Group writes into one commit.

        Listeners are notified once when the outermost block exits cleanly.
        If it raises, every table touched inside is restored and nobody is
        notified. Nested blocks join the outermost one.
        """
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self._commit()

    def _rollback(self) -> None:
        for name, rows in self._backup.items():
            self._tables[name] = rows
        self._backup = {}
        self._changed = set()

    def _commit(self) -> None:
        changed = frozenset(self._changed)
        self._backup = {}
        self._changed = set()
        if changed:
            self._notify(changed)

    # ---- LISTENERS ----
    def add_table_listener(self, table: str, callback: TableListener) -> int:
        self._table(table)
        listener_id = next(self._listener_ids)
        self._table_listeners[listener_id] = (table, callback)
        return listener_id

    def add_tables_listener(self, callback: TablesListener) -> int:
        listener_id = next(self._listener_ids)
        self._tables_listeners[listener_id] = callback
        return listener_id

    def remove_listener(self, listener_id: int) -> None:
        self._table_listeners.pop(listener_id, None)
        self._tables_listeners.pop(listener_id, None)

    def _notify(self, changed: FrozenSet[str]) -> None:
        logger.debug(f"Store commit: {sorted(changed)}")
        for table, callback in list(self._table_listeners.values()):
            if table in changed:
                callback(table, self.get_table(table))
        for callback in list(self._tables_listeners.values()):
            callback(changed, self)
