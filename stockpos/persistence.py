# stockpos/persistence.py
"""Tabular mirroring of the TableStore to the SQLite file.

Each store table maps 1:1 to a database table, each cell to a column of the
same name. A NULL column is read back as an absent cell.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, FrozenSet, Iterable, Optional, Set

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockpos.models.product import ProductRow
from stockpos.models.sale import SaleRow
from stockpos.store import PRODUCTS, SALES, TableStore

logger = logging.getLogger(__name__)

TABLE_MODELS = {
    PRODUCTS: ProductRow,
    SALES: SaleRow,
}


def _cell_columns(model) -> Dict[str, str]:
    """Map column names (cell names) to mapped attribute keys."""
    return {prop.columns[0].name: prop.key for prop in inspect(model).column_attrs}


def backfill_active_flag(store: TableStore) -> int:
    """Set ind_active=True on every product row that lacks it.

    Returns the number of rows changed; a second pass changes nothing.
    """
    missing = [
        product_id
        for product_id, row in store.get_table(PRODUCTS).items()
        if row.get("ind_active") is None
    ]
    if missing:
        with store.transaction():
            for product_id in missing:
                store.set_cell(PRODUCTS, product_id, "ind_active", True)
        logger.info(f"Backfilled ind_active on {len(missing)} product(s)")
    return len(missing)


class Persister:
    def __init__(self, store: TableStore, session_factory: sessionmaker):
        self.store = store
        self.session_factory = session_factory
        self._listener_id: Optional[int] = None
        self._dirty: Set[str] = set()
        self._loading = False
        self._executor: Optional[ThreadPoolExecutor] = None
        self._last_save: Optional[Future] = None

    # =========================
    # LOAD
    # =========================
    def load(self) -> None:
        tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        with self.session_factory() as db:
            for name, model in TABLE_MODELS.items():
                tables[name] = self._read_table(db, model)

        self._loading = True
        try:
            self.store.set_tables(tables)
        finally:
            self._loading = False
        logger.info(
            f"Loaded {len(tables[PRODUCTS])} product(s) and {len(tables[SALES])} sale(s)"
        )

    @staticmethod
    def _read_table(db: Session, model) -> Dict[str, Dict[str, Any]]:
        columns = _cell_columns(model)
        rows = {}
        for obj in db.query(model).all():
            cells = {}
            for column, attr in columns.items():
                if column == "id":
                    continue
                value = getattr(obj, attr)
                if value is not None:
                    cells[column] = value
            rows[obj.id] = cells
        return rows

    def start_auto_load(self) -> int:
        """Load both tables, then run the active-flag migration pass."""
        self.load()
        backfilled = backfill_active_flag(self.store)
        if backfilled:
            self._dirty.add(PRODUCTS)
        return backfilled

    # =========================
    # SAVE
    # =========================
    def start_auto_save(self) -> None:
        """Persist every later commit from a single background writer thread.

        Commits hand over immutable table snapshots, so the writer stores
        exactly the state of each commit, in commit order, and the caller
        never waits on the database.
        """
        if self._listener_id is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stockpos-save")
            self._listener_id = self.store.add_tables_listener(self._on_commit)
        if self._dirty:
            self.save(set())

    def stop(self) -> None:
        """Unsubscribe and wait for queued saves to finish."""
        if self._listener_id is not None:
            self.store.remove_listener(self._listener_id)
            self._listener_id = None
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self._last_save = None

    def wait(self) -> None:
        """Block until every save queued so far has run."""
        if self._last_save is not None:
            self._last_save.result()

    def _on_commit(self, changed: FrozenSet[str], store: TableStore) -> None:
        if self._loading or self._executor is None:
            return
        self._last_save = self._executor.submit(self._save_snapshots, changed, self._snapshots())

    def _snapshots(self) -> Dict[str, Any]:
        return {name: self.store.get_table(name) for name in TABLE_MODELS}

    def save(self, tables: Iterable[str]) -> bool:
        """Write the given tables now, on the calling thread."""
        return self._save_snapshots(tables, self._snapshots())

    def _save_snapshots(self, tables: Iterable[str], snapshots: Dict[str, Any]) -> bool:
        # Tables that failed to save earlier are retried along with this commit
        pending = (set(tables) | self._dirty) & set(TABLE_MODELS)
        if not pending:
            return True
        try:
            with self.session_factory() as db, db.begin():
                for name in sorted(pending):
                    self._write_table(db, TABLE_MODELS[name], snapshots[name])
        except SQLAlchemyError as e:
            self._dirty = pending
            logger.warning(f"Saving {sorted(pending)} failed, will retry on next change: {e}")
            return False
        self._dirty = set()
        return True

    @staticmethod
    def _write_table(db: Session, model, rows) -> None:
        columns = _cell_columns(model)
        existing = {row_id for (row_id,) in db.query(model.id).all()}
        stale = existing - set(rows)
        if stale:
            db.query(model).filter(model.id.in_(stale)).delete(synchronize_session=False)

        for row_id, cells in rows.items():
            values = {"id": row_id}
            for column, attr in columns.items():
                if column != "id":
                    values[attr] = cells.get(column)
            unknown = set(cells) - set(columns)
            if unknown:
                logger.debug(f"Dropping unmapped cells {sorted(unknown)} of {model.__tablename__}/{row_id}")
            db.merge(model(**values))
