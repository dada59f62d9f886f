import threading

from sqlalchemy.exc import OperationalError

from stockpos.database import create_db_engine, create_session_factory, init_db
from stockpos.models import ProductRow, SaleRow
from stockpos.persistence import Persister, backfill_active_flag
from stockpos.store import PRODUCTS, SALES, TableStore


def _session_factory(tmp_path, name="stock.db"):
    engine = create_db_engine(f"sqlite:///{tmp_path / name}")
    init_db(engine)
    return create_session_factory(engine)


def test_missing_file_starts_empty(tmp_path):
    store = TableStore()
    persister = Persister(store, _session_factory(tmp_path))

    assert persister.start_auto_load() == 0
    assert store.get_table(PRODUCTS) == {}
    assert store.get_table(SALES) == {}


def test_mutations_survive_restart(tmp_path):
    factory = _session_factory(tmp_path)
    store = TableStore()
    persister = Persister(store, factory)
    persister.start_auto_load()
    persister.start_auto_save()

    store.set_row(PRODUCTS, "p1", {"description": "Widget", "price": 10.0, "quantity": 100.0, "barcode": "111", "ind_active": True})
    store.set_row(SALES, "s1", {"productId": "p1", "quantity": 3.0, "timestamp": 1700000000000})
    store.set_cell(PRODUCTS, "p1", "quantity", 97.0)
    persister.stop()

    reloaded = TableStore()
    Persister(reloaded, factory).start_auto_load()

    assert dict(reloaded.get_row(PRODUCTS, "p1")) == {
        "description": "Widget",
        "price": 10.0,
        "quantity": 97.0,
        "barcode": "111",
        "ind_active": True,
    }
    assert dict(reloaded.get_row(SALES, "s1")) == {"productId": "p1", "quantity": 3.0, "timestamp": 1700000000000}


def test_deleted_rows_are_removed_from_file(tmp_path):
    factory = _session_factory(tmp_path)
    store = TableStore()
    persister = Persister(store, factory)
    persister.start_auto_load()
    persister.start_auto_save()

    store.set_row(SALES, "s1", {"quantity": 1.0})
    store.set_row(SALES, "s2", {"quantity": 2.0})
    store.del_row(SALES, "s1")
    persister.wait()

    with factory() as db:
        assert [row.id for row in db.query(SaleRow).all()] == ["s2"]


def test_backfill_sets_missing_flag_once(store):
    store.set_row(PRODUCTS, "old", {"description": "Legacy"})
    store.set_row(PRODUCTS, "off", {"description": "Off", "ind_active": False})

    assert backfill_active_flag(store) == 1
    assert store.get_cell(PRODUCTS, "old", "ind_active") is True
    assert store.get_cell(PRODUCTS, "off", "ind_active") is False
    assert backfill_active_flag(store) == 0


def test_load_backfills_legacy_rows_and_saves_them(tmp_path):
    factory = _session_factory(tmp_path)
    with factory() as db:
        db.add(ProductRow(id="legacy", description="Legacy", quantity=5.0, barcode="9"))
        db.commit()

    store = TableStore()
    persister = Persister(store, factory)
    assert persister.start_auto_load() == 1
    persister.start_auto_save()

    assert store.get_cell(PRODUCTS, "legacy", "ind_active") is True
    with factory() as db:
        assert db.get(ProductRow, "legacy").ind_active is True

    # Second start finds nothing left to fix
    assert Persister(TableStore(), factory).start_auto_load() == 0


def test_failed_save_is_retried_on_next_change(tmp_path, monkeypatch):
    factory = _session_factory(tmp_path)
    store = TableStore()
    persister = Persister(store, factory)
    persister.start_auto_load()
    persister.start_auto_save()

    original = Persister._write_table
    failures = {"left": 1}

    def flaky(db, model, rows):
        if failures["left"]:
            failures["left"] -= 1
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))
        return original(db, model, rows)

    monkeypatch.setattr(Persister, "_write_table", staticmethod(flaky))

    store.set_row(PRODUCTS, "p1", {"description": "Widget"})
    persister.wait()
    assert store.get_cell(PRODUCTS, "p1", "description") == "Widget"
    with factory() as db:
        assert db.query(ProductRow).count() == 0

    # A later change to another table also flushes the pending products table
    store.set_row(SALES, "s1", {"productId": "p1", "quantity": 1.0})
    persister.wait()
    with factory() as db:
        assert db.get(ProductRow, "p1").description == "Widget"
        assert db.get(SaleRow, "s1").product_id == "p1"


def test_commits_are_written_off_the_calling_thread(tmp_path, monkeypatch):
    factory = _session_factory(tmp_path)
    store = TableStore()
    persister = Persister(store, factory)
    persister.start_auto_load()
    persister.start_auto_save()

    original = Persister._write_table
    writer_threads = set()

    def recording(db, model, rows):
        writer_threads.add(threading.get_ident())
        return original(db, model, rows)

    monkeypatch.setattr(Persister, "_write_table", staticmethod(recording))

    store.set_row(PRODUCTS, "p1", {"description": "Widget", "quantity": 5.0})
    store.set_cell(PRODUCTS, "p1", "quantity", 4.0)
    persister.stop()

    assert writer_threads and threading.get_ident() not in writer_threads
    with factory() as db:
        assert db.get(ProductRow, "p1").quantity == 4.0


def test_each_commit_is_saved_as_it_was(tmp_path):
    factory = _session_factory(tmp_path)
    store = TableStore()
    persister = Persister(store, factory)
    persister.start_auto_load()
    persister.start_auto_save()

    store.set_row(PRODUCTS, "p1", {"description": "Widget", "quantity": 5.0})
    persister.wait()
    with factory() as db:
        assert db.get(ProductRow, "p1").quantity == 5.0

    store.del_row(PRODUCTS, "p1")
    persister.stop()
    with factory() as db:
        assert db.get(ProductRow, "p1") is None
