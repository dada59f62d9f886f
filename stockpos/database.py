# stockpos/database.py
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

# Revision matching the layout of stores written before ind_active existed
FIRST_REVISION = "3f1c2a9b7d10"


def create_db_engine(database_url: str) -> Engine:
    # SQLite needs the thread check disabled: sessions are used from worker threads
    if "sqlite" in database_url:
        connect_args = {"check_same_thread": False}
    else:
        connect_args = {}
    return create_engine(database_url, connect_args=connect_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def alembic_config(database_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", "stockpos:alembic")
    cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


def init_db(engine: Engine) -> None:
    """Bring the database to the latest migration.

    A store file created without migrations is stamped with the revision its
    layout matches first, so upgrading never recreates existing tables.
    """
    db_file = engine.url.database
    if engine.url.get_backend_name() == "sqlite" and db_file and db_file != ":memory:":
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    cfg = alembic_config(engine.url.render_as_string(hide_password=False))
    with engine.begin() as connection:
        cfg.attributes["connection"] = connection
        inspector = inspect(connection)
        tables = set(inspector.get_table_names())
        if "products" in tables and "alembic_version" not in tables:
            columns = {c["name"] for c in inspector.get_columns("products")}
            command.stamp(cfg, "head" if "ind_active" in columns else FIRST_REVISION)
        command.upgrade(cfg, "head")
