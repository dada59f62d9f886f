# stockpos/deps.py
from fastapi import Depends, Request

from stockpos.context import AppContext
from stockpos.store import TableStore


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_store(context: AppContext = Depends(get_context)) -> TableStore:
    return context.store


def get_db(context: AppContext = Depends(get_context)):
    db = context.session_factory()
    try:
        yield db
    finally:
        db.close()
