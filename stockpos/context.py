# stockpos/context.py
import logging
from pathlib import Path
from typing import Optional

import httpx

from stockpos.api import HttpClient, RemoteApi, TokenStore
from stockpos.config import Settings, get_settings
from stockpos.database import create_db_engine, create_session_factory, init_db
from stockpos.persistence import Persister
from stockpos.store import TableStore
from stockpos.sync import Outbox, SyncClient

logger = logging.getLogger(__name__)


class AppContext:
    """Everything one running instance needs, built from one Settings object.

    Nothing touches the disk or network until start().
    """

    def __init__(
        self,
        settings: Settings,
        *,
        sync_transport: Optional[httpx.AsyncBaseTransport] = None,
        api_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.images_dir = Path(settings.IMAGES_DIR)

        self.engine = create_db_engine(settings.database_url)
        self.session_factory = create_session_factory(self.engine)

        self.store = TableStore()
        self.persister = Persister(self.store, self.session_factory)

        outbox = None
        if settings.SYNC_MODE == "outbox":
            outbox = Outbox(
                self.session_factory,
                retry_base=settings.SYNC_RETRY_BASE_SECONDS,
                retry_max=settings.SYNC_RETRY_MAX_SECONDS,
            )
        self.sync = SyncClient(
            self.store,
            settings.EXPO_PUBLIC_SYNC_URL,
            timeout=settings.SYNC_TIMEOUT,
            transport=sync_transport,
            outbox=outbox,
        )

        self.tokens = TokenStore(settings.TOKEN_FILE)
        self.http = HttpClient(settings.EXPO_PUBLIC_API_BASE, self.tokens, transport=api_transport)
        self.api = RemoteApi(self.http)
        self.started = False

    def start(self) -> None:
        if self.started:
            return
        init_db(self.engine)
        self.persister.start_auto_load()
        self.persister.start_auto_save()
        self.api.auth.initialize()
        self.started = True
        logger.info(f"Local store ready ({self.settings.DATABASE_PATH}), sync mode {self.settings.SYNC_MODE}")

    def close(self) -> None:
        if not self.started:
            return
        self.persister.stop()
        self.engine.dispose()
        self.started = False


def create_context(settings: Optional[Settings] = None, **kwargs) -> AppContext:
    return AppContext(settings or get_settings(), **kwargs)
