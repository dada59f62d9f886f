# stockpos/main.py
import asyncio
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from stockpos.context import AppContext, create_context
from stockpos.routes.products import router as products_router
from stockpos.routes.sales import router as sales_router
from stockpos.routes.sync import router as sync_router
from stockpos.utils.logs import configure_logging


# Serve with: uvicorn stockpos.main:create_app --factory
def create_app(context: Optional[AppContext] = None) -> FastAPI:
    context = context or create_context()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(context.settings.LOG_LEVEL)
        context.start()

        # Snapshots left undelivered by a previous run go out first
        retry_task = None
        if context.sync.outbox is not None:
            await context.sync.flush()
            retry_task = asyncio.create_task(
                context.sync.retry_forever(context.settings.SYNC_RETRY_INTERVAL_SECONDS)
            )
        try:
            yield
        finally:
            if retry_task is not None:
                retry_task.cancel()
                with suppress(asyncio.CancelledError):
                    await retry_task
            context.close()

    app = FastAPI(title="Stock POS API", version="1.0.0", lifespan=lifespan)
    app.state.context = context

    # Product pictures
    context.images_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/images", StaticFiles(directory=str(context.images_dir)), name="images")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(products_router)
    app.include_router(sales_router)
    app.include_router(sync_router)

    @app.get("/")
    async def read_root():
        return {"message": "Stock POS API running"}

    return app
