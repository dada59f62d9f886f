# stockpos/routes/sync.py
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from stockpos.context import AppContext
from stockpos.deps import get_context, get_db
from stockpos.schemas.sync import SyncPayload, SyncResult
from stockpos.utils.audit import write_log

router = APIRouter(prefix="/sync", tags=["Sync"])


async def _pending(context: AppContext) -> int:
    if context.sync.outbox is None:
        return 0
    return await run_in_threadpool(context.sync.outbox.pending)


@router.get("/payload", response_model=SyncPayload)
async def get_payload(context: AppContext = Depends(get_context)):
    return context.sync.build_payload()


@router.get("", response_model=SyncResult)
async def sync_status(context: AppContext = Depends(get_context)):
    pending = await _pending(context)
    return {"delivered": pending == 0, "mode": context.settings.SYNC_MODE, "pending": pending}


# Manual push, same path as the automatic one after each mutation
@router.post("", response_model=SyncResult)
async def push_now(context: AppContext = Depends(get_context), db: Session = Depends(get_db)):
    delivered = await context.sync.push()
    await run_in_threadpool(
        write_log,
        db,
        action="SYNC_PUSH",
        resource="sync",
        status="SUCCESS" if delivered else "FAIL",
        meta={"url": context.sync.url},
    )
    return {"delivered": delivered, "mode": context.settings.SYNC_MODE, "pending": await _pending(context)}
