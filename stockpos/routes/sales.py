# stockpos/routes/sales.py
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from stockpos.context import AppContext
from stockpos.deps import get_context, get_db, get_store
from stockpos.schemas import sale as sale_schemas
from stockpos.services import inventory
from stockpos.store import TableStore
from stockpos.utils.audit import write_log

router = APIRouter(tags=["Sales"])


@router.get("/sales", response_model=sale_schemas.SaleList)
async def list_sales(
    period: Optional[sale_schemas.SalePeriod] = Query(None, description="day, week ou month"),
    store: TableStore = Depends(get_store),
):
    items = inventory.list_sales(store, period)
    return {"items": items, "total": len(items), "period": period}


@router.post("/sales", response_model=sale_schemas.SaleCreated, status_code=201)
async def record_sale(
    payload: sale_schemas.SaleCreate,
    background_tasks: BackgroundTasks,
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    try:
        ids = inventory.record_sale(context.store, payload.items)
    except inventory.ProductNotFound as e:
        await run_in_threadpool(
            write_log, db, action="SALE_CREATE", resource="sales", status="FAIL",
            message=str(e), meta={"productId": e.product_id},
        )
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if not ids:
        raise HTTPException(status_code=400, detail="Sale has no items with quantity")

    total = inventory.cart_total(context.store, payload.items)
    await run_in_threadpool(
        write_log, db, action="SALE_CREATE", resource="sales", meta={"ids": ids, "total": total}
    )
    background_tasks.add_task(context.sync.push)
    return {"ids": ids, "total": total}
