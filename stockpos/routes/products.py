# stockpos/routes/products.py
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from stockpos.context import AppContext
from stockpos.deps import get_context, get_db, get_store
from stockpos.schemas import product as product_schemas
from stockpos.services import inventory
from stockpos.store import PRODUCTS, TableStore
from stockpos.utils.audit import write_log
from stockpos.utils.images import ALLOWED_CONTENT_TYPES, remove_image, save_image

router = APIRouter(tags=["Products"])


def _get_or_404(store: TableStore, product_id: str) -> dict:
    try:
        return inventory.get_product(store, product_id)
    except inventory.ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")


# =========================
# LISTA PRODUTOS
# =========================
@router.get("/products", response_model=product_schemas.ProductList)
async def list_products(
    q: Optional[str] = Query(None, description="Busca por descrição ou código de barras"),
    store: TableStore = Depends(get_store),
):
    items = inventory.list_active_products(store, q)
    return {"items": items, "total": len(items)}


@router.get("/products/barcode/{code}", response_model=product_schemas.ProductOut)
async def get_product_by_barcode(code: str, store: TableStore = Depends(get_store)):
    product = inventory.find_by_barcode(store, code)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# =========================
# PRODUTO
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
async def get_product(product_id: str, store: TableStore = Depends(get_store)):
    return _get_or_404(store, product_id)


@router.post("/products", response_model=product_schemas.ProductOut, status_code=201)
async def create_product(
    payload: product_schemas.ProductCreate,
    background_tasks: BackgroundTasks,
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    product_id = inventory.create_product(context.store, payload)
    await run_in_threadpool(write_log, db, action="PRODUCT_CREATE", resource="products", meta={"id": product_id})
    background_tasks.add_task(context.sync.push)
    return _get_or_404(context.store, product_id)


@router.put("/products/{product_id}", response_model=product_schemas.ProductOut)
async def update_product(
    product_id: str,
    payload: product_schemas.ProductUpdate,
    background_tasks: BackgroundTasks,
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    try:
        inventory.update_product(context.store, product_id, payload)
    except inventory.ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    await run_in_threadpool(write_log, db, action="PRODUCT_UPDATE", resource="products", meta={"id": product_id})
    background_tasks.add_task(context.sync.push)
    return _get_or_404(context.store, product_id)


# Soft delete: the row stays so past sales keep resolving
@router.delete("/products/{product_id}", response_model=product_schemas.ProductOut)
async def deactivate_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    try:
        inventory.deactivate_product(context.store, product_id)
    except inventory.ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    await run_in_threadpool(write_log, db, action="PRODUCT_DEACTIVATE", resource="products", meta={"id": product_id})
    background_tasks.add_task(context.sync.push)
    return _get_or_404(context.store, product_id)


# =========================
# FOTO
# =========================
@router.post("/products/{product_id}/image", response_model=product_schemas.ProductOut)
async def upload_product_image(
    product_id: str,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    product = _get_or_404(context.store, product_id)
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid file type")

    try:
        saved = await run_in_threadpool(save_image, file.file, file.content_type, context.images_dir)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Could not save image: {e}")

    context.store.set_cell(PRODUCTS, product_id, "image", str(saved))
    await run_in_threadpool(remove_image, product.get("image"), context.images_dir)

    await run_in_threadpool(write_log, db, action="PRODUCT_IMAGE", resource="products", meta={"id": product_id, "image": saved.name})
    background_tasks.add_task(context.sync.push)
    return _get_or_404(context.store, product_id)
