# stockpos/services/inventory.py
"""Catalog and sales operations over the local TableStore."""
import math
import time
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from stockpos.schemas.product import ProductCreate, ProductUpdate
from stockpos.schemas.sale import SaleItem
from stockpos.store import PRODUCTS, SALES, TableStore

REMOVED_PRODUCT = "Produto removido"
PERIODS = ("day", "week", "month")


class ProductNotFound(LookupError):
    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


def _new_id() -> str:
    return str(uuid.uuid4())


def _now_ms() -> int:
    return int(time.time() * 1000)


def is_active(row) -> bool:
    # Rows not yet backfilled count as active
    return row.get("ind_active") is not False


# ---- PRODUCTS ----
def create_product(store: TableStore, data: ProductCreate) -> str:
    product_id = _new_id()
    cells = data.model_dump(exclude_none=True)
    cells["ind_active"] = True
    store.set_row(PRODUCTS, product_id, cells)
    return product_id


def update_product(store: TableStore, product_id: str, data: ProductUpdate) -> None:
    current = store.get_row(PRODUCTS, product_id)
    if current is None:
        raise ProductNotFound(product_id)

    cells = data.model_dump(exclude_none=True)
    # Picture and soft-delete flag are managed by their own operations
    if "image" not in cells and current.get("image"):
        cells["image"] = current["image"]
    cells["ind_active"] = is_active(current)
    store.set_row(PRODUCTS, product_id, cells)


def deactivate_product(store: TableStore, product_id: str) -> None:
    if not store.has_row(PRODUCTS, product_id):
        raise ProductNotFound(product_id)
    store.set_cell(PRODUCTS, product_id, "ind_active", False)


def get_product(store: TableStore, product_id: str) -> Dict[str, Any]:
    row = store.get_row(PRODUCTS, product_id)
    if row is None:
        raise ProductNotFound(product_id)
    return {"id": product_id, **row}


def list_active_products(store: TableStore, query: Optional[str] = None) -> List[Dict[str, Any]]:
    q = (query or "").strip().lower()
    items = []
    for product_id, row in store.get_table(PRODUCTS).items():
        if not is_active(row):
            continue
        if q and q not in str(row.get("description", "")).lower() and q not in str(row.get("barcode", "")).lower():
            continue
        items.append({"id": product_id, **row})
    return items


def find_by_barcode(store: TableStore, code: str) -> Optional[Dict[str, Any]]:
    for product_id, row in store.get_table(PRODUCTS).items():
        if is_active(row) and str(row.get("barcode")) == str(code):
            return {"id": product_id, **row}
    return None


# ---- SALES ----
def record_sale(store: TableStore, items: Iterable[SaleItem], now_ms: Optional[int] = None) -> List[str]:
    """Insert one sale row per cart line and decrement stock, all or nothing.

    Stock is floored at zero. Lines with a quantity of zero or less are
    skipped. A non-finite quantity raises ValueError and an unknown or
    deactivated product raises ProductNotFound, both before anything changes.
    """
    lines = []
    for item in items:
        qty = float(item.quantity or 0)
        if not math.isfinite(qty):
            raise ValueError(f"Invalid quantity for product {item.product_id}")
        if qty > 0:
            lines.append((item.product_id, qty))

    timestamp = now_ms if now_ms is not None else _now_ms()
    sale_ids = []
    with store.transaction():
        for product_id, qty in lines:
            product = store.get_row(PRODUCTS, product_id)
            if product is None or not is_active(product):
                raise ProductNotFound(product_id)

            sale_id = _new_id()
            store.set_row(SALES, sale_id, {"productId": product_id, "quantity": qty, "timestamp": timestamp})
            current = float(store.get_cell(PRODUCTS, product_id, "quantity") or 0)
            store.set_cell(PRODUCTS, product_id, "quantity", max(current - qty, 0))
            sale_ids.append(sale_id)
    return sale_ids


def cart_total(store: TableStore, items: Iterable[SaleItem]) -> float:
    total = 0.0
    for item in items:
        price = float(store.get_cell(PRODUCTS, item.product_id, "price") or 0)
        total += price * max(float(item.quantity or 0), 0)
    return total


def period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """Local start of the current day, ISO week (Monday) or month."""
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period}")
    now = now or datetime.now()
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "day":
        return day
    if period == "week":
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def list_sales(store: TableStore, period: Optional[str] = None, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    since_ms = int(period_start(period, now).timestamp() * 1000) if period else None
    products = store.get_table(PRODUCTS)

    entries = []
    for sale_id, sale in store.get_table(SALES).items():
        timestamp = int(sale.get("timestamp") or 0)
        if since_ms is not None and timestamp < since_ms:
            continue

        # Deactivated products still resolve; only a missing row is "removed"
        product = products.get(str(sale.get("productId")))
        price = float(product.get("price") or 0) if product is not None else 0.0
        quantity = float(sale.get("quantity") or 0)
        entries.append({
            "id": sale_id,
            "productId": sale.get("productId"),
            "quantity": quantity,
            "timestamp": timestamp,
            "description": product.get("description", REMOVED_PRODUCT) if product is not None else REMOVED_PRODUCT,
            "barcode": product.get("barcode") if product is not None else None,
            "price": price,
            "subtotal": price * quantity,
        })

    entries.sort(key=lambda e: e["timestamp"], reverse=True)
    return entries
