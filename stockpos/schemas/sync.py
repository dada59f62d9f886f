from typing import Any, Dict, Literal

from pydantic import BaseModel


# Wire format of a sync push
class SyncPayload(BaseModel):
    products: Dict[str, Dict[str, Any]]
    sales: Dict[str, Dict[str, Any]]
    timestamp: int


class SyncResult(BaseModel):
    delivered: bool
    mode: Literal["best_effort", "outbox"]
    pending: int = 0
