from stockpos.models.log import Log
from stockpos.models.outbox import OutboxEntry
from stockpos.models.product import ProductRow
from stockpos.models.sale import SaleRow

__all__ = ["Log", "OutboxEntry", "ProductRow", "SaleRow"]
