# stockpos/models/product.py
from sqlalchemy import Boolean, Column, Float, String

from stockpos.database import Base


# Model ProductRow
# Tabular mirror of the "products" table of the local store.
# Column names are the cell names, a NULL column is an absent cell.
class ProductRow(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    description = Column(String)

    cost = Column(Float)
    price = Column(Float)
    quantity = Column(Float)

    barcode = Column(String, index=True)
    # Local path or URI of the product picture
    image = Column(String)

    # Soft-delete flag, NULL for rows written before the column existed
    ind_active = Column(Boolean, nullable=True)
