# stockpos/models/sale.py
from sqlalchemy import BigInteger, Column, Float, String

from stockpos.database import Base


# Tabular mirror of the "sales" table. productId is not a foreign key:
# sales keep pointing at products that may have been removed.
class SaleRow(Base):
    __tablename__ = "sales"

    id = Column(String, primary_key=True)
    product_id = Column("productId", String, index=True)
    quantity = Column(Float)

    # Epoch milliseconds at creation
    timestamp = Column(BigInteger, index=True)
