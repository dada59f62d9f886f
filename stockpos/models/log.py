from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, func

from stockpos.database import Base


# One row per catalog, sale or sync operation handled by the service
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # e.g. SALE_CREATE on "sales", status SUCCESS or FAIL
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)

    # Reason shown to the caller when the operation was refused
    message = Column(Text, nullable=True)
    meta = Column(JSON, nullable=True)
