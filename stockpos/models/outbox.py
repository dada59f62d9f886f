# stockpos/models/outbox.py
from sqlalchemy import Column, DateTime, Integer, LargeBinary, String, Text, func

from stockpos.database import Base


# Pending outbound sync snapshot
class OutboxEntry(Base):
    __tablename__ = "sync_outbox"

    id = Column(Integer, primary_key=True, index=True)
    idempotency_key = Column(String(36), unique=True, nullable=False, index=True)

    # Serialized JSON body, sent as-is on every attempt
    body = Column(LargeBinary, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    next_attempt_at = Column(DateTime, nullable=True, index=True)
    delivered_at = Column(DateTime, nullable=True, index=True)
    last_error = Column(Text, nullable=True)
