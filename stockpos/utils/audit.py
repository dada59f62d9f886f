import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockpos.models.log import Log

logger = logging.getLogger(__name__)


def write_log(db: Session, *, action, resource, status="SUCCESS", message=None, meta=None):
    entry = Log(action=action, resource=resource, status=status, message=message, meta=meta or {})
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Audit log {action}/{resource} not written: {e}")
