"""
Background job to purge closed orders

Run periodically (e.g. via cron) to delete delivered and cancelled orders
once they are past the retention window. Each run deletes batches until
nothing old is left.
"""

import sys

from sqlmodel import Session
import structlog

from campus_order.core.config import get_settings
from campus_order.core.database import engine
from campus_order.services.orders import delete_closed_orders

logger = structlog.get_logger(__name__)


def cleanup_closed_orders(session: Session, retention_days: int, batch_size: int) -> dict:
    """Delete closed orders in batches; returns counts for the run"""
    deleted = 0
    batches = 0
    try:
        while True:
            count = delete_closed_orders(session, retention_days, batch_size)
            if count == 0:
                break
            deleted += count
            batches += 1
            if count < batch_size:
                break
    except Exception as e:
        session.rollback()
        logger.error(f"Error deleting closed orders: {e}")
        raise

    if deleted == 0:
        logger.info("No closed orders past retention")
    return {"deleted": deleted, "batches": batches}


def main():
    """Main entry point for cleanup job"""
    settings = get_settings()
    logger.info("Starting closed order cleanup job")

    try:
        with Session(engine) as session:
            results = cleanup_closed_orders(
                session, settings.ORDER_RETENTION_DAYS, settings.ORDER_CLEANUP_BATCH
            )
            logger.info(f"Closed order cleanup complete: {results}")
    except Exception as e:
        logger.error(f"Fatal error in cleanup job: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
