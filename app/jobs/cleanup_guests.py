import logging

from sqlmodel import Session

from app.config import settings
from app.database import engine
from app.services.guest_service import cleanup_old_guests

logger = logging.getLogger(__name__)


def cleanup_guests() -> dict:
    with Session(engine) as session:
        result = cleanup_old_guests(session, days_old=settings.guest_retention_days)

    logger.info(f"Removed {result['deleted']} stale guest users, kept {result['skipped']}")
    return result


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    cleanup_guests()
