import logging

from app.database import SessionLocal
from app.logging_config import setup_logging
from app.services.sessions import purge_expired

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    db = SessionLocal()
    try:
        removed = purge_expired(db)
        logger.info("Purged %d expired sessions", removed)
    finally:
        db.close()


if __name__ == "__main__":
    main()
