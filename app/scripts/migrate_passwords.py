"""
Hash plaintext passwords left in the users table by older deployments. Run once from project root:

  python -m app.scripts.migrate_passwords
"""

import logging
import sys

from app.core.database import SessionLocal
from app.services.password_migration import migrate_legacy_passwords

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Rewrite every non-bcrypt password_hash as a bcrypt hash."""
    db = SessionLocal()
    try:
        migrated = migrate_legacy_passwords(db)
        logger.info("Password migration completed: rows_hashed=%s", migrated)
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Password migration failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
