"""One-shot migration: replace plaintext legacy passwords with bcrypt hashes."""

import logging

from sqlalchemy.orm import Session

from app.core.security import PasswordVerifier, password_verifier
from app.models import User

logger = logging.getLogger(__name__)


def migrate_legacy_passwords(
    session: Session,
    verifier: PasswordVerifier = password_verifier,
) -> int:
    """
    Hash every stored password that is not already a bcrypt hash.

    Returns the number of rows rewritten. Idempotent: hashed rows are left alone.
    """
    migrated = 0
    for user in session.query(User).order_by(User.id).all():
        if verifier.is_hash(user.password_hash or ""):
            continue
        if not user.password_hash:
            logger.warning("user_id=%s has an empty password; leaving it unusable", user.id)
            continue
        user.password_hash = verifier.hash(user.password_hash)
        migrated += 1
    session.commit()

    if migrated > 0:
        logger.info("Password migration: rows_hashed=%s", migrated)
    return migrated
