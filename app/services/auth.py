"""Authenticator: check submitted credentials and issue a signed token for the session."""

import hmac
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.roles import Role
from app.core.security import PasswordVerifier, TokenCodec, password_verifier
from app.models import User
from app.services.errors import store_errors

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Reserved for the bootstrap admin; compared case-insensitively and never registrable.
RESERVED_ADMIN_NAME = "admin"
# Identity used by the bootstrap admin when no stored row carries the reserved name.
BOOTSTRAP_ADMIN_ID = 0

INVALID_CREDENTIALS_MESSAGE = "Invalid name or password"


class InvalidCredentialsError(Exception):
    """Raised for any failed login; never says whether the name or the password was wrong."""

    def __init__(self, message: str = INVALID_CREDENTIALS_MESSAGE) -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class LoginResult:
    """Successful login: the token plus the identity it carries."""

    token: str
    user_id: int
    username: str
    role: Role


def is_reserved_name(name: str) -> bool:
    """True if name is the bootstrap admin name (any case, surrounding spaces ignored)."""
    return name.strip().lower() == RESERVED_ADMIN_NAME


def _secrets_equal(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


class Authenticator:
    """
    Verifies a name/password pair and issues a token on success.

    The reserved admin name only ever authenticates against the configured admin secret.
    Everyone else is checked against their stored bcrypt hash. Plaintext rows are
    accepted only when allow_legacy_upgrade is set, and are rehashed on that login.
    """

    def __init__(
        self,
        codec: TokenCodec,
        verifier: PasswordVerifier = password_verifier,
        admin_password: str | None = None,
        allow_legacy_upgrade: bool = False,
    ) -> None:
        self.codec = codec
        self.verifier = verifier
        self.admin_password = admin_password or None
        self.allow_legacy_upgrade = allow_legacy_upgrade

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        verifier: PasswordVerifier = password_verifier,
    ) -> "Authenticator":
        admin_password = (
            settings.ADMIN_PASSWORD.get_secret_value() if settings.ADMIN_PASSWORD else None
        )
        return cls(
            codec=TokenCodec.from_settings(settings),
            verifier=verifier,
            admin_password=admin_password,
            allow_legacy_upgrade=settings.ALLOW_LEGACY_PASSWORD_UPGRADE,
        )

    def login(self, db: Session, name: str, password: str) -> LoginResult:
        """Authenticate name/password. Raises InvalidCredentialsError or StoreError."""
        name = name.strip()
        if is_reserved_name(name):
            return self._login_bootstrap_admin(db, password)

        with store_errors(db, "look up user"):
            user = db.query(User).filter(User.name == name).order_by(User.id).first()
        if user is None:
            logger.warning("Login failed: unknown name %r", name)
            raise InvalidCredentialsError()

        if not self.verifier.verify(password, user.password_hash):
            if not self._upgrade_legacy_password(db, user, password):
                logger.warning("Login failed: wrong password for user_id=%s", user.id)
                raise InvalidCredentialsError()

        try:
            role = Role.parse(user.role)
        except ValueError:
            logger.warning(
                "User user_id=%s has unknown role %r; treating as %s",
                user.id,
                user.role,
                Role.USER.value,
            )
            role = Role.USER

        token = self.codec.issue(user.id, user.name, role)
        logger.info("Login succeeded: user_id=%s role=%s", user.id, role.value)
        return LoginResult(token=token, user_id=user.id, username=user.name, role=role)

    def _login_bootstrap_admin(self, db: Session, password: str) -> LoginResult:
        if self.admin_password is None or not _secrets_equal(password, self.admin_password):
            logger.warning("Login failed: bootstrap admin secret mismatch or not configured")
            raise InvalidCredentialsError()

        with store_errors(db, "look up admin user"):
            stored = (
                db.query(User)
                .filter(func.lower(User.name) == RESERVED_ADMIN_NAME)
                .order_by(User.id)
                .first()
            )
        user_id = stored.id if stored is not None else BOOTSTRAP_ADMIN_ID
        username = stored.name if stored is not None else RESERVED_ADMIN_NAME
        token = self.codec.issue(user_id, username, Role.ADMIN)
        logger.info("Bootstrap admin login succeeded: user_id=%s", user_id)
        return LoginResult(token=token, user_id=user_id, username=username, role=Role.ADMIN)

    def _upgrade_legacy_password(self, db: Session, user: User, password: str) -> bool:
        """Rehash a plaintext legacy row if it matches. Returns True when the login may proceed."""
        stored = user.password_hash or ""
        if not self.allow_legacy_upgrade or self.verifier.is_hash(stored):
            return False
        if not stored or not _secrets_equal(password, stored):
            return False
        with store_errors(db, "upgrade legacy password"):
            user.password_hash = self.verifier.hash(password)
            db.commit()
        logger.warning("Upgraded plaintext password to bcrypt for user_id=%s", user.id)
        return True
