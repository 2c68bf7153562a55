"""Password hashing and JWT creation/verification for authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import bcrypt
import jwt

from app.core.config import HMAC_ALGORITHMS, Settings
from app.core.roles import Role

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

# Tokens are valid for exactly this long after issuance.
TOKEN_TTL = timedelta(hours=24)

# Min/max lengths for name and password validation.
NAME_MIN_LEN = 1
NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128

REQUIRED_CLAIMS = ["sub", "username", "role", "iat", "exp"]


class PasswordVerifier(Protocol):
    """Hashes passwords for storage and checks submitted passwords against stored hashes."""

    def hash(self, plain_password: str) -> str: ...

    def verify(self, plain_password: str, stored: str) -> bool: ...

    def is_hash(self, stored: str) -> bool: ...


class BcryptPasswordVerifier:
    """bcrypt-backed PasswordVerifier. Never accepts a plaintext match."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plain_password: str) -> str:
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain_password: str, stored: str) -> bool:
        if not stored or not self.is_hash(stored):
            return False
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(pw_bytes, stored.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def is_hash(self, stored: str) -> bool:
        # Modular crypt format: $2a$, $2b$ or $2y$ + cost + 53 chars of salt and digest.
        return (
            len(stored) == 60
            and stored[:4] in ("$2a$", "$2b$", "$2y$")
            and stored[4:6].isdigit()
            and stored[6] == "$"
        )


password_verifier = BcryptPasswordVerifier()


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return password_verifier.hash(plain_password)


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    return password_verifier.verify(plain_password, hashed)


class TokenError(Exception):
    """Raised when a token cannot be accepted."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class InvalidSignatureError(TokenError):
    """Signature does not match the configured key, or the algorithm is not HMAC."""


class TokenExpiredError(TokenError):
    """Token is past its exp claim."""


class MalformedTokenError(TokenError):
    """Token cannot be parsed or its claims are missing or ill-typed."""


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a verified token."""

    user_id: int
    username: str
    role: Role
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """
    Issues and verifies HMAC-signed identity tokens.

    Holds one key for its lifetime; build a new codec from fresh settings to pick up a rotated key.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported token algorithm: {algorithm}")
        self._secret = secret
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(settings.JWT_SECRET.get_secret_value(), settings.JWT_ALGORITHM)

    def issue(
        self,
        user_id: int,
        username: str,
        role: Role,
        now: datetime | None = None,
    ) -> str:
        """Create a token for user_id/username/role with iat=now and exp=now+24h."""
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "username": username,
            "role": Role.parse(role).value,
            "iat": issued_at,
            "exp": issued_at + TOKEN_TTL,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry; return the embedded identity.
        Raises InvalidSignatureError, TokenExpiredError or MalformedTokenError.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=list(HMAC_ALGORITHMS),
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired", e) from e
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise InvalidSignatureError("Token signature is invalid", e) from e
        except jwt.PyJWTError as e:
            raise MalformedTokenError(f"Malformed token: {e}", e) from e

        try:
            user_id = int(payload["sub"])
            role = Role.parse(payload["role"])
        except (TypeError, ValueError) as e:
            raise MalformedTokenError("Invalid token payload", e) from e
        username = payload["username"]
        if not isinstance(username, str):
            raise MalformedTokenError("Invalid token payload")
        return TokenClaims(
            user_id=user_id,
            username=username,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
