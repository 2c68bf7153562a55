"""Closed set of account roles used for authorization."""

from enum import Enum


class Role(str, Enum):
    """Account role stored on users and carried in token claims."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: "str | Role | None") -> "Role":
        """Map a stored or claimed role to Role; empty means USER. Raises ValueError on unknown roles."""
        if isinstance(value, Role):
            return value
        if value is None:
            return cls.USER
        if not isinstance(value, str):
            raise ValueError(f"Role must be a string, got {type(value).__name__}")
        if not value.strip():
            return cls.USER
        return cls(value.strip().lower())
