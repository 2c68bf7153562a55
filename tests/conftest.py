"""Test bootstrap: required settings must exist before app modules are imported."""

import os

os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_USER", "journal")
os.environ.setdefault("DB_PASSWORD", "journal")
os.environ.setdefault("DB_NAME", "journal_test")
os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef0123456789")
os.environ.setdefault("ADMIN_PASSWORD", "bootstrap-secret")

from app.core.security import password_verifier  # noqa: E402

# Keep bcrypt fast in tests; hashes stay valid bcrypt.
password_verifier.rounds = 4
