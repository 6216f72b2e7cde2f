# Overview: Service-layer operations for auth; password hashing, registration and credential checks.

"""
Authentication Service

Passwords are hashed with bcrypt; the cost factor comes from
BCRYPT_ROUNDS so tests can run cheap hashes. Customers self-register;
administrators are created with `flask users create --role admin`.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..errors import ConflictError, ValidationError
from ..models import User
from ..models.auth import ROLE_CUSTOMER, ROLES
from storefront.time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""

    def __init__(self, message: str):
        super().__init__([{"field": "password", "message": message}])


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then bcrypt-hash with the configured cost factor."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(username: str, email: str, password: str, role: str = ROLE_CUSTOMER) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValidationError: unknown role
        PasswordValidationError: weak password
        ConflictError: email or username already taken
    """
    if role not in ROLES:
        raise ValidationError([{"field": "role", "message": f"role must be one of {', '.join(ROLES)}"}])

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        if existing.email == email:
            raise ConflictError("Email already exists")
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )

    db.session.add(user)
    db.session.commit()
    current_app.logger.info("User registered: %s (%s)", username, role)
    return user


def register_user(username: str, email: str, password: str) -> User:
    """Self-registration entry point; always creates a customer."""
    return create_user(username, email, password, role=ROLE_CUSTOMER)


def authenticate(email: str, password: str) -> User | None:
    """
    Check credentials.

    Returns the User if valid and active, None otherwise. Updates
    last_login_at on success. Unknown email and wrong password are
    indistinguishable to the caller.
    """
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if user is None or not verify_password(password, user.password_hash):
        current_app.logger.warning("Failed login for %s", email)
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    current_app.logger.info("User logged in: %s", email)
    return user
