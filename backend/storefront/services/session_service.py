# Overview: Service-layer operations for bearer sessions; issue, validate and revoke tokens.

"""
Session Token Management Service

Tokens are 32 random bytes (64 hex chars). The client gets the plaintext
once; the database keeps only its SHA-256. Sessions expire after
SESSION_TTL_HOURS and are revoked on logout.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from storefront.time_utils import utcnow


@dataclass
class SessionContext:
    """The authenticated principal for one request."""
    user: User
    session: SessionToken

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def role(self) -> str:
        return self.user.role


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 of the token, hex encoded.

    Tokens are already high-entropy, so a fast hash is sufficient here
    (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(user_id: int) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    """
    plaintext_token = generate_token()
    now = utcnow()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext.

    Returns None if the token is unknown, expired, revoked, or its user is
    deactivated. Touches last_used_at on success and commits, so the caller
    starts its own work on a clean transaction.
    """
    now = utcnow()
    session = (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token))
        .first()
    )

    if session is None or session.is_revoked or session.expires_at <= now:
        return None

    user = db.session.get(User, session.user_id)
    if user is None or not user.is_active:
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session)


def revoke_session(token: str) -> bool:
    """Revoke a session. Returns False if the token was unknown."""
    session = (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token))
        .first()
    )
    if session is None:
        return False

    session.is_revoked = True
    db.session.commit()
    return True
