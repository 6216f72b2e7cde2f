# Overview: Request decorators for API routes; bearer authentication and the admin gate.

from functools import wraps
from flask import request, g

from .errors import ForbiddenError, InvalidTokenError, UnauthorizedError
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    Raises UnauthorizedError when no token is supplied and
    InvalidTokenError when it is unknown, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            raise UnauthorizedError("Access denied, no token provided")

        context = session_service.validate_session(token)
        if context is None:
            raise InvalidTokenError("Invalid token")

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require the authenticated user to be an administrator. Use after @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, 'current_user'):
            raise UnauthorizedError("Authentication required")
        if not g.current_user.is_admin:
            raise ForbiddenError("Administrator access required")
        return f(*args, **kwargs)
    return decorated_function
