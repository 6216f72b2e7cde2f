# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/storefront/routes/auth.py
"""
Authentication API routes

- POST /auth/register  self-registration (customers only)
- POST /auth/login     exchange email/password for a bearer token
- POST /auth/logout    revoke the presented token
"""

from flask import Blueprint, request, jsonify, g

from ..errors import UnauthorizedError
from ..services import auth_service
from ..services import session_service
from ..validation import validate_registration, validate_login
from ..decorators import require_auth, bearer_token


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/register")
def register_route():
    """
    Register a customer account and log it in.

    Returns 201 with the user and a session token; 409 if the email or
    username is taken; 400 with field errors for malformed input or a weak
    password.
    """
    data = validate_registration(request.get_json(silent=True))
    user = auth_service.register_user(data["username"], data["email"], data["password"])
    _session, token = session_service.create_session(user.id)

    return jsonify({
        "message": "User registered successfully!",
        "user": user.to_dict(),
        "token": token,
    }), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in the Authorization header for protected routes.
    """
    email, password = validate_login(request.get_json(silent=True))

    user = auth_service.authenticate(email, password)
    if user is None:
        raise UnauthorizedError("Invalid credentials")

    session, token = session_service.create_session(user.id)
    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "expires_at": session.to_dict()["expires_at"],
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"message": "Logged out", "user_id": g.current_user.id}), 200
