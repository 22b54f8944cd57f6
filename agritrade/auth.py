# agritrade/auth.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from flask import current_app, jsonify

from agritrade import db

log = logging.getLogger(__name__)


def issue_token(user) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=current_app.config["JWT_EXPIRES_MINUTES"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET_KEY"], algorithm="HS256")


def _jwt_decode(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, current_app.config["JWT_SECRET_KEY"], algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        log.info("Rejected expired token")
    except jwt.InvalidTokenError:
        log.info("Rejected invalid token")
    return None


def _bearer_user(request):
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None

    payload = _jwt_decode(token.strip())
    if not payload or payload.get("type") != "access":
        return None

    from agritrade.models import User
    try:
        return db.session.get(User, int(payload["sub"]))
    except (KeyError, ValueError):
        return None


def init_login_manager(login_manager):
    @login_manager.user_loader
    def load_user(user_id):
        from agritrade.models import User
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    # Authorization: Bearer <jwt>
    @login_manager.request_loader
    def load_user_from_request(request):
        return _bearer_user(request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"message": "Authentication required"}), 401
