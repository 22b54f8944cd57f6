from __future__ import annotations

import re

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from agritrade import db
from agritrade.auth import issue_token
from agritrade.errors import Conflict, ValidationError
from agritrade.models import User, ROLES
from agritrade.utils import Checker, clean_str, json_body

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD = 6


@bp.post("/register")
def register():
    data = json_body()
    c = Checker(data)
    c.required("username", "Username is required")
    c.matches("email", EMAIL_RE, "Please enter a valid email")
    if len(data.get("password") or "") < MIN_PASSWORD:
        c.errors.append(f"Password must be at least {MIN_PASSWORD} characters")
    c.one_of("role", ROLES, "Invalid role", optional=True)
    c.check()

    username = clean_str(data["username"])
    email = clean_str(data["email"]).lower()
    if User.query.filter((User.username == username) | (User.email == email)).first():
        raise Conflict("User already exists")

    user = User(username=username, email=email, role=data.get("role") or "staff")
    user.set_password(data["password"])
    db.session.add(user)
    db.session.commit()

    return jsonify({"token": issue_token(user), "user": user.to_dict()}), 201


@bp.post("/login")
def login():
    data = json_body()
    login_name = (clean_str(data.get("username")) or clean_str(data.get("email")) or "")
    password = data.get("password") or ""

    user = User.query.filter(
        (User.username == login_name) | (User.email == login_name.lower())
    ).first()
    if not user or not user.check_password(password):
        raise ValidationError("Invalid credentials")

    login_user(user)
    return jsonify({"token": issue_token(user), "user": user.to_dict()})


@bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({"message": "Logged out"})


@bp.get("/me")
@login_required
def me():
    return jsonify(current_user.to_dict())
