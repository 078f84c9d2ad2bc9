from flask import Blueprint, g, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy import func
from werkzeug.security import check_password_hash

from database import SessionLocal
from extensions import login_manager
from models import User

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@login_manager.user_loader
def load_user(user_id: str | int | None):
    if not user_id:
        return None
    session = SessionLocal()
    return session.get(User, int(user_id))


def _user_payload(user):
    return {"id": user.id, "username": user.username, "is_admin": bool(user.is_admin)}


@auth_bp.post("/login")
def login():
    if current_user.is_authenticated:
        return jsonify(_user_payload(current_user))
    payload = request.get_json(silent=True) or {}
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400
    user = g.db.query(User).filter(func.lower(User.username) == username.lower()).first()
    if not user or not user.password_hash or not check_password_hash(user.password_hash, password):
        return jsonify({"error": "Invalid username or password"}), 401
    if not user.is_active:
        return jsonify({"error": "Account is disabled"}), 403
    login_user(user)
    return jsonify(_user_payload(user))


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return "", 204
