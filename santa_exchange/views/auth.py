from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask.views import MethodView
from flask_login import login_user, logout_user, current_user
from flask_wtf.csrf import generate_csrf

from ..models import Participant
from ..security import verify_passphrase


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _form_value(key: str) -> str:
    data = request.get_json(silent=True) or request.form
    return (data.get(key) or "").strip()


class CsrfTokenView(MethodView):
    """POSTs must echo this token in the X-CSRFToken header."""

    def get(self):
        return jsonify(csrfToken=generate_csrf())


class LoginView(MethodView):
    def post(self):
        if current_user.is_authenticated:
            return jsonify(id=current_user.id, name=current_user.name)

        email = _form_value("email").lower()
        passphrase = _form_value("passphrase")

        if not email:
            return jsonify(message="Email is required."), 400

        user = Participant.query.filter_by(email=email).first()
        if not user or not verify_passphrase(passphrase, user.passkey_hash):
            return jsonify(message="Invalid email or passphrase."), 401

        login_user(user)
        return jsonify(id=user.id, name=user.name)


class LogoutView(MethodView):
    def post(self):
        if current_user.is_authenticated:
            logout_user()
        return jsonify(message="Logged out.")


auth_bp.add_url_rule("/csrf", view_func=CsrfTokenView.as_view("csrf"), methods=["GET"])
auth_bp.add_url_rule("/login", view_func=LoginView.as_view("login"), methods=["POST"])
auth_bp.add_url_rule("/logout", view_func=LogoutView.as_view("logout"), methods=["POST"])
