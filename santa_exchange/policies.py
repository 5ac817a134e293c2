from __future__ import annotations

from flask import abort
from flask.views import MethodView
from flask_login import current_user


def is_admin_user() -> bool:
    return current_user.is_authenticated and getattr(current_user, "is_admin", False)


class LoginRequiredMixin(MethodView):
    def dispatch_request(self, *args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)
        return super().dispatch_request(*args, **kwargs)


class AdminRequiredMixin(LoginRequiredMixin):
    def dispatch_request(self, *args, **kwargs):
        if current_user.is_authenticated and not is_admin_user():
            abort(403)
        return super().dispatch_request(*args, **kwargs)
