# timesheet_app/routes/auth.py

"""
Session login and logout endpoints for API clients
"""

from http import HTTPStatus

from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from timesheet_app.models import User


def _credentials():
    if request.is_json:
        payload = request.get_json(silent=True) or {}
    else:
        payload = request.form
    return (payload.get("username") or "").strip(), payload.get("password") or ""


def register_auth_routes(app):
    """Register authentication routes"""

    @app.route("/login", methods=["POST"])
    def login():
        username, password = _credentials()
        if not username or not password:
            return jsonify({"error": "Username and password are required."}), HTTPStatus.BAD_REQUEST

        user = User.find_by_username(username)
        if user is None or not user.is_active or not user.check_password(password):
            current_app.logger.warning(f"Failed login attempt for username: {username}")
            return jsonify({"error": "Invalid username or password."}), HTTPStatus.UNAUTHORIZED

        login_user(user)
        current_app.logger.info(f"User {user.username} logged in")
        return jsonify({"id": user.id, "username": user.username, "displayName": user.display_name}), HTTPStatus.OK

    @app.route("/logout", methods=["POST"])
    @login_required
    def logout():
        current_app.logger.info(f"User {current_user.username} logged out")
        logout_user()
        return jsonify({"status": "logged_out"}), HTTPStatus.OK
