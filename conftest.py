# conftest.py

import os

import pytest
from werkzeug.security import generate_password_hash

# Set testing environment BEFORE importing app so app.py picks TestingConfig
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app  # noqa: E402
from timesheet_app.models import Permission, Role, RolePermission, User, db  # noqa: E402


@pytest.fixture(scope="function")
def app():
    """Create and configure a test Flask application"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": False,
            "LOG_LEVEL": "WARNING",
            "EMAIL_VALIDATION_CHECK_DELIVERABILITY": False,
            "IMPORTER_ENABLED": False,
        }
    )

    from timesheet_app.utils.logging_config import setup_logging

    setup_logging(flask_app)

    with flask_app.app_context():
        # Drop any existing tables to ensure clean state
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def admin_user():
    """Persist a super admin user"""
    user = User(
        username="admin",
        email="admin@example.com",
        password_hash=generate_password_hash("adminpass123"),
        first_name="Admin",
        last_name="User",
        is_super_admin=True,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def test_user():
    """Persist a regular user without importer permissions"""
    user = User(
        username="testuser",
        email="test@example.com",
        password_hash=generate_password_hash("testpass123"),
        first_name="Test",
        last_name="User",
        is_active=True,
        is_super_admin=False,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def import_manager_user():
    """Persist a user whose role grants manage_imports"""
    permission = Permission(name="manage_imports", display_name="Manage Imports")
    role = Role(name="IMPORT_MANAGER", display_name="Import Manager")
    db.session.add_all([permission, role])
    db.session.flush()
    db.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
    user = User(
        username="importer",
        email="importer@example.com",
        password_hash=generate_password_hash("importpass123"),
        is_active=True,
        is_super_admin=False,
        role_id=role.id,
    )
    db.session.add(user)
    db.session.commit()
    return user
