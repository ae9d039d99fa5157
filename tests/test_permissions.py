from flask_login import AnonymousUserMixin

from timesheet_app.models import User, db
from timesheet_app.utils.permissions import has_permission


class TestHasPermission:
    def test_anonymous_user_has_no_permissions(self):
        assert has_permission(AnonymousUserMixin(), "manage_imports") is False
        assert has_permission(None, "manage_imports") is False

    def test_super_admin_has_every_permission(self, admin_user):
        assert has_permission(admin_user, "manage_imports") is True
        assert has_permission(admin_user, "anything_else") is True

    def test_user_without_role(self, test_user):
        assert has_permission(test_user, "manage_imports") is False

    def test_role_grants_permission(self, import_manager_user):
        user = db.session.get(User, import_manager_user.id)
        assert has_permission(user, "manage_imports") is True
        assert has_permission(user, "manage_users") is False
