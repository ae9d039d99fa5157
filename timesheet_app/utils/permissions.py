# timesheet_app/utils/permissions.py


def has_permission(user, permission_name):
    """Check if user has a specific permission through their role"""
    if not user or not user.is_authenticated:
        return False

    # Super admins have all permissions
    if user.is_super_admin:
        return True

    role = getattr(user, "role", None)
    if role is None:
        return False
    return role.has_permission(permission_name)
