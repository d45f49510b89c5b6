"""User roles and permission hierarchy for MailFlow.

Role Hierarchy (descending permissions):
- admin: Organization settings, user management, audit log
- manager: Mailroom setup, everything staff can do
- staff: Mail intake, notifications, pickups, external people
- recipient: Read access to their own mail items

Permission Matrix:
┌──────────────────────────┬───────┬─────────┬───────┬───────────┐
│ Action                   │ admin │ manager │ staff │ recipient │
├──────────────────────────┼───────┼─────────┼───────┼───────────┤
│ Update Organization      │   ✓   │         │       │           │
│ Manage Users             │   ✓   │         │       │           │
│ View Audit Log           │   ✓   │         │       │           │
│ Manage Mailrooms         │   ✓   │    ✓    │       │           │
│ Manage External People   │   ✓   │    ✓    │   ✓   │           │
│ Log / Process Mail       │   ✓   │    ✓    │   ✓   │           │
│ View Own Mail            │   ✓   │    ✓    │   ✓   │     ✓     │
└──────────────────────────┴───────┴─────────┴───────┴───────────┘
"""

from enum import Enum
from typing import Set


class UserRole(str, Enum):
    """User roles in MailFlow.

    Values are stored in the user_role database enum and must match exactly.
    """
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    RECIPIENT = "recipient"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.MANAGER, UserRole.STAFF, UserRole.RECIPIENT},
    UserRole.MANAGER: {UserRole.MANAGER, UserRole.STAFF, UserRole.RECIPIENT},
    UserRole.STAFF: {UserRole.STAFF, UserRole.RECIPIENT},
    UserRole.RECIPIENT: {UserRole.RECIPIENT},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a user role satisfies the minimum role required for an action.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.STAFF)
        True
        >>> has_permission(UserRole.RECIPIENT, UserRole.STAFF)
        False
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())


def get_allowed_roles(required_role: UserRole) -> Set[UserRole]:
    """Get all roles that have permission to perform an action.

    Example:
        >>> get_allowed_roles(UserRole.MANAGER)
        {UserRole.ADMIN, UserRole.MANAGER}
    """
    return {role for role, permissions in ROLE_HIERARCHY.items() if required_role in permissions}


def is_staff(role: UserRole | str) -> bool:
    """Staff and above see every mail item of their organization."""
    return has_permission(UserRole(role), UserRole.STAFF)
