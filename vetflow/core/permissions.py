"""Role-based permissions for staff accounts."""

from enum import Enum


class UserRole(str, Enum):
    """Staff role enumeration."""

    ADMIN = "admin"
    VETERINARIAN = "veterinarian"
    ASSISTANT = "assistant"


class Action(str, Enum):
    """Actions gated by role."""

    CREATE_APPOINTMENTS = "create_appointments"
    EDIT_APPOINTMENTS = "edit_appointments"
    RESCHEDULE_APPOINTMENTS = "reschedule_appointments"
    CANCEL_APPOINTMENTS = "cancel_appointments"
    CHANGE_APPOINTMENT_STATUS = "change_appointment_status"
    MANAGE_OWNERS = "manage_owners"
    MANAGE_PATIENTS = "manage_patients"
    CREATE_MEDICAL_RECORDS = "create_medical_records"
    EDIT_MEDICAL_RECORDS = "edit_medical_records"
    VIEW_RECORDS = "view_records"
    MANAGE_USERS = "manage_users"
    VIEW_AUDIT_LOGS = "view_audit_logs"
    DELETE_RECORDS = "delete_records"


_SHARED_FRONT_DESK = frozenset(
    {
        Action.CREATE_APPOINTMENTS,
        Action.EDIT_APPOINTMENTS,
        Action.RESCHEDULE_APPOINTMENTS,
        Action.CANCEL_APPOINTMENTS,
        Action.MANAGE_PATIENTS,
        Action.VIEW_RECORDS,
    }
)

ROLE_PERMISSIONS: dict[UserRole, frozenset[Action]] = {
    UserRole.ADMIN: frozenset(Action),
    UserRole.VETERINARIAN: _SHARED_FRONT_DESK
    | {
        Action.CHANGE_APPOINTMENT_STATUS,
        Action.CREATE_MEDICAL_RECORDS,
        Action.EDIT_MEDICAL_RECORDS,
    },
    UserRole.ASSISTANT: _SHARED_FRONT_DESK | {Action.MANAGE_OWNERS},
}


def has_permission(role: str | UserRole, action: str | Action) -> bool:
    """Check whether a role may perform an action. Unknown roles or actions are denied."""
    try:
        resolved_role = UserRole(role)
        resolved_action = Action(action)
    except ValueError:
        return False
    return resolved_action in ROLE_PERMISSIONS[resolved_role]


class RolePermissionAuthorizer:
    """Authorizer backed by the static role to permission table."""

    def can_perform(self, actor_role: str, action: str) -> bool:
        """Return True if the role is allowed to perform the action."""
        return has_permission(actor_role, action)
