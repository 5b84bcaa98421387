"""Tests for role permissions."""

import pytest

from vetflow.core.permissions import Action, RolePermissionAuthorizer, UserRole, has_permission


def test_admin_can_do_everything():
    assert all(has_permission(UserRole.ADMIN, action) for action in Action)


@pytest.mark.parametrize(
    ("role", "action", "allowed"),
    [
        ("veterinarian", Action.CHANGE_APPOINTMENT_STATUS, True),
        ("veterinarian", Action.CREATE_MEDICAL_RECORDS, True),
        ("veterinarian", Action.MANAGE_OWNERS, False),
        ("veterinarian", Action.DELETE_RECORDS, False),
        ("assistant", Action.CREATE_APPOINTMENTS, True),
        ("assistant", Action.RESCHEDULE_APPOINTMENTS, True),
        ("assistant", Action.CANCEL_APPOINTMENTS, True),
        ("assistant", Action.MANAGE_OWNERS, True),
        ("assistant", Action.CHANGE_APPOINTMENT_STATUS, False),
        ("assistant", Action.CREATE_MEDICAL_RECORDS, False),
        ("assistant", Action.VIEW_AUDIT_LOGS, False),
    ],
)
def test_role_matrix(role, action, allowed):
    assert has_permission(role, action) is allowed


def test_unknown_role_or_action_is_denied():
    assert not has_permission("receptionist", Action.VIEW_RECORDS)
    assert not has_permission("admin", "launch_rockets")


def test_authorizer_uses_string_values():
    authorizer = RolePermissionAuthorizer()
    assert authorizer.can_perform("veterinarian", "change_appointment_status")
    assert not authorizer.can_perform("assistant", "change_appointment_status")
