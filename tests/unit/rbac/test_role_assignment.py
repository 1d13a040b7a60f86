"""Tests for role assignment rules."""

import pytest

from creatorhub.core.rbac import AssignmentResult, Role


class TestRoleAssignment:

    def test_org_admin_cannot_grant_super_admin(self, assignment_guard, make_context):
        assigner = make_context(role=Role.ORG_ADMIN, subject_id="admin1")
        assert assignment_guard.assign_role(assigner, "u9", Role.SUPER_ADMIN) is False

    def test_super_admin_can_grant_super_admin(self, assignment_guard, make_context):
        assigner = make_context(role=Role.SUPER_ADMIN, subject_id="root")
        assert assignment_guard.assign_role(assigner, "u9", Role.SUPER_ADMIN) is True

    def test_client_cannot_grant_roles(self, assignment_guard, make_context):
        assigner = make_context(role=Role.CLIENT, subject_id="c1")
        assert assignment_guard.assign_role(assigner, "u9", Role.CREATOR) is False

    def test_org_admin_grants_regular_roles(self, assignment_guard, make_context):
        assigner = make_context(role=Role.ORG_ADMIN, subject_id="admin1")
        for role in Role:
            if role != Role.SUPER_ADMIN:
                assert assignment_guard.assign_role(assigner, "u9", role)

    @pytest.mark.parametrize("role", [
        Role.LABEL_MANAGER, Role.ARTIST_MANAGER, Role.STUDIO_MANAGER,
        Role.ACCOUNTANT, Role.CREATOR, Role.VIEWER,
    ])
    def test_roles_without_user_manage_denied(self, assignment_guard, make_context, role):
        assigner = make_context(role=role)
        assert not assignment_guard.assign_role(assigner, "u9", Role.VIEWER)

    def test_role_names_accepted(self, assignment_guard, make_context):
        assigner = make_context(role="ORG_ADMIN")
        assert assignment_guard.assign_role(assigner, "u9", "creator")
        assert not assignment_guard.assign_role(assigner, "u9", "super_admin")


class TestAssignmentReasons:

    def test_reason_for_missing_rights(self, assignment_guard, make_context):
        result = assignment_guard.evaluate_assignment(make_context(role=Role.CLIENT), "u9", Role.CREATOR)
        assert result == AssignmentResult(False, "Assigner cannot manage users")

    def test_reason_for_escalation(self, assignment_guard, make_context, caplog):
        with caplog.at_level("WARNING", logger="creatorhub.core.rbac.assignment"):
            result = assignment_guard.evaluate_assignment(
                make_context(role=Role.ORG_ADMIN, subject_id="admin1"), "u9", Role.SUPER_ADMIN,
            )
        assert not result.allowed
        assert "SUPER_ADMIN" in result.reason
        assert "admin1" in caplog.text

    def test_unknown_role(self, assignment_guard, make_context):
        result = assignment_guard.evaluate_assignment(make_context(role=Role.SUPER_ADMIN), "u9", "OVERLORD")
        assert not result.allowed
        assert result.reason == "Unknown role: OVERLORD"

    def test_missing_target(self, assignment_guard, make_context):
        result = assignment_guard.evaluate_assignment(make_context(role=Role.SUPER_ADMIN), "", Role.VIEWER)
        assert not result.allowed

    def test_allowed_has_no_reason(self, assignment_guard, make_context):
        result = assignment_guard.evaluate_assignment(make_context(role=Role.ORG_ADMIN), "u9", Role.CREATOR)
        assert result == AssignmentResult(True)
