"""Role assignment rules for CreatorHub.

Governs who may grant which roles. The SUPER_ADMIN rule is enforced
here rather than in the catalog: only a super admin can create another
super admin, whatever the catalog says about user management.
"""

from typing import NamedTuple, Optional, Union

from creatorhub.common.logger import get_logger

from .context import DecisionContext
from .engine import PolicyEngine
from .permissions import Action, Resource, Role, parse_role

logger = get_logger(__name__)


class AssignmentResult(NamedTuple):
    """Outcome of a role assignment check."""
    allowed: bool
    reason: Optional[str] = None


class RoleAssignmentGuard:
    """Decides whether an assigner may grant a role to a target subject.

    Has no side effects; persisting the new role is up to the caller.
    """

    def __init__(self, engine: PolicyEngine):
        self.engine = engine

    def evaluate_assignment(
        self,
        assigner_context: DecisionContext,
        target_subject_id: str,
        new_role: Union[Role, str],
    ) -> AssignmentResult:
        """
        Check a role assignment and explain the verdict.

        Args:
            assigner_context: Decision context of the subject granting the role
            target_subject_id: Subject receiving the role
            new_role: Role being granted

        Returns:
            AssignmentResult with the verdict and, on deny, the reason
        """
        if not self.engine.check_permission(assigner_context, Resource.USER, Action.MANAGE):
            return AssignmentResult(False, "Assigner cannot manage users")

        role = parse_role(new_role)
        if role is None:
            return AssignmentResult(False, f"Unknown role: {new_role}")

        if not target_subject_id:
            return AssignmentResult(False, "Target subject is required")

        if role == Role.SUPER_ADMIN and assigner_context.resolved_role != Role.SUPER_ADMIN:
            logger.warning(
                "Subject %s (%s) attempted to grant SUPER_ADMIN to %s",
                assigner_context.subject_id,
                assigner_context.resolved_role.value,
                target_subject_id,
            )
            return AssignmentResult(False, "Only super admins can assign SUPER_ADMIN")

        return AssignmentResult(True)

    def assign_role(
        self,
        assigner_context: DecisionContext,
        target_subject_id: str,
        new_role: Union[Role, str],
    ) -> bool:
        """Check whether assigner may grant new_role to the target."""
        return self.evaluate_assignment(assigner_context, target_subject_id, new_role).allowed
