"""Condition evaluation for CreatorHub RBAC.

Conditions narrow a matched permission to particular resource
instances or request contexts. A permission's conditions are ANDed.

Every data-backed condition fails closed: when the instance data it
needs is missing, the condition does not hold. The only exception is
SCOPE, which never gates the boolean check (see scopes.py).
"""

from typing import Any, Iterable, Mapping, Optional

from creatorhub.common.logger import get_logger

from .context import DecisionContext
from .permissions import Condition, ConditionKind

logger = get_logger(__name__)

# Instance fields that mark a subject as assigned, checked in order
ASSIGNMENT_FIELDS = ("assignedTo", "artistId", "createdBy")


def is_assigned(data: Optional[Mapping[str, Any]], subject_id: str) -> bool:
    """True if any assignment field of the instance names the subject."""
    if not data:
        return False
    return any(data.get(field) == subject_id for field in ASSIGNMENT_FIELDS)


def is_member(data: Optional[Mapping[str, Any]], subject_id: str) -> bool:
    """True if the subject appears in the instance's members[].userId."""
    if not data:
        return False
    members = data.get("members") or []
    return any(
        isinstance(m, Mapping) and m.get("userId") == subject_id
        for m in members
    )


def _field_equals(context: DecisionContext, field: str) -> bool:
    data = context.resource_instance_data
    if not data:
        return False
    return data.get(field) == context.subject_id


class ConditionEvaluator:
    """
    Decides whether permission conditions hold for a decision context.

    Stateless; one instance is shared by the engine across threads.
    """

    def holds(self, condition: Condition, context: DecisionContext) -> bool:
        """
        Evaluate a single condition.

        Args:
            condition: The condition to evaluate
            context: Subject and target instance of the check

        Returns:
            True if the condition holds; False otherwise, including on
            missing data, unknown kinds and evaluation errors
        """
        try:
            return self._evaluate(condition, context)
        except Exception:
            logger.warning(
                "Condition %s raised for subject %s; denying",
                condition, getattr(context, "subject_id", None),
                exc_info=True,
            )
            return False

    def holds_all(self, conditions: Iterable[Condition], context: DecisionContext) -> bool:
        """Evaluate conditions with AND semantics, stopping at the first failure."""
        for condition in conditions:
            if not self.holds(condition, context):
                return False
        return True

    def _evaluate(self, condition: Condition, context: DecisionContext) -> bool:
        kind = condition.kind
        subject_id = context.subject_id

        if kind == ConditionKind.SELF:
            return (
                context.resource_instance_id is not None
                and context.resource_instance_id == subject_id
            )

        if kind == ConditionKind.ASSIGNED:
            return is_assigned(context.resource_instance_data, subject_id)

        if kind == ConditionKind.CREATED:
            return _field_equals(context, "createdBy")

        if kind == ConditionKind.OWNER:
            return _field_equals(context, "ownerId")

        if kind == ConditionKind.CLIENT:
            return _field_equals(context, "clientId")

        if kind == ConditionKind.MEMBER:
            return is_member(context.resource_instance_data, subject_id)

        if kind == ConditionKind.ROLE:
            role = context.resolved_role
            return role is not None and role.value in condition.value

        if kind == ConditionKind.STATUS:
            data = context.resource_instance_data
            if not data:
                return False
            return data.get("status") in condition.value

        if kind == ConditionKind.SCOPE:
            return True

        # Unknown condition kinds never grant access
        logger.warning("Unknown condition kind %r; denying", kind)
        return False
