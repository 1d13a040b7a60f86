"""Scope narrowing for scope-qualified permissions.

A SCOPE condition does not gate the boolean check. Instead the host asks
the engine which scope applies (PolicyEngine.scope_for) and narrows the
records it returns with ScopeFilter.
"""

from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

from .conditions import is_assigned
from .context import DecisionContext


class Scope(str, Enum):
    """Data-set scopes used in the catalog."""

    SELF = "self"           # Records about the subject
    ASSIGNED = "assigned"   # Records assigned to the subject
    STUDIO = "studio"       # Records of the subject's organization
    FINANCIAL = "financial" # Financial records only
    BASIC = "basic"         # Basic (non-sensitive) records only


SELF_FIELDS = ("userId", "artistId", "ownerId")


def _is_about_subject(record: Mapping[str, Any], subject_id: str) -> bool:
    return any(record.get(field) == subject_id for field in SELF_FIELDS)


class ScopeFilter:
    """Narrows record lists to what a scope allows."""

    def matches(self, scope: str, context: DecisionContext, record: Mapping[str, Any]) -> bool:
        """Check a single record against a scope (unknown scopes never match)."""
        if scope == Scope.SELF.value:
            return _is_about_subject(record, context.subject_id)
        if scope == Scope.ASSIGNED.value:
            return is_assigned(record, context.subject_id)
        if scope == Scope.STUDIO.value:
            return (
                context.organization_id is not None
                and record.get("organizationId") == context.organization_id
            )
        if scope == Scope.FINANCIAL.value:
            return record.get("category") == "financial"
        if scope == Scope.BASIC.value:
            return record.get("category") == "basic"
        return False

    def apply(
        self,
        scope: Optional[str],
        context: DecisionContext,
        records: Iterable[Mapping[str, Any]],
    ) -> List[Mapping[str, Any]]:
        """
        Filter records by scope.

        Args:
            scope: Scope name from PolicyEngine.scope_for, or None if unscoped
            context: Decision context of the caller
            records: Records to narrow

        Returns:
            Records visible under the scope; all records when scope is None
        """
        if scope is None:
            return list(records)
        return [r for r in records if self.matches(scope, context, r)]
