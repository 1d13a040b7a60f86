"""Decision context passed to every authorization check."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .permissions import Role, parse_role


@dataclass(frozen=True)
class DecisionContext:
    """
    Per-call bundle describing who is asking and about what.

    Built by the host for each request from the identity provider
    (subject, organization, role) and, when a specific instance is
    checked, from the data-access layer (instance id and data).
    The data mapping uses the host's field names: assignedTo, artistId,
    createdBy, ownerId, clientId, members[].userId and status.
    """
    subject_id: str
    organization_id: Optional[str]
    role: Union[Role, str, None]
    resource_instance_id: Optional[str] = None
    resource_instance_data: Optional[Mapping[str, Any]] = None

    @property
    def resolved_role(self) -> Optional[Role]:
        return parse_role(self.role)

    def is_well_formed(self) -> bool:
        """Subject id and a known role are required for any decision.

        The subject id must not contain ":", the decision cache key separator.
        """
        if not isinstance(self.subject_id, str) or not self.subject_id:
            return False
        if ":" in self.subject_id:
            return False
        return self.resolved_role is not None

    def for_instance(
        self,
        resource_instance_id: Optional[str],
        resource_instance_data: Optional[Mapping[str, Any]] = None,
    ) -> "DecisionContext":
        """Copy of this context targeting a specific resource instance."""
        return DecisionContext(
            subject_id=self.subject_id,
            organization_id=self.organization_id,
            role=self.role,
            resource_instance_id=resource_instance_id,
            resource_instance_data=resource_instance_data,
        )
