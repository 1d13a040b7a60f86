"""Permission model for CreatorHub RBAC.

Defines the roles, resources, actions and condition kinds the engine
understands, plus the immutable Permission value type.

Permission string format: "resource:action"
Examples:
  - booking:update
  - invoice:manage
  - *:*  (reserved for SUPER_ADMIN)
"""

from enum import Enum
from typing import Any, NamedTuple, Optional, Tuple, Union


WILDCARD = "*"


class Role(str, Enum):
    """Identity classes carrying a fixed bundle of permissions."""

    SUPER_ADMIN = "SUPER_ADMIN"
    ORG_ADMIN = "ORG_ADMIN"
    LABEL_MANAGER = "LABEL_MANAGER"
    ARTIST_MANAGER = "ARTIST_MANAGER"
    STUDIO_MANAGER = "STUDIO_MANAGER"
    ACCOUNTANT = "ACCOUNTANT"
    CREATOR = "CREATOR"
    CLIENT = "CLIENT"
    VIEWER = "VIEWER"


class Resource(str, Enum):
    """Object types that can be protected by permissions."""

    ORGANIZATION = "organization"
    USER = "user"
    ARTIST = "artist"
    BOOKING = "booking"
    PROJECT = "project"
    CONTRACT = "contract"
    INVOICE = "invoice"
    ANALYTICS = "analytics"
    SUBSCRIPTION = "subscription"
    SETTINGS = "settings"


class Action(str, Enum):
    """Actions that can be performed on resources."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"             # Full access, satisfies any action on the resource
    APPROVE = "approve"
    ASSIGN = "assign"
    EXPORT = "export"
    BULK_OPERATION = "bulk_operation"


class ConditionKind(str, Enum):
    """Predicates that narrow a permission to specific instances."""

    SELF = "self"             # Target instance is the subject itself
    ASSIGNED = "assigned"     # Instance assigned to / created by the subject
    CREATED = "created"       # Instance created by the subject
    OWNER = "owner"           # Instance owned by the subject
    MEMBER = "member"         # Subject is listed in the instance members
    CLIENT = "client"         # Subject is the instance's client
    ROLE = "role"             # Subject role is in a given set
    STATUS = "status"         # Instance status is in a given set
    SCOPE = "scope"           # Data-set scope, narrows results rather than the check


class Condition(NamedTuple):
    """A named predicate with its parameter."""
    kind: ConditionKind
    value: Any = True

    def __str__(self) -> str:
        if isinstance(self.value, frozenset):
            return f"{self.kind.value} in {{{', '.join(sorted(self.value))}}}"
        if self.value is True:
            return self.kind.value
        return f"{self.kind.value}={self.value}"


ResourceLike = Union[Resource, str]
ActionLike = Union[Action, str]


def to_token(value: Union[Enum, str]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class Permission(NamedTuple):
    """A permission is a resource, an action and optional conditions."""
    resource: str
    action: str
    conditions: Tuple[Condition, ...] = ()

    def __str__(self) -> str:
        return f"{self.resource}:{self.action}"

    @property
    def is_global_wildcard(self) -> bool:
        return self.resource == WILDCARD and self.action == WILDCARD

    @property
    def scope(self) -> Optional[str]:
        """The scope parameter, if this permission carries one."""
        for condition in self.conditions:
            if condition.kind == ConditionKind.SCOPE:
                return condition.value
        return None

    def matches(self, resource: ResourceLike, action: ActionLike) -> bool:
        """Check whether this permission covers the requested pair.

        The resource matches itself or the wildcard; the action matches
        itself, the wildcard, or MANAGE.
        """
        resource_token = to_token(resource)
        action_token = to_token(action)
        if self.resource not in (resource_token, WILDCARD):
            return False
        return self.action in (action_token, WILDCARD, Action.MANAGE.value)

    @classmethod
    def of(
        cls,
        resource: ResourceLike,
        action: ActionLike,
        *conditions: Condition,
    ) -> "Permission":
        """Build a permission from enums or wildcard strings."""
        return cls(to_token(resource), to_token(action), tuple(conditions))

    @classmethod
    def from_string(cls, perm_str: str) -> "Permission":
        """Parse an unconditional permission string like 'booking:read'."""
        parts = perm_str.split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid permission format: {perm_str}")
        resource, action = parts
        if resource != WILDCARD:
            resource = Resource(resource).value
        if action != WILDCARD:
            action = Action(action).value
        return cls(resource, action)


# Condition constructors used by the role table and the YAML loader
def self_only() -> Condition:
    return Condition(ConditionKind.SELF)


def assigned() -> Condition:
    return Condition(ConditionKind.ASSIGNED)


def created() -> Condition:
    return Condition(ConditionKind.CREATED)


def owner() -> Condition:
    return Condition(ConditionKind.OWNER)


def member() -> Condition:
    return Condition(ConditionKind.MEMBER)


def client() -> Condition:
    return Condition(ConditionKind.CLIENT)


def role_in(*roles: Union[Role, str]) -> Condition:
    return Condition(ConditionKind.ROLE, frozenset(to_token(r) for r in roles))


def status_in(*statuses: str) -> Condition:
    return Condition(ConditionKind.STATUS, frozenset(statuses))


def scope(name: str) -> Condition:
    return Condition(ConditionKind.SCOPE, name)


def parse_role(value: Union[Role, str, None]) -> Optional[Role]:
    """Resolve a role name, returning None for unknown values."""
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.upper())
    except ValueError:
        return None


def is_valid_permission(perm_str: str) -> bool:
    """Check if a permission string names a known resource and action."""
    try:
        Permission.from_string(perm_str)
    except ValueError:
        return False
    return True
