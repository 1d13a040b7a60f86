"""Default role definitions and the permission catalog for CreatorHub.

Defines the 9 standard roles with their ordered permission lists:
1. Super Admin - Full system access
2. Org Admin - Manages the organization, its users and its catalogue
3. Label Manager - Runs artists, bookings and projects for a label
4. Artist Manager - Works with the artists and bookings assigned to them
5. Studio Manager - Runs studio bookings and projects
6. Accountant - Invoices and financial analytics
7. Creator - Own profile, assigned bookings and projects
8. Client - Creates and follows their own bookings
9. Viewer - Basic read-only access

Order inside a role matters: the engine uses the first permission that
matches a (resource, action) pair.
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .permissions import (
    WILDCARD,
    Action,
    Permission,
    Resource,
    Role,
    assigned,
    client,
    created,
    member,
    owner,
    parse_role,
    role_in,
    scope,
    self_only,
    status_in,
)


P = Permission.of

# Super Admin: Full access to everything
SUPER_ADMIN_PERMISSIONS = [
    P(WILDCARD, WILDCARD),
]

ORG_ADMIN_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.ORGANIZATION, Action.UPDATE),
    P(Resource.USER, Action.MANAGE),
    P(Resource.ARTIST, Action.MANAGE),
    P(Resource.BOOKING, Action.MANAGE),
    P(Resource.PROJECT, Action.MANAGE),
    P(Resource.CONTRACT, Action.MANAGE),
    P(Resource.INVOICE, Action.MANAGE),
    P(Resource.ANALYTICS, Action.READ),
    P(Resource.ANALYTICS, Action.EXPORT),
    P(Resource.SUBSCRIPTION, Action.READ),
    P(Resource.SUBSCRIPTION, Action.UPDATE),
    P(Resource.SETTINGS, Action.MANAGE),
]

LABEL_MANAGER_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.USER, Action.READ),
    # May only onboard creators and clients
    P(Resource.USER, Action.CREATE, role_in(Role.CREATOR, Role.CLIENT)),
    P(Resource.ARTIST, Action.MANAGE),
    P(Resource.BOOKING, Action.MANAGE),
    P(Resource.PROJECT, Action.MANAGE),
    P(Resource.CONTRACT, Action.READ),
    P(Resource.CONTRACT, Action.CREATE),
    P(Resource.INVOICE, Action.READ),
    P(Resource.ANALYTICS, Action.READ),
    P(Resource.ANALYTICS, Action.EXPORT),
]

ARTIST_MANAGER_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.USER, Action.READ),
    P(Resource.ARTIST, Action.READ),
    P(Resource.ARTIST, Action.UPDATE, assigned()),
    P(Resource.BOOKING, Action.READ),
    P(Resource.BOOKING, Action.CREATE),
    P(Resource.BOOKING, Action.UPDATE, assigned()),
    P(Resource.PROJECT, Action.READ),
    P(Resource.PROJECT, Action.UPDATE, member()),
    P(Resource.CONTRACT, Action.READ, assigned()),
    P(Resource.INVOICE, Action.READ, assigned()),
    P(Resource.ANALYTICS, Action.READ, scope("assigned")),
]

STUDIO_MANAGER_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.BOOKING, Action.MANAGE),
    P(Resource.PROJECT, Action.READ),
    P(Resource.PROJECT, Action.UPDATE, member()),
    P(Resource.ARTIST, Action.READ),
    P(Resource.CONTRACT, Action.READ),
    P(Resource.INVOICE, Action.READ),
    P(Resource.ANALYTICS, Action.READ, scope("studio")),
]

ACCOUNTANT_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.BOOKING, Action.READ),
    P(Resource.PROJECT, Action.READ),
    P(Resource.CONTRACT, Action.READ),
    P(Resource.INVOICE, Action.MANAGE),
    P(Resource.ANALYTICS, Action.READ, scope("financial")),
    P(Resource.ANALYTICS, Action.EXPORT, scope("financial")),
]

CREATOR_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.USER, Action.READ, self_only()),
    P(Resource.USER, Action.UPDATE, self_only()),
    P(Resource.ARTIST, Action.READ, self_only()),
    P(Resource.ARTIST, Action.UPDATE, self_only()),
    P(Resource.BOOKING, Action.READ, assigned()),
    P(Resource.BOOKING, Action.UPDATE, assigned(), status_in("DRAFT", "PENDING_APPROVAL")),
    P(Resource.PROJECT, Action.READ, member()),
    P(Resource.CONTRACT, Action.READ, assigned()),
    P(Resource.INVOICE, Action.READ, assigned()),
    P(Resource.ANALYTICS, Action.READ, scope("self")),
]

CLIENT_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.USER, Action.READ, self_only()),
    P(Resource.USER, Action.UPDATE, self_only()),
    P(Resource.ARTIST, Action.READ),
    P(Resource.BOOKING, Action.CREATE),
    P(Resource.BOOKING, Action.READ, created()),
    P(Resource.BOOKING, Action.UPDATE, created(), status_in("DRAFT")),
    P(Resource.PROJECT, Action.READ, owner()),
    P(Resource.CONTRACT, Action.READ, client()),
    P(Resource.INVOICE, Action.READ, client()),
]

VIEWER_PERMISSIONS = [
    P(Resource.ORGANIZATION, Action.READ),
    P(Resource.USER, Action.READ, self_only()),
    P(Resource.ARTIST, Action.READ),
    P(Resource.BOOKING, Action.READ, assigned()),
    P(Resource.PROJECT, Action.READ, member()),
    P(Resource.ANALYTICS, Action.READ, scope("basic")),
]


# Default roles configuration
DEFAULT_ROLES: Dict[Role, dict] = {
    Role.SUPER_ADMIN: {
        "name": "Super Admin",
        "description": "Full platform access with all permissions",
        "permissions": SUPER_ADMIN_PERMISSIONS,
    },
    Role.ORG_ADMIN: {
        "name": "Organization Admin",
        "description": "Manages the organization, its members, catalogue and billing",
        "permissions": ORG_ADMIN_PERMISSIONS,
    },
    Role.LABEL_MANAGER: {
        "name": "Label Manager",
        "description": "Manages artists, bookings and projects for a label",
        "permissions": LABEL_MANAGER_PERMISSIONS,
    },
    Role.ARTIST_MANAGER: {
        "name": "Artist Manager",
        "description": "Works with the artists and bookings assigned to them",
        "permissions": ARTIST_MANAGER_PERMISSIONS,
    },
    Role.STUDIO_MANAGER: {
        "name": "Studio Manager",
        "description": "Runs studio bookings and collaborates on projects",
        "permissions": STUDIO_MANAGER_PERMISSIONS,
    },
    Role.ACCOUNTANT: {
        "name": "Accountant",
        "description": "Manages invoices with access to financial analytics",
        "permissions": ACCOUNTANT_PERMISSIONS,
    },
    Role.CREATOR: {
        "name": "Creator",
        "description": "Manages their own profile and the bookings assigned to them",
        "permissions": CREATOR_PERMISSIONS,
    },
    Role.CLIENT: {
        "name": "Client",
        "description": "Books creators and follows their own bookings",
        "permissions": CLIENT_PERMISSIONS,
    },
    Role.VIEWER: {
        "name": "Viewer",
        "description": "Basic read-only access",
        "permissions": VIEWER_PERMISSIONS,
    },
}


class PermissionCatalog:
    """Read-only table mapping each role to its ordered permissions.

    Built once at startup and shared by every request. Lookups never fail:
    an unknown role maps to an empty tuple so that checks deny by default.
    """

    def __init__(self, roles: Optional[Mapping[Role, dict]] = None):
        roles = DEFAULT_ROLES if roles is None else roles
        table: Dict[Role, Tuple[Permission, ...]] = {}
        info: Dict[Role, Mapping[str, str]] = {}
        for role, definition in roles.items():
            table[role] = tuple(definition.get("permissions", ()))
            info[role] = MappingProxyType({
                "name": definition.get("name", role.value),
                "description": definition.get("description", ""),
            })
        self._table = MappingProxyType(table)
        self._info = MappingProxyType(info)

    def permissions_for(self, role: Union[Role, str, None]) -> Tuple[Permission, ...]:
        """Get the ordered permissions for a role (empty for unknown roles)."""
        resolved = parse_role(role)
        if resolved is None:
            return ()
        return self._table.get(resolved, ())

    def roles(self) -> List[Role]:
        return list(self._table.keys())

    def describe(self, role: Union[Role, str]) -> Optional[Mapping[str, str]]:
        """Get display name and description for a role."""
        resolved = parse_role(role)
        if resolved is None:
            return None
        return self._info.get(resolved)

    def __contains__(self, role: object) -> bool:
        return parse_role(role) in self._table  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._table)


def build_catalog(overrides: Optional[Mapping[Role, dict]] = None) -> PermissionCatalog:
    """Build a catalog from the defaults, replacing any role given in overrides."""
    roles: Dict[Role, dict] = dict(DEFAULT_ROLES)
    if overrides:
        roles.update(overrides)
    return PermissionCatalog(roles)

