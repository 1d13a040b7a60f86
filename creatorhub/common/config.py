"""Role catalog configuration for CreatorHub.

Handles loading and validation of YAML role catalogs. A catalog file
replaces the built-in definition of every role it names; roles it does
not mention keep their defaults.

Example:

    roles:
      VIEWER:
        name: Viewer
        description: Read-only access
        permissions:
          - resource: organization
            action: read
          - resource: booking
            action: read
            conditions:
              assigned: true
          - resource: analytics
            action: read
            conditions:
              scope: basic
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from creatorhub.core.rbac.permissions import (
    WILDCARD,
    Action,
    Condition,
    ConditionKind,
    Permission,
    Resource,
    Role,
    parse_role,
)
from creatorhub.core.rbac.roles import PermissionCatalog, build_catalog


class CatalogError(ValueError):
    """Raised when a role catalog is malformed."""


# Conditions whose parameter is a flag, a set of names, or a single name
FLAG_CONDITIONS = {
    ConditionKind.SELF,
    ConditionKind.ASSIGNED,
    ConditionKind.CREATED,
    ConditionKind.OWNER,
    ConditionKind.MEMBER,
    ConditionKind.CLIENT,
}
SET_CONDITIONS = {ConditionKind.ROLE, ConditionKind.STATUS}


def parse_conditions(conditions_dict: Mapping[str, Any]) -> List[Condition]:
    """Parse a conditions mapping like {assigned: true, status: [DRAFT]}.

    Args:
        conditions_dict: Conditions mapping from the catalog file

    Returns:
        List of Condition values

    Raises:
        CatalogError: If a condition name or parameter is invalid
    """
    conditions = []
    for name, value in conditions_dict.items():
        try:
            kind = ConditionKind(name)
        except ValueError:
            raise CatalogError(f"Unknown condition: {name}") from None

        if kind in FLAG_CONDITIONS:
            # A false flag is the same as leaving the condition out
            if value is not True:
                if value is False:
                    continue
                raise CatalogError(f"Condition {name} must be true or false")
            conditions.append(Condition(kind))

        elif kind in SET_CONDITIONS:
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not value:
                raise CatalogError(f"Condition {name} must be a non-empty list")
            if kind == ConditionKind.ROLE:
                roles = [parse_role(v) for v in value]
                if None in roles:
                    raise CatalogError(f"Unknown role in condition {name}: {value}")
                value = [r.value for r in roles]
            conditions.append(Condition(kind, frozenset(str(v) for v in value)))

        else:
            if not isinstance(value, str) or not value:
                raise CatalogError(f"Condition {name} must be a scope name")
            conditions.append(Condition(kind, value))

    return conditions


def parse_permission(permission_dict: Mapping[str, Any]) -> Permission:
    """Parse a single permission entry.

    Raises:
        CatalogError: If the resource or action is unknown
    """
    resource = permission_dict.get("resource")
    action = permission_dict.get("action")

    if resource != WILDCARD:
        try:
            resource = Resource(resource).value
        except ValueError:
            raise CatalogError(f"Unknown resource: {resource}") from None
    if action != WILDCARD:
        try:
            action = Action(action).value
        except ValueError:
            raise CatalogError(f"Unknown action: {action}") from None

    conditions = parse_conditions(permission_dict.get("conditions") or {})
    return Permission(resource, action, tuple(conditions))


def parse_role_definition(role: Role, role_dict: Mapping[str, Any]) -> Dict[str, Any]:
    """Parse a role definition into the DEFAULT_ROLES shape."""
    permissions = role_dict.get("permissions") or []
    if not isinstance(permissions, list):
        raise CatalogError(f"Permissions of {role.value} must be a list")

    return {
        "name": role_dict.get("name", role.value),
        "description": role_dict.get("description", ""),
        "permissions": [parse_permission(p) for p in permissions],
    }


def parse_catalog(config_dict: Mapping[str, Any]) -> PermissionCatalog:
    """Parse the full catalog dictionary.

    Args:
        config_dict: Catalog dictionary with a top-level "roles" mapping

    Returns:
        PermissionCatalog with the file's roles over the built-in ones
    """
    roles_dict = config_dict.get("roles") or {}
    if not isinstance(roles_dict, dict):
        raise CatalogError("'roles' must be a mapping")

    overrides = {}
    for role_name, role_dict in roles_dict.items():
        role = parse_role(role_name)
        if role is None:
            raise CatalogError(f"Unknown role: {role_name}")
        overrides[role] = parse_role_definition(role, role_dict or {})

    return build_catalog(overrides)


def load_config(config_path: str) -> Dict[str, Any]:
    """Read a YAML file into a dict, expanding $VAR references in strings.

    An empty file yields {}.

    Raises:
        FileNotFoundError: If the file doesn't exist
        TypeError: If the document root is not a mapping
        yaml.YAMLError: If the file is not valid YAML
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Role catalog not found: {config_path}")

    document = yaml.safe_load(path.read_text())
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise TypeError(
            f"Role catalog root must be a mapping, got {type(document).__name__}"
        )
    return expand_env(document)


def expand_env(value: Any) -> Any:
    """Expand $VAR and ${VAR} in every string of a parsed document."""
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    return value


def load_catalog_file(config_path: str) -> PermissionCatalog:
    """Load and parse a YAML role catalog.

    Raises:
        FileNotFoundError: If the file doesn't exist
        CatalogError: If the catalog is malformed
    """
    return parse_catalog(load_config(config_path))
