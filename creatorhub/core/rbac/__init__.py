"""RBAC (Role-Based Access Control) module for CreatorHub.

This module defines the permission model, the role catalog, condition
evaluation, the decision cache and the policy engine.
"""

from .permissions import Permission, Resource, Action, Role, Condition, ConditionKind, WILDCARD
from .roles import PermissionCatalog, DEFAULT_ROLES, build_catalog
from .context import DecisionContext
from .conditions import ConditionEvaluator
from .cache import DecisionCache
from .engine import PolicyEngine, build_engine
from .assignment import RoleAssignmentGuard, AssignmentResult
from .scopes import Scope, ScopeFilter

__all__ = [
    "Permission",
    "Resource",
    "Action",
    "Role",
    "Condition",
    "ConditionKind",
    "WILDCARD",
    "PermissionCatalog",
    "DEFAULT_ROLES",
    "build_catalog",
    "DecisionContext",
    "ConditionEvaluator",
    "DecisionCache",
    "PolicyEngine",
    "build_engine",
    "RoleAssignmentGuard",
    "AssignmentResult",
    "Scope",
    "ScopeFilter",
]
