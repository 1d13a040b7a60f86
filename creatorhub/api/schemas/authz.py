from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from creatorhub.core.rbac import Action, Resource, Role


class PermissionCheck(BaseModel):
    resource: Resource
    action: Action
    resource_instance_id: Optional[str] = None
    resource_instance_data: Optional[Dict[str, Any]] = None


class PermissionCheckResponse(BaseModel):
    resource: Resource
    action: Action
    allowed: bool
    scope: Optional[str] = None


class PermissionPair(BaseModel):
    resource: Resource
    action: Action


class MultiCheckRequest(BaseModel):
    checks: List[PermissionPair] = Field(..., min_length=1, max_length=100)


class MultiCheckResponse(BaseModel):
    results: Dict[str, bool]


class AllowedActionsResponse(BaseModel):
    resource: Resource
    actions: List[Action]


class RoleAssignmentRequest(BaseModel):
    target_subject_id: str = Field(..., min_length=1)
    new_role: Role


class RoleAssignmentResponse(BaseModel):
    target_subject_id: str
    new_role: Role
    allowed: bool
    reason: Optional[str] = None


class CacheInvalidateRequest(BaseModel):
    subject_id: Optional[str] = Field(None, description="Subject to invalidate; omit to flush all")


class CacheInvalidateResponse(BaseModel):
    removed: int


class PermissionInfo(BaseModel):
    permission: str
    resource: str
    action: str
    conditions: List[str] = Field(default_factory=list)


class RoleInfo(BaseModel):
    role: Role
    name: str
    description: str
    permissions: List[PermissionInfo]


class RoleCatalogResponse(BaseModel):
    roles: List[RoleInfo]
