"""Authorization capability endpoints.

Lets route layers and UI clients ask what the current caller may do.
Identity comes from request.state.decision_context, set by the host's
authentication middleware.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from creatorhub.api.deps import get_assignment_guard, get_decision_context, get_engine
from creatorhub.api.guards import GuardResult, PermissionGuard, forbidden_response
from creatorhub.api.schemas.authz import (
    AllowedActionsResponse,
    CacheInvalidateRequest,
    CacheInvalidateResponse,
    MultiCheckRequest,
    MultiCheckResponse,
    PermissionCheck,
    PermissionCheckResponse,
    PermissionInfo,
    RoleCatalogResponse,
    RoleInfo,
    RoleAssignmentRequest,
    RoleAssignmentResponse,
)
from creatorhub.core.rbac import (
    Action,
    DecisionContext,
    PolicyEngine,
    Resource,
    RoleAssignmentGuard,
)

router = APIRouter(prefix="/authz", tags=["authz"])


def _unauthenticated(resource: Resource, action: Action) -> JSONResponse:
    return forbidden_response(
        GuardResult(False, resource, action, reason="Authentication required")
    )


@router.get("/actions/{resource}", response_model=AllowedActionsResponse)
async def allowed_actions(
    resource: Resource,
    context: Optional[DecisionContext] = Depends(get_decision_context),
    engine: PolicyEngine = Depends(get_engine),
):
    """List the actions the caller may perform on a resource type."""
    if context is None:
        return _unauthenticated(resource, Action.READ)
    return AllowedActionsResponse(
        resource=resource,
        actions=engine.get_allowed_actions(context, resource),
    )


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    check: PermissionCheck,
    context: Optional[DecisionContext] = Depends(get_decision_context),
    engine: PolicyEngine = Depends(get_engine),
):
    """Check a single permission, optionally against a resource instance."""
    if context is None:
        return _unauthenticated(check.resource, check.action)

    if check.resource_instance_id is not None or check.resource_instance_data is not None:
        context = context.for_instance(check.resource_instance_id, check.resource_instance_data)

    # Instance checks from the caller bypass the shared cache: the guard
    # keys the same instance but evaluates data from the data-access layer
    use_cache = check.resource_instance_id is None and check.resource_instance_data is None
    allowed = engine.check_permission(context, check.resource, check.action, use_cache=use_cache)
    return PermissionCheckResponse(
        resource=check.resource,
        action=check.action,
        allowed=allowed,
        scope=(
            engine.scope_for(context, check.resource, check.action, use_cache=use_cache)
            if allowed else None
        ),
    )


@router.post("/check-many", response_model=MultiCheckResponse)
def check_many(
    request: MultiCheckRequest,
    context: Optional[DecisionContext] = Depends(get_decision_context),
    engine: PolicyEngine = Depends(get_engine),
):
    """Check several (resource, action) pairs for the caller."""
    if context is None:
        first = request.checks[0]
        return _unauthenticated(first.resource, first.action)

    results = engine.check_multiple_permissions(
        context, [(c.resource, c.action) for c in request.checks]
    )
    return MultiCheckResponse(results=results)


@router.post("/roles/assign", response_model=RoleAssignmentResponse)
async def assign_role(
    request: RoleAssignmentRequest,
    context: Optional[DecisionContext] = Depends(get_decision_context),
    guard: RoleAssignmentGuard = Depends(get_assignment_guard),
):
    """Check whether the caller may grant a role. Does not persist anything."""
    if context is None:
        return _unauthenticated(Resource.USER, Action.MANAGE)

    result = guard.evaluate_assignment(context, request.target_subject_id, request.new_role)
    return RoleAssignmentResponse(
        target_subject_id=request.target_subject_id,
        new_role=request.new_role,
        allowed=result.allowed,
        reason=result.reason,
    )


@router.post("/cache/invalidate", response_model=CacheInvalidateResponse)
async def invalidate_cache(
    request: CacheInvalidateRequest,
    context: Optional[DecisionContext] = Depends(get_decision_context),
    engine: PolicyEngine = Depends(get_engine),
):
    """
    Invalidate cached decisions.

    Callers may always invalidate their own entries; other subjects and
    the global flush require user management rights.
    """
    if context is None:
        return _unauthenticated(Resource.USER, Action.MANAGE)

    if request.subject_id != context.subject_id:
        if not engine.check_permission(context, Resource.USER, Action.MANAGE):
            return forbidden_response(GuardResult(
                False, Resource.USER, Action.MANAGE, context,
                reason="Insufficient permissions to invalidate other subjects",
            ))

    if request.subject_id is None:
        removed = engine.invalidate_all_cache()
    else:
        removed = engine.invalidate_subject_cache(request.subject_id)
    return CacheInvalidateResponse(removed=removed)


@router.get("/roles", response_model=RoleCatalogResponse)
async def list_roles(
    guard: GuardResult = Depends(PermissionGuard(Resource.USER, Action.READ)),
    engine: PolicyEngine = Depends(get_engine),
):
    """List the role catalog with each role's permissions."""
    if not guard.allowed:
        return forbidden_response(guard)

    roles = []
    for role in engine.catalog.roles():
        info = engine.catalog.describe(role) or {}
        roles.append(RoleInfo(
            role=role,
            name=info.get("name", role.value),
            description=info.get("description", ""),
            permissions=[
                PermissionInfo(
                    permission=str(p),
                    resource=p.resource,
                    action=p.action,
                    conditions=[str(c) for c in p.conditions],
                )
                for p in engine.get_user_permissions(role)
            ],
        ))
    return RoleCatalogResponse(roles=roles)
