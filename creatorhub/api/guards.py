"""Route guards for the CreatorHub API.

Guards are FastAPI dependencies composed when a route is registered.
They never raise on denial: the handler receives a GuardResult and
branches on it, returning forbidden_response() for the deny path.

Usage:
    @router.patch("/bookings/{booking_id}")
    async def update_booking(
        booking_id: str,
        guard: GuardResult = Depends(
            PermissionGuard(Resource.BOOKING, Action.UPDATE,
                            instance_param="booking_id",
                            instance_loader=load_booking)
        ),
    ):
        if not guard.allowed:
            return forbidden_response(guard)
        ...
"""

from typing import Any, Callable, Mapping, NamedTuple, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from creatorhub.common.logger import get_logger
from creatorhub.core.rbac import Action, DecisionContext, Resource
from creatorhub.api.deps import get_decision_context, get_engine
from creatorhub.api.schemas.common import ErrorResponse

logger = get_logger(__name__)

InstanceLoader = Callable[[Request, str], Optional[Mapping[str, Any]]]


class GuardResult(NamedTuple):
    """Structured outcome of a route guard."""
    allowed: bool
    resource: Resource
    action: Action
    context: Optional[DecisionContext] = None
    reason: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.context is not None


class PermissionGuard:
    """
    FastAPI dependency checking one (resource, action) pair.

    Args:
        resource: Resource protected by the route
        action: Action the route performs
        instance_param: Path parameter holding the target instance id
        instance_loader: Callable returning the instance data the
            conditions need, given the request and the instance id
    """

    def __init__(
        self,
        resource: Resource,
        action: Action,
        instance_param: Optional[str] = None,
        instance_loader: Optional[InstanceLoader] = None,
    ):
        self.resource = resource
        self.action = action
        self.instance_param = instance_param
        self.instance_loader = instance_loader

    async def __call__(self, request: Request) -> GuardResult:
        context = get_decision_context(request)
        if context is None:
            return GuardResult(
                False, self.resource, self.action,
                reason="Authentication required",
            )

        if self.instance_param:
            instance_id = request.path_params.get(self.instance_param)
            data = None
            if instance_id is not None and self.instance_loader is not None:
                data = self.instance_loader(request, instance_id)
            context = context.for_instance(instance_id, data)

        engine = get_engine(request)
        if engine.check_permission(context, self.resource, self.action):
            return GuardResult(True, self.resource, self.action, context)

        logger.info(
            "Denied %s on %s for subject %s",
            self.action.value, self.resource.value, context.subject_id,
        )
        return GuardResult(
            False, self.resource, self.action, context,
            reason=f"Insufficient permissions for {self.action.value} on {self.resource.value}",
        )


def forbidden_response(result: GuardResult) -> JSONResponse:
    """Build the HTTP response for a denied GuardResult."""
    if not result.authenticated:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=ErrorResponse(
                error="unauthorized", detail=result.reason, code="authentication_required",
            ).model_dump(),
        )
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=ErrorResponse(
            error="forbidden", detail=result.reason, code="permission_denied",
        ).model_dump(),
    )
