from typing import Optional

from fastapi import Request

from creatorhub.core.rbac import DecisionContext, PolicyEngine, RoleAssignmentGuard


def get_engine(request: Request) -> PolicyEngine:
    """Policy engine built at startup (see create_app)."""
    return request.app.state.engine


def get_assignment_guard(request: Request) -> RoleAssignmentGuard:
    return request.app.state.assignment_guard


def get_decision_context(request: Request) -> Optional[DecisionContext]:
    """Decision context for the current caller.

    The host's authentication middleware stores it on
    request.state.decision_context; None means no identity was established.
    """
    context = getattr(request.state, "decision_context", None)
    if isinstance(context, DecisionContext):
        return context
    return None
