"""Pytest configuration and shared fixtures."""

import pytest

from creatorhub.core.rbac import (
    ConditionEvaluator,
    DecisionCache,
    DecisionContext,
    PermissionCatalog,
    PolicyEngine,
    Role,
    RoleAssignmentGuard,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return DecisionCache(default_ttl=300, clock=clock)


@pytest.fixture
def engine(cache):
    """Engine over the built-in catalog with a controllable cache clock."""
    engine = PolicyEngine(
        catalog=PermissionCatalog(),
        evaluator=ConditionEvaluator(),
        cache=cache,
        max_workers=4,
    )
    yield engine
    engine.shutdown()


@pytest.fixture
def assignment_guard(engine):
    return RoleAssignmentGuard(engine)


@pytest.fixture
def make_context():
    """Factory for decision contexts."""
    def _make(
        role=Role.CLIENT,
        subject_id="u1",
        organization_id="org1",
        resource_instance_id=None,
        resource_instance_data=None,
    ) -> DecisionContext:
        return DecisionContext(
            subject_id=subject_id,
            organization_id=organization_id,
            role=role,
            resource_instance_id=resource_instance_id,
            resource_instance_data=resource_instance_data,
        )
    return _make
