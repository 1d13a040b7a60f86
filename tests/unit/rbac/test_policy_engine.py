"""Tests for the policy engine."""

from unittest.mock import MagicMock, patch

import pytest

from creatorhub.core.config import Settings
from creatorhub.core.rbac import (
    Action,
    DecisionCache,
    DecisionContext,
    PermissionCatalog,
    PolicyEngine,
    Resource,
    Role,
    build_engine,
)


class TestWildcard:

    def test_super_admin_passes_every_check(self, engine, make_context):
        ctx = make_context(role=Role.SUPER_ADMIN)
        for resource in Resource:
            for action in Action:
                assert engine.check_permission(ctx, resource, action)

    def test_wildcard_bypasses_conditions(self, engine, make_context):
        ctx = make_context(role=Role.SUPER_ADMIN)
        with patch.object(engine.evaluator, "holds", wraps=engine.evaluator.holds) as holds:
            assert engine.check_permission(ctx, Resource.BOOKING, Action.UPDATE)
        assert holds.call_count == 0

    def test_wildcard_allow_is_cached(self, engine, cache, make_context):
        ctx = make_context(role=Role.SUPER_ADMIN, subject_id="root")
        engine.check_permission(ctx, Resource.SETTINGS, Action.DELETE)
        assert cache.get("root:settings:delete:all") is True


class TestSelfCondition:

    def test_client_reads_own_user(self, engine, make_context):
        ctx = make_context(role=Role.CLIENT, subject_id="u1", resource_instance_id="u1")
        assert engine.check_permission(ctx, Resource.USER, Action.READ)

    def test_client_cannot_read_other_user(self, engine, make_context):
        ctx = make_context(role=Role.CLIENT, subject_id="u1", resource_instance_id="u2")
        assert not engine.check_permission(ctx, Resource.USER, Action.READ)


class TestStatusGating:

    def test_creator_updates_draft_booking(self, engine, make_context):
        ctx = make_context(
            role=Role.CREATOR, subject_id="u1", resource_instance_id="b1",
            resource_instance_data={"status": "DRAFT", "assignedTo": "u1"},
        )
        assert engine.check_permission(ctx, Resource.BOOKING, Action.UPDATE)

    def test_creator_cannot_update_completed_booking(self, engine, make_context):
        ctx = make_context(
            role=Role.CREATOR, subject_id="u1", resource_instance_id="b2",
            resource_instance_data={"status": "COMPLETED", "assignedTo": "u1"},
        )
        assert not engine.check_permission(ctx, Resource.BOOKING, Action.UPDATE)

    def test_creator_cannot_update_unassigned_draft(self, engine, make_context):
        ctx = make_context(
            role=Role.CREATOR, subject_id="u1", resource_instance_id="b3",
            resource_instance_data={"status": "DRAFT", "assignedTo": "u2"},
        )
        assert not engine.check_permission(ctx, Resource.BOOKING, Action.UPDATE)

    def test_missing_instance_data_denies(self, engine, make_context):
        ctx = make_context(role=Role.CREATOR, subject_id="u1", resource_instance_id="b4")
        assert not engine.check_permission(ctx, Resource.BOOKING, Action.UPDATE)


class TestMatching:

    def test_manage_grants_specific_actions(self, engine, make_context):
        ctx = make_context(role=Role.ORG_ADMIN)
        assert engine.check_permission(ctx, Resource.BOOKING, Action.DELETE)
        assert engine.check_permission(ctx, Resource.BOOKING, Action.APPROVE)

    def test_unlisted_pair_denied(self, engine, make_context):
        ctx = make_context(role=Role.ORG_ADMIN)
        assert not engine.check_permission(ctx, Resource.ORGANIZATION, Action.DELETE)

    def test_first_match_in_catalog_order(self, engine, make_context):
        """LABEL_MANAGER's user:create is gated on the caller's own role."""
        ctx = make_context(role=Role.LABEL_MANAGER)
        assert engine.check_permission(ctx, Resource.USER, Action.READ)
        assert not engine.check_permission(ctx, Resource.USER, Action.CREATE)

    def test_unconditional_permission(self, engine, make_context):
        ctx = make_context(role=Role.CLIENT)
        assert engine.check_permission(ctx, Resource.BOOKING, Action.CREATE)
        assert engine.check_permission(ctx, "artist", "read")

    def test_unknown_resource_and_action_denied(self, engine, make_context):
        assert not engine.check_permission(make_context(role=Role.ORG_ADMIN), "spaceship", Action.READ)
        assert not engine.check_permission(make_context(role=Role.CLIENT), Resource.BOOKING, "teleport")

    def test_client_condition(self, engine, make_context):
        ctx = make_context(
            role=Role.CLIENT, subject_id="c1", resource_instance_id="k1",
            resource_instance_data={"clientId": "c1"},
        )
        assert engine.check_permission(ctx, Resource.CONTRACT, Action.READ)
        other = ctx.for_instance("k2", {"clientId": "c2"})
        assert not engine.check_permission(other, Resource.CONTRACT, Action.READ)


class TestMalformedContext:

    @pytest.mark.parametrize("subject_id, role", [
        ("", Role.ORG_ADMIN),
        (None, Role.ORG_ADMIN),
        ("u1", None),
        ("u1", "PIRATE"),
        ("u1:x", Role.ORG_ADMIN),
    ])
    def test_denied_without_raising(self, engine, subject_id, role):
        ctx = DecisionContext(subject_id=subject_id, organization_id="org1", role=role)
        assert engine.check_permission(ctx, Resource.ORGANIZATION, Action.READ) is False

    def test_not_a_context(self, engine):
        assert engine.check_permission(None, Resource.ORGANIZATION, Action.READ) is False

    def test_malformed_context_not_cached(self, engine, cache):
        ctx = DecisionContext(subject_id="u1", organization_id="org1", role=None)
        engine.check_permission(ctx, Resource.ORGANIZATION, Action.READ)
        assert len(cache) == 0

    def test_internal_fault_denies(self, cache, make_context):
        catalog = MagicMock()
        catalog.permissions_for.side_effect = RuntimeError("boom")
        engine = PolicyEngine(catalog=catalog, cache=cache)

        ctx = make_context(role=Role.ORG_ADMIN)
        assert engine.check_permission(ctx, Resource.BOOKING, Action.READ) is False
        assert len(cache) == 0


class TestCaching:

    def test_second_call_is_cache_hit(self, engine, make_context):
        ctx = make_context(role=Role.CLIENT, subject_id="u1", resource_instance_id="u1")
        with patch.object(engine.evaluator, "holds", wraps=engine.evaluator.holds) as holds:
            first = engine.check_permission(ctx, Resource.USER, Action.READ)
            assert holds.call_count == 1
            second = engine.check_permission(ctx, Resource.USER, Action.READ)
        assert first == second is True
        assert holds.call_count == 1

    def test_expired_verdict_recomputed(self, engine, clock, make_context):
        ctx = make_context(role=Role.CLIENT, subject_id="u1", resource_instance_id="u1")
        with patch.object(engine.evaluator, "holds", wraps=engine.evaluator.holds) as holds:
            assert engine.check_permission(ctx, Resource.USER, Action.READ)
            clock.advance(301)
            assert engine.check_permission(ctx, Resource.USER, Action.READ)
        assert holds.call_count == 2

    def test_invalidate_subject_cache(self, engine, cache, make_context):
        u1 = make_context(role=Role.CLIENT, subject_id="u1")
        u2 = make_context(role=Role.CLIENT, subject_id="u2")
        engine.check_permission(u1, Resource.BOOKING, Action.CREATE)
        engine.check_permission(u1, Resource.ARTIST, Action.READ)
        engine.check_permission(u2, Resource.BOOKING, Action.CREATE)

        assert engine.invalidate_subject_cache("u1") == 2
        assert all(not k.startswith("u1:") for k in cache.keys())
        assert cache.get("u2:booking:create:all") is True

    def test_invalidate_all_cache(self, engine, cache, make_context):
        engine.check_permission(make_context(subject_id="u1"), Resource.BOOKING, Action.CREATE)
        engine.check_permission(make_context(subject_id="u2"), Resource.BOOKING, Action.CREATE)
        assert engine.invalidate_all_cache() == 2
        assert len(cache) == 0

    def test_separator_in_subject_not_cached(self, engine, cache, make_context):
        engine.check_permission(make_context(subject_id="u1"), Resource.BOOKING, Action.CREATE)
        engine.check_permission(make_context(subject_id="u1:x"), Resource.BOOKING, Action.CREATE)
        assert cache.keys() == ["u1:booking:create:all"]
        assert engine.invalidate_subject_cache("u1") == 1

    def test_uncached_check_leaves_cache_alone(self, engine, cache, make_context):
        forged = make_context(
            role=Role.CREATOR, subject_id="u1", resource_instance_id="b2",
            resource_instance_data={"assignedTo": "u1", "status": "DRAFT"},
        )
        assert engine.check_permission(forged, Resource.BOOKING, Action.UPDATE, use_cache=False)
        assert len(cache) == 0

        real = forged.for_instance("b2", {"assignedTo": "u1", "status": "COMPLETED"})
        assert not engine.check_permission(real, Resource.BOOKING, Action.UPDATE)

    def test_uncached_check_ignores_cached_verdict(self, engine, cache, make_context):
        ctx = make_context(role=Role.CREATOR, subject_id="u1", resource_instance_id="b1")
        cache.put("u1:booking:update:b1", True)
        assert not engine.check_permission(ctx, Resource.BOOKING, Action.UPDATE, use_cache=False)

    def test_engine_without_cache(self, make_context):
        engine = PolicyEngine(cache=None)
        ctx = make_context(role=Role.CLIENT, subject_id="u1", resource_instance_id="u1")
        assert engine.check_permission(ctx, Resource.USER, Action.READ)
        assert engine.invalidate_subject_cache("u1") == 0
        assert engine.invalidate_all_cache() == 0


class TestAllowedActions:

    @pytest.mark.parametrize("role", list(Role))
    def test_consistent_with_check_permission(self, engine, make_context, role):
        ctx = make_context(
            role=role, subject_id="u1", resource_instance_id="b1",
            resource_instance_data={"assignedTo": "u1", "createdBy": "u1", "status": "DRAFT"},
        )
        allowed = set(engine.get_allowed_actions(ctx, Resource.BOOKING))
        expected = {a for a in Action if engine.check_permission(ctx, Resource.BOOKING, a)}
        assert allowed == expected

    def test_org_admin_booking_actions(self, engine, make_context):
        ctx = make_context(role=Role.ORG_ADMIN)
        assert engine.get_allowed_actions(ctx, Resource.BOOKING) == list(Action)

    def test_viewer_booking_actions(self, engine, make_context):
        ctx = make_context(
            role=Role.VIEWER, subject_id="u1", resource_instance_id="b1",
            resource_instance_data={"assignedTo": "u1"},
        )
        assert engine.get_allowed_actions(ctx, Resource.BOOKING) == [Action.READ]

    def test_malformed_context_gets_nothing(self, engine):
        ctx = DecisionContext(subject_id="", organization_id=None, role=Role.ORG_ADMIN)
        assert engine.get_allowed_actions(ctx, Resource.BOOKING) == []


class TestMultiplePermissions:

    def test_results_keyed_by_pair(self, engine, make_context):
        ctx = make_context(role=Role.ACCOUNTANT)
        results = engine.check_multiple_permissions(ctx, [
            (Resource.INVOICE, Action.DELETE),
            (Resource.BOOKING, Action.READ),
            (Resource.BOOKING, Action.UPDATE),
            ("analytics", "export"),
        ])
        assert results == {
            "invoice:delete": True,
            "booking:read": True,
            "booking:update": False,
            "analytics:export": True,
        }

    def test_empty_checks(self, engine, make_context):
        assert engine.check_multiple_permissions(make_context(), []) == {}

    def test_matches_single_checks(self, engine, make_context):
        ctx = make_context(role=Role.STUDIO_MANAGER)
        pairs = [(r, a) for r in Resource for a in (Action.READ, Action.UPDATE)]
        results = engine.check_multiple_permissions(ctx, pairs)
        for resource, action in pairs:
            key = f"{resource.value}:{action.value}"
            assert results[key] == engine.check_permission(ctx, resource, action)

    def test_pool_reused_across_calls(self, engine, make_context):
        pool = engine._pool
        engine.check_multiple_permissions(make_context(), [(Resource.BOOKING, Action.CREATE)])
        engine.check_multiple_permissions(make_context(), [(Resource.ARTIST, Action.READ)])
        assert engine._pool is pool

    def test_single_checks_after_shutdown(self, cache, make_context):
        engine = PolicyEngine(cache=cache, max_workers=2)
        engine.shutdown()
        assert engine.check_permission(make_context(), Resource.BOOKING, Action.CREATE)


class TestBulkOperation:

    def test_manage_allows_bulk(self, engine, make_context):
        assert engine.can_perform_bulk_operation(make_context(role=Role.ORG_ADMIN), Resource.BOOKING)

    def test_no_bulk_without_manage(self, engine, make_context):
        assert not engine.can_perform_bulk_operation(make_context(role=Role.CLIENT), Resource.BOOKING)


class TestScopeFor:

    def test_accountant_financial_scope(self, engine, make_context):
        ctx = make_context(role=Role.ACCOUNTANT)
        assert engine.check_permission(ctx, Resource.ANALYTICS, Action.READ)
        assert engine.scope_for(ctx, Resource.ANALYTICS, Action.READ) == "financial"

    def test_unscoped_permission(self, engine, make_context):
        assert engine.scope_for(make_context(role=Role.ORG_ADMIN), Resource.ANALYTICS, Action.READ) is None

    def test_super_admin_unscoped(self, engine, make_context):
        assert engine.scope_for(make_context(role=Role.SUPER_ADMIN), Resource.ANALYTICS, Action.READ) is None

    def test_denied_has_no_scope(self, engine, make_context):
        assert engine.scope_for(make_context(role=Role.CLIENT), Resource.ANALYTICS, Action.READ) is None


class TestBuildEngine:

    def test_defaults(self):
        engine = build_engine(Settings(decision_cache_ttl=60, batch_max_workers=2))
        assert isinstance(engine.cache, DecisionCache)
        assert engine.cache.default_ttl == 60
        assert engine.max_workers == 2
        assert len(engine.catalog) == len(Role)

    def test_cache_disabled(self):
        engine = build_engine(Settings(decision_cache_enabled=False))
        assert engine.cache is None

    def test_explicit_catalog(self):
        catalog = PermissionCatalog({})
        engine = build_engine(Settings(), catalog=catalog)
        assert engine.catalog is catalog

    def test_audit_logging(self, make_context, caplog):
        engine = build_engine(Settings(audit_decisions=True))
        with caplog.at_level("INFO", logger="creatorhub.core.rbac.engine"):
            engine.check_permission(make_context(role=Role.CLIENT, subject_id="u5"), Resource.BOOKING, Action.CREATE)
        assert "u5 booking:create:all -> allow" in caplog.text
