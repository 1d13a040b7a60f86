"""Policy engine for CreatorHub RBAC.

Answers "can subject S perform action A on resource R (instance I)?"
by combining the permission catalog, the condition evaluator and the
decision cache.

The engine is fail-closed: malformed contexts, unknown roles, missing
instance data and internal errors all resolve to deny. No exception
escapes a check.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from creatorhub.common.logger import get_logger

from .cache import DecisionCache
from .conditions import ConditionEvaluator
from .context import DecisionContext
from .permissions import Action, ActionLike, Permission, ResourceLike, Role, to_token
from .roles import PermissionCatalog

logger = get_logger(__name__)


class PolicyEngine:
    """
    Evaluates authorization checks for a decision context.

    Construct once at process start (see build_engine) and inject it
    wherever checks are made. Safe to share across threads.
    """

    def __init__(
        self,
        catalog: Optional[PermissionCatalog] = None,
        evaluator: Optional[ConditionEvaluator] = None,
        cache: Optional[DecisionCache] = None,
        max_workers: int = 8,
        audit_decisions: bool = False,
    ):
        """
        Initialize the policy engine.

        Args:
            catalog: Role permission table; defaults to the built-in roles
            evaluator: Condition evaluator
            cache: Decision cache, or None to disable caching
            max_workers: Thread pool size for batch checks
            audit_decisions: Log every verdict at INFO
        """
        self.catalog = catalog if catalog is not None else PermissionCatalog()
        self.evaluator = evaluator or ConditionEvaluator()
        self.cache = cache
        self.max_workers = max(1, max_workers)
        self.audit_decisions = audit_decisions
        self._pool = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="authz-batch"
        )

    def check_permission(
        self,
        context: DecisionContext,
        resource: ResourceLike,
        action: ActionLike,
        use_cache: bool = True,
    ) -> bool:
        """
        Check if the context's subject may perform action on resource.

        Args:
            context: Decision context for the caller
            resource: Resource type being accessed
            action: Action being performed
            use_cache: Read and write the decision cache. Pass False when
                the instance data did not come from the data-access layer.

        Returns:
            True if allowed. Never raises.
        """
        if not isinstance(context, DecisionContext) or not context.is_well_formed():
            logger.warning(
                "Malformed decision context for %s:%s; denying",
                to_token(resource), to_token(action),
            )
            return False

        try:
            resource_token = to_token(resource)
            action_token = to_token(action)
            key = DecisionCache.make_key(
                context.subject_id, resource_token, action_token,
                context.resource_instance_id,
            )

            cache = self.cache if use_cache else None

            if cache is not None:
                cached = cache.get(key)
                if cached is not None:
                    logger.debug("Decision cache hit: %s", key)
                    return cached

            allowed = self._evaluate(context, resource_token, action_token)

            if cache is not None:
                cache.put(key, allowed)
        except Exception:
            logger.error(
                "Permission check failed for subject %s on %s:%s; denying",
                context.subject_id, to_token(resource), to_token(action),
                exc_info=True,
            )
            return False

        if self.audit_decisions:
            logger.info(
                "%s %s:%s:%s -> %s",
                context.subject_id, resource_token, action_token,
                context.resource_instance_id or "all",
                "allow" if allowed else "deny",
            )
        return allowed

    def get_allowed_actions(
        self,
        context: DecisionContext,
        resource: ResourceLike,
    ) -> List[Action]:
        """Get every action the subject may perform on resource."""
        return [
            action for action in Action
            if self.check_permission(context, resource, action)
        ]

    def check_multiple_permissions(
        self,
        context: DecisionContext,
        checks: Iterable[Tuple[ResourceLike, ActionLike]],
    ) -> Dict[str, bool]:
        """
        Evaluate several (resource, action) pairs at once.

        Pairs are independent and evaluated on the engine's thread pool.

        Returns:
            Mapping of "resource:action" to verdict
        """
        pairs: Sequence[Tuple[ResourceLike, ActionLike]] = list(checks)
        if not pairs:
            return {}

        verdicts = list(self._pool.map(
            lambda pair: self.check_permission(context, pair[0], pair[1]),
            pairs,
        ))

        return {
            f"{to_token(resource)}:{to_token(action)}": verdict
            for (resource, action), verdict in zip(pairs, verdicts)
        }

    def can_perform_bulk_operation(
        self,
        context: DecisionContext,
        resource: ResourceLike,
    ) -> bool:
        return self.check_permission(context, resource, Action.BULK_OPERATION)

    def scope_for(
        self,
        context: DecisionContext,
        resource: ResourceLike,
        action: ActionLike,
        use_cache: bool = True,
    ) -> Optional[str]:
        """
        Get the data-set scope that applies to an allowed check.

        Returns:
            The scope name of the matching permission, or None when the
            check is denied or the permission is unscoped
        """
        if not self.check_permission(context, resource, action, use_cache=use_cache):
            return None
        permissions = self.catalog.permissions_for(context.role)
        if any(p.is_global_wildcard for p in permissions):
            return None
        match = _first_match(permissions, to_token(resource), to_token(action))
        return match.scope if match else None

    def get_user_permissions(self, role: Role) -> Tuple[Permission, ...]:
        """Get the ordered permissions for a role."""
        return self.catalog.permissions_for(role)

    def invalidate_subject_cache(self, subject_id: str) -> int:
        if self.cache is None:
            return 0
        return self.cache.invalidate_by_subject(subject_id)

    def invalidate_all_cache(self) -> int:
        if self.cache is None:
            return 0
        return self.cache.invalidate_all()

    def shutdown(self) -> None:
        """Stop the batch thread pool. Single checks keep working."""
        self._pool.shutdown(wait=True)

    def _evaluate(self, context: DecisionContext, resource: str, action: str) -> bool:
        """Compute a verdict without touching the cache."""
        permissions = self.catalog.permissions_for(context.role)

        if any(p.is_global_wildcard for p in permissions):
            return True

        match = _first_match(permissions, resource, action)
        if match is None:
            return False

        if match.conditions:
            return self.evaluator.holds_all(match.conditions, context)
        return True


def _first_match(
    permissions: Sequence[Permission],
    resource: str,
    action: str,
) -> Optional[Permission]:
    """First permission in catalog order covering (resource, action)."""
    for permission in permissions:
        if permission.matches(resource, action):
            return permission
    return None


def build_engine(settings=None, catalog: Optional[PermissionCatalog] = None) -> PolicyEngine:
    """
    Build the process-wide engine from settings.

    Args:
        settings: Application settings; defaults to get_settings()
        catalog: Explicit catalog; otherwise loaded from settings.catalog_path
            or the built-in roles

    Returns:
        Configured PolicyEngine
    """
    from creatorhub.common.config import load_catalog_file
    from creatorhub.core.config import get_settings

    settings = settings or get_settings()

    if catalog is None:
        if settings.catalog_path:
            catalog = load_catalog_file(settings.catalog_path)
            logger.info("Loaded role catalog from %s", settings.catalog_path)
        else:
            catalog = PermissionCatalog()

    cache = None
    if settings.decision_cache_enabled:
        cache = DecisionCache(default_ttl=settings.decision_cache_ttl)

    return PolicyEngine(
        catalog=catalog,
        cache=cache,
        max_workers=settings.batch_max_workers,
        audit_decisions=settings.audit_decisions,
    )
