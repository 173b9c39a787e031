"""Build a ready-to-use engine from app-level config."""

from __future__ import annotations

from rolegate_core.audit.dispatcher import AuditDispatcher
from rolegate_core.config.models import RolegateConfig
from rolegate_core.engine.engine import PolicyEngine
from rolegate_core.interfaces.audit import AuditSink
from rolegate_core.policy.defaults import seed_defaults
from rolegate_core.policy.loader import load_policy
from rolegate_core.registry.store import PolicyStore


def create_engine(
    config: RolegateConfig | None = None,
    audit_sink: AuditSink | None = None,
) -> PolicyEngine:
    """Create a store and engine from ``config``.

    Seeds the built-in roles when ``engine.seed_system_roles`` is set, then
    applies ``policy_files`` in order. ``audit_sink`` is wrapped in an
    :class:`AuditDispatcher` unless ``audit.mode`` is ``"off"``.
    """
    config = config or RolegateConfig()
    store = PolicyStore.from_config(config.registry)
    if config.engine.seed_system_roles:
        seed_defaults(store)
    for path in config.policy_files:
        load_policy(path, store)

    audit = None
    if audit_sink is not None and config.audit.mode != "off":
        audit = AuditDispatcher(
            audit_sink, mode=config.audit.mode, max_pending=config.audit.max_pending
        )
    return PolicyEngine(store, settings=config.engine, audit=audit)
