"""Interfaces for collaborators outside the engine."""

from rolegate_core.interfaces.audit import AuditSink

__all__ = ["AuditSink"]
