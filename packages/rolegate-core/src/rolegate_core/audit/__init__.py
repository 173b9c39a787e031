from rolegate_core.audit.dispatcher import AuditDispatcher, LoggingAuditSink

__all__ = ["AuditDispatcher", "LoggingAuditSink"]
