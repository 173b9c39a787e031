"""Fire-and-forget delivery of access decisions to an audit sink."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from rolegate_core.engine.models import AccessRequest, AccessResult
    from rolegate_core.interfaces.audit import AuditSink

logger = logging.getLogger(__name__)

AuditMode = Literal["all", "denials", "off"]


class AuditDispatcher:
    """Hands decisions to ``sink`` on a background worker.

    ``submit`` never blocks on the sink and never raises because of it; sink
    failures are logged and dropped. At most ``max_pending`` decisions wait for
    delivery; beyond that new ones are dropped with a warning.
    """

    def __init__(
        self, sink: AuditSink, mode: AuditMode = "denials", max_pending: int = 1000
    ) -> None:
        if mode not in ("all", "denials", "off"):
            raise ValueError(f"Unknown audit mode: {mode!r}")
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self._sink = sink
        self.mode = mode
        self.max_pending = max_pending
        self._slots = threading.BoundedSemaphore(max_pending)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rolegate-audit")

    def wants(self, result: AccessResult) -> bool:
        if self.mode == "off":
            return False
        return self.mode == "all" or not result.granted

    def submit(self, request: AccessRequest, result: AccessResult) -> None:
        if not self.wants(result):
            return
        if not self._slots.acquire(blocking=False):
            logger.warning(
                "Audit queue full (%d pending); dropped decision for %s",
                self.max_pending, request.user_id,
            )
            return
        try:
            self._executor.submit(self._deliver, request, result)
        except RuntimeError:
            self._slots.release()
            logger.warning("Audit dispatcher closed; dropped decision for %s", request.user_id)

    def _deliver(self, request: AccessRequest, result: AccessResult) -> None:
        try:
            self._sink.record(request, result)
        except Exception:
            logger.exception("Audit sink failed for %s on %s", request.user_id, request.resource)
        finally:
            self._slots.release()

    def close(self, wait: bool = True) -> None:
        """Stop accepting decisions; with ``wait`` flush those already queued."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> AuditDispatcher:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class LoggingAuditSink:
    """AuditSink that writes one log line per decision."""

    def __init__(self, logger_name: str = "rolegate.audit") -> None:
        self._logger = logging.getLogger(logger_name)

    def record(self, request: AccessRequest, result: AccessResult) -> None:
        self._logger.info(
            "access %s user=%s resource=%s action=%s reason=%s",
            "granted" if result.granted else "denied",
            request.user_id,
            request.resource,
            request.action,
            result.reason,
        )
