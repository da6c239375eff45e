"""Diagnostic hook wrapper shared by the sender and the queue worker."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ._types import DiagnosticHook

logger = logging.getLogger(__name__)


def build_diagnostic_emitter(diagnostic: DiagnosticHook) -> Callable[[str, dict[str, Any]], None]:
    """Return a callable that forwards milestones to ``diagnostic`` safely.

    Hook failures are logged and swallowed so observability code can never break
    delivery.

    Examples
    --------
    >>> seen = []
    >>> emit = build_diagnostic_emitter(lambda name, payload: seen.append((name, payload)))
    >>> emit("delivery_succeeded", {"entries": 1})
    >>> seen
    [('delivery_succeeded', {'entries': 1})]
    >>> build_diagnostic_emitter(None)("ignored", {})
    """

    if diagnostic is None:

        def _noop(name: str, payload: dict[str, Any]) -> None:
            return None

        return _noop

    def _emit(name: str, payload: dict[str, Any]) -> None:
        try:
            diagnostic(name, payload)
        except Exception:  # noqa: BLE001
            logger.error("Diagnostic hook raised while reporting %s", name, exc_info=True)

    return _emit


__all__ = ["build_diagnostic_emitter"]
