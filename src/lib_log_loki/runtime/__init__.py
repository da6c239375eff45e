"""Runtime façade assembling the Loki shipping pipeline.

Purpose
-------
Expose a stable entry point (:func:`build_shipper`, :class:`LokiShipper`) that
host applications use instead of importing the inner layers directly.

System Role
-----------
Forms the outer shell: adapters and wiring are hidden behind this interface so
downstream services interact with a minimal, documented API.
"""

from __future__ import annotations

from ._composition import build_shipper
from ._shipper import LokiShipper

__all__ = ["LokiShipper", "build_shipper"]
