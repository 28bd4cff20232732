"""
Best-effort side operations.

Steps such as deactivating conflicting connections must never abort a
workflow. They return a report that callers log and attach to results.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from netlab.core.errors import BusCallError
from netlab.infrastructure.nm.bus import NetworkManagerBus

logger = logging.getLogger(__name__)


@dataclass
class BestEffortReport:
    """Outcome of a fire-and-log step."""

    step: str
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {"step": self.step, "succeeded": list(self.succeeded), "failed": dict(self.failed)}


async def deactivate_best_effort(
    bus: NetworkManagerBus,
    active_connections: Iterable[str],
    step: str = "deactivate",
) -> BestEffortReport:
    """Deactivate each active connection, recording failures instead of raising."""
    report = BestEffortReport(step=step)
    for active in active_connections:
        try:
            logger.info("Deactivating active connection: %s", active)
            await bus.deactivate_connection(active)
            report.succeeded.append(active)
        except BusCallError as e:
            logger.warning("Failed to deactivate %s: %s", active, e)
            report.failed[active] = str(e)
    return report
