"""Event system for deployment progress (Server-Sent Events)."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

# Events after which a run publishes nothing further
TERMINAL_EVENTS = frozenset({"deployment_complete", "deployment_cancelled", "error"})


@dataclass
class Event:
    """A deployment progress event."""

    event_type: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.event_type in TERMINAL_EVENTS

    def to_sse(self) -> str:
        """Convert to SSE format."""
        data_json = json.dumps({**self.data, "timestamp": self.timestamp.isoformat()})
        return f"event: {self.event_type}\ndata: {data_json}\n\n"


class EventBus:
    """Simple event bus for deployment run events."""

    def __init__(self):
        self._subscribers: dict[UUID, asyncio.Queue[Event]] = {}

    def subscribe(self, run_id: UUID) -> asyncio.Queue[Event]:
        """Subscribe to events for a run."""
        if run_id not in self._subscribers:
            self._subscribers[run_id] = asyncio.Queue()
        return self._subscribers[run_id]

    def unsubscribe(self, run_id: UUID) -> None:
        """Unsubscribe from run events."""
        self._subscribers.pop(run_id, None)

    async def publish(self, run_id: UUID, event: Event) -> None:
        """Publish an event for a run."""
        if run_id in self._subscribers:
            await self._subscribers[run_id].put(event)

    async def publish_region_started(self, run_id: UUID, region: str, sites: list[str]) -> None:
        await self.publish(
            run_id,
            Event(event_type="region_started", data={"region": region, "sites": sites}),
        )

    async def publish_site_deployed(
        self, run_id: UUID, region: str, site: str, bucket: str, uploaded: int
    ) -> None:
        await self.publish(
            run_id,
            Event(
                event_type="site_deployed",
                data={"region": region, "site": site, "bucket": bucket, "uploaded": uploaded},
            ),
        )

    async def publish_site_failed(
        self, run_id: UUID, region: str, site: str, error: str
    ) -> None:
        await self.publish(
            run_id,
            Event(
                event_type="site_failed",
                data={"region": region, "site": site, "error": error},
            ),
        )

    async def publish_deployment_complete(
        self, run_id: UUID, deployed: dict[str, list[str]], failed: dict[str, list[str]]
    ) -> None:
        """Publish the final report summary."""
        await self.publish(
            run_id,
            Event(
                event_type="deployment_complete",
                data={"deployed": deployed, "failed": failed},
            ),
        )

    async def publish_cancelled(self, run_id: UUID) -> None:
        await self.publish(run_id, Event(event_type="deployment_cancelled", data={}))

    async def publish_error(self, run_id: UUID, error: str) -> None:
        """Publish an error event."""
        await self.publish(run_id, Event(event_type="error", data={"error": error}))


# Singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the event bus singleton."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus
