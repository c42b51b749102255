"""
Mock utilities for testing complex dependencies

Provides mock implementations for:
- Consent event dispatch
- Database sessions that fail on write
"""

from unittest.mock import AsyncMock, MagicMock

from cookie_consent.events import ConsentEventDispatcher


class RecordingDispatcher(ConsentEventDispatcher):
    """Dispatcher that remembers every event before notifying listeners"""

    def __init__(self):
        super().__init__()
        self.events = []

    async def dispatch(self, event):
        self.events.append(event)
        await super().dispatch(event)

    def names(self) -> list[str]:
        return [event.name for event in self.events]


def create_failing_session(error: Exception | None = None, rollback_error: Exception | None = None) -> MagicMock:
    """Mock AsyncSession whose commit raises"""
    session = MagicMock()
    session.add = MagicMock()
    session.commit = AsyncMock(side_effect=error or RuntimeError("database unavailable"))
    session.refresh = AsyncMock()
    session.rollback = AsyncMock(side_effect=rollback_error)
    return session
