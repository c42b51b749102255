"""
Consent change notifications.

ConsentEventDispatcher: in-process registry of listeners keyed by event
name. Dispatch runs after the cookie is written and the audit entry is
stored; listeners are awaited in subscription order and a failing listener
is logged without affecting the others or the consent action itself.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from cookie_consent.preferences import ConsentPreferences

logger = logging.getLogger(__name__)

# ── Event names ───────────────────────────────────────────────────────────────
CONSENT_CHANGED = "consent.changed"
CONSENT_REVOKED = "consent.revoked"

ALL_EVENTS: list[str] = [CONSENT_CHANGED, CONSENT_REVOKED]


@dataclass(frozen=True)
class ConsentChangedEvent:
    """Old and new preferences around a single consent transition."""

    name: str
    old: ConsentPreferences | None
    new: ConsentPreferences | None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_initial(self) -> bool:
        return self.old is None and self.new is not None

    @property
    def is_revocation(self) -> bool:
        return self.old is not None and self.new is None

    @property
    def version_changed(self) -> bool:
        return self.old is not None and self.new is not None and self.old.version != self.new.version

    def changes(self) -> dict[str, list[str]]:
        """Categories newly granted or newly revoked by this transition."""
        old_categories = self.old.categories if self.old else {}
        new_categories = self.new.categories if self.new else {}
        granted: list[str] = []
        revoked: list[str] = []
        for identifier, consented in new_categories.items():
            previously = old_categories.get(identifier, False)
            if consented and not previously:
                granted.append(identifier)
            elif not consented and previously:
                revoked.append(identifier)
        return {"granted": granted, "revoked": revoked}


Listener = Callable[[ConsentChangedEvent], Awaitable[None]]


class ConsentEventDispatcher:
    """Synchronous, best-effort fan-out of consent events."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event_name: str, listener: Listener) -> None:
        self._listeners[event_name].append(listener)

    def unsubscribe(self, event_name: str, listener: Listener) -> None:
        if listener in self._listeners.get(event_name, []):
            self._listeners[event_name].remove(listener)

    def listeners(self, event_name: str) -> list[Listener]:
        return list(self._listeners.get(event_name, []))

    async def dispatch(self, event: ConsentChangedEvent) -> None:
        for listener in self._listeners.get(event.name, []):
            try:
                await listener(event)
            except Exception as exc:
                logger.warning(
                    "Consent listener %s for %s raised: %s",
                    getattr(listener, "__name__", repr(listener)),
                    event.name,
                    exc,
                )


async def log_consent_change(event: ConsentChangedEvent) -> None:
    """Default listener: write a log line describing the transition."""
    old, new = event.old, event.new
    context = {
        "old_policy_version": old.version if old else None,
        "new_policy_version": new.version if new else None,
    }

    if event.is_initial:
        logger.info(
            "User gave initial consent",
            extra={**context, "accepted_categories": new.accepted_categories()},
        )
    elif event.is_revocation:
        logger.info(
            "User revoked all consent",
            extra={**context, "revoked_categories": list(old.categories)},
        )
    elif old and new:
        changes = event.changes()
        if changes["granted"] or changes["revoked"]:
            logger.info("User updated consent preferences", extra={**context, "changes": changes})
        if event.version_changed:
            logger.info("User accepted new policy version %s (was %s)", new.version, old.version)


def create_default_dispatcher() -> ConsentEventDispatcher:
    dispatcher = ConsentEventDispatcher()
    for event_name in ALL_EVENTS:
        dispatcher.subscribe(event_name, log_consent_change)
    return dispatcher


# ── Global singleton ──────────────────────────────────────────────────────────
consent_events = create_default_dispatcher()
