"""
Consent Service

The consent state machine. A ConsentManager is built per request from the
request's consent cookie and the currently active policy; it computes
accept-all / reject / custom-save / revoke transitions, keeps required
categories switched on, and reports when a stored decision was made under an
older policy version.

Every mutating transition runs the same steps in order: capture the old
preferences, compute the new ones, write the cookie, append an audit entry
(when enabled), then notify listeners. Audit and listener failures are
logged by their own layers and never undo the earlier steps.
"""

import logging
import uuid
from enum import Enum

from fastapi import Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cookie_consent.config import Settings, settings as default_settings
from cookie_consent.events import (
    CONSENT_CHANGED,
    CONSENT_REVOKED,
    ConsentChangedEvent,
    ConsentEventDispatcher,
    consent_events,
)
from cookie_consent.exceptions import NoActivePolicyError
from cookie_consent.models.policy import CookiePolicy
from cookie_consent.preferences import ConsentPreferences
from cookie_consent.services import audit_service, policy_service
from cookie_consent.services.storage import ConsentStorageHandler

logger = logging.getLogger(__name__)

SESSION_KEY = "consent_session_id"


class ConsentState(str, Enum):
    NO_CONSENT = "no_consent"
    CURRENT = "current"
    STALE = "stale"


# ── Pure transition rules ─────────────────────────────────────────────────────


def accept_all_categories(policy: CookiePolicy) -> dict[str, bool]:
    return {category.identifier: True for category in policy.categories}


def reject_non_essential_categories(policy: CookiePolicy) -> dict[str, bool]:
    return {category.identifier: bool(category.required) for category in policy.categories}


def merge_requested_categories(policy: CookiePolicy, requested: dict[str, bool]) -> dict[str, bool]:
    """
    Apply a user's requested choices on top of the policy rules.

    Required categories are forced on whatever was asked. Identifiers the
    policy does not know are kept so choices made under an earlier policy
    version survive.
    """
    categories = dict(requested)
    for category in policy.categories:
        if category.required:
            categories[category.identifier] = True
    return categories


def derive_state(preferences: ConsentPreferences | None, policy: CookiePolicy | None) -> ConsentState:
    if preferences is None:
        return ConsentState.NO_CONSENT
    if policy is not None and preferences.version != policy.version:
        return ConsentState.STALE
    return ConsentState.CURRENT


# ── Request helpers ───────────────────────────────────────────────────────────


def get_session_id(request: Request) -> str:
    """Stable per-browser id for the audit log, kept in the signed session cookie."""
    if "session" not in request.scope:
        return uuid.uuid4().hex

    session_id = request.session.get(SESSION_KEY)
    if not session_id:
        session_id = uuid.uuid4().hex
        request.session[SESSION_KEY] = session_id
    return session_id


def get_client_ip(request: Request) -> str | None:
    client_ip = request.headers.get(
        "X-Forwarded-For", request.headers.get("X-Real-IP", request.client.host if request.client else None)
    )
    if client_ip and "," in client_ip:
        client_ip = client_ip.split(",")[0].strip()
    return client_ip


def get_user_id(request: Request) -> int | None:
    user = getattr(request.state, "user", None)
    return getattr(user, "id", None) if user else None


# ── Manager ───────────────────────────────────────────────────────────────────


class ConsentManager:
    """Consent decisions for the client behind one request."""

    def __init__(
        self,
        db: AsyncSession,
        request: Request,
        storage: ConsentStorageHandler | None = None,
        dispatcher: ConsentEventDispatcher | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.request = request
        self.settings = settings or default_settings
        self.storage = storage or ConsentStorageHandler(self.settings)
        self.dispatcher = dispatcher or consent_events
        self._preferences: ConsentPreferences | None = None
        self._loaded = False

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def get_active_policy(self) -> CookiePolicy | None:
        return await policy_service.get_active_policy(self.db)

    async def require_active_policy(self) -> CookiePolicy:
        policy = await self.get_active_policy()
        if not policy:
            raise NoActivePolicyError()
        return policy

    def get_preferences(self) -> ConsentPreferences | None:
        """The preferences in effect for this request (reflects transitions already made)."""
        if not self._loaded:
            self._preferences = self.storage.get_consent(self.request)
            self._loaded = True
        return self._preferences

    def has_consent(self, identifier: str) -> bool:
        preferences = self.get_preferences()
        if preferences is None:
            return False
        return preferences.has_consent(identifier)

    async def get_state(self, policy: CookiePolicy | None = None) -> ConsentState:
        if policy is None:
            policy = await self.get_active_policy()
        return derive_state(self.get_preferences(), policy)

    async def get_status(self) -> dict:
        """Consent status as reported to the banner."""
        preferences = self.get_preferences()
        policy = await self.get_active_policy()

        if preferences is None or policy is None:
            return {
                "hasConsent": False,
                "preferences": None,
                "policyVersion": policy.version if policy else None,
            }

        return {
            "hasConsent": True,
            "preferences": preferences.to_dict(),
            "policyVersion": policy.version,
            "needsUpdate": derive_state(preferences, policy) is ConsentState.STALE,
        }

    # ── Transitions ───────────────────────────────────────────────────────────

    async def accept_all(self, response: Response) -> ConsentPreferences:
        policy = await self.require_active_policy()
        preferences = ConsentPreferences(categories=accept_all_categories(policy), version=policy.version)
        await self._save(preferences, response)
        return preferences

    async def reject_non_essential(self, response: Response) -> ConsentPreferences:
        policy = await self.require_active_policy()
        preferences = ConsentPreferences(categories=reject_non_essential_categories(policy), version=policy.version)
        await self._save(preferences, response)
        return preferences

    async def update_preferences(self, requested: dict[str, bool], response: Response) -> ConsentPreferences:
        policy = await self.require_active_policy()
        preferences = ConsentPreferences(
            categories=merge_requested_categories(policy, requested),
            version=policy.version,
        )
        await self._save(preferences, response)
        return preferences

    async def revoke(self, response: Response) -> None:
        """Forget the stored decision. Nothing is logged or announced when there was none."""
        old = self.get_preferences()
        self.storage.clear_consent(response)
        self._preferences = None
        self._loaded = True

        if old is None:
            return

        if self.settings.consent_log_enabled:
            await self._log(old.version, {})

        await self.dispatcher.dispatch(ConsentChangedEvent(name=CONSENT_REVOKED, old=old, new=None))

    async def _save(self, preferences: ConsentPreferences, response: Response) -> None:
        old = self.get_preferences()

        self.storage.save_consent(preferences, response)
        self._preferences = preferences
        self._loaded = True

        if self.settings.consent_log_enabled:
            await self._log(preferences.version, preferences.categories)

        await self.dispatcher.dispatch(ConsentChangedEvent(name=CONSENT_CHANGED, old=old, new=preferences))

    async def _log(self, policy_version: str, categories: dict[str, bool]) -> None:
        await audit_service.record_consent(
            self.db,
            session_id=get_session_id(self.request),
            policy_version=policy_version,
            categories=categories,
            user_id=get_user_id(self.request),
            ip_address=get_client_ip(self.request),
            user_agent=self.request.headers.get("User-Agent"),
            settings=self.settings,
        )
